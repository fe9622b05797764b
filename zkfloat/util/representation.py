import numpy as np


def composeUnsignedFloat(e: np.ndarray, m: np.ndarray, p: int):
    """
    Computes the value m * 2^(e - p) of (unsigned) floats given as exponent and mantissa arrays.
    The zero float is encoded as e = 0 (and m = 0).
    :param e: the exponents (np array of integers)
    :param m: the mantissas, including the leading one (np array of integers)
    :param p: the precision
    :return: np array of np.float64
    """

    e = np.asarray(e).astype(np.int32)
    m = np.asarray(m).astype(np.float64)
    return np.where(e == 0, 0.0, np.ldexp(m, e - p))


def decomposeUnsignedFloat(x: np.ndarray, k: int, p: int):
    """
    Converts non-negative numbers to (e, m) floats with k-bit exponents and precision p, truncating the mantissa.
    Non-zero numbers must lie in [2, 2^(2^k)), as the exponent is unbiased and e = 0 encodes zero.
    :param x: np array of non-negative numbers
    :param k: the number of exponent bits
    :param p: the precision (at most 52)
    :return: e, m (np arrays of np.longlong)
    """

    x = np.asarray(x, dtype=np.float64)
    f, q = np.frexp(x)
    e = np.where(x == 0, 0, q - 1).astype(np.longlong)
    m = np.where(x == 0, 0, np.floor(np.ldexp(f, p + 1))).astype(np.longlong)

    if ((x != 0) & ((e < 1) | (e >= (1 << k)))).any():
        raise ValueError(f'value out of the range of floats with {k}-bit exponents')

    return e, m


def isWellFormedUnsignedFloat(e: np.ndarray, m: np.ndarray, k: int, p: int):
    """
    Tests whether (e, m) pairs are well-formed floats: e = 0 and m = 0, or 0 < e < 2^k and 2^p <= m < 2^(p+1).
    :return: np array of booleans
    """

    e = np.asarray(e, dtype=object)
    m = np.asarray(m, dtype=object)
    zero = (e == 0) & (m == 0)
    normal = (e > 0) & (e < (1 << k)) & (m >= (1 << p)) & (m < (1 << (p + 1)))
    return (zero | normal).astype(bool)


def roundUnsignedFloat(e: int, m: int, p: int):
    """
    Rounds the exact value m * 2^(e - p), for a non-zero mantissa m of any width, to a float of precision p
    (round-half-up).
    :param e: the exponent
    :param m: the mantissa
    :param p: the precision
    :return: (e, m) of the rounded float
    """

    if m == 0:
        return 0, 0

    msb = m.bit_length() - 1
    if msb <= p:
        return e + msb - p, m << (p - msb)

    r = msb - p
    e, m = e + r, (m + (1 << (r - 1))) >> r
    if m == 1 << (p + 1):
        e, m = e + 1, m >> 1
    return e, m


def _addUnsignedFloat(e0, m0, e1, m1, p):
    """
    Reference model for a single addition, computed exactly and rounded once
    """

    operands = [(int(e), int(m)) for e, m in ((e0, m0), (e1, m1)) if e != 0]
    if not operands:
        return 0, 0

    base = min(e for e, m in operands)
    total = sum(m << (e - base) for e, m in operands)
    return roundUnsignedFloat(base, total, p)


def addUnsignedFloat(e0: np.ndarray, m0: np.ndarray, e1: np.ndarray, m1: np.ndarray, p: int):
    """
    Computes the correctly-rounded (round-half-up) sum of two arrays of well-formed floats of precision p, using
    exact integer arithmetic.
    :param e0: the exponents of the first operand
    :param m0: the mantissas of the first operand
    :param e1: the exponents of the second operand
    :param m1: the mantissas of the second operand
    :param p: the precision
    :return: e, m (np arrays of python integers)
    """

    return np.frompyfunc(lambda a, b, c, d: _addUnsignedFloat(a, b, c, d, p), 4, 2)(e0, m0, e1, m1)
