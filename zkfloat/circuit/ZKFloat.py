import numpy as np

from zkfloat.util import constants
from zkfloat.circuit import simulator


def _bitsOf(x: np.ndarray, b: int):
    """
    Extracts the b low bits (LSB first) of every field element in the row x
    """
    bit = np.frompyfunc(lambda v, i: (v >> i) & 1, 2, 1)
    return [bit(x, i) for i in range(b)]


class CircuitArithmetic:
    """
    The proposed gadgets for floating-point arithmetic in arithmetic circuits. Every gadget receives the addresses of
        its inputs and the (declared, still unassigned) addresses of its outputs, and declares the hints and
        constraints that define the outputs.
    """

    @staticmethod
    def logicalAnd(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int):
        """
        Computes z = AND(a, b) = a * b. Assumes a and b are boolean (not enforced).
        Constraints: 1
        :param sim: the simulation environment
        :param a_addr: the address of input a
        :param b_addr: the address of input b
        :param z_addr: the address of output z
        """

        with sim.gadget('AND'):
            sim.perform(constants.GateType.MUL, [a_addr, b_addr], [z_addr])

    @staticmethod
    def logicalOr(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int):
        """
        Computes z = OR(a, b) = a + b - a * b. Assumes a and b are boolean (not enforced).
        Constraints: 1
        :param sim: the simulation environment
        :param a_addr: the address of input a
        :param b_addr: the address of input b
        :param z_addr: the address of output z
        """

        with sim.gadget('OR'):
            sim.perform(constants.GateType.HINT, [a_addr, b_addr], [z_addr], hint=lambda a, b: [a + b - a * b])
            # a * b = a + b - z
            sim.constrain({a_addr: 1}, {b_addr: 1}, {a_addr: 1, b_addr: 1, z_addr: -1}, 'OR')

    @staticmethod
    def ifThenElse(sim: simulator.CircuitSimulator, cond_addr: int, l_addr: int, r_addr: int, z_addr: int):
        """
        Computes z = cond ? l : r = cond * (l - r) + r. Assumes cond is boolean (not enforced).
        Constraints: 1
        :param sim: the simulation environment
        :param cond_addr: the address of the condition
        :param l_addr: the address of the value selected if cond = 1
        :param r_addr: the address of the value selected if cond = 0
        :param z_addr: the address of output z
        """

        with sim.gadget('ifThenElse'):
            sim.perform(constants.GateType.HINT, [cond_addr, l_addr, r_addr], [z_addr],
                hint=lambda c, l, r: [c * (l - r) + r])
            # cond * (l - r) = z - r
            sim.constrain({cond_addr: 1}, {l_addr: 1, r_addr: -1}, {z_addr: 1, r_addr: -1}, 'ifThenElse')

    @staticmethod
    def switcher(sim: simulator.CircuitSimulator, sel_addr: int, l_addr: int, r_addr: int,
            outl_addr: int, outr_addr: int):
        """
        Computes (outL, outR) = sel ? (r, l) : (l, r), sharing the multiplication aux = (r - l) * sel between both
            outputs. Assumes sel is boolean (not enforced).
        Constraints: 3 (a single multiplication)
        :param sim: the simulation environment
        :param sel_addr: the address of the selector
        :param l_addr: the address of input l
        :param r_addr: the address of input r
        :param outl_addr: the address of output outL
        :param outr_addr: the address of output outR
        """

        with sim.gadget('switcher'):
            aux_addr = sim.malloc()
            sim.perform(constants.GateType.HINT, [sel_addr, l_addr, r_addr], [aux_addr],
                hint=lambda s, l, r: [(r - l) * s])
            sim.constrain({r_addr: 1, l_addr: -1}, {sel_addr: 1}, {aux_addr: 1}, 'switcher')
            sim.perform(constants.GateType.LINEAR, [aux_addr, l_addr], [outl_addr])
            sim.perform(constants.GateType.LINEAR, [r_addr, aux_addr], [outr_addr], coeffs=[1, -1])

    @staticmethod
    def num2Bits(sim: simulator.CircuitSimulator, x_addr: int, bits_addr: np.ndarray):
        """
        Decomposes x into b = len(bits_addr) boolean wires (LSB first). The reconstruction constraint also serves as
            a range check: the witness is unsatisfiable if x >= 2^b.
        Constraints: b + 1
        :param sim: the simulation environment
        :param x_addr: the address of input x
        :param bits_addr: the addresses of the output bits (b-bit)
        """

        b = len(bits_addr)
        if b >= sim.modulus.bit_length():
            raise ValueError(f'num2Bits: {b} bits do not decompose field elements uniquely')

        with sim.gadget('num2Bits'):
            sim.perform(constants.GateType.HINT, [x_addr], bits_addr, hint=lambda x: _bitsOf(x, b))
            for bit_addr in bits_addr:
                CircuitArithmetic.__assertBoolean(sim, bit_addr)
            sim.constrain({bits_addr[i]: 1 << i for i in range(b)}, {constants.ONE: 1}, {x_addr: 1},
                f'value does not fit in {b} bits')

    @staticmethod
    def bits2Num(sim: simulator.CircuitSimulator, bits_addr: np.ndarray, z_addr: int):
        """
        Computes z = sum(bits[i] * 2^i). Does not verify that the bits are boolean.
        Constraints: 1
        :param sim: the simulation environment
        :param bits_addr: the addresses of the input bits (LSB first)
        :param z_addr: the address of output z
        """

        with sim.gadget('bits2Num'):
            sim.perform(constants.GateType.LINEAR, bits_addr, [z_addr], coeffs=[1 << i for i in range(len(bits_addr))])

    @staticmethod
    def isZero(sim: simulator.CircuitSimulator, x_addr: int, z_addr: int):
        """
        Computes z = 1 if x = 0, otherwise 0, using the hint inv = 1 / x (0 if x = 0).
        Constraints: 2
        :param sim: the simulation environment
        :param x_addr: the address of input x
        :param z_addr: the address of output z
        """

        modulus = sim.modulus
        inverse = np.frompyfunc(lambda v: pow(v, -1, modulus) if v != 0 else 0, 1, 1)

        with sim.gadget('isZero'):
            inv_addr = sim.malloc()
            sim.perform(constants.GateType.HINT, [x_addr], [inv_addr, z_addr],
                hint=lambda x: [inverse(x), np.where(x == 0, 1, 0)])
            # x * inv = 1 - z
            sim.constrain({x_addr: 1}, {inv_addr: 1}, {constants.ONE: 1, z_addr: -1}, 'isZero inverse')
            # x * z = 0
            sim.constrain({x_addr: 1}, {z_addr: 1}, {}, 'isZero output')

    @staticmethod
    def isEqual(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int):
        """
        Computes z = 1 if a = b, otherwise 0, as isZero(b - a).
        Constraints: 1 + IsZero = 3
        :param sim: the simulation environment
        :param a_addr: the address of input a
        :param b_addr: the address of input b
        :param z_addr: the address of output z
        """

        with sim.gadget('isEqual'):
            diff_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [b_addr, a_addr], [diff_addr], coeffs=[1, -1])
            CircuitArithmetic.isZero(sim, diff_addr, z_addr)

    @staticmethod
    def lessThan(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int, n: int):
        """
        Computes z = 1 if a < b, otherwise 0, from the top bit of the (n+1)-bit decomposition of a + 2^n - b.
        Correct only if both a and b lie in [0, 2^n); the caller is responsible for this precondition.
        Constraints: 1 + Num2Bits(n + 1) + 1 = n + 4
        :param sim: the simulation environment
        :param a_addr: the address of input a
        :param b_addr: the address of input b
        :param z_addr: the address of output z
        :param n: the bit-width of the inputs (at most 252)
        """

        if not 0 <= n <= constants.MAX_COMPARISON_BITS:
            raise ValueError(f'lessThan: {n}-bit comparisons are not supported '
                             f'(at most {constants.MAX_COMPARISON_BITS} bits)')

        with sim.gadget('lessThan'):
            offset_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [a_addr, b_addr], [offset_addr], coeffs=[1, -1], const=1 << n)
            bits_addr = sim.malloc(n + 1)
            CircuitArithmetic.num2Bits(sim, offset_addr, bits_addr)
            sim.perform(constants.GateType.LINEAR, [bits_addr[n]], [z_addr], coeffs=[-1], const=1)

    @staticmethod
    def greaterThan(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int, n: int):
        """
        Computes z = 1 if a > b, otherwise 0. Same precondition as lessThan.
        Constraints: LessThan(n) = n + 4
        """

        with sim.gadget('greaterThan'):
            CircuitArithmetic.lessThan(sim, b_addr, a_addr, z_addr, n)

    @staticmethod
    def lessEqThan(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int, n: int):
        """
        Computes z = 1 if a <= b, otherwise 0, as lessThan(a, b + 1). Requires b + 1 < 2^n.
        Constraints: 1 + LessThan(n) = n + 5
        """

        with sim.gadget('lessEqThan'):
            next_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [b_addr], [next_addr], const=1)
            CircuitArithmetic.lessThan(sim, a_addr, next_addr, z_addr, n)

    @staticmethod
    def greaterEqThan(sim: simulator.CircuitSimulator, a_addr: int, b_addr: int, z_addr: int, n: int):
        """
        Computes z = 1 if a >= b, otherwise 0, as lessThan(b, a + 1). Requires a + 1 < 2^n.
        Constraints: 1 + LessThan(n) = n + 5
        """

        with sim.gadget('greaterEqThan'):
            next_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [a_addr], [next_addr], const=1)
            CircuitArithmetic.lessThan(sim, b_addr, next_addr, z_addr, n)

    @staticmethod
    def checkBitLength(sim: simulator.CircuitSimulator, x_addr: int, z_addr: int, b: int):
        """
        Computes z = 1 if x lies in [0, 2^b), otherwise 0, as lessThan(x, 2^b) over b + 1 bits: x is decomposed into
            b + 1 bits and z is the complement of the top bit. The decomposition also enforces the comparison's
            precondition x < 2^(b+1), so both z = 1 and z = 0 are pinned by the constraints, and an x outside of
            [0, 2^(b+1)) (including the wrap-around of a negative value) has no witness.
        Constraints: Num2Bits(b + 1) + 1 = b + 3
        :param sim: the simulation environment
        :param x_addr: the address of input x (in [0, 2^(b+1)))
        :param z_addr: the address of output z
        :param b: the bit budget (b + 1 <= 252)
        """

        if not 0 <= b < constants.MAX_COMPARISON_BITS:
            raise ValueError(f'checkBitLength: unsupported bit length {b}')

        with sim.gadget('checkBitLength'):
            bits_addr = sim.malloc(b + 1)
            CircuitArithmetic.num2Bits(sim, x_addr, bits_addr)
            sim.perform(constants.GateType.LINEAR, [bits_addr[b]], [z_addr], coeffs=[-1], const=1)

    @staticmethod
    def checkWellFormedness(sim: simulator.CircuitSimulator, e_addr: int, m_addr: int, k: int, p: int):
        """
        Asserts that (e, m) is a well-formed float: either e = 0 and m = 0, or e < 2^k and 2^p <= m < 2^(p+1).
            Both cases are evaluated unconditionally, and the one selected by e = 0 must hold. When e = 0, the
            mantissa offset is computed from 2^p instead of m, so the bit-length check of the unselected case
            always has a witness. An e >= 2^(k+1), or a mantissa m < 2^p or m >= 3 * 2^p with e != 0, has no witness
            at all.
        Constraints:
            2 * IsZero + CheckBitLength(k) + 1 + IfThenElse + 1 + CheckBitLength(p) + AND + IfThenElse + 1
            = 4 + (k + 3) + 3 + (p + 3) + 3
            = k + p + 16
        :param sim: the simulation environment
        :param e_addr: the address of the exponent
        :param m_addr: the address of the mantissa
        :param k: the number of exponent bits
        :param p: the precision (number of mantissa bits below the implicit leading one)
        """

        with sim.gadget('checkWellFormedness'):

            # Case I: e = 0 requires m = 0
            e_zero_addr = sim.malloc()
            CircuitArithmetic.isZero(sim, e_addr, e_zero_addr)
            m_zero_addr = sim.malloc()
            CircuitArithmetic.isZero(sim, m_addr, m_zero_addr)

            # Case II: e != 0 requires e < 2^k and 0 <= m - 2^p < 2^p
            e_fits_addr = sim.malloc()
            CircuitArithmetic.checkBitLength(sim, e_addr, e_fits_addr, k)
            m_min_addr = CircuitArithmetic.__constant(sim, 1 << p)
            m_selected_addr = sim.malloc()
            CircuitArithmetic.ifThenElse(sim, e_zero_addr, m_min_addr, m_addr, m_selected_addr)
            m_offset_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [m_selected_addr], [m_offset_addr], const=-(1 << p))
            m_fits_addr = sim.malloc()
            CircuitArithmetic.checkBitLength(sim, m_offset_addr, m_fits_addr, p)
            normal_addr = sim.malloc()
            CircuitArithmetic.logicalAnd(sim, e_fits_addr, m_fits_addr, normal_addr)

            valid_addr = sim.malloc()
            CircuitArithmetic.ifThenElse(sim, e_zero_addr, m_zero_addr, normal_addr, valid_addr)
            CircuitArithmetic.__assertOne(sim, valid_addr,
                f'ill-formed float: expected e = 0 and m = 0, or e < 2^{k} and 2^{p} <= m < 2^{p + 1}')

    @staticmethod
    def rightShift(sim: simulator.CircuitSimulator, x_addr: int, y_addr: int, b: int, shift: int):
        """
        Computes y = x >> shift for a shift known when the circuit is built, by dropping the low bits of the
            b-bit decomposition of x. Requires x < 2^b.
        Constraints: Num2Bits(b) + 1 = b + 2
        :param sim: the simulation environment
        :param x_addr: the address of input x
        :param y_addr: the address of output y
        :param b: the bit-width of x
        :param shift: the shift amount (0 <= shift < b)
        """

        if not 0 <= shift < b:
            raise ValueError(f'rightShift: shift {shift} out of range for {b}-bit values')

        with sim.gadget('rightShift'):
            bits_addr = sim.malloc(b)
            CircuitArithmetic.num2Bits(sim, x_addr, bits_addr)
            sim.perform(constants.GateType.LINEAR, bits_addr[shift:], [y_addr],
                coeffs=[1 << i for i in range(b - shift)])

    @staticmethod
    def leftShift(sim: simulator.CircuitSimulator, x_addr: int, shift_addr: int, skip_addr: int, y_addr: int,
            shift_bound: int, shift_bits: int = 0):
        """
        Computes y = x * 2^shift for a shift that is itself a wire, bounded by shift_bound. For every candidate i in
            [0, shift_bound), the equality shift = i is weighted by 2^i, and the weighted sum is 2^shift.
            Unless skip = 1, the shift is asserted to be below shift_bound; if skip = 1 and shift >= shift_bound,
            then y = 0 (don't-care).
        Constraints:
            1 + LessThan(n) + OR + 1 + shift_bound * (1 + IsZero) + 2
            = 3 * shift_bound + n + 9, where n = max(bitlength(shift_bound), shift_bits)
        :param sim: the simulation environment
        :param x_addr: the address of input x
        :param shift_addr: the address of the shift amount
        :param skip_addr: the address of the skip_checks flag (boolean)
        :param y_addr: the address of output y
        :param shift_bound: the exclusive upper bound of the shift
        :param shift_bits: the bit-width of the shift wire, when it may exceed that of shift_bound
        """

        if shift_bound < 1:
            raise ValueError(f'leftShift: shift bound must be positive, got {shift_bound}')
        n = max(int(shift_bound).bit_length(), shift_bits)

        with sim.gadget('leftShift'):

            # Check that shift < shift_bound (unless skip)
            bound_addr = CircuitArithmetic.__constant(sim, shift_bound)
            in_range_addr = sim.malloc()
            CircuitArithmetic.lessThan(sim, shift_addr, bound_addr, in_range_addr, n)
            valid_addr = sim.malloc()
            CircuitArithmetic.logicalOr(sim, skip_addr, in_range_addr, valid_addr)
            CircuitArithmetic.__assertOne(sim, valid_addr, f'shift must be below {shift_bound}')

            # Compute 2^shift as sum of (shift == i) * 2^i
            matches_addr = sim.malloc(shift_bound)
            for i in range(shift_bound):
                diff_addr = sim.malloc()
                sim.perform(constants.GateType.LINEAR, [shift_addr], [diff_addr], const=-i)
                CircuitArithmetic.isZero(sim, diff_addr, matches_addr[i])
            pow_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, matches_addr, [pow_addr], coeffs=[1 << i for i in range(shift_bound)])

            sim.perform(constants.GateType.MUL, [x_addr, pow_addr], [y_addr])

    @staticmethod
    def msnzb(sim: simulator.CircuitSimulator, x_addr: int, skip_addr: int, one_hot_addr: np.ndarray):
        """
        Computes the one-hot vector of the most significant non-zero bit of x, where b = len(one_hot_addr).
            Unless skip = 1, x is asserted to be non-zero and to fit in b bits.
            The suffix mask mask[i] = "no bit above i is set" is built top-down with b - 1 multiplications,
            and one_hot[i] = mask[i] * bits[i].
        Constraints: b + 1 + IsZero + 1 + OR + 1 + 1 + (b - 1) + b = 3b + 6
        :param sim: the simulation environment
        :param x_addr: the address of input x
        :param skip_addr: the address of the skip_checks flag (boolean)
        :param one_hot_addr: the addresses of the output one-hot vector (b-bit, LSB first)
        """

        b = len(one_hot_addr)
        if not 1 <= b < sim.modulus.bit_length():
            raise ValueError(f'msnzb: unsupported bit length {b}')

        with sim.gadget('msnzb'):

            bits_addr = sim.malloc(b)
            sim.perform(constants.GateType.HINT, [x_addr], bits_addr, hint=lambda x: _bitsOf(x, b))
            for bit_addr in bits_addr:
                CircuitArithmetic.__assertBoolean(sim, bit_addr)
            # (sum(bits[i] * 2^i) - x) * (1 - skip) = 0
            reconstruction = {bits_addr[i]: 1 << i for i in range(b)}
            reconstruction[x_addr] = -1
            sim.constrain(reconstruction, {constants.ONE: 1, skip_addr: -1}, {}, f'value does not fit in {b} bits')

            # Check that x != 0 (unless skip)
            zero_addr = sim.malloc()
            CircuitArithmetic.isZero(sim, x_addr, zero_addr)
            nonzero_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [zero_addr], [nonzero_addr], coeffs=[-1], const=1)
            valid_addr = sim.malloc()
            CircuitArithmetic.logicalOr(sim, skip_addr, nonzero_addr, valid_addr)
            CircuitArithmetic.__assertOne(sim, valid_addr, 'msnzb of zero')

            # mask[i] = mask[i + 1] * (1 - bits[i + 1])
            mask_addr = sim.malloc(b)
            sim.perform(constants.GateType.LINEAR, [], [mask_addr[b - 1]], const=1)
            for i in reversed(range(b - 1)):
                sim.perform(constants.GateType.HINT, [mask_addr[i + 1], bits_addr[i + 1]], [mask_addr[i]],
                    hint=lambda mask, bit: [mask * (1 - bit)])
                sim.constrain({mask_addr[i + 1]: 1}, {constants.ONE: 1, bits_addr[i + 1]: -1}, {mask_addr[i]: 1},
                    'msnzb mask')

            for i in range(b):
                sim.perform(constants.GateType.MUL, [mask_addr[i], bits_addr[i]], [one_hot_addr[i]])

    @staticmethod
    def normalize(sim: simulator.CircuitSimulator, e_addr: int, m_addr: int, skip_addr: int,
            e_out_addr: int, m_out_addr: int, k: int, p: int, P: int):
        """
        Normalizes an (e, m) pair where m is a non-zero (P+1)-bit mantissa of precision p into a mantissa of
            precision P with its most significant bit at position P: with l the position of the most significant
            bit of m, e_out = e + l - p and m_out = m * 2^(P - l), so that m * 2^(e - p) = m_out * 2^(e_out - P).
        Constraints: MSNZB(P + 1) + 3 = 3P + 12
        :param sim: the simulation environment
        :param e_addr: the address of input exponent e
        :param m_addr: the address of input mantissa m
        :param skip_addr: the address of the skip_checks flag, forwarded to MSNZB
        :param e_out_addr: the address of output exponent
        :param m_out_addr: the address of output mantissa
        :param k: the number of exponent bits
        :param p: the precision of the input mantissa
        :param P: the precision of the output mantissa (P > p)
        """

        if k < 1 or P <= p:
            raise ValueError(f'normalize: requires k >= 1 and P > p, got k={k}, p={p}, P={P}')

        with sim.gadget('normalize'):
            one_hot_addr = sim.malloc(P + 1)
            CircuitArithmetic.msnzb(sim, m_addr, skip_addr, one_hot_addr)

            # e_out = e + sum(i * one_hot[i]) - p
            sim.perform(constants.GateType.LINEAR, [e_addr] + list(one_hot_addr), [e_out_addr],
                coeffs=[1] + list(range(P + 1)), const=-p)

            # m_out = m * sum(2^(P - i) * one_hot[i])
            factor_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, one_hot_addr, [factor_addr],
                coeffs=[1 << (P - i) for i in range(P + 1)])
            sim.perform(constants.GateType.MUL, [m_addr, factor_addr], [m_out_addr])

    @staticmethod
    def roundAndCheck(sim: simulator.CircuitSimulator, e_addr: int, m_addr: int,
            e_out_addr: int, m_out_addr: int, k: int, p: int, P: int):
        """
        Rounds a normalized (P+1)-bit mantissa of precision P to precision p (round-half-up). With r = P - p, the
            general case is (e, (m + 2^(r-1)) >> r); if m >= 2^(P+1) - 2^(r-1) the rounding overflows into the next
            power of two, and the result is (e + 1, 2^p). Both cases are computed, and one is selected.
        Constraints:
            1 + LessThan(P + 1) + 1 + RightShift(P + 2) + 2 + 2 * IfThenElse
            = 1 + (P + 5) + 1 + (P + 4) + 2 + 2
            = 2P + 15
        :param sim: the simulation environment
        :param e_addr: the address of input exponent e
        :param m_addr: the address of input mantissa m (precision P)
        :param e_out_addr: the address of output exponent
        :param m_out_addr: the address of output mantissa (precision p)
        :param k: the number of exponent bits
        :param p: the target precision
        :param P: the input precision (P > p)
        """

        if k < 1 or P <= p:
            raise ValueError(f'roundAndCheck: requires k >= 1 and P > p, got k={k}, p={p}, P={P}')
        round_amt = P - p

        with sim.gadget('roundAndCheck'):

            # Check whether the rounding overflows
            threshold_addr = CircuitArithmetic.__constant(sim, (1 << (P + 1)) - (1 << (round_amt - 1)))
            no_overflow_addr = sim.malloc()
            CircuitArithmetic.lessThan(sim, m_addr, threshold_addr, no_overflow_addr, P + 1)

            # Case I: no overflow
            m_prime_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [m_addr], [m_prime_addr], const=1 << (round_amt - 1))
            m_rounded_addr = sim.malloc()
            CircuitArithmetic.rightShift(sim, m_prime_addr, m_rounded_addr, P + 2, round_amt)

            # Case II: overflow
            e_next_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [e_addr], [e_next_addr], const=1)
            m_min_addr = CircuitArithmetic.__constant(sim, 1 << p)

            CircuitArithmetic.ifThenElse(sim, no_overflow_addr, e_addr, e_next_addr, e_out_addr)
            CircuitArithmetic.ifThenElse(sim, no_overflow_addr, m_rounded_addr, m_min_addr, m_out_addr)

    @staticmethod
    def floatAdd(sim: simulator.CircuitSimulator, e_addr, m_addr, e_out_addr: int, m_out_addr: int, k: int, p: int):
        """
        Performs a floating-point addition of two well-formed (unsigned) floats of precision p.
            1. Assert the well-formedness of both inputs.
            2. Order the inputs by the magnitude key e * 2^(p+1) + m into alpha (larger) and beta (smaller).
            3. If e_alpha = 0 or e_alpha - e_beta > p + 1, the result is alpha (trivial case).
            4. Otherwise, align m_alpha by the exponent difference, add m_beta, normalize to precision 2p + 1,
               and round back to precision p.
            5. Select the trivial or the general result, and assert its well-formedness (e < 2^k).
        Constraints:
            2 * CheckWellFormedness(k, p) + 2 + LessThan(k + p + 1) + 2 * Switcher + 2 + GreaterThan(k) + IsZero + OR
            + LeftShift(p + 2, n) + 1 + Normalize(k, p, 2p + 1) + RoundAndCheck(k, p, 2p + 1) + 2 * IfThenElse
            + CheckWellFormedness(k, p)
            = 5k + 17p + n + 120, where n = max(bitlength(p + 2), k)
        :param sim: the simulation environment
        :param e_addr: the addresses of the input exponents (2 entries)
        :param m_addr: the addresses of the input mantissas (2 entries)
        :param e_out_addr: the address of the output exponent
        :param m_out_addr: the address of the output mantissa
        :param k: the number of exponent bits
        :param p: the precision (number of mantissa bits below the implicit leading one)
        """

        assert(len(e_addr) == 2)
        assert(len(m_addr) == 2)

        if k < 1 or p < 1:
            raise ValueError(f'floatAdd: requires k >= 1 and p >= 1, got k={k}, p={p}')
        if p + 1 >= (1 << k):
            raise ValueError(f'floatAdd: {k}-bit exponents cannot express the alignment bound p + 1 = {p + 1}')
        if k + p + 1 > constants.MAX_COMPARISON_BITS or 2 * p + 2 > constants.MAX_COMPARISON_BITS:
            raise ValueError(f'floatAdd: k={k}, p={p} exceed the {constants.MAX_COMPARISON_BITS}-bit comparison range')
        P = 2 * p + 1

        with sim.gadget('floatAdd'):

            for i in range(2):
                CircuitArithmetic.checkWellFormedness(sim, e_addr[i], m_addr[i], k, p)

            # Arrange by magnitude
            magnitude_addr = sim.malloc(2)
            for i in range(2):
                sim.perform(constants.GateType.LINEAR, [e_addr[i], m_addr[i]], [magnitude_addr[i]],
                    coeffs=[1 << (p + 1), 1])
            swap_addr = sim.malloc()
            CircuitArithmetic.lessThan(sim, magnitude_addr[0], magnitude_addr[1], swap_addr, k + p + 1)

            alpha_e_addr, beta_e_addr, alpha_m_addr, beta_m_addr = sim.malloc(4)
            CircuitArithmetic.switcher(sim, swap_addr, e_addr[0], e_addr[1], alpha_e_addr, beta_e_addr)
            CircuitArithmetic.switcher(sim, swap_addr, m_addr[0], m_addr[1], alpha_m_addr, beta_m_addr)

            # Trivial case: alpha is zero, or beta is absorbed by the rounding
            diff_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [alpha_e_addr, beta_e_addr], [diff_addr], coeffs=[1, -1])
            bound_addr = CircuitArithmetic.__constant(sim, p + 1)
            absorbed_addr = sim.malloc()
            CircuitArithmetic.greaterThan(sim, diff_addr, bound_addr, absorbed_addr, k)
            alpha_zero_addr = sim.malloc()
            CircuitArithmetic.isZero(sim, alpha_e_addr, alpha_zero_addr)
            trivial_addr = sim.malloc()
            CircuitArithmetic.logicalOr(sim, absorbed_addr, alpha_zero_addr, trivial_addr)

            # General case: align, add, normalize and round
            shifted_addr = sim.malloc()
            CircuitArithmetic.leftShift(sim, alpha_m_addr, diff_addr, trivial_addr, shifted_addr, p + 2, shift_bits=k)
            mantissa_addr = sim.malloc()
            sim.perform(constants.GateType.LINEAR, [shifted_addr, beta_m_addr], [mantissa_addr])

            normalized_e_addr, normalized_m_addr = sim.malloc(2)
            CircuitArithmetic.normalize(sim, beta_e_addr, mantissa_addr, trivial_addr,
                normalized_e_addr, normalized_m_addr, k, p, P)
            rounded_e_addr, rounded_m_addr = sim.malloc(2)
            CircuitArithmetic.roundAndCheck(sim, normalized_e_addr, normalized_m_addr,
                rounded_e_addr, rounded_m_addr, k, p, P)

            CircuitArithmetic.ifThenElse(sim, trivial_addr, alpha_e_addr, rounded_e_addr, e_out_addr)
            CircuitArithmetic.ifThenElse(sim, trivial_addr, alpha_m_addr, rounded_m_addr, m_out_addr)

            # The result must fit the format, which rejects an exponent overflow to 2^k
            with sim.gadget('output'):
                CircuitArithmetic.checkWellFormedness(sim, e_out_addr, m_out_addr, k, p)

    @staticmethod
    def floatAddIEEE(sim: simulator.CircuitSimulator, e_addr, m_addr, e_out_addr: int, m_out_addr: int, N: int):
        """
        Performs a floating-point addition with the exponent and mantissa sizes of the IEEE standard for
            16-bit, 32-bit, or 64-bit numbers (no sign, no bias).
        :param sim: the simulation environment
        :param e_addr: the addresses of the input exponents (2 entries)
        :param m_addr: the addresses of the input mantissas (2 entries)
        :param e_out_addr: the address of the output exponent
        :param m_out_addr: the address of the output mantissa
        :param N: the size of the IEEE format (16, 32, or 64)
        """

        Ns, Ne, Nm = constants.getIEEE754Split(N)

        CircuitArithmetic.floatAdd(sim, e_addr, m_addr, e_out_addr, m_out_addr, Ne, Nm)

    @staticmethod
    def floatSum(sim: simulator.CircuitSimulator, e_addr, m_addr, e_out_addr: int, m_out_addr: int, k: int, p: int):
        """
        Sums any number of well-formed floats with a balanced tree of floatAdd gadgets (each addition rounds).
        Constraints: (len(e_addr) - 1) * FloatAdd(k, p), or CheckWellFormedness(k, p) + 2 for a single input
        :param sim: the simulation environment
        :param e_addr: the addresses of the input exponents
        :param m_addr: the addresses of the input mantissas
        :param e_out_addr: the address of the output exponent
        :param m_out_addr: the address of the output mantissa
        :param k: the number of exponent bits
        :param p: the precision
        """

        assert(len(e_addr) == len(m_addr))
        assert(len(e_addr) >= 1)

        with sim.gadget('floatSum'):

            es = list(e_addr)
            ms = list(m_addr)

            if len(es) == 1:
                CircuitArithmetic.checkWellFormedness(sim, es[0], ms[0], k, p)
                sim.perform(constants.GateType.LINEAR, [es[0]], [e_out_addr])
                sim.perform(constants.GateType.LINEAR, [ms[0]], [m_out_addr])
                return

            while len(es) > 2:
                next_es = []
                next_ms = []
                for i in range(0, len(es) - 1, 2):
                    ze_addr, zm_addr = sim.malloc(2)
                    CircuitArithmetic.floatAdd(sim, es[i:i + 2], ms[i:i + 2], ze_addr, zm_addr, k, p)
                    next_es.append(ze_addr)
                    next_ms.append(zm_addr)
                if len(es) % 2 == 1:
                    next_es.append(es[-1])
                    next_ms.append(ms[-1])
                es = next_es
                ms = next_ms

            CircuitArithmetic.floatAdd(sim, es, ms, e_out_addr, m_out_addr, k, p)

    @staticmethod
    def __constant(sim: simulator.CircuitSimulator, value: int):
        """
        Allocates a wire holding the given constant
        :return: the address of the wire
        """

        z_addr = sim.malloc()
        sim.perform(constants.GateType.LINEAR, [], [z_addr], const=value)
        return z_addr

    @staticmethod
    def __assertBoolean(sim: simulator.CircuitSimulator, x_addr: int):
        """
        Asserts x * (1 - x) = 0
        """

        sim.constrain({x_addr: 1}, {constants.ONE: 1, x_addr: -1}, {}, 'bit must be boolean')

    @staticmethod
    def __assertOne(sim: simulator.CircuitSimulator, x_addr: int, msg: str):
        """
        Asserts x = 1
        """

        sim.constrain({x_addr: 1}, {constants.ONE: 1}, {constants.ONE: 1}, msg)
