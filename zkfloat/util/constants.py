from enum import Enum


# BN254 scalar field prime (the field used by circom and ethsnarks)
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Address of the wire that always holds the constant one
ONE = 0

# Widest comparison that cannot wrap around the field
MAX_COMPARISON_BITS = 252


class GateType(Enum):
    """
    Represents a type of gate in the constraint system.
    """

    INPUT = 0
    LINEAR = 1
    MUL = 2
    HINT = 3


def getIEEE754Split(N: int):
    """
    Computes the split of N into Ns, Ne, Nm according to the IEEE 754 standard for floating-point numbers.
    Supports 16-bit, 32-bit, and 64-bit.
    :param N: the total size of the floating point number
    :return: Ns (number of sign bits), Ne (number of exponent bits), Nm (number of mantissa bits)
    """

    if N == 16:
        return 1, 5, 10
    elif N == 32:
        return 1, 8, 23
    elif N == 64:
        return 1, 11, 52
    else:
        raise ValueError(f'unsupported floating-point size: {N}')
