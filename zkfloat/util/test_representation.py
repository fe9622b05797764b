import unittest

import numpy as np

from zkfloat.util import representation


class TestRepresentation(unittest.TestCase):
    """
    Tests the conversions between (e, m) floats and numbers, and the exact reference model.
    """

    def test_compose(self):
        """
        Tests the value of (e, m) floats.
        """

        x = representation.composeUnsignedFloat(np.array([0, 1, 3, 1]), np.array([0, 8, 12, 14]), 3)
        self.assertTrue((x == np.array([0.0, 2.0, 12.0, 3.5])).all())

    def test_decompose(self):
        """
        Tests the conversion of numbers into (e, m) floats.
        """

        # Parameters
        n = 1 << 10
        k = 8
        p = 23

        e, m = representation.decomposeUnsignedFloat(np.array([0.0, 2.0, 12.0, 3.5]), 4, 3)
        self.assertTrue((e == np.array([0, 1, 3, 1])).all())
        self.assertTrue((m == np.array([0, 8, 12, 14])).all())

        # Random floats are recovered exactly
        e = np.random.randint(low=1, high=1 << k, size=n, dtype=np.longlong)
        m = np.random.randint(low=1 << p, high=1 << (p + 1), size=n, dtype=np.longlong)
        de, dm = representation.decomposeUnsignedFloat(representation.composeUnsignedFloat(e, m, p), k, p)
        self.assertTrue((de == e).all())
        self.assertTrue((dm == m).all())

        # Values without an unbiased representation
        with self.assertRaises(ValueError):
            representation.decomposeUnsignedFloat(np.array([1.0]), 4, 3)
        with self.assertRaises(ValueError):
            representation.decomposeUnsignedFloat(np.array([2.0 ** 16]), 4, 3)

    def test_round(self):
        """
        Tests the exact rounding (half-up) of wide mantissas.
        """

        self.assertEqual(representation.roundUnsignedFloat(5, 8, 3), (5, 8))
        self.assertEqual(representation.roundUnsignedFloat(5, 0, 3), (0, 0))
        self.assertEqual(representation.roundUnsignedFloat(5, 1, 3), (2, 8))
        self.assertEqual(representation.roundUnsignedFloat(4, 0b10001000, 3), (8, 9))
        self.assertEqual(representation.roundUnsignedFloat(4, 0b10000111, 3), (8, 8))
        self.assertEqual(representation.roundUnsignedFloat(4, 0b11111000, 3), (9, 8))

    def test_add(self):
        """
        Tests the reference model of the addition.
        """

        e, m = representation.addUnsignedFloat(np.array([1, 0, 0, 10, 10]), np.array([8, 0, 0, 15, 8]),
                                               np.array([1, 0, 3, 5, 9]), np.array([8, 0, 12, 15, 8]), 3)

        self.assertEqual(list(e), [2, 0, 3, 10, 10])
        self.assertEqual(list(m), [8, 0, 12, 15, 12])

    def test_wellFormed(self):
        """
        Tests the recognition of well-formed floats, including sums that overflow the exponent range.
        """

        valid = representation.isWellFormedUnsignedFloat(np.array([0, 1, 15, 0, 16, 3, 3]),
                                                         np.array([0, 8, 15, 5, 8, 7, 16]), 4, 3)
        self.assertEqual(list(valid), [True, True, True, False, False, False, False])

        # (7, 7) + (7, 7) rounds to (8, 7), which needs a fourth exponent bit
        e, m = representation.addUnsignedFloat(np.array([7, 7]), np.array([7, 4]),
                                               np.array([7, 1]), np.array([7, 4]), 2)
        self.assertEqual((e[0], m[0]), (8, 7))
        self.assertEqual(list(representation.isWellFormedUnsignedFloat(e, m, 3, 2)), [False, True])


if __name__ == '__main__':
    unittest.main()
