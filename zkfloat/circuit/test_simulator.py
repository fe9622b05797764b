import unittest

import numpy as np

from zkfloat.util import constants
from zkfloat.circuit import simulator


class TestSimulator(unittest.TestCase):
    """
    Tests the constraint-system simulator (build pass and witness pass).
    """

    def test_malloc(self):
        """
        Tests the allocation of wires.
        """

        sim = simulator.CircuitSimulator(4)

        x_addr = sim.malloc()
        y_addr = sim.malloc(3)

        self.assertEqual(x_addr, 1)
        self.assertTrue((y_addr == np.arange(2, 5)).all())
        self.assertEqual(sim.num_wires, 5)
        self.assertEqual(len(sim.malloc(0)), 0)

    def test_linearAndMultiplication(self):
        """
        Tests the evaluation of linear and multiplication gates, including negative coefficients.
        """

        # Parameters
        n = 1 << 8

        # Define the simulator
        sim = simulator.CircuitSimulator(n)
        x_addr = sim.input('x')
        y_addr = sim.input('y')
        diff_addr = sim.malloc()
        prod_addr = sim.malloc()

        sim.perform(constants.GateType.LINEAR, [x_addr, y_addr], [diff_addr], coeffs=[1, -1], const=3)
        sim.perform(constants.GateType.MUL, [x_addr, y_addr], [prod_addr])

        # Sample the inputs at random
        x = np.random.randint(low=0, high=1 << 32, size=n, dtype=np.longlong)
        y = np.random.randint(low=0, high=1 << 32, size=n, dtype=np.longlong)

        sim.assign({'x': x, 'y': y})

        # Verify correctness (negative values wrap around the modulus)
        expected = [(int(a) - int(b) + 3) % sim.modulus for a, b in zip(x, y)]
        self.assertEqual(list(sim.read(diff_addr)), expected)
        self.assertEqual(list(sim.read(prod_addr)), [int(a) * int(b) for a, b in zip(x, y)])
        self.assertEqual(len(sim.constraints), 2)

    def test_modulus(self):
        """
        Tests a simulator over a small field.
        """

        sim = simulator.CircuitSimulator(3, modulus=97)
        x_addr = sim.input('x')
        z_addr = sim.malloc()
        sim.perform(constants.GateType.MUL, [x_addr, x_addr], [z_addr])

        sim.assign({'x': np.array([10, 96, 200])})

        self.assertEqual(list(sim.read(x_addr)), [10, 96, 6])
        self.assertEqual(list(sim.read(z_addr)), [3, 1, 36])

    def test_hint(self):
        """
        Tests that hints are unconstrained until the caller adds a constraint, and the reported failure.
        """

        # Parameters
        n = 8

        # Define the simulator
        sim = simulator.CircuitSimulator(n)
        x_addr = sim.input('x')
        root_addr = sim.malloc()

        with sim.gadget('sqrt'):
            # An incorrect hint on row 2
            sim.perform(constants.GateType.HINT, [x_addr], [root_addr],
                hint=lambda x: [np.where(np.arange(n) == 2, 0, 3)])
            sim.constrain({root_addr: 1}, {root_addr: 1}, {x_addr: 1}, 'root squared must equal x')

        with self.assertRaises(simulator.UnsatisfiedConstraintError) as context:
            sim.assign({'x': 9})

        self.assertEqual(context.exception.gadget, 'sqrt')
        self.assertEqual(context.exception.msg, 'root squared must equal x')
        self.assertEqual(context.exception.index, 0)
        self.assertEqual(list(context.exception.rows), [2])
        self.assertEqual(context.exception.inputs, {'x': 9})
        self.assertIsInstance(context.exception, AssertionError)

    def test_check(self):
        """
        Tests the verification of an assignment whose wires were changed after the witness pass.
        """

        sim = simulator.CircuitSimulator(2)
        x_addr = sim.input('x')
        z_addr = sim.malloc()
        sim.perform(constants.GateType.MUL, [x_addr, x_addr], [z_addr])

        with self.assertRaises(ValueError):
            sim.check()

        self.assertIs(sim.assign({'x': np.array([3, 4])}).check(), sim)

        sim.memory[z_addr] = np.array([9, 15], dtype=object)
        with self.assertRaises(simulator.UnsatisfiedConstraintError) as context:
            sim.check()
        self.assertEqual(list(context.exception.rows), [1])
        self.assertEqual(context.exception.inputs, {'x': 4})

    def test_buildErrors(self):
        """
        Tests the errors raised while building a circuit.
        """

        sim = simulator.CircuitSimulator(1)
        x_addr = sim.input('x')
        y_addr = sim.malloc()
        z_addr = sim.malloc()

        # Duplicate input
        with self.assertRaises(ValueError):
            sim.input('x')

        # Reading a wire before it is assigned
        with self.assertRaises(ValueError):
            sim.perform(constants.GateType.MUL, [x_addr, y_addr], [z_addr])
        with self.assertRaises(ValueError):
            sim.constrain({y_addr: 1}, {constants.ONE: 1}, {x_addr: 1})

        # Assigning a wire twice
        sim.perform(constants.GateType.LINEAR, [x_addr], [y_addr])
        with self.assertRaises(ValueError):
            sim.perform(constants.GateType.LINEAR, [x_addr], [y_addr])

        # Assigning a circuit with an unassigned wire
        with self.assertRaises(ValueError):
            sim.assign({'x': 1})
        sim.perform(constants.GateType.LINEAR, [y_addr], [z_addr])

        # Missing input values
        with self.assertRaises(ValueError):
            sim.assign({})

        # Reading before assignment
        with self.assertRaises(ValueError):
            sim.read(z_addr)

        sim.assign({'x': 5})
        self.assertEqual(sim.read(z_addr)[0], 5)

    def test_log(self):
        """
        Tests the gadget scopes and the log.
        """

        sim = simulator.CircuitSimulator(1)
        x_addr = sim.input('x')
        z_addr = sim.malloc()

        with sim.gadget('outer'):
            with sim.gadget('inner'):
                self.assertEqual(sim.path(), 'outer/inner')
                sim.perform(constants.GateType.LINEAR, [x_addr], [z_addr], coeffs=[-1], const=1)
        self.assertEqual(sim.path(), 'circuit')

        log = sim.getLog()
        self.assertEqual(len(log), 3)
        self.assertIn('INPUT(x)', log[0])
        self.assertIn('LINEAR(-1*w1 + 1)', log[1])
        self.assertIn('[outer/inner]', log[2])
        self.assertEqual(sim.constraints[0][3], 'outer/inner')


if __name__ == '__main__':
    unittest.main()
