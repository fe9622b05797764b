from contextlib import contextmanager

import numpy as np
from tqdm import tqdm

from zkfloat.util import constants


class UnsatisfiedConstraintError(AssertionError):
    """
    Raised by the witness pass when a constraint does not hold on some of the rows
    """

    def __init__(self, gadget: str, msg: str, index: int, rows: np.ndarray, inputs: dict):
        """
        :param gadget: the path of the gadget that declared the constraint (e.g., floatAdd/checkWellFormedness)
        :param msg: the message attached to the constraint
        :param index: the index of the constraint in the circuit
        :param rows: the rows (instances) on which the constraint fails
        :param inputs: the circuit inputs of the first failing row
        """
        self.gadget = gadget
        self.msg = msg
        self.index = index
        self.rows = rows
        self.inputs = inputs
        super().__init__(f'{gadget}: {msg} (C{index} fails on {len(rows)} row(s); '
                         f'first failing row {rows[0]} has inputs {inputs})')


class CircuitSimulator:
    """
    Builds a rank-1 constraint system (A * B = C over linear combinations of wires) over a prime field, and
    simulates the witness generation for a batch of independent circuit instances, one instance per row.
    The circuit is built once (malloc, perform, constrain) and may then be assigned any number of times.
    """

    def __init__(self, num_rows: int, modulus: int = constants.FIELD_MODULUS):
        """
        Initializes an empty circuit that only contains the constant-one wire
        :param num_rows: the number of independent instances that are assigned together
        :param modulus: the prime modulus of the field
        """
        self.num_rows = num_rows
        self.modulus = modulus
        self.num_wires = 1
        self.defined = [True]
        self.inputs = {}
        self.gates = []
        self.constraints = []
        self.memory = None
        self.scope = []
        self.log = []

    def malloc(self, num_wires: int = None):
        """
        Declares new wires. A declared wire must later be defined by exactly one gate.
        :param num_wires: the number of wires to declare, or None for a single wire
        :return: np array containing the allocated addresses, or int if num_wires is None
        """

        if num_wires is None:
            self.num_wires += 1
            self.defined.append(False)
            return self.num_wires - 1

        assert(num_wires >= 0)
        start = self.num_wires
        self.num_wires += num_wires
        self.defined.extend([False] * num_wires)
        return np.arange(start, start + num_wires)

    def input(self, name: str):
        """
        Declares a named circuit input, whose values are supplied to assign()
        :param name: the name of the input
        :return: the address of the input wire
        """

        if name in self.inputs:
            raise ValueError(f'input {name} is declared twice')

        x_addr = self.malloc()
        self.perform(constants.GateType.INPUT, [], [x_addr], name=name)
        self.inputs[name] = x_addr
        return x_addr

    def perform(self, gateType: constants.GateType, inputs, outputs, coeffs=None, const=0, hint=None, name=None,
            msg=None):
        """
        Adds the given gate to the circuit. LINEAR and MUL gates also add the constraint that defines their output,
            while HINT gates compute their outputs out-of-band and must be constrained by the caller.
        :param gateType: the type of gate to perform
        :param inputs: the list (python list or numpy array) of input addresses
        :param outputs: the list (python list or numpy array) of output addresses
        :param coeffs: LINEAR only, the coefficients of the inputs (all ones if None)
        :param const: LINEAR only, the constant term
        :param hint: HINT only, a function mapping the input rows to a list of output rows
        :param name: INPUT only, the name of the input
        :param msg: the message reported if the defining constraint fails
        """

        inputs = [int(x) for x in inputs]
        outputs = [int(z) for z in outputs]

        # Check no intersection in inputs and outputs
        assert(len(np.intersect1d(inputs, outputs)) == 0)
        # Check outputs are unique
        assert(len(np.unique(outputs)) == len(outputs))

        for x in inputs:
            if not self.defined[x]:
                raise ValueError(f'{self.path()}: wire w{x} is read before it is assigned')
        for z in outputs:
            if self.defined[z]:
                raise ValueError(f'{self.path()}: wire w{z} is assigned twice')
            self.defined[z] = True

        if gateType == constants.GateType.INPUT:
            assert(len(inputs) == 0 and len(outputs) == 1)
            self.gates.append((gateType, inputs, outputs, name))
            self.emit(f'w{outputs[0]:<6}= INPUT({name})')

        elif gateType == constants.GateType.LINEAR:
            assert(len(outputs) == 1)
            if coeffs is None:
                coeffs = [1] * len(inputs)
            assert(len(coeffs) == len(inputs))
            lc = self.__reduce(list(zip(inputs, coeffs)) + [(constants.ONE, const)])
            self.gates.append((gateType, inputs, outputs, lc))
            self.emit(f'w{outputs[0]:<6}= LINEAR({self.__format(lc)})')
            self.constrain(lc, {constants.ONE: 1}, {outputs[0]: 1}, msg or 'linear gate')

        elif gateType == constants.GateType.MUL:
            assert(len(inputs) == 2 and len(outputs) == 1)
            self.gates.append((gateType, inputs, outputs, None))
            self.emit(f'w{outputs[0]:<6}= MUL(w{inputs[0]}, w{inputs[1]})')
            self.constrain({inputs[0]: 1}, {inputs[1]: 1}, {outputs[0]: 1}, msg or 'multiplication gate')

        elif gateType == constants.GateType.HINT:
            assert(hint is not None)
            self.gates.append((gateType, inputs, outputs, hint))
            self.emit(f'{", ".join(f"w{z}" for z in outputs)} <-- HINT({", ".join(f"w{x}" for x in inputs)})')

    def constrain(self, a: dict, b: dict, c: dict, msg: str = 'constraint failed'):
        """
        Adds the constraint A * B = C to the circuit
        :param a: linear combination A as {address: coefficient}; the constant term is the coefficient of ONE
        :param b: linear combination B
        :param c: linear combination C
        :param msg: the message reported if the constraint fails
        """

        a, b, c = self.__reduce(a.items()), self.__reduce(b.items()), self.__reduce(c.items())

        for x in list(a) + list(b) + list(c):
            if not self.defined[x]:
                raise ValueError(f'{self.path()}: wire w{x} is constrained before it is assigned')

        self.constraints.append((a, b, c, self.path(), msg))
        self.emit(f'C{len(self.constraints) - 1:<6}({self.__format(a)}) * ({self.__format(b)}) = ({self.__format(c)})'
                  f'\t[{self.path()}]')

    @contextmanager
    def gadget(self, name: str):
        """
        Scopes the gates and constraints declared within the block under the given gadget name
        :param name: the name of the gadget
        """
        self.scope.append(name)
        try:
            yield
        finally:
            self.scope.pop()

    def path(self):
        """
        Returns the path of the gadget currently being declared
        """
        return '/'.join(self.scope) if self.scope else 'circuit'

    def assign(self, inputs: dict, progress: bool = False):
        """
        Performs the witness pass: writes the inputs, evaluates every gate in declaration order, and then verifies
            every constraint on every row
        :param inputs: dict from input name to its values (a scalar, or an array with num_rows entries)
        :param progress: whether to display a progress bar over the gates
        :return: the simulator
        """

        undefined = [x for x in range(self.num_wires) if not self.defined[x]]
        if undefined:
            raise ValueError(f'wires {undefined[:8]} are declared but never assigned')
        missing = set(self.inputs) - set(inputs)
        if missing:
            raise ValueError(f'missing values for inputs {sorted(missing)}')

        self.memory = np.zeros((self.num_wires, self.num_rows), dtype=object)
        self.memory[constants.ONE] = 1

        for gateType, gate_inputs, gate_outputs, payload in tqdm(self.gates, desc='witness', disable=not progress):

            if gateType == constants.GateType.INPUT:
                self.memory[gate_outputs[0]] = self.__row(inputs[payload])

            elif gateType == constants.GateType.LINEAR:
                self.memory[gate_outputs[0]] = self.__evaluate(payload)

            elif gateType == constants.GateType.MUL:
                self.memory[gate_outputs[0]] = (self.memory[gate_inputs[0]] * self.memory[gate_inputs[1]]) \
                                               % self.modulus

            elif gateType == constants.GateType.HINT:
                values = payload(*[self.memory[x] for x in gate_inputs])
                assert(len(values) == len(gate_outputs))
                for z, value in zip(gate_outputs, values):
                    self.memory[z] = self.__row(value)

        return self.check()

    def check(self):
        """
        Verifies every constraint on every row of the current assignment
        :return: the simulator
        """

        if self.memory is None:
            raise ValueError('the circuit has not been assigned yet')

        for index, constraint in enumerate(self.constraints):
            self.__check(index, constraint)

        return self

    def read(self, x_addr):
        """
        Reads the assigned values of the given wire(s)
        :param x_addr: the address (int) or addresses (numpy array) to read
        :return: the values (numpy object array of dimension num_rows, or len(x_addr) x num_rows)
        """
        if self.memory is None:
            raise ValueError('the circuit has not been assigned yet')
        return self.memory[x_addr]

    def emit(self, message):
        """
        Emits a message to the log buffer of the simulator
        :param message: the message to emit
        """
        self.log.append(message)

    def getLog(self):
        """
        Returns the current log of the simulator
        :return: the log as a list of strings
        """
        return self.log

    def __check(self, index: int, constraint):
        """
        Verifies a single constraint on all rows
        """

        a, b, c, path, msg = constraint
        residual = (self.__evaluate(a) * self.__evaluate(b) - self.__evaluate(c)) % self.modulus
        rows = np.flatnonzero(residual != 0)
        if len(rows) > 0:
            first = {name: int(self.memory[x_addr][rows[0]]) for name, x_addr in self.inputs.items()}
            raise UnsatisfiedConstraintError(path, msg, index, rows, first)

    def __evaluate(self, lc: dict):
        """
        Evaluates a linear combination on all rows
        """

        total = np.zeros(self.num_rows, dtype=object)
        for x, coeff in lc.items():
            total = total + coeff * self.memory[x]
        return total % self.modulus

    def __row(self, values):
        """
        Converts a scalar or an array of values into a row of canonical field elements
        """

        values = np.asarray(values, dtype=object)
        if values.size == self.num_rows:
            values = values.reshape(self.num_rows)
        return np.broadcast_to(values, (self.num_rows,)) % self.modulus

    def __reduce(self, terms):
        """
        Merges (address, coefficient) pairs into a linear combination with canonical, non-zero coefficients
        """

        lc = {}
        for x, coeff in terms:
            lc[int(x)] = (lc.get(int(x), 0) + int(coeff)) % self.modulus
        return {x: coeff for x, coeff in lc.items() if coeff != 0}

    def __format(self, lc: dict):
        """
        Formats a linear combination for the log, showing large coefficients as negatives
        """

        terms = []
        for x, coeff in lc.items():
            if coeff > self.modulus // 2:
                coeff -= self.modulus
            if x == constants.ONE:
                terms.append(str(coeff))
            else:
                terms.append(f'w{x}' if coeff == 1 else f'{coeff}*w{x}')
        return ' + '.join(terms) if terms else '0'
