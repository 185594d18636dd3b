"""
This module provides the constraint accumulator circuits are defined against.

A circuit is a function of an `API`. Every call on the API appends a gate
(a wire computed from other wires) or an assertion (a predicate over wires)
to the accumulator. `API.compile()` freezes the result into a
`ConstraintSystem`: the fixed shape of the circuit, independent of any
witness.

The shape is then evaluated against a concrete assignment of the input
wires:
1. `ConstraintSystem.solve` computes every wire, in gate order
2. `ConstraintSystem.is_satisfied` checks every assertion

There is no branching on witness values anywhere: a gate always computes its
wire and an assertion always gets checked, an invalid witness only ever shows
up as an unsatisfied assertion.
"""

import logging
from dataclasses import dataclass
from hashlib import sha256

from .crypto import Field, field, hash_function
from .schnorr import verify_coordinates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variable:
    wire: int


@dataclass(frozen=True)
class Input:
    name: str
    wire: int
    public: bool


@dataclass(frozen=True)
class Gate:
    # one of "const", "add", "sub", "mul", "bit", "hash"
    op: str
    out: int
    args: tuple[int, ...]
    # the constant for "const", the bit position for "bit"
    param: int | None = None


@dataclass(frozen=True)
class Assertion:
    # one of "equal", "schnorr"
    kind: str
    args: tuple[int, ...]
    label: str


@dataclass(frozen=True)
class ConstraintSystem:
    hash: str
    inputs: tuple[Input, ...]
    gates: tuple[Gate, ...]
    assertions: tuple[Assertion, ...]
    num_wires: int

    @property
    def public(self) -> tuple[Input, ...]:
        return tuple(i for i in self.inputs if i.public)

    @property
    def secret(self) -> tuple[Input, ...]:
        return tuple(i for i in self.inputs if not i.public)

    def digest(self) -> bytes:
        """Identifies the circuit shape, two compilations of one circuit share it"""
        return sha256(repr(self).encode()).digest()

    def solve(self, assignment: dict) -> list[Field]:
        names = {i.name for i in self.inputs}
        if missing := names - assignment.keys():
            raise WitnessShapeError(f"missing assignment for {sorted(missing)}")
        if unknown := assignment.keys() - names:
            raise WitnessShapeError(f"unknown inputs {sorted(unknown)}")

        hash_fn = hash_function(self.hash)
        wires: list[Field | None] = [None] * self.num_wires
        for i in self.inputs:
            wires[i.wire] = field(assignment[i.name])

        for g in self.gates:
            args = [wires[a] for a in g.args]
            match g.op:
                case "const":
                    wires[g.out] = field(g.param)
                case "add":
                    wires[g.out] = args[0] + args[1]
                case "sub":
                    wires[g.out] = args[0] - args[1]
                case "mul":
                    wires[g.out] = args[0] * args[1]
                case "bit":
                    wires[g.out] = Field((args[0].v >> g.param) & 1)
                case "hash":
                    wires[g.out] = hash_fn(args)
                case _:
                    raise RuntimeError(f"Unknown gate: {g.op}")
        return wires

    def unsatisfied(self, assignment: dict) -> list[str]:
        wires = self.solve(assignment)
        hash_fn = hash_function(self.hash)
        return [
            a.label
            for a in self.assertions
            if not _check(a, [wires[w] for w in a.args], hash_fn)
        ]

    def is_satisfied(self, assignment: dict) -> bool:
        failed = self.unsatisfied(assignment)
        for label in failed:
            logger.debug("unsatisfied constraint: %s", label)
        return not failed

    def public_inputs(self, assignment: dict) -> list[Field]:
        return [field(assignment[i.name]) for i in self.public]


def _check(assertion: Assertion, args: list[Field], hash_fn) -> bool:
    match assertion.kind:
        case "equal":
            return args[0] == args[1]
        case "schnorr":
            return verify_coordinates(*args, hash_fn=hash_fn)
        case _:
            raise RuntimeError(f"Unknown assertion: {assertion.kind}")


class API:
    """
    The accumulator handed to a circuit's `define`.

    Operands may be `Variable`s or plain ints / Field elements, the latter
    become constant wires.
    """

    def __init__(self, hash: str = "sha256"):
        # resolving the hash now surfaces an unknown name at definition time
        hash_function(hash)
        self.hash_name = hash
        self._inputs: list[Input] = []
        self._gates: list[Gate] = []
        self._assertions: list[Assertion] = []
        self._num_wires = 0

    def _wire(self) -> int:
        self._num_wires += 1
        return self._num_wires - 1

    def _gate(self, op, *args, param=None) -> Variable:
        out = self._wire()
        self._gates.append(Gate(op=op, out=out, args=args, param=param))
        return Variable(out)

    def _input(self, name: str, public: bool) -> Variable:
        if any(i.name == name for i in self._inputs):
            raise StructuralError(f"input {name} declared twice")
        wire = self._wire()
        self._inputs.append(Input(name=name, wire=wire, public=public))
        return Variable(wire)

    def _var(self, x) -> Variable:
        if isinstance(x, Variable):
            return x
        if isinstance(x, Field):
            x = x.v
        assert isinstance(x, int), f"cannot use {type(x)} as a circuit value"
        return self.constant(x)

    def public(self, name: str) -> Variable:
        return self._input(name, public=True)

    def secret(self, name: str) -> Variable:
        return self._input(name, public=False)

    def constant(self, value: int) -> Variable:
        return self._gate("const", param=value % Field.ORDER)

    def add(self, a, b, *more) -> Variable:
        acc = self._gate("add", self._var(a).wire, self._var(b).wire)
        for m in more:
            acc = self._gate("add", acc.wire, self._var(m).wire)
        return acc

    def sub(self, a, b) -> Variable:
        return self._gate("sub", self._var(a).wire, self._var(b).wire)

    def mul(self, a, b, *more) -> Variable:
        acc = self._gate("mul", self._var(a).wire, self._var(b).wire)
        for m in more:
            acc = self._gate("mul", acc.wire, self._var(m).wire)
        return acc

    def select(self, bit, if_zero, if_one) -> Variable:
        """if_zero + bit * (if_one - if_zero), `bit` must be boolean"""
        return self.add(if_zero, self.mul(bit, self.sub(if_one, if_zero)))

    def to_binary(self, x, n: int, label: str = "") -> list[Variable]:
        """
        Little endian decomposition of `x` into `n` bits.

        The bits are constrained to recompose to `x`, which therefore fails
        whenever `x` does not fit in `n` bits.
        """
        x = self._var(x)
        bits = [self._gate("bit", x.wire, param=i) for i in range(n)]
        for b in bits:
            self.assert_is_boolean(b)
        self.assert_is_equal(self.from_binary(bits), x, label=label or f"{n} bit decomposition")
        return bits

    def from_binary(self, bits: list[Variable]) -> Variable:
        acc = self._var(bits[0])
        for i, b in enumerate(bits[1:], start=1):
            acc = self.add(acc, self.mul(b, 2**i))
        return acc

    def hash(self, *values) -> Variable:
        return self._gate("hash", *(self._var(v).wire for v in values))

    def assert_is_equal(self, a, b, label: str = "equal"):
        self._assertions.append(
            Assertion(kind="equal", args=(self._var(a).wire, self._var(b).wire), label=label)
        )

    def assert_is_boolean(self, b):
        self.assert_is_equal(self.mul(b, b), b, label="boolean")

    def assert_in_range(self, x, bits: int, label: str = ""):
        self.to_binary(x, bits, label=label)

    def assert_is_less_or_equal(self, a, b, bits: int, label: str = "less or equal"):
        """a <= b, for a and b both below 2**bits"""
        self.assert_in_range(a, bits, label=label)
        self.assert_in_range(self.sub(b, a), bits, label=label)

    def assert_schnorr(self, r_x, r_y, s_lo, s_hi, pk_x, pk_y, message, label="schnorr"):
        args = (r_x, r_y, s_lo, s_hi, pk_x, pk_y, message)
        self._assertions.append(
            Assertion(
                kind="schnorr",
                args=tuple(self._var(a).wire for a in args),
                label=label,
            )
        )

    def compile(self) -> ConstraintSystem:
        cs = ConstraintSystem(
            hash=self.hash_name,
            inputs=tuple(self._inputs),
            gates=tuple(self._gates),
            assertions=tuple(self._assertions),
            num_wires=self._num_wires,
        )
        logger.debug(
            "compiled %d inputs, %d gates, %d assertions",
            len(cs.inputs),
            len(cs.gates),
            len(cs.assertions),
        )
        return cs


def compile_circuit(circuit, hash: str = "sha256") -> ConstraintSystem:
    api = API(hash=hash)
    circuit.define(api)
    return api.compile()


class StructuralError(Exception):
    """
    The circuit cannot be built: incompatible parameters, malformed keys or
    signatures, witness of the wrong shape.
    """


class WitnessShapeError(StructuralError):
    pass
