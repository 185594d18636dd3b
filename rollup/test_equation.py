from unittest import TestCase

from hypothesis import given, settings, strategies as st

from . import backend
from .constraint_system import compile_circuit
from .equation import EquationCircuit, EquationWitness


class TestEquation(TestCase):
    def setUp(self):
        self.circuit = EquationCircuit()
        self.cs = compile_circuit(self.circuit)

    def test_prove_verify(self):
        pk, vk = backend.setup(self.cs)
        w = EquationWitness(x=3, y=35)
        proof = backend.prove(self.cs, pk, self.circuit.assign(w))
        assert backend.verify(proof, vk, [35])
        assert not backend.verify(proof, vk, [36])

    @given(x=st.integers(min_value=0, max_value=2**32))
    @settings(max_examples=20)
    def test_only_the_root_satisfies(self, x):
        y = x**3 + x + 5
        assert self.cs.is_satisfied(self.circuit.assign(EquationWitness(x=x, y=y)))
        assert not self.cs.is_satisfied(self.circuit.assign(EquationWitness(x=x + 1, y=y)))

    def test_y_is_the_only_public_input(self):
        assert [i.name for i in self.cs.public] == ["y"]
        assert [i.name for i in self.cs.secret] == ["x"]
