from unittest import TestCase

from hypothesis import given, settings, strategies as st

from .constraint_system import API, StructuralError, WitnessShapeError
from .crypto import Field, fake_algebraic_hash


def less_or_equal_circuit(bits=8):
    api = API()
    a = api.secret("a")
    b = api.secret("b")
    api.assert_is_less_or_equal(a, b, bits)
    return api.compile()


class TestConstraintSystem(TestCase):
    def test_arithmetic(self):
        api = API()
        a = api.secret("a")
        b = api.public("b")
        api.assert_is_equal(api.sub(api.mul(a, a, 2), 1), api.add(b, 3, 4))
        cs = api.compile()

        # 2 * 5**2 - 1 == 42 + 3 + 4
        assert cs.is_satisfied({"a": 5, "b": 42})
        assert not cs.is_satisfied({"a": 5, "b": 43})
        assert cs.public_inputs({"a": 5, "b": 42}) == [Field(42)]

    def test_negative_values_wrap(self):
        api = API()
        a = api.secret("a")
        api.assert_is_equal(api.add(a, 1), 0)
        cs = api.compile()
        assert cs.is_satisfied({"a": -1})
        assert cs.is_satisfied({"a": Field(Field.ORDER - 1)})

    @given(
        a=st.integers(min_value=0, max_value=255),
        b=st.integers(min_value=0, max_value=255),
    )
    @settings(max_examples=20)
    def test_less_or_equal(self, a, b):
        cs = less_or_equal_circuit()
        assert cs.is_satisfied({"a": a, "b": b}) == (a <= b)

    def test_less_or_equal_rejects_wrapped_operands(self):
        cs = less_or_equal_circuit()
        # -1 would pass a bare difference check: 5 - (-1) = 6
        assert not cs.is_satisfied({"a": -1, "b": 5})
        assert not cs.is_satisfied({"a": 0, "b": 256})

    def test_select(self):
        api = API()
        bit = api.secret("bit")
        api.assert_is_boolean(bit)
        api.assert_is_equal(api.select(bit, 10, 20), api.public("out"))
        cs = api.compile()

        assert cs.is_satisfied({"bit": 0, "out": 10})
        assert cs.is_satisfied({"bit": 1, "out": 20})
        assert not cs.is_satisfied({"bit": 1, "out": 10})
        assert not cs.is_satisfied({"bit": 2, "out": 30})

    def test_binary(self):
        api = API()
        x = api.secret("x")
        bits = api.to_binary(x, 4)
        api.assert_is_equal(bits[1], 1)
        cs = api.compile()

        assert cs.is_satisfied({"x": 0b1010})
        assert not cs.is_satisfied({"x": 0b1000})
        # does not fit in 4 bits
        assert not cs.is_satisfied({"x": 0b10010})

    def test_hash(self):
        api = API()
        h = api.hash(api.secret("a"), api.secret("b"))
        api.assert_is_equal(h, api.public("h"))
        cs = api.compile()

        h = fake_algebraic_hash([Field(1), Field(2)])
        assert cs.is_satisfied({"a": 1, "b": 2, "h": h})
        assert not cs.is_satisfied({"a": 2, "b": 1, "h": h})

    def test_unsatisfied_labels(self):
        api = API()
        a = api.secret("a")
        api.assert_is_equal(a, 1, label="one")
        api.assert_is_equal(a, 2, label="two")
        cs = api.compile()

        assert cs.unsatisfied({"a": 1}) == ["two"]
        assert cs.unsatisfied({"a": 3}) == ["one", "two"]

    def test_witness_shape(self):
        api = API()
        api.secret("a")
        cs = api.compile()

        with self.assertRaises(WitnessShapeError):
            cs.is_satisfied({})
        with self.assertRaises(WitnessShapeError):
            cs.is_satisfied({"a": 1, "b": 2})

    def test_duplicate_input(self):
        api = API()
        api.secret("a")
        with self.assertRaises(StructuralError):
            api.public("a")

    def test_unknown_hash(self):
        with self.assertRaises(ValueError):
            API(hash="md5")

    def test_shape_is_deterministic(self):
        cs1 = less_or_equal_circuit()
        cs2 = less_or_equal_circuit()
        assert cs1 == cs2
        assert cs1.digest() == cs2.digest()
        assert cs1.digest() != less_or_equal_circuit(bits=9).digest()
