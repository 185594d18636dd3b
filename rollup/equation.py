from dataclasses import dataclass

from .constraint_system import API


@dataclass
class EquationWitness:
    x: int
    y: int


class EquationCircuit:
    """
    The statement "I know an `x` such that x**3 + x + 5 == y".
    - `y` is public
    - `x` is secret
    """

    def define(self, api: API):
        x = api.secret("x")
        y = api.public("y")
        x3 = api.mul(x, x, x)
        api.assert_is_equal(api.add(x3, x, 5), y, label="x**3 + x + 5 == y")

    def assign(self, witness: EquationWitness) -> dict:
        return {"x": witness.x, "y": witness.y}
