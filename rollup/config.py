from dataclasses import asdict, dataclass, replace

import dacite
import yaml


@dataclass(frozen=True)
class CircuitConfig:
    """
    Parameters fixing the shape of the transaction circuit.

    Every one of these is decided at circuit-definition time, a witness
    can never change them.
    """

    # Depth of the account merkle tree, i.e. the length of every merkle path.
    tree_depth: int
    # Width of the range checks on amounts and balances.
    balance_bits: int
    # Algebraic hash used for transfer messages, account leaves and tree nodes.
    hash: str
    # Curve the transfer signatures live on.
    curve: str

    @staticmethod
    def rollup_v0_0_1() -> "CircuitConfig":
        return CircuitConfig(
            tree_depth=16,
            balance_bits=64,
            hash="sha256",
            curve="grumpkin",
        )

    @classmethod
    def load(cls, yaml_path: str) -> "CircuitConfig":
        """
        Missing keys fall back to the `rollup_v0_0_1` preset, unknown keys are rejected.
        """
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
        return dacite.from_dict(
            data_class=cls,
            data={**asdict(cls.rollup_v0_0_1()), **data},
            config=dacite.Config(strict=True),
        )

    def replace(self, **kwarg) -> "CircuitConfig":
        return replace(self, **kwarg)
