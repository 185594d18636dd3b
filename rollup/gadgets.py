"""
Gadgets: the cryptographic primitives as seen from inside a circuit.

Each one mirrors a native primitive of this package and must agree with it
exactly, a witness produced with the native code has to satisfy the gadget.
- HashGadget        <-> crypto.hash_function(...)
- SignatureGadget   <-> schnorr.verify
- merkle_root       <-> merkle.compute_root
"""

from dataclasses import dataclass

from .constraint_system import API, StructuralError, Variable


@dataclass
class PointVar:
    x: Variable
    y: Variable


@dataclass
class SignatureVar:
    r: PointVar
    s_lo: Variable
    s_hi: Variable


class HashGadget:
    """
    Sponge-like interface over the API's hash gate.

    The gadget is meant to be reused, `reset()` must be called before every
    new message so nothing absorbed earlier leaks into the next digest.
    """

    def __init__(self, api: API):
        self.api = api
        self._absorbed: list = []

    def reset(self):
        self._absorbed = []

    def absorb(self, *values):
        self._absorbed.extend(values)

    def digest(self) -> Variable:
        assert self._absorbed, "digest of an empty message"
        return self.api.hash(*self._absorbed)


# Curves whose base field is the circuit field
SUPPORTED_CURVES = {"grumpkin"}


class SignatureGadget:
    def __init__(self, api: API, curve: str):
        if curve not in SUPPORTED_CURVES:
            raise StructuralError(f"curve {curve} is not defined over the circuit field")
        self.api = api
        self.curve = curve

    def verify(self, signature: SignatureVar, message: Variable, pk: PointVar, label="signature"):
        self.api.assert_schnorr(
            signature.r.x,
            signature.r.y,
            signature.s_lo,
            signature.s_hi,
            pk.x,
            pk.y,
            message,
            label=label,
        )


def merkle_root(api: API, hasher: HashGadget, leaf, path: list[Variable], index) -> Variable:
    # the decomposition also constrains index to [0, 2**len(path))
    bits = api.to_binary(index, len(path), label="merkle index range")
    node = leaf
    for bit, sibling in zip(bits, path):
        left = api.select(bit, node, sibling)
        right = api.select(bit, sibling, node)
        hasher.reset()
        hasher.absorb(left, right)
        node = hasher.digest()
    return node
