"""
Schnorr signatures over grumpkin.

The signature is (R, s) with
    e = H(R.x, R.y, pk.x, pk.y, m)
    s = k + e * sk  (mod CURVE_ORDER)
and verifies iff s * G == R + e * pk.

Every coordinate lives in the circuit field, which is what lets the signature
gadget check the same equation inside the transaction circuit.
"""

from dataclasses import dataclass

from .crypto import CURVE_ORDER, HASH, Field, Point, field, prf, scalar_mul

# s is carried in the circuit as two limbs of this many bits
LIMB_BITS = 128


@dataclass(frozen=True)
class Signature:
    r: Point
    s: int

    def limbs(self) -> tuple[Field, Field]:
        return (
            Field(self.s & (2**LIMB_BITS - 1)),
            Field(self.s >> LIMB_BITS),
        )


@dataclass(frozen=True)
class KeyPair:
    sk: int
    pk: Point

    @staticmethod
    def generate() -> "KeyPair":
        sk = Field.random().v
        while sk == 0:
            sk = Field.random().v
        return KeyPair.from_secret(sk)

    @staticmethod
    def from_secret(sk: int) -> "KeyPair":
        assert 0 < sk < CURVE_ORDER
        return KeyPair(sk=sk, pk=scalar_mul(Point.generator(), sk))

    def sign(self, message: Field, hash_fn=HASH) -> Signature:
        return sign(self.sk, message, hash_fn=hash_fn, pk=self.pk)


def challenge(r: Point, pk: Point, message: Field, hash_fn=HASH) -> Field:
    return hash_fn([r.x, r.y, pk.x, pk.y, message])


def sign(sk: int, message: Field, hash_fn=HASH, pk: Point | None = None) -> Signature:
    if pk is None:
        pk = scalar_mul(Point.generator(), sk)
    # deterministic nonce, a fresh message never reuses k
    k = prf("SCHNORR_NONCE", field(sk), message, hash_fn=hash_fn).v
    r = scalar_mul(Point.generator(), k)
    e = challenge(r, pk, message, hash_fn=hash_fn)
    return Signature(r=r, s=(k + e.v * sk) % CURVE_ORDER)


def verify(pk: Point, message: Field, signature: Signature, hash_fn=HASH) -> bool:
    e = challenge(signature.r, pk, message, hash_fn=hash_fn)
    lhs = scalar_mul(Point.generator(), signature.s)
    rhs = signature.r + scalar_mul(pk, e.v)
    return lhs == rhs


def is_valid_key(pk) -> bool:
    """Structural check only: an on-curve, non-identity grumpkin point"""
    return isinstance(pk, Point) and not pk.is_zero() and Point.is_on_curve(pk.x, pk.y)


def is_well_formed(signature) -> bool:
    """Structural check only, says nothing about whether the signature verifies"""
    return (
        isinstance(signature, Signature)
        and is_valid_key(signature.r)
        and isinstance(signature.s, int)
        and 0 <= signature.s < CURVE_ORDER
    )


def verify_coordinates(r_x, r_y, s_lo, s_hi, pk_x, pk_y, message, hash_fn=HASH) -> bool:
    """
    `verify` over the flattened form the signature gadget carries in the circuit.
    """
    if s_lo.v >= 2**LIMB_BITS or s_hi.v >= 2**LIMB_BITS:
        return False
    s = (s_hi.v << LIMB_BITS) | s_lo.v
    if s >= CURVE_ORDER:
        return False
    if not (Point.is_on_curve(r_x, r_y) and Point.is_on_curve(pk_x, pk_y)):
        return False
    signature = Signature(r=Point(r_x, r_y), s=s)
    return verify(Point(pk_x, pk_y), message, signature, hash_fn=hash_fn)
