from functools import cache
from hashlib import sha256

from keum import grumpkin
import poseidon


# !Important! The crypto primitives here must be in agreement with the proving system.
# The circuit field is the BN254 scalar field, grumpkin is the curve defined over it.

Field = grumpkin.Fq


class Grumpkin(grumpkin.AffineWeierstrass):
    """
    grumpkin: y^2 = x^3 - 17 over the circuit field, of prime order Fr.ORDER
    (the BN254 base field modulus).

    keum.grumpkin ships the BN254 equation y^2 = x^3 + 3 over this field
    instead, whose group order is not Fr.ORDER, so the curve constants are
    redefined here. Generator from aztec's barretenberg: G = (1, sqrt(-16)).
    """

    B = Field(Field.ORDER - 17)
    GENERATOR_X = Field(1)
    GENERATOR_Y = Field(17631683881184975370165255887551781615748388533673675138860)


Point = Grumpkin

# Larger than Field.ORDER, scalars therefore do not fit in a single Field.
CURVE_ORDER = Point.Fr.ORDER


def field(x) -> Field:
    if isinstance(x, Field):
        return x
    return Field(x % Field.ORDER)


def fake_algebraic_hash(data) -> Field:
    """
    HACK: we'll fake the algebraic hash using sha256(data) % Field.ORDER
    """
    assert all(isinstance(d, Field) for d in data), f"{data}\n{[type(d) for d in data]}"
    data = b"".join(d.v.to_bytes(256 // 8, byteorder="big") for d in data)

    return Field(int(sha256(data).hexdigest(), 16) % Field.ORDER)


@cache
def build_poseidon():
    h = poseidon.Poseidon(
        p=Field.ORDER,
        security_level=128,
        alpha=5,
        input_rate=3,
        t=9,
    )

    # Absorbs the input in chunks, chaining the previous digest into the next call.
    def inner(data):
        assert all(isinstance(d, Field) for d in data)
        digest = 0
        for i in range(0, len(data), h.input_rate - 1):
            chunk = [d.v for d in data[i : i + h.input_rate - 1]]
            digest = int(h.run_hash([digest, *chunk]))
        return Field(digest % Field.ORDER)

    return inner


HASH = fake_algebraic_hash

HASHES = {
    "sha256": lambda: fake_algebraic_hash,
    "poseidon": build_poseidon,
}


def hash_function(name: str):
    try:
        return HASHES[name]()
    except KeyError:
        raise ValueError(f"unknown hash function: {name}")


def prf(domain, *elements, hash_fn=HASH) -> Field:
    return hash_fn([*_str_to_vec(domain), *elements])


def scalar_mul(p: Point, k: int) -> Point:
    """
    Multiplies `p` by an integer scalar, reduced mod CURVE_ORDER.

    Double-and-add over the curve's own addition. Point.mul is not used: it
    halves the scalar with float division, which is only exact below 2**53.
    """
    acc = Point.zero()
    for bit in bin(k % CURVE_ORDER)[2:]:
        acc = acc.double()
        if bit == "1":
            acc = acc + p
    return acc


def _str_to_vec(s):
    return [Field(ord(c)) for c in s]
