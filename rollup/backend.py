"""
Setup / prove / verify over a compiled ConstraintSystem.

HACK: this is a mock of a Groth16 style backend. The keys share a secret and
the "proof" is a keyed hash binding the circuit shape to the public inputs,
produced only when the prover holds a satisfying witness. It has the
interface and the failure behaviour of the real thing:
- a witness that does not satisfy the circuit yields no proof at all,
  without saying which constraint failed
- a proof only verifies against the circuit it was produced for and the
  public inputs it was produced with
It is neither zero-knowledge nor sound against a prover holding the proving key,
swap in a real SNARK before trusting it with anything.
"""

import logging
import secrets
from dataclasses import dataclass
from hashlib import blake2b
from hmac import compare_digest

from .constraint_system import ConstraintSystem
from .crypto import Field, field

logger = logging.getLogger(__name__)

_DST = b"ROLLUP_MOCK_GROTH16"


@dataclass(frozen=True)
class ProvingKey:
    circuit: bytes
    secret: bytes


@dataclass(frozen=True)
class VerificationKey:
    circuit: bytes
    secret: bytes
    num_public: int


@dataclass(frozen=True)
class Proof:
    tag: bytes


def setup(cs: ConstraintSystem) -> tuple[ProvingKey, VerificationKey]:
    circuit = cs.digest()
    secret = secrets.token_bytes(32)
    logger.info("setup for circuit %s", circuit.hex()[:16])
    return (
        ProvingKey(circuit=circuit, secret=secret),
        VerificationKey(circuit=circuit, secret=secret, num_public=len(cs.public)),
    )


def prove(cs: ConstraintSystem, pk: ProvingKey, assignment: dict) -> Proof:
    if pk.circuit != cs.digest():
        raise ProofGenerationError()
    if not cs.is_satisfied(assignment):
        logger.warning("witness does not satisfy the circuit, no proof produced")
        raise ProofGenerationError()
    proof = Proof(tag=_tag(pk.secret, pk.circuit, cs.public_inputs(assignment)))
    logger.info("proof produced for circuit %s", pk.circuit.hex()[:16])
    return proof


def verify(proof: Proof, vk: VerificationKey, public_inputs: list[Field]) -> bool:
    if len(public_inputs) != vk.num_public:
        logger.warning(
            "expected %d public inputs, got %d", vk.num_public, len(public_inputs)
        )
        return False
    expected = _tag(vk.secret, vk.circuit, public_inputs)
    valid = compare_digest(proof.tag, expected)
    if not valid:
        logger.warning("proof rejected")
    return valid


def _tag(secret: bytes, circuit: bytes, public_inputs: list[Field]) -> bytes:
    h = blake2b(key=secret, digest_size=32)
    h.update(_DST)
    h.update(circuit)
    for x in public_inputs:
        h.update(field(x).v.to_bytes(32, byteorder="big"))
    return h.digest()


class ProofGenerationError(Exception):
    def __str__(self):
        return "Unable to produce a proof"
