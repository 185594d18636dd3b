"""
Runs a circuit end to end: compile, setup, prove and verify.

    python -m rollup.demo rollup [--config circuit.yaml]
    python -m rollup.demo equation
"""

import argparse
import logging

from . import backend
from .account import Account
from .circuit import TransactionCircuit
from .config import CircuitConfig
from .constraint_system import compile_circuit
from .crypto import hash_function
from .equation import EquationCircuit, EquationWitness
from .schnorr import KeyPair
from .state import LedgerState
from .transfer import signed_transfer

logger = logging.getLogger(__name__)


def rollup_scenario(config: CircuitConfig) -> bool:
    hash_fn = hash_function(config.hash)
    alice = KeyPair.generate()
    bob = KeyPair.generate()

    state = LedgerState(config=config)
    state.add(Account(nonce=1, balance=100, index=0, pubkey=alice.pk))
    state.add(Account(nonce=0, balance=50, index=1, pubkey=bob.pk))

    transfer = signed_transfer(alice, bob.pk, amount=30, nonce=1, hash_fn=hash_fn)
    _, witness = state.apply(transfer)

    circuit = TransactionCircuit(config)
    return run(circuit.compile(), circuit.assign(witness), witness.public())


def equation_scenario() -> bool:
    circuit = EquationCircuit()
    witness = EquationWitness(x=3, y=35)
    return run(compile_circuit(circuit), circuit.assign(witness), [witness.y])


def run(cs, assignment, public_inputs) -> bool:
    pk, vk = backend.setup(cs)
    try:
        proof = backend.prove(cs, pk, assignment)
    except backend.ProofGenerationError as e:
        print(f"Proof creation error: {e}")
        return False

    if backend.verify(proof, vk, public_inputs):
        print("Verification successful!")
        return True
    print("Verification failed.")
    return False


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("circuit", choices=["rollup", "equation"])
    parser.add_argument("--config", type=str, help="Configuration file path (YAML)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.circuit == "equation":
        ok = equation_scenario()
    else:
        config = (
            CircuitConfig.load(args.config) if args.config else CircuitConfig.rollup_v0_0_1()
        )
        ok = rollup_scenario(config)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
