from dataclasses import replace
from functools import cache

from .account import Account
from .circuit import TransactionCircuit, TransactionWitness
from .config import CircuitConfig
from .crypto import hash_function
from .merkle import MerkleTree
from .schnorr import KeyPair
from .state import LedgerState
from .transfer import signed_transfer


@cache
def keypair(sk: int) -> KeyPair:
    return KeyPair.from_secret(sk)


def mk_config(**kwarg) -> CircuitConfig:
    # two levels are enough for sender and receiver, and keep the tests fast
    return CircuitConfig.rollup_v0_0_1().replace(tree_depth=2, **kwarg)


class Scenario:
    """
    The reference transfer: the sender (nonce 1, balance 100) pays 30 to the
    receiver (nonce 0, balance 50).
    """

    def __init__(self, config: CircuitConfig | None = None):
        self.config = config or mk_config()
        self.hash_fn = hash_function(self.config.hash)
        self.sender = keypair(1234567)
        self.receiver = keypair(7654321)

        self.state = LedgerState(config=self.config)
        self.state.add(Account(nonce=1, balance=100, index=0, pubkey=self.sender.pk))
        self.state.add(Account(nonce=0, balance=50, index=1, pubkey=self.receiver.pk))

        self.circuit = TransactionCircuit(self.config)
        self.cs = self.circuit.compile()

    def transfer(self, amount=30, nonce=1, signer=None, receiver=None):
        return signed_transfer(
            signer or self.sender,
            receiver or self.receiver.pk,
            amount=amount,
            nonce=nonce,
            hash_fn=self.hash_fn,
        )

    def witness(self, **kwarg) -> TransactionWitness:
        _, witness = self.state.apply(self.transfer(**kwarg))
        return witness

    def is_satisfied(self, witness: TransactionWitness) -> bool:
        return self.cs.is_satisfied(self.circuit.assign(witness))

    def unsatisfied(self, witness: TransactionWitness) -> list[str]:
        return self.cs.unsatisfied(self.circuit.assign(witness))


def with_account(witness: TransactionWitness, name: str, **kwarg) -> TransactionWitness:
    return replace(witness, **{name: replace(getattr(witness, name), **kwarg)})


def relink(config: CircuitConfig, witness: TransactionWitness) -> TransactionWitness:
    """
    Recomputes the merkle proofs and roots of `witness` from its accounts, so a
    tampered account only trips the constraints about the account itself.
    """
    hash_fn = hash_function(config.hash)
    before = MerkleTree(depth=config.tree_depth, hash_fn=hash_fn)
    after = MerkleTree(depth=config.tree_depth, hash_fn=hash_fn)
    for tree, accounts in [
        (before, [witness.sender_before, witness.receiver_before]),
        (after, [witness.sender_after, witness.receiver_after]),
    ]:
        for account in accounts:
            tree.set(account.index, account.leaf(hash_fn))

    return replace(
        witness,
        proof_sender_before=before.proof(witness.index_sender),
        proof_receiver_before=before.proof(witness.index_receiver),
        proof_sender_after=after.proof(witness.index_sender),
        proof_receiver_after=after.proof(witness.index_receiver),
        root_before=before.root(),
        root_after=after.root(),
    )
