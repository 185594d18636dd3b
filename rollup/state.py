"""
A minimal ledger state, standing in for the sequencer that feeds the circuit.

It holds the accounts, commits to them with a merkle tree and, given a
transfer, produces the next state together with the witness of the
transition.

Only what the account model cannot represent is refused here: unknown keys,
a self transfer, a negative amount or an overdraft. Everything else,
signature and nonce included, is left for the circuit to judge, a forged
transfer still yields a witness.
"""

import logging
from dataclasses import dataclass, field, replace

from .account import Account
from .circuit import TransactionWitness
from .config import CircuitConfig
from .crypto import Field, Point, hash_function
from .merkle import MerkleTree
from .transfer import Transfer

logger = logging.getLogger(__name__)


@dataclass
class LedgerState:
    config: CircuitConfig
    accounts: dict[int, Account] = field(default_factory=dict)

    def add(self, account: Account):
        assert 0 <= account.index < 2**self.config.tree_depth
        assert account.index not in self.accounts, f"slot {account.index} is taken"
        self.accounts[account.index] = account

    def find(self, pubkey: Point) -> Account:
        for account in self.accounts.values():
            if account.pubkey == pubkey:
                return account
        raise UnknownAccount()

    def tree(self) -> MerkleTree:
        hash_fn = hash_function(self.config.hash)
        tree = MerkleTree(depth=self.config.tree_depth, hash_fn=hash_fn)
        for index, account in self.accounts.items():
            tree.set(index, account.leaf(hash_fn))
        return tree

    def root(self) -> Field:
        return self.tree().root()

    def apply(self, transfer: Transfer) -> tuple["LedgerState", TransactionWitness]:
        sender = self.find(transfer.sender_pubkey)
        receiver = self.find(transfer.receiver_pubkey)
        if sender.index == receiver.index:
            raise SelfTransfer()
        if transfer.amount < 0:
            raise NegativeAmount()
        if transfer.amount > sender.balance:
            # the circuit would reject it anyway, but the account model can not hold it
            raise InsufficientBalance()

        sender_after = replace(
            sender, nonce=sender.nonce + 1, balance=sender.balance - transfer.amount
        )
        receiver_after = replace(receiver, balance=receiver.balance + transfer.amount)

        after = LedgerState(config=self.config, accounts=dict(self.accounts))
        after.accounts[sender.index] = sender_after
        after.accounts[receiver.index] = receiver_after

        tree_before = self.tree()
        tree_after = after.tree()

        witness = TransactionWitness(
            sender_before=sender,
            receiver_before=receiver,
            sender_after=sender_after,
            receiver_after=receiver_after,
            transfer=transfer,
            proof_sender_before=tree_before.proof(sender.index),
            proof_sender_after=tree_after.proof(sender.index),
            proof_receiver_before=tree_before.proof(receiver.index),
            proof_receiver_after=tree_after.proof(receiver.index),
            index_sender=sender.index,
            index_receiver=receiver.index,
            root_before=tree_before.root(),
            root_after=tree_after.root(),
        )
        logger.debug(
            "transfer of %d from slot %d to slot %d applied",
            transfer.amount,
            sender.index,
            receiver.index,
        )
        return after, witness


class UnknownAccount(Exception):
    def __str__(self):
        return "No account holds this public key"


class SelfTransfer(Exception):
    def __str__(self):
        return "Sender and receiver are the same account"


class NegativeAmount(Exception):
    def __str__(self):
        return "Transfer amount is negative"


class InsufficientBalance(Exception):
    def __str__(self):
        return "Transfer amount exceeds the sender's balance"
