"""
The transaction validity circuit.

Given both accounts before and after a transfer, the signed transfer and
merkle proofs placing all four account states in the ledger, the circuit is
satisfiable iff
- the sender's nonce and balance, and the receiver's balance, moved as
  the transfer says, public keys untouched
- the sender signed the transfer
- the two "before" accounts sit in the tree committed to by `root_before`
  and the two "after" accounts in the one committed to by `root_after`

`root_before` and `root_after` are the only public inputs.
"""

import logging
from dataclasses import dataclass

from .account import Account
from .config import CircuitConfig
from .constraint_system import (
    API,
    ConstraintSystem,
    StructuralError,
    Variable,
    WitnessShapeError,
    compile_circuit,
)
from .crypto import Field
from .gadgets import HashGadget, PointVar, SignatureGadget, SignatureVar, merkle_root
from .merkle import MerkleProof
from .schnorr import is_valid_key, is_well_formed
from .transfer import Transfer

logger = logging.getLogger(__name__)


@dataclass
class TransactionWitness:
    sender_before: Account
    receiver_before: Account
    sender_after: Account
    receiver_after: Account

    transfer: Transfer

    proof_sender_before: MerkleProof
    proof_sender_after: MerkleProof
    proof_receiver_before: MerkleProof
    proof_receiver_after: MerkleProof

    index_sender: int
    index_receiver: int

    root_before: Field
    root_after: Field

    def public(self) -> list[Field]:
        return [self.root_before, self.root_after]


@dataclass
class AccountVar:
    nonce: Variable
    balance: Variable
    index: Variable
    pubkey: PointVar

    @staticmethod
    def allocate(api: API, name: str) -> "AccountVar":
        return AccountVar(
            nonce=api.secret(f"{name}.nonce"),
            balance=api.secret(f"{name}.balance"),
            index=api.secret(f"{name}.index"),
            pubkey=_allocate_point(api, f"{name}.pubkey"),
        )

    @staticmethod
    def assignment(name: str, account: Account) -> dict:
        if not is_valid_key(account.pubkey):
            raise StructuralError(f"{name}.pubkey is not a valid grumpkin key")
        return {
            f"{name}.nonce": account.nonce,
            f"{name}.balance": account.balance,
            f"{name}.index": account.index,
            f"{name}.pubkey.x": account.pubkey.x,
            f"{name}.pubkey.y": account.pubkey.y,
        }


@dataclass
class TransferVar:
    amount: Variable
    nonce: Variable
    sender_pubkey: PointVar
    receiver_pubkey: PointVar
    signature: SignatureVar

    @staticmethod
    def allocate(api: API, name: str) -> "TransferVar":
        return TransferVar(
            amount=api.secret(f"{name}.amount"),
            nonce=api.secret(f"{name}.nonce"),
            sender_pubkey=_allocate_point(api, f"{name}.sender_pubkey"),
            receiver_pubkey=_allocate_point(api, f"{name}.receiver_pubkey"),
            signature=SignatureVar(
                r=_allocate_point(api, f"{name}.signature.r"),
                s_lo=api.secret(f"{name}.signature.s_lo"),
                s_hi=api.secret(f"{name}.signature.s_hi"),
            ),
        )

    @staticmethod
    def assignment(name: str, transfer: Transfer) -> dict:
        for key in ("sender_pubkey", "receiver_pubkey"):
            if not is_valid_key(getattr(transfer, key)):
                raise StructuralError(f"{name}.{key} is not a valid grumpkin key")
        if not is_well_formed(transfer.signature):
            raise StructuralError(f"{name}.signature is malformed")
        s_lo, s_hi = transfer.signature.limbs()
        return {
            f"{name}.amount": transfer.amount,
            f"{name}.nonce": transfer.nonce,
            f"{name}.sender_pubkey.x": transfer.sender_pubkey.x,
            f"{name}.sender_pubkey.y": transfer.sender_pubkey.y,
            f"{name}.receiver_pubkey.x": transfer.receiver_pubkey.x,
            f"{name}.receiver_pubkey.y": transfer.receiver_pubkey.y,
            f"{name}.signature.r.x": transfer.signature.r.x,
            f"{name}.signature.r.y": transfer.signature.r.y,
            f"{name}.signature.s_lo": s_lo,
            f"{name}.signature.s_hi": s_hi,
        }


@dataclass
class MerkleProofVar:
    path: list[Variable]
    root: Variable

    @staticmethod
    def allocate(api: API, name: str, depth: int) -> "MerkleProofVar":
        return MerkleProofVar(
            path=[api.secret(f"{name}.path[{i}]") for i in range(depth)],
            root=api.secret(f"{name}.root"),
        )

    @staticmethod
    def assignment(name: str, proof: MerkleProof, depth: int) -> dict:
        if proof.depth != depth:
            raise WitnessShapeError(f"{name} has depth {proof.depth}, circuit expects {depth}")
        return {
            **{f"{name}.path[{i}]": p for i, p in enumerate(proof.path)},
            f"{name}.root": proof.root,
        }


def _allocate_point(api: API, name: str) -> PointVar:
    return PointVar(x=api.secret(f"{name}.x"), y=api.secret(f"{name}.y"))


def verify_updated(
    api: API,
    sender: AccountVar,
    receiver: AccountVar,
    sender_updated: AccountVar,
    receiver_updated: AccountVar,
    amount: Variable,
    balance_bits: int,
):
    """Nonce increment, overdraft bound, balance conservation, key immutability"""
    api.assert_is_equal(
        api.add(sender.nonce, 1), sender_updated.nonce, label="sender nonce increment"
    )
    api.assert_is_equal(receiver.nonce, receiver_updated.nonce, label="receiver nonce")

    api.assert_is_less_or_equal(amount, sender.balance, balance_bits, label="overdraft")

    api.assert_is_equal(
        api.sub(sender.balance, amount), sender_updated.balance, label="sender balance"
    )
    api.assert_is_equal(
        api.add(receiver.balance, amount), receiver_updated.balance, label="receiver balance"
    )

    for before, after, who in [
        (sender, sender_updated, "sender"),
        (receiver, receiver_updated, "receiver"),
    ]:
        api.assert_is_equal(before.pubkey.x, after.pubkey.x, label=f"{who} pubkey")
        api.assert_is_equal(before.pubkey.y, after.pubkey.y, label=f"{who} pubkey")


def bind_transfer(api: API, transfer: TransferVar, sender: AccountVar, receiver: AccountVar):
    """The transfer is about these two accounts, at the sender's current nonce"""
    api.assert_is_equal(transfer.nonce, sender.nonce, label="transfer nonce")
    for declared, account, who in [
        (transfer.sender_pubkey, sender, "sender"),
        (transfer.receiver_pubkey, receiver, "receiver"),
    ]:
        api.assert_is_equal(declared.x, account.pubkey.x, label=f"transfer {who} pubkey")
        api.assert_is_equal(declared.y, account.pubkey.y, label=f"transfer {who} pubkey")


def verify_signature(
    transfer: TransferVar, hasher: HashGadget, signatures: SignatureGadget
) -> Variable:
    hasher.reset()
    hasher.absorb(
        transfer.nonce,
        transfer.amount,
        transfer.sender_pubkey.x,
        transfer.sender_pubkey.y,
        transfer.receiver_pubkey.x,
        transfer.receiver_pubkey.y,
    )
    message = hasher.digest()
    signatures.verify(transfer.signature, message, transfer.sender_pubkey)
    return message


def verify_membership(
    api: API,
    hasher: HashGadget,
    account: AccountVar,
    proof: MerkleProofVar,
    index: Variable,
    root: Variable,
    label: str,
):
    """
    `account` is the leaf at `index` of the tree `proof.root` commits to,
    and that tree is the one committed to by the public `root`.

    The before and after paths are independent witnesses. `root_after` is
    therefore only tied to the two touched leaves: accounts outside the
    transfer may differ between `root_before` and `root_after`. Binding them
    would mean constraining the siblings above the sender/receiver split to
    be equal before and after.
    """
    hasher.reset()
    hasher.absorb(
        account.nonce,
        account.balance,
        account.index,
        account.pubkey.x,
        account.pubkey.y,
    )
    leaf = hasher.digest()

    recomputed = merkle_root(api, hasher, leaf, proof.path, index)
    api.assert_is_equal(recomputed, proof.root, label=f"{label} merkle proof")
    api.assert_is_equal(proof.root, root, label=f"{label} root")


class TransactionCircuit:
    def __init__(self, config: CircuitConfig):
        if config.tree_depth < 1:
            raise StructuralError(f"tree depth must be positive, got {config.tree_depth}")
        # the difference range check must not wrap around the field
        if not 0 < config.balance_bits < Field.ORDER.bit_length() - 1:
            raise StructuralError(f"unsupported balance width {config.balance_bits}")
        self.config = config

    def define(self, api: API):
        root_before = api.public("root_before")
        root_after = api.public("root_after")

        sender_before = AccountVar.allocate(api, "sender_before")
        receiver_before = AccountVar.allocate(api, "receiver_before")
        sender_after = AccountVar.allocate(api, "sender_after")
        receiver_after = AccountVar.allocate(api, "receiver_after")

        transfer = TransferVar.allocate(api, "transfer")

        depth = self.config.tree_depth
        proofs = {
            name: MerkleProofVar.allocate(api, name, depth)
            for name in [
                "proof_sender_before",
                "proof_sender_after",
                "proof_receiver_before",
                "proof_receiver_after",
            ]
        }

        index_sender = api.secret("index_sender")
        index_receiver = api.secret("index_receiver")

        verify_updated(
            api,
            sender_before,
            receiver_before,
            sender_after,
            receiver_after,
            transfer.amount,
            self.config.balance_bits,
        )

        hasher = HashGadget(api)
        signatures = SignatureGadget(api, self.config.curve)
        bind_transfer(api, transfer, sender_before, receiver_before)
        verify_signature(transfer, hasher, signatures)

        for account, proof, index, root, label in [
            (sender_before, "proof_sender_before", index_sender, root_before, "sender before"),
            (sender_after, "proof_sender_after", index_sender, root_after, "sender after"),
            (receiver_before, "proof_receiver_before", index_receiver, root_before, "receiver before"),
            (receiver_after, "proof_receiver_after", index_receiver, root_after, "receiver after"),
        ]:
            verify_membership(api, hasher, account, proofs[proof], index, root, label)

    def compile(self) -> ConstraintSystem:
        cs = compile_circuit(self, hash=self.config.hash)
        logger.debug("transaction circuit of depth %d compiled", self.config.tree_depth)
        return cs

    def assign(self, witness: TransactionWitness) -> dict:
        depth = self.config.tree_depth
        return {
            "root_before": witness.root_before,
            "root_after": witness.root_after,
            **AccountVar.assignment("sender_before", witness.sender_before),
            **AccountVar.assignment("receiver_before", witness.receiver_before),
            **AccountVar.assignment("sender_after", witness.sender_after),
            **AccountVar.assignment("receiver_after", witness.receiver_after),
            **TransferVar.assignment("transfer", witness.transfer),
            **MerkleProofVar.assignment("proof_sender_before", witness.proof_sender_before, depth),
            **MerkleProofVar.assignment("proof_sender_after", witness.proof_sender_after, depth),
            **MerkleProofVar.assignment(
                "proof_receiver_before", witness.proof_receiver_before, depth
            ),
            **MerkleProofVar.assignment(
                "proof_receiver_after", witness.proof_receiver_after, depth
            ),
            "index_sender": witness.index_sender,
            "index_receiver": witness.index_receiver,
        }
