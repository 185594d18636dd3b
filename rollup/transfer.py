from dataclasses import dataclass

from .crypto import HASH, Field, Point, field
from .schnorr import KeyPair, Signature


@dataclass(frozen=True)
class Transfer:
    """
    An intent to move `amount` from the sender to the receiver.

    `nonce` is the sender's nonce before the transfer, it is what stops the
    same signed transfer from being replayed.
    """

    amount: int
    nonce: int
    sender_pubkey: Point
    receiver_pubkey: Point
    signature: Signature

    def message(self, hash_fn=HASH) -> Field:
        return transfer_message(
            self.amount, self.nonce, self.sender_pubkey, self.receiver_pubkey, hash_fn
        )


def transfer_message(
    amount: int, nonce: int, sender_pubkey: Point, receiver_pubkey: Point, hash_fn=HASH
) -> Field:
    # The order of these elements is the canonical form of the signed message
    return hash_fn(
        [
            field(nonce),
            field(amount),
            sender_pubkey.x,
            sender_pubkey.y,
            receiver_pubkey.x,
            receiver_pubkey.y,
        ]
    )


def signed_transfer(
    sender: KeyPair, receiver_pubkey: Point, amount: int, nonce: int, hash_fn=HASH
) -> Transfer:
    message = transfer_message(amount, nonce, sender.pk, receiver_pubkey, hash_fn)
    return Transfer(
        amount=amount,
        nonce=nonce,
        sender_pubkey=sender.pk,
        receiver_pubkey=receiver_pubkey,
        signature=sender.sign(message, hash_fn=hash_fn),
    )
