from dataclasses import dataclass

from .crypto import HASH, Field, Point, field


@dataclass(frozen=True)
class Account:
    """
    One ledger entry, the leaf of the account merkle tree.
    """

    nonce: int
    balance: int
    index: int
    pubkey: Point

    def __post_init__(self):
        assert isinstance(self.nonce, int) and self.nonce >= 0, f"nonce is {self.nonce}"
        assert isinstance(self.balance, int) and self.balance >= 0, f"balance is {self.balance}"
        assert isinstance(self.index, int) and self.index >= 0, f"index is {self.index}"
        assert isinstance(self.pubkey, Point), f"pubkey is {type(self.pubkey)}"

    def encode(self) -> list[Field]:
        return [
            field(self.nonce),
            field(self.balance),
            field(self.index),
            self.pubkey.x,
            self.pubkey.y,
        ]

    def leaf(self, hash_fn=HASH) -> Field:
        return hash_fn(self.encode())
