from dataclasses import dataclass, field

from .crypto import HASH, Field


@dataclass(frozen=True)
class MerkleProof:
    """
    Membership evidence for one leaf at one point in ledger history.

    `path` holds the sibling of every node on the way from the leaf up to
    (but excluding) the root, the sibling of the leaf comes first.
    """

    path: tuple[Field, ...]
    root: Field

    def __post_init__(self):
        assert all(isinstance(p, Field) for p in self.path)
        assert isinstance(self.root, Field)

    @property
    def depth(self) -> int:
        return len(self.path)


def compute_root(leaf: Field, path, index: int, hash_fn=HASH) -> Field:
    """
    Folds `leaf` with its siblings. Bit `i` of `index` (LSB first) tells whether
    the node at level `i` is a right child.
    """
    assert 0 <= index < 2 ** len(path), f"index {index} outside a tree of depth {len(path)}"
    node = leaf
    for level, sibling in enumerate(path):
        if (index >> level) & 1:
            node = hash_fn([sibling, node])
        else:
            node = hash_fn([node, sibling])
    return node


def verify_proof(leaf: Field, proof: MerkleProof, index: int, hash_fn=HASH) -> bool:
    return compute_root(leaf, proof.path, index, hash_fn) == proof.root


@dataclass
class MerkleTree:
    """
    A fixed depth tree over `2**depth` leaves, unset leaves are Field.zero().

    Only the populated part of the tree is materialized, empty subtrees
    are represented by their (precomputed) root.
    """

    depth: int
    leaves: list[Field] = field(default_factory=list)
    hash_fn: object = HASH

    def __post_init__(self):
        assert self.depth >= 1
        assert len(self.leaves) <= 2**self.depth
        self._empty = [Field.zero()]
        for _ in range(self.depth):
            self._empty.append(self.hash_fn([self._empty[-1], self._empty[-1]]))

    def set(self, index: int, leaf: Field):
        assert 0 <= index < 2**self.depth
        if index >= len(self.leaves):
            self.leaves.extend([Field.zero()] * (index + 1 - len(self.leaves)))
        self.leaves[index] = leaf

    def _levels(self) -> list[list[Field]]:
        levels = [list(self.leaves) or [Field.zero()]]
        for level in range(self.depth):
            nodes = levels[-1]
            if len(nodes) % 2 == 1:
                nodes = nodes + [self._empty[level]]
            levels.append(
                [self.hash_fn([nodes[i], nodes[i + 1]]) for i in range(0, len(nodes), 2)]
            )
        return levels

    def root(self) -> Field:
        return self._levels()[-1][0]

    def proof(self, index: int) -> MerkleProof:
        assert 0 <= index < 2**self.depth
        levels = self._levels()
        path = []
        for level in range(self.depth):
            sibling = (index >> level) ^ 1
            nodes = levels[level]
            path.append(nodes[sibling] if sibling < len(nodes) else self._empty[level])
        return MerkleProof(path=tuple(path), root=levels[-1][0])
