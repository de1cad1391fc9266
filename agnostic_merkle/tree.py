"""Hash-agnostic binary Merkle tree: construction, proofs, verification.

Tree format (for third-party verifiers)
=======================================

**Hash function:** supplied by the caller as ``hash_fn(left, right)``,
mapping two 32-byte values to one 32-byte value.  Leaves are taken as
given; the engine never hashes raw application data.

**Tree structure:** Unbalanced binary Merkle tree.  Each level is formed
by combining adjacent pairs ``(2i, 2i+1)`` of the level below, left to
right.  When a level has an odd number of elements the last element is
promoted to the next level unchanged, without a sibling hash.  It is
neither duplicated nor hashed with itself.  This is the same shape as
Certificate Transparency (RFC 6962 §2.1), so the shape is fully
determined by the number of leaves and an inclusion proof is at most
``ceil(log2(N))`` nodes long.

**Proof format:** an ordered list of ``(sibling, side)`` nodes from the
leaf level upwards.  ``side`` is ``"right"`` when the sibling is the right
operand (the path element is on the left) and ``"left"`` otherwise.  A
promoted element contributes no node for that level.

**Verification:** starting from the leaf, fold each node into the running
value with ``hash_fn(current, sibling)`` for ``"right"`` and
``hash_fn(sibling, current)`` for ``"left"``.  The result must equal the
expected root.  No tree instance is needed; use ``static_verify``.

**Immutability:** a tree is built once from its leaves and never
modified, so instances can be shared freely between threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from agnostic_merkle.config import settings
from agnostic_merkle.errors import (
    CapacityExceededError,
    EmptyInputError,
    IndexOutOfRangeError,
    LeafNotFoundError,
    ProofCapacityExceededError,
)
from agnostic_merkle.hashing import Hash, HashFn, combine, ensure_hash
from agnostic_merkle.schemas import MerkleProof, ProofNode, Side

logger = logging.getLogger(__name__)

Levels = tuple[tuple[Hash, ...], ...]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def build_levels(leaves: Iterable[Hash], hash_fn: HashFn) -> Levels:
    """Build every level of the tree, leaves first and root last.

    Raises:
        EmptyInputError: *leaves* is empty.
        InvalidHashError: a leaf or a ``hash_fn`` output is not 32 bytes.
    """
    level = tuple(ensure_hash(leaf, f"leaf {i}") for i, leaf in enumerate(leaves))
    if not level:
        raise EmptyInputError("cannot build a Merkle tree over zero leaves")

    levels = [level]
    while len(level) > 1:
        next_level: list[Hash] = []
        for i in range(0, len(level), 2):
            if i + 1 < len(level):
                next_level.append(combine(hash_fn, level[i], level[i + 1]))
            else:
                next_level.append(level[i])
        level = tuple(next_level)
        levels.append(level)
        if settings.trace_levels:
            logger.debug(
                "Level %d (%d nodes): %s",
                len(levels) - 1,
                len(level),
                [h.hex() for h in level],
            )
    return tuple(levels)


def merkle_root(leaves: Iterable[Hash], hash_fn: HashFn) -> Hash:
    """Compute the root over *leaves*.  A single leaf is its own root."""
    return build_levels(leaves, hash_fn)[-1][0]


# ---------------------------------------------------------------------------
# Proof derivation
# ---------------------------------------------------------------------------


def path_sides(leaf_index: int, tree_size: int) -> list[Side]:
    """Return the sides an honest proof for *leaf_index* carries.

    Depends only on the tree shape, so a verifier who knows the tree size
    can check that a proof really belongs to the claimed position.
    """
    if leaf_index < 0 or leaf_index >= tree_size:
        raise IndexOutOfRangeError(f"leaf index {leaf_index} out of range [0, {tree_size})")

    sides: list[Side] = []
    idx, size = leaf_index, tree_size
    while size > 1:
        if idx % 2 == 0:
            if idx + 1 < size:
                sides.append(Side.RIGHT)
        else:
            sides.append(Side.LEFT)
        idx //= 2
        size = (size + 1) // 2
    return sides


def _derive_proof(levels: Levels, leaf_index: int, capacity: int | None) -> MerkleProof:
    tree_size = len(levels[0])
    if leaf_index < 0 or leaf_index >= tree_size:
        raise IndexOutOfRangeError(f"leaf index {leaf_index} out of range [0, {tree_size})")

    proof = MerkleProof.empty(capacity, leaf_index=leaf_index, tree_size=tree_size)
    idx = leaf_index
    try:
        for level in levels[:-1]:
            if idx % 2 == 0:
                if idx + 1 < len(level):
                    proof.append(ProofNode(data=level[idx + 1], side=Side.RIGHT))
            else:
                proof.append(ProofNode(data=level[idx - 1], side=Side.LEFT))
            idx //= 2
    except CapacityExceededError as exc:
        required = len(path_sides(leaf_index, tree_size))
        raise ProofCapacityExceededError(
            f"leaf {leaf_index} needs {required} proof nodes, capacity is {capacity}"
        ) from exc

    logger.debug(
        "Derived proof for leaf %d of %d (%d nodes)", leaf_index, tree_size, proof.length
    )
    return proof


def merkle_proof_at(
    leaves: Iterable[Hash],
    leaf_index: int,
    hash_fn: HashFn,
    capacity: int | None = None,
) -> MerkleProof:
    """Derive the inclusion proof for the leaf at *leaf_index*.

    Raises:
        IndexOutOfRangeError: *leaf_index* is negative or past the last leaf.
        ProofCapacityExceededError: the path is longer than *capacity*.
    """
    levels = build_levels(leaves, hash_fn)
    return _derive_proof(levels, leaf_index, settings.proof_capacity(capacity))


def merkle_proof(
    leaves: Iterable[Hash],
    leaf: Hash,
    hash_fn: HashFn,
    capacity: int | None = None,
) -> MerkleProof:
    """Derive the inclusion proof for *leaf*, located by value.

    Duplicate leaves resolve to their first occurrence.

    Raises:
        LeafNotFoundError: *leaf* is not one of *leaves*.
        ProofCapacityExceededError: the path is longer than *capacity*.
    """
    levels = build_levels(leaves, hash_fn)
    leaf = ensure_hash(leaf, "leaf")
    try:
        leaf_index = levels[0].index(leaf)
    except ValueError:
        raise LeafNotFoundError(f"leaf {leaf.hex()} is not in the tree") from None
    return _derive_proof(levels, leaf_index, settings.proof_capacity(capacity))


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def merkle_proof_check(proof: MerkleProof, leaf: Hash, hash_fn: HashFn) -> Hash:
    """Replay *proof* from *leaf* and return the root it commits to.

    The caller compares the result against the root it trusts.
    """
    current = ensure_hash(leaf, "leaf")
    for node in proof.nodes:
        if node.side == Side.RIGHT:
            current = combine(hash_fn, current, node.data)
        else:
            current = combine(hash_fn, node.data, current)
    return current


def static_verify(leaf: Hash, proof: MerkleProof, root: Hash, hash_fn: HashFn) -> bool:
    """Return True only if *proof* reconstructs *root* from *leaf*."""
    expected = ensure_hash(root, "root")
    ok = merkle_proof_check(proof, leaf, hash_fn) == expected
    if not ok:
        logger.debug("Proof does not reconstruct root %s", expected.hex())
    return ok


# ---------------------------------------------------------------------------
# Tree handle
# ---------------------------------------------------------------------------


class MerkleTree:
    """Immutable Merkle tree over caller-supplied leaf hashes.

    Holds the full level pyramid and the hash function it was built with.
    Proofs copy the sibling hashes they need and keep no reference to the
    tree.

    Verification by third parties requires only:
    - The leaf hash
    - The proof (from ``make_proof``)
    - The trusted root hash
    - The same hash function

    No access to the tree instance is needed; use the static
    ``verify_proof`` method.
    """

    def __init__(self, leaves: Iterable[Hash], hash_fn: HashFn) -> None:
        self._hash_fn = hash_fn
        self._levels = build_levels(leaves, hash_fn)
        self._positions: dict[Hash, int] = {}
        for i, leaf in enumerate(self._levels[0]):
            self._positions.setdefault(leaf, i)
        logger.debug(
            "Built Merkle tree: %d leaves, height %d, root %s",
            self.size,
            self.height,
            self.root.hex(),
        )

    @classmethod
    def sorted_set(cls, leaves: Iterable[Hash], hash_fn: HashFn) -> "MerkleTree":
        """Build a tree over the distinct *leaves* in ascending byte order.

        This is the canonical ordering exclusion proofs rely on.
        """
        return cls(sorted({ensure_hash(leaf, "leaf") for leaf in leaves}), hash_fn)

    @property
    def hash_fn(self) -> HashFn:
        return self._hash_fn

    @property
    def leaves(self) -> tuple[Hash, ...]:
        return self._levels[0]

    @property
    def levels(self) -> Levels:
        return self._levels

    @property
    def size(self) -> int:
        return len(self._levels[0])

    @property
    def height(self) -> int:
        """Number of combining rounds between the leaves and the root."""
        return len(self._levels) - 1

    @property
    def root(self) -> Hash:
        return self._levels[-1][0]

    @property
    def is_sorted(self) -> bool:
        """True if the leaves are strictly ascending."""
        leaves = self._levels[0]
        return all(a < b for a, b in zip(leaves, leaves[1:]))

    def __len__(self) -> int:
        return self.size

    def __contains__(self, leaf: object) -> bool:
        return leaf in self._positions

    def index_of(self, leaf: Hash) -> int:
        leaf = ensure_hash(leaf, "leaf")
        try:
            return self._positions[leaf]
        except KeyError:
            raise LeafNotFoundError(f"leaf {leaf.hex()} is not in the tree") from None

    def make_proof(self, target: Hash | int, capacity: int | None = None) -> MerkleProof:
        """Derive an inclusion proof for a leaf given by value or by index.

        Raises:
            LeafNotFoundError: *target* is a hash that is not a leaf.
            IndexOutOfRangeError: *target* is an index outside the tree.
            ProofCapacityExceededError: the path is longer than *capacity*.
        """
        if isinstance(target, int):
            leaf_index = target
        else:
            leaf_index = self.index_of(target)
        return _derive_proof(self._levels, leaf_index, settings.proof_capacity(capacity))

    def verify_merkle_proof(self, leaf: Hash, proof: MerkleProof) -> bool:
        """Verify *proof* for *leaf* against this tree's root."""
        return static_verify(leaf, proof, self.root, self._hash_fn)

    @staticmethod
    def verify_proof(leaf: Hash, proof: MerkleProof, root: Hash, hash_fn: HashFn) -> bool:
        """Verify *proof* against an expected root with no tree instance."""
        return static_verify(leaf, proof, root, hash_fn)
