"""Non-membership (exclusion) proofs over a sorted leaf set.

A target is absent from a tree whose leaves are sorted ascending when two
leaves that are both in the tree satisfy ``left < target < right`` and
sit next to each other in the sorted order.

The two inclusion proofs establish membership of the neighbours, but
they do NOT by themselves establish adjacency: a prover could present
any two members that straddle the target.  Verification therefore runs
in one of two modes:

- ``tree_size`` unknown: membership and ordering are checked; adjacency
  and sortedness are assumptions the caller must guarantee by other
  means (for example a canonical ordering committed elsewhere).
- ``tree_size`` known: each neighbour's claimed leaf index is bound to
  its proof through the side pattern the tree shape dictates, and the
  indices must be consecutive.  A target outside the leaf range is then
  provable with a single neighbour at the first or last position.

Sortedness of the leaves at construction time remains an external
assumption in both modes.
"""

from __future__ import annotations

import bisect
import logging

from agnostic_merkle.errors import TargetPresentError, UnsortedLeavesError
from agnostic_merkle.hashing import Hash, HashFn, ensure_hash
from agnostic_merkle.schemas import ExclusionProof, NeighborWitness
from agnostic_merkle.tree import MerkleTree, path_sides, static_verify

logger = logging.getLogger(__name__)


def make_exclusion_proof(
    tree: MerkleTree, target: Hash, capacity: int | None = None
) -> ExclusionProof:
    """Build an exclusion proof for *target* from a sorted tree.

    Raises:
        UnsortedLeavesError: the tree's leaves are not strictly ascending.
        TargetPresentError: *target* is a leaf of the tree.
        ProofCapacityExceededError: a neighbour's path exceeds *capacity*.
    """
    target = ensure_hash(target, "target")
    if not tree.is_sorted:
        raise UnsortedLeavesError("exclusion proofs require strictly ascending leaves")

    leaves = tree.leaves
    pos = bisect.bisect_left(leaves, target)
    if pos < len(leaves) and leaves[pos] == target:
        raise TargetPresentError(f"target {target.hex()} is leaf {pos} of the tree")

    left = _witness(tree, pos - 1, capacity) if pos > 0 else None
    right = _witness(tree, pos, capacity) if pos < len(leaves) else None
    return ExclusionProof(target=target, left=left, right=right)


def verify_exclusion(
    proof: ExclusionProof,
    root: Hash,
    hash_fn: HashFn,
    tree_size: int | None = None,
) -> bool:
    """Return True only if *proof* shows its target is absent under *root*.

    Without *tree_size* both neighbours are required and their adjacency
    is trusted, not checked.
    """
    root = ensure_hash(root, "root")
    left, right = proof.left, proof.right

    if left is None and right is None:
        return False
    if tree_size is None and (left is None or right is None):
        logger.debug("Rejecting one-sided exclusion proof: tree_size is required")
        return False

    for witness in (left, right):
        if witness is not None and not static_verify(witness.leaf, witness.proof, root, hash_fn):
            logger.debug("Exclusion neighbour %s is not in the tree", witness.leaf.hex())
            return False

    if left is not None and not left.leaf < proof.target:
        return False
    if right is not None and not proof.target < right.leaf:
        return False

    if tree_size is None:
        logger.warning(
            "Exclusion proof for %s verified without adjacency check",
            proof.target.hex()[:16] + "...",
        )
        return True

    return _adjacent(left, right, tree_size)


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------


def _witness(tree: MerkleTree, leaf_index: int, capacity: int | None) -> NeighborWitness:
    return NeighborWitness(
        leaf=tree.leaves[leaf_index],
        proof=tree.make_proof(leaf_index, capacity=capacity),
    )


def _position(witness: NeighborWitness, tree_size: int) -> int | None:
    """Return the witness's leaf index if its proof matches that position."""
    index = witness.proof.leaf_index
    if index is None or index >= tree_size:
        return None
    if witness.proof.sides != path_sides(index, tree_size):
        return None
    return index


def _adjacent(
    left: NeighborWitness | None, right: NeighborWitness | None, tree_size: int
) -> bool:
    left_idx = _position(left, tree_size) if left is not None else None
    right_idx = _position(right, tree_size) if right is not None else None

    if left is not None and left_idx is None:
        return False
    if right is not None and right_idx is None:
        return False

    if left_idx is None:
        return right_idx == 0
    if right_idx is None:
        return left_idx == tree_size - 1
    return right_idx == left_idx + 1
