"""Tests for exclusion (non-membership) proofs over sorted leaves."""

from __future__ import annotations

import logging

import pytest

from agnostic_merkle.combiners import sha256_node
from agnostic_merkle.errors import TargetPresentError, UnsortedLeavesError
from agnostic_merkle.exclusion import make_exclusion_proof, verify_exclusion
from agnostic_merkle.schemas import ExclusionProof, NeighborWitness
from agnostic_merkle.tree import MerkleTree

h = sha256_node


def v(n: int) -> bytes:
    """32-byte big-endian encoding, so byte order matches integer order."""
    return n.to_bytes(32, "big")


A, B, C, D = v(10), v(20), v(30), v(40)


@pytest.fixture
def tree():
    return MerkleTree([A, B, C, D], h)


def _witness(tree: MerkleTree, index: int) -> NeighborWitness:
    return NeighborWitness(leaf=tree.leaves[index], proof=tree.make_proof(index))


# ---------------------------------------------------------------------------
# Prover
# ---------------------------------------------------------------------------


class TestMakeExclusionProof:
    def test_neighbors_bracket_target(self, tree):
        proof = make_exclusion_proof(tree, v(25))
        assert proof.left.leaf == B
        assert proof.right.leaf == C
        assert proof.left.proof.leaf_index == 1
        assert proof.right.proof.leaf_index == 2

    def test_target_below_range(self, tree):
        proof = make_exclusion_proof(tree, v(5))
        assert proof.left is None
        assert proof.right.leaf == A

    def test_target_above_range(self, tree):
        proof = make_exclusion_proof(tree, v(50))
        assert proof.left.leaf == D
        assert proof.right is None

    def test_present_target_raises(self, tree):
        with pytest.raises(TargetPresentError):
            make_exclusion_proof(tree, C)

    def test_unsorted_tree_raises(self):
        with pytest.raises(UnsortedLeavesError):
            make_exclusion_proof(MerkleTree([B, A, C], h), v(25))

    def test_duplicate_leaves_count_as_unsorted(self):
        with pytest.raises(UnsortedLeavesError):
            make_exclusion_proof(MerkleTree([A, A, C], h), v(25))

    def test_sorted_set_tree(self):
        tree = MerkleTree.sorted_set([D, B, A, C], h)
        proof = make_exclusion_proof(tree, v(35))
        assert verify_exclusion(proof, tree.root, h, tree_size=tree.size)


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class TestVerifyExclusion:
    def test_adjacent_neighbors_verify(self, tree):
        proof = make_exclusion_proof(tree, v(25))
        assert verify_exclusion(proof, tree.root, h)
        assert verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_unchecked_adjacency_logs_warning(self, tree, caplog):
        proof = make_exclusion_proof(tree, v(25))
        with caplog.at_level(logging.WARNING, logger="agnostic_merkle.exclusion"):
            verify_exclusion(proof, tree.root, h)
        assert "without adjacency check" in caplog.text

    def test_non_adjacent_pair_rejected_by_adjacency_check(self, tree):
        proof = ExclusionProof(target=v(25), left=_witness(tree, 0), right=_witness(tree, 3))
        # Membership and ordering alone cannot tell A and D are not adjacent.
        assert verify_exclusion(proof, tree.root, h)
        assert not verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_forged_leaf_index_rejected(self, tree):
        left = _witness(tree, 0)
        forged = left.proof.model_copy(update={"leaf_index": 2})
        proof = ExclusionProof(
            target=v(25),
            left=NeighborWitness(leaf=A, proof=forged),
            right=_witness(tree, 3),
        )
        assert not verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_missing_leaf_index_rejected_in_strict_mode(self, tree):
        proof = make_exclusion_proof(tree, v(25))
        bare = proof.left.proof.model_copy(update={"leaf_index": None})
        proof = proof.model_copy(
            update={"left": NeighborWitness(leaf=proof.left.leaf, proof=bare)}
        )
        assert verify_exclusion(proof, tree.root, h)
        assert not verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_ordering_violation_rejected(self, tree):
        proof = ExclusionProof(target=v(35), left=_witness(tree, 1), right=_witness(tree, 2))
        assert not verify_exclusion(proof, tree.root, h)
        assert not verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_target_equal_to_neighbor_rejected(self, tree):
        proof = ExclusionProof(target=B, left=_witness(tree, 1), right=_witness(tree, 2))
        assert not verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_wrong_root_rejected(self, tree):
        proof = make_exclusion_proof(tree, v(25))
        other = MerkleTree([A, B, C, v(45)], h)
        assert not verify_exclusion(proof, other.root, h)

    def test_neighbor_not_in_tree_rejected(self, tree):
        proof = make_exclusion_proof(tree, v(25))
        fake = NeighborWitness(leaf=v(21), proof=proof.left.proof)
        proof = proof.model_copy(update={"left": fake})
        assert not verify_exclusion(proof, tree.root, h)

    def test_below_range_requires_tree_size(self, tree):
        proof = make_exclusion_proof(tree, v(5))
        assert not verify_exclusion(proof, tree.root, h)
        assert verify_exclusion(proof, tree.root, h, tree_size=4)

    def test_above_range_requires_last_position(self, tree):
        proof = make_exclusion_proof(tree, v(50))
        assert verify_exclusion(proof, tree.root, h, tree_size=4)

        early = ExclusionProof(target=v(50), left=_witness(tree, 2))
        assert not verify_exclusion(early, tree.root, h, tree_size=4)

    def test_wrong_tree_size_rejected(self, tree):
        proof = make_exclusion_proof(tree, v(50))
        assert not verify_exclusion(proof, tree.root, h, tree_size=5)

    def test_empty_proof_rejected(self, tree):
        assert not verify_exclusion(ExclusionProof(target=v(25)), tree.root, h, tree_size=4)

    def test_odd_tree_last_gap(self):
        leaves = [v(n) for n in (10, 20, 30, 40, 50)]
        tree = MerkleTree(leaves, h)
        proof = make_exclusion_proof(tree, v(45))
        assert proof.right.proof.length == 1
        assert verify_exclusion(proof, tree.root, h, tree_size=5)

    def test_survives_json_transport(self, tree):
        wire = make_exclusion_proof(tree, v(15)).model_dump_json()
        proof = ExclusionProof.model_validate_json(wire)
        assert verify_exclusion(proof, tree.root, h, tree_size=4)
