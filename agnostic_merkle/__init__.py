"""agnostic-merkle: a hash-function-agnostic Merkle tree engine."""

from __future__ import annotations

from agnostic_merkle.config import MerkleSettings, settings
from agnostic_merkle.errors import (
    CapacityExceededError,
    EmptyInputError,
    IndexOutOfRangeError,
    InvalidHashError,
    LeafNotFoundError,
    MerkleError,
    ProofCapacityExceededError,
    TargetPresentError,
    UnsortedLeavesError,
)
from agnostic_merkle.exclusion import make_exclusion_proof, verify_exclusion
from agnostic_merkle.hashing import HASH_SIZE, Hash, HashFn
from agnostic_merkle.schemas import (
    ExclusionProof,
    MerkleProof,
    NeighborWitness,
    ProofNode,
    Side,
    export_json_schemas,
)
from agnostic_merkle.tree import (
    MerkleTree,
    build_levels,
    merkle_proof,
    merkle_proof_at,
    merkle_proof_check,
    merkle_root,
    path_sides,
    static_verify,
)


def build_root(leaves, hash_fn: HashFn) -> Hash:
    """Compute the root over *leaves* with *hash_fn*."""
    return merkle_root(leaves, hash_fn)


def build_proof(
    leaves, target: Hash | int, hash_fn: HashFn, capacity: int | None = None
) -> MerkleProof:
    """Derive an inclusion proof for *target*, a leaf hash or a leaf index."""
    if isinstance(target, int):
        return merkle_proof_at(leaves, target, hash_fn, capacity)
    return merkle_proof(leaves, target, hash_fn, capacity)


def verify_proof(proof: MerkleProof, leaf: Hash, hash_fn: HashFn) -> Hash:
    """Replay *proof* from *leaf*; the caller compares the result to its root."""
    return merkle_proof_check(proof, leaf, hash_fn)


__all__ = [
    # Entry points
    "build_root",
    "build_proof",
    "verify_proof",
    "static_verify",
    "MerkleTree",
    "merkle_root",
    "merkle_proof",
    "merkle_proof_at",
    "merkle_proof_check",
    "build_levels",
    "path_sides",
    # Exclusion proofs
    "make_exclusion_proof",
    "verify_exclusion",
    # Types
    "HASH_SIZE",
    "Hash",
    "HashFn",
    "Side",
    "ProofNode",
    "MerkleProof",
    "NeighborWitness",
    "ExclusionProof",
    "export_json_schemas",
    # Errors
    "MerkleError",
    "EmptyInputError",
    "LeafNotFoundError",
    "IndexOutOfRangeError",
    "ProofCapacityExceededError",
    "CapacityExceededError",
    "InvalidHashError",
    "UnsortedLeavesError",
    "TargetPresentError",
    # Configuration
    "settings",
    "MerkleSettings",
]

__version__ = "0.1.0"
