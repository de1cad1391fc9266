"""Exception taxonomy for the Merkle engine.

Every failure is a local input-validation error raised at the call that
violates the contract.  Nothing here is transient, so nothing is retried.
A verification mismatch is not an error: verifiers return ``False``.
"""

from __future__ import annotations


class MerkleError(Exception):
    """Base class for all errors raised by ``agnostic_merkle``."""


class EmptyInputError(MerkleError, ValueError):
    """A tree was requested over zero leaves."""


class LeafNotFoundError(MerkleError, LookupError):
    """A proof was requested by value for a leaf that is not in the tree."""


class IndexOutOfRangeError(MerkleError, IndexError):
    """A leaf index or proof-node index is outside the valid range."""


class CapacityExceededError(MerkleError):
    """An append was attempted on a full bounded proof container."""


class ProofCapacityExceededError(MerkleError):
    """The path for a leaf needs more nodes than the requested proof capacity."""


class InvalidHashError(MerkleError, ValueError):
    """A value that should be a 32-byte hash is not one."""


class UnsortedLeavesError(MerkleError, ValueError):
    """An exclusion proof was requested from a tree whose leaves are not sorted."""


class TargetPresentError(MerkleError, ValueError):
    """An exclusion proof was requested for a value that is a leaf of the tree."""
