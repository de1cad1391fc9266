"""Ready-made ``hash_fn`` adapters over :mod:`hashlib`.

These exist for the command line interface and for tests.  The engine
never imports this module; callers embedding the library pass whatever
combining function their surrounding protocol uses.
"""

from __future__ import annotations

import hashlib

from agnostic_merkle.hashing import Hash, HashFn

_LEAF_PREFIX = b"\x00"
_NODE_PREFIX = b"\x01"


def sha256_leaf(data: bytes) -> Hash:
    """Domain-separated leaf hash, H(0x00 || data) as in RFC 6962."""
    return hashlib.sha256(_LEAF_PREFIX + data).digest()


def sha256_node(left: Hash, right: Hash) -> Hash:
    """Domain-separated internal node hash, H(0x01 || left || right)."""
    return hashlib.sha256(_NODE_PREFIX + left + right).digest()


def sha256_concat(left: Hash, right: Hash) -> Hash:
    return hashlib.sha256(left + right).digest()


def sha3_256_concat(left: Hash, right: Hash) -> Hash:
    return hashlib.sha3_256(left + right).digest()


def blake2s_concat(left: Hash, right: Hash) -> Hash:
    return hashlib.blake2s(left + right).digest()


COMBINERS: dict[str, HashFn] = {
    "sha256-node": sha256_node,
    "sha256": sha256_concat,
    "sha3-256": sha3_256_concat,
    "blake2s": blake2s_concat,
}


def get_combiner(name: str) -> HashFn:
    try:
        return COMBINERS[name]
    except KeyError:
        raise ValueError(
            f"unknown combiner {name!r} (choose from {', '.join(sorted(COMBINERS))})"
        ) from None
