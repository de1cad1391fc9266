"""Hash value type and combining-function contract.

The engine is agnostic to the hash primitive.  Everything it needs from
the caller is a deterministic two-input function that maps two 32-byte
values to one 32-byte value::

    hash_fn(left: bytes, right: bytes) -> bytes

No implementation lives here; see ``agnostic_merkle.combiners`` for
``hashlib``-backed adapters.
"""

from __future__ import annotations

from collections.abc import Callable

from agnostic_merkle.errors import InvalidHashError

HASH_SIZE = 32

Hash = bytes
HashFn = Callable[[Hash, Hash], Hash]


def ensure_hash(value: object, what: str = "hash") -> Hash:
    """Return *value* as immutable ``bytes`` or raise ``InvalidHashError``."""
    if isinstance(value, (bytearray, memoryview)):
        value = bytes(value)
    if not isinstance(value, bytes):
        raise InvalidHashError(f"{what} must be bytes, got {type(value).__name__}")
    if len(value) != HASH_SIZE:
        raise InvalidHashError(f"{what} must be {HASH_SIZE} bytes, got {len(value)}")
    return value


def unhex(value: str, what: str = "hash") -> Hash:
    """Decode a hex string (optional ``0x`` prefix) into a 32-byte hash."""
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        raw = bytes.fromhex(text)
    except ValueError as exc:
        raise InvalidHashError(f"{what} is not valid hex: {value!r}") from exc
    return ensure_hash(raw, what)


def combine(hash_fn: HashFn, left: Hash, right: Hash) -> Hash:
    """Apply *hash_fn* and check that it honoured the 32-byte contract."""
    return ensure_hash(hash_fn(left, right), "hash_fn output")
