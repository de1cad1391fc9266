"""Pydantic models for Merkle inclusion and exclusion proofs.

Hashes are held as raw 32-byte ``bytes`` in Python and serialised as
lowercase hex in JSON, so a proof produced by one process can be handed
to a verifier elsewhere as plain JSON.  Hash fields accept either form on
input.

All proof models carry a ``proof_version`` field.  Use
``export_json_schemas()`` to emit versioned JSON Schema definitions.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)

from agnostic_merkle.errors import CapacityExceededError, IndexOutOfRangeError
from agnostic_merkle.hashing import ensure_hash, unhex

SCHEMA_VERSION = "1.0"


def _coerce_hash(value: object) -> bytes:
    if isinstance(value, str):
        return unhex(value)
    return ensure_hash(value)


HashField = Annotated[
    bytes,
    BeforeValidator(_coerce_hash),
    PlainSerializer(lambda value: value.hex(), return_type=str, when_used="json"),
]

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Side(str, Enum):
    """Operand position a sibling hash occupied when it was combined."""

    LEFT = "left"
    RIGHT = "right"


# ---------------------------------------------------------------------------
# Inclusion proof
# ---------------------------------------------------------------------------


class ProofNode(BaseModel):
    """One sibling on the path from a leaf to the root."""

    model_config = ConfigDict(frozen=True)

    data: HashField = Field(..., description="Hex-encoded sibling hash at this level")
    side: Side = Field(
        ..., description="Whether the sibling is the 'left' or 'right' combine operand"
    )


class MerkleProof(BaseModel):
    """Inclusion proof: sibling nodes ordered from the leaf level to the root.

    The node list doubles as a bounded container.  When ``capacity`` is set,
    ``append`` refuses to grow past it; with ``capacity=None`` the proof is
    an ordinary growable sequence.

    ``leaf_index`` and ``tree_size`` are informational metadata recorded by
    the prover.  Replaying the proof does not read them; strict exclusion
    verification checks them against the node sides.
    """

    proof_version: str = SCHEMA_VERSION
    nodes: list[ProofNode] = Field(
        default_factory=list, description="Sibling nodes from leaf to root"
    )
    capacity: int | None = Field(
        default=None, ge=0, description="Maximum number of nodes, or null for unbounded"
    )
    leaf_index: int | None = Field(default=None, ge=0)
    tree_size: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _nodes_within_capacity(self) -> "MerkleProof":
        if self.capacity is not None and len(self.nodes) > self.capacity:
            raise ValueError(
                f"proof holds {len(self.nodes)} nodes but capacity is {self.capacity}"
            )
        return self

    @classmethod
    def empty(cls, capacity: int | None = None, **metadata: int | None) -> "MerkleProof":
        return cls(capacity=capacity, **metadata)

    @property
    def length(self) -> int:
        return len(self.nodes)

    @property
    def siblings(self) -> list[bytes]:
        return [node.data for node in self.nodes]

    @property
    def sides(self) -> list[Side]:
        return [node.side for node in self.nodes]

    def append(self, node: ProofNode) -> None:
        """Add *node* at the end of the path.

        Raises:
            CapacityExceededError: the proof already holds ``capacity`` nodes.
        """
        if self.capacity is not None and len(self.nodes) >= self.capacity:
            raise CapacityExceededError(f"proof is full (capacity {self.capacity})")
        self.nodes.append(node)

    def get(self, index: int) -> ProofNode:
        if index < 0 or index >= len(self.nodes):
            raise IndexOutOfRangeError(
                f"proof node index {index} out of range [0, {len(self.nodes)})"
            )
        return self.nodes[index]


# ---------------------------------------------------------------------------
# Exclusion proof
# ---------------------------------------------------------------------------


class NeighborWitness(BaseModel):
    """A leaf present in the tree together with its inclusion proof."""

    leaf: HashField
    proof: MerkleProof


class ExclusionProof(BaseModel):
    """Non-membership argument for ``target`` over a sorted leaf set.

    ``left`` and ``right`` are the sorted neighbours of the target.  One of
    them may be absent only when the target falls outside the leaf range,
    and such a proof is accepted only by strict (``tree_size``) verification.
    """

    proof_version: str = SCHEMA_VERSION
    target: HashField
    left: NeighborWitness | None = None
    right: NeighborWitness | None = None


# ---------------------------------------------------------------------------
# JSON Schema export
# ---------------------------------------------------------------------------

_SCHEMA_MODELS: dict[str, type[BaseModel]] = {
    "ProofNode": ProofNode,
    "MerkleProof": MerkleProof,
    "NeighborWitness": NeighborWitness,
    "ExclusionProof": ExclusionProof,
}


def export_json_schemas(output_dir: str | Path | None = None) -> dict[str, dict]:
    """Generate versioned JSON Schema definitions for the proof models.

    If *output_dir* is provided, each schema is also written to
    ``<output_dir>/<ModelName>.v<version>.schema.json``.

    Returns a dict mapping model name to its JSON Schema dict.
    """
    schemas: dict[str, dict] = {}
    for name, model_cls in _SCHEMA_MODELS.items():
        schema = model_cls.model_json_schema()
        schema["$id"] = f"urn:agnostic-merkle:schema:{name}:v{SCHEMA_VERSION}"
        schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
        schemas[name] = schema

    if output_dir is not None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for name, schema in schemas.items():
            path = out / f"{name}.v{SCHEMA_VERSION}.schema.json"
            path.write_text(json.dumps(schema, indent=2) + "\n")

    return schemas
