"""CLI entrypoint for the Merkle engine.

Usage:
    agnostic-merkle root LEAF...                          # Print the root
    agnostic-merkle prove --index 2 LEAF...               # Print a proof as JSON
    agnostic-merkle verify --proof P.json --leaf L --root R
    agnostic-merkle exclude TARGET LEAF...                # Sorted-set exclusion proof
    agnostic-merkle verify-exclusion --proof E.json --root R [--tree-size N]
    agnostic-merkle schemas [--out DIR]

Leaves, targets and roots are 32-byte hex strings.  Exit status is 0 on
success, 1 when a proof does not verify, and 2 on bad input.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from agnostic_merkle.combiners import COMBINERS, get_combiner
from agnostic_merkle.config import settings
from agnostic_merkle.errors import MerkleError
from agnostic_merkle.exclusion import make_exclusion_proof, verify_exclusion
from agnostic_merkle.hashing import unhex
from agnostic_merkle.schemas import ExclusionProof, MerkleProof, export_json_schemas
from agnostic_merkle.tree import MerkleTree, static_verify

logger = logging.getLogger("agnostic_merkle.cli")


def _read_leaves(args: argparse.Namespace) -> list[bytes]:
    values = list(args.leaves)
    if args.leaves_file:
        text = Path(args.leaves_file).read_text()
        values.extend(line for line in text.splitlines() if line.strip())
    return [unhex(v, f"leaf {i}") for i, v in enumerate(values)]


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text()


def _add_leaf_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("leaves", nargs="*", metavar="LEAF", help="Hex-encoded leaf hash")
    parser.add_argument(
        "--leaves-file",
        metavar="FILE",
        help="File with one hex-encoded leaf per line (appended after LEAF arguments)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agnostic-merkle", description="Hash-agnostic Merkle tree engine"
    )
    parser.add_argument(
        "--hash",
        default=settings.cli_combiner,
        choices=sorted(COMBINERS),
        help=f"Combining function (default: {settings.cli_combiner})",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_root = sub.add_parser("root", help="Compute the root over the leaves")
    _add_leaf_args(p_root)

    p_prove = sub.add_parser("prove", help="Derive an inclusion proof")
    target = p_prove.add_mutually_exclusive_group(required=True)
    target.add_argument("--index", type=int, help="Index of the leaf to prove")
    target.add_argument("--leaf", help="Hex-encoded leaf to prove")
    p_prove.add_argument("--capacity", type=int, help="Maximum proof length")
    _add_leaf_args(p_prove)

    p_verify = sub.add_parser("verify", help="Verify an inclusion proof")
    p_verify.add_argument("--proof", required=True, help="Proof JSON file, or - for stdin")
    p_verify.add_argument("--leaf", required=True, help="Hex-encoded leaf")
    p_verify.add_argument("--root", required=True, help="Hex-encoded expected root")

    p_exclude = sub.add_parser("exclude", help="Prove a target is absent from the sorted leaves")
    p_exclude.add_argument("target", help="Hex-encoded value to prove absent")
    p_exclude.add_argument("--capacity", type=int, help="Maximum proof length")
    _add_leaf_args(p_exclude)

    p_vex = sub.add_parser("verify-exclusion", help="Verify an exclusion proof")
    p_vex.add_argument("--proof", required=True, help="Exclusion proof JSON file, or - for stdin")
    p_vex.add_argument("--root", required=True, help="Hex-encoded expected root")
    p_vex.add_argument(
        "--tree-size",
        type=int,
        help="Number of leaves; enables the neighbour adjacency check",
    )

    p_schemas = sub.add_parser("schemas", help="Export JSON Schemas for the proof models")
    p_schemas.add_argument("--out", metavar="DIR", help="Also write schema files to DIR")

    return parser


def _run(args: argparse.Namespace) -> int:
    hash_fn = get_combiner(args.hash)

    if args.command == "root":
        tree = MerkleTree(_read_leaves(args), hash_fn)
        print(tree.root.hex())
        return 0

    if args.command == "prove":
        tree = MerkleTree(_read_leaves(args), hash_fn)
        target = args.index if args.index is not None else unhex(args.leaf, "leaf")
        proof = tree.make_proof(target, capacity=args.capacity)
        logger.info("Proof for leaf %d has %d node(s)", proof.leaf_index, proof.length)
        print(proof.model_dump_json(indent=2))
        return 0

    if args.command == "verify":
        proof = MerkleProof.model_validate_json(_read_text(args.proof))
        ok = static_verify(unhex(args.leaf, "leaf"), proof, unhex(args.root, "root"), hash_fn)
        print("valid" if ok else "invalid")
        return 0 if ok else 1

    if args.command == "exclude":
        tree = MerkleTree.sorted_set(_read_leaves(args), hash_fn)
        proof = make_exclusion_proof(tree, unhex(args.target, "target"), capacity=args.capacity)
        logger.info("Exclusion proof against root %s (%d leaves)", tree.root.hex(), tree.size)
        print(proof.model_dump_json(indent=2))
        return 0

    if args.command == "verify-exclusion":
        proof = ExclusionProof.model_validate_json(_read_text(args.proof))
        ok = verify_exclusion(proof, unhex(args.root, "root"), hash_fn, tree_size=args.tree_size)
        print("valid" if ok else "invalid")
        return 0 if ok else 1

    schemas = export_json_schemas(args.out)
    if args.out is None:
        print(json.dumps(schemas, indent=2))
    else:
        logger.info("Wrote %d schema(s) to %s", len(schemas), args.out)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        return _run(args)
    except (MerkleError, ValueError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
