"""Configuration for the Merkle engine and its CLI.

All settings are driven by environment variables with sensible defaults.
The engine itself only consults ``default_proof_capacity`` and
``trace_levels``; the rest is read by the command line interface.
"""

from __future__ import annotations

import os


def _get_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return int(val)


def _get_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


class MerkleSettings:
    # --- Proof derivation ---
    # Maximum number of nodes in a derived proof. 0 means unbounded.
    default_proof_capacity: int = _get_int("MERKLE_PROOF_CAPACITY", 0)
    # If True, log every level of every constructed tree at DEBUG.
    trace_levels: bool = _get_bool("MERKLE_TRACE_LEVELS", False)

    # --- CLI ---
    # Name of the combiner used when --hash is not given.
    cli_combiner: str = os.getenv("MERKLE_CLI_COMBINER", "sha256-node")
    log_level: str = os.getenv("MERKLE_LOG_LEVEL", "INFO")

    def proof_capacity(self, requested: int | None = None) -> int | None:
        """Resolve an explicit capacity against the configured default.

        Returns ``None`` for an unbounded proof.
        """
        if requested is not None:
            return requested
        if self.default_proof_capacity > 0:
            return self.default_proof_capacity
        return None


settings = MerkleSettings()
