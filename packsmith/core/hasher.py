"""Hashing helpers for artifact verification and stage fingerprints.

File digests are computed in a single streaming pass for every requested
algorithm. Canonical JSON hashing is used for stage input/output
fingerprints recorded in the run summary.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

CHUNK_SIZE = 1024 * 1024


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_input_hash(stage_id: str, inputs: dict[str, Any]) -> str:
    """SHA-256 of canonical(stage_id + inputs)."""
    return sha256_hex(canonical_json_bytes({"stage_id": stage_id, "inputs": inputs}))


def compute_output_hash(stage_id: str, outputs: dict[str, Any]) -> str:
    """SHA-256 of canonical(stage_id + outputs)."""
    return sha256_hex(canonical_json_bytes({"stage_id": stage_id, "outputs": outputs}))


def new_hashers(algorithms: Iterable[str]) -> dict[str, Any]:
    """Create one ``hashlib`` object per algorithm name.

    Raises ``ValueError`` for algorithms ``hashlib`` does not provide.
    """
    hashers: dict[str, Any] = {}
    for algo in algorithms:
        try:
            hashers[algo] = hashlib.new(algo)
        except ValueError:
            raise ValueError(f"Unsupported hash algorithm: {algo!r}") from None
    return hashers


def file_digests(path: Path, algorithms: Iterable[str]) -> dict[str, str]:
    """Hex digests of the file at *path* for each algorithm, in one pass."""
    hashers = new_hashers(algorithms)
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            for hasher in hashers.values():
                hasher.update(chunk)
    return {algo: hasher.hexdigest() for algo, hasher in hashers.items()}


def file_digest(path: Path, algorithm: str) -> str:
    """Hex digest of the file at *path* for a single algorithm."""
    return file_digests(path, [algorithm])[algorithm]
