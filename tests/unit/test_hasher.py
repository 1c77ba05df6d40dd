"""Tests for hasher — file digests and stage fingerprints."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from packsmith.core.hasher import (
    canonical_json_bytes,
    compute_input_hash,
    compute_output_hash,
    file_digest,
    file_digests,
    new_hashers,
)


class TestCanonicalJson:
    def test_key_order_does_not_matter(self):
        assert canonical_json_bytes({"b": 1, "a": [2]}) == canonical_json_bytes({"a": [2], "b": 1})

    def test_compact_output(self):
        assert canonical_json_bytes({"a": 1, "b": "x"}) == b'{"a":1,"b":"x"}'


class TestFingerprints:
    def test_input_hash_depends_on_stage_id(self):
        inputs = {"manifest": {"name": "P"}}
        assert compute_input_hash("copy_overrides", inputs) != compute_input_hash(
            "transform_version", inputs
        )

    def test_input_and_output_hashes_differ(self):
        assert compute_input_hash("s", {}) != compute_output_hash("s", {})

    def test_stable_across_calls(self):
        assert compute_output_hash("s", {"x": [1, 2]}) == compute_output_hash("s", {"x": [1, 2]})


class TestFileDigests:
    def test_all_algorithms_in_one_pass(self, tmp_path: Path):
        path = tmp_path / "a.jar"
        path.write_bytes(b"jar bytes")

        digests = file_digests(path, ["sha1", "sha256"])

        assert digests == {
            "sha1": hashlib.sha1(b"jar bytes").hexdigest(),
            "sha256": hashlib.sha256(b"jar bytes").hexdigest(),
        }

    def test_single_algorithm(self, tmp_path: Path):
        path = tmp_path / "empty"
        path.write_bytes(b"")
        assert file_digest(path, "sha1") == hashlib.sha1(b"").hexdigest()

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unsupported hash algorithm"):
            new_hashers(["crc-nonexistent"])
