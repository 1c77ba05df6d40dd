"""Tests for LinkPublisher — link-or-copy, idempotence, conflicts."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from packsmith.core.link_publisher import LinkPublisher
from packsmith.errors import ConflictError


@pytest.fixture
def artifacts(tmp_path: Path) -> tuple[Path, Path]:
    store = tmp_path / "store"
    store.mkdir()
    a = store / "a"
    b = store / "b"
    a.write_bytes(b"artifact A")
    b.write_bytes(b"artifact B")
    return a, b


class TestSymlinkMode:
    def test_publishes_a_symlink(self, tmp_path: Path, artifacts):
        src_a, _ = artifacts
        dest = tmp_path / "out" / "mods" / "a.jar"

        link = LinkPublisher().publish(dest, src_a)

        assert dest.is_symlink()
        assert Path(os.path.realpath(dest)) == src_a.resolve()
        assert link.mode == "symlink"
        assert link.source == src_a.resolve()

    def test_republishing_same_pair_is_a_no_op(self, tmp_path: Path, artifacts):
        src_a, _ = artifacts
        dest = tmp_path / "mods" / "a.jar"
        publisher = LinkPublisher()

        first = publisher.publish(dest, src_a)
        second = publisher.publish(dest, src_a)

        assert first == second
        assert Path(os.path.realpath(dest)) == src_a.resolve()

    def test_different_source_is_a_conflict(self, tmp_path: Path, artifacts):
        src_a, src_b = artifacts
        dest = tmp_path / "mods" / "a.jar"
        publisher = LinkPublisher()
        publisher.publish(dest, src_a)

        with pytest.raises(ConflictError) as excinfo:
            publisher.publish(dest, src_b)

        assert excinfo.value.existing == src_a.resolve()
        assert Path(os.path.realpath(dest)) == src_a.resolve()

    def test_hand_placed_file_is_never_overwritten(self, tmp_path: Path, artifacts):
        src_a, _ = artifacts
        dest = tmp_path / "mods" / "a.jar"
        dest.parent.mkdir()
        dest.write_bytes(b"hand placed")

        with pytest.raises(ConflictError):
            LinkPublisher().publish(dest, src_a)
        assert dest.read_bytes() == b"hand placed"

    def test_falls_back_to_copy_when_links_are_unsupported(
        self, tmp_path: Path, artifacts, monkeypatch: pytest.MonkeyPatch
    ):
        src_a, _ = artifacts
        dest = tmp_path / "mods" / "a.jar"

        def _refuse(*args, **kwargs):
            raise OSError("symbolic links are not supported")

        monkeypatch.setattr(os, "symlink", _refuse)
        link = LinkPublisher().publish(dest, src_a)

        assert link.mode == "copy"
        assert not dest.is_symlink()
        assert dest.read_bytes() == b"artifact A"


class TestCopyMode:
    def test_copies_bytes(self, tmp_path: Path, artifacts):
        src_a, _ = artifacts
        dest = tmp_path / "mods" / "a.jar"

        link = LinkPublisher("copy").publish(dest, src_a)

        assert link.mode == "copy"
        assert not dest.is_symlink()
        assert dest.read_bytes() == b"artifact A"

    def test_recopying_identical_bytes_is_a_no_op(self, tmp_path: Path, artifacts):
        src_a, _ = artifacts
        dest = tmp_path / "mods" / "a.jar"
        publisher = LinkPublisher("copy")
        publisher.publish(dest, src_a)
        mtime = dest.stat().st_mtime_ns

        publisher.publish(dest, src_a)

        assert dest.stat().st_mtime_ns == mtime

    def test_different_bytes_are_a_conflict(self, tmp_path: Path, artifacts):
        src_a, src_b = artifacts
        dest = tmp_path / "mods" / "a.jar"
        publisher = LinkPublisher("copy")
        publisher.publish(dest, src_a)

        with pytest.raises(ConflictError) as excinfo:
            publisher.publish(dest, src_b)

        assert excinfo.value.existing is None
        assert dest.read_bytes() == b"artifact A"
