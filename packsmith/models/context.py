"""Build context models — the value threaded through every stage.

Stages never mutate a context in place; they return an updated copy via
``BuildContext.evolve()``. A mutation such as consuming the manifest's
dependency list is therefore visible only to stages that run afterwards.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from packsmith.models.filedef import PublishedLink
from packsmith.models.manifest import ModpackManifest


class BuildPaths(BaseModel):
    """Resolved directory layout for one build."""

    model_config = ConfigDict(frozen=True)

    root_dir: Path
    shared_dest_dir: Path
    temp_dir: Path
    mod_dest_dir: Path
    cache_dir: Path

    def overrides_dir(self, manifest: ModpackManifest) -> Path:
        return self.shared_dest_dir / manifest.overrides

    @property
    def mods_dir(self) -> Path:
        return self.mod_dest_dir / "mods"


class BuildConfig(BaseModel):
    """Static staging and transform settings."""

    model_config = ConfigDict(frozen=True)

    copy_to_shared_dir_globs: list[str] = []
    pack_mode_switcher_globs: list[str] = []
    version_files: list[str] = []
    version_placeholder: str = "@VERSION@"
    quest_book_globs: list[str] = []
    quest_book_strip_keys: list[str] = []
    changelog_source: str = "CHANGELOG.md"
    dependency_hash_algorithm: str = "sha1"


class BuildContext(BaseModel):
    """Immutable per-run state passed from stage to stage."""

    model_config = ConfigDict(frozen=True)

    paths: BuildPaths
    build_config: BuildConfig = BuildConfig()
    manifest: ModpackManifest = ModpackManifest()
    skip_changelog: bool = False
    deadline: float | None = None  # time.monotonic() value
    published_links: tuple[PublishedLink, ...] = ()
    notes: dict[str, Any] = Field(default_factory=dict)

    def evolve(self, **changes: Any) -> BuildContext:
        """Return a copy of this context with *changes* applied."""
        return self.model_copy(update=changes)

    def remaining_seconds(self) -> float | None:
        """Seconds left before the pipeline deadline, or ``None`` if unbounded."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def fingerprint_payload(self) -> dict[str, Any]:
        """Deterministic summary used for stage input/output hashes."""
        return {
            "manifest": self.manifest.to_json_dict(),
            "skip_changelog": self.skip_changelog,
            "published_links": [
                link.model_dump(mode="json") for link in self.published_links
            ],
            "notes": self.notes,
        }
