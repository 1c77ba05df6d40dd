"""Build configuration — env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
PACKSMITH_* environment variables. The changelog toggle additionally
honours the bare ``SKIP_CHANGELOG`` variable used by existing CI setups.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from packsmith.models.context import BuildConfig, BuildPaths

_FALSY_FLAGS = frozenset({"", "0", "false", "no", "off", "n", "f"})


class BuildSettings(BaseSettings):
    """Build settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export PACKSMITH_LOG_LEVEL=DEBUG
        export PACKSMITH_CACHE_DIRECTORY=/var/cache/packsmith
        export PACKSMITH_MAX_CONCURRENT_DOWNLOADS=8
        export SKIP_CHANGELOG=1

    Or via .env file::

        PACKSMITH_SHARED_DEST_DIRECTORY=out/shared
        PACKSMITH_PIPELINE_DEADLINE_SECONDS=600
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PACKSMITH_",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    log_level: str = "INFO"

    # Layout
    root_directory: Path = Path(".")
    shared_dest_directory: Path = Path("build/shared")
    temp_directory: Path = Path("build/temp")
    mod_dest_directory: Path = Path("build/shared")
    cache_directory: Path = Path(".cache/packsmith")
    manifest_path: Path = Path("manifest.json")

    # Dependency fetching
    max_concurrent_downloads: int = Field(default=4, ge=1)
    download_max_attempts: int = Field(default=3, ge=1)
    download_backoff_seconds: float = Field(default=0.5, ge=0)
    download_timeout_seconds: float = Field(default=60.0, gt=0)
    dependency_hash_algorithm: str = "sha1"
    link_mode: Literal["symlink", "copy"] = "symlink"

    # Pipeline
    pipeline_deadline_seconds: float | None = None
    skip_changelog: bool = Field(
        default=False,
        validation_alias=AliasChoices("skip_changelog", "SKIP_CHANGELOG", "PACKSMITH_SKIP_CHANGELOG"),
    )

    @field_validator("skip_changelog", mode="before")
    @classmethod
    def _truthy_flag(cls, value: object) -> object:
        """CI sets the flag to arbitrary strings; only known falsy ones disable it."""
        if isinstance(value, str):
            return value.strip().lower() not in _FALSY_FLAGS
        return value

    # Static file staging
    copy_to_shared_dir_globs: list[str] = ["overrides/**/*"]
    pack_mode_switcher_globs: list[str] = ["pack-mode-switcher.*"]
    version_files: list[str] = ["config/**/*.cfg", "README.md"]
    version_placeholder: str = "@VERSION@"
    quest_book_globs: list[str] = ["config/betterquesting/**/*.json"]
    quest_book_strip_keys: list[str] = ["editor_only", "snap_to_grid"]
    changelog_source: str = "CHANGELOG.md"

    def to_paths(self) -> BuildPaths:
        """Resolve the directory layout relative to ``root_directory``."""
        root = self.root_directory.resolve()

        def _under_root(path: Path) -> Path:
            return path if path.is_absolute() else root / path

        return BuildPaths(
            root_dir=root,
            shared_dest_dir=_under_root(self.shared_dest_directory),
            temp_dir=_under_root(self.temp_directory),
            mod_dest_dir=_under_root(self.mod_dest_directory),
            cache_dir=_under_root(self.cache_directory),
        )

    def to_build_config(self) -> BuildConfig:
        """Snapshot the staging/transform settings for a build context."""
        return BuildConfig(
            copy_to_shared_dir_globs=list(self.copy_to_shared_dir_globs),
            pack_mode_switcher_globs=list(self.pack_mode_switcher_globs),
            version_files=list(self.version_files),
            version_placeholder=self.version_placeholder,
            quest_book_globs=list(self.quest_book_globs),
            quest_book_strip_keys=list(self.quest_book_strip_keys),
            changelog_source=self.changelog_source,
            dependency_hash_algorithm=self.dependency_hash_algorithm,
        )
