"""Changelog generation."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from packsmith.errors import FilesystemError
from packsmith.models.manifest import ModpackManifest

logger = logging.getLogger(__name__)


def write_changelog(
    destination: Path, manifest: ModpackManifest, source: Path | None = None
) -> Path:
    """Write the build's changelog to *destination*.

    Uses *source* verbatim when it exists; otherwise generates a stub
    entry for the manifest's version.
    """
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if source is not None and source.is_file():
            shutil.copyfile(source, destination)
            logger.info("Copied changelog from %s", source)
        else:
            title = " ".join(p for p in (manifest.name, manifest.version) if p) or "Unreleased"
            destination.write_text(
                f"# Changelog\n\n## {title}\n\nNo changelog entries were provided.\n",
                encoding="utf-8",
            )
            logger.info("Generated changelog for %s", title)
    except OSError as exc:
        raise FilesystemError(destination, f"cannot write changelog: {exc.strerror or exc}") from exc
    return destination
