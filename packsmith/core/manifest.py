"""Manifest loading and writing.

Thin I/O wrappers around ``ModpackManifest``; shape problems surface as
``ManifestShapeError`` with the offending field locations.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from packsmith.errors import FilesystemError, ManifestShapeError
from packsmith.models.manifest import ModpackManifest

logger = logging.getLogger(__name__)


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


def parse_manifest(data: Any) -> ModpackManifest:
    """Validate a decoded manifest document."""
    if not isinstance(data, dict):
        raise ManifestShapeError(
            f"Manifest must be a JSON object, got {type(data).__name__}"
        )
    try:
        return ModpackManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestShapeError(f"Malformed manifest: {_describe(exc)}") from exc


def load_manifest(path: Path) -> ModpackManifest:
    """Read and validate ``manifest.json`` from *path*."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(path, f"cannot read manifest: {exc.strerror or exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestShapeError(f"{path} is not valid JSON: {exc}") from exc

    manifest = parse_manifest(data)
    logger.debug("Loaded manifest %s %s from %s", manifest.name, manifest.version, path)
    return manifest


def write_manifest(manifest: ModpackManifest, path: Path) -> Path:
    """Serialize *manifest* to *path* as indented JSON."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(manifest.to_json_dict(), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise FilesystemError(path, f"cannot write manifest: {exc.strerror or exc}") from exc
    return path
