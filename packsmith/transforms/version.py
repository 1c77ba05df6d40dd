"""Version-string substitution."""

from __future__ import annotations

import logging
from pathlib import Path

from packsmith.errors import FilesystemError

logger = logging.getLogger(__name__)


def transform_version(path: Path, version: str, placeholder: str = "@VERSION@") -> bool:
    """Replace every *placeholder* in the text file at *path* with *version*.

    Returns ``True`` when the file was rewritten. Files that are not UTF-8
    text, or that contain no placeholder, are left alone.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.debug("Skipping non-text file %s", path)
        return False
    except FileNotFoundError:
        logger.debug("Skipping missing file %s", path)
        return False
    except OSError as exc:
        raise FilesystemError(path, f"cannot read: {exc.strerror or exc}") from exc

    if placeholder not in text:
        return False

    try:
        path.write_text(text.replace(placeholder, version), encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(path, f"cannot write: {exc.strerror or exc}") from exc
    logger.debug("Stamped version %s into %s", version, path)
    return True
