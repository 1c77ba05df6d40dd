"""Quest-book rewriting.

Quest books are exported from the in-game editor with editor-only state.
The shipped copy drops those keys and is re-serialized with sorted keys so
that repeated builds produce byte-identical files.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from packsmith.errors import FilesystemError, TransformError

logger = logging.getLogger(__name__)


def _strip(node: Any, keys: frozenset[str]) -> Any:
    if isinstance(node, dict):
        return {k: _strip(v, keys) for k, v in node.items() if k not in keys}
    if isinstance(node, list):
        return [_strip(item, keys) for item in node]
    return node


def transform_quest_book(path: Path, strip_keys: Iterable[str] = ()) -> bool:
    """Rewrite the quest-book JSON at *path* in place.

    Returns ``False`` when *path* does not exist.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.debug("Skipping missing quest book %s", path)
        return False
    except json.JSONDecodeError as exc:
        raise TransformError(f"Quest book {path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise FilesystemError(path, f"cannot read: {exc.strerror or exc}") from exc

    cleaned = _strip(data, frozenset(strip_keys))
    try:
        path.write_text(
            json.dumps(cleaned, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise FilesystemError(path, f"cannot write: {exc.strerror or exc}") from exc
    logger.debug("Rewrote quest book %s", path)
    return True
