"""Idempotent publishing of cached artifacts into the build output.

A destination is materialized as a symlink to the cached file or, where
linking is unsupported or disabled, as a byte-for-byte copy. Re-publishing
the same pair is a no-op; a destination that already resolves somewhere
else is a conflict and is never overwritten.
"""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
from pathlib import Path
from typing import Literal

from packsmith.errors import ConflictError, FilesystemError
from packsmith.models.filedef import PublishedLink

logger = logging.getLogger(__name__)


class LinkPublisher:
    """Link-or-copy publisher.

    Parameters
    ----------
    link_mode:
        ``"symlink"`` (default) links, falling back to a copy when the
        platform refuses; ``"copy"`` always copies.
    """

    def __init__(self, link_mode: Literal["symlink", "copy"] = "symlink") -> None:
        self.link_mode = link_mode

    def publish(self, destination: Path, source: Path) -> PublishedLink:
        """Expose *source* at *destination*.

        Raises ``ConflictError`` if *destination* exists and resolves to a
        different source, ``FilesystemError`` on any other I/O failure.
        """
        destination = Path(destination)
        source = Path(source).resolve()

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(destination.parent, f"cannot create directory: {exc}") from exc

        if destination.is_symlink() or destination.exists():
            return self._check_existing(destination, source)

        if self.link_mode == "symlink":
            try:
                os.symlink(source, destination)
            except FileExistsError:
                # Lost a race with another publisher for the same name.
                return self._check_existing(destination, source)
            except (OSError, NotImplementedError) as exc:
                logger.warning(
                    "Cannot symlink %s (%s); copying instead", destination, exc
                )
            else:
                logger.debug("Linked %s -> %s", destination, source)
                return PublishedLink(destination=destination, source=source, mode="symlink")

        # "xb" never writes through an existing file or link.
        try:
            with source.open("rb") as src, destination.open("xb") as dst:
                shutil.copyfileobj(src, dst)
        except FileExistsError:
            return self._check_existing(destination, source)
        except OSError as exc:
            raise FilesystemError(destination, f"cannot copy from {source}: {exc}") from exc
        logger.debug("Copied %s -> %s", source, destination)
        return PublishedLink(destination=destination, source=source, mode="copy")

    def _check_existing(self, destination: Path, source: Path) -> PublishedLink:
        if destination.is_symlink():
            existing = Path(os.path.realpath(destination))
            if existing == source:
                return PublishedLink(destination=destination, source=source, mode="symlink")
            raise ConflictError(destination, existing, source)

        # A regular file: only a previous copy of the same artifact is ours.
        try:
            same = destination.is_file() and filecmp.cmp(destination, source, shallow=False)
        except OSError as exc:
            raise FilesystemError(destination, f"cannot compare with {source}: {exc}") from exc
        if same:
            return PublishedLink(destination=destination, source=source, mode="copy")
        raise ConflictError(destination, None, source)
