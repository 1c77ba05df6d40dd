"""Idempotent filesystem lifecycle operations and glob copying.

``FilesystemLifecycleManager.clean`` has force semantics (missing targets
are fine) and ``ensure_dir`` never touches an existing directory, so the
stages built on them can be re-run from scratch after a failed build.
"""

from __future__ import annotations

import fnmatch
import glob
import logging
import shutil
from pathlib import Path, PurePosixPath

from packsmith.errors import FilesystemError

logger = logging.getLogger(__name__)

_GLOB_MAGIC = frozenset("*?[{")


class FilesystemLifecycleManager:
    """Directory cleanup and creation for build output trees."""

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def clean(self, pattern: Path | str) -> list[Path]:
        """Delete every entry matching *pattern*.

        No matches (including a missing parent directory) is not an error.
        Returns the paths that were removed.
        """
        removed: list[Path] = []
        for match in sorted(glob.glob(str(pattern), recursive=True)):
            path = Path(match)
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink(missing_ok=True)
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise FilesystemError(path, f"cannot remove: {exc.strerror or exc}") from exc
            removed.append(path)

        logger.debug("clean(%s): removed %d entries", pattern, len(removed))
        return removed

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def ensure_dir(self, path: Path) -> Path:
        """Create *path* (and missing ancestors) only if it does not exist.

        An existing directory is left untouched, contents included.
        """
        path = Path(path)
        if path.is_dir():
            return path
        if path.exists():
            raise FilesystemError(path, "exists and is not a directory")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(path, f"cannot create directory: {exc.strerror or exc}") from exc
        logger.debug("Created directory %s", path)
        return path


# ----------------------------------------------------------------------
# Glob copying
# ----------------------------------------------------------------------


def glob_base(pattern: str) -> PurePosixPath:
    """The leading, non-glob part of *pattern* (``a/b/**/*.cfg`` -> ``a/b``)."""
    base: list[str] = []
    for part in PurePosixPath(pattern).parts[:-1]:
        if _GLOB_MAGIC.intersection(part):
            break
        base.append(part)
    return PurePosixPath(*base) if base else PurePosixPath(".")


def copy_globs(cwd: Path, patterns: list[str], destination: Path) -> list[Path]:
    """Copy files matching *patterns* (relative to *cwd*) into *destination*.

    Paths keep their layout below each pattern's non-glob base. Patterns
    starting with ``!`` exclude previously matched files. Directories are
    created as needed; copies are byte-for-byte.
    """
    includes = [p for p in patterns if not p.startswith("!")]
    excludes = [p[1:] for p in patterns if p.startswith("!")]

    copied: list[Path] = []
    for pattern in includes:
        base = glob_base(pattern)
        for source in sorted(cwd.glob(pattern)):
            if not source.is_file():
                continue
            rel = PurePosixPath(source.relative_to(cwd).as_posix())
            if any(fnmatch.fnmatchcase(str(rel), ex) for ex in excludes):
                logger.debug("Excluded %s", rel)
                continue

            target = destination / rel.relative_to(base)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
            except OSError as exc:
                raise FilesystemError(target, f"cannot copy from {source}: {exc.strerror or exc}") from exc
            copied.append(target)

    logger.info("Copied %d file(s) into %s", len(copied), destination)
    return copied
