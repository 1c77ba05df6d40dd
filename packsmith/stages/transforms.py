"""Text transform stages over the staged overrides folder."""

from __future__ import annotations

import logging
from pathlib import Path

from packsmith.models.context import BuildContext
from packsmith.stages.base import BaseStage
from packsmith.transforms.quest_book import transform_quest_book
from packsmith.transforms.version import transform_version

logger = logging.getLogger(__name__)


def _matching_files(base: Path, patterns: list[str]) -> list[Path]:
    found: dict[Path, None] = {}
    for pattern in patterns:
        for path in sorted(base.glob(pattern)):
            if path.is_file():
                found[path] = None
    return list(found)


class TransformVersionStage(BaseStage):
    """Stamp the manifest version into configured override files."""

    @property
    def stage_id(self) -> str:
        return "transform_version"

    @property
    def display_name(self) -> str:
        return "Transform Version"

    def execute(self, context: BuildContext) -> BuildContext:
        version = context.manifest.version
        if not version:
            logger.warning("Manifest has no version; leaving placeholders untouched")
            return context

        config = context.build_config
        stamped = [
            path
            for path in _matching_files(context.paths.overrides_dir(context.manifest), config.version_files)
            if transform_version(path, version, config.version_placeholder)
        ]
        logger.info("Stamped version %s into %d file(s)", version, len(stamped))
        return context.evolve(notes={**context.notes, "version_stamped": len(stamped)})


class TransformQuestBookStage(BaseStage):
    """Rewrite quest-book JSON files for shipping."""

    @property
    def stage_id(self) -> str:
        return "transform_quest_book"

    @property
    def display_name(self) -> str:
        return "Transform Quest Book"

    def execute(self, context: BuildContext) -> BuildContext:
        config = context.build_config
        books = _matching_files(context.paths.overrides_dir(context.manifest), config.quest_book_globs)
        for path in books:
            transform_quest_book(path, config.quest_book_strip_keys)
        logger.info("Rewrote %d quest book file(s)", len(books))
        return context.evolve(notes={**context.notes, "quest_books": len(books)})
