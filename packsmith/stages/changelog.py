"""Changelog stage — skipped when ``SKIP_CHANGELOG`` is truthy."""

from __future__ import annotations

from packsmith.models.context import BuildContext
from packsmith.stages.base import BaseStage
from packsmith.transforms.changelog import write_changelog

CHANGELOG_FILE_NAME = "CHANGELOG.md"


class CreateChangelogStage(BaseStage):
    """Copy or generate the changelog into the shared destination."""

    @property
    def stage_id(self) -> str:
        return "create_changelog"

    @property
    def display_name(self) -> str:
        return "Create Changelog"

    def skip_reason(self, context: BuildContext) -> str | None:
        if context.skip_changelog:
            return "SKIP_CHANGELOG is set"
        return None

    def execute(self, context: BuildContext) -> BuildContext:
        write_changelog(
            context.paths.shared_dest_dir / CHANGELOG_FILE_NAME,
            context.manifest,
            source=context.paths.root_dir / context.build_config.changelog_source,
        )
        return context
