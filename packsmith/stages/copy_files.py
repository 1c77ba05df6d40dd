"""Static file staging — overrides and pack-mode switcher scripts.

Files are copied, never linked, so later transform stages can rewrite
them without touching the source tree.
"""

from __future__ import annotations

from packsmith.core.filesystem import copy_globs
from packsmith.models.context import BuildContext
from packsmith.stages.base import BaseStage


class CopyOverridesStage(BaseStage):
    """Copy the modpack overrides into the shared overrides folder."""

    @property
    def stage_id(self) -> str:
        return "copy_overrides"

    @property
    def display_name(self) -> str:
        return "Copy Overrides"

    def execute(self, context: BuildContext) -> BuildContext:
        copied = copy_globs(
            context.paths.root_dir,
            context.build_config.copy_to_shared_dir_globs,
            context.paths.overrides_dir(context.manifest),
        )
        return context.evolve(notes={**context.notes, "overrides_copied": len(copied)})


class CopyPackModeSwitchersStage(BaseStage):
    """Copy the pack-mode switcher scripts next to the overrides."""

    @property
    def stage_id(self) -> str:
        return "copy_pack_mode_switchers"

    @property
    def display_name(self) -> str:
        return "Copy Pack Mode Switchers"

    def execute(self, context: BuildContext) -> BuildContext:
        copied = copy_globs(
            context.paths.root_dir,
            context.build_config.pack_mode_switcher_globs,
            context.paths.overrides_dir(context.manifest),
        )
        return context.evolve(notes={**context.notes, "switchers_copied": len(copied)})
