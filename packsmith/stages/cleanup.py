"""Output lifecycle stages — clean stale output, then create directories.

Both stages are idempotent: cleaning a missing tree and creating an
existing directory succeed without side effects.
"""

from __future__ import annotations

from packsmith.models.context import BuildContext
from packsmith.stages.base import BaseStage


class SharedCleanupStage(BaseStage):
    """Remove everything below the shared destination and temp directories."""

    @property
    def stage_id(self) -> str:
        return "shared_cleanup"

    @property
    def display_name(self) -> str:
        return "Shared Cleanup"

    def execute(self, context: BuildContext) -> BuildContext:
        filesystem = self.require_services().filesystem
        for directory in (context.paths.shared_dest_dir, context.paths.temp_dir):
            # "*" skips dotfiles, so clear those explicitly.
            filesystem.clean(directory / "*")
            filesystem.clean(directory / ".*")
        return context


class CreateSharedDirsStage(BaseStage):
    """Ensure the shared destination and temp directories exist."""

    @property
    def stage_id(self) -> str:
        return "create_shared_dirs"

    @property
    def display_name(self) -> str:
        return "Create Shared Directories"

    def execute(self, context: BuildContext) -> BuildContext:
        filesystem = self.require_services().filesystem
        filesystem.ensure_dir(context.paths.shared_dest_dir)
        filesystem.ensure_dir(context.paths.temp_dir)
        return context
