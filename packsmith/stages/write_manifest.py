"""Serialize the build's manifest into the shared output."""

from __future__ import annotations

from packsmith.core.manifest import write_manifest
from packsmith.errors import ManifestShapeError
from packsmith.models.context import BuildContext
from packsmith.stages.base import BaseStage

MANIFEST_FILE_NAME = "manifest.json"


class WriteManifestStage(BaseStage):
    """Write ``manifest.json`` to the shared destination.

    External dependencies are fetched and linked separately, so they must
    be consumed before the manifest is written; a manifest still carrying
    them is rejected.
    """

    @property
    def stage_id(self) -> str:
        return "write_manifest"

    @property
    def display_name(self) -> str:
        return "Write Manifest"

    def execute(self, context: BuildContext) -> BuildContext:
        if context.manifest.has_external_dependencies:
            raise ManifestShapeError(
                "externalDependencies must be resolved before the manifest is written"
            )
        write_manifest(context.manifest, context.paths.shared_dest_dir / MANIFEST_FILE_NAME)
        return context
