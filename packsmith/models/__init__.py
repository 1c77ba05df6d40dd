"""Packsmith data models — all Pydantic v2, all frozen (immutable)."""

from packsmith.models.context import BuildConfig, BuildContext, BuildPaths
from packsmith.models.filedef import CacheEntry, FileDef, HashConstraint, PublishedLink
from packsmith.models.manifest import ManifestDependency, ModpackManifest
from packsmith.models.pipeline import PipelineRun, StageRecord, StageStatus

__all__ = [
    # manifest
    "ManifestDependency",
    "ModpackManifest",
    # fetch descriptors
    "HashConstraint",
    "FileDef",
    "CacheEntry",
    "PublishedLink",
    # context
    "BuildPaths",
    "BuildConfig",
    "BuildContext",
    # pipeline
    "StageStatus",
    "StageRecord",
    "PipelineRun",
]
