"""Packsmith pipeline stages — registry and named pipelines.

Both named pipelines are plain data: ordered lists of stage ids drawn from
one registry and turned into ``Pipeline`` values by ``build_pipeline()``.

Usage::

    from packsmith.stages import build_pipeline

    pipeline = build_pipeline("build", services)
    for stage in pipeline:
        context, record = stage.run_stage(context)
"""

from __future__ import annotations

from packsmith.stages.base import BaseStage, Pipeline, StageServices
from packsmith.stages.changelog import CreateChangelogStage
from packsmith.stages.cleanup import CreateSharedDirsStage, SharedCleanupStage
from packsmith.stages.copy_files import CopyOverridesStage, CopyPackModeSwitchersStage
from packsmith.stages.fetch_dependencies import FetchExternalDependenciesStage
from packsmith.stages.transforms import TransformQuestBookStage, TransformVersionStage
from packsmith.stages.write_manifest import WriteManifestStage

# ---------------------------------------------------------------------------
# Stage registry: stage_id -> stage class
# ---------------------------------------------------------------------------

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "shared_cleanup": SharedCleanupStage,
    "create_shared_dirs": CreateSharedDirsStage,
    "copy_overrides": CopyOverridesStage,
    "copy_pack_mode_switchers": CopyPackModeSwitchersStage,
    "fetch_external_dependencies": FetchExternalDependenciesStage,
    "write_manifest": WriteManifestStage,
    "create_changelog": CreateChangelogStage,
    "transform_version": TransformVersionStage,
    "transform_quest_book": TransformQuestBookStage,
}

# Named pipelines: execution order per entry point.
PIPELINES: dict[str, list[str]] = {
    "build": [
        "shared_cleanup",
        "create_shared_dirs",
        "copy_overrides",
        "copy_pack_mode_switchers",
        "fetch_external_dependencies",
        "write_manifest",
        "create_changelog",
        "transform_version",
        "transform_quest_book",
    ],
    "typo-build": [
        "shared_cleanup",
        "create_shared_dirs",
        "copy_overrides",
        "transform_quest_book",
    ],
}


def get_stage(stage_id: str, services: StageServices | None = None) -> BaseStage:
    """Instantiate and return a stage by its ``stage_id``.

    Raises ``KeyError`` if the stage_id is not registered.
    """
    try:
        cls = STAGE_REGISTRY[stage_id]
    except KeyError:
        raise KeyError(
            f"Unknown stage_id {stage_id!r}. "
            f"Registered stages: {sorted(STAGE_REGISTRY.keys())}"
        ) from None
    return cls(services)


def build_pipelines(services: StageServices | None = None) -> dict[str, Pipeline]:
    """Build every named pipeline, sharing one instance per stage id."""
    instances = {sid: get_stage(sid, services) for sid in STAGE_REGISTRY}
    return {
        name: Pipeline(name, [instances[sid] for sid in stage_ids])
        for name, stage_ids in PIPELINES.items()
    }


def build_pipeline(name: str, services: StageServices | None = None) -> Pipeline:
    """Build the named pipeline. Raises ``KeyError`` for unknown names."""
    if name not in PIPELINES:
        raise KeyError(f"Unknown pipeline {name!r}. Available: {sorted(PIPELINES)}")
    return Pipeline(name, [get_stage(sid, services) for sid in PIPELINES[name]])


__all__ = [
    # Base
    "BaseStage",
    "Pipeline",
    "StageServices",
    # Registry
    "STAGE_REGISTRY",
    "PIPELINES",
    "get_stage",
    "build_pipeline",
    "build_pipelines",
    # Concrete stages
    "SharedCleanupStage",
    "CreateSharedDirsStage",
    "CopyOverridesStage",
    "CopyPackModeSwitchersStage",
    "FetchExternalDependenciesStage",
    "WriteManifestStage",
    "CreateChangelogStage",
    "TransformVersionStage",
    "TransformQuestBookStage",
]
