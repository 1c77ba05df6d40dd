"""Pipeline orchestrator — the central coordinator for Packsmith builds.

The Orchestrator wires the FilesystemLifecycleManager, ContentCache,
DependencyResolver and LinkPublisher into the stage services, builds the
named pipelines from the stage registry, and executes a pipeline strictly
in order, stopping at the first failing stage.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone

import httpx

from packsmith.config import BuildSettings
from packsmith.core.content_cache import ContentCache
from packsmith.core.dependency_resolver import DependencyResolver
from packsmith.core.filesystem import FilesystemLifecycleManager
from packsmith.core.link_publisher import LinkPublisher
from packsmith.core.manifest import load_manifest
from packsmith.errors import StageError
from packsmith.models.context import BuildContext
from packsmith.models.manifest import ModpackManifest
from packsmith.models.pipeline import PipelineRun, StageRecord
from packsmith.stages import build_pipeline
from packsmith.stages.base import Pipeline, StageServices

logger = logging.getLogger(__name__)


class Orchestrator:
    """Central build orchestrator.

    Parameters
    ----------
    settings:
        Build settings. Reads the environment if not provided.
    client:
        Optional ``httpx.Client`` for the content cache (tests inject a
        mock transport here).
    run_id:
        Identifier for this run. Generated if None.
    """

    def __init__(
        self,
        settings: BuildSettings | None = None,
        *,
        client: httpx.Client | None = None,
        run_id: str | None = None,
    ) -> None:
        self.settings = settings or BuildSettings()
        self.paths = self.settings.to_paths()

        # Core subsystems
        self.filesystem = FilesystemLifecycleManager()
        self.cache = ContentCache(
            self.paths.cache_dir,
            client=client,
            max_attempts=self.settings.download_max_attempts,
            backoff_seconds=self.settings.download_backoff_seconds,
            timeout_seconds=self.settings.download_timeout_seconds,
        )
        self.resolver = DependencyResolver(self.settings.dependency_hash_algorithm)
        self.publisher = LinkPublisher(self.settings.link_mode)
        self.services = StageServices(
            filesystem=self.filesystem,
            cache=self.cache,
            resolver=self.resolver,
            publisher=self.publisher,
            max_concurrent_downloads=self.settings.max_concurrent_downloads,
        )

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.run_id = run_id or f"ps-{ts}-{uuid.uuid4().hex[:3]}"

    def close(self) -> None:
        self.cache.close()

    def __enter__(self) -> Orchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def build_pipeline(self, name: str) -> Pipeline:
        """Build one of the named pipelines (``build`` or ``typo-build``)."""
        return build_pipeline(name, self.services)

    def create_context(self, manifest: ModpackManifest | None = None) -> BuildContext:
        """Create the initial build context.

        Loads the manifest from ``settings.manifest_path`` (relative to the
        root directory) unless one is given.
        """
        if manifest is None:
            manifest_path = self.settings.manifest_path
            if not manifest_path.is_absolute():
                manifest_path = self.paths.root_dir / manifest_path
            manifest = load_manifest(manifest_path)

        deadline_seconds = self.settings.pipeline_deadline_seconds
        return BuildContext(
            paths=self.paths,
            build_config=self.settings.to_build_config(),
            manifest=manifest,
            skip_changelog=self.settings.skip_changelog,
            deadline=(
                time.monotonic() + deadline_seconds if deadline_seconds is not None else None
            ),
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, pipeline: Pipeline, context: BuildContext) -> PipelineRun:
        """Execute *pipeline* stage by stage, fail-fast.

        Each stage starts only after its predecessor completed. The first
        failure raises ``StageError`` naming the stage; no later stage runs.
        """
        logger.info(
            "Run %s: pipeline %r with %d stages", self.run_id, pipeline.name, len(pipeline)
        )
        records: list[StageRecord] = []
        for stage in pipeline:
            try:
                context, record = stage.run_stage(context)
            except StageError as exc:
                logger.error(
                    "Run %s: pipeline %r aborted at %s", self.run_id, pipeline.name, exc.stage_id
                )
                raise
            except Exception as exc:
                logger.error(
                    "Run %s: pipeline %r aborted at %s", self.run_id, pipeline.name, stage.stage_id
                )
                raise StageError(stage.stage_id, exc) from exc
            records.append(record)

        logger.info("Run %s: pipeline %r completed", self.run_id, pipeline.name)
        return PipelineRun(
            pipeline_name=pipeline.name,
            run_id=self.run_id,
            records=records,
            context=context,
        )

    def run_named(self, name: str) -> PipelineRun:
        """Build the named pipeline, load the manifest and run it."""
        pipeline = self.build_pipeline(name)
        return self.run(pipeline, self.create_context())
