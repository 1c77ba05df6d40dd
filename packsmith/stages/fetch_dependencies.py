"""External dependency fetching.

Consumes the manifest's ``externalDependencies`` list, resolves each entry
through the content cache on a bounded worker pool, and publishes every
verified artifact into ``<mod_dest>/mods/<file name>``.

Outputs:
    context.manifest         — the manifest without ``externalDependencies``.
    context.published_links  — one PublishedLink per dependency, in
                               declaration order.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path

from packsmith.errors import ManifestShapeError, PipelineDeadlineError
from packsmith.models.context import BuildContext
from packsmith.models.filedef import FileDef, PublishedLink
from packsmith.stages.base import BaseStage, StageServices

logger = logging.getLogger(__name__)


class FetchExternalDependenciesStage(BaseStage):
    """Fetch, verify and link the manifest's external dependencies."""

    @property
    def stage_id(self) -> str:
        return "fetch_external_dependencies"

    @property
    def display_name(self) -> str:
        return "Fetch External Dependencies"

    def execute(self, context: BuildContext) -> BuildContext:
        services = self.require_services()
        file_defs, context = services.resolver.resolve(context)
        if not file_defs:
            logger.info("No external dependencies declared")
            return context

        for file_def in file_defs:
            name = file_def.file_name
            if name in ("", ".", "..") or "/" in name or "\\" in name:
                raise ManifestShapeError(f"Cannot derive a safe file name from {file_def.url!r}")

        mods_dir = services.filesystem.ensure_dir(context.paths.mods_dir)
        links = self._fetch_all(services, file_defs, mods_dir, context.remaining_seconds())
        return context.evolve(published_links=context.published_links + tuple(links))

    def _fetch_all(
        self,
        services: StageServices,
        file_defs: list[FileDef],
        mods_dir: Path,
        timeout: float | None,
    ) -> list[PublishedLink]:
        workers = max(1, min(len(file_defs), services.max_concurrent_downloads))
        logger.info(
            "Fetching %d dependencies with %d worker(s)", len(file_defs), workers
        )

        abandoned = threading.Event()
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="packsmith-fetch")
        try:
            futures: list[Future[PublishedLink]] = [
                pool.submit(self._fetch_one, services, file_def, mods_dir, abandoned)
                for file_def in file_defs
            ]
            done, pending = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

            # First failure in declaration order wins.
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()
            if pending:
                abandoned.set()
                raise PipelineDeadlineError(
                    f"{len(pending)} of {len(futures)} dependencies still fetching "
                    "when the pipeline deadline passed"
                )
            return [future.result() for future in futures]
        finally:
            # Past the deadline, running downloads are left to finish on their
            # own; they publish nothing once abandoned is set.
            pool.shutdown(wait=not abandoned.is_set(), cancel_futures=True)

    @staticmethod
    def _fetch_one(
        services: StageServices,
        file_def: FileDef,
        mods_dir: Path,
        abandoned: threading.Event,
    ) -> PublishedLink:
        cache_path = services.cache.resolve(file_def)
        if abandoned.is_set():
            raise PipelineDeadlineError(f"Fetch of {file_def.url} finished after the deadline")
        return services.publisher.publish(mods_dir / file_def.file_name, cache_path)
