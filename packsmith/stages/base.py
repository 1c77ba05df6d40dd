"""Abstract base stage with enforced lifecycle, and the Pipeline value.

Every concrete stage inherits from BaseStage and implements only
``execute()``. The ``run_stage()`` wrapper is **not overridable**; it
enforces the canonical lifecycle ordering:

    check_deadline -> compute_input_hash -> skip_reason? -> execute
        -> compute_output_hash -> record

Any exception raised along the way leaves ``run_stage()`` as a
``StageError`` naming the stage, with the original exception chained.
"""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import Iterator, Sequence
from datetime import datetime, timezone
from typing import final

from packsmith.core.content_cache import ContentCache
from packsmith.core.dependency_resolver import DependencyResolver
from packsmith.core.filesystem import FilesystemLifecycleManager
from packsmith.core.hasher import compute_input_hash, compute_output_hash
from packsmith.core.link_publisher import LinkPublisher
from packsmith.errors import PipelineDeadlineError, StageError
from packsmith.models.context import BuildContext
from packsmith.models.pipeline import StageRecord, StageStatus

logger = logging.getLogger(__name__)


class StageServices:
    """Collaborators shared by the stages of one orchestrator."""

    def __init__(
        self,
        *,
        filesystem: FilesystemLifecycleManager,
        cache: ContentCache,
        resolver: DependencyResolver,
        publisher: LinkPublisher,
        max_concurrent_downloads: int = 4,
    ) -> None:
        self.filesystem = filesystem
        self.cache = cache
        self.resolver = resolver
        self.publisher = publisher
        self.max_concurrent_downloads = max_concurrent_downloads


class BaseStage(abc.ABC):
    """Abstract base for all Packsmith pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``     — unique identifier (e.g. ``"shared_cleanup"``).
        * ``display_name`` — human-readable name for logs and summaries.
        * ``execute(context)`` — the stage's core logic, returning the
          (possibly updated) context.

    Subclasses **may** override ``skip_reason(context)``.

    Subclasses **must not** override ``run_stage()``.
    """

    def __init__(self, services: StageServices | None = None) -> None:
        self.services = services

    # ------------------------------------------------------------------
    # Abstract interface: subclasses implement these
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier (e.g. ``'copy_overrides'``)."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable display name."""
        ...

    @abc.abstractmethod
    def execute(self, context: BuildContext) -> BuildContext:
        """Execute the stage's core logic.

        Parameters
        ----------
        context:
            The immutable build context produced by the previous stage.

        Returns
        -------
        BuildContext:
            The context for the next stage; ``context`` itself when the
            stage changes nothing.
        """
        ...

    def skip_reason(self, context: BuildContext) -> str | None:
        """Return a reason to skip this stage, or ``None`` to run it."""
        return None

    # ------------------------------------------------------------------
    # Lifecycle: NOT overridable
    # ------------------------------------------------------------------

    @final
    def run_stage(self, context: BuildContext) -> tuple[BuildContext, StageRecord]:
        """Execute the full stage lifecycle.  **Do not override.**

        Returns the next context and this stage's ``StageRecord``. Raises
        ``StageError`` (with the failed record attached) on any failure.
        """
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        input_hash = compute_input_hash(self.stage_id, context.fingerprint_payload())
        logger.info(
            "%s [%s] input_hash=%s", self.display_name, self.stage_id, input_hash[:12]
        )

        try:
            self._check_deadline(context)
            reason = self.skip_reason(context)
            if reason is not None:
                logger.info("%s [%s] skipped: %s", self.display_name, self.stage_id, reason)
                return context, StageRecord(
                    stage_id=self.stage_id,
                    display_name=self.display_name,
                    status=StageStatus.SKIPPED,
                    started_at=started_at,
                    input_hash=input_hash,
                    output_hash=input_hash,
                )
            result = self.execute(context)
        except Exception as exc:
            logger.error(
                "%s [%s] execution failed: %s", self.display_name, self.stage_id, exc
            )
            record = StageRecord(
                stage_id=self.stage_id,
                display_name=self.display_name,
                status=StageStatus.FAILED,
                started_at=started_at,
                duration_seconds=time.monotonic() - start,
                input_hash=input_hash,
                error=f"{type(exc).__name__}: {exc}",
            )
            raise StageError(self.stage_id, exc, record) from exc

        output_hash = compute_output_hash(self.stage_id, result.fingerprint_payload())
        record = StageRecord(
            stage_id=self.stage_id,
            display_name=self.display_name,
            status=StageStatus.PASSED,
            started_at=started_at,
            duration_seconds=time.monotonic() - start,
            input_hash=input_hash,
            output_hash=output_hash,
        )
        logger.info(
            "%s [%s] passed in %.2fs, output_hash=%s",
            self.display_name,
            self.stage_id,
            record.duration_seconds,
            output_hash[:12],
        )
        return result, record

    @final
    def require_services(self) -> StageServices:
        """Return the wired services; stages that touch disk or network need them."""
        if self.services is None:
            raise RuntimeError(f"Stage {self.stage_id} was constructed without services")
        return self.services

    @final
    def _check_deadline(self, context: BuildContext) -> None:
        remaining = context.remaining_seconds()
        if remaining is not None and remaining <= 0:
            raise PipelineDeadlineError(
                f"pipeline deadline exceeded by {-remaining:.1f}s before {self.stage_id}"
            )

    # ------------------------------------------------------------------
    # Repr
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"


class Pipeline:
    """A named, ordered sequence of stages executed fail-fast.

    Stage instances may be shared between pipelines; a pipeline itself is
    an immutable value.
    """

    def __init__(self, name: str, stages: Sequence[BaseStage]) -> None:
        ids = [stage.stage_id for stage in stages]
        duplicates = sorted({sid for sid in ids if ids.count(sid) > 1})
        if duplicates:
            raise ValueError(f"Pipeline {name!r} lists stages more than once: {duplicates}")
        self.name = name
        self.stages: tuple[BaseStage, ...] = tuple(stages)

    @property
    def stage_ids(self) -> list[str]:
        return [stage.stage_id for stage in self.stages]

    def __iter__(self) -> Iterator[BaseStage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        return f"<Pipeline {self.name!r} stages={self.stage_ids}>"
