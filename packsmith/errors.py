"""Packsmith error hierarchy.

Every failure that can leave a component is one of these types. Low-level
``OSError`` and ``httpx`` exceptions are translated at component
boundaries and chained as ``__cause__``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from packsmith.models.pipeline import StageRecord


class PacksmithError(RuntimeError):
    """Base class for all build errors."""


class NetworkError(PacksmithError):
    """Raised when a remote artifact cannot be fetched.

    ``retryable`` marks transient failures (connection errors, timeouts,
    HTTP 408/429/5xx) that the cache retries within its bound.
    """

    def __init__(self, url: str, message: str, *, retryable: bool = True) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.retryable = retryable


class HashMismatchError(PacksmithError):
    """Raised when fetched content matches none of the declared digests.

    The downloaded bytes are discarded before this is raised.
    """

    def __init__(
        self, url: str, expected: dict[str, list[str]], actual: dict[str, str]
    ) -> None:
        details = "; ".join(
            f"{algo} expected one of {expected[algo]} got {actual.get(algo, '?')}"
            for algo in expected
        )
        super().__init__(f"Hash mismatch for {url}: {details}")
        self.url = url
        self.expected = expected
        self.actual = actual


class FilesystemError(PacksmithError):
    """Raised on permission, disk-space or path failures. Never retried."""

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = Path(path)


class ManifestShapeError(PacksmithError):
    """Raised when required manifest fields are missing or malformed."""


class ConflictError(PacksmithError):
    """Raised when a publish destination already resolves to another source."""

    def __init__(self, destination: Path, existing: Path | None, requested: Path) -> None:
        super().__init__(
            f"Refusing to overwrite {destination}: it resolves to "
            f"{existing if existing is not None else 'an unrelated file'}, "
            f"not {requested}"
        )
        self.destination = destination
        self.existing = existing
        self.requested = requested


class PipelineDeadlineError(PacksmithError):
    """Raised when the overall pipeline deadline has passed."""


class StageError(PacksmithError):
    """Raised by the orchestrator when a stage fails.

    Carries the failing stage's id and the underlying cause (also chained
    as ``__cause__``), so callers never see a bare low-level error.
    """

    def __init__(
        self,
        stage_id: str,
        cause: BaseException,
        record: StageRecord | None = None,
    ) -> None:
        super().__init__(f"Stage {stage_id} failed: {cause}")
        self.stage_id = stage_id
        self.cause = cause
        self.record = record


class TransformError(PacksmithError):
    """Raised when a text transform cannot parse or rewrite its input."""
