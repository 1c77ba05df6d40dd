"""Stage execution records and pipeline run results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from packsmith.models.context import BuildContext


class StageStatus(str, Enum):
    """Outcome of one stage execution."""

    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"


class StageRecord(BaseModel):
    """Records a single stage execution for the run summary."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    status: StageStatus
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    duration_seconds: float = 0.0
    input_hash: str = ""
    output_hash: str = ""  # empty on failure
    error: str | None = None


class PipelineRun(BaseModel):
    """The result of a successfully completed pipeline."""

    model_config = ConfigDict(frozen=True)

    pipeline_name: str
    run_id: str
    records: list[StageRecord]
    context: BuildContext

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.records if r.status == StageStatus.SKIPPED)
