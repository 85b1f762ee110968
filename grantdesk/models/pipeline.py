"""Ingestion pipeline state models.

The pipeline walks ``parsing -> analyzing -> embedding -> saving ->
complete`` and jumps to ``error`` from any step.  Each transition is
published to an observer as a :class:`ProcessingStatus`; the value object
lives only for the duration of one ingestion and is never persisted.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from grantdesk.models.grant import GrantRecord
from grantdesk.models.persistence import WriteOutcome, WriteResult


class PipelineStep(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Steps of the ingestion state machine, in order."""

    PARSING = "parsing"
    ANALYZING = "analyzing"
    EMBEDDING = "embedding"
    SAVING = "saving"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStep.COMPLETE, PipelineStep.ERROR)


# Progress checkpoints published on entry to each step.
STEP_PROGRESS: dict[PipelineStep, int] = {
    PipelineStep.PARSING: 10,
    PipelineStep.ANALYZING: 30,
    PipelineStep.EMBEDDING: 50,
    PipelineStep.SAVING: 80,
    PipelineStep.COMPLETE: 100,
    PipelineStep.ERROR: 0,
}

# User-facing messages for each non-error step.
STEP_MESSAGES: dict[PipelineStep, str] = {
    PipelineStep.PARSING: "문서를 파싱하고 있습니다...",
    PipelineStep.ANALYZING: "AI가 공고 내용을 분석하고 있습니다...",
    PipelineStep.EMBEDDING: "문서를 임베딩하고 있습니다...",
    PipelineStep.SAVING: "데이터베이스에 저장하고 있습니다...",
    PipelineStep.COMPLETE: "처리 완료!",
}


class ProcessingStatus(BaseModel):
    """A single progress notification pushed to the ingestion observer."""

    model_config = ConfigDict(frozen=True)

    step: PipelineStep
    message: str
    progress: int = Field(ge=0, le=100)

    @classmethod
    def for_step(cls, step: PipelineStep, message: str | None = None) -> ProcessingStatus:
        return cls(
            step=step,
            message=message if message is not None else STEP_MESSAGES.get(step, ""),
            progress=STEP_PROGRESS[step],
        )


class IngestionOutcome(BaseModel):
    """Result of a completed ingestion run."""

    model_config = ConfigDict(frozen=True)

    grant: GrantRecord
    chunk_count: int = Field(ge=0)
    unit_count: int = Field(ge=0, description="Pages (PDF) or non-empty sections (HWPX).")
    grant_write: WriteResult
    embeddings_write: WriteResult
    elapsed_s: float = Field(ge=0.0)

    @property
    def is_degraded(self) -> bool:
        """``True`` when either write landed in the fallback store."""
        return WriteOutcome.DEGRADED in (self.grant_write.outcome, self.embeddings_write.outcome)
