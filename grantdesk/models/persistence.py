"""Typed results for persistence writes.

A write either lands in the intended store (``SUCCESS``), is recovered by
the in-memory fallback store (``DEGRADED``), or fails everywhere
(``FAILED``).  The result travels back to the caller instead of being
reported through a side channel.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class WriteOutcome(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class WriteResult(BaseModel):
    """Outcome of one gateway write."""

    model_config = ConfigDict(frozen=True)

    outcome: WriteOutcome
    store: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not WriteOutcome.FAILED

    @classmethod
    def success(cls, store: str) -> WriteResult:
        return cls(outcome=WriteOutcome.SUCCESS, store=store)

    @classmethod
    def degraded(cls, store: str, error: str) -> WriteResult:
        return cls(outcome=WriteOutcome.DEGRADED, store=store, error=error)

    @classmethod
    def failed(cls, error: str) -> WriteResult:
        return cls(outcome=WriteOutcome.FAILED, error=error)
