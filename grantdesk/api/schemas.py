"""Pydantic request/response schemas for the GrantDesk API.

Request schemas end with ``Request``, response schemas with ``Response``.
Grant payloads reuse :class:`GrantRecord` field names in snake_case; the
stored ``raw_content`` is only returned by the detail endpoint.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from grantdesk.models.chat import ChatMessage
from grantdesk.models.grant import GrantRecord, GrantStatus
from grantdesk.models.pipeline import PipelineStep, ProcessingStatus


class GrantSummaryResponse(BaseModel):
    """A grant as shown in the list view."""

    id: str
    title: str
    grant_type: str
    support_amount: str
    period: str
    deadline: str
    region: str
    industry: str
    status: GrantStatus
    created_at: datetime

    @classmethod
    def from_record(cls, record: GrantRecord) -> GrantSummaryResponse:
        return cls(
            id=record.id,
            title=record.title,
            grant_type=record.grant_type,
            support_amount=record.support_amount,
            period=record.period,
            deadline=record.deadline,
            region=record.region,
            industry=record.industry,
            status=record.status,
            created_at=record.created_at,
        )


class GrantListResponse(BaseModel):
    grants: list[GrantSummaryResponse]
    total: int


class GrantDetailResponse(GrantSummaryResponse):
    """Full grant record including eligibility and source text."""

    description: str
    eligibility: str
    required_documents: list[str]
    raw_content: str

    @classmethod
    def from_record(cls, record: GrantRecord) -> GrantDetailResponse:
        return cls(
            **GrantSummaryResponse.from_record(record).model_dump(),
            description=record.description,
            eligibility=record.eligibility,
            required_documents=list(record.required_documents),
            raw_content=record.raw_content,
        )


class GrantUploadResponse(BaseModel):
    """Returned immediately; ingestion continues in the background."""

    upload_id: str
    filename: str
    size_bytes: int = Field(ge=0)


class UploadStatusResponse(BaseModel):
    """Latest :class:`ProcessingStatus` for an upload."""

    upload_id: str
    step: PipelineStep
    message: str
    progress: int = Field(ge=0, le=100)
    grant_id: str | None = None
    degraded: bool = False

    @classmethod
    def from_status(
        cls,
        upload_id: str,
        status: ProcessingStatus,
        result: dict[str, Any] | None = None,
    ) -> UploadStatusResponse:
        result = result or {}
        return cls(
            upload_id=upload_id,
            step=status.step,
            message=status.message,
            progress=status.progress,
            grant_id=result.get("grant_id"),
            degraded=result.get("degraded", False),
        )


class DeleteGrantResponse(BaseModel):
    grant_id: str
    deleted: bool


class ChatRequest(BaseModel):
    """One user turn in a grant conversation."""

    question: str = Field(min_length=1, max_length=2000)
    session_id: str | None = Field(
        default=None,
        description="Conversation id; omitted on the first turn, echoed back in the response.",
    )


class ChatResponse(BaseModel):
    session_id: str
    grant_id: str
    message: ChatMessage
    history: list[ChatMessage]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
