"""Grant announcement models.

Defines the structured metadata produced by the analysis model
(:class:`StructuredGrant`), the persisted record (:class:`GrantRecord`) and
the per-chunk embedding row (:class:`StoredChunk`).  All models are frozen;
derived values such as ``status`` are applied with ``model_copy``.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON keys the analysis prompt asks for (``supportAmount``,
``requiredDocuments`` ...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class GrantStatus(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Lifecycle status shown next to a grant.

    ``REVIEWING`` exists for manually curated entries; the date-based
    derivation in :mod:`grantdesk.utils.grant_status` never produces it.
    """

    OPEN = "Open"
    CLOSED = "Closed"
    UPCOMING = "Upcoming"
    REVIEWING = "Reviewing"


_STRING_FIELDS = (
    "title",
    "grant_type",
    "support_amount",
    "period",
    "deadline",
    "description",
    "region",
    "industry",
    "eligibility",
)


class StructuredGrant(BaseModel):
    """Metadata extracted from an announcement by the analysis model.

    Models omit fields or emit ``null`` for information the document does
    not state; those become empty strings so downstream code never has to
    distinguish "missing" from "blank".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    title: str = Field(default="", description="Programme name (사업명).")
    grant_type: str = Field(default="", description="Announcement category, e.g. 창업지원, R&D.")
    support_amount: str = Field(default="", description="Funding scale, e.g. 최대 5,000만원.")
    period: str = Field(default="", description='Application window, "<start> ~ <end>".')
    deadline: str = Field(default="", description="Final deadline or programme end date.")
    description: str = Field(default="", description="Two or three sentence summary.")
    region: str = Field(default="", description="Eligible region (서울, 전국 ...).")
    industry: str = Field(default="", description="Target sectors, comma separated.")
    eligibility: str = Field(default="", description="Applicant eligibility summary.")
    required_documents: list[str] = Field(
        default_factory=list,
        description="Documents an applicant must submit, in announcement order.",
    )

    @field_validator(*_STRING_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, list):
            return ", ".join(str(item) for item in value if item is not None)
        return str(value).strip()

    @field_validator("required_documents", mode="before")
    @classmethod
    def _coerce_documents(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value.strip()] if value.strip() else []
        if not isinstance(value, (list, tuple)):
            # Raised as ValueError so pydantic reports it as a ValidationError.
            raise ValueError(f"requiredDocuments must be a list or a string, got {type(value).__name__}")
        return [str(item).strip() for item in value if item is not None and str(item).strip()]


class GrantRecord(StructuredGrant):
    """A persisted grant announcement.

    ``id`` is assigned once at creation and never changes.  ``status`` is a
    derived value: repositories hand back whatever was stored and the
    persistence gateway overwrites it via
    :func:`~grantdesk.utils.grant_status.derive_status` before returning.
    """

    id: str = Field(description="Immutable identifier, e.g. GRANT-1718000000000.")
    raw_content: str = Field(default="", description="Full extracted document text.")
    status: GrantStatus = Field(default=GrantStatus.OPEN, description="Derived status.")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )

    @classmethod
    def from_analysis(
        cls,
        grant_id: str,
        analysis: StructuredGrant,
        raw_content: str,
    ) -> GrantRecord:
        """Build a new record from analysis output and the source text."""
        return cls(
            id=grant_id,
            raw_content=raw_content,
            **analysis.model_dump(),
        )

    def summary_line(self) -> str:
        """Three-line synopsis used when no better chat context exists."""
        return (
            f"사업명: {self.title}\n"
            f"지원 규모: {self.support_amount}\n"
            f"접수 기간: {self.period}"
        )


class StoredChunk(BaseModel):
    """One chunk of a grant's text together with its embedding vector."""

    model_config = ConfigDict(frozen=True)

    grant_id: str
    chunk_index: int = Field(ge=0, description="0-based, dense position in the chunk sequence.")
    content: str
    embedding: list[float]
