"""Uploaded-document models.

:class:`DocumentFormat` is resolved exactly once, at ingestion entry, from
the declared format or the file name.  Everything downstream dispatches on
the enum member, never on the file name again.
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field

from grantdesk.utils.errors import UnsupportedFormatError


class DocumentFormat(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Supported announcement formats."""

    PDF = "pdf"
    HWPX = "hwpx"

    @classmethod
    def resolve(cls, filename: str | None, declared: str | None = None) -> DocumentFormat:
        """Pick the format from *declared* (``"pdf"``, ``".hwpx"``,
        ``"application/pdf"``) or, failing that, the file extension.

        Raises
        ------
        UnsupportedFormatError
            Neither hint names a supported format.
        """
        for hint in (declared, PurePath(filename).suffix if filename else None):
            if not hint:
                continue
            token = hint.strip().lower().rsplit("/", 1)[-1].lstrip(".")
            # "application/haansofthwpx" and "application/vnd.hancom.hwpx"
            # both end in hwpx.
            if token.endswith("hwpx"):
                return cls.HWPX
            if token == "pdf":
                return cls.PDF

        raise UnsupportedFormatError(
            message=f"Unsupported document format: {declared or filename or 'unknown'} "
            "(PDF 또는 HWPX 파일만 지원합니다)"
        )


class ExtractedText(BaseModel):
    """Plain text pulled out of a document."""

    model_config = ConfigDict(frozen=True)

    text: str
    unit_count: int = Field(ge=0, description="Pages for PDF, non-empty sections for HWPX.")
