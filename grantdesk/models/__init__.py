"""GrantDesk domain models - re-exports all public model classes.

Submodules by concern:
    - grant.py       - grant metadata, persisted record, chunk embeddings
    - document.py    - upload format resolution and extracted text
    - pipeline.py    - ingestion steps and progress notifications
    - persistence.py - typed write results
    - chat.py        - conversation messages
    - samples.py     - demo records (not re-exported)
"""

from __future__ import annotations

from grantdesk.models.chat import ChatMessage, ChatRole, new_message_id
from grantdesk.models.document import DocumentFormat, ExtractedText
from grantdesk.models.grant import GrantRecord, GrantStatus, StoredChunk, StructuredGrant
from grantdesk.models.persistence import WriteOutcome, WriteResult
from grantdesk.models.pipeline import (
    STEP_PROGRESS,
    IngestionOutcome,
    PipelineStep,
    ProcessingStatus,
)

__all__ = [
    "STEP_PROGRESS",
    "ChatMessage",
    "ChatRole",
    "DocumentFormat",
    "ExtractedText",
    "GrantRecord",
    "GrantStatus",
    "IngestionOutcome",
    "PipelineStep",
    "ProcessingStatus",
    "StoredChunk",
    "StructuredGrant",
    "WriteOutcome",
    "WriteResult",
    "new_message_id",
]
