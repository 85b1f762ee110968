"""Chat conversation models."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

_BASE36 = string.digits + string.ascii_lowercase


class ChatRole(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    USER = "user"
    ASSISTANT = "assistant"


def new_message_id() -> str:
    """``msg-<epoch ms>-<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"msg-{time.time_ns() // 1_000_000}-{suffix}"


class ChatMessage(BaseModel):
    """One turn in a document conversation.  Append-only, never edited."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id)
    role: ChatRole
    content: str
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
