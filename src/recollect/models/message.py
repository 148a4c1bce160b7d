"""Message, session and summary data models for Recollect."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, Field
from ulid import ULID


def make_id(prefix: str) -> str:
    """
    Generate a ULID-based identifier.

    Args:
        prefix: Short prefix for readability (e.g. ``"msg"``, ``"sess"``).

    Returns:
        ID string in the format ``"{prefix}_{ulid}"``.
    """
    return f"{prefix}_{ULID()}"


def now_ms() -> int:
    return int(time.time() * 1000)


class Message(BaseModel):
    """
    A single message in a session's history.

    ``seq`` is assigned by the store at insert time and is the only ordering
    key for windowed reads. ``uuid`` is unique across all sessions but is not
    orderable; leave it empty on new messages and the store assigns one.
    """

    uuid: str = ""
    session_id: str = ""
    seq: int | None = None
    """Store-assigned, strictly increasing per session. Never client supplied."""
    role: str
    content: str
    token_count: int = 0
    metadata: dict[str, Any] | None = None
    created_at: int | None = None
    """Unix millisecond timestamp, set by the store."""
    updated_at: int | None = None
    deleted_at: int | None = None


class Session(BaseModel):
    """A conversation thread owning an ordered message log."""

    session_id: str
    metadata: dict[str, Any] | None = None
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    deleted_at: int | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Summary(BaseModel):
    """
    A previously computed summarization of a session.

    Only ``summary_point_uuid`` is consumed here: the identifier of the last
    message already folded into this summary.
    """

    uuid: str = ""
    session_id: str = ""
    content: str = ""
    summary_point_uuid: str
    token_count: int = 0
    created_at: int = Field(default_factory=now_ms)


class MessageListResponse(BaseModel):
    """One page of a session's messages plus the session's total message count."""

    messages: list[Message] = Field(default_factory=list)
    total_count: int
    row_count: int
