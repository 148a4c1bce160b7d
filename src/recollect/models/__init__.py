"""Recollect data models."""

from recollect.models.config import MemoryConfig, RecollectConfig, StoreConfig
from recollect.models.lookup import Found, Lookup, Missing
from recollect.models.message import (
    Message,
    MessageListResponse,
    Session,
    Summary,
    make_id,
)

__all__ = [
    # Config
    "MemoryConfig",
    "RecollectConfig",
    "StoreConfig",
    # Lookup results
    "Found",
    "Lookup",
    "Missing",
    # Records
    "Message",
    "MessageListResponse",
    "Session",
    "Summary",
    "make_id",
]
