"""Recollect persistence layer."""

from recollect.store.database import (
    Database,
    DuplicateSessionError,
    RecollectStoreError,
    SessionDeletedError,
    SessionNotFoundError,
    StorageError,
    ValidationError,
)
from recollect.store.messages import MessageStore
from recollect.store.metadata import MetadataWriter, SQLiteMetadataWriter
from recollect.store.pool import StorePool
from recollect.store.sessions import SessionStore

__all__ = [
    "Database",
    "MessageStore",
    "MetadataWriter",
    "SQLiteMetadataWriter",
    "SessionStore",
    "StorePool",
    "RecollectStoreError",
    "ValidationError",
    "StorageError",
    "SessionNotFoundError",
    "SessionDeletedError",
    "DuplicateSessionError",
]
