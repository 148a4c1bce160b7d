"""
Recollect: ordered message history for conversational memory.

Primary entry point::

    from recollect import MemoryStore, Message

    async with MemoryStore.open(db_path="~/.recollect/memory.db") as memory:
        await memory.put_messages("sess_1", [Message(role="user", content="Hello!")])
        history = await memory.get_messages("sess_1")
"""

from recollect.memory import MemoryStore
from recollect.models import (
    Found,
    Lookup,
    MemoryConfig,
    Message,
    MessageListResponse,
    Missing,
    RecollectConfig,
    Session,
    StoreConfig,
    Summary,
    make_id,
)
from recollect.store import (
    Database,
    DuplicateSessionError,
    MessageStore,
    MetadataWriter,
    RecollectStoreError,
    SessionDeletedError,
    SessionNotFoundError,
    SessionStore,
    SQLiteMetadataWriter,
    StorageError,
    StorePool,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "MemoryStore",
    "make_id",
    # Config
    "RecollectConfig",
    "StoreConfig",
    "MemoryConfig",
    # Models
    "Message",
    "MessageListResponse",
    "Session",
    "Summary",
    "Found",
    "Missing",
    "Lookup",
    # Stores
    "Database",
    "MessageStore",
    "SessionStore",
    "MetadataWriter",
    "SQLiteMetadataWriter",
    "StorePool",
    # Errors
    "RecollectStoreError",
    "ValidationError",
    "StorageError",
    "SessionNotFoundError",
    "SessionDeletedError",
    "DuplicateSessionError",
]
