"""Shared fixtures for Recollect tests."""

from __future__ import annotations

import pytest
import pytest_asyncio

from recollect.models.config import RecollectConfig, StoreConfig
from recollect.models.message import Message
from recollect.store.database import Database
from recollect.store.messages import MessageStore
from recollect.store.metadata import SQLiteMetadataWriter
from recollect.store.pool import StorePool
from recollect.store.sessions import SessionStore


@pytest.fixture
def config(tmp_path):
    """RecollectConfig with a temp database path."""
    return RecollectConfig(store=StoreConfig(db_path=str(tmp_path / "test.db")))


@pytest_asyncio.fixture
async def pool(config):
    """StorePool for the test database. Closed after each test."""
    p = StorePool()
    yield p
    await p.close_all()


@pytest_asyncio.fixture
async def db(config, pool):
    """Initialized Database backed by a temp SQLite file (pool-managed)."""
    d = Database(config.store, pool=pool)
    await d.initialize()
    yield d
    await d.close()


@pytest.fixture
def sessions(db):
    return SessionStore(db)


@pytest.fixture
def metadata_writer(db):
    return SQLiteMetadataWriter(db)


@pytest.fixture
def message_store(db, sessions, metadata_writer):
    """MessageStore wired to the real session store and metadata writer."""
    return MessageStore(db, sessions, metadata_writer)


class RecordingMetadataWriter:
    """Metadata writer double that records its calls and echoes the messages back."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, list[Message], bool]] = []
        self._error = error

    async def put_message_metadata(
        self, session_id: str, messages: list[Message], is_privileged: bool
    ) -> list[Message]:
        self.calls.append((session_id, list(messages), is_privileged))
        if self._error is not None:
            raise self._error
        return messages


def make_message(
    content: str = "Hello world",
    role: str = "user",
    uuid: str = "",
    token_count: int = 0,
    metadata: dict | None = None,
) -> Message:
    """Helper to create a test Message."""
    return Message(
        uuid=uuid,
        role=role,
        content=content,
        token_count=token_count,
        metadata=metadata,
    )


def make_conversation(count: int) -> list[Message]:
    """``count`` alternating user/assistant messages with contents ``m1`` … ``m{count}``."""
    return [
        make_message(f"m{i}", role="user" if i % 2 else "assistant")
        for i in range(1, count + 1)
    ]
