"""MemoryStore, the primary public API entry point."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from recollect.models.config import RecollectConfig
from recollect.models.message import Message, MessageListResponse, Summary
from recollect.store.database import Database
from recollect.store.messages import MessageStore
from recollect.store.metadata import MetadataWriter, SQLiteMetadataWriter
from recollect.store.pool import StorePool
from recollect.store.sessions import SessionStore


class MemoryStore:
    """
    Message history for many sessions backed by one SQLite database.

    Wires a ``Database`` to the session, metadata and message stores and
    fills in the configured memory window and page size when a read omits
    them.

    Usage::

        async with MemoryStore.open(db_path="~/.recollect/memory.db") as memory:
            await memory.put_messages("sess_1", [Message(role="user", content="Hi")])
            recent = await memory.get_messages("sess_1", last_n=10)

        # Manual lifecycle
        memory = await MemoryStore.create()
        try:
            page = await memory.get_message_list("sess_1", page=2)
        finally:
            await memory.close()
    """

    def __init__(
        self,
        config: RecollectConfig,
        db: Database,
        sessions: SessionStore,
        messages: MessageStore,
    ) -> None:
        self._config = config
        self._db = db
        self._sessions = sessions
        self._messages = messages
        self._logger = structlog.get_logger("recollect.memory")

    @classmethod
    async def create(
        cls,
        *,
        config: RecollectConfig | None = None,
        db_path: str | None = None,
        pool: StorePool | None = None,
        metadata_writer: MetadataWriter | None = None,
    ) -> MemoryStore:
        """
        Open the database and build a ready-to-use store.

        Args:
            config: Full configuration. Defaults to ``RecollectConfig()``.
            db_path: Overrides ``config.store.db_path`` when given.
            pool: Shared connection pool. Without one a private connection is opened.
            metadata_writer: Replaces the default ``SQLiteMetadataWriter``.
        """
        cfg = config or RecollectConfig.default()
        if db_path is not None:
            store_cfg = cfg.store.model_copy(update={"db_path": db_path})
            cfg = cfg.model_copy(update={"store": store_cfg})

        db = Database(cfg.store, pool=pool)
        await db.initialize()
        sessions = SessionStore(db)
        messages = MessageStore(db, sessions, metadata_writer or SQLiteMetadataWriter(db))
        return cls(cfg, db, sessions, messages)

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        *,
        config: RecollectConfig | None = None,
        db_path: str | None = None,
        pool: StorePool | None = None,
        metadata_writer: MetadataWriter | None = None,
    ) -> AsyncIterator[MemoryStore]:
        """``create()`` as an async context manager that closes on exit."""
        store = await cls.create(
            config=config, db_path=db_path, pool=pool, metadata_writer=metadata_writer
        )
        try:
            yield store
        finally:
            await store.close()

    async def close(self) -> None:
        await self._db.close()
        self._logger.debug("memory_store_closed", db_path=self._db.db_path)

    async def __aenter__(self) -> MemoryStore:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def config(self) -> RecollectConfig:
        return self._config

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def messages(self) -> MessageStore:
        return self._messages

    # ── Message history ────────────────────────────────────────────────────────

    async def put_messages(self, session_id: str, messages: list[Message]) -> list[Message]:
        """Upsert *messages* into *session_id*, creating the session if needed."""
        return await self._messages.put_messages(session_id, messages)

    async def get_message_list(
        self,
        session_id: str,
        page: int = 1,
        page_size: int | None = None,
    ) -> MessageListResponse | None:
        """Return one page of history; ``page_size`` defaults to ``memory.page_size``."""
        size = self._config.memory.page_size if page_size is None else page_size
        return await self._messages.get_message_list(session_id, page, size)

    async def get_messages_by_uuid(self, session_id: str, uuids: list[str]) -> list[Message]:
        return await self._messages.get_messages_by_uuid(session_id, uuids)

    async def get_messages(
        self,
        session_id: str,
        *,
        summary: Summary | None = None,
        last_n: int = 0,
        memory_window: int | None = None,
    ) -> list[Message] | None:
        """
        Return the last ``last_n`` messages, or the messages after *summary*'s
        summary point capped at ``memory_window`` (default ``memory.message_window``).
        """
        window = self._config.memory.message_window if memory_window is None else memory_window
        return await self._messages.get_messages(session_id, window, summary, last_n)
