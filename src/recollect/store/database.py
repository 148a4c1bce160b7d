"""Connection lifecycle and error types shared by the Recollect stores."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from recollect.models.config import StoreConfig
from recollect.store.pool import open_connection

if TYPE_CHECKING:
    from recollect.store.pool import StorePool

# ── Exceptions ─────────────────────────────────────────────────────────────────


class RecollectStoreError(Exception):
    """Base class for store errors."""


class ValidationError(RecollectStoreError):
    """Raised when arguments are rejected before any query is issued."""


class StorageError(RecollectStoreError):
    """Wraps a failure reported by the underlying database."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{message}: {cause}" if cause is not None else message)
        self.cause = cause


class SessionNotFoundError(RecollectStoreError):
    """Raised when a session_id does not exist in the store."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id!r}")
        self.session_id = session_id


class SessionDeletedError(RecollectStoreError):
    """Raised when writing to a session that has been soft-deleted."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session is deleted: {session_id!r}")
        self.session_id = session_id


class DuplicateSessionError(RecollectStoreError):
    """Raised when creating a session whose ID already exists."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Duplicate session ID: {session_id!r}")
        self.session_id = session_id


# ── Database ───────────────────────────────────────────────────────────────────


class Database:
    """
    Owns (or borrows) the SQLite connection that the stores share.

    When a ``StorePool`` is supplied the connection is borrowed from it and
    ``close()`` leaves it open (the pool owns its lifetime).  Without a pool a
    private connection is opened and ``close()`` releases it.

    Usage::

        db = Database(StoreConfig(db_path="/tmp/memory.db"))
        await db.initialize()
        try:
            messages = MessageStore(db, SessionStore(db), SQLiteMetadataWriter(db))
            ...
        finally:
            await db.close()
    """

    def __init__(self, config: StoreConfig, pool: StorePool | None = None) -> None:
        self._config = config
        self._db_path = str(Path(config.db_path).expanduser())
        self._pool = pool
        self._conn: aiosqlite.Connection | None = None
        self._logger = structlog.get_logger("recollect.store")

    @property
    def db_path(self) -> str:
        return self._db_path

    async def initialize(self) -> None:
        """
        Open (or borrow) a database connection and apply the schema.

        Raises:
            aiosqlite.Error: If the database cannot be opened or the schema fails.
        """
        if self._pool is not None:
            conn = await self._pool.acquire(
                self._db_path,
                wal_mode=self._config.wal_mode,
                connection_timeout=self._config.connection_timeout,
            )
        else:
            conn = await open_connection(
                self._db_path,
                wal_mode=self._config.wal_mode,
                connection_timeout=self._config.connection_timeout,
            )

        schema = (Path(__file__).parent / "schema.sql").read_text()
        await conn.executescript(schema)
        await conn.commit()

        self._conn = conn
        self._logger.info("store_initialized", db_path=self._db_path)

    async def close(self) -> None:
        """Release the connection. A no-op for pool-managed connections."""
        if self._conn is None:
            return
        if self._pool is None:
            await self._conn.close()
        self._conn = None

    def conn_or_raise(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RecollectStoreError("Store is not initialized. Call initialize() first.")
        return self._conn
