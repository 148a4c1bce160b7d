"""
Shared connection pool for Recollect stores.

A single ``StorePool`` instance manages one ``aiosqlite.Connection`` per
database path.  Every ``Database`` pointing at the same path shares that
connection; the stores built on top of it never open connections of their
own.

Usage::

    pool = StorePool()

    db_a = Database(config, pool=pool)
    db_b = Database(config, pool=pool)   # same DB path → same connection

    await db_a.initialize()   # opens the connection
    await db_b.initialize()   # reuses existing connection

    # … use stores …

    await pool.close_all()    # close all managed connections once at shutdown
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite
import structlog

_logger = structlog.get_logger("recollect.store.pool")


async def open_connection(
    db_path: str,
    *,
    wal_mode: bool = True,
    connection_timeout: float = 30.0,
) -> aiosqlite.Connection:
    """Open a configured connection to *db_path*, creating parent directories."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(db_path, timeout=connection_timeout)
    try:
        conn.row_factory = aiosqlite.Row
        if wal_mode:
            await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.execute("PRAGMA synchronous=NORMAL")
    except Exception:
        await conn.close()
        raise
    return conn


class StorePool:
    """
    Process-scoped registry of open ``aiosqlite.Connection`` objects.

    Thread-safety: only safe to use from a single asyncio event loop; do not
    share a ``StorePool`` across threads.

    For each unique *resolved* database path the pool holds exactly one
    connection.  Callers may call ``acquire()`` concurrently; only the first
    caller opens the connection, subsequent callers receive the same object.
    The pool does not serialise statements; each store operation is its own
    unit of work.
    """

    def __init__(self) -> None:
        self._connections: dict[str, aiosqlite.Connection] = {}
        self._open_locks: dict[str, asyncio.Lock] = {}  # per-path open guards

    # ── Public API ─────────────────────────────────────────────────────────────

    async def acquire(
        self,
        db_path: str,
        *,
        wal_mode: bool = True,
        connection_timeout: float = 30.0,
    ) -> aiosqlite.Connection:
        """
        Return the shared connection for *db_path*, opening it if needed.

        Args:
            db_path: Database file path; ``~`` is expanded.
            wal_mode: Enable WAL journal mode on first open.
            connection_timeout: SQLite busy timeout in seconds.

        Returns:
            The shared ``aiosqlite.Connection`` for this path.
        """
        resolved = str(Path(db_path).expanduser().resolve())  # noqa: ASYNC240

        if resolved in self._connections:
            return self._connections[resolved]

        if resolved not in self._open_locks:
            self._open_locks[resolved] = asyncio.Lock()

        async with self._open_locks[resolved]:
            # Double-check after acquiring the lock
            if resolved in self._connections:
                return self._connections[resolved]

            conn = await open_connection(
                resolved, wal_mode=wal_mode, connection_timeout=connection_timeout
            )
            self._connections[resolved] = conn
            _logger.debug("pool_connection_opened", db_path=resolved)
            return conn

    async def close_path(self, db_path: str) -> None:
        """Close and remove the connection for a single path."""
        resolved = str(Path(db_path).expanduser().resolve())  # noqa: ASYNC240
        conn = self._connections.pop(resolved, None)
        self._open_locks.pop(resolved, None)
        if conn is not None:
            await conn.close()
            _logger.debug("pool_connection_closed", db_path=resolved)

    async def close_all(self) -> None:
        """Close every connection managed by this pool."""
        for path in list(self._connections.keys()):
            await self.close_path(path)

    @staticmethod
    def default() -> StorePool:
        """
        Return the process-level default pool.

        Created lazily on first access. Tests should create their own
        ``StorePool()`` instances to get full isolation.
        """
        global _default_pool
        if _default_pool is None:
            _default_pool = StorePool()
        return _default_pool


_default_pool: StorePool | None = None
