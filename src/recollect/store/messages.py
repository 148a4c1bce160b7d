"""
Session message history: batched upserts and windowed reads.

Every read orders by the store-assigned sequence number (``messages.id``),
never by ``uuid`` or timestamp. Three read shapes are supported:

* a page of the full history (``get_message_list``)
* the last *N* messages (``get_messages`` with ``last_n > 0``)
* the messages after a summary point, capped at the memory window
  (``get_messages`` with ``last_n == 0``)

No operation spans a transaction across round trips. The session existence
check in ``put_messages`` and the upsert that follows are separate
statements, as are the count and page reads in ``get_message_list``;
concurrent writers may interleave between them.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from typing import Any

import aiosqlite
import structlog

from recollect.models.lookup import Found, Lookup, Missing
from recollect.models.message import (
    Message,
    MessageListResponse,
    Summary,
    make_id,
    now_ms,
)
from recollect.store.database import (
    Database,
    DuplicateSessionError,
    StorageError,
    ValidationError,
)
from recollect.store.metadata import MetadataWriter
from recollect.store.sessions import SessionStore

_UPSERT_COLUMNS = (
    "uuid",
    "session_id",
    "role",
    "content",
    "token_count",
    "created_at",
    "updated_at",
)

# Rows per INSERT statement, keeping bound parameters under SQLite's
# historical 999-variable limit.
_UPSERT_CHUNK_ROWS = 999 // len(_UPSERT_COLUMNS)

# Largest LIMIT/OFFSET value SQLite accepts (signed 64-bit).
_MAX_SQLITE_INT = 2**63 - 1


def _chunks(rows: Sequence[tuple[Any, ...]], size: int) -> Iterator[Sequence[tuple[Any, ...]]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


class MessageStore:
    """
    Reads and writes a session's ordered message log.

    The session store and metadata writer are collaborators: the first
    materialises sessions lazily on the first write, the second persists
    per-message metadata after the messages themselves are stored.
    """

    def __init__(
        self,
        db: Database,
        sessions: SessionStore,
        metadata_writer: MetadataWriter,
    ) -> None:
        self._db = db
        self._sessions = sessions
        self._metadata_writer = metadata_writer
        self._logger = structlog.get_logger("recollect.store.messages")

    # ── Writes ─────────────────────────────────────────────────────────────────

    async def put_messages(self, session_id: str, messages: list[Message]) -> list[Message]:
        """
        Insert new messages or update existing ones, keyed by ``uuid``.

        The session is created if it does not exist. Messages without a
        ``uuid`` get one assigned, and the assigned identifiers are written
        back onto *messages* in order. Re-submitting a stored ``uuid``
        overwrites its session, role, content and token count.

        Args:
            session_id: Session the messages belong to.
            messages: Messages to store. An empty list is a no-op.

        Returns:
            The messages as returned by the metadata writer.

        Raises:
            SessionDeletedError: If the session is soft-deleted. Nothing is written.
            StorageError: If the upsert fails.
        """
        if not messages:
            self._logger.warning("put_messages_empty", session_id=session_id)
            return []
        self._logger.debug("put_messages_started", session_id=session_id, count=len(messages))

        touched = await self._sessions.update(session_id)
        if isinstance(touched, Missing):
            try:
                await self._sessions.create(session_id)
            except DuplicateSessionError:
                # A concurrent writer created it first; re-touch so a session
                # deleted in the meantime still fails the write.
                await self._sessions.update(session_id)

        now = now_ms()
        rows = [
            (
                msg.uuid or make_id("msg"),
                session_id,
                msg.role,
                msg.content,
                msg.token_count,
                now,
                now,
            )
            for msg in messages
        ]

        conn = self._db.conn_or_raise()
        try:
            for chunk in _chunks(rows, _UPSERT_CHUNK_ROWS):
                await conn.execute(self._upsert_sql(len(chunk)), [v for row in chunk for v in row])
            await conn.commit()
        except aiosqlite.Error as exc:
            raise StorageError("failed to create messages", exc) from exc

        for msg, row in zip(messages, rows, strict=True):
            msg.uuid = row[0]
            msg.session_id = session_id

        # Calls through this path come from ordinary API callers, so the
        # metadata write is never privileged.
        stored = await self._metadata_writer.put_message_metadata(
            session_id, messages, False
        )

        self._logger.debug("put_messages_completed", session_id=session_id, count=len(stored))
        return stored

    # ── Reads ──────────────────────────────────────────────────────────────────

    async def get_message_list(
        self,
        session_id: str,
        page: int,
        page_size: int,
    ) -> MessageListResponse | None:
        """
        Return one page of a session's messages in ascending sequence order.

        ``total_count`` is read in a separate statement from the page itself
        and may disagree with it under concurrent writes.

        Args:
            session_id: The session to query.
            page: 1-based page number.
            page_size: Messages per page.

        Returns:
            The page, or None when the page holds no messages.

        Raises:
            ValidationError: On an empty ``session_id``, ``page < 1``, ``page_size < 1``,
                or an offset beyond SQLite's 64-bit integer range.
            StorageError: If either read fails.
        """
        if not session_id:
            raise ValidationError("session_id cannot be empty")
        if page_size < 1:
            raise ValidationError("page_size must be greater than 0")
        if page < 1:
            raise ValidationError("page must be greater than 0")
        if page_size > _MAX_SQLITE_INT or (page - 1) * page_size > _MAX_SQLITE_INT:
            raise ValidationError("page and page_size exceed the addressable range")

        conn = self._db.conn_or_raise()
        try:
            async with conn.execute(
                "SELECT COUNT(*) FROM messages WHERE session_id = ?", (session_id,)
            ) as cursor:
                row = await cursor.fetchone()
            total = row[0] if row else 0
        except aiosqlite.Error as exc:
            raise StorageError("failed to get message count", exc) from exc

        try:
            async with conn.execute(
                "SELECT * FROM messages WHERE session_id = ? ORDER BY id ASC LIMIT ? OFFSET ?",
                (session_id, page_size, (page - 1) * page_size),
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StorageError("failed to get messages", exc) from exc

        if not rows:
            return None
        return MessageListResponse(
            messages=[self._row_to_message(r) for r in rows],
            total_count=total,
            row_count=len(rows),
        )

    async def get_messages_by_uuid(self, session_id: str, uuids: list[str]) -> list[Message]:
        """
        Fetch specific messages of a session by identifier.

        Identifiers belonging to other sessions are ignored. The result order
        is whatever the database returns.
        """
        if not session_id:
            raise ValidationError("session_id cannot be empty")
        if not uuids:
            return []

        conn = self._db.conn_or_raise()
        placeholders = ",".join("?" * len(uuids))
        try:
            async with conn.execute(
                f"SELECT * FROM messages WHERE session_id = ? AND uuid IN ({placeholders})",
                (session_id, *uuids),
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StorageError("unable to retrieve messages", exc) from exc
        return [self._row_to_message(r) for r in rows]

    async def get_messages(
        self,
        session_id: str,
        memory_window: int,
        summary: Summary | None = None,
        last_n: int = 0,
    ) -> list[Message] | None:
        """
        Return a bounded, chronologically ordered slice of a session's history.

        With ``last_n > 0`` the most recent ``last_n`` messages are returned.
        Otherwise the first ``memory_window`` messages after the summary point
        are returned; without a summary, or when its summary point no longer
        exists, the slice starts at the beginning of the session.

        ``memory_window`` is validated in both modes even though the last-N
        read does not use it.

        Returns:
            Messages in ascending sequence order, or None when there are none.

        Raises:
            ValidationError: On an empty ``session_id`` or ``memory_window < 1``.
            StorageError: If a read fails.
        """
        if not session_id:
            raise ValidationError("session_id cannot be empty")
        if memory_window < 1:
            raise ValidationError("memory.message_window must be greater than 0")
        if memory_window > _MAX_SQLITE_INT or last_n > _MAX_SQLITE_INT:
            raise ValidationError("memory_window and last_n exceed the addressable range")

        try:
            if last_n > 0:
                rows = await self._fetch_last_n(session_id, last_n)
            else:
                rows = await self._fetch_after_summary_point(session_id, summary, memory_window)
        except aiosqlite.Error as exc:
            raise StorageError("failed to get messages", exc) from exc

        if not rows:
            return None
        return [self._row_to_message(r) for r in rows]

    async def get_summary_point_index(self, session_id: str, summary_point_uuid: str) -> int:
        """
        Return the sequence number of a summary point message.

        A summary point that no longer exists (for example, because it was
        deleted) is logged and reported as ``0``, meaning "no summary point".

        Raises:
            StorageError: If the lookup fails for any other reason.
        """
        try:
            found = await self._lookup_seq(session_id, summary_point_uuid)
        except aiosqlite.Error as exc:
            raise StorageError(
                f"unable to retrieve last summary point for {summary_point_uuid}", exc
            ) from exc

        if isinstance(found, Missing):
            self._logger.warning(
                "summary_point_missing",
                session_id=session_id,
                summary_point_uuid=summary_point_uuid,
            )
            return 0
        return found.value

    # ── Private Helpers ────────────────────────────────────────────────────────

    async def _fetch_last_n(self, session_id: str, last_n: int) -> list[aiosqlite.Row]:
        conn = self._db.conn_or_raise()
        async with conn.execute(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY id DESC LIMIT ?",
            (session_id, last_n),
        ) as cursor:
            rows = list(await cursor.fetchall())
        rows.reverse()
        return rows

    async def _fetch_after_summary_point(
        self,
        session_id: str,
        summary: Summary | None,
        memory_window: int,
    ) -> list[aiosqlite.Row]:
        index = 0
        if summary is not None:
            index = await self.get_summary_point_index(session_id, summary.summary_point_uuid)

        conn = self._db.conn_or_raise()
        async with conn.execute(
            "SELECT * FROM messages WHERE session_id = ? AND id > ? ORDER BY id ASC LIMIT ?",
            (session_id, index, memory_window),
        ) as cursor:
            return list(await cursor.fetchall())

    async def _lookup_seq(self, session_id: str, uuid: str) -> Lookup[int]:
        conn = self._db.conn_or_raise()
        async with conn.execute(
            "SELECT id FROM messages WHERE session_id = ? AND uuid = ?",
            (session_id, uuid),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return Missing()
        return Found(row["id"])

    @staticmethod
    def _upsert_sql(row_count: int) -> str:
        values = ", ".join(["(" + ", ".join("?" * len(_UPSERT_COLUMNS)) + ")"] * row_count)
        return (
            f"INSERT INTO messages ({', '.join(_UPSERT_COLUMNS)}) VALUES {values}"
            " ON CONFLICT(uuid) DO UPDATE SET"
            " session_id = excluded.session_id,"
            " role = excluded.role,"
            " content = excluded.content,"
            " token_count = excluded.token_count,"
            " updated_at = excluded.updated_at"
        )

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> Message:
        return Message(
            uuid=row["uuid"],
            session_id=row["session_id"],
            seq=row["id"],
            role=row["role"],
            content=row["content"],
            token_count=row["token_count"] or 0,
            metadata=json.loads(row["metadata"]) if row["metadata"] else None,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )
