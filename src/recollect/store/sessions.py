"""Minimal session table access: the existence check that precedes message writes."""

from __future__ import annotations

import json
from typing import Any

import aiosqlite
import structlog

from recollect.models.lookup import Found, Lookup, Missing
from recollect.models.message import Session, now_ms
from recollect.store.database import (
    Database,
    DuplicateSessionError,
    SessionDeletedError,
    SessionNotFoundError,
    StorageError,
)


class SessionStore:
    """
    Creates, touches and soft-deletes session rows.

    Only what message writes need lives here; richer session lifecycle
    management belongs to the host application.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._logger = structlog.get_logger("recollect.store.sessions")

    async def create(
        self,
        session_id: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> Session:
        """
        Insert a new session row.

        Raises:
            DuplicateSessionError: If a session with this ID already exists,
                including a soft-deleted one.
            StorageError: On any other database failure.
        """
        conn = self._db.conn_or_raise()
        now = now_ms()
        try:
            await conn.execute(
                "INSERT INTO sessions (session_id, metadata, created_at, updated_at)"
                " VALUES (?, ?, ?, ?)",
                (session_id, json.dumps(metadata) if metadata else None, now, now),
            )
            await conn.commit()
        except aiosqlite.IntegrityError as exc:
            raise DuplicateSessionError(session_id) from exc
        except aiosqlite.Error as exc:
            raise StorageError("failed to create session", exc) from exc

        self._logger.debug("session_created", session_id=session_id)
        return Session(
            session_id=session_id, metadata=metadata, created_at=now, updated_at=now
        )

    async def update(
        self,
        session_id: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> Lookup[Session]:
        """
        Touch ``updated_at`` on a live session, merging *metadata* if given.

        Returns:
            ``Found(session)`` after the update, or ``Missing()`` when no row
            with this ID exists.

        Raises:
            SessionDeletedError: If the session exists but is soft-deleted.
            StorageError: On any database failure.
        """
        conn = self._db.conn_or_raise()
        meta_json = json.dumps(metadata) if metadata else None
        try:
            await conn.execute(
                "UPDATE sessions SET updated_at = ?,"
                " metadata = CASE WHEN ? IS NULL THEN metadata"
                "   ELSE json_patch(COALESCE(metadata, '{}'), ?) END"
                " WHERE session_id = ? AND deleted_at IS NULL",
                (now_ms(), meta_json, meta_json, session_id),
            )
            await conn.commit()
            row = await self._fetch_row(conn, session_id)
        except aiosqlite.Error as exc:
            raise StorageError("failed to update session", exc) from exc

        if row is None:
            return Missing()
        session = self._row_to_session(row)
        if session.is_deleted:
            raise SessionDeletedError(session_id)
        return Found(session)

    async def get(self, session_id: str) -> Session:
        """
        Fetch a session by ID, deleted or not.

        Raises:
            SessionNotFoundError: If no session with this ID exists.
        """
        conn = self._db.conn_or_raise()
        try:
            row = await self._fetch_row(conn, session_id)
        except aiosqlite.Error as exc:
            raise StorageError("failed to get session", exc) from exc
        if row is None:
            raise SessionNotFoundError(session_id)
        return self._row_to_session(row)

    async def delete(self, session_id: str) -> None:
        """
        Soft-delete a session. Its messages are retained.

        Raises:
            SessionNotFoundError: If no live session with this ID exists.
        """
        conn = self._db.conn_or_raise()
        now = now_ms()
        try:
            result = await conn.execute(
                "UPDATE sessions SET deleted_at = ?, updated_at = ?"
                " WHERE session_id = ? AND deleted_at IS NULL",
                (now, now, session_id),
            )
            await conn.commit()
        except aiosqlite.Error as exc:
            raise StorageError("failed to delete session", exc) from exc
        if result.rowcount == 0:
            raise SessionNotFoundError(session_id)
        self._logger.debug("session_deleted", session_id=session_id)

    # ── Private Helpers ────────────────────────────────────────────────────────

    @staticmethod
    async def _fetch_row(conn: aiosqlite.Connection, session_id: str) -> aiosqlite.Row | None:
        async with conn.execute(
            "SELECT * FROM sessions WHERE session_id = ?", (session_id,)
        ) as cursor:
            return await cursor.fetchone()

    @staticmethod
    def _row_to_session(row: aiosqlite.Row) -> Session:
        return Session(
            session_id=row["session_id"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else None,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )
