"""Per-message metadata persistence."""

from __future__ import annotations

import json
from typing import Protocol

import aiosqlite
import structlog

from recollect.models.message import Message
from recollect.store.database import Database, StorageError

# Keys only privileged callers may write.
RESERVED_METADATA_KEYS: frozenset[str] = frozenset({"system"})


class MetadataWriter(Protocol):
    """Anything that can persist message metadata after the messages themselves are stored."""

    async def put_message_metadata(
        self,
        session_id: str,
        messages: list[Message],
        is_privileged: bool,
    ) -> list[Message]: ...


class SQLiteMetadataWriter:
    """
    Merges message metadata into the ``messages.metadata`` JSON column.

    Incoming metadata is merged with ``json_patch``: keys present in the
    update overwrite stored keys, other stored keys are kept, and a ``null``
    value removes a key. Unprivileged writes drop reserved keys first.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._logger = structlog.get_logger("recollect.store.metadata")

    async def put_message_metadata(
        self,
        session_id: str,
        messages: list[Message],
        is_privileged: bool,
    ) -> list[Message]:
        """
        Persist metadata for every message that carries some.

        Args:
            session_id: Session the messages belong to.
            messages: Messages with ``uuid`` already assigned by the store.
            is_privileged: When False, reserved keys are stripped before writing.

        Returns:
            Copies of *messages*; those that carried metadata hold the merged,
            stored value.

        Raises:
            StorageError: If any metadata cannot be JSON-encoded (nothing is
                written), or if any update or read-back fails.
        """
        patches = [self._encode_patch(msg, is_privileged) for msg in messages]

        conn = self._db.conn_or_raise()
        result: list[Message] = []
        try:
            for msg, patch in zip(messages, patches, strict=True):
                if patch is None:
                    result.append(msg)
                    continue
                await conn.execute(
                    "UPDATE messages SET metadata = json_patch(COALESCE(metadata, '{}'), ?)"
                    " WHERE session_id = ? AND uuid = ?",
                    (patch, session_id, msg.uuid),
                )
                async with conn.execute(
                    "SELECT metadata FROM messages WHERE session_id = ? AND uuid = ?",
                    (session_id, msg.uuid),
                ) as cursor:
                    row = await cursor.fetchone()
                stored = json.loads(row["metadata"]) if row and row["metadata"] else None
                result.append(msg.model_copy(update={"metadata": stored or None}))
            await conn.commit()
        except aiosqlite.Error as exc:
            raise StorageError("failed to put message metadata", exc) from exc

        self._logger.debug(
            "message_metadata_put",
            session_id=session_id,
            count=len(messages),
            is_privileged=is_privileged,
        )
        return result

    @staticmethod
    def _encode_patch(msg: Message, is_privileged: bool) -> str | None:
        if not msg.metadata:
            return None
        patch = dict(msg.metadata)
        if not is_privileged:
            for key in RESERVED_METADATA_KEYS:
                patch.pop(key, None)
        try:
            return json.dumps(patch)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"failed to encode metadata for message {msg.uuid}", exc) from exc
