"""Tests for SQLiteMetadataWriter."""

from __future__ import annotations

from datetime import datetime

import pytest

from recollect.models.message import Message
from recollect.store.database import StorageError
from tests.conftest import make_message


async def _stored(message_store, session_id: str, msgs: list[Message]) -> list[Message]:
    return await message_store.put_messages(session_id, msgs)


class TestSQLiteMetadataWriter:
    async def test_messages_without_metadata_pass_through(self, message_store):
        msgs = [make_message("plain")]
        result = await _stored(message_store, "sess_m", msgs)
        assert result[0].metadata is None

    async def test_unprivileged_strips_system_key(self, message_store, metadata_writer):
        msgs = [make_message(metadata={"system": {"intent": "x"}, "topic": "tea"})]
        await _stored(message_store, "sess_m", msgs)
        fetched = await message_store.get_messages_by_uuid("sess_m", [msgs[0].uuid])
        assert fetched[0].metadata == {"topic": "tea"}

    async def test_privileged_keeps_system_key(self, message_store, metadata_writer):
        msgs = [make_message()]
        await _stored(message_store, "sess_m", msgs)
        patch = msgs[0].model_copy(update={"metadata": {"system": {"intent": "x"}}})
        result = await metadata_writer.put_message_metadata("sess_m", [patch], True)
        assert result[0].metadata == {"system": {"intent": "x"}}

    async def test_merges_with_stored_metadata(self, message_store):
        """New keys are added, repeated keys overwritten, others kept."""
        msgs = [make_message(uuid="msg_merge", metadata={"a": 1, "b": 2})]
        await _stored(message_store, "sess_m", msgs)
        again = [make_message(uuid="msg_merge", metadata={"b": 20, "c": 30})]
        result = await _stored(message_store, "sess_m", again)
        assert result[0].metadata == {"a": 1, "b": 20, "c": 30}

    async def test_only_reserved_keys_leaves_metadata_empty(self, message_store):
        msgs = [make_message(metadata={"system": "secret"})]
        result = await _stored(message_store, "sess_m", msgs)
        assert result[0].metadata is None

    async def test_unencodable_metadata_writes_nothing(self, message_store, metadata_writer):
        """A value JSON cannot encode fails the whole call before any metadata is written."""
        msgs = [make_message("a"), make_message("b")]
        await _stored(message_store, "sess_m", msgs)
        good = msgs[0].model_copy(update={"metadata": {"topic": "tea"}})
        bad = msgs[1].model_copy(update={"metadata": {"at": datetime(2024, 1, 1)}})

        with pytest.raises(StorageError):
            await metadata_writer.put_message_metadata("sess_m", [good, bad], False)

        fetched = await message_store.get_messages_by_uuid("sess_m", [msgs[0].uuid])
        assert fetched[0].metadata is None
