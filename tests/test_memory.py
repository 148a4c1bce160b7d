"""Tests for the MemoryStore facade."""

from __future__ import annotations

from recollect import MemoryStore
from recollect.models.config import MemoryConfig, RecollectConfig, StoreConfig
from recollect.models.message import Summary
from recollect.store.pool import StorePool
from tests.conftest import RecordingMetadataWriter, make_conversation


def _config(tmp_path, **memory) -> RecollectConfig:
    return RecollectConfig(
        store=StoreConfig(db_path=str(tmp_path / "memory.db")),
        memory=MemoryConfig(**memory),
    )


class TestMemoryStore:
    async def test_open_and_round_trip(self, tmp_path):
        async with MemoryStore.open(db_path=str(tmp_path / "rt.db")) as memory:
            await memory.put_messages("sess_rt", make_conversation(3))
            page = await memory.get_message_list("sess_rt")
            assert page is not None
            assert [m.content for m in page.messages] == ["m1", "m2", "m3"]
        assert memory.config.store.db_path == str(tmp_path / "rt.db")

    async def test_default_message_window(self, tmp_path):
        """get_messages without a window uses memory.message_window."""
        async with MemoryStore.open(config=_config(tmp_path, message_window=2)) as memory:
            conv = make_conversation(5)
            await memory.put_messages("sess_w", conv)
            msgs = await memory.get_messages("sess_w")
            assert msgs is not None
            assert [m.content for m in msgs] == ["m1", "m2"]

            after = await memory.get_messages(
                "sess_w", summary=Summary(summary_point_uuid=conv[2].uuid)
            )
            assert after is not None
            assert [m.content for m in after] == ["m4", "m5"]

    async def test_explicit_window_and_last_n(self, tmp_path):
        async with MemoryStore.open(config=_config(tmp_path)) as memory:
            await memory.put_messages("sess_w", make_conversation(5))
            windowed = await memory.get_messages("sess_w", memory_window=4)
            recent = await memory.get_messages("sess_w", last_n=2)
            assert windowed is not None and recent is not None
            assert len(windowed) == 4
            assert [m.content for m in recent] == ["m4", "m5"]

    async def test_default_page_size(self, tmp_path):
        async with MemoryStore.open(config=_config(tmp_path, page_size=2)) as memory:
            await memory.put_messages("sess_p", make_conversation(5))
            page = await memory.get_message_list("sess_p", page=2)
            assert page is not None
            assert page.row_count == 2
            assert page.total_count == 5
            assert [m.content for m in page.messages] == ["m3", "m4"]

    async def test_lookup_by_uuid(self, tmp_path):
        async with MemoryStore.open(config=_config(tmp_path)) as memory:
            conv = make_conversation(3)
            await memory.put_messages("sess_u", conv)
            fetched = await memory.get_messages_by_uuid("sess_u", [conv[0].uuid])
            assert [m.content for m in fetched] == ["m1"]

    async def test_custom_metadata_writer(self, tmp_path):
        writer = RecordingMetadataWriter()
        async with MemoryStore.open(
            config=_config(tmp_path), metadata_writer=writer
        ) as memory:
            await memory.put_messages("sess_c", make_conversation(1))
        assert len(writer.calls) == 1

    async def test_sessions_exposed(self, tmp_path):
        async with MemoryStore.open(config=_config(tmp_path)) as memory:
            await memory.put_messages("sess_s", make_conversation(1))
            session = await memory.sessions.get("sess_s")
            assert session.session_id == "sess_s"

    async def test_shared_pool(self, tmp_path):
        """Two stores on one pool share the connection and see each other's writes."""
        pool = StorePool()
        try:
            cfg = _config(tmp_path)
            a = await MemoryStore.create(config=cfg, pool=pool)
            b = await MemoryStore.create(config=cfg, pool=pool)
            await a.put_messages("sess_shared", make_conversation(2))
            page = await b.get_message_list("sess_shared")
            assert page is not None
            assert page.total_count == 2
            await a.close()
            await b.close()
        finally:
            await pool.close_all()

    async def test_close_is_idempotent(self, tmp_path):
        memory = await MemoryStore.create(config=_config(tmp_path))
        await memory.close()
        await memory.close()
