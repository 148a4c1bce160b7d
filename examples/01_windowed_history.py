"""
Example 01: Windowed History
============================

Demonstrates the three ways of reading a session's history:
- A page of the full log with get_message_list()
- The last N messages with get_messages(last_n=...)
- Everything after a summary point, capped at the memory window

Run:
    uv run python examples/01_windowed_history.py
"""

import asyncio
import sys
import tempfile
from pathlib import Path

# Add project root to path when running directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


async def main() -> None:
    from recollect import MemoryConfig, RecollectConfig

    print("=== Recollect Windowed History Example ===\n")

    config = RecollectConfig(memory=MemoryConfig(message_window=3, page_size=4))

    with tempfile.TemporaryDirectory() as tmp_dir:
        await _run(config, str(Path(tmp_dir) / "example_01.db"))


async def _run(config, db_path: str) -> None:
    from recollect import MemoryStore, Message, Summary

    async with MemoryStore.open(config=config, db_path=db_path) as memory:
        turns = [
            Message(role="user" if i % 2 else "assistant", content=f"turn {i}")
            for i in range(1, 9)
        ]
        await memory.put_messages("sess_demo", turns)
        print(f"Stored {len(turns)} messages, first id: {turns[0].uuid}\n")

        page = await memory.get_message_list("sess_demo", page=2)
        if page is not None:
            print(f"Page 2 ({page.row_count} of {page.total_count}):")
            for msg in page.messages:
                print(f"  [{msg.seq}] {msg.role}: {msg.content}")

        recent = await memory.get_messages("sess_demo", last_n=2) or []
        print("\nLast 2:", [m.content for m in recent])

        # Pretend the first five turns were folded into a summary
        summary = Summary(summary_point_uuid=turns[4].uuid)
        fresh = await memory.get_messages("sess_demo", summary=summary) or []
        print("Since summary point:", [m.content for m in fresh])


if __name__ == "__main__":
    asyncio.run(main())
