"""Configuration models for Recollect stores and components."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """Configuration for the SQLite persistence layer."""

    db_path: str = Field(
        default="~/.recollect/memory.db",
        description="Path to the SQLite database file. ~ is expanded at runtime.",
    )

    wal_mode: bool = True
    """Use WAL journal mode for better concurrent read performance."""

    connection_timeout: float = 30.0
    """Seconds to wait for the database connection before raising."""


class MemoryConfig(BaseModel):
    """Defaults applied by ``MemoryStore`` when a read call omits them."""

    message_window: int = Field(
        default=12,
        ge=1,
        description="Maximum number of messages returned after the summary point.",
    )

    page_size: int = Field(
        default=100,
        ge=1,
        description="Default page size for paginated message listing.",
    )


class RecollectConfig(BaseModel):
    """
    Top-level configuration for a Recollect memory store.

    Example::

        config = RecollectConfig(
            store=StoreConfig(db_path="/var/lib/recollect/memory.db"),
            memory=MemoryConfig(message_window=20),
        )
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)

    @classmethod
    def default(cls) -> RecollectConfig:
        """Return a config instance with all defaults."""
        return cls()
