"""Tests for configuration models."""

from __future__ import annotations

import pytest

from recollect.models.config import MemoryConfig, RecollectConfig, StoreConfig


class TestStoreConfig:
    def test_defaults(self) -> None:
        cfg = StoreConfig()
        assert cfg.db_path == "~/.recollect/memory.db"
        assert cfg.wal_mode is True
        assert cfg.connection_timeout == 30.0


class TestMemoryConfig:
    def test_defaults(self) -> None:
        cfg = MemoryConfig()
        assert cfg.message_window == 12
        assert cfg.page_size == 100

    def test_bounds_enforced(self) -> None:
        with pytest.raises(ValueError):
            MemoryConfig(message_window=0)
        with pytest.raises(ValueError):
            MemoryConfig(page_size=0)


class TestRecollectConfig:
    def test_default_builds_sub_configs(self) -> None:
        cfg = RecollectConfig.default()
        assert isinstance(cfg.store, StoreConfig)
        assert isinstance(cfg.memory, MemoryConfig)

    def test_nested_override(self) -> None:
        cfg = RecollectConfig(memory=MemoryConfig(message_window=30))
        assert cfg.memory.message_window == 30
        assert cfg.store.db_path == "~/.recollect/memory.db"
