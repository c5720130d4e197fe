"""Tests for choosing the counter store from configuration."""

import pytest

from buildsync.config import Config
from buildsync.core.modules.counter.backends import KeyValueCounterStore, SqlCounterStore, create_counter_store


class TestCreateCounterStore:
    """Tests for create_counter_store."""

    def test_kv_backend(self):
        """Test that the kv backend builds a Redis store without connecting."""
        store = create_counter_store(Config(backend="kv", redis_url="redis://localhost:6399/1"))
        assert isinstance(store, KeyValueCounterStore)
        assert store.name == "kv"

    def test_sql_backend(self, tmp_path):
        """Test that the sql backend builds a store for a supported dialect."""
        store = create_counter_store(Config(backend="sql", sql_url=f"sqlite+aiosqlite:///{tmp_path / 'c.db'}"))
        assert isinstance(store, SqlCounterStore)

    def test_in_memory_sqlite(self):
        """Test that an in-memory SQLite URL builds a store without pool sizing options."""
        store = create_counter_store(Config(backend="sql", sql_url="sqlite+aiosqlite:///:memory:", sql_pool_size=3))
        assert isinstance(store, SqlCounterStore)

    def test_unknown_backend(self):
        """Test that unknown backend names are rejected."""
        config = Config.model_construct(backend="etcd")
        with pytest.raises(ValueError, match="etcd"):
            create_counter_store(config)
