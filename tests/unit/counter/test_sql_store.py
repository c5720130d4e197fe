"""Tests for the SQL counter store, run against SQLite."""

import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from buildsync.core.modules.counter.backends.sql import SqlCounterStore
from buildsync.core.modules.counter.models import CounterKey
from buildsync.errors import InvalidArgumentError


@pytest.fixture
async def sql_store(tmp_path):
    """SQL counter store on a fresh SQLite file; one pooled connection serializes transactions."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'counters.db'}", pool_size=1, max_overflow=0)
    store = SqlCounterStore(engine)
    await store.on_start()
    yield store
    await store.on_stop()


@pytest.mark.asyncio
class TestSqlIncrement:
    """Tests for SqlCounterStore.get_and_increment."""

    async def test_sequence_starts_at_one(self, sql_store, counter_key):
        """Test that sequential calls return 1, 2, 3."""
        assert [await sql_store.get_and_increment(counter_key) for _ in range(3)] == [1, 2, 3]

    async def test_concurrent_increments_have_no_duplicates_or_gaps(self, sql_store, counter_key):
        """Test that N concurrent increments return exactly current+1..current+N."""
        await sql_store.set(counter_key, 20)

        results = await asyncio.gather(*(sql_store.get_and_increment(counter_key) for _ in range(10)))

        assert sorted(results) == list(range(21, 31))
        assert (await sql_store.get(counter_key)).value == 30

    async def test_keys_are_independent(self, sql_store):
        """Test that different keys count separately."""
        first = CounterKey.of("com.app", "ios")
        second = CounterKey.of("com.other", "ios")
        await sql_store.get_and_increment(first)
        await sql_store.get_and_increment(first)
        assert await sql_store.get_and_increment(second) == 1

    async def test_separator_in_key_parts(self, sql_store):
        """Test that keys differing only in where an underscore falls do not share a counter."""
        first = CounterKey.of("com.app_ios", "default")
        second = CounterKey.of("com.app", "ios_default")
        await sql_store.set(first, 50)

        assert await sql_store.get_and_increment(second) == 1
        assert await sql_store.get_and_increment(first) == 51

    async def test_server_timestamp_recorded(self, sql_store, counter_key):
        """Test that last_updated is filled in by the database."""
        await sql_store.get_and_increment(counter_key)
        record = await sql_store.get(counter_key)
        assert record.last_updated is not None


@pytest.mark.asyncio
class TestSqlSetDelete:
    """Tests for set, delete and exists."""

    async def test_set_then_increment(self, sql_store, counter_key):
        """Test that set(k, v) followed by get_and_increment(k) returns v + 1."""
        assert await sql_store.set(counter_key, 50) == 50
        assert await sql_store.get_and_increment(counter_key) == 51

    async def test_set_overwrites_backwards(self, sql_store, counter_key):
        """Test that set replaces a larger stored value."""
        await sql_store.set(counter_key, 90)
        assert await sql_store.set(counter_key, 0) == 0
        assert await sql_store.get_and_increment(counter_key) == 1

    async def test_negative_set_rejected(self, sql_store, counter_key):
        """Test that negative values are invalid arguments."""
        with pytest.raises(InvalidArgumentError):
            await sql_store.set(counter_key, -1)

    async def test_delete_lifecycle(self, sql_store, counter_key):
        """Test delete on absent and present keys."""
        assert await sql_store.delete(counter_key) is False
        await sql_store.set(counter_key, 3)
        assert await sql_store.exists(counter_key)
        assert await sql_store.delete(counter_key) is True
        assert not await sql_store.exists(counter_key)
        assert await sql_store.get_and_increment(counter_key) == 1


class TestSqlDialects:
    """Tests for dialect support."""

    def test_unsupported_dialect_rejected(self):
        """Test that only dialects with an upsert statement are accepted."""
        engine = SimpleNamespace(dialect=SimpleNamespace(name="mysql"))
        with pytest.raises(ValueError, match="mysql"):
            SqlCounterStore(engine)
