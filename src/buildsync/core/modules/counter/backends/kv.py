"""Redis counter store.

Redis is used as a plain key-value store: the increment is a read followed by a
write, without WATCH/MULTI or a server-side script. Two callers racing on the
same key can both read the same current value, in which case one increment is
lost and both receive the same build number. Deployments that build the same
bundle concurrently should use the document or SQL backend instead.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from buildsync.core.modules.counter.models import CounterKey, CounterRecord
from buildsync.core.modules.counter.store import CounterStore, ensure_non_negative
from buildsync.errors import TransientError
from buildsync.utils import now

logger = structlog.get_logger(__name__)

KEY_PREFIX = "build_number"
VALUE_FIELD = "build_number"
UPDATED_FIELD = "last_updated"


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        raise TransientError(f"Key-value store unavailable: {e}") from e


class KeyValueCounterStore(CounterStore):
    """Counter store backed by Redis hashes, one hash per counter key."""

    name = "kv"

    def __init__(self, client: Redis) -> None:
        self._client = client

    @staticmethod
    def redis_key(key: CounterKey) -> str:
        """Hash name for ``key``; the bundle id is length-prefixed since both parts may contain ``:``."""
        return f"{KEY_PREFIX}:{len(key.bundle_id)}:{key.bundle_id}:{key.platform}"

    async def on_stop(self) -> None:
        await self._client.aclose()

    async def get_and_increment(self, key: CounterKey) -> int:
        redis_key = self.redis_key(key)
        with _store_errors():
            current = await self._client.hget(redis_key, VALUE_FIELD)
            next_value = int(current) + 1 if current is not None else 1
            await self._write(redis_key, next_value)

        logger.debug("counter_incremented", key=str(key), build_number=next_value)
        return next_value

    async def set(self, key: CounterKey, value: int) -> int:
        ensure_non_negative(value)
        with _store_errors():
            await self._write(self.redis_key(key), value)
        return value

    async def delete(self, key: CounterKey) -> bool:
        with _store_errors():
            removed = await self._client.delete(self.redis_key(key))
        return bool(removed)

    async def exists(self, key: CounterKey) -> bool:
        with _store_errors():
            return bool(await self._client.exists(self.redis_key(key)))

    async def get(self, key: CounterKey) -> CounterRecord | None:
        with _store_errors():
            data = await self._client.hgetall(self.redis_key(key))
        if not data:
            return None
        updated = data.get(UPDATED_FIELD)
        return CounterRecord(
            key=key,
            value=int(data[VALUE_FIELD]),
            last_updated=datetime.fromisoformat(updated) if updated else None,
        )

    async def _write(self, redis_key: str, value: int) -> None:
        await self._client.hset(redis_key, mapping={VALUE_FIELD: value, UPDATED_FIELD: now().isoformat()})
