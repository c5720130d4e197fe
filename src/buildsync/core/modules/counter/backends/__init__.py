from typing import Any
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from redis.asyncio import Redis
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from buildsync.config import Config
from buildsync.core.modules.counter.backends.document import DocumentCounterStore
from buildsync.core.modules.counter.backends.kv import KeyValueCounterStore
from buildsync.core.modules.counter.backends.sql import SqlCounterStore
from buildsync.core.modules.counter.store import CounterStore

DEFAULT_MONGO_DATABASE = "buildsync"

__all__ = [
    "DocumentCounterStore",
    "KeyValueCounterStore",
    "SqlCounterStore",
    "create_counter_store",
]


def _pool_options(config: Config) -> dict[str, Any]:
    """Pool sizing options; none for in-memory SQLite, which runs on a static pool."""
    url = make_url(config.sql_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return {}
    return {"pool_size": config.sql_pool_size, "pool_timeout": config.request_timeout_seconds}


def create_counter_store(config: Config) -> CounterStore:
    """Build the counter store selected by ``config.backend``.

    Called once at process start; the store and its connection pool live for the
    whole lifetime of the server.
    """
    timeout = config.request_timeout_seconds

    if config.backend == "kv":
        redis_client = Redis.from_url(
            config.redis_url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return KeyValueCounterStore(redis_client)

    if config.backend == "document":
        mongo_client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            config.mongo_url, timeoutMS=int(timeout * 1000)
        )
        database_name = urlparse(config.mongo_url).path[1:] or DEFAULT_MONGO_DATABASE
        return DocumentCounterStore(
            mongo_client,
            mongo_client.get_database(database_name),
            max_attempts=config.transaction_max_attempts,
        )

    if config.backend == "sql":
        return SqlCounterStore(create_async_engine(config.sql_url, pool_pre_ping=True, **_pool_options(config)))

    raise ValueError(f"Unknown counter backend: {config.backend}")
