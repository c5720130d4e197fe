"""Shared pytest fixtures."""

import logging
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from buildsync.core.modules.counter.backends.document import DocumentCounterStore
from buildsync.core.modules.counter.backends.kv import KeyValueCounterStore
from buildsync.core.modules.counter.models import CounterKey
from buildsync.logging import HANDLER_NAME


class FakeTransaction:
    async def __aenter__(self) -> "FakeTransaction":
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


class FakeSession:
    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False

    async def start_transaction(self) -> FakeTransaction:
        return FakeTransaction()


class FakeMongoClient:
    """Records how many sessions (transaction attempts) were started."""

    def __init__(self) -> None:
        self.sessions_started = 0
        self.closed = False

    def start_session(self) -> FakeSession:
        self.sessions_started += 1
        return FakeSession()

    async def aclose(self) -> None:
        self.closed = True


def _doc_key(doc_id: Any) -> Any:
    return tuple(doc_id.items()) if isinstance(doc_id, dict) else doc_id


class FakeCollection:
    """Dictionary-backed collection; queued ``failures`` are raised by the next calls."""

    def __init__(self) -> None:
        self.docs: dict[Any, dict[str, Any]] = {}
        self.failures: list[Exception] = []

    def _maybe_fail(self) -> None:
        if self.failures:
            raise self.failures.pop(0)

    async def find_one(self, query: dict[str, Any], session: object = None) -> dict[str, Any] | None:
        self._maybe_fail()
        doc = self.docs.get(_doc_key(query["_id"]))
        return dict(doc) if doc is not None else None

    async def update_one(
        self, query: dict[str, Any], update: dict[str, Any], upsert: bool = False, session: object = None
    ) -> SimpleNamespace:
        self._maybe_fail()
        doc = self.docs.setdefault(_doc_key(query["_id"]), {"_id": query["_id"]})
        doc.update(update["$set"])
        for field in update.get("$currentDate", {}):
            doc[field] = datetime.now(UTC)
        return SimpleNamespace(matched_count=1)

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        self._maybe_fail()
        removed = self.docs.pop(_doc_key(query["_id"]), None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)

    async def count_documents(self, query: dict[str, Any], limit: int = 0) -> int:
        self._maybe_fail()
        return 1 if _doc_key(query["_id"]) in self.docs else 0


class FakeDatabase:
    def __init__(self, collection: FakeCollection) -> None:
        self.collection = collection

    def get_collection(self, name: str) -> FakeCollection:
        return self.collection


@pytest.fixture(autouse=True)
def drop_log_handler():
    """Remove the handler installed by setup_logging so it never outlives the test's streams."""
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)


@pytest.fixture
def counter_key():
    """Key used by most counter tests."""
    return CounterKey(bundle_id="com.app.test", platform="default")


@pytest.fixture
def fake_redis():
    """Async Redis client on a server private to the test."""
    return FakeRedis(server=FakeServer(), decode_responses=True)


@pytest.fixture
def kv_store(fake_redis):
    """Key-value counter store over an in-memory Redis."""
    return KeyValueCounterStore(fake_redis)


@pytest.fixture
def mongo_client():
    return FakeMongoClient()


@pytest.fixture
def mongo_collection():
    return FakeCollection()


@pytest.fixture
def document_store(mongo_client, mongo_collection):
    """Document counter store over in-memory MongoDB fakes, allowing three attempts."""
    return DocumentCounterStore(mongo_client, FakeDatabase(mongo_collection), max_attempts=3)
