"""MongoDB counter store with transactional read-modify-write."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pymongo import AsyncMongoClient
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure, ExecutionTimeout, PyMongoError, WTimeoutError

from buildsync.core.modules.counter.models import CounterKey, CounterRecord
from buildsync.core.modules.counter.store import CounterStore, ensure_non_negative
from buildsync.errors import TransientError

logger = structlog.get_logger(__name__)

COLLECTION_NAME = "build_numbers"
RETRYABLE_LABEL = "TransientTransactionError"
TRANSIENT_ERRORS = (ConnectionFailure, ExecutionTimeout, WTimeoutError)


class CounterDocument(BaseModel):
    """Counter as stored in MongoDB.

    ``_id`` is the embedded ``{bundle_id, platform}`` pair, so no choice of
    separator can make two keys collide. ``last_updated`` is set by the server.
    """

    id: dict[str, str] = Field(alias="_id")
    bundle_id: str
    platform: str
    build_number: int = 0
    last_updated: datetime | None = None

    model_config = ConfigDict(populate_by_name=True)

    def to_record(self) -> CounterRecord:
        return CounterRecord(
            key=CounterKey(bundle_id=self.bundle_id, platform=self.platform),
            value=self.build_number,
            last_updated=self.last_updated,
        )


def _is_transient(error: PyMongoError) -> bool:
    return isinstance(error, TRANSIENT_ERRORS) or error.has_error_label("UnknownTransactionCommitResult")


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except PyMongoError as e:
        if _is_transient(e):
            raise TransientError(f"Document store unavailable: {e}") from e
        raise


def _filter_for(key: CounterKey) -> dict[str, Any]:
    return {"_id": {"bundle_id": key.bundle_id, "platform": key.platform}}


def _update_for(key: CounterKey, value: int) -> dict[str, Any]:
    return {
        "$set": {"bundle_id": key.bundle_id, "platform": key.platform, "build_number": value},
        "$currentDate": {"last_updated": True},
    }


class DocumentCounterStore(CounterStore):
    """Counter store on a MongoDB replica set.

    Increments run inside a multi-document transaction. Transactions that abort
    with a write conflict are retried as a whole, up to ``max_attempts`` times.
    """

    name = "document"

    def __init__(
        self,
        client: AsyncMongoClient[dict[str, Any]],
        database: AsyncDatabase[dict[str, Any]],
        max_attempts: int = 5,
    ) -> None:
        self._client = client
        self._collection = database.get_collection(COLLECTION_NAME)
        self._max_attempts = max(max_attempts, 1)

    async def on_stop(self) -> None:
        await self._client.aclose()

    async def get_and_increment(self, key: CounterKey) -> int:
        last_error: PyMongoError | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                async with self._client.start_session() as session:
                    async with await session.start_transaction():
                        value = await self._increment(key, session)
            except PyMongoError as e:
                if not e.has_error_label(RETRYABLE_LABEL):
                    if _is_transient(e):
                        raise TransientError(f"Document store unavailable: {e}") from e
                    raise
                last_error = e
                logger.warning("counter_transaction_conflict", key=str(key), attempt=attempt, error=str(e))
                continue
            logger.debug("counter_incremented", key=str(key), build_number=value, attempt=attempt)
            return value

        raise TransientError(
            f"Counter '{key}' could not be incremented after {self._max_attempts} conflicting attempts"
        ) from last_error

    async def _increment(self, key: CounterKey, session: AsyncClientSession) -> int:
        doc = await self._collection.find_one(_filter_for(key), session=session)
        value = int(doc["build_number"]) + 1 if doc else 1
        await self._collection.update_one(_filter_for(key), _update_for(key, value), upsert=True, session=session)
        return value

    async def set(self, key: CounterKey, value: int) -> int:
        ensure_non_negative(value)
        with _store_errors():
            await self._collection.update_one(_filter_for(key), _update_for(key, value), upsert=True)
        return value

    async def delete(self, key: CounterKey) -> bool:
        with _store_errors():
            result = await self._collection.delete_one(_filter_for(key))
        return result.deleted_count > 0

    async def exists(self, key: CounterKey) -> bool:
        with _store_errors():
            return await self._collection.count_documents(_filter_for(key), limit=1) > 0

    async def get(self, key: CounterKey) -> CounterRecord | None:
        with _store_errors():
            doc = await self._collection.find_one(_filter_for(key))
        if doc is None:
            return None
        return CounterDocument.model_validate(doc).to_record()
