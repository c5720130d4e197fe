"""SQL counter store on SQLAlchemy's async engine.

Supports PostgreSQL and SQLite. An increment is one transaction: the current row
is read (locked with ``FOR UPDATE`` where the dialect supports it), then an
``INSERT ... ON CONFLICT DO UPDATE`` writes the next value together with a
server-generated timestamp and returns what was stored.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import BigInteger, ColumnElement, DateTime, String, and_, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from buildsync.core.modules.counter.models import CounterKey, CounterRecord
from buildsync.core.modules.counter.store import CounterStore, ensure_non_negative
from buildsync.errors import TransientError

logger = structlog.get_logger(__name__)

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class Base(DeclarativeBase):
    pass


class BuildNumberModel(Base):
    __tablename__ = "build_numbers"

    bundle_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    platform: Mapped[str] = mapped_column(String(255), primary_key=True)
    build_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


def _matches(key: CounterKey) -> ColumnElement[bool]:
    return and_(BuildNumberModel.bundle_id == key.bundle_id, BuildNumberModel.platform == key.platform)


class SqlCounterStore(CounterStore):
    """Counter store backed by a ``build_numbers`` table."""

    name = "sql"

    def __init__(self, engine: AsyncEngine) -> None:
        dialect = engine.dialect.name
        if dialect not in UPSERT_DIALECTS:
            raise ValueError(f"Unsupported SQL dialect for counter store: {dialect}")
        self._engine = engine
        self._insert = UPSERT_DIALECTS[dialect]
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def on_start(self) -> None:
        """Create the counters table if it does not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def on_stop(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            raise TransientError(f"SQL store unavailable: {e}") from e

    def _upsert(self, key: CounterKey, initial: int, on_conflict: Any) -> Any:
        table = BuildNumberModel.__table__
        stmt = self._insert(table).values(
            bundle_id=key.bundle_id,
            platform=key.platform,
            build_number=initial,
            last_updated=func.now(),
        )
        return stmt.on_conflict_do_update(
            index_elements=[table.c.bundle_id, table.c.platform],
            set_={"build_number": on_conflict, "last_updated": func.now()},
        ).returning(table.c.build_number)

    async def get_and_increment(self, key: CounterKey) -> int:
        async with self._transaction() as session:
            current = await session.scalar(
                select(BuildNumberModel.build_number).where(_matches(key)).with_for_update()
            )
            # Increment relative to the stored row so a concurrent first insert is not overwritten
            value = await session.scalar(self._upsert(key, 1, BuildNumberModel.build_number + 1))

        logger.debug("counter_incremented", key=str(key), previous=current, build_number=value)
        return int(value)

    async def set(self, key: CounterKey, value: int) -> int:
        ensure_non_negative(value)
        async with self._transaction() as session:
            stored = await session.scalar(self._upsert(key, value, value))
        return int(stored)

    async def delete(self, key: CounterKey) -> bool:
        async with self._transaction() as session:
            result = await session.execute(delete(BuildNumberModel).where(_matches(key)))
        return result.rowcount > 0

    async def exists(self, key: CounterKey) -> bool:
        async with self._transaction() as session:
            found = await session.scalar(select(BuildNumberModel.bundle_id).where(_matches(key)))
        return found is not None

    async def get(self, key: CounterKey) -> CounterRecord | None:
        async with self._transaction() as session:
            row = await session.get(BuildNumberModel, (key.bundle_id, key.platform))
        if row is None:
            return None
        return CounterRecord(key=key, value=row.build_number, last_updated=row.last_updated)
