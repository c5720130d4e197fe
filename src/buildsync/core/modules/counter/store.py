from abc import ABC, abstractmethod
from typing import ClassVar

from buildsync.core.modules.counter.models import CounterKey, CounterRecord
from buildsync.errors import InvalidArgumentError


def ensure_non_negative(value: int) -> int:
    """Reject negative build numbers; counters never go below zero."""
    if value < 0:
        raise InvalidArgumentError("buildNumber must be a non-negative integer")
    return value


class CounterStore(ABC):
    """Atomic registry of build number counters.

    ``get_and_increment`` treats a missing record as ``0``, stores ``current + 1``
    and returns it. Transactional backends guarantee that concurrent callers on
    the same key never receive the same value; keys are independent of each other.
    ``set`` is an explicit override and may move a counter backwards.
    """

    name: ClassVar[str]

    async def on_start(self) -> None:
        """Prepare the backend (indexes, tables) on application startup."""

    async def on_stop(self) -> None:
        """Release backend connections on application shutdown."""

    @abstractmethod
    async def get_and_increment(self, key: CounterKey) -> int:
        """Increment the counter and return the new value."""

    @abstractmethod
    async def set(self, key: CounterKey, value: int) -> int:
        """Overwrite the counter with ``value``, creating it if absent."""

    @abstractmethod
    async def delete(self, key: CounterKey) -> bool:
        """Remove the counter. Returns False when it was already absent."""

    @abstractmethod
    async def exists(self, key: CounterKey) -> bool:
        """Check whether a counter record exists."""

    @abstractmethod
    async def get(self, key: CounterKey) -> CounterRecord | None:
        """Read the counter record without modifying it."""
