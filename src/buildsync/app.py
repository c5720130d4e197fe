from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from buildsync.config import Config
from buildsync.core.core import Core
from buildsync.core.modules.counter.store import CounterStore
from buildsync.core.modules.registry.models import DeleteResult


class App:
    """Facade for all registry operations exposed over HTTP."""

    def __init__(self, config: Config, store: CounterStore | None = None) -> None:
        self._core = Core(config, store)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def get_next_build_number(self, bundle_id: str | None, platform: str | None) -> int:
        """Issue the next build number for a bundle and platform."""
        return await self._core.services.registry.get_next(bundle_id, platform)

    async def set_build_number(self, bundle_id: str | None, platform: str | None, build_number: str | None) -> int:
        """Force the stored build number to a specific value."""
        return await self._core.services.registry.set_value(bundle_id, platform, build_number)

    async def delete_bundle_id(self, bundle_id: str | None, platform: str | None) -> DeleteResult:
        """Delete the stored build number for a bundle and platform."""
        return await self._core.services.registry.delete_key(bundle_id, platform)

    def get_info(self) -> dict[str, Any]:
        """Get API metadata."""
        return self._core.services.registry.info()
