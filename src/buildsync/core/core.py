from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog

from buildsync.config import Config
from buildsync.core.modules.counter.backends import create_counter_store
from buildsync.core.modules.counter.store import CounterStore

if TYPE_CHECKING:
    from buildsync.core.modules.registry.service import RegistryService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services operating on the counter store."""

    def __init__(self, store: CounterStore) -> None:
        self.store = store
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry sharing one counter store."""

    registry: RegistryService

    def __init__(self, store: CounterStore, config: Config) -> None:
        from buildsync.core.modules.registry.service import RegistryService  # noqa: PLC0415

        self.registry = RegistryService(store, timeout_seconds=config.request_timeout_seconds)
        self._services: list[Service] = [self.registry]

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, the counter store, and all service instances."""

    config: Config
    store: CounterStore
    services: Services

    def __init__(self, config: Config, store: CounterStore | None = None) -> None:
        """Initialize core with config and a counter store built once for the whole process."""
        self.config = config
        self.store = store if store is not None else create_counter_store(config)
        self.services = Services(self.store, config)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Prepare the store, then start services."""
        await self.store.on_start()
        await self.services.start_all()
        logger.info("core_started", backend=self.store.name)

    async def on_stop(self) -> None:
        """Stop services and release the store's connections."""
        await self.services.stop_all()
        await self.store.on_stop()
