import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog

from buildsync.core.core import Service
from buildsync.core.modules.counter.models import CounterKey
from buildsync.core.modules.counter.store import CounterStore
from buildsync.core.modules.registry.models import DeleteResult
from buildsync.core.modules.registry.validators import parse_build_number
from buildsync.errors import TransientError

logger = structlog.get_logger(__name__)

API_NAME = "Build Number Sync API"
ENDPOINTS = {
    "getNextBuildNumber": "GET /getNextBuildNumber?bundleId={bundleId}&platform={platform}",
    "deleteBundleId": "DELETE /deleteBundleId?bundleId={bundleId}&platform={platform}",
    "setBuildNumber": "POST /setBuildNumber?bundleId={bundleId}&buildNumber={buildNumber}&platform={platform}",
}


class RegistryService(Service):
    """Request handling for the build number registry.

    Holds no per-request state; every operation validates its input, then
    delegates to the shared counter store under a bounded timeout.
    """

    def __init__(self, store: CounterStore, timeout_seconds: float = 10.0) -> None:
        super().__init__(store)
        self._timeout = timeout_seconds

    @asynccontextmanager
    async def _operation(self, operation: str, key: CounterKey, **context: Any) -> AsyncGenerator[None]:
        """Log the request with its duration and bound it by the store timeout."""
        started = time.perf_counter()
        logger.info("registry_request", operation=operation, key=str(key), **context)
        try:
            async with asyncio.timeout(self._timeout):
                yield
        except TimeoutError as e:
            logger.warning("registry_request_timeout", operation=operation, key=str(key), timeout=self._timeout)
            raise TransientError(f"{operation} timed out after {self._timeout}s") from e
        finally:
            duration_ms = round((time.perf_counter() - started) * 1000, 1)
            logger.info("registry_request_finished", operation=operation, key=str(key), duration_ms=duration_ms)

    async def get_next(self, bundle_id: str | None, platform: str | None = None) -> int:
        """Increment the counter for the key and return the new build number."""
        key = CounterKey.of(bundle_id, platform)
        async with self._operation("getNextBuildNumber", key):
            build_number = await self.store.get_and_increment(key)
        logger.info("build_number_issued", key=str(key), build_number=build_number)
        return build_number

    async def set_value(self, bundle_id: str | None, platform: str | None, build_number: int | str | None) -> int:
        """Overwrite the counter for the key; an operator override, so it may go backwards."""
        key = CounterKey.of(bundle_id, platform)
        value = parse_build_number(build_number)
        async with self._operation("setBuildNumber", key, build_number=value):
            return await self.store.set(key, value)

    async def delete_key(self, bundle_id: str | None, platform: str | None = None) -> DeleteResult:
        """Delete the counter, reporting whether there was anything to delete."""
        key = CounterKey.of(bundle_id, platform)
        async with self._operation("deleteBundleId", key):
            if not await self.store.exists(key):
                logger.warning("bundle_not_found", key=str(key))
                return DeleteResult(deleted=False, message=f"Bundle ID '{key.bundle_id}' not found")
            await self.store.delete(key)
        return DeleteResult(deleted=True, message=f"Bundle ID '{key.bundle_id}' deleted successfully")

    def info(self) -> dict[str, Any]:
        """Describe the API for the root endpoint."""
        return {
            "name": API_NAME,
            "version": self.core.config.api_version,
            "backend": self.store.name,
            "endpoints": ENDPOINTS,
        }
