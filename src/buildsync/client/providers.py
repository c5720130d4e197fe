"""Sources of the next build number."""

from typing import Protocol

import structlog

from buildsync.client.assignment import read_build_number
from buildsync.client.project import ProjectSettings
from buildsync.client.remote import RegistryClient
from buildsync.client.results import FetchResult, InvalidInput, Ok
from buildsync.errors import FormatError, UnsupportedPlatformError

logger = structlog.get_logger(__name__)


class BuildNumberProvider(Protocol):
    name: str

    def next_build_number(self, bundle_id: str, platform: str) -> FetchResult: ...


class LocalProvider:
    """Next build number derived from the project's own settings.

    Reads the current value for the platform and adds one, in memory only;
    writing it back is left to the assignment step once the number is accepted.
    """

    name = "local"

    def __init__(self, settings: ProjectSettings) -> None:
        self._settings = settings

    def next_build_number(self, bundle_id: str, platform: str) -> FetchResult:
        if not bundle_id or not bundle_id.strip():
            return InvalidInput("bundleId is required")
        try:
            current = read_build_number(self._settings, platform)
        except (FormatError, UnsupportedPlatformError) as e:
            logger.error("local_build_number_unreadable", bundle_id=bundle_id, platform=platform, error=str(e))
            return InvalidInput(str(e))
        return Ok(current + 1)


class RemoteProvider:
    """Next build number issued by the shared registry."""

    name = "remote"

    def __init__(self, client: RegistryClient) -> None:
        self._client = client

    def next_build_number(self, bundle_id: str, platform: str) -> FetchResult:
        return self._client.get_next_build_number(bundle_id, platform)
