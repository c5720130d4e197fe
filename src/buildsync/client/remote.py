"""HTTP client for the build number registry."""

from types import TracebackType
from typing import Any, Self

import httpx
import structlog

from buildsync.client.results import Deleted, DeleteResult, FetchResult, InvalidInput, Ok, TransientFailure

logger = structlog.get_logger(__name__)

EXPECTED_FORMAT = 'JSON must contain an integer `buildNumber` field (e.g. {"buildNumber": 123})'


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)


def _parse_build_number(response: httpx.Response) -> FetchResult:
    try:
        body = response.json()
    except ValueError:
        return TransientFailure(f"Invalid response format: {EXPECTED_FORMAT}")
    value = body.get("buildNumber") if isinstance(body, dict) else None
    if not isinstance(value, int) or isinstance(value, bool):
        return TransientFailure(f"Invalid response format: {EXPECTED_FORMAT}")
    return Ok(value)


class RegistryClient:
    """Synchronous registry client used from build pipelines.

    Every call returns an explicit result instead of raising, and every request
    is bounded by ``timeout`` seconds.
    """

    def __init__(self, base_url: str | None, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self.base_url = (base_url or "").strip().rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None
    ) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, params: dict[str, Any] | None = None) -> httpx.Response | TransientFailure:
        if not self.base_url:
            return TransientFailure("API base URL is not configured")
        try:
            return self._http.request(method, path, params=params)
        except httpx.HTTPError as e:
            logger.error("registry_request_failed", method=method, path=path, error=str(e))
            return TransientFailure(f"{method} {path} failed: {e}")

    @staticmethod
    def _check_key(bundle_id: str) -> InvalidInput | None:
        if not bundle_id or not bundle_id.strip():
            return InvalidInput("bundleId is required")
        return None

    @staticmethod
    def _status_failure(response: httpx.Response) -> FetchResult:
        message = f"Server returned {response.status_code}: {_error_message(response)}"
        if response.status_code == 400:
            return InvalidInput(message)
        return TransientFailure(message)

    def get_next_build_number(self, bundle_id: str, platform: str) -> FetchResult:
        """Ask the registry for the next build number of ``bundle_id`` on ``platform``."""
        if invalid := self._check_key(bundle_id):
            return invalid
        response = self._request("GET", "/getNextBuildNumber", {"bundleId": bundle_id, "platform": platform})
        if isinstance(response, TransientFailure):
            return response
        if not response.is_success:
            return self._status_failure(response)
        return _parse_build_number(response)

    def set_build_number(self, bundle_id: str, platform: str, build_number: int) -> FetchResult:
        """Overwrite the registry's build number for ``bundle_id`` on ``platform``."""
        if invalid := self._check_key(bundle_id):
            return invalid
        if build_number < 0:
            return InvalidInput("buildNumber must be a non-negative integer")
        params = {"bundleId": bundle_id, "platform": platform, "buildNumber": build_number}
        response = self._request("POST", "/setBuildNumber", params)
        if isinstance(response, TransientFailure):
            return response
        if not response.is_success:
            return self._status_failure(response)
        return _parse_build_number(response)

    def delete_bundle_id(self, bundle_id: str, platform: str) -> DeleteResult:
        """Delete the registry's build number; a 404 means it was already absent."""
        if invalid := self._check_key(bundle_id):
            return invalid
        response = self._request("DELETE", "/deleteBundleId", {"bundleId": bundle_id, "platform": platform})
        if isinstance(response, TransientFailure):
            return response
        if response.status_code == 404:
            logger.warning("bundle_not_found_on_server", bundle_id=bundle_id, platform=platform)
            return Deleted(existed=False)
        if not response.is_success:
            return self._status_failure(response)
        return Deleted(existed=True)

    def ping(self) -> bool:
        """Check that the registry answers its root endpoint."""
        response = self._request("GET", "/")
        if isinstance(response, TransientFailure):
            return False
        if not response.is_success:
            logger.error("registry_ping_failed", status_code=response.status_code, url=self.base_url)
            return False
        return True
