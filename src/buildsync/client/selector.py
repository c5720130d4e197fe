"""Choice between the local and remote build number sources.

Evaluated once per build::

    Idle -> local mode  -> Success(n, LOCAL)
         -> remote mode -> Success(n, REMOTE)
                        -> failed, fallback on  -> Success(n, LOCAL_FALLBACK) or Fatal
                        -> failed, fallback off -> Fatal

There is exactly one fallback hop and no other retry, so a build never waits on
more than one remote timeout.
"""

from dataclasses import dataclass
from enum import StrEnum

import structlog

from buildsync.client.providers import BuildNumberProvider
from buildsync.client.results import Ok

logger = structlog.get_logger(__name__)


class BuildNumberSource(StrEnum):
    LOCAL = "local"
    REMOTE = "remote"
    LOCAL_FALLBACK = "local (fallback)"


@dataclass(frozen=True, slots=True)
class Success:
    build_number: int
    source: BuildNumberSource

    @property
    def fallback_used(self) -> bool:
        return self.source is BuildNumberSource.LOCAL_FALLBACK


@dataclass(frozen=True, slots=True)
class Fatal:
    reason: str


SelectionOutcome = Success | Fatal


class ProviderSelector:
    def __init__(
        self,
        local: BuildNumberProvider,
        remote: BuildNumberProvider | None,
        *,
        use_local_provider: bool,
        use_local_as_fallback: bool,
    ) -> None:
        if not use_local_provider and remote is None:
            raise ValueError("Remote mode requires a remote provider")
        self._local = local
        self._remote = remote
        self._use_local_provider = use_local_provider
        self._use_local_as_fallback = use_local_as_fallback

    def select(self, bundle_id: str, platform: str) -> SelectionOutcome:
        """Obtain the next build number for ``bundle_id`` on ``platform``."""
        if not bundle_id or not bundle_id.strip():
            return Fatal(f"Bundle id is not set for target {platform}. Cannot fetch build number without a valid bundle id.")

        if self._use_local_provider:
            result = self._local.next_build_number(bundle_id, platform)
            if isinstance(result, Ok):
                return Success(result.value, BuildNumberSource.LOCAL)
            return Fatal(
                f"Failed to obtain next build number for bundle id '{bundle_id}' from local storage: "
                f"{result.reason}"
            )

        remote = self._remote
        if remote is None:
            return Fatal("Remote mode requires a remote provider")
        result = remote.next_build_number(bundle_id, platform)
        if isinstance(result, Ok):
            return Success(result.value, BuildNumberSource.REMOTE)

        remote_reason = result.reason
        if not self._use_local_as_fallback:
            return Fatal(
                f"Failed to obtain next build number for bundle id '{bundle_id}' from remote storage: {remote_reason}"
            )

        logger.warning("remote_build_number_failed_using_local", bundle_id=bundle_id, platform=platform, reason=remote_reason)
        fallback = self._local.next_build_number(bundle_id, platform)
        if isinstance(fallback, Ok):
            return Success(fallback.value, BuildNumberSource.LOCAL_FALLBACK)
        return Fatal(
            f"Failed to obtain next build number for bundle id '{bundle_id}' from both remote and local storage: "
            f"{remote_reason}; {fallback.reason}"
        )
