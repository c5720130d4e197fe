"""Pre-build step that assigns the next build number to the project."""

from pathlib import Path

import structlog

from buildsync.client.artifact import write_runtime_artifact
from buildsync.client.assignment import assign_build_number, resolve_platform
from buildsync.client.config import ClientConfig
from buildsync.client.project import ProjectSettings
from buildsync.client.providers import LocalProvider, RemoteProvider
from buildsync.client.remote import RegistryClient
from buildsync.client.selector import Fatal, ProviderSelector, Success
from buildsync.errors import FatalError, FormatError, UnsupportedPlatformError

logger = structlog.get_logger(__name__)


def build_selector(config: ClientConfig, settings: ProjectSettings, client: RegistryClient | None) -> ProviderSelector:
    """Wire providers according to the configured mode; remote mode needs ``client``."""
    return ProviderSelector(
        LocalProvider(settings),
        RemoteProvider(client) if client is not None else None,
        use_local_provider=config.use_local_provider,
        use_local_as_fallback=config.use_local_as_fallback,
    )


def assign_next_build_number(
    bundle_id: str,
    platform: str,
    settings: ProjectSettings,
    selector: ProviderSelector,
    artifact_path: Path | None = None,
) -> Success:
    """Fetch the next build number, write it into project settings and the runtime artifact.

    Raises:
        FatalError: If no build number could be obtained or assigned; the build must abort
    """
    try:
        target = resolve_platform(platform)
    except UnsupportedPlatformError as e:
        raise FatalError(str(e)) from e

    outcome = selector.select(bundle_id, str(target))
    if isinstance(outcome, Fatal):
        raise FatalError(outcome.reason)

    try:
        assign_build_number(settings, target, outcome.build_number)
    except FormatError as e:
        raise FatalError(f"Failed to assign build number {outcome.build_number} for bundle id '{bundle_id}': {e}") from e
    settings.save()

    if artifact_path is not None:
        write_runtime_artifact(artifact_path, outcome.build_number)

    logger.info(
        "build_number_assigned",
        bundle_id=bundle_id,
        platform=str(target),
        build_number=outcome.build_number,
        source=str(outcome.source),
    )
    return outcome
