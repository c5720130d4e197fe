"""Command line entry point for build machines.

Usage::

    buildsync-client assign --platform ios
    buildsync-client pull --platform android
    buildsync-client push --platform webgl
    buildsync-client delete --platform ios
    buildsync-client ping
"""

import argparse
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog

from buildsync.client.assignment import assign_build_number, read_build_number, resolve_platform
from buildsync.client.config import ClientConfig
from buildsync.client.environment import is_ci
from buildsync.client.pipeline import assign_next_build_number, build_selector
from buildsync.client.project import ProjectSettings
from buildsync.client.remote import RegistryClient
from buildsync.client.results import Deleted, Ok
from buildsync.errors import FatalError, FormatError, InvalidArgumentError, UnsupportedPlatformError
from buildsync.logging import setup_logging

logger = structlog.get_logger(__name__)

BUNDLE_ID_FIELD = "application_identifier"


def _bundle_id(args: argparse.Namespace, settings: ProjectSettings) -> str:
    return args.bundle_id or str(settings.get(BUNDLE_ID_FIELD) or "")


def cmd_assign(args: argparse.Namespace, config: ClientConfig) -> int:
    settings = ProjectSettings.load(config.settings_path)
    client = None
    if not config.use_local_provider:
        if not config.api_base_url:
            logger.warning("registry_url_missing")
        client = RegistryClient(config.api_base_url, timeout=config.timeout_seconds)
    try:
        selector = build_selector(config, settings, client)
        outcome = assign_next_build_number(
            _bundle_id(args, settings), args.platform, settings, selector, args.artifact or config.artifact_path
        )
    except FatalError as e:
        if args.allow_stale and not is_ci():
            logger.warning("build_number_sync_failed_keeping_current", error=str(e))
            return 0
        logger.error("build_number_sync_failed", error=str(e))
        return 1
    finally:
        if client is not None:
            client.close()
    print(outcome.build_number)
    return 0


def cmd_pull(args: argparse.Namespace, config: ClientConfig) -> int:
    """Take the next number from the registry regardless of the configured mode."""
    settings = ProjectSettings.load(config.settings_path)
    with RegistryClient(config.api_base_url, timeout=config.timeout_seconds) as client:
        result = client.get_next_build_number(_bundle_id(args, settings), args.platform)
    if not isinstance(result, Ok):
        logger.error("pull_failed", reason=result.reason)
        return 1
    try:
        assign_build_number(settings, args.platform, result.value)
    except (FormatError, UnsupportedPlatformError) as e:
        logger.error("assign_failed", build_number=result.value, error=str(e))
        return 1
    settings.save()
    print(result.value)
    return 0


def cmd_push(args: argparse.Namespace, config: ClientConfig) -> int:
    """Store the project's current build number in the registry."""
    settings = ProjectSettings.load(config.settings_path)
    try:
        current = read_build_number(settings, args.platform)
    except (FormatError, UnsupportedPlatformError) as e:
        logger.error("push_failed", error=str(e))
        return 1
    with RegistryClient(config.api_base_url, timeout=config.timeout_seconds) as client:
        result = client.set_build_number(_bundle_id(args, settings), args.platform, current)
    if not isinstance(result, Ok):
        logger.error("push_failed", reason=result.reason)
        return 1
    logger.info("build_number_pushed", build_number=result.value)
    return 0


def cmd_delete(args: argparse.Namespace, config: ClientConfig) -> int:
    settings = ProjectSettings.load(config.settings_path)
    with RegistryClient(config.api_base_url, timeout=config.timeout_seconds) as client:
        result = client.delete_bundle_id(_bundle_id(args, settings), args.platform)
    if not isinstance(result, Deleted):
        logger.error("delete_failed", reason=result.reason)
        return 1
    logger.info("build_number_deleted" if result.existed else "build_number_already_absent")
    return 0


def cmd_ping(_: argparse.Namespace, config: ClientConfig) -> int:
    with RegistryClient(config.api_base_url, timeout=config.timeout_seconds) as client:
        reachable = client.ping()
    print("ok" if reachable else "unreachable")
    return 0 if reachable else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="buildsync-client", description="Synchronize build numbers with the registry")
    parser.add_argument("--api-base-url", help="Registry URL (overrides BUILDSYNC_CLIENT_API_BASE_URL)")
    parser.add_argument("--settings", type=Path, help="Project settings JSON file")
    parser.add_argument("--local", action="store_true", help="Use the local provider only")
    parser.add_argument("--no-fallback", action="store_true", help="Fail instead of falling back to the local provider")
    parser.add_argument("--debug", action="store_true", help="Human-readable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_command(
        name: str, handler: Callable[[argparse.Namespace, ClientConfig], int], help_text: str, *, needs_key: bool = True
    ) -> argparse.ArgumentParser:
        command = sub.add_parser(name, help=help_text)
        if needs_key:
            command.add_argument("--bundle-id", help=f"Bundle id (defaults to the '{BUNDLE_ID_FIELD}' setting)")
            command.add_argument("--platform", required=True, help="Target platform, e.g. ios, android, webgl")
        command.set_defaults(handler=handler)
        return command

    assign = add_command("assign", cmd_assign, "Assign the next build number before a build")
    assign.add_argument("--artifact", type=Path, help="Where to write build_number.json")
    assign.add_argument(
        "--allow-stale",
        action="store_true",
        help="Outside CI, keep the current settings instead of failing when no number can be obtained",
    )
    add_command("pull", cmd_pull, "Take the next build number from the registry")
    add_command("push", cmd_push, "Store the current build number in the registry")
    add_command("delete", cmd_delete, "Delete the registry's build number")
    add_command("ping", cmd_ping, "Check that the registry is reachable", needs_key=False)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.debug)
    config = ClientConfig()
    overrides: dict[str, object] = {}
    if args.api_base_url:
        overrides["api_base_url"] = args.api_base_url
    if args.settings:
        overrides["settings_path"] = args.settings
    if args.local:
        overrides["use_local_provider"] = True
    if args.no_fallback:
        overrides["use_local_as_fallback"] = False
    if overrides:
        config = config.model_copy(update=overrides)

    try:
        if getattr(args, "platform", None):
            args.platform = str(resolve_platform(args.platform))
        return args.handler(args, config)
    except (InvalidArgumentError, UnsupportedPlatformError) as e:
        logger.error("invalid_argument", error=str(e))
        return 2
    except FormatError as e:
        logger.error("project_settings_unreadable", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
