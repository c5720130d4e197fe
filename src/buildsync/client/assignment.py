"""Mapping of abstract build numbers onto each platform's version fields.

Platforms keep their build number in different shapes:

- Android stores a plain integer (``android.bundle_version_code``)
- iOS, tvOS, standalone desktop targets and PS4 store an integer as a string
- WebGL uses the last segment of the ``x.y.z`` bundle version
- WSA uses the ``build`` part of a ``{major, minor, build}`` package version
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from buildsync.client.project import ProjectSettings
from buildsync.errors import FormatError, InvalidArgumentError, UnsupportedPlatformError


class Platform(StrEnum):
    """Build targets with a known build number field."""

    ANDROID = "android"
    IOS = "ios"
    TVOS = "tvos"
    STANDALONE_WINDOWS = "standalone_windows"
    STANDALONE_WINDOWS64 = "standalone_windows64"
    STANDALONE_LINUX64 = "standalone_linux64"
    STANDALONE_OSX = "standalone_osx"
    PS4 = "ps4"
    WEBGL = "webgl"
    WSA = "wsa"


class FieldShape(StrEnum):
    INTEGER = "integer"
    STRING = "string"
    DOTTED_VERSION = "dotted_version"
    VERSION_OBJECT = "version_object"


@dataclass(frozen=True, slots=True)
class FieldMapping:
    field: str
    shape: FieldShape


STANDALONE_FIELD = FieldMapping("macos.build_number", FieldShape.STRING)

MAPPINGS: dict[Platform, FieldMapping] = {
    Platform.ANDROID: FieldMapping("android.bundle_version_code", FieldShape.INTEGER),
    Platform.IOS: FieldMapping("ios.build_number", FieldShape.STRING),
    Platform.TVOS: FieldMapping("tvos.build_number", FieldShape.STRING),
    # All desktop targets share one field
    Platform.STANDALONE_WINDOWS: STANDALONE_FIELD,
    Platform.STANDALONE_WINDOWS64: STANDALONE_FIELD,
    Platform.STANDALONE_LINUX64: STANDALONE_FIELD,
    Platform.STANDALONE_OSX: STANDALONE_FIELD,
    Platform.PS4: FieldMapping("ps4.app_version", FieldShape.STRING),
    Platform.WEBGL: FieldMapping("bundle_version", FieldShape.DOTTED_VERSION),
    Platform.WSA: FieldMapping("wsa.package_version", FieldShape.VERSION_OBJECT),
}


def resolve_platform(platform: str | Platform) -> Platform:
    """Look up a platform by name, case-insensitively."""
    try:
        return Platform(str(platform).strip().lower())
    except ValueError as e:
        raise UnsupportedPlatformError(str(platform)) from e


def _parse_int(raw: Any, description: str) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    raise FormatError(f"Current build number {raw!r} is not a valid integer for {description}")


def _split_version(version: Any) -> list[str]:
    parts = str(version if version is not None else "").split(".")
    if len(parts) != 3:
        raise FormatError(f"Current version '{version}' is not in expected x.x.x format")
    return parts


def read_build_number(settings: ProjectSettings, platform: str | Platform) -> int:
    """Read the build number currently stored for ``platform``.

    Raises:
        UnsupportedPlatformError: If the platform has no mapping
        FormatError: If the stored value is missing or cannot be parsed
    """
    target = resolve_platform(platform)
    mapping = MAPPINGS[target]
    raw = settings.get(mapping.field)
    description = f"target {target} ({mapping.field})"

    if mapping.shape is FieldShape.DOTTED_VERSION:
        return _parse_int(_split_version(raw)[-1], description)

    if mapping.shape is FieldShape.VERSION_OBJECT:
        if not isinstance(raw, dict) or "build" not in raw:
            raise FormatError(f"Package version for {description} has no build component")
        return _parse_int(raw["build"], description)

    return _parse_int(raw, description)


def assign_build_number(settings: ProjectSettings, platform: str | Platform, build_number: int) -> None:
    """Write ``build_number`` into the field ``platform`` reads its build number from.

    Raises:
        InvalidArgumentError: If the build number is negative
        UnsupportedPlatformError: If the platform has no mapping
        FormatError: If a WebGL bundle version is not in ``x.y.z`` form
    """
    if build_number < 0:
        raise InvalidArgumentError("Build number must be a non-negative integer")

    mapping = MAPPINGS[resolve_platform(platform)]

    if mapping.shape is FieldShape.INTEGER:
        settings.set(mapping.field, build_number)
    elif mapping.shape is FieldShape.STRING:
        settings.set(mapping.field, str(build_number))
    elif mapping.shape is FieldShape.DOTTED_VERSION:
        parts = _split_version(settings.get(mapping.field))
        parts[-1] = str(build_number)
        settings.set(mapping.field, ".".join(parts))
    else:
        current = settings.get(mapping.field)
        current = current if isinstance(current, dict) else {}
        settings.set(
            mapping.field,
            {"major": current.get("major", 0), "minor": current.get("minor", 0), "build": build_number},
        )
