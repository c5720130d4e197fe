"""Explicit outcomes of asking a provider for a build number."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok:
    value: int


@dataclass(frozen=True, slots=True)
class TransientFailure:
    """Network error, timeout, non-2xx response, or malformed payload."""

    reason: str


@dataclass(frozen=True, slots=True)
class InvalidInput:
    """The request could not be made or was rejected as malformed."""

    reason: str


@dataclass(frozen=True, slots=True)
class Deleted:
    """Remote delete finished; ``existed`` is False when the server had nothing stored."""

    existed: bool


FetchResult = Ok | TransientFailure | InvalidInput
DeleteResult = Deleted | TransientFailure | InvalidInput
