from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    returned to the caller. These errors should not contain any
    sensitive information.
    """


class InvalidArgumentError(UserError):
    """Raised when a request is missing a parameter or carries a malformed one."""


class NotFoundError(UserError):
    """Raised when a requested counter does not exist."""

    def __init__(self, message: str = "Counter not found") -> None:
        super().__init__(message)


class TransientError(Exception):
    """Raised when a backend or the remote registry fails in a way that may succeed later.

    Covers network errors, timeouts and transaction conflicts that outlived
    the bounded number of retries.
    """


class FormatError(Exception):
    """Raised when a stored build number does not match the platform encoding."""


class UnsupportedPlatformError(Exception):
    """Raised when no build number mapping exists for a platform."""

    def __init__(self, platform: str) -> None:
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform


class FatalError(Exception):
    """Raised when a build pipeline cannot obtain a build number and must abort."""
