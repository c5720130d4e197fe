"""Build number counters keyed by bundle id and platform."""

from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from buildsync.errors import InvalidArgumentError

DEFAULT_PLATFORM = "default"


class CounterKey(BaseModel):
    """Composite counter key.

    Keys are opaque: the only normalization is trimming surrounding whitespace,
    and a blank platform falls back to ``"default"``.
    """

    bundle_id: str
    platform: str = DEFAULT_PLATFORM

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, bundle_id: str | None, platform: str | None = None) -> Self:
        """Build a key from raw request values, rejecting a missing bundle id."""
        bundle_id = (bundle_id or "").strip()
        if not bundle_id:
            raise InvalidArgumentError("Missing required parameter: bundleId")
        platform = (platform or "").strip() or DEFAULT_PLATFORM
        return cls(bundle_id=bundle_id, platform=platform)

    def __str__(self) -> str:
        return f"{self.bundle_id}/{self.platform}"


class CounterRecord(BaseModel):
    """Stored state of one counter."""

    key: CounterKey
    value: int = Field(ge=0)  # Last issued or explicitly set build number
    last_updated: datetime | None = None
