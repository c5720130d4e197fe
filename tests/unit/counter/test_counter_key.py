"""Tests for counter key construction."""

import pytest

from buildsync.core.modules.counter.models import DEFAULT_PLATFORM, CounterKey
from buildsync.errors import InvalidArgumentError


class TestCounterKeyOf:
    """Tests for CounterKey.of."""

    def test_platform_defaults(self):
        """Test that a missing or blank platform becomes "default"."""
        assert CounterKey.of("com.app", None).platform == DEFAULT_PLATFORM
        assert CounterKey.of("com.app", "   ").platform == DEFAULT_PLATFORM

    def test_values_are_trimmed_only(self):
        """Test that keys are trimmed but otherwise kept verbatim."""
        key = CounterKey.of("  Com.App  ", " iOS ")
        assert key.bundle_id == "Com.App"
        assert key.platform == "iOS"

    def test_missing_bundle_id_rejected(self):
        """Test that an absent or blank bundle id is an invalid argument."""
        with pytest.raises(InvalidArgumentError, match="bundleId"):
            CounterKey.of(None)
        with pytest.raises(InvalidArgumentError, match="bundleId"):
            CounterKey.of("   ", "ios")

    def test_keys_are_hashable_and_equal_by_value(self):
        """Test that equal keys compare equal."""
        assert CounterKey.of("com.app", "ios") == CounterKey(bundle_id="com.app", platform="ios")
        assert len({CounterKey.of("com.app"), CounterKey.of("com.app", "default")}) == 1
