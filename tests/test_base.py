"""
Tests for the shared cache rules.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from kvcache.cache.base import (
    RESERVED_KEY_CHARS,
    compute_expiry,
    is_expired,
    normalize_ttl,
    validate_key,
)
from kvcache.exceptions import InvalidArgument


class TestValidateKey:
    """Test the key rule."""

    def test_returns_valid_key(self) -> None:
        """Test that a valid key is passed through."""
        assert validate_key("session.42") == "session.42"

    @pytest.mark.parametrize("char", sorted(RESERVED_KEY_CHARS))
    def test_each_reserved_char_rejected(self, char: str) -> None:
        """Test every reserved character anywhere in the key."""
        with pytest.raises(InvalidArgument, match="Can't validate"):
            validate_key(f"prefix{char}suffix")

    def test_error_context_carries_key(self) -> None:
        """Test that the rejected key is reported in the error."""
        with pytest.raises(InvalidArgument) as exc_info:
            validate_key("a:b")

        assert exc_info.value.context == {"key": "a:b"}
        assert "key='a:b'" in str(exc_info.value)


class TestTTL:
    """Test TTL normalization and expiry computation."""

    def test_normalize(self) -> None:
        """Test int, timedelta and None inputs."""
        assert normalize_ttl(None) is None
        assert normalize_ttl(60) == 60
        assert normalize_ttl(timedelta(hours=1)) == 3600
        assert normalize_ttl(timedelta(seconds=1.9)) == 1

    def test_compute_expiry(self) -> None:
        """Test absolute expiry from a TTL."""
        assert compute_expiry(None, 1000) is None
        assert compute_expiry(30, 1000) == 1030
        assert compute_expiry(timedelta(minutes=1), 1000) == 1060

    def test_is_expired(self) -> None:
        """Test the staleness comparison."""
        assert is_expired(None, 10**12) is False
        assert is_expired(1000, 1000) is False
        assert is_expired(999, 1000) is True
