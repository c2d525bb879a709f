"""
Tests for configuration and cache construction.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from kvcache.cache import (
    FileCache,
    InMemoryKVCache,
    JSONCodec,
    PickleCodec,
    create_cache,
    get_codec,
)
from kvcache.config import Settings, clear_settings_cache, get_settings
from kvcache.exceptions import InvalidArgument


class TestSettings:
    """Tests for Settings loading and validation."""

    def test_settings_loads_from_env(self, mock_env_vars: dict[str, str]) -> None:
        """Test that settings correctly loads from environment variables."""
        settings = get_settings()

        assert settings.CACHE_BACKEND == "file"
        assert settings.CACHE_DIR == Path(mock_env_vars["CACHE_DIR"])
        assert settings.CACHE_DIR_MODE == 0o700
        assert settings.CACHE_CODEC == "json"
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.LOG_CONSOLE is False

    def test_defaults(self) -> None:
        """Test default values without environment or .env input."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.CACHE_BACKEND == "file"
        assert settings.CACHE_DIR == Path(".cache")
        assert settings.CACHE_DIR_MODE == 0o755
        assert settings.CACHE_CODEC == "pickle"
        assert settings.LOG_FILE is None

    def test_octal_mode_with_prefix(self) -> None:
        """Test that an 0o-prefixed mode string is accepted."""
        with patch.dict(os.environ, {"CACHE_DIR_MODE": "0o750"}, clear=False):
            assert Settings(_env_file=None).CACHE_DIR_MODE == 0o750

    def test_mode_out_of_range_rejected(self) -> None:
        """Test that modes beyond permission bits are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, CACHE_DIR_MODE=0o4755)

        assert "CACHE_DIR_MODE" in str(exc_info.value)

    def test_unknown_backend_rejected(self) -> None:
        """Test that only file and memory backends exist."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CACHE_BACKEND="redis")

    def test_settings_are_cached(self, mock_env_vars: dict[str, str]) -> None:
        """Test that get_settings returns a singleton until cleared."""
        first = get_settings()
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings() is not first


class TestCodecLookup:
    """Tests for codec selection by name."""

    def test_known_codecs(self) -> None:
        """Test that both codec names resolve."""
        assert isinstance(get_codec("pickle"), PickleCodec)
        assert isinstance(get_codec("json"), JSONCodec)

    def test_unknown_codec(self) -> None:
        """Test that an unknown codec name is an invalid argument."""
        with pytest.raises(InvalidArgument) as exc_info:
            get_codec("yaml")

        assert exc_info.value.context["available"] == ["json", "pickle"]


class TestCreateCache:
    """Tests for building a cache from settings."""

    def test_file_backend_from_env(self, mock_env_vars: dict[str, str]) -> None:
        """Test that env settings produce a configured FileCache."""
        cache = create_cache()

        assert isinstance(cache, FileCache)
        assert cache.cache_dir == Path(mock_env_vars["CACHE_DIR"])
        assert cache.cache_dir.is_dir()
        assert isinstance(cache.codec, JSONCodec)

        assert cache.set("k", {"a": 1}) is True
        assert cache.get("k") == {"a": 1}

    def test_memory_backend(self, memory_settings: Settings) -> None:
        """Test that the memory backend needs no directory."""
        cache = create_cache(memory_settings)

        assert isinstance(cache, InMemoryKVCache)
        assert cache.set("k", 1) is True

    def test_log_file_receives_json_lines(self, temp_dir: Path) -> None:
        """Test that create_cache wires LOG_FILE into logging."""
        log_file = temp_dir / "logs" / "cache.jsonl"
        settings = Settings(
            _env_file=None,
            CACHE_DIR=temp_dir / "cache",
            LOG_FILE=log_file,
            LOG_CONSOLE=False,
        )

        create_cache(settings)

        assert "File cache initialized" in log_file.read_text(encoding="utf-8")
