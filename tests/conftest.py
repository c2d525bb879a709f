"""
Pytest configuration and fixtures for cache tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from kvcache.cache import CacheProtocol, FileCache, InMemoryKVCache
from kvcache.config import Settings, clear_settings_cache

START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable time source returning epoch seconds."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Directory for a file cache; not created up front."""
    return temp_dir / "cache"


@pytest.fixture
def file_cache(cache_dir: Path, clock: FakeClock) -> FileCache:
    """Provide a file cache on a fresh directory."""
    return FileCache(cache_dir, clock=clock)


@pytest.fixture
def memory_cache(clock: FakeClock) -> InMemoryKVCache:
    """Provide an empty in-memory cache."""
    return InMemoryKVCache(clock=clock)


@pytest.fixture(params=["file", "memory"])
def cache(request: pytest.FixtureRequest, cache_dir: Path, clock: FakeClock) -> CacheProtocol:
    """Provide each backend in turn for contract tests."""
    if request.param == "file":
        return FileCache(cache_dir, clock=clock)
    return InMemoryKVCache(clock=clock)


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "CACHE_BACKEND": "file",
        "CACHE_DIR": str(temp_dir / "env_cache"),
        "CACHE_DIR_MODE": "700",
        "CACHE_CODEC": "json",
        "LOG_LEVEL": "DEBUG",
        "LOG_CONSOLE": "false",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def memory_settings() -> Settings:
    """Settings selecting the in-memory backend, without reading .env."""
    return Settings(_env_file=None, CACHE_BACKEND="memory", LOG_CONSOLE=False)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
