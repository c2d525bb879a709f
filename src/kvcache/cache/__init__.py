"""
Cache package.

This package provides two interchangeable backends behind CacheProtocol:
- File cache (file_cache.py): one file per key, survives restarts
- Key-value cache (kv_cache.py): in-memory dict, lost on exit

create_cache() builds the backend selected by Settings.
"""

from __future__ import annotations

from kvcache.cache.base import (
    RESERVED_KEY_CHARS,
    CacheEntry,
    CacheProtocol,
    compute_expiry,
    is_expired,
    normalize_ttl,
    validate_key,
)
from kvcache.cache.codec import Codec, JSONCodec, PickleCodec, get_codec
from kvcache.cache.file_cache import NO_EXPIRY, FileCache
from kvcache.cache.kv_cache import InMemoryKVCache
from kvcache.config import Settings, get_settings
from kvcache.logging import setup_logging

__all__ = [
    "NO_EXPIRY",
    "RESERVED_KEY_CHARS",
    "CacheEntry",
    "CacheProtocol",
    "Codec",
    "FileCache",
    "InMemoryKVCache",
    "JSONCodec",
    "PickleCodec",
    "compute_expiry",
    "create_cache",
    "get_codec",
    "is_expired",
    "normalize_ttl",
    "validate_key",
]


def create_cache(settings: Settings | None = None) -> CacheProtocol:
    """Build the cache backend described by settings.

    Logging is configured from the same settings.

    Args:
        settings: Settings to use. Defaults to get_settings().

    Returns:
        A FileCache rooted at CACHE_DIR, or an InMemoryKVCache.

    Raises:
        CacheException: If the file cache directory cannot be created.
    """
    settings = settings or get_settings()
    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_file=settings.LOG_FILE,
        console_output=settings.LOG_CONSOLE,
    )

    if settings.CACHE_BACKEND == "memory":
        return InMemoryKVCache()
    return FileCache(
        settings.CACHE_DIR,
        codec=get_codec(settings.CACHE_CODEC),
        dir_mode=settings.CACHE_DIR_MODE,
    )
