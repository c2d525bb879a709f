"""
In-memory key-value cache.

InMemoryKVCache keeps entries in a process-local dict. Entries are lost when
the instance is garbage collected or the process exits. Expiry follows the
same lazy rules as the file cache: a read that finds a stale entry evicts it.
"""

from __future__ import annotations

from typing import Any

from kvcache.cache.base import (
    TTL,
    CacheEntry,
    CacheProtocol,
    Clock,
    compute_expiry,
    is_expired,
    validate_key,
)
from kvcache.logging import get_logger

logger = get_logger(__name__)


class InMemoryKVCache(CacheProtocol):
    """Dict-backed transient cache.

    Values are stored by reference, not copied.
    """

    backend_name = "memory"

    def __init__(self, *, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self._data: dict[str, CacheEntry] = {}

    def _lookup(self, key: str) -> CacheEntry | None:
        validate_key(key)
        entry = self._data.get(key)
        if entry is None:
            return None
        if is_expired(entry.expiry, self._now()):
            del self._data[key]
            logger.debug("Evicted expired entry", key=key)
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._lookup(key)
        if entry is None:
            return default
        return entry.value

    def has(self, key: str) -> bool:
        return self._lookup(key) is not None

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        validate_key(key)
        expiry = compute_expiry(ttl, self._now())
        self._data[key] = CacheEntry(key=key, value=value, expiry=expiry)
        return True

    def delete(self, key: str) -> bool:
        validate_key(key)
        self._data.pop(key, None)
        return True

    def clear(self) -> bool:
        self._data = {}
        logger.debug("Cleared in-memory cache")
        return True

    @property
    def entry_count(self) -> int:
        """Number of stored entries, including stale ones not yet read."""
        return len(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(entries={len(self._data)})"
