"""
Base classes for caching.

This module implements:
- CacheProtocol: Abstract interface shared by every cache backend
- CacheEntry: Stored value with its absolute expiry
- validate_key / normalize_ttl / compute_expiry / is_expired: the rules
  every backend applies identically

Expiry is lazy: it is only evaluated when an entry is read, and a read that
observes an expired entry removes it.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

from kvcache.exceptions import InvalidArgument
from kvcache.logging import log_context

# Characters that are path-unsafe or reserved, never allowed in a key
RESERVED_KEY_CHARS = frozenset("{}()/\\@:")

Clock = Callable[[], float]
TTL = int | timedelta | None


@dataclass
class CacheEntry:
    """A cached value and its absolute expiry in epoch seconds.

    ``expiry`` is None for entries that never expire.
    """

    key: str
    value: Any
    expiry: int | None = None


def validate_key(key: Any) -> str:
    """Check a key against the shared key rule.

    Args:
        key: Candidate key.

    Returns:
        The key, unchanged.

    Raises:
        InvalidArgument: If the key is not a non-empty string or contains
            one of ``{ } ( ) / \\ @ :``.
    """
    if not isinstance(key, str) or key == "":
        raise InvalidArgument("Key should be a non empty string", context={"key": key})
    if not RESERVED_KEY_CHARS.isdisjoint(key):
        raise InvalidArgument("Can't validate the specified key", context={"key": key})
    return key


def normalize_ttl(ttl: TTL) -> int | None:
    """Convert a TTL to whole seconds.

    Raises:
        InvalidArgument: If ttl is not None, an int or a timedelta.
    """
    if ttl is None:
        return None
    # bool is an int subclass but never a meaningful TTL
    if isinstance(ttl, bool):
        raise InvalidArgument("TTL should be an int or a timedelta", context={"ttl": ttl})
    if isinstance(ttl, int):
        return ttl
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    raise InvalidArgument("TTL should be an int or a timedelta", context={"ttl": ttl})


def compute_expiry(ttl: TTL, now: int) -> int | None:
    """Absolute expiry for a TTL given at ``now``; None means never."""
    seconds = normalize_ttl(ttl)
    if seconds is None:
        return None
    return now + seconds


def is_expired(expiry: int | None, now: int) -> bool:
    """Whether an entry with this expiry is stale at ``now``."""
    return expiry is not None and expiry < now


class CacheProtocol(ABC):
    """Abstract interface for cache implementations.

    Subclasses implement the single-key operations and ``clear``; the batch
    operations are built on top of them. Batch writes stop at the first
    failure and never roll back what was already written.
    """

    backend_name: str = "base"

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or time.time

    def _now(self) -> int:
        return int(self._clock())

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the cache, or ``default`` on a miss."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Set a value in the cache."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a value from the cache. Deleting an absent key succeeds."""
        ...

    @abstractmethod
    def clear(self) -> bool:
        """Remove every entry from the cache."""
        ...

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a key exists in the cache and is not expired."""
        ...

    def get_multiple(
        self, keys: Iterable[str], default: Any = None
    ) -> Iterator[tuple[str, Any]]:
        """Lazily yield ``(key, value-or-default)`` pairs in input order.

        Raises:
            InvalidArgument: Immediately if ``keys`` is a string or not
                iterable; per key, while iterating, if a key is invalid.
        """
        keys = _iter_keys(keys)
        return self._iter_multiple(keys, default)

    def _iter_multiple(self, keys: Iterator[str], default: Any) -> Iterator[tuple[str, Any]]:
        for key in keys:
            # Context is scoped per lookup so it never leaks across yields
            with log_context(backend=self.backend_name, operation="get_multiple"):
                value = self.get(key, default)
            yield key, value

    def set_multiple(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None
    ) -> bool:
        """Set several values with the same TTL.

        Returns:
            True if every set succeeded, False at the first failure.
        """
        if isinstance(values, Mapping):
            items: Iterable[tuple[str, Any]] = values.items()
        elif isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise InvalidArgument(
                "Values should be a mapping or an iterable of pairs",
                context={"type": type(values).__name__},
            )
        else:
            items = values

        with log_context(backend=self.backend_name, operation="set_multiple"):
            for key, value in items:
                if not self.set(key, value, ttl):
                    return False
        return True

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        """Delete several keys.

        Returns:
            True if every delete succeeded, False at the first failure.
        """
        with log_context(backend=self.backend_name, operation="delete_multiple"):
            for key in _iter_keys(keys):
                if not self.delete(key):
                    return False
        return True

    def __contains__(self, key: str) -> bool:
        return self.has(key)


def _iter_keys(keys: Iterable[str]) -> Iterator[str]:
    if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
        raise InvalidArgument(
            "Keys should be an iterable of strings",
            context={"type": type(keys).__name__},
        )
    return iter(keys)
