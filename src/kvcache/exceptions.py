"""
Exception hierarchy for the cache package.

All exceptions inherit from CacheException, which carries optional context
for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class CacheException(Exception):
    """Base exception for all cache errors.

    Raised directly when a store cannot be established, e.g. the cache
    directory of a FileCache cannot be created.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class InvalidArgument(CacheException, ValueError):
    """Raised when an argument to a cache operation is invalid.

    Examples:
        - Empty or non-string key
        - Key containing a reserved character
        - TTL that is neither an int nor a timedelta

    Context should include:
        - key: The rejected key, when the key is at fault
        - ttl: The rejected TTL, when the TTL is at fault
    """

    pass
