"""
File-based durable cache.

FileCache stores one file per key directly inside its cache directory; the
file name is the key itself, which is why keys may not contain path
separators or other reserved characters. Each file holds a codec-encoded
record of three fields:

    {"key": <str>, "expiry": <int epoch seconds>, "value": <payload>}

Entries without a TTL carry the NO_EXPIRY sentinel so that staleness is a
single ``expiry < now`` comparison.

Failure policy:
- Invalid keys raise InvalidArgument on every operation
- Missing, corrupt or foreign files read as misses
- Failed writes, deletes and clears return False instead of raising
- Writes go through a temporary file and os.replace()
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path
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
from kvcache.cache.codec import Codec, PickleCodec
from kvcache.exceptions import CacheException
from kvcache.logging import get_logger

logger = get_logger(__name__)

# Stored expiry for entries that never expire
NO_EXPIRY = 9_999_999_999

RECORD_FIELDS = frozenset({"key", "expiry", "value"})


class FileCache(CacheProtocol):
    """Durable cache persisting each entry as a file under ``cache_dir``.

    No file handle outlives the operation that opened it.
    """

    backend_name = "file"

    def __init__(
        self,
        cache_dir: str | Path,
        *,
        codec: Codec | None = None,
        dir_mode: int = 0o755,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the file cache, creating the directory if needed.

        Args:
            cache_dir: Root directory for entry files.
            codec: Serializer for entry records. Defaults to PickleCodec.
            dir_mode: Permission bits for directories created here.
            clock: Time source returning epoch seconds. Defaults to time.time.

        Raises:
            CacheException: If the directory cannot be created.
        """
        super().__init__(clock)
        self.cache_dir = Path(cache_dir)
        self.codec: Codec = codec or PickleCodec()

        try:
            self.cache_dir.mkdir(mode=dir_mode, parents=True, exist_ok=True)
        except OSError as e:
            raise CacheException(
                "Failed to create cache directory",
                context={"cache_dir": str(self.cache_dir), "error": str(e)},
            ) from e

        logger.info(
            "File cache initialized",
            cache_dir=str(self.cache_dir),
            codec=self.codec.name,
        )

    def _get_cache_file(self, key: str) -> Path:
        return self.cache_dir / validate_key(key)

    def _load(self, key: str) -> CacheEntry | None:
        """Read the live entry for a key, removing it if it has expired."""
        path = self._get_cache_file(key)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            # Over-long names, embedded NULs, directories, denied access
            logger.warning("Unreadable cache file", key=key, error=str(e))
            return None

        try:
            record = self.codec.decode(data)
        except Exception as e:
            # Truncated writes and foreign content
            logger.warning("Unreadable cache entry", key=key, error=str(e))
            return None

        if not isinstance(record, Mapping) or not RECORD_FIELDS <= record.keys():
            logger.warning("Malformed cache entry", key=key)
            return None
        if record["key"] != key:
            # Case-insensitive filesystems map different keys onto one file
            logger.debug(
                "Cache entry belongs to another key", key=key, stored_key=record["key"]
            )
            return None

        expiry = record["expiry"]
        if not isinstance(expiry, int) or isinstance(expiry, bool):
            logger.warning("Malformed cache entry expiry", key=key)
            return None
        if is_expired(expiry, self._now()):
            logger.debug("Removing expired entry", key=key)
            self._unlink(path)
            return None

        return CacheEntry(key=key, value=record["value"], expiry=expiry)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._load(key)
        if entry is None:
            logger.debug("Cache miss", key=key)
            return default
        logger.debug("Cache hit", key=key)
        return entry.value

    def has(self, key: str) -> bool:
        return self._load(key) is not None

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        path = self._get_cache_file(key)
        expiry = compute_expiry(ttl, self._now())
        record = {
            "key": key,
            "expiry": NO_EXPIRY if expiry is None else expiry,
            "value": value,
        }

        temp_path: str | None = None
        try:
            data = self.codec.encode(record)
            fd, temp_path = tempfile.mkstemp(dir=self.cache_dir, prefix=".", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(temp_path, path)
        except Exception as e:
            # Unserializable values, full disks and permission errors alike
            logger.error("Failed to write cache entry", key=key, error=str(e))
            if temp_path is not None:
                self._unlink(Path(temp_path))
            return False

        logger.debug("Stored cache entry", key=key, expiry=record["expiry"])
        return True

    def delete(self, key: str) -> bool:
        path = self._get_cache_file(key)
        return self._unlink(path)

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except (OSError, ValueError) as e:
            logger.error("Failed to delete cache file", path=str(path), error=str(e))
            return False
        return True

    def clear(self) -> bool:
        """Remove every file and directory under the cache directory.

        Stops at the first entry that cannot be removed; entries not yet
        reached stay on disk.
        """
        removed = 0
        try:
            with os.scandir(self.cache_dir) as it:
                for item in it:
                    if item.is_dir(follow_symlinks=False):
                        shutil.rmtree(item.path)
                    else:
                        os.unlink(item.path)
                    removed += 1
        except OSError as e:
            logger.error(
                "Failed to clear cache directory",
                cache_dir=str(self.cache_dir),
                removed=removed,
                error=str(e),
            )
            return False

        logger.info("Cleared file cache", cache_dir=str(self.cache_dir), removed=removed)
        return True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"(cache_dir={str(self.cache_dir)!r}, codec={self.codec.name!r})"
        )
