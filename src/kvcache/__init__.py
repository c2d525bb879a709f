"""
kvcache: key-value cache with interchangeable file and in-memory backends.
"""

from kvcache.cache import CacheProtocol, FileCache, InMemoryKVCache, create_cache
from kvcache.exceptions import CacheException, InvalidArgument

__version__ = "0.1.0"

__all__ = [
    "CacheException",
    "CacheProtocol",
    "FileCache",
    "InMemoryKVCache",
    "InvalidArgument",
    "__version__",
    "create_cache",
]
