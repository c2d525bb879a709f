"""
Serialization codecs for file cache entries.

A codec turns an entry record ``{"key", "expiry", "value"}`` into the bytes
stored in one cache file and back. The format is private to the store.

- PickleCodec: any picklable value (default)
- JSONCodec: JSON-native values via orjson, human-readable files
"""

from __future__ import annotations

import pickle
from typing import Any, Protocol

import orjson

from kvcache.exceptions import InvalidArgument


class Codec(Protocol):
    """Serializer for entry records."""

    name: str

    def encode(self, record: dict[str, Any]) -> bytes:
        """Serialize a record to bytes."""
        ...

    def decode(self, data: bytes) -> Any:
        """Deserialize bytes produced by encode()."""
        ...


class PickleCodec:
    """Pickle-based codec, stores any picklable Python value."""

    name = "pickle"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self.protocol = protocol

    def encode(self, record: dict[str, Any]) -> bytes:
        return pickle.dumps(record, protocol=self.protocol)

    def decode(self, data: bytes) -> Any:
        return pickle.loads(data)


class JSONCodec:
    """orjson-based codec for JSON-native values.

    Tuples come back as lists and non-string dict keys are rejected on
    encode, so only use it for plain JSON payloads.
    """

    name = "json"

    def encode(self, record: dict[str, Any]) -> bytes:
        return orjson.dumps(record)

    def decode(self, data: bytes) -> Any:
        return orjson.loads(data)


_CODECS: dict[str, type[PickleCodec] | type[JSONCodec]] = {
    PickleCodec.name: PickleCodec,
    JSONCodec.name: JSONCodec,
}


def get_codec(name: str) -> Codec:
    """Get a codec instance by name.

    Args:
        name: "pickle" or "json".

    Returns:
        A fresh codec instance.

    Raises:
        InvalidArgument: If the name is unknown.
    """
    try:
        return _CODECS[name]()
    except KeyError:
        raise InvalidArgument(
            "Unknown cache codec", context={"codec": name, "available": sorted(_CODECS)}
        ) from None
