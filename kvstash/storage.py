"""Storage backend interface and serialization formats."""

from __future__ import annotations

import abc
import enum
import json
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List

from .entry import CacheEntry
from .errors import DeserializationError, SerializationError

EntryMap = Dict[Hashable, List[CacheEntry[Any, Any]]]


class StorageBackend(abc.ABC):
    """Where a cache keeps its entries between runs."""

    @abc.abstractmethod
    async def save(self, entries: EntryMap) -> None:
        """Persist all ``entries``."""

    @abc.abstractmethod
    async def load(self) -> EntryMap:
        """Return every stored entry, grouped by key."""

    @abc.abstractmethod
    async def remove(self, key: Hashable) -> None:
        """Drop the entries stored for ``key``."""

    @abc.abstractmethod
    async def clear(self) -> None:
        """Drop every stored entry."""

    async def contains(self, key: Hashable) -> bool:
        """Whether entries are stored for ``key``."""
        return key in await self.load()

    async def size_bytes(self) -> int:
        """Approximate storage size in bytes."""
        return 0

    async def compact(self) -> None:
        """Reorganise storage; does nothing unless a backend supports it."""
        return None


class SerializationFormat(enum.Enum):
    """Encoding used for stored data."""

    JSON = "json"

    def extension(self) -> str:
        """File extension for data in this format."""
        return self.value

    def serialize(self, value: Any) -> bytes:
        """Encode ``value`` to bytes."""
        try:
            return json.dumps(value, indent=2).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(exc) from exc

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes produced by :meth:`serialize`."""
        try:
            return json.loads(data)
        except (TypeError, ValueError) as exc:
            raise DeserializationError(exc) from exc


@dataclass
class StorageStats:
    """Summary figures for a storage backend."""

    total_keys: int = 0
    total_entries: int = 0
    total_bytes: int = 0
    avg_entries_per_key: float = 0.0