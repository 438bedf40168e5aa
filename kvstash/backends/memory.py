"""Storage backend that keeps entries in process memory."""

from __future__ import annotations

import copy
import threading
from typing import Hashable

from ..storage import EntryMap, StorageBackend

# Rough in-memory footprint of one entry, used for size estimates.
ENTRY_SIZE_ESTIMATE = 104


class _Store:
    """Entry mapping plus the lock guarding it, shared between backend handles."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.data: EntryMap = {}


def _copy_entries(entries: EntryMap) -> EntryMap:
    return {key: copy.deepcopy(list(bucket)) for key, bucket in entries.items()}


class MemoryBackend(StorageBackend):
    """Keeps saved entries in a dictionary; handles from :meth:`shared` see the same data."""

    def __init__(self) -> None:
        self._store = _Store()

    def shared(self) -> "MemoryBackend":
        """Another handle onto the same stored data."""
        return copy.copy(self)

    async def save(self, entries: EntryMap) -> None:
        snapshot = _copy_entries(entries)
        with self._store.lock:
            self._store.data = snapshot

    async def load(self) -> EntryMap:
        with self._store.lock:
            return _copy_entries(self._store.data)

    async def remove(self, key: Hashable) -> None:
        with self._store.lock:
            self._store.data.pop(key, None)

    async def clear(self) -> None:
        with self._store.lock:
            self._store.data.clear()

    async def contains(self, key: Hashable) -> bool:
        with self._store.lock:
            return key in self._store.data

    async def size_bytes(self) -> int:
        """Estimate based on the number of stored entries."""
        with self._store.lock:
            total = sum(len(bucket) for bucket in self._store.data.values())
        return total * ENTRY_SIZE_ESTIMATE