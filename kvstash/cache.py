"""The cache itself: entries grouped by key, with eviction and persistence."""

from __future__ import annotations

import abc
import asyncio
import copy
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, Generic, Hashable, List, Optional, Set, TypeVar

from .backends.memory import MemoryBackend
from .config import CacheConfig
from .entry import CacheEntry
from .errors import CacheError
from .eviction import EvictionContext, create_strategy
from .search import SearchQuery
from .storage import EntryMap, StorageBackend

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheStats:
    """Summary of what the cache currently holds."""

    total_entries: int = 0
    total_keys: int = 0
    total_access_count: int = 0
    expired_count: int = 0
    memory_usage_bytes: int = 0


class AsyncCache(abc.ABC, Generic[K, V]):
    """The basic key/value operations of an asynchronous cache."""

    @abc.abstractmethod
    async def get(self, key: K) -> Optional[V]:
        """The value stored for ``key``, or ``None``."""

    @abc.abstractmethod
    async def put(self, key: K, value: V) -> None:
        """Store ``value`` under ``key``."""

    @abc.abstractmethod
    async def remove(self, key: K) -> Optional[V]:
        """Remove ``key`` and return its value, or ``None`` if it was absent."""

    @abc.abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""

    @abc.abstractmethod
    async def contains(self, key: K) -> bool:
        """Whether ``key`` is present."""

    @abc.abstractmethod
    async def size(self) -> int:
        """Number of entries held."""

    async def is_empty(self) -> bool:
        """Whether the cache holds no entries."""
        return await self.size() == 0


class Cache(AsyncCache[K, V]):
    """Keeps several entries per key, evicts when full and syncs to a backend.

    Build one with :meth:`create`, which also loads persisted entries when the
    configuration asks for it. Use :meth:`close` (or ``async with``) to wait
    for background saves and write the final state.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        backend: Optional[StorageBackend] = None,
    ) -> None:
        self.config = config if config is not None else CacheConfig()
        self.backend = backend if backend is not None else MemoryBackend()
        self._entries: EntryMap = {}
        self._lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()
        self._operation_count = 0
        self._eviction = create_strategy(self.config.eviction_policy)
        self._pending: Set["asyncio.Task[None]"] = set()

    @classmethod
    async def create(
        cls,
        config: Optional[CacheConfig] = None,
        backend: Optional[StorageBackend] = None,
    ) -> "Cache[Any, Any]":
        """A new cache, loaded from the backend if persistence says so."""
        cache = cls(config, backend)
        persistence = cache.config.persistence
        if persistence.enabled and persistence.load_on_startup:
            with suppress(CacheError):
                await cache._load()
        return cache

    async def __aenter__(self) -> "Cache[K, V]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def add_entry(self, entry: CacheEntry[K, V]) -> None:
        """Append ``entry`` to its key's entries, trimming and evicting as needed."""
        async with self._lock:
            bucket = self._entries.setdefault(entry.key, [])
            bucket.append(entry)
            if len(bucket) > self.config.max_entries_per_key:
                bucket.pop(0)

            total = self._total_entries()
            if total > self.config.max_total_entries:
                context = EvictionContext(
                    max_total_entries=self.config.max_total_entries,
                    current_total_entries=total,
                )
                self._eviction.evict(self._entries, context)

        self._count_operation()

    async def get_entries(self, key: K) -> Optional[List[CacheEntry[K, V]]]:
        """Copies of all entries for ``key``, recording an access on each."""
        async with self._lock:
            bucket = self._entries.get(key)
            if bucket is None:
                return None
            for entry in bucket:
                entry.record_access()
            return copy.deepcopy(bucket)

    async def get_latest(self, key: K) -> Optional[CacheEntry[K, V]]:
        """A copy of the newest entry for ``key``, recording an access on it."""
        async with self._lock:
            bucket = self._entries.get(key)
            if not bucket:
                return None
            # On equal timestamps the entry added last wins.
            latest = max(reversed(bucket), key=lambda entry: entry.timestamp)
            latest.record_access()
            return copy.deepcopy(latest)

    async def search(self, query: SearchQuery) -> List[CacheEntry[K, V]]:
        """Copies of every entry that ``query`` matches."""
        async with self._lock:
            return [
                copy.deepcopy(entry)
                for bucket in self._entries.values()
                for entry in bucket
                if query.matches(entry)
            ]

    async def get_stats(self) -> CacheStats:
        """Counts of keys, entries, accesses and expired entries."""
        async with self._lock:
            all_entries = [e for bucket in self._entries.values() for e in bucket]
            return CacheStats(
                total_entries=len(all_entries),
                total_keys=len(self._entries),
                total_access_count=sum(e.access_count for e in all_entries),
                expired_count=sum(1 for e in all_entries if e.is_expired()),
                memory_usage_bytes=0,
            )

    async def get(self, key: K) -> Optional[V]:
        latest = await self.get_latest(key)
        return None if latest is None else latest.value

    async def put(self, key: K, value: V) -> None:
        """Store ``value`` as the only entry for ``key``."""
        async with self._lock:
            self._entries[key] = [CacheEntry(key, value)]
        self._count_operation()

    async def remove(self, key: K) -> Optional[V]:
        async with self._lock:
            bucket = self._entries.pop(key, None)
        if bucket is None:
            return None
        await self.backend.remove(key)
        self._count_operation()
        return bucket[-1].value if bucket else None

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
        await self.backend.clear()

    async def contains(self, key: K) -> bool:
        async with self._lock:
            return key in self._entries

    async def size(self) -> int:
        async with self._lock:
            return self._total_entries()

    async def save(self) -> None:
        """Write the current entries to the backend if persistence is enabled."""
        if not self.config.persistence.enabled:
            return
        async with self._save_lock:
            async with self._lock:
                snapshot = {key: list(bucket) for key, bucket in self._entries.items()}
            await self.backend.save(snapshot)

    async def close(self) -> None:
        """Wait for background saves, then save if configured to on shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        persistence = self.config.persistence
        if persistence.enabled and persistence.save_on_drop:
            await self.save()

    def _total_entries(self) -> int:
        return sum(len(bucket) for bucket in self._entries.values())

    async def _load(self) -> None:
        if not self.config.persistence.enabled:
            return
        loaded = await self.backend.load()
        async with self._lock:
            self._entries = loaded

    def _count_operation(self) -> None:
        self._operation_count += 1
        if self._operation_count >= self.config.persistence.sync_interval:
            self._operation_count = 0
            task = asyncio.get_running_loop().create_task(self._background_save())
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _background_save(self) -> None:
        with suppress(CacheError):
            await self.save()