"""Strategies for removing entries when the cache grows too large."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Hashable, List, MutableMapping

from .config import EvictionPolicy
from .entry import CacheEntry

Entries = MutableMapping[Hashable, List[CacheEntry[Any, Any]]]


@dataclass(frozen=True)
class EvictionContext:
    """Capacity figures an eviction decision is made against."""

    max_total_entries: int
    current_total_entries: int


class EvictionStrategy(abc.ABC):
    """Removes entries from a key-to-entries mapping in place."""

    @abc.abstractmethod
    def evict(self, entries: Entries, context: EvictionContext) -> None:
        """Evict entries according to the strategy."""


def _evict_earliest(entries: Entries, attribute: str) -> None:
    """Remove the key holding the entry with the earliest value of ``attribute``."""
    threshold = datetime.now(timezone.utc)
    victim: Any = None
    found = False
    for key, bucket in entries.items():
        if not bucket:
            continue
        earliest = min(getattr(entry, attribute) for entry in bucket)
        if earliest < threshold:
            threshold = earliest
            victim = key
            found = True
    if found:
        del entries[victim]


class LruEviction(EvictionStrategy):
    """Drops the key whose entries were accessed least recently."""

    def evict(self, entries: Entries, context: EvictionContext) -> None:
        _evict_earliest(entries, "last_accessed")


class LfuEviction(EvictionStrategy):
    """Drops the key whose entries were accessed the fewest times in total."""

    def evict(self, entries: Entries, context: EvictionContext) -> None:
        victim: Any = None
        lowest: float = float("inf")
        found = False
        for key, bucket in entries.items():
            total = sum(entry.access_count for entry in bucket)
            if total < lowest:
                lowest = total
                victim = key
                found = True
        if found:
            del entries[victim]


class FifoEviction(EvictionStrategy):
    """Drops the key holding the oldest entry by creation time."""

    def evict(self, entries: Entries, context: EvictionContext) -> None:
        _evict_earliest(entries, "timestamp")


class TtlEviction(EvictionStrategy):
    """Drops expired entries, then falls back to FIFO if still over capacity."""

    def evict(self, entries: Entries, context: EvictionContext) -> None:
        for key in list(entries):
            bucket = entries[key]
            bucket[:] = [entry for entry in bucket if not entry.is_expired()]
            if not bucket:
                del entries[key]

        total = sum(len(bucket) for bucket in entries.values())
        if total > context.max_total_entries:
            FifoEviction().evict(entries, context)


class NoEviction(EvictionStrategy):
    """Never removes anything automatically."""

    def evict(self, entries: Entries, context: EvictionContext) -> None:
        return None


_STRATEGIES = {
    EvictionPolicy.LRU: LruEviction,
    EvictionPolicy.LFU: LfuEviction,
    EvictionPolicy.FIFO: FifoEviction,
    EvictionPolicy.TTL: TtlEviction,
    EvictionPolicy.NONE: NoEviction,
}


def create_strategy(policy: EvictionPolicy) -> EvictionStrategy:
    """The eviction strategy implementing ``policy``."""
    return _STRATEGIES[policy]()