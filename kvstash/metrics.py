"""Simple in-process counters for cache activity."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Dict


class CacheMetrics:
    """Thread-safe named counters for hits, misses and evictions."""

    HITS = "cache_hits_total"
    MISSES = "cache_misses_total"
    EVICTIONS = "cache_evictions_total"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Counter[str] = Counter()

    def increment_counter(self, name: str) -> None:
        with self._lock:
            self._counters[name] += 1

    def record_hit(self) -> None:
        self.increment_counter(self.HITS)

    def record_miss(self) -> None:
        self.increment_counter(self.MISSES)

    def record_eviction(self) -> None:
        self.increment_counter(self.EVICTIONS)

    def counters(self) -> Dict[str, int]:
        """Snapshot of all counters."""
        with self._lock:
            return dict(self._counters)