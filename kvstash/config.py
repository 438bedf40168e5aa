"""Configuration types for the cache."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union


class EvictionPolicy(enum.Enum):
    """How entries are chosen for removal when the cache is full."""

    LRU = "lru"
    LFU = "lfu"
    FIFO = "fifo"
    TTL = "ttl"
    NONE = "none"


@dataclass(frozen=True)
class PersistenceConfig:
    """Settings controlling whether and how the cache is persisted."""

    enabled: bool = False
    path: Optional[Path] = None
    sync_interval: int = 100
    save_on_drop: bool = True
    load_on_startup: bool = True

    @classmethod
    def with_path(cls, path: Union[str, Path]) -> "PersistenceConfig":
        """Enabled persistence stored under ``path``."""
        return cls(enabled=True, path=Path(path))

    @classmethod
    def disabled(cls) -> "PersistenceConfig":
        """Persistence switched off."""
        return cls(enabled=False)


class CompressionAlgorithm(enum.Enum):
    """Supported compression algorithms."""

    GZIP = "gzip"
    ZLIB = "zlib"
    DEFLATE = "deflate"


@dataclass(frozen=True)
class CompressionConfig:
    """Settings for compressing stored values."""

    algorithm: CompressionAlgorithm = CompressionAlgorithm.GZIP
    level: int = 6
    min_size: int = 1024


@dataclass(frozen=True)
class CacheConfig:
    """Top-level cache configuration; the ``with_*`` methods return modified copies."""

    max_entries_per_key: int = 100
    max_total_entries: int = 10_000
    eviction_policy: EvictionPolicy = EvictionPolicy.LRU
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    compression: Optional[CompressionConfig] = None
    default_ttl: Optional[timedelta] = None
    enable_metrics: bool = False

    def with_max_entries_per_key(self, max_entries: int) -> "CacheConfig":
        return dataclasses.replace(self, max_entries_per_key=max_entries)

    def with_max_total_entries(self, max_entries: int) -> "CacheConfig":
        return dataclasses.replace(self, max_total_entries=max_entries)

    def with_eviction_policy(self, policy: EvictionPolicy) -> "CacheConfig":
        return dataclasses.replace(self, eviction_policy=policy)

    def with_persistence(self, persistence: PersistenceConfig) -> "CacheConfig":
        return dataclasses.replace(self, persistence=persistence)

    def with_default_ttl(self, ttl: timedelta) -> "CacheConfig":
        return dataclasses.replace(self, default_ttl=ttl)

    def with_compression(self, compression: CompressionConfig) -> "CacheConfig":
        return dataclasses.replace(self, compression=compression)

    def with_metrics(self, enable: bool) -> "CacheConfig":
        return dataclasses.replace(self, enable_metrics=enable)