"""Cache entries and the metadata attached to them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, Type, TypeVar

K = TypeVar("K")
V = TypeVar("V")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EntryMetadata:
    """Metadata carried by an entry; this base form holds nothing.

    Subclasses expose ``execution_time_ms``, ``size_bytes`` and ``category``
    as fields or properties; here they are absent and read as ``None``.
    """

    execution_time_ms: ClassVar[Optional[int]] = None
    size_bytes: ClassVar[Optional[int]] = None
    category: ClassVar[Optional[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form of the metadata."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "EntryMetadata":
        """Build metadata from its plain-data form, ignoring unknown keys."""
        if not data:
            return cls()
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class BasicMetadata(EntryMetadata):
    """Metadata with the commonly needed fields."""

    execution_time_ms: Optional[int] = None
    size_bytes: Optional[int] = None
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "execution_time_ms": self.execution_time_ms,
            "size_bytes": self.size_bytes,
            "category": self.category,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "BasicMetadata":
        data = data or {}
        return cls(
            execution_time_ms=data.get("execution_time_ms"),
            size_bytes=data.get("size_bytes"),
            category=data.get("category"),
            tags=list(data.get("tags") or []),
        )


@dataclass
class EntryStatistics:
    """Aggregate figures for a group of entries."""

    total_count: int = 0
    total_size_bytes: int = 0
    avg_execution_time_ms: float = 0.0
    avg_age_seconds: float = 0.0
    expired_count: int = 0
    total_access_count: int = 0


@dataclass
class CacheEntry(Generic[K, V]):
    """A cached key/value pair with timing, access and metadata information."""

    key: K
    value: V
    metadata: EntryMetadata = field(default_factory=EntryMetadata)
    timestamp: Optional[datetime] = None
    expiry: Optional[datetime] = None
    access_count: int = 0
    last_accessed: Optional[datetime] = None

    def __post_init__(self) -> None:
        now = _now()
        if self.timestamp is None:
            self.timestamp = now
        if self.last_accessed is None:
            self.last_accessed = self.timestamp if self.timestamp <= now else now

    def with_ttl(self, ttl: timedelta) -> "CacheEntry[K, V]":
        """Expire the entry ``ttl`` after its creation time; returns the entry."""
        self.expiry = self.timestamp + ttl
        return self

    def is_expired(self) -> bool:
        return self.expiry is not None and _now() > self.expiry

    def record_access(self) -> None:
        self.access_count += 1
        self.last_accessed = _now()

    def age(self) -> timedelta:
        return _now() - self.timestamp

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form of the entry, timestamps as ISO 8601 strings."""
        return {
            "key": self.key,
            "value": self.value,
            "metadata": self.metadata.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "expiry": self.expiry.isoformat() if self.expiry is not None else None,
            "access_count": self.access_count,
            "last_accessed": self.last_accessed.isoformat(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        metadata_type: Type[EntryMetadata] = EntryMetadata,
    ) -> "CacheEntry[Any, Any]":
        """Rebuild an entry from the output of :meth:`to_dict`."""
        expiry = data.get("expiry")
        return cls(
            key=data["key"],
            value=data["value"],
            metadata=metadata_type.from_dict(data.get("metadata")),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            expiry=datetime.fromisoformat(expiry) if expiry is not None else None,
            access_count=int(data.get("access_count", 0)),
            last_accessed=datetime.fromisoformat(data["last_accessed"]),
        )