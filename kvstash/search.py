"""Queries for filtering cache entries."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from .entry import CacheEntry

T = TypeVar("T")


@dataclass(frozen=True)
class SearchQuery:
    """Criteria an entry must meet; the ``with_*`` methods return modified copies."""

    pattern: Optional[str] = None
    min_timestamp: Optional[datetime] = None
    max_timestamp: Optional[datetime] = None
    min_access_count: Optional[int] = None
    max_access_count: Optional[int] = None
    include_expired: bool = False
    category: Optional[str] = None
    custom_predicates: Optional[Any] = None

    def with_pattern(self, pattern: str) -> "SearchQuery":
        """Require the key's string form to contain ``pattern``."""
        return dataclasses.replace(self, pattern=str(pattern))

    def with_timestamp_range(
        self,
        min_timestamp: Optional[datetime],
        max_timestamp: Optional[datetime],
    ) -> "SearchQuery":
        """Require the creation time to lie within the given bounds."""
        return dataclasses.replace(
            self, min_timestamp=min_timestamp, max_timestamp=max_timestamp
        )

    def with_access_count_range(
        self, min_count: Optional[int], max_count: Optional[int]
    ) -> "SearchQuery":
        """Require the access count to lie within the given bounds."""
        return dataclasses.replace(
            self, min_access_count=min_count, max_access_count=max_count
        )

    def with_include_expired(self, include: bool) -> "SearchQuery":
        """Choose whether expired entries may match."""
        return dataclasses.replace(self, include_expired=include)

    def with_category(self, category: str) -> "SearchQuery":
        """Require the entry's metadata category to equal ``category``."""
        return dataclasses.replace(self, category=str(category))

    def matches(self, entry: CacheEntry[Any, Any]) -> bool:
        """Whether ``entry`` satisfies every criterion of this query."""
        if not self.include_expired and entry.is_expired():
            return False
        if self.pattern is not None and self.pattern not in str(entry.key):
            return False
        if self.min_timestamp is not None and entry.timestamp < self.min_timestamp:
            return False
        if self.max_timestamp is not None and entry.timestamp > self.max_timestamp:
            return False
        if self.min_access_count is not None and entry.access_count < self.min_access_count:
            return False
        if self.max_access_count is not None and entry.access_count > self.max_access_count:
            return False
        if self.category is not None and entry.metadata.category != self.category:
            return False
        return True


@dataclass
class SearchResult(Generic[T]):
    """A matched item with a relevance score between 0.0 and 1.0."""

    item: T
    score: float
    match_details: List[str] = field(default_factory=list)

    def with_detail(self, detail: str) -> "SearchResult[T]":
        """A copy of this result with ``detail`` appended to its match details."""
        return dataclasses.replace(
            self, match_details=[*self.match_details, str(detail)]
        )