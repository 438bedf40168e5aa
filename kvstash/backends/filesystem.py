"""Storage backend that writes one file per key into a directory."""

from __future__ import annotations

import asyncio
import copy
import logging
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Hashable, List, Type, Union

from ..entry import CacheEntry, EntryMetadata
from ..errors import CacheIOError, DeserializationError
from ..storage import EntryMap, SerializationFormat, StorageBackend

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = frozenset('/\\:*?"<>|')


def sanitize_filename(filename: str) -> str:
    """Replace characters that are unsafe in a file name and strip hidden-file dots."""
    result = "".join(
        "_" if c in _UNSAFE_CHARS or unicodedata.category(c) == "Cc" else c
        for c in filename
    )
    if result.startswith("."):
        result = "_" + result[1:]
    return result.strip(".").strip()


class FilesystemBackend(StorageBackend):
    """Stores each key's entries in its own file under ``base_path``."""

    def __init__(
        self,
        base_path: Union[str, Path],
        fmt: SerializationFormat = SerializationFormat.JSON,
        metadata_type: Type[EntryMetadata] = EntryMetadata,
    ) -> None:
        self.base_path = Path(base_path)
        self.format = fmt
        self.metadata_type = metadata_type
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheIOError(exc) from exc

    def with_format(self, fmt: SerializationFormat) -> "FilesystemBackend":
        """A backend on the same directory using serialization format ``fmt``."""
        other = copy.copy(self)
        other.format = fmt
        return other

    def cache_file_path(self, key: Any) -> Path:
        """Path of the file holding the entries for ``key``."""
        safe_key = sanitize_filename(str(key)) or "cache_entry"
        return self.base_path / f"{safe_key}.{self.format.extension()}"

    def metadata_path(self) -> Path:
        """Path of the file describing the whole cache."""
        return self.base_path / f"metadata.{self.format.extension()}"

    def _is_cache_file(self, path: Path) -> bool:
        return path.suffix == f".{self.format.extension()}"

    def _save_sync(self, entries: EntryMap) -> None:
        for key, bucket in entries.items():
            data = self.format.serialize([entry.to_dict() for entry in bucket])
            self.cache_file_path(key).write_bytes(data)
        summary = {
            "total_keys": len(entries),
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
        self.metadata_path().write_bytes(self.format.serialize(summary))

    def _read_bucket(self, path: Path) -> List[CacheEntry[Any, Any]]:
        raw = self.format.deserialize(path.read_bytes())
        if not isinstance(raw, list):
            raise DeserializationError(f"expected a list of entries in {path}")
        try:
            return [CacheEntry.from_dict(item, self.metadata_type) for item in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DeserializationError(exc) from exc

    def _load_sync(self) -> EntryMap:
        entries: Dict[Hashable, List[CacheEntry[Any, Any]]] = {}
        for path in self.base_path.iterdir():
            if not self._is_cache_file(path) or path.stem == "metadata":
                continue
            try:
                bucket = self._read_bucket(path)
            except OSError as exc:
                logger.warning("Failed to read cache file %s: %s", path, exc)
                continue
            except DeserializationError as exc:
                logger.warning("Failed to deserialize cache file %s: %s", path, exc)
                continue
            if bucket:
                entries[bucket[0].key] = bucket
        return entries

    def _clear_sync(self) -> None:
        for path in self.base_path.iterdir():
            if self._is_cache_file(path):
                path.unlink()

    def _size_sync(self) -> int:
        total = 0
        for path in self.base_path.iterdir():
            try:
                total += path.stat().st_size
            except OSError:
                continue
        return total

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except OSError as exc:
            raise CacheIOError(exc) from exc

    async def save(self, entries: EntryMap) -> None:
        await self._run(self._save_sync, entries)

    async def load(self) -> EntryMap:
        return await self._run(self._load_sync)

    async def remove(self, key: Hashable) -> None:
        path = self.cache_file_path(key)
        await self._run(path.unlink, True)

    async def clear(self) -> None:
        await self._run(self._clear_sync)

    async def contains(self, key: Hashable) -> bool:
        return self.cache_file_path(key).exists()

    async def size_bytes(self) -> int:
        return await self._run(self._size_sync)

    async def compact(self) -> None:
        """Nothing to reorganise for plain files."""
        return None