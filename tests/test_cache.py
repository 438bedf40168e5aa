from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from kvstash.backends.filesystem import FilesystemBackend
from kvstash.backends.memory import MemoryBackend
from kvstash.cache import Cache, CacheStats
from kvstash.config import CacheConfig, EvictionPolicy, PersistenceConfig
from kvstash.entry import BasicMetadata, CacheEntry
from kvstash.search import SearchQuery


@dataclass
class Item:
    id: int
    name: str
    value: int


def _ago(hours: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)


def _persisting(sync_interval=100, save_on_drop=True, load_on_startup=False):
    return CacheConfig().with_persistence(
        PersistenceConfig(
            enabled=True,
            sync_interval=sync_interval,
            save_on_drop=save_on_drop,
            load_on_startup=load_on_startup,
        )
    )


@pytest.mark.asyncio
async def test_cache_basic_operations():
    cache = await Cache.create(CacheConfig(), MemoryBackend())
    await cache.put("key1", "value1")
    assert await cache.get("key1") == "value1"
    assert await cache.contains("key1") is True
    assert await cache.contains("key2") is False
    assert await cache.size() == 1
    assert await cache.remove("key1") == "value1"
    assert await cache.size() == 0


@pytest.mark.asyncio
async def test_cache_clear():
    cache = await Cache.create(CacheConfig(), MemoryBackend())
    await cache.put("key1", "value1")
    await cache.put("key2", "value2")
    assert await cache.size() == 2
    await cache.clear()
    assert await cache.size() == 0
    assert await cache.contains("key1") is False


@pytest.mark.asyncio
async def test_simple_example_flow():
    config = CacheConfig().with_max_entries_per_key(5).with_max_total_entries(100)
    cache = await Cache.create(config)
    data = Item(id=1, name="Test Item", value=42)

    await cache.put("test_key", data)
    assert await cache.get("test_key") == data
    assert await cache.contains("test_key") is True
    assert await cache.size() == 1
    assert await cache.remove("test_key") == data
    assert await cache.is_empty() is True
    await cache.clear()
    assert await cache.is_empty() is True


@pytest.mark.asyncio
async def test_get_missing_and_remove_missing():
    cache = await Cache.create()
    assert await cache.get("nope") is None
    assert await cache.remove("nope") is None


@pytest.mark.asyncio
async def test_put_replaces_existing_entries():
    cache = await Cache.create()
    await cache.add_entry(CacheEntry("k", 1))
    await cache.add_entry(CacheEntry("k", 2))
    assert await cache.size() == 2
    await cache.put("k", 3)
    assert await cache.size() == 1
    assert await cache.get("k") == 3


@pytest.mark.asyncio
async def test_max_entries_per_key_drops_oldest():
    cache = await Cache.create(CacheConfig().with_max_entries_per_key(2))
    for value in (1, 2, 3):
        await cache.add_entry(CacheEntry("k", value))
    entries = await cache.get_entries("k")
    assert [entry.value for entry in entries] == [2, 3]


@pytest.mark.asyncio
async def test_lru_eviction_on_total_limit():
    config = (
        CacheConfig()
        .with_max_total_entries(2)
        .with_eviction_policy(EvictionPolicy.LRU)
    )
    cache = await Cache.create(config)
    await cache.add_entry(CacheEntry("a", 1, timestamp=_ago(3)))
    await cache.add_entry(CacheEntry("b", 2, timestamp=_ago(2)))
    await cache.add_entry(CacheEntry("c", 3, timestamp=_ago(1)))
    assert await cache.contains("a") is False
    assert await cache.contains("b") is True
    assert await cache.contains("c") is True
    assert await cache.size() == 2


@pytest.mark.asyncio
async def test_no_eviction_policy_keeps_everything():
    config = (
        CacheConfig()
        .with_max_total_entries(1)
        .with_eviction_policy(EvictionPolicy.NONE)
    )
    cache = await Cache.create(config)
    await cache.add_entry(CacheEntry("a", 1, timestamp=_ago(2)))
    await cache.add_entry(CacheEntry("b", 2, timestamp=_ago(1)))
    assert await cache.size() == 2


@pytest.mark.asyncio
async def test_get_latest_returns_newest_and_counts_access():
    cache = await Cache.create()
    await cache.add_entry(CacheEntry("k", "new", timestamp=_ago(1)))
    await cache.add_entry(CacheEntry("k", "old", timestamp=_ago(5)))
    latest = await cache.get_latest("k")
    assert latest.value == "new"
    assert latest.access_count == 1
    assert await cache.get("k") == "new"
    assert await cache.get_latest("missing") is None


@pytest.mark.asyncio
async def test_get_entries_records_access_and_returns_copies():
    cache = await Cache.create()
    await cache.add_entry(CacheEntry("k", 1))
    await cache.add_entry(CacheEntry("k", 2))
    first = await cache.get_entries("k")
    assert [e.access_count for e in first] == [1, 1]
    first[0].access_count = 99
    second = await cache.get_entries("k")
    assert [e.access_count for e in second] == [2, 2]
    assert await cache.get_entries("missing") is None


@pytest.mark.asyncio
async def test_search_by_pattern_and_category():
    cache = await Cache.create()
    await cache.add_entry(
        CacheEntry("doc:1", "intro", metadata=BasicMetadata(category="tutorial"))
    )
    await cache.add_entry(
        CacheEntry("doc:2", "advanced", metadata=BasicMetadata(category="advanced"))
    )
    await cache.add_entry(CacheEntry("img:1", "picture"))

    docs = await cache.search(SearchQuery().with_pattern("doc"))
    assert sorted(e.value for e in docs) == ["advanced", "intro"]

    tutorials = await cache.search(
        SearchQuery().with_pattern("doc").with_category("tutorial")
    )
    assert [e.value for e in tutorials] == ["intro"]


@pytest.mark.asyncio
async def test_get_stats():
    cache = await Cache.create()
    await cache.add_entry(CacheEntry("a", 1))
    await cache.add_entry(CacheEntry("a", 2).with_ttl(timedelta(hours=-1)))
    await cache.add_entry(CacheEntry("b", 3))
    await cache.get_entries("a")
    stats = await cache.get_stats()
    assert stats == CacheStats(
        total_entries=3,
        total_keys=2,
        total_access_count=2,
        expired_count=1,
        memory_usage_bytes=0,
    )


@pytest.mark.asyncio
async def test_sync_interval_triggers_background_save():
    backend = MemoryBackend()
    cache = await Cache.create(_persisting(sync_interval=2, save_on_drop=False), backend)
    await cache.put("a", 1)
    assert await backend.load() == {}
    await cache.put("b", 2)
    await cache.close()
    stored = await backend.load()
    assert sorted(stored) == ["a", "b"]


@pytest.mark.asyncio
async def test_close_saves_when_configured():
    backend = MemoryBackend()
    cache = await Cache.create(_persisting(), backend)
    await cache.put("a", 1)
    await cache.close()
    stored = await backend.load()
    assert [e.value for e in stored["a"]] == [1]


@pytest.mark.asyncio
async def test_close_without_persistence_writes_nothing():
    backend = MemoryBackend()
    cache = await Cache.create(CacheConfig(), backend)
    await cache.put("a", 1)
    await cache.close()
    assert await backend.load() == {}


@pytest.mark.asyncio
async def test_context_manager_saves_on_exit():
    backend = MemoryBackend()
    async with await Cache.create(_persisting(), backend) as cache:
        await cache.put("x", "y")
    assert await backend.contains("x") is True


@pytest.mark.asyncio
async def test_load_on_startup():
    backend = MemoryBackend()
    await backend.save({"k": [CacheEntry("k", "stored")]})
    cache = await Cache.create(_persisting(load_on_startup=True), backend)
    assert await cache.get("k") == "stored"


@pytest.mark.asyncio
async def test_no_load_when_persistence_disabled():
    backend = MemoryBackend()
    await backend.save({"k": [CacheEntry("k", "stored")]})
    cache = await Cache.create(CacheConfig(), backend)
    assert await cache.contains("k") is False


@pytest.mark.asyncio
async def test_remove_also_removes_from_backend():
    backend = MemoryBackend()
    await backend.save({"k": [CacheEntry("k", "stored")]})
    cache = await Cache.create(_persisting(load_on_startup=True), backend)
    assert await cache.remove("k") == "stored"
    assert await backend.contains("k") is False


@pytest.mark.asyncio
async def test_clear_also_clears_backend():
    backend = MemoryBackend()
    await backend.save({"k": [CacheEntry("k", "stored")]})
    cache = await Cache.create(CacheConfig(), backend)
    await cache.clear()
    assert await backend.load() == {}


@pytest.mark.asyncio
async def test_filesystem_round_trip(tmp_path):
    backend = FilesystemBackend(tmp_path)
    cache = await Cache.create(_persisting(), backend)
    await cache.put("user:1", {"name": "Alice", "email": "alice@example.com"})
    await cache.close()

    reopened = await Cache.create(
        _persisting(load_on_startup=True), FilesystemBackend(tmp_path)
    )
    assert await reopened.get("user:1") == {
        "name": "Alice",
        "email": "alice@example.com",
    }