# kvstash

An asyncio key-value cache that keeps several entries per key, evicts by a
chosen policy when it grows too large, searches its entries, and can persist
them to a storage backend.

## Features

- Async API built on `asyncio` (`kvstash.cache.Cache`)
- Several entries per key, each a `CacheEntry` with a creation time, an
  optional expiry, an access count, a last-access time and metadata
- Eviction policies (`kvstash.config.EvictionPolicy`): `LRU`, `LFU`, `FIFO`,
  `TTL` and `NONE`
- Storage backends: `MemoryBackend` (in process memory) and
  `FilesystemBackend` (one JSON file per key in a directory)
- Queries (`kvstash.search.SearchQuery`) by key substring, creation-time
  range, access-count range, metadata category and expiry
- A single exception hierarchy rooted at `kvstash.errors.CacheError`

No third-party libraries are needed.

## Installation

```
pip install kvstash
```

## Quick start

```python
import asyncio

from kvstash.backends.memory import MemoryBackend
from kvstash.cache import Cache
from kvstash.config import CacheConfig


async def main():
    config = CacheConfig().with_max_entries_per_key(10).with_max_total_entries(1000)
    async with await Cache.create(config, MemoryBackend()) as cache:
        await cache.put("user:1", {"id": 1, "name": "Alice", "email": "alice@example.com"})
        print(await cache.get("user:1"))
        print(await cache.contains("user:1"))
        print(await cache.size(), await cache.is_empty())

        stats = await cache.get_stats()
        print(stats.total_entries, stats.total_keys, stats.total_access_count)

        print(await cache.remove("user:1"))   # the removed value, or None
        await cache.clear()


asyncio.run(main())
```

`put` makes the value the only entry for its key. `get` returns the value of
the newest entry and records an access on it; `remove` returns the value of
the key's last entry and also drops the key from the backend; `clear` empties
both the cache and the backend.

## Entries with metadata

```python
from kvstash.entry import BasicMetadata, CacheEntry

metadata = BasicMetadata(execution_time_ms=45, size_bytes=120, category="tutorial", tags=["intro"])
await cache.add_entry(CacheEntry("doc:1", {"title": "Introduction"}, metadata))

for entry in await cache.get_entries("doc:1") or []:
    print(entry.value, entry.access_count, entry.age())

latest = await cache.get_latest("doc:1")
```

`add_entry` appends to the key's entries. When a key holds more than
`max_entries_per_key` entries its oldest is dropped; when the whole cache holds
more than `max_total_entries`, the eviction strategy removes one key (with all
its entries). `put` does not trigger eviction.

`CacheEntry(...).with_ttl(timedelta(...))` sets an expiry relative to the
creation time; `is_expired()` tells whether it has passed. Custom metadata is a
dataclass subclass of `EntryMetadata` with `execution_time_ms`, `size_bytes`
and `category` as fields or properties.

## Searching

```python
from kvstash.search import SearchQuery

query = SearchQuery().with_pattern("doc").with_category("tutorial")
for entry in await cache.search(query):
    print(entry.key, entry.value)
```

Other criteria: `with_timestamp_range(min, max)`,
`with_access_count_range(min, max)` and `with_include_expired(True)`. Expired
entries are left out unless asked for. `SearchQuery.matches(entry)` tests a
single entry. `search`, `get_entries` and `get_latest` return copies.

## Eviction strategies

`kvstash.eviction.create_strategy(policy)` returns the strategy for a policy;
each strategy's `evict(entries, context)` works in place on a mapping of key to
list of entries:

- `LruEviction`: drops the key whose entries were accessed least recently
- `LfuEviction`: drops the key with the lowest total access count
- `FifoEviction`: drops the key holding the oldest entry by creation time
- `TtlEviction`: drops expired entries, then falls back to FIFO if still over
  `max_total_entries`
- `NoEviction`: drops nothing

## Persistence

```python
from kvstash.backends.filesystem import FilesystemBackend
from kvstash.cache import Cache
from kvstash.config import CacheConfig, EvictionPolicy, PersistenceConfig
from kvstash.entry import BasicMetadata

config = (
    CacheConfig()
    .with_persistence(PersistenceConfig.with_path("/tmp/document-cache"))
    .with_eviction_policy(EvictionPolicy.LRU)
)
backend = FilesystemBackend("/tmp/document-cache", metadata_type=BasicMetadata)
cache = await Cache.create(config, backend)
...
await cache.close()
```

With persistence enabled:

- `Cache.create` loads what the backend holds when `load_on_startup` is true
  (load errors are ignored);
- every `sync_interval` operations (`add_entry`, `put`, a successful `remove`)
  a save runs in the background;
- `Cache.save()` writes the current entries at any time;
- `Cache.close()` (or leaving `async with`) waits for background saves and
  saves once more when `save_on_drop` is true.

With persistence disabled (the default) nothing is saved or loaded.

`FilesystemBackend` writes each key's entries to `<key>.json` in its directory,
with the key passed through `sanitize_filename` so it cannot leave the
directory, plus a `metadata.json` summary. Keys and values must therefore be
JSON-serializable, and keys come back as JSON gives them back (for example
strings). Pass the metadata class as `metadata_type` so stored metadata is
rebuilt with it. Files that cannot be read or decoded are skipped with a
logged warning. `MemoryBackend` keeps deep copies in memory; `shared()` returns
another handle onto the same data.

Backend failures surface as `kvstash.errors.CacheIOError`,
`SerializationError` or `DeserializationError`, all subclasses of `CacheError`.

## Metrics

`kvstash.metrics.CacheMetrics` is a thread-safe set of named counters with
`record_hit()`, `record_miss()`, `record_eviction()`,
`increment_counter(name)` and `counters()`. It stands alone; the cache does not
update it.

## What it does not do

- There is no command-line tool; this is a library.
- `CacheConfig.compression`, `CacheConfig.default_ttl` and
  `CacheConfig.enable_metrics` are recorded but not acted on by `Cache`:
  nothing is compressed, entries only expire if given a TTL themselves, and no
  metrics are collected.
- `CacheStats.memory_usage_bytes` is always 0.
- JSON is the only serialization format.

## Running the tests

```
pip install -e ".[test]"
pytest
```