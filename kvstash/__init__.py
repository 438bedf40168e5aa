"""An asyncio key-value cache with in-memory and filesystem backends, eviction policies and search."""

__version__ = "0.1.8"