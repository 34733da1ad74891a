"""
Cache package.

- Base interfaces (base.py): CacheProtocol and Store
- SQLite store (store.py): durable rows via aiosqlite
- In-memory store (memory_store.py): dict-backed store for tests
- Expiry sweeper (sweeper.py): periodic physical deletion
- Cache engine (kv_cache.py): get/put/delete with TTL semantics
"""

from mcache.cache.base import CacheProtocol, Store
from mcache.cache.kv_cache import KVCache, open_cache
from mcache.cache.memory_store import InMemoryStore
from mcache.cache.store import SQLiteStore
from mcache.cache.sweeper import ExpirySweeper

__all__ = [
    "CacheProtocol",
    "ExpirySweeper",
    "InMemoryStore",
    "KVCache",
    "SQLiteStore",
    "Store",
    "open_cache",
]
