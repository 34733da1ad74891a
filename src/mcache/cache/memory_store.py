"""
In-memory store with the same contract as SQLiteStore.

Rows live in a dict for the lifetime of the instance. Used to substitute
storage in tests and for throwaway caches.
"""

from __future__ import annotations

from mcache.cache.base import Store
from mcache.types import CacheEntry


class InMemoryStore(Store):
    """Dict-backed store. Not persistent."""

    def __init__(self) -> None:
        self._rows: dict[str, CacheEntry] = {}
        self.initialized = False

    async def init_schema(self) -> None:
        self.initialized = True

    async def upsert(self, key: str, value: str, expires_at: int) -> None:
        self._rows[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    async def select_by_key(self, key: str) -> CacheEntry | None:
        return self._rows.get(key)

    async def delete_expired(self, threshold: int) -> int:
        expired = [k for k, entry in self._rows.items() if entry.expires_at <= threshold]
        for k in expired:
            del self._rows[k]
        return len(expired)

    async def delete_by_key(self, key: str) -> bool:
        return self._rows.pop(key, None) is not None

    async def count(self) -> int:
        return len(self._rows)

    async def clear(self) -> int:
        deleted = len(self._rows)
        self._rows.clear()
        return deleted
