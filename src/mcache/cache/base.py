"""
Base classes for caching.

- CacheProtocol: public interface of a cache (get/put/delete)
- Store: durable table of CacheEntry rows behind a few primitive operations
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from mcache.types import CacheEntry


class CacheProtocol(ABC):
    """Abstract interface for cache implementations."""

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the cache, or ``default`` if absent or expired."""
        ...

    @abstractmethod
    async def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value in the cache."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a value from the cache."""
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a live (unexpired) entry exists for a key."""
        ...


class Store(ABC):
    """Persistence for cache rows.

    A store does not interpret expiration beyond the bulk threshold delete;
    logical expiration belongs to the cache engine.
    """

    @abstractmethod
    async def init_schema(self) -> None:
        """Create the backing table if it does not exist. Idempotent."""
        ...

    @abstractmethod
    async def upsert(self, key: str, value: str, expires_at: int) -> None:
        """Insert a row or replace the existing row for ``key``."""
        ...

    @abstractmethod
    async def select_by_key(self, key: str) -> CacheEntry | None:
        """Return the row for ``key``, or None.

        Raises DeserializationError when the stored row is malformed.
        """
        ...

    @abstractmethod
    async def delete_expired(self, threshold: int) -> int:
        """Delete every row with ``expires_at <= threshold``; return the count."""
        ...

    @abstractmethod
    async def delete_by_key(self, key: str) -> bool:
        """Delete the row for ``key`` if present; return whether one was removed."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Number of physical rows, expired or not."""
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Delete every row; return the count."""
        ...
