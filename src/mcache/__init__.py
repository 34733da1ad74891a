"""Persistent key-value cache with TTL expiration, backed by SQLite."""

from mcache.cache import InMemoryStore, KVCache, SQLiteStore, open_cache
from mcache.config import Settings, get_settings
from mcache.exceptions import (
    CacheError,
    ConfigurationError,
    DeserializationError,
    SerializationError,
    StoreUnavailableError,
)
from mcache.types import CacheEntry, CacheStats

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "CacheError",
    "CacheStats",
    "ConfigurationError",
    "DeserializationError",
    "InMemoryStore",
    "KVCache",
    "SQLiteStore",
    "SerializationError",
    "Settings",
    "StoreUnavailableError",
    "get_settings",
    "open_cache",
]
