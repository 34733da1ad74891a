"""
Key-value cache engine.

KVCache wraps a Store with the public get/put/delete contract:
- JSON serialization of values with orjson
- Absolute expiration timestamps computed at put time
- Logical expiration on read, independent of physical deletion
- A background ExpirySweeper that bulk-deletes expired rows

When settings mark the cache disabled, every operation is a no-op and no
storage is touched. That choice is made once, at construction.
"""

from __future__ import annotations

import time
from types import TracebackType
from typing import Any

import orjson

from mcache.cache.base import CacheProtocol, Store
from mcache.cache.store import SQLiteStore
from mcache.cache.sweeper import ExpirySweeper
from mcache.config import Settings
from mcache.exceptions import (
    ConfigurationError,
    DeserializationError,
    SerializationError,
)
from mcache.logging import get_logger, log_context, set_log_level
from mcache.types import CacheStats, Clock, clamp_timestamp, current_timestamp

logger = get_logger(__name__)


class KVCache(CacheProtocol):
    """Persistent TTL cache.

    Usage:
        async with KVCache(settings) as cache:
            await cache.put("session", {"userId": 42}, ttl_seconds=60)
            session = await cache.get("session")
    """

    def __init__(
        self,
        settings: Settings,
        store: Store | None = None,
        clock: Clock = time.time,
        name: str = "mcache",
    ) -> None:
        """Initialize the engine. Call start() (or use ``async with``) before use.

        Args:
            settings: Cache configuration.
            store: Backing store. Defaults to SQLiteStore at settings.CACHE_DB_PATH.
            clock: Returns the current Unix time in seconds.
            name: Label attached to log records.

        Raises:
            ConfigurationError: If CACHE_DB_PATH is an existing directory.
        """
        self.settings = settings
        self.name = name
        set_log_level(settings.LOG_LEVEL)
        self._disabled = settings.CACHE_DISABLED
        if store is None and not self._disabled and settings.CACHE_DB_PATH.is_dir():
            raise ConfigurationError(
                "CACHE_DB_PATH must be a file, not a directory",
                {"db_path": str(settings.CACHE_DB_PATH)},
            )
        self._store = store if store is not None else SQLiteStore(
            settings.CACHE_DB_PATH, timeout=settings.CACHE_BUSY_TIMEOUT_SECONDS
        )
        self._clock = clock
        self._stats = CacheStats()
        self._sweeper: ExpirySweeper | None = None
        self._started = False

    @property
    def disabled(self) -> bool:
        return self._disabled

    @property
    def running(self) -> bool:
        """Whether the background sweeper is active."""
        return self._sweeper is not None and self._sweeper.running

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def store(self) -> Store:
        return self._store

    def _now(self) -> int:
        return current_timestamp(self._clock)

    async def start(self) -> None:
        """Create the schema and start the expiry sweeper.

        Raises:
            StoreUnavailableError: If the schema cannot be created.
        """
        if self._started:
            return

        with log_context(cache=self.name, operation="init"):
            if self._disabled:
                self._started = True
                logger.info("Cache disabled, storage and sweeping bypassed")
                return

            await self._store.init_schema()

            self._sweeper = ExpirySweeper(
                self.sweep,
                self.settings.CACHE_SWEEP_INTERVAL_SECONDS,
                stats=self._stats,
            )
            self._sweeper.start()
            self._started = True

            logger.info(
                "Cache initialized",
                sweep_interval_seconds=self.settings.CACHE_SWEEP_INTERVAL_SECONDS,
                default_ttl_seconds=self.settings.CACHE_DEFAULT_TTL_SECONDS,
            )

    async def close(self) -> None:
        """Stop the sweeper. No sweep fires after this returns."""
        if self._sweeper is not None:
            with log_context(cache=self.name, operation="close"):
                await self._sweeper.stop()
            self._sweeper = None
        self._started = False

    async def __aenter__(self) -> KVCache:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the cache.

        Args:
            key: Cache key.
            default: Returned when the key is absent, expired or unreadable.

        Returns:
            The deserialized value, or ``default``.

        Raises:
            StoreUnavailableError: If the store cannot be read.
        """
        if self._disabled:
            return default

        with log_context(cache=self.name, operation="get"):
            try:
                entry = await self._store.select_by_key(key)
            except DeserializationError as e:
                return self._corrupt_miss(e, default)

            if entry is None:
                self._stats.misses += 1
                logger.info("Cache miss", key=key)
                return default

            now = self._now()
            if entry.is_expired(now):
                # Row stays until the sweeper reaches it
                self._stats.misses += 1
                logger.info("Cache miss (expired)", key=key, expires_at=entry.expires_at)
                return default

            try:
                value = orjson.loads(entry.value)
            except orjson.JSONDecodeError as e:
                error = DeserializationError(
                    "Cache value is not valid JSON", {"key": key, "error": str(e)}
                )
                return self._corrupt_miss(error, default)

            self._stats.hits += 1
            logger.info("Cache hit", key=key, ttl_remaining=entry.ttl_remaining(now))
            return value

    def _corrupt_miss(self, error: DeserializationError, default: Any) -> Any:
        """Count and log an unreadable row; the row is left for expiry."""
        self._stats.corrupt_reads += 1
        self._stats.misses += 1
        logger.warning(f"Corrupt cache entry treated as miss: {error}")
        return default

    async def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key.
            value: JSON-representable value.
            ttl_seconds: Lifetime in seconds. None uses CACHE_DEFAULT_TTL_SECONDS;
                zero or negative stores the entry already expired.

        Raises:
            SerializationError: If the value cannot be encoded. Nothing is written.
            StoreUnavailableError: If the store cannot be written.
        """
        if self._disabled:
            return

        with log_context(cache=self.name, operation="put"):
            try:
                payload = orjson.dumps(value).decode("utf-8")
            except orjson.JSONEncodeError as e:
                raise SerializationError(
                    f"Cannot serialize cache value: {e}",
                    {"key": key, "value_type": type(value).__name__},
                ) from e

            if ttl_seconds is None:
                ttl_seconds = self.settings.CACHE_DEFAULT_TTL_SECONDS

            now = self._now()
            expires_at = clamp_timestamp(now + int(ttl_seconds))
            await self._store.upsert(key, payload, expires_at)

            self._stats.puts += 1
            logger.info("Cache put", key=key, now=now, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        """Delete a key. Deleting an absent key is a no-op.

        Raises:
            StoreUnavailableError: If the store cannot be written.
        """
        if self._disabled:
            return

        with log_context(cache=self.name, operation="delete"):
            removed = await self._store.delete_by_key(key)
            self._stats.deletes += 1
            logger.info("Cache delete", key=key, removed=removed)

    async def exists(self, key: str) -> bool:
        """Check whether an unexpired entry exists, without decoding it."""
        if self._disabled:
            return False

        try:
            entry = await self._store.select_by_key(key)
        except DeserializationError:
            return False
        return entry is not None and not entry.is_expired(self._now())

    async def sweep(self) -> int:
        """Run one expiry pass now.

        Returns:
            Number of expired rows removed.
        """
        if self._disabled:
            return 0

        with log_context(cache=self.name, operation="sweep"):
            now = self._now()
            deleted = await self._store.delete_expired(now)
            self._stats.sweeps += 1
            self._stats.expired_reclaimed += deleted
            if deleted:
                logger.info("Cache sweep complete", expired=deleted, threshold=now)
            else:
                logger.debug("Cache sweep complete", expired=0, threshold=now)
            return deleted

    async def clear(self) -> int:
        """Delete every entry, expired or not."""
        if self._disabled:
            return 0

        with log_context(cache=self.name, operation="clear"):
            deleted = await self._store.clear()
            logger.info("Cache cleared", removed=deleted)
            return deleted


async def open_cache(
    settings: Settings,
    store: Store | None = None,
    clock: Clock = time.time,
) -> KVCache:
    """Construct and start a cache engine.

    The caller owns the result and must ``await cache.close()`` at shutdown.

    Raises:
        StoreUnavailableError: If the schema cannot be created.
    """
    cache = KVCache(settings, store=store, clock=clock)
    await cache.start()
    return cache
