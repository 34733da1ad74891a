"""
SQLite store for cache rows.

Every operation opens its own aiosqlite connection and closes it before
returning, so no handle is held between calls. Driver errors are wrapped
in StoreUnavailableError.
"""

from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from mcache.cache.base import Store
from mcache.exceptions import DeserializationError, StoreUnavailableError
from mcache.logging import get_logger
from mcache.types import CacheEntry

logger = get_logger(__name__)


class SQLiteStore(Store):
    """Cache rows in a single SQLite table.

    Schema: ``cache(key TEXT PRIMARY KEY, value TEXT, expiration INTEGER)``.
    """

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        """Initialize the store.

        Args:
            db_path: Path of the SQLite database file.
            timeout: Seconds a connection waits on a locked database.
        """
        self.db_path = Path(db_path)
        self.timeout = timeout

    @asynccontextmanager
    async def _connect(
        self, operation: str, key: str | None = None
    ) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection for one operation and always close it."""
        try:
            async with aiosqlite.connect(self.db_path, timeout=self.timeout) as db:
                yield db
        except (sqlite3.Error, OSError) as e:
            context: dict[str, Any] = {"operation": operation, "db_path": str(self.db_path)}
            if key is not None:
                context["key"] = key
            raise StoreUnavailableError(f"Cache store {operation} failed: {e}", context) from e

    async def init_schema(self) -> None:
        """Create the database file, table and expiration index if missing."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                f"Cannot create cache directory: {e}",
                {"operation": "init_schema", "db_path": str(self.db_path)},
            ) from e

        async with self._connect("init_schema") as db:
            # WAL lets readers proceed while a writer holds the lock
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("""
                CREATE TABLE IF NOT EXISTS cache (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expiration INTEGER NOT NULL
                )
            """)
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_cache_expiration ON cache(expiration)"
            )
            await db.commit()

        logger.debug("Cache schema ready", db_path=str(self.db_path))

    async def upsert(self, key: str, value: str, expires_at: int) -> None:
        async with self._connect("upsert", key) as db:
            await db.execute(
                """
                INSERT INTO cache (key, value, expiration) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    expiration = excluded.expiration
                """,
                (key, value, expires_at),
            )
            await db.commit()

    async def select_by_key(self, key: str) -> CacheEntry | None:
        """Fetch the row for a key.

        Raises:
            DeserializationError: If the stored value is not UTF-8 text or the
                expiration is not an integer.
        """
        # Value is read as bytes so invalid UTF-8 surfaces here, not in the driver
        async with self._connect("select", key) as db:
            async with db.execute(
                "SELECT CAST(value AS BLOB), expiration FROM cache WHERE key = ?",
                (key,),
            ) as cursor:
                row = await cursor.fetchone()

        if not row:
            return None

        raw_value, expiration = row
        if type(expiration) is not int:
            raise DeserializationError(
                "Cache expiration is not an integer",
                {"key": key, "expiration": expiration},
            )
        try:
            value = bytes(raw_value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(
                "Cache value is not valid UTF-8", {"key": key, "error": str(e)}
            ) from e
        return CacheEntry(key=key, value=value, expires_at=expiration)

    async def delete_expired(self, threshold: int) -> int:
        """Delete all rows with ``expiration <= threshold`` in one statement.

        Rows whose expiration is not an integer can never be read back and are
        removed too.

        Args:
            threshold: Unix timestamp in seconds.

        Returns:
            Number of rows deleted.
        """
        async with self._connect("delete_expired") as db:
            cursor = await db.execute(
                "DELETE FROM cache WHERE expiration <= ? OR typeof(expiration) != 'integer'",
                (threshold,),
            )
            deleted = cursor.rowcount
            await cursor.close()
            await db.commit()
        return max(deleted, 0)

    async def delete_by_key(self, key: str) -> bool:
        async with self._connect("delete", key) as db:
            cursor = await db.execute("DELETE FROM cache WHERE key = ?", (key,))
            deleted = cursor.rowcount
            await cursor.close()
            await db.commit()
        return deleted > 0

    async def count(self) -> int:
        """Get total count of rows."""
        async with self._connect("count") as db:
            async with db.execute("SELECT COUNT(*) FROM cache") as cursor:
                row = await cursor.fetchone()
        return row[0] if row else 0

    async def clear(self) -> int:
        async with self._connect("clear") as db:
            cursor = await db.execute("DELETE FROM cache")
            deleted = cursor.rowcount
            await cursor.close()
            await db.commit()
        return max(deleted, 0)
