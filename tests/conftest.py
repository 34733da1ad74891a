"""
Pytest configuration and fixtures for cache tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest

from mcache.cache import InMemoryStore, KVCache, SQLiteStore
from mcache.config import Settings, clear_settings_cache


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_settings(temp_dir: Path, **overrides: object) -> Settings:
    """Build settings isolated from the environment and .env files."""
    values: dict[str, object] = {
        "CACHE_DB_PATH": temp_dir / "cache" / "mcache.db",
        # Long enough that the background sweeper never fires unless a test asks
        "CACHE_SWEEP_INTERVAL_SECONDS": 3600.0,
        "LOG_LEVEL": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    return make_settings(temp_dir)


@pytest.fixture
def sqlite_store(settings: Settings) -> SQLiteStore:
    return SQLiteStore(settings.CACHE_DB_PATH)


@pytest.fixture
async def cache(
    settings: Settings, sqlite_store: SQLiteStore, clock: FakeClock
) -> AsyncGenerator[KVCache, None]:
    """Started cache on a SQLite store with a fake clock."""
    engine = KVCache(settings, store=sqlite_store, clock=clock)
    await engine.start()
    yield engine
    await engine.close()


@pytest.fixture
async def memory_cache(
    settings: Settings, clock: FakeClock
) -> AsyncGenerator[KVCache, None]:
    """Started cache on an in-memory store with a fake clock."""
    engine = KVCache(settings, store=InMemoryStore(), clock=clock)
    await engine.start()
    yield engine
    await engine.close()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
