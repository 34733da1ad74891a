"""
Core types for the cache.

- CacheEntry: frozen row as persisted by a store
- CacheStats: mutable in-process counters
- Helpers for Unix timestamps
"""

from __future__ import annotations

import math
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable

Clock = Callable[[], float]

# SQLite INTEGER range
MAX_TIMESTAMP = 2**63 - 1
MIN_TIMESTAMP = -(2**63)


def current_timestamp(clock: Clock = time.time) -> int:
    """Get the current Unix time in whole seconds (floored)."""
    return math.floor(clock())


def clamp_timestamp(value: int) -> int:
    """Clamp a timestamp into the range SQLite can store."""
    return max(MIN_TIMESTAMP, min(MAX_TIMESTAMP, value))


@dataclass(frozen=True)
class CacheEntry:
    """A single cache row.

    Attributes:
        key: Unique cache key.
        value: JSON text of the caller's value.
        expires_at: Unix timestamp (seconds) at or after which the entry is expired.
    """

    key: str
    value: str
    expires_at: int

    def is_expired(self, now: int) -> bool:
        """Whether the entry is logically expired at ``now``."""
        return self.expires_at <= now

    def ttl_remaining(self, now: int) -> int:
        """Seconds left before expiry, never negative."""
        return max(0, self.expires_at - now)


@dataclass
class CacheStats:
    """Counters for cache activity since the engine was created."""

    hits: int = 0
    misses: int = 0
    puts: int = 0
    deletes: int = 0
    corrupt_reads: int = 0
    sweeps: int = 0
    sweep_failures: int = 0
    expired_reclaimed: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that were hits (0.0 with no lookups)."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, including the derived hit rate."""
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        return data
