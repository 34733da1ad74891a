"""
Background expiry sweeper.

Runs a sweep callable on a fixed period in its own asyncio task. A failed
sweep is logged and counted; the schedule keeps going until stop().
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from mcache.logging import get_logger
from mcache.types import CacheStats

logger = get_logger(__name__)

SweepFn = Callable[[], Awaitable[int]]


class ExpirySweeper:
    """Periodic task that physically removes expired cache rows."""

    def __init__(
        self,
        sweep: SweepFn,
        interval_seconds: float,
        stats: CacheStats | None = None,
    ) -> None:
        """Initialize the sweeper.

        Args:
            sweep: Coroutine function performing one pass; returns rows removed.
            interval_seconds: Delay between passes.
            stats: Optional counters to record failures in.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._sweep = sweep
        self.interval_seconds = interval_seconds
        self._stats = stats
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Whether the sweep task is scheduled."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="mcache-expiry-sweeper")
        logger.info("Expiry sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # Only the sweep task's cancellation is expected here
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("Expiry sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self._sweep()
            except Exception as e:
                if self._stats is not None:
                    self._stats.sweep_failures += 1
                logger.warning(
                    "Expiry sweep failed, will retry next interval",
                    error=str(e),
                    exc_info=True,
                )
