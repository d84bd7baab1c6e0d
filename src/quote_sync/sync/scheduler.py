"""Periodic and on-demand triggering of sync cycles."""

from __future__ import annotations

import asyncio
import logging

from quote_sync.sync.engine import SyncEngine, SyncResult

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs ``SyncEngine.run_cycle`` every ``interval`` seconds.

    Each tick is independent: there is no backoff after failures, and an
    unexpected error in one tick is logged without stopping the loop.
    Manual triggers go through the same engine and are therefore subject
    to the same re-entrancy guard.

    Usage::

        async with SyncScheduler(engine, interval=30):
            ...

    Args:
        engine: The engine whose cycles are scheduled.
        interval: Seconds between ticks.
        run_on_start: Run a cycle immediately instead of waiting one interval.
    """

    def __init__(
        self,
        engine: SyncEngine,
        interval: float,
        *,
        run_on_start: bool = False,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        self._engine = engine
        self._interval = interval
        self._run_on_start = run_on_start
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        """Start the periodic loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="quote-sync-scheduler")
        logger.info("Sync scheduler started (every %.1fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the periodic loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Sync scheduler stopped")

    async def trigger(self) -> SyncResult:
        """Run a cycle now, outside the periodic schedule."""
        return await self._engine.run_cycle()

    async def __aenter__(self) -> SyncScheduler:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    async def _loop(self) -> None:
        if self._run_on_start:
            await self._tick()
        while True:
            await asyncio.sleep(self._interval)
            await self._tick()

    async def _tick(self) -> None:
        try:
            result = await self._engine.run_cycle()
        except Exception:
            logger.exception("Scheduled sync cycle failed")
            return
        logger.debug("Scheduled sync finished: %s", result.outcome)
