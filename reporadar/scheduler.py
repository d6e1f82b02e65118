"""Scheduler — drives sync cycles on a timer and on manual refresh."""

from __future__ import annotations

import asyncio

import structlog

from reporadar.core.config import Settings
from reporadar.engines.sync.engine import SyncEngine
from reporadar.engines.sync.models import SyncResult

logger = structlog.get_logger(__name__)


class SyncLoop:
    """Sync scheduling loop with trigger/timeout wake mechanism.

    Refresh requests that arrive mid-cycle are absorbed by the engine's
    busy flag, or picked up by the next wake if the trigger is still set.
    """

    name = "sync"

    def __init__(self, engine: SyncEngine, interval: float) -> None:
        self.engine = engine
        self.interval = interval
        self.trigger = asyncio.Event()
        self.last_result: SyncResult | None = None

    def request_refresh(self) -> None:
        """Wake the loop now instead of at the next interval."""
        self.trigger.set()

    async def run_once(self) -> SyncResult:
        result = await self.engine.run_cycle()
        self.last_result = result
        logger.info(
            "sync.cycle",
            updated=result.updated_count,
            failed=result.failed_count,
            rate_limited=result.rate_limited,
            skipped=result.skipped,
            notifications=len(result.notifications),
        )
        return result

    async def loop(self) -> None:
        """Run the engine in an infinite loop, waking on trigger or timeout."""
        while True:
            try:
                await asyncio.wait_for(self.trigger.wait(), timeout=self.interval)
                self.trigger.clear()
            except asyncio.TimeoutError:
                pass

            try:
                await self.run_once()
            except Exception:
                logger.exception("sync.error")


class Scheduler:
    """Manages the lifecycle of the sync loop task."""

    def __init__(self, sync_loop: SyncLoop) -> None:
        self._loop = sync_loop
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def request_refresh(self) -> None:
        self._loop.request_refresh()

    async def start(self) -> None:
        """Start the loop as an asyncio task and kick off the first cycle."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop.loop(), name=f"engine-{self._loop.name}")
        self._loop.trigger.set()
        logger.info("scheduler.started", interval=self._loop.interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("scheduler.stopped")


def create_scheduler(engine: SyncEngine, settings: Settings) -> Scheduler:
    """Build a Scheduler polling every ``settings.refresh_interval`` seconds."""
    return Scheduler(SyncLoop(engine, settings.refresh_interval))
