"""Scheduler service - fires the daily retention tick.

The scheduler only emits the tick; the sweep itself is stateless and can be
run by any process at any time.
"""
import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import Settings

logger = logging.getLogger(__name__)

# Late ticks within this window still run (e.g. after a short restart)
MISFIRE_GRACE_SECONDS = 3600


class SchedulerService:
    """Owns the APScheduler instance for the retention tick."""

    def __init__(self, settings: Settings, on_tick: Callable[[], Awaitable[None]]):
        self.settings = settings
        self.on_tick = on_tick
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def build_trigger(self) -> CronTrigger:
        return CronTrigger(
            hour=self.settings.sweep_hour,
            minute=self.settings.sweep_minute,
            timezone=self.settings.sweep_timezone,
        )

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._tick,
            trigger=self.build_trigger(),
            id="cleanup_old_notifications",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )

        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (daily cleanup at {self.settings.sweep_hour:02d}:"
            f"{self.settings.sweep_minute:02d} {self.settings.sweep_timezone})"
        )

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def _tick(self):
        try:
            await self.on_tick()
        except Exception as e:
            logger.error(f"Scheduled cleanup failed: {e}")
