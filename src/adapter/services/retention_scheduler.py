"""Retention Sweep Scheduler.

APScheduler-based async scheduler that finalizes expired account deletions.
Runs once shortly after start, then on a fixed interval.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from libs.result import Result
from src.app.use_cases.accounts import RetentionSweepResponse

logger = logging.getLogger(__name__)

SweepRunner = Callable[[], Awaitable[Result[RetentionSweepResponse]]]


class RetentionSweepScheduler:
    """Single-instance scheduler for the retention sweep.

    Scheduled ticks and on-demand runs share one lock, so at most one sweep
    runs at a time in this process.
    """

    def __init__(
        self,
        run_sweep: SweepRunner,
        interval_hours: float = 24,
        initial_delay_seconds: float = 60,
        enabled: bool = True,
    ):
        """Initialize scheduler.

        Args:
            run_sweep: Coroutine factory running one sweep pass.
            interval_hours: Hours between scheduled sweeps.
            initial_delay_seconds: Delay before the first sweep after start.
            enabled: Whether scheduled sweeps run at all.
        """
        self.run_sweep = run_sweep
        self.interval_hours = interval_hours
        self.initial_delay_seconds = initial_delay_seconds
        self.enabled = enabled

        self._scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self._lock = asyncio.Lock()

    @property
    def sweep_in_progress(self) -> bool:
        return self._lock.locked()

    async def start(self) -> None:
        """Start the scheduler."""
        if not self.enabled:
            logger.info("RetentionSweepScheduler is disabled, skipping start")
            return

        if self._is_running:
            logger.warning("RetentionSweepScheduler already running")
            return

        scheduler = AsyncIOScheduler()
        self._scheduler = scheduler

        scheduler.add_job(
            self._tick,
            IntervalTrigger(hours=self.interval_hours),
            next_run_time=datetime.now() + timedelta(seconds=self.initial_delay_seconds),
            id="retention_sweep",
            replace_existing=True,
            name="Expired Account Deletion Sweep",
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        self._is_running = True
        logger.info(
            f"RetentionSweepScheduler started (every {self.interval_hours}h, "
            f"first run in {self.initial_delay_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler and self._is_running:
            self._scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("RetentionSweepScheduler stopped")

    async def run_now(self) -> Optional[Result[RetentionSweepResponse]]:
        """Run one sweep immediately; returns None if a sweep is already running."""
        if self._lock.locked():
            logger.info("Retention sweep already in progress, skipping")
            return None
        async with self._lock:
            return await self.run_sweep()

    async def _tick(self) -> None:
        logger.info("Starting scheduled retention sweep")
        try:
            result = await self.run_now()
            if result is not None and result.is_err():
                logger.error(f"Scheduled retention sweep failed: {result.error.message} ({result.error.reason})")
        except Exception as e:
            logger.error(f"Error running retention sweep: {e}", exc_info=True)
