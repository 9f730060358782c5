"""Scheduler pour le cycle de surveillance de disponibilité."""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

JOB_ID = "media_monitoring"


class MonitoringScheduler:
    """Lance `cycle` à intervalle régulier, un seul cycle à la fois."""

    def __init__(
        self,
        cycle: Callable[[], Awaitable[object]],
        interval_seconds: int = 300,
        run_on_start: bool = True,
    ):
        self.cycle = cycle
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._lock = asyncio.Lock()
        self.last_run_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    @property
    def is_cycle_in_progress(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        """Démarre le timer; sans effet s'il tourne déjà."""
        if self._scheduler is not None:
            logger.warning("Monitoring scheduler already running")
            return

        job_options = {}
        if self.run_on_start:
            # next_run_time=None mettrait le job en pause, on ne le passe que si besoin
            job_options["next_run_time"] = datetime.now()

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.trigger,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_options,
        )
        self._scheduler.start()
        logger.info(f"Monitoring scheduler started (interval: {self.interval_seconds}s)")

    def stop(self) -> None:
        """Arrête le timer; un cycle en cours va jusqu'au bout."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Monitoring scheduler stopped")

    async def trigger(self) -> bool:
        """Exécute un cycle; retourne False s'il a été sauté car un autre tourne."""
        if self._lock.locked():
            logger.info("Monitoring cycle already in progress, skipping")
            return False

        async with self._lock:
            logger.info("Running monitoring cycle")
            try:
                await self.cycle()
            except Exception as e:
                logger.error(f"Error in monitoring cycle: {str(e)}")
            finally:
                self.last_run_at = datetime.utcnow()
        return True
