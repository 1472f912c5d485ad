"""SweepScheduler — APScheduler lifecycle for periodic background sweeps."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cognition.config import settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Runs named coroutine functions at fixed intervals on the event loop.

    Sweeps added before ``start()`` are kept and begin when the scheduler
    starts.

    Args:
        timezone: IANA timezone string (default from settings).
    """

    def __init__(self, timezone: str | None = None) -> None:
        self._timezone = timezone or settings.scheduler_timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def sweep_names(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> None:
        """Start the scheduler. Must be called with a running event loop."""
        if self._running:
            return
        self._scheduler.start()
        self._running = True
        logger.info(
            "Sweep scheduler started with %d sweep(s) (tz=%s)",
            len(self.sweep_names),
            self._timezone,
        )

    def stop(self) -> None:
        """Shut down the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Sweep scheduler stopped")

    # -- Sweep management ------------------------------------------------------

    def add_sweep(
        self,
        name: str,
        func: Callable[[], Awaitable[object]],
        seconds: float,
    ) -> None:
        """Register (or replace) a sweep that runs every *seconds*."""
        self._scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds, timezone=self._timezone),
            id=name,
            name=name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Registered sweep '%s' every %ss", name, seconds)

    def remove_sweep(self, name: str) -> bool:
        """Remove a sweep by name. Returns False if it was not registered."""
        try:
            self._scheduler.remove_job(name)
        except JobLookupError:
            logger.debug("Sweep %s not found in scheduler", name)
            return False
        return True
