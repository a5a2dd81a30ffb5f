"""
Revaluation Scheduler

Periodic tick that revalues the current portfolio from the price feed. Each
tick goes through ``PortfolioManager.refresh_prices`` and therefore through
the manager's lock, never around it.
"""

import logging
import threading
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

JOB_ID = "revaluation"


class RevaluationScheduler:
    """Background job that issues a refresh command every ``interval`` seconds."""

    def __init__(self, manager, interval: float = None):
        """
        Initialize the scheduler.

        Args:
            manager: PortfolioManager to tick
            interval: Seconds between ticks (defaults to the manager's config)
        """
        self.manager = manager
        self.interval = interval if interval is not None else manager.config.refresh_interval_seconds
        if self.interval <= 0:
            raise ValueError(f"Interval must be positive, got {self.interval}")
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        scheduler = self._scheduler
        return scheduler is not None and scheduler.running

    def start(self):
        with self._lock:
            if self.is_running:
                return
            scheduler = BackgroundScheduler(daemon=True)
            scheduler.add_job(
                self._tick,
                trigger=IntervalTrigger(seconds=self.interval),
                id=JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            scheduler.start()
            self._scheduler = scheduler
        logger.info(f"Revaluation scheduler started, interval {self.interval}s")

    def stop(self):
        """Stop ticking and wait for a tick in progress to finish."""
        with self._lock:
            if self._scheduler is None:
                return
            self._scheduler.shutdown(wait=True)
            self._scheduler = None
        logger.info("Revaluation scheduler stopped")

    def _tick(self):
        try:
            self.manager.refresh_prices()
            self.tick_count += 1
        except Exception:
            logger.exception("Scheduled revaluation failed")

    def __enter__(self) -> 'RevaluationScheduler':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
