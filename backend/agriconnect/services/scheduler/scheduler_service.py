"""
Scheduler service for periodic market price syncs using APScheduler.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo
from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from agriconnect.core.config import (
    SCHEDULER_TIMEZONE,
    PRICE_SYNC_CRON_HOURS,
    INITIAL_SYNC_DELAY_SECONDS,
)
from agriconnect.services.prices.price_models import SyncStats
from agriconnect.services.prices.sync_service import MarketPriceSyncService

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "market_price_sync"
INITIAL_SYNC_JOB_ID = "market_price_sync_initial"


class PriceSyncScheduler:
    """Runs market price syncs every few hours plus once shortly after startup."""

    def __init__(
        self,
        sync_service: MarketPriceSyncService,
        timezone: str = SCHEDULER_TIMEZONE,
        cron_hours: str = PRICE_SYNC_CRON_HOURS,
        initial_delay_seconds: float = INITIAL_SYNC_DELAY_SECONDS,
    ):
        self.sync_service = sync_service
        self.timezone = timezone
        self.cron_hours = cron_hours
        self.initial_delay_seconds = initial_delay_seconds
        self._scheduler: Optional[BackgroundScheduler] = None
        self._sync_job: Optional[Job] = None
        self._initial_job: Optional[Job] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self):
        """Start the scheduler. No-op (with a warning) if already running."""
        with self._lock:
            if self.running:
                logger.warning("Scheduler already running")
                return

            scheduler = BackgroundScheduler(timezone=self.timezone)
            self._sync_job = scheduler.add_job(
                self._run_scheduled_sync,
                trigger=CronTrigger(hour=self.cron_hours, minute=0, timezone=self.timezone),
                id=SYNC_JOB_ID,
                replace_existing=True,
                max_instances=1,  # Prevent overlapping executions
                coalesce=True,
            )
            run_date = datetime.now(ZoneInfo(self.timezone)) + timedelta(seconds=self.initial_delay_seconds)
            self._initial_job = scheduler.add_job(
                self._run_initial_sync,
                trigger=DateTrigger(run_date=run_date, timezone=self.timezone),
                id=INITIAL_SYNC_JOB_ID,
                replace_existing=True,
            )
            scheduler.start()
            self._scheduler = scheduler

        logger.info(
            f"✅ Scheduler started - market prices sync at hour={self.cron_hours} minute=0 ({self.timezone}), "
            f"initial sync in {self.initial_delay_seconds}s"
        )

    def stop(self):
        """Cancel sync jobs and stop the scheduler. Safe to call repeatedly."""
        with self._lock:
            scheduler = self._scheduler
            for job in (self._sync_job, self._initial_job):
                if job is None:
                    continue
                try:
                    job.remove()
                except JobLookupError:
                    pass  # One-shot job already ran
            self._sync_job = None
            self._initial_job = None
            self._scheduler = None

            if scheduler is not None and scheduler.running:
                scheduler.shutdown(wait=False)
                logger.info("Scheduler stopped")

    def trigger_sync(self) -> SyncStats:
        """Run a sync now, regardless of scheduler state."""
        logger.info("Manual market price sync triggered")
        return self.sync_service.sync_market_prices()

    def _run_guarded(self, label: str):
        try:
            stats = self.sync_service.sync_market_prices()
            if stats.skipped:
                logger.info(f"{label} skipped: another sync is in progress")
            elif stats.has_errors:
                logger.warning(f"{label} finished with {len(stats.errors)} errors: {stats.errors}")
        except Exception as e:
            logger.error(f"{label} failed: {e}", exc_info=True)

    def _run_scheduled_sync(self):
        logger.info("Scheduled market price sync triggered")
        self._run_guarded("Scheduled sync")

    def _run_initial_sync(self):
        logger.info("Running initial market price sync")
        self._run_guarded("Initial sync")

    def get_status(self) -> dict:
        next_run = None
        if self.running:
            job = self._scheduler.get_job(SYNC_JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()
        return {
            "running": self.running,
            "next_run": next_run,
            "schedule": f"cron hour={self.cron_hours} minute=0 ({self.timezone})",
        }
