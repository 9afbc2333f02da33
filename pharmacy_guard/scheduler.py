"""
Ingestion Scheduler
===================
APScheduler background job running the ingestion on a cron schedule
(SCRAPER_CRON_SCHEDULE, default every day at midnight).

When a scheduled scrape fails, the stored set is kept and only its
on-duty flags are recomputed for the new day.

For an external cron / Task Scheduler instead, see scripts/daily_ingest.py.
"""
import logging
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .cache import clear_pharmacy_cache

logger = logging.getLogger(__name__)

JOB_ID = 'pharmacy_ingestion'


class IngestionScheduler:

    def __init__(self, app, service, cron_schedule='0 0 * * *'):
        self.app = app
        self.service = service
        self.cron_schedule = cron_schedule
        self._scheduler = None

    @property
    def running(self):
        return self._scheduler is not None and self._scheduler.running

    def start(self, initial_scrape=False):
        """
        Start the background scheduler.

        Args:
            initial_scrape: Also schedule run_initial_if_empty() a couple of
                            seconds after startup.
        """
        if self.running:
            logger.warning("[Scheduler] Already running")
            return

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            self.run_job,
            CronTrigger.from_crontab(self.cron_schedule),
            id=JOB_ID,
            name='Duty pharmacy ingestion',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if initial_scrape:
            scheduler.add_job(
                self.run_initial_if_empty,
                'date',
                run_date=datetime.now() + timedelta(seconds=2),
                id=f'{JOB_ID}_initial',
            )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("[Scheduler] Started with cron: %s", self.cron_schedule)

    def stop(self):
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("[Scheduler] Stopped")
        self._scheduler = None

    def run_job(self):
        """Scheduled tick: ingest, or at least refresh duty flags."""
        logger.info("[Scheduler] Running scheduled scrape job...")
        with self.app.app_context():
            result = self.service.run()
            if result.success:
                logger.info("[Scheduler] Scheduled scrape completed: %s", result.message)
                clear_pharmacy_cache()
                return result

            logger.error("[Scheduler] Scheduled scrape failed: %s", result.message)
            try:
                self.service.refresh_duty_status()
                clear_pharmacy_cache()
            except Exception:
                logger.exception("[Scheduler] Duty status refresh failed")
            return result

    def run_initial_if_empty(self):
        """First ingestion at startup when the store holds nothing yet."""
        try:
            count = self.service.store.count()
        except Exception:
            logger.exception("[Scheduler] Error checking initial data")
            return None

        if count:
            logger.info("[Scheduler] Found %d pharmacies in store", count)
            return None

        logger.info("[Scheduler] No data found, running initial scrape...")
        with self.app.app_context():
            result = self.service.run()
            if result.success:
                clear_pharmacy_cache()
        return result
