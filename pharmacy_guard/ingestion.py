"""
Ingestion Orchestrator
======================
fetch -> extract -> build records -> replace the store's full set.

Both the scheduler and the manual scrape endpoint call run(). Only one run
may be in progress: a second caller is rejected right away rather than
queued, and gets an unsuccessful IngestionResult.

run() never raises. Every failure is logged and reported through
IngestionResult(success=False, ...).
"""
import logging
import threading
from datetime import datetime

from .duty import DEFAULT_ADDRESS, build_records, refresh_duty_status
from .errors import IngestionInProgress, NoRecordsExtracted, PharmacyError
from .models import IngestionResult
from .normalizer import current_day

logger = logging.getLogger(__name__)


class IngestionService:

    def __init__(self, store, fetcher, chain, locator, clock=datetime.now,
                 default_address=DEFAULT_ADDRESS):
        self.store = store
        self.fetcher = fetcher
        self.chain = chain
        self.locator = locator
        self.clock = clock
        self.default_address = default_address
        self._run_lock = threading.Lock()

    @property
    def running(self):
        return self._run_lock.locked()

    def run(self, reference_day=None):
        """
        Scrape the source and replace the stored set.

        Args:
            reference_day: Day index (0 = Sunday) used for is_open.
                           Defaults to today.

        Returns:
            IngestionResult
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("[Scraper] Ingestion already in progress, rejecting new run")
            return IngestionResult(False, 0, 'Ingestion already in progress',
                                   error_code=IngestionInProgress.error_code)

        try:
            return self._run(reference_day)
        except PharmacyError as e:
            logger.error("[Scraper] Ingestion failed: %s", e)
            return IngestionResult(False, 0, str(e), error_code=e.error_code)
        except Exception as e:
            logger.exception("[Scraper] Unexpected error during ingestion")
            return IngestionResult(False, 0, str(e) or 'Unknown error occurred')
        finally:
            self._run_lock.release()

    def _run(self, reference_day):
        logger.info("[Scraper] Starting scrape and save process...")
        now = self.clock()
        if reference_day is None:
            reference_day = current_day(now)

        document = self.fetcher.fetch()
        drafts = self.chain.extract(document)

        if not drafts:
            logger.warning("[Scraper] No pharmacies found during scraping, store left untouched")
            return IngestionResult(False, 0, 'No pharmacies found during scraping',
                                   error_code=NoRecordsExtracted.error_code)

        records = build_records(drafts, reference_day, self.locator, now=now,
                                default_address=self.default_address)
        self.store.replace_all(records)

        logger.info("[Scraper] Saved %d pharmacies (%d on duty)",
                    len(records), sum(1 for r in records if r.is_open))
        return IngestionResult(True, len(records),
                               f'Successfully scraped and saved {len(records)} pharmacies')

    def refresh_duty_status(self, reference_day=None):
        """
        Recompute is_open for the stored set without fetching the page.
        Waits for a running ingestion to finish. Returns the record count.
        """
        now = self.clock()
        if reference_day is None:
            reference_day = current_day(now)

        with self._run_lock:
            return refresh_duty_status(self.store, reference_day, now=now)
