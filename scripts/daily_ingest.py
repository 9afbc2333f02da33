"""
Daily Ingestion - Duty Pharmacies (Gardes)
==========================================
This script:
1. Fetches the duty page for the configured city
2. Extracts the pharmacies (structured markup first, text heuristics last)
3. Replaces the stored set in one transaction
4. Marks today's duty pharmacies as open
5. Clears the API cache so the new set is served right away

Schedule: every day at midnight (cron / Windows Task Scheduler), when the
in-process scheduler of the API is disabled (SCHEDULER_ENABLED=false).

Usage:
    python scripts/daily_ingest.py                 # full scrape
    python scripts/daily_ingest.py --refresh-only  # recompute is_open only
    python scripts/daily_ingest.py --init-db       # create the table first
"""
import logging
import os
import sys
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask  # noqa: E402

from pharmacy_guard import build_ingestion_service, build_store  # noqa: E402
from pharmacy_guard.cache import clear_pharmacy_cache, init_cache  # noqa: E402
from pharmacy_guard.config import PharmacyConfig  # noqa: E402
from pharmacy_guard.normalizer import current_day  # noqa: E402

DAY_LABELS = ['Dimanche', 'Lundi', 'Mardi', 'Mercredi', 'Jeudi', 'Vendredi', 'Samedi']


def clear_api_cache(config):
    """Drop the API's cached lists (shared Redis) so it serves the new set."""
    app = Flask(__name__)
    init_cache(
        app,
        redis_url=config.REDIS_URL,
        cache_type=config.CACHE_TYPE,
        timeout=config.CACHE_DEFAULT_TIMEOUT,
    )
    with app.app_context():
        clear_pharmacy_cache()


def main(argv=None, config=PharmacyConfig):
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=config.LOG_LEVEL)

    print("=" * 60)
    print("DAILY INGESTION - Duty Pharmacies")
    print("=" * 60)
    print(f"Execution Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Source: {config.SCRAPER_URL}")
    print(f"Reference day: {DAY_LABELS[current_day()]}")
    print()

    store = build_store(config)
    if '--init-db' in argv and hasattr(store, 'ensure_tables_exist'):
        store.ensure_tables_exist()
        print("Pharmacy table ensured")

    service = build_ingestion_service(config, store)

    if '--refresh-only' in argv:
        count = service.refresh_duty_status()
        clear_api_cache(config)
        print(f"Updated open status for {count} pharmacies")
        return 0

    result = service.run()

    print("\n" + "=" * 60)
    if result.success:
        clear_api_cache(config)
        on_duty = len(store.get_open())
        print(f"SUMMARY: {result.count} pharmacies saved, {on_duty} on duty today")
    else:
        print(f"FAILED: {result.message}")
    print("=" * 60)

    return 0 if result.success else 1


if __name__ == '__main__':
    sys.exit(main())
