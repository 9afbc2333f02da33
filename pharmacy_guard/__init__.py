"""
Pharmacy Guard - Flask Blueprint Package
========================================
Duty pharmacy ("pharmacie de garde") directory for one city: scrapes the
duty page, keeps the current set in a store, answers "who is on duty" and
"which on-duty pharmacy is nearest".

Standalone usage:
    from pharmacy_guard import create_app
    app = create_app()
    app.run()

Integration into a parent app:
    from pharmacy_guard import init_pharmacy_module, create_pharmacy_blueprint

    init_pharmacy_module(parent_app, config=MyPharmacyConfig)
    parent_app.register_blueprint(create_pharmacy_blueprint(), url_prefix='/pharmacy/api')
"""
import logging
import os

from flask import Flask

from .config import PharmacyConfig

logger = logging.getLogger(__name__)

__version__ = '1.0.0'


class PharmacyModule:
    """Services owned by one Flask app (app.extensions['pharmacy_guard'])."""

    def __init__(self, config, store, service, scheduler=None):
        self.config = config
        self.store = store
        self.service = service
        self.scheduler = scheduler


def build_store(config, pool=None):
    """
    Store selected by config.STORE_BACKEND.

    Args:
        config: PharmacyConfig (class or instance).
        pool: Optional psycopg2 pool shared with a parent app.
    """
    if config.STORE_BACKEND == 'memory':
        from .store import InMemoryPharmacyStore
        return InMemoryPharmacyStore()

    if config.STORE_BACKEND == 'postgres':
        from .database import PostgresPharmacyStore
        return PostgresPharmacyStore.from_config(config, pool=pool)

    raise ValueError(f"Unknown STORE_BACKEND: {config.STORE_BACKEND!r}")


def build_ingestion_service(config, store):
    from .extraction import ExtractionChain
    from .fetcher import SourceFetcher
    from .ingestion import IngestionService
    from .locator import PlaceholderLocator

    return IngestionService(
        store=store,
        fetcher=SourceFetcher.from_config(config),
        chain=ExtractionChain.default(config),
        locator=PlaceholderLocator.from_config(config),
        default_address=config.DEFAULT_ADDRESS,
    )


def init_pharmacy_module(app, config=None, store=None, service=None, pool=None):
    """
    Wire the pharmacy services into `app`.
    Call this BEFORE registering the blueprint when integrating into a parent app.

    Args:
        app: Flask application.
        config: A PharmacyConfig class/instance, or None to use defaults.
        store: A PharmacyStore to use instead of building one from config.
        service: An IngestionService to use instead of building one.
        pool: Optional psycopg2 pool for the PostgreSQL store.

    Returns:
        PharmacyModule: The services registered on the app.
    """
    config = config or PharmacyConfig
    store = store if store is not None else build_store(config, pool=pool)
    service = service or build_ingestion_service(config, store)

    from .cache import init_cache
    init_cache(
        app,
        redis_url=config.REDIS_URL,
        cache_type=config.CACHE_TYPE,
        timeout=config.CACHE_DEFAULT_TIMEOUT,
    )

    module = PharmacyModule(config, store, service)
    app.extensions['pharmacy_guard'] = module
    return module


def create_pharmacy_blueprint():
    """Return the pharmacy API blueprint, ready to register on an initialized app."""
    from .routes import api_bp
    return api_bp


def start_scheduler(app):
    """Start the cron ingestion job for `app` (skipped in the reloader's parent process)."""
    from .scheduler import IngestionScheduler

    if app.debug and os.environ.get('WERKZEUG_RUN_MAIN') != 'true':
        return None

    module = app.extensions['pharmacy_guard']
    scheduler = IngestionScheduler(app, module.service, cron_schedule=module.config.SCRAPER_CRON_SCHEDULE)
    scheduler.start(initial_scrape=module.config.INITIAL_SCRAPE_IF_EMPTY)
    module.scheduler = scheduler
    return scheduler


def create_app(config=None, store=None, service=None):
    """
    Create a standalone Flask application.

    Args:
        config: Optional PharmacyConfig class or instance.
        store: Optional PharmacyStore (dependency injection, e.g. in tests).
        service: Optional IngestionService.

    Returns:
        Flask: Configured Flask application.
    """
    config = config or PharmacyConfig

    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    app = Flask(__name__)
    app.config.from_object(config)

    init_pharmacy_module(app, config=config, store=store, service=service)
    app.register_blueprint(create_pharmacy_blueprint(), url_prefix='/api')

    @app.route('/')
    def health():
        return {
            'status': 'ok',
            'service': 'Tangier Pharmacy Guard API',
            'version': __version__,
            'endpoints': {
                'open': 'GET /api/pharmacies',
                'all': 'GET /api/pharmacies/all',
                'by_id': 'GET /api/pharmacies/<id>',
                'nearest': 'POST /api/pharmacies/nearest',
                'scrape': 'POST /api/pharmacies/scrape',
                'refresh': 'POST /api/pharmacies/refresh',
            }
        }

    if config.SCHEDULER_ENABLED:
        start_scheduler(app)

    return app
