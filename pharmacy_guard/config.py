"""
Pharmacy Guard Configuration
============================
Read from the environment (and a .env file when present).
A parent app can pass its own PharmacyConfig subclass to create_app().
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


class PharmacyConfig:
    """Pharmacy module configuration."""

    # Store backend: 'postgres' or 'memory'
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'postgres')

    # Database configuration
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = os.getenv('DB_PORT', '5432')
    DB_NAME = os.getenv('DB_NAME', 'pharmacy_db')
    DB_USER = os.getenv('DB_USER', 'postgres')
    DB_PASSWORD = os.getenv('DB_PASSWORD', 'postgres')

    # Schema for table isolation (parent app can set to 'pharmacy' or custom)
    DB_SCHEMA = os.getenv('DB_SCHEMA', 'public')

    # Source page
    SCRAPER_URL = os.getenv('SCRAPER_URL', 'https://pharmaciedegardetanger.site/')
    SCRAPER_TIMEOUT = float(os.getenv('SCRAPER_TIMEOUT', 15))

    # Markup of the current source (first extraction strategy)
    PRIMARY_CONTAINER_SELECTOR = os.getenv('PRIMARY_CONTAINER_SELECTOR', '.list__')
    PRIMARY_NAME_SELECTOR = os.getenv('PRIMARY_NAME_SELECTOR', '.list__label--name')
    ADDRESS_BOILERPLATE = os.getenv('ADDRESS_BOILERPLATE', 'Tangier Tanger Morocco')
    DEFAULT_ADDRESS = os.getenv('DEFAULT_ADDRESS', 'Tangier, Morocco')

    # Placeholder locations: random points around the city center
    CITY_CENTER_LAT = float(os.getenv('CITY_CENTER_LAT', 35.7595))
    CITY_CENTER_LON = float(os.getenv('CITY_CENTER_LON', -5.8340))
    LOCATION_JITTER_DEG = float(os.getenv('LOCATION_JITTER_DEG', 0.05))

    # Scheduler (cron syntax, local time)
    SCHEDULER_ENABLED = _env_bool('SCHEDULER_ENABLED', True)
    SCRAPER_CRON_SCHEDULE = os.getenv('SCRAPER_CRON_SCHEDULE', '0 0 * * *')
    INITIAL_SCRAPE_IF_EMPTY = _env_bool('INITIAL_SCRAPE_IF_EMPTY', True)

    # Cache
    CACHE_TYPE = os.getenv('CACHE_TYPE', 'RedisCache')
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CACHE_DEFAULT_TIMEOUT = int(os.getenv('CACHE_DEFAULT_TIMEOUT', 300))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def get_db_config(cls):
        """Get database configuration as dict (psycopg2.connect kwargs)."""
        return {
            'host': cls.DB_HOST,
            'port': cls.DB_PORT,
            'database': cls.DB_NAME,
            'user': cls.DB_USER,
            'password': cls.DB_PASSWORD
        }
