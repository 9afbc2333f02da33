"""
Cache Module - Redis-backed Caching
=====================================
Uses Flask-Caching with Redis for scalable caching.
Falls back to SimpleCache if Redis is unavailable.

Cache invalidation:
    clear_pharmacy_cache() runs after every successful ingestion and
    duty-status refresh, so on-duty lists never outlive the data.
"""
import logging

from flask_caching import Cache

logger = logging.getLogger(__name__)

# Module-level cache instance
cache = Cache()

OPEN_LIST_KEY = 'open:list'
ALL_LIST_KEY = 'all:list'


def _base_config(redis_url, timeout):
    return {
        'CACHE_TYPE': 'RedisCache',
        'CACHE_REDIS_URL': redis_url,
        'CACHE_DEFAULT_TIMEOUT': timeout,
        'CACHE_KEY_PREFIX': 'pharmacy_guard:',  # Namespace to avoid key collisions with parent app
    }


def init_cache(app, redis_url='redis://localhost:6379/0', cache_type='RedisCache', timeout=300):
    """
    Initialize the cache with the Flask app.

    Args:
        app: Flask application instance.
        redis_url: Redis URL used when cache_type is 'RedisCache'.
        cache_type: 'RedisCache' (default) or any Flask-Caching backend name.
        timeout: Default TTL in seconds.

    Falls back to SimpleCache if Redis connection fails.
    """
    config = _base_config(redis_url, timeout)

    if cache_type == 'RedisCache':
        try:
            app.config.update(config)
            cache.init_app(app)
            with app.app_context():
                cache.set('_ping', 'pong', timeout=5)
                if cache.get('_ping') == 'pong':
                    cache.delete('_ping')
                    logger.info("[Cache] Redis connected successfully")
                    return
        except Exception as e:
            logger.warning("[Cache] Redis unavailable (%s), falling back to SimpleCache", e)
        cache_type = 'SimpleCache'

    config['CACHE_TYPE'] = cache_type
    config.pop('CACHE_REDIS_URL', None)
    app.config.update(config)
    cache.init_app(app)
    logger.info("[Cache] Using %s", cache_type)


def cached_records(key, loader):
    """
    Return the cached record list under `key`, loading it on a miss.
    Nearest-match queries read the cached on-duty list, so only the
    store scan is shared between users, not their distances.
    """
    records = cache.get(key)
    if records is None:
        records = loader()
        cache.set(key, records)
    return records


def clear_pharmacy_cache():
    """Clear all pharmacy cache entries. Needs an app context."""
    try:
        cache.clear()
        logger.info("[Cache] All pharmacy cache cleared")
    except Exception as e:
        logger.warning("[Cache] Could not clear cache: %s", e)
