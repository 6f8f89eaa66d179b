"""
Caching utilities for expensive queries
Uses Redis (django-redis) in production, any Django cache backend otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
LOCATION_LIST_CACHE_TTL = 600  # 10 minutes (regions/districts change rarely)
FEEDER_LIST_CACHE_TTL = 300  # 5 minutes
FAULT_ANALYTICS_CACHE_TTL = 300  # 5 minutes

# Namespaces bumped by cache_signals when underlying rows change
LOCATIONS_NAMESPACE = 'locations'
FAULTS_NAMESPACE = 'fault_analytics'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_namespace_version(namespace):
    """Current generation of a cache namespace (starts at 1)"""
    version_key = f"{namespace}:counter"
    version = cache.get(version_key)
    if version is None:
        cache.add(version_key, 1, None)
        version = cache.get(version_key) or 1
    return version


def bump_namespace(namespace):
    """Invalidate every key built with namespace_key() for this namespace"""
    version_key = f"{namespace}:counter"
    try:
        cache.incr(version_key)
    except ValueError:
        cache.set(version_key, 2, None)
    invalidate_cache_pattern(f"{namespace}:gen")
    logger.debug(f"Bumped cache namespace {namespace}")


def namespace_key(namespace, *args, **kwargs):
    """Cache key tied to the namespace's current generation"""
    version = get_namespace_version(namespace)
    return make_cache_key(f"{namespace}:gen{version}", *args, **kwargs)


def invalidate_cache_pattern(pattern):
    """
    Delete all Redis keys matching a pattern
    Note: This requires Redis with SCAN command support; other backends rely on namespace versions
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except NotImplementedError:
        # Not a django-redis backend
        pass
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")
