"""
Cached access to backend entities.

Reads go through a small in-memory cache in front of the offline store's
key/value cache. When the network fails, the last cached copy is returned
even if it has expired.
"""
import json
import logging
import time

from .api import ApiError

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 300
FEEDER_CACHE_TTL = 24 * 60 * 60

ENTITY_ENDPOINTS = {
    'vit_assets': 'vit-assets',
    'vit_inspections': 'vit-inspections',
    'overhead_inspections': 'overhead-line-inspections',
    'substation_inspections': 'substation-inspections',
    'substation_status': 'substation-status',
    'load_monitoring': 'load-monitoring',
    'op5_faults': 'op5-faults',
    'control_outages': 'control-outages',
    'regions': 'regions',
    'districts': 'districts',
    'feeders': 'feeders',
}


def cache_key(entity, params=None):
    if not params:
        return f"{entity}:all"
    return f"{entity}:{json.dumps(params, sort_keys=True, default=str)}"


class DataService:
    def __init__(self, api, store=None):
        self.api = api
        self.store = store
        self._memory = {}

    def _endpoint(self, entity):
        try:
            return ENTITY_ENDPOINTS[entity]
        except KeyError:
            raise ValueError(f"Unknown entity '{entity}'")

    def _cached(self, key, max_age):
        """Cached data no older than ``max_age`` seconds, whatever TTL it was stored with"""
        entry = self._memory.get(key)
        if entry is not None:
            data, stored_at, expires_at = entry
            now = time.time()
            if expires_at > now and now - stored_at < max_age:
                return data
            if expires_at <= now:
                del self._memory[key]
        if self.store is not None:
            return self.store.cache_get(key, max_age=max_age)
        return None

    def _remember(self, key, data, max_age):
        now = time.time()
        self._memory[key] = (data, now, now + max_age)
        if self.store is not None:
            self.store.cache_set(key, data, ttl=max_age)

    def fetch(self, entity, params=None, max_age=DEFAULT_MAX_AGE, force=False):
        """
        GET an entity list, served from cache when fresher than ``max_age`` seconds.

        Raises:
            ApiError: when the request fails and nothing is cached
        """
        key = cache_key(entity, params)
        if not force:
            cached = self._cached(key, max_age)
            if cached is not None:
                logger.debug(f"Cache hit for {key}")
                return cached

        try:
            data = self.api.get(f"{self._endpoint(entity)}/", params=params)
        except ApiError as e:
            if not e.is_network_error and not e.is_retryable:
                raise
            stale = self.store.cache_get(key, include_expired=True) if self.store is not None else None
            if stale is None:
                raise
            logger.warning(f"Serving stale {entity} data: {e.message}")
            return stale

        self._remember(key, data, max_age)
        return data

    def invalidate(self, entity=None):
        """Drop cached lists for one entity, or everything"""
        prefix = f"{entity}:" if entity else ''
        for key in [key for key in self._memory if key.startswith(prefix)]:
            del self._memory[key]
        if self.store is not None:
            self.store.cache_clear(prefix or None)

    def preload_feeders(self, region):
        """Feeders of a region, cached for a day"""
        return self.fetch('feeders', {'region': region}, max_age=FEEDER_CACHE_TTL)

    def get(self, entity, object_id):
        return self.api.get(f"{self._endpoint(entity)}/{object_id}/")

    def create(self, entity, data):
        result = self.api.post(f"{self._endpoint(entity)}/", json=data)
        self.invalidate(entity)
        return result

    def update(self, entity, object_id, data, partial=True):
        endpoint = f"{self._endpoint(entity)}/{object_id}/"
        result = self.api.patch(endpoint, json=data) if partial else self.api.put(endpoint, json=data)
        self.invalidate(entity)
        return result

    def delete(self, entity, object_id):
        self.api.delete(f"{self._endpoint(entity)}/{object_id}/")
        self.invalidate(entity)
