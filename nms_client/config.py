"""Client settings read from the environment (optionally a .env file)"""
import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_API_BASE_URL = 'http://localhost:8000/api/v1'
DEFAULT_OFFLINE_DB = str(Path.home() / '.nms_client' / 'offline.db')


def _int_env(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class ClientConfig:
    def __init__(self, api_base_url=DEFAULT_API_BASE_URL, api_token=None, offline_db=DEFAULT_OFFLINE_DB,
                 request_timeout=30, max_retries=3, health_interval=30, cache_ttl=300):
        self.api_base_url = api_base_url.rstrip('/')
        self.api_token = api_token
        self.offline_db = offline_db
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.health_interval = health_interval
        self.cache_ttl = cache_ttl

    @classmethod
    def from_env(cls, env_file=None):
        load_dotenv(env_file)
        return cls(
            api_base_url=os.getenv('NMS_API_BASE_URL', DEFAULT_API_BASE_URL),
            api_token=os.getenv('NMS_API_TOKEN') or None,
            offline_db=os.getenv('NMS_OFFLINE_DB', DEFAULT_OFFLINE_DB),
            request_timeout=_int_env('NMS_REQUEST_TIMEOUT', 30),
            max_retries=_int_env('NMS_MAX_RETRIES', 3),
            health_interval=_int_env('NMS_HEALTH_INTERVAL', 30),
            cache_ttl=_int_env('NMS_CACHE_TTL', 300),
        )

    def __repr__(self):
        return f"ClientConfig(api_base_url={self.api_base_url!r}, offline_db={self.offline_db!r})"
