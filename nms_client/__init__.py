"""Offline-first client for the NMS backend API"""
from .api import ApiClient, ApiError
from .config import ClientConfig
from .connectivity import ConnectivityMonitor
from .data_service import DataService
from .load_monitoring import LoadMonitoringOfflineService
from .store import OfflineStore
from .sync import SyncManager

__all__ = [
    'ApiClient', 'ApiError', 'ClientConfig', 'ConnectivityMonitor', 'DataService',
    'LoadMonitoringOfflineService', 'OfflineStore', 'SyncManager',
]
