"""
Offline queue for load-monitoring records.

Operations are replayed through the batch sync endpoint in the order they
were recorded, each under the key minted when it was saved. A failing
operation is retried on the next run and dropped after ``MAX_RETRIES``.
"""
import logging

from .api import ApiError

logger = logging.getLogger(__name__)

ENTITY_TYPE = 'load_monitoring'
ACTIONS = ('create', 'update', 'delete')
MAX_RETRIES = 3


class LoadMonitoringOfflineService:
    def __init__(self, store, api):
        self.store = store
        self.api = api

    def save_offline(self, action, data=None, record_id=None):
        if action not in ACTIONS:
            raise ValueError(f"action must be one of {', '.join(ACTIONS)}")
        if action != 'create' and not record_id:
            raise ValueError('record_id is required for update and delete')
        operation_id = self.store.add_load_operation(action, data=data, record_id=record_id)
        logger.info(f"Load monitoring {action} saved offline: {operation_id}")
        return operation_id

    def get_pending(self, action=None):
        return self.store.get_load_operations(action)

    def pending_count(self):
        return self.store.load_operation_count()

    def clear(self):
        self.store.clear_load_operations()

    def _send(self, operation):
        """Apply one operation through the batch endpoint under its stored idempotency key"""
        request = {
            'idempotency_key': operation['idempotency_key'],
            'entity_type': ENTITY_TYPE,
            'action': operation['action'],
        }
        if operation['action'] != 'create':
            request['object_id'] = operation['record_id']
        if operation['data'] is not None:
            request['data'] = operation['data']
        response = self.api.sync_batch([request])
        results = (response or {}).get('results') or []
        if not results:
            raise ApiError(None, 'Empty sync response')
        result = results[0]
        if result.get('status', 500) >= 300:
            errors = result.get('errors') or {}
            message = errors.get('error') if isinstance(errors, dict) and errors.get('error') else str(errors)
            raise ApiError(result.get('status', 500), message, payload=errors)
        return result

    def sync_pending(self):
        """Replay queued operations one by one. Returns counts of synced, failed and dropped."""
        synced = failed = dropped = 0
        for operation in self.store.get_load_operations():
            try:
                self._send(operation)
            except ApiError as e:
                retries = self.store.increment_load_retry(operation['id'])
                if retries >= MAX_RETRIES:
                    self.store.remove_load_operation(operation['id'])
                    logger.error(f"Dropping load monitoring {operation['action']} {operation['id']} "
                                 f"after {retries} attempts: {e.message}")
                    dropped += 1
                else:
                    logger.warning(f"Load monitoring {operation['action']} {operation['id']} failed: {e.message}")
                    failed += 1
                continue
            self.store.remove_load_operation(operation['id'])
            synced += 1
        return {'synced': synced, 'failed': failed, 'dropped': dropped}
