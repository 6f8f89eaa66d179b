"""
Draining the offline queue to the backend.

Inspections go through ``sync/batch/`` so a resent item is answered from the
server's receipt instead of creating a duplicate. Photos are uploaded once
their inspection has a server id and their URL is then attached to the
server record.
"""
import base64
import binascii
import logging
import threading
import time

from .api import ApiError
from .store import PRIORITY_INSPECTION, PRIORITY_PHOTO

logger = logging.getLogger(__name__)

# Seconds a photo waits for its inspection to reach the server
PHOTO_WAIT_SECONDS = 10

ENTITY_ENDPOINTS = {
    'vit_inspection': 'vit-inspections',
    'overhead_inspection': 'overhead-line-inspections',
    'substation_inspection': 'substation-inspections',
    'substation_status': 'substation-status',
}

STATUS_SECTIONS = ('transformer_conditions', 'fuse_conditions', 'earthing_conditions')


def detect_entity_type(data):
    """Pick the inspection kind from the shape of its data"""
    if data.get('substation_type') or data.get('items'):
        return 'substation_inspection'
    if data.get('substation_number') or data.get('substation_name') or any(
            isinstance(data.get(section), dict) for section in STATUS_SECTIONS):
        return 'substation_status'
    if data.get('vit_asset') or data.get('asset'):
        return 'vit_inspection'
    return 'overhead_inspection'


def decode_photo(data):
    """Bytes of a data URL or bare base64 string"""
    if data.startswith('data:'):
        _, _, data = data.partition(',')
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f'Invalid photo data: {str(e)}')


class SyncError(Exception):
    pass


class SyncManager:
    def __init__(self, store, api, is_online=None):
        self.store = store
        self.api = api
        self.online = True
        self._is_online = is_online
        self._lock = threading.Lock()
        self._listeners = []
        self.last_sync = None

    @property
    def is_syncing(self):
        return self._lock.locked()

    def is_online(self):
        if self._is_online is not None:
            return self._is_online()
        return self.online

    def add_listener(self, callback):
        """``callback(event, payload)`` for ``item_synced`` and ``sync_complete``"""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, event, payload):
        for callback in list(self._listeners):
            try:
                callback(event, payload)
            except Exception as e:
                logger.error(f"Sync listener failed on {event}: {str(e)}", exc_info=True)

    def start_sync(self):
        """
        Push queued items until the queue is empty or everything left is backing off.

        Returns a summary dict; ``skipped`` is True when another sync is running
        or the client is offline.
        """
        if not self.is_online():
            logger.info("Offline, sync skipped")
            return {'skipped': True, 'synced': 0, 'failed': 0}
        if not self._lock.acquire(blocking=False):
            logger.info("Sync already in progress")
            return {'skipped': True, 'synced': 0, 'failed': 0}

        synced = failed = 0
        try:
            self.store.cleanup_orphans()
            max_iterations = self.store.queue_count() * 2
            for _ in range(max_iterations):
                if not self.is_online():
                    logger.info("Connection lost, stopping sync")
                    break
                item = self.store.get_next_sync_item()
                if item is None:
                    break
                outcome = self._process(item)
                if outcome == 'synced':
                    synced += 1
                elif outcome == 'failed':
                    failed += 1
        finally:
            self._lock.release()

        self.last_sync = time.time()
        summary = {'skipped': False, 'synced': synced, 'failed': failed, 'remaining': self.store.queue_count()}
        logger.info(f"Sync complete: {synced} synced, {failed} failed, {summary['remaining']} remaining")
        self._notify('sync_complete', summary)
        return summary

    def _process(self, item):
        """Returns 'synced', 'failed' or 'deferred'"""
        try:
            if item['type'] == 'inspection':
                self._sync_inspection(item)
            elif item['type'] == 'photo':
                if not self._sync_photo(item):
                    return 'deferred'
            else:
                raise SyncError(f"Unknown queue item type '{item['type']}'")
        except (ApiError, SyncError, ValueError) as e:
            self._fail(item, str(e))
            return 'failed'
        self.store.remove_from_queue(item['id'])
        self._notify('item_synced', {'type': item['type'], 'offline_id': item['offline_id']})
        return 'synced'

    def _fail(self, item, error):
        logger.warning(f"Sync of {item['type']} {item['offline_id']} failed: {error}")
        if item['type'] == 'inspection':
            inspection = self.store.get_inspection(item['offline_id'])
            if inspection is not None:
                self.store.update_inspection(
                    item['offline_id'],
                    sync_status='failed',
                    sync_attempts=inspection['sync_attempts'] + 1,
                    last_sync_attempt=int(time.time() * 1000),
                    error_message=error,
                )
        elif item['type'] == 'photo':
            self.store.update_photo(item['offline_id'], sync_status='failed')
        self.store.record_failure(item['id'], error)

    def _apply_batch(self, operation):
        response = self.api.sync_batch([operation])
        results = (response or {}).get('results') or []
        if not results:
            raise SyncError('Empty sync response')
        result = results[0]
        if result.get('status', 500) >= 300:
            errors = result.get('errors') or {}
            raise SyncError(errors.get('error') if isinstance(errors, dict) and errors.get('error') else str(errors))
        return result

    def _sync_inspection(self, item):
        inspection = self.store.get_inspection(item['offline_id'])
        if inspection is None:
            return
        entity_type = inspection['entity_type'] or detect_entity_type(inspection['data'])
        data = dict(inspection['data'])
        # Forms capture the asset as vit_asset, the server field is asset
        if entity_type == 'vit_inspection' and 'vit_asset' in data:
            data.setdefault('asset', data.pop('vit_asset'))
        result = self._apply_batch({
            'idempotency_key': item['idempotency_key'],
            'entity_type': entity_type,
            'action': 'create',
            'data': data,
        })
        self.store.map_id(inspection['id'], result['object_id'], entity_type)
        self.store.update_inspection(
            inspection['id'], sync_status='synced', entity_type=entity_type,
            original_id=str(result['object_id']), error_message=None,
        )
        logger.info(f"Inspection {inspection['id']} synced as {entity_type} {result['object_id']}")
        self._release_inspection(inspection['id'])

    def _release_inspection(self, inspection_id):
        """Delete a synced inspection once none of its photos remain"""
        inspection = self.store.get_inspection(inspection_id)
        if inspection is None or inspection['sync_status'] != 'synced':
            return
        if not self.store.get_photos(inspection_id):
            self.store.delete_inspection(inspection_id)

    def _sync_photo(self, item):
        """Upload one photo; returns False when it has to wait for its inspection"""
        photo = self.store.get_photo(item['offline_id'])
        if photo is None:
            return True
        inspection = self.store.get_inspection(photo['inspection_id'])
        server_id = self.store.get_server_id(photo['inspection_id'])
        if server_id is None:
            if inspection is not None and self.store.is_queued(inspection['id']):
                logger.debug(f"Photo {photo['id']} waiting for inspection {inspection['id']}")
                self.store.defer(item['id'], PHOTO_WAIT_SECONDS)
                return False
            raise SyncError('Inspection for this photo was never synced')

        response = self.api.upload_file(
            'photos/upload-file/', 'photo', photo['filename'], decode_photo(photo['data']), photo['mime_type'],
            data={'asset_id': server_id, 'photo_type': photo['photo_type']},
        )
        url = (response or {}).get('url')
        if not url:
            raise SyncError('Upload response did not include a URL')
        self.store.update_photo(photo['id'], sync_status='synced', remote_url=url)

        entity_type = (inspection or {}).get('entity_type') or self.store.get_mapped_entity(photo['inspection_id']) or 'overhead_inspection'
        self._attach_photo(item, entity_type, server_id, photo['photo_type'], url)
        self.store.delete_photo(photo['id'])
        self._release_inspection(photo['inspection_id'])
        return True

    def _attach_photo(self, item, entity_type, server_id, photo_type, url):
        if entity_type == 'overhead_inspection' and photo_type in ('before', 'after'):
            data = {f'{photo_type}_photo': url}
        elif entity_type == 'substation_status':
            # Status reports keep photos inside the transformer condition section
            record = self.api.get(f"{ENTITY_ENDPOINTS[entity_type]}/{server_id}/") or {}
            section = dict(record.get('transformer_conditions') or {})
            section['photos'] = list(section.get('photos') or []) + [url]
            data = {'transformer_conditions': section}
        else:
            field = 'photo_urls' if entity_type == 'vit_inspection' else 'photos'
            record = self.api.get(f"{ENTITY_ENDPOINTS[entity_type]}/{server_id}/") or {}
            data = {field: list(record.get(field) or []) + [url]}
        self._apply_batch({
            'idempotency_key': f"{item['idempotency_key']}-attach",
            'entity_type': entity_type,
            'action': 'update',
            'object_id': server_id,
            'data': data,
        })

    def retry_failed(self):
        """Requeue failed inspections and photos that have left the queue. Returns the count."""
        count = 0
        for inspection in self.store.get_inspections(sync_status='failed'):
            if not self.store.is_queued(inspection['id']):
                self.store.update_inspection(inspection['id'], sync_status='pending', error_message=None)
                self.store.add_to_queue('inspection', inspection['id'], PRIORITY_INSPECTION,
                                       idempotency_key=inspection['idempotency_key'])
                count += 1
        for photo in self.store.get_photos(sync_status='failed'):
            if not self.store.is_queued(photo['id']):
                self.store.update_photo(photo['id'], sync_status='pending')
                self.store.add_to_queue('photo', photo['id'], PRIORITY_PHOTO, idempotency_key=photo['idempotency_key'])
                count += 1
        logger.info(f"Requeued {count} failed item(s)")
        return count
