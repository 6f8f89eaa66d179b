"""
Test suite for the offline client
Tests: API client errors, SQLite offline store, queue sync, cached data access, load monitoring queue,
connectivity monitoring and the command line
"""
import base64
import io
import os
import time
import unittest
from contextlib import redirect_stdout
from unittest.mock import MagicMock, patch

import requests

from .__main__ import main, parse_params, run_sync
from .api import ApiClient, ApiError
from .config import ClientConfig
from .connectivity import ConnectivityMonitor
from .data_service import DataService, cache_key
from .load_monitoring import LoadMonitoringOfflineService
from .store import OfflineStore, backoff_delay_ms, now_ms, PRIORITY_INSPECTION, PRIORITY_PHOTO
from .sync import SyncManager, decode_photo, detect_entity_type

PHOTO_BYTES = b'\xff\xd8\xff\xe0' + b'\x00' * 32
PHOTO = 'data:image/jpeg;base64,' + base64.b64encode(PHOTO_BYTES).decode()
PHOTO_URL = 'https://ecgstore.blob.core.windows.net/uploads/photos/17/image.jpg'


def fake_response(status_code, payload=None):
    response = MagicMock(status_code=status_code, ok=status_code < 400)
    if payload is None:
        response.json.side_effect = ValueError('no body')
    else:
        response.json.return_value = payload
    return response


class ApiClientTests(unittest.TestCase):
    """Request building and error mapping"""

    def setUp(self):
        self.session = MagicMock()
        self.api = ApiClient('http://nms.test/api/v1/', token='token-123', session=self.session)

    def test_get_sends_bearer_token(self):
        self.session.request.return_value = fake_response(200, [{'id': 1}])
        self.assertEqual(self.api.get('regions/', params={'page': 2}), [{'id': 1}])
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ('GET', 'http://nms.test/api/v1/regions/'))
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer token-123')
        self.assertEqual(kwargs['params'], {'page': 2})
        self.assertEqual(kwargs['timeout'], 30)

    def test_no_content(self):
        self.session.request.return_value = fake_response(204)
        self.assertIsNone(self.api.delete('vit-assets/3/'))

    def test_upload_leaves_content_type_to_requests(self):
        self.session.request.return_value = fake_response(201, {'url': PHOTO_URL})
        self.api.upload_file('photos/upload-file/', 'photo', 'a.jpg', PHOTO_BYTES, 'image/jpeg', data={'asset_id': '1'})
        headers = self.session.request.call_args[1]['headers']
        self.assertNotIn('Content-Type', headers)

    def test_status_messages(self):
        self.session.request.return_value = fake_response(403, {'error': 'nope'})
        with self.assertRaises(ApiError) as ctx:
            self.api.get('users/')
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn('Access denied', ctx.exception.message)
        self.assertFalse(ctx.exception.is_retryable)

        self.session.request.return_value = fake_response(400, {'error': 'Invalid region'})
        with self.assertRaises(ApiError) as ctx:
            self.api.post('regions/', json={})
        self.assertEqual(ctx.exception.message, 'Invalid region')

        self.session.request.return_value = fake_response(500)
        with self.assertRaises(ApiError) as ctx:
            self.api.get('regions/')
        self.assertTrue(ctx.exception.is_retryable)

    def test_network_errors(self):
        self.session.request.side_effect = requests.Timeout()
        with self.assertRaises(ApiError) as ctx:
            self.api.get('regions/')
        self.assertTrue(ctx.exception.is_network_error)
        self.assertIsNone(ctx.exception.status_code)

        self.session.request.side_effect = requests.ConnectionError('refused')
        health = self.api.check_health()
        self.assertFalse(health['is_healthy'])
        self.assertEqual(health['status'], 'offline')

    def test_health_ok(self):
        self.session.request.return_value = fake_response(200, {'status': 'ok'})
        health = self.api.check_health()
        self.assertTrue(health['is_healthy'])
        self.assertIn('response_time', health)

    def test_sync_batch_payload(self):
        self.session.request.return_value = fake_response(200, {'results': []})
        self.api.sync_batch([{'idempotency_key': 'k'}])
        self.assertEqual(self.session.request.call_args[1]['json'], {'operations': [{'idempotency_key': 'k'}]})


class ClientConfigTests(unittest.TestCase):

    @patch('nms_client.config.load_dotenv')
    def test_from_env(self, mock_load):
        env = {
            'NMS_API_BASE_URL': 'https://nms.example.com/api/v1/',
            'NMS_API_TOKEN': 'abc',
            'NMS_OFFLINE_DB': ':memory:',
            'NMS_REQUEST_TIMEOUT': 'soon',
            'NMS_MAX_RETRIES': '5',
        }
        with patch.dict(os.environ, env, clear=True):
            config = ClientConfig.from_env('/tmp/nms.env')
        mock_load.assert_called_once_with('/tmp/nms.env')
        self.assertEqual(config.api_base_url, 'https://nms.example.com/api/v1')
        self.assertEqual(config.api_token, 'abc')
        self.assertEqual(config.request_timeout, 30)
        self.assertEqual(config.max_retries, 5)
        self.assertEqual(config.health_interval, 30)


class OfflineStoreTests(unittest.TestCase):
    """SQLite tables behind the offline client"""

    def setUp(self):
        self.store = OfflineStore(':memory:', max_retries=2)

    def tearDown(self):
        self.store.close()

    def test_inspections_come_before_photos(self):
        photo_owner = self.store.save_inspection({'feeder_name': 'F1'})
        self.store.save_photo(photo_owner, 'pole.jpg', PHOTO)
        self.store.save_inspection({'feeder_name': 'F2'})
        queue = self.store.get_queue()
        self.assertEqual([item['priority'] for item in queue], [PRIORITY_INSPECTION, PRIORITY_INSPECTION, PRIORITY_PHOTO])
        self.assertEqual(self.store.get_next_sync_item()['type'], 'inspection')
        self.assertEqual(len({item['idempotency_key'] for item in queue}), 3)

    def test_inspection_round_trip_and_update(self):
        inspection_id = self.store.save_inspection({'feeder_name': 'F1', 'components': {'pole': 'ok'}})
        self.assertTrue(inspection_id.startswith('offline_'))
        self.assertTrue(self.store.update_inspection(inspection_id, sync_status='failed', error_message='timeout'))
        inspection = self.store.get_inspection(inspection_id)
        self.assertEqual(inspection['data']['components'], {'pole': 'ok'})
        self.assertEqual(inspection['sync_status'], 'failed')
        self.assertEqual([row['id'] for row in self.store.get_inspections('failed')], [inspection_id])
        with self.assertRaises(ValueError):
            self.store.update_inspection(inspection_id, created_at=0)

    def test_delete_inspection_cascades(self):
        inspection_id = self.store.save_inspection({'feeder_name': 'F1'})
        self.store.save_photo(inspection_id, 'a.jpg', PHOTO)
        self.store.save_photo(inspection_id, 'b.jpg', PHOTO, photo_type='after')
        self.assertTrue(self.store.delete_inspection(inspection_id))
        self.assertEqual(self.store.get_photos(inspection_id), [])
        self.assertEqual(self.store.queue_count(), 0)

    def test_photo_type_validated(self):
        inspection_id = self.store.save_inspection({})
        with self.assertRaises(ValueError):
            self.store.save_photo(inspection_id, 'a.jpg', PHOTO, photo_type='selfie')
        photo_id = self.store.save_photo(inspection_id, 'a.jpg', PHOTO, photo_type='correction')
        self.assertEqual(self.store.get_photo(photo_id)['size'], len(PHOTO))

    def test_failures_back_off_then_drop(self):
        inspection_id = self.store.save_inspection({})
        item = self.store.get_next_sync_item()
        updated = self.store.record_failure(item['id'], 'timeout')
        self.assertEqual(updated['retry_count'], 1)
        self.assertEqual(updated['last_error'], 'timeout')
        self.assertGreater(updated['next_attempt_at'], now_ms())
        self.assertIsNone(self.store.get_next_sync_item())
        self.assertEqual(self.store.get_next_sync_item(now=updated['next_attempt_at'])['id'], item['id'])

        self.assertIsNone(self.store.record_failure(item['id'], 'timeout'))
        self.assertFalse(self.store.is_queued(inspection_id))

    def test_backoff_delay(self):
        self.assertTrue(5000 <= backoff_delay_ms(1) <= 6250)
        self.assertTrue(20000 <= backoff_delay_ms(3) <= 25000)
        self.assertTrue(300000 <= backoff_delay_ms(20) <= 375000)

    def test_defer_does_not_count_failure(self):
        self.store.save_inspection({})
        item = self.store.get_next_sync_item()
        self.store.defer(item['id'], 30)
        self.assertIsNone(self.store.get_next_sync_item())
        self.assertEqual(self.store.get_queue()[0]['retry_count'], 0)

    def test_cleanup_orphans(self):
        self.store.add_to_queue('inspection', 'offline_missing')
        self.store.add_to_queue('photo', 'photo_missing')
        self.store.save_inspection({})
        self.assertEqual(self.store.cleanup_orphans(), 2)
        self.assertEqual(self.store.queue_count(), 1)

    def test_stats(self):
        first = self.store.save_inspection({})
        self.store.save_inspection({})
        self.store.update_inspection(first, sync_status='failed')
        self.store.save_photo(first, 'a.jpg', PHOTO)
        self.store.add_load_operation('create', {'rating': 100})
        stats = self.store.get_stats()
        self.assertEqual(stats['total_inspections'], 2)
        self.assertEqual(stats['pending_inspections'], 1)
        self.assertEqual(stats['failed_inspections'], 1)
        self.assertEqual(stats['pending_photos'], 1)
        self.assertEqual(stats['queue_size'], 3)
        self.assertEqual(stats['pending_load_monitoring'], 1)

    def test_cache_expiry(self):
        self.store.cache_set('regions:all', [{'id': 1}], ttl=60)
        self.store.cache_set('feeders:all', [{'id': 2}], ttl=0)
        self.store.cache_set('districts:all', [], ttl=None)
        self.assertEqual(self.store.cache_get('regions:all'), [{'id': 1}])
        self.assertIsNone(self.store.cache_get('feeders:all'))
        self.assertEqual(self.store.cache_get('feeders:all', include_expired=True), [{'id': 2}])
        self.assertEqual(self.store.cache_get('districts:all'), [])

        info = self.store.cache_info()
        self.assertEqual(info['entries'], 3)
        self.assertEqual(info['expired'], 1)
        self.assertEqual(self.store.cache_cleanup(), 1)
        self.assertIsNone(self.store.cache_get('feeders:all', include_expired=True))

    def test_cache_clear_prefix(self):
        self.store.cache_set('feeders:all', [])
        self.store.cache_set('feeders:{"region": 1}', [])
        self.store.cache_set('regions:all', [])
        self.store.cache_clear('feeders:')
        self.assertEqual(self.store.cache_info()['entries'], 1)

    def test_id_map(self):
        self.store.map_id('offline_1', 42, 'vit_inspection')
        self.assertEqual(self.store.get_server_id('offline_1'), '42')
        self.assertEqual(self.store.get_mapped_entity('offline_1'), 'vit_inspection')
        self.assertIsNone(self.store.get_server_id('offline_2'))

    def test_load_operations(self):
        first = self.store.add_load_operation('create', {'rating': 100})
        self.store.add_load_operation('delete', record_id='9')
        self.assertEqual(sorted(op['action'] for op in self.store.get_load_operations()), ['create', 'delete'])
        self.assertEqual(self.store.get_load_operations('create')[0]['data'], {'rating': 100})
        self.assertEqual(self.store.increment_load_retry(first), 1)
        self.assertTrue(self.store.remove_load_operation(first))
        self.assertEqual(self.store.load_operation_count(), 1)
        self.store.clear_load_operations()
        self.assertEqual(self.store.load_operation_count(), 0)


class SyncHelperTests(unittest.TestCase):

    def test_detect_entity_type(self):
        self.assertEqual(detect_entity_type({'substation_type': 'primary'}), 'substation_inspection')
        self.assertEqual(detect_entity_type({'items': {'site': []}}), 'substation_inspection')
        self.assertEqual(detect_entity_type({'substation_number': 'SS-220'}), 'substation_status')
        self.assertEqual(detect_entity_type({'fuse_conditions': {'fuse_type': 'HRC'}}), 'substation_status')
        self.assertEqual(detect_entity_type({'substation_number': 'SS-1', 'items': {'site': []}}), 'substation_inspection')
        self.assertEqual(detect_entity_type({'vit_asset': 4}), 'vit_inspection')
        self.assertEqual(detect_entity_type({'asset': 4}), 'vit_inspection')
        self.assertEqual(detect_entity_type({'feeder_name': 'F1'}), 'overhead_inspection')

    def test_decode_photo(self):
        self.assertEqual(decode_photo(PHOTO), PHOTO_BYTES)
        self.assertEqual(decode_photo(base64.b64encode(PHOTO_BYTES).decode()), PHOTO_BYTES)
        with self.assertRaises(ValueError):
            decode_photo('data:image/jpeg;base64,not base64!')


class SyncManagerTests(unittest.TestCase):
    """Draining the queue against a mocked API"""

    def setUp(self):
        self.store = OfflineStore(':memory:')
        self.api = MagicMock()
        self.operations = []
        self.api.sync_batch.side_effect = self.apply_batch
        self.api.upload_file.return_value = {'success': True, 'url': PHOTO_URL}
        self.manager = SyncManager(self.store, self.api)

    def tearDown(self):
        self.store.close()

    def apply_batch(self, operations):
        operation = operations[0]
        self.operations.append(operation)
        if operation['action'] == 'create':
            return {'results': [{'status': 201, 'object_id': 17, 'replayed': False}]}
        return {'results': [{'status': 200, 'object_id': operation['object_id'], 'replayed': False}]}

    def test_overhead_inspection_with_before_photo(self):
        inspection_id = self.store.save_inspection({'feeder_name': 'F1', 'region': 1, 'district': 2})
        photo_id = self.store.save_photo(inspection_id, 'pole.jpg', PHOTO, photo_type='before')
        inspection_key = self.store.get_queue()[0]['idempotency_key']

        summary = self.manager.start_sync()

        self.assertEqual(summary, {'skipped': False, 'synced': 2, 'failed': 0, 'remaining': 0})
        create, attach = self.operations
        self.assertEqual(create['entity_type'], 'overhead_inspection')
        self.assertEqual(create['idempotency_key'], inspection_key)
        self.assertEqual(create['data']['feeder_name'], 'F1')
        self.assertEqual(attach['action'], 'update')
        self.assertEqual(attach['object_id'], '17')
        self.assertEqual(attach['data'], {'before_photo': PHOTO_URL})
        self.assertTrue(attach['idempotency_key'].endswith('-attach'))

        self.api.upload_file.assert_called_once_with(
            'photos/upload-file/', 'photo', 'pole.jpg', PHOTO_BYTES, 'image/jpeg',
            data={'asset_id': '17', 'photo_type': 'before'},
        )
        self.assertIsNone(self.store.get_photo(photo_id))
        self.assertIsNone(self.store.get_inspection(inspection_id))
        self.assertEqual(self.store.get_server_id(inspection_id), '17')

    def test_vit_photo_appended_to_existing_urls(self):
        self.api.get.return_value = {'id': 17, 'photo_urls': ['https://old/photo.jpg']}
        inspection_id = self.store.save_inspection({'asset': 5, 'inspection_date': '2024-05-01'})
        self.store.save_photo(inspection_id, 'unit.jpg', PHOTO, photo_type='after')

        self.manager.start_sync()

        self.api.get.assert_called_once_with('vit-inspections/17/')
        self.assertEqual(self.operations[-1]['entity_type'], 'vit_inspection')
        self.assertEqual(self.operations[-1]['data'], {'photo_urls': ['https://old/photo.jpg', PHOTO_URL]})

    def test_inspection_without_photos_removed_after_sync(self):
        inspection_id = self.store.save_inspection({'substation_type': 'primary', 'items': {}})
        self.manager.start_sync()
        self.assertEqual(self.operations[0]['entity_type'], 'substation_inspection')
        self.assertIsNone(self.store.get_inspection(inspection_id))

    def test_failed_inspection_defers_its_photo(self):
        self.api.sync_batch.side_effect = ApiError(503, 'Service temporarily unavailable.')
        inspection_id = self.store.save_inspection({'feeder_name': 'F1'})
        photo_id = self.store.save_photo(inspection_id, 'pole.jpg', PHOTO)

        summary = self.manager.start_sync()

        self.assertEqual(summary['synced'], 0)
        self.assertEqual(summary['failed'], 1)
        self.assertEqual(summary['remaining'], 2)
        inspection = self.store.get_inspection(inspection_id)
        self.assertEqual(inspection['sync_status'], 'failed')
        self.assertEqual(inspection['sync_attempts'], 1)
        self.assertEqual(inspection['error_message'], 'Service temporarily unavailable.')
        self.assertEqual(self.store.get_photo(photo_id)['sync_status'], 'pending')
        self.api.upload_file.assert_not_called()

    def test_rejected_operation_counts_as_failure(self):
        self.api.sync_batch.side_effect = None
        self.api.sync_batch.return_value = {'results': [{'status': 403, 'errors': {'error': 'Outside your assigned area'}}]}
        inspection_id = self.store.save_inspection({'feeder_name': 'F1'})
        summary = self.manager.start_sync()
        self.assertEqual(summary['failed'], 1)
        self.assertEqual(self.store.get_inspection(inspection_id)['error_message'], 'Outside your assigned area')

    def test_retry_failed_requeues_dropped_items(self):
        store = OfflineStore(':memory:', max_retries=1)
        manager = SyncManager(store, self.api)
        self.api.sync_batch.side_effect = ApiError(None, 'Network error.', is_network_error=True)
        inspection_id = store.save_inspection({'feeder_name': 'F1'})
        store.save_photo(inspection_id, 'pole.jpg', PHOTO)

        summary = manager.start_sync()
        self.assertEqual(summary['failed'], 2)
        self.assertEqual(store.queue_count(), 0)

        self.assertEqual(manager.retry_failed(), 2)
        self.assertEqual(manager.retry_failed(), 0)
        self.api.sync_batch.side_effect = self.apply_batch
        summary = manager.start_sync()
        self.assertEqual(summary['synced'], 2)
        self.assertEqual(store.get_stats()['total_inspections'], 0)
        store.close()

    def test_vit_asset_field_sent_as_asset(self):
        self.store.save_inspection({'vit_asset': 5, 'inspection_date': '2024-05-01'})
        self.manager.start_sync()
        create = self.operations[0]
        self.assertEqual(create['entity_type'], 'vit_inspection')
        self.assertEqual(create['data'], {'asset': 5, 'inspection_date': '2024-05-01'})

    def test_substation_status_photo_kept_with_transformer_conditions(self):
        self.api.get.return_value = {'id': 17, 'transformer_conditions': {'name_plate': 'Good', 'photos': ['https://old/tx.jpg']}}
        inspection_id = self.store.save_inspection({
            'substation_number': 'SS-220', 'substation_name': 'Adenta Bulk',
            'transformer_conditions': {'name_plate': 'Good'},
        })
        self.store.save_photo(inspection_id, 'tx.jpg', PHOTO, photo_type='correction')

        summary = self.manager.start_sync()

        self.assertEqual(summary['synced'], 2)
        self.assertEqual(self.operations[0]['entity_type'], 'substation_status')
        self.api.get.assert_called_once_with('substation-status/17/')
        self.assertEqual(self.operations[-1]['data'], {
            'transformer_conditions': {'name_plate': 'Good', 'photos': ['https://old/tx.jpg', PHOTO_URL]},
        })

    def test_retry_failed_keeps_idempotency_keys(self):
        store = OfflineStore(':memory:', max_retries=1)
        manager = SyncManager(store, self.api)
        self.api.sync_batch.side_effect = ApiError(None, 'Network error.', is_network_error=True)
        inspection_id = store.save_inspection({'feeder_name': 'F1'})
        photo_id = store.save_photo(inspection_id, 'pole.jpg', PHOTO)
        original = {item['offline_id']: item['idempotency_key'] for item in store.get_queue()}

        manager.start_sync()
        self.assertEqual(store.queue_count(), 0)
        manager.retry_failed()

        requeued = {item['offline_id']: item['idempotency_key'] for item in store.get_queue()}
        self.assertEqual(requeued, original)
        self.assertEqual(requeued[inspection_id], store.get_inspection(inspection_id)['idempotency_key'])
        self.assertEqual(requeued[photo_id], store.get_photo(photo_id)['idempotency_key'])
        store.close()

    def test_skipped_when_offline_or_busy(self):
        self.store.save_inspection({})
        self.manager.online = False
        self.assertTrue(self.manager.start_sync()['skipped'])

        manager = SyncManager(self.store, self.api, is_online=lambda: True)
        manager._lock.acquire()
        try:
            self.assertTrue(manager.is_syncing)
            self.assertTrue(manager.start_sync()['skipped'])
        finally:
            manager._lock.release()
        self.api.sync_batch.assert_not_called()

    def test_listener_errors_do_not_stop_sync(self):
        events = []
        self.manager.add_listener(lambda event, payload: 1 / 0)
        self.manager.add_listener(lambda event, payload: events.append(event))
        self.store.save_inspection({'feeder_name': 'F1'})
        summary = self.manager.start_sync()
        self.assertEqual(summary['synced'], 1)
        self.assertEqual(events, ['item_synced', 'sync_complete'])


class DataServiceTests(unittest.TestCase):
    """Cached reads with stale fallback"""

    def setUp(self):
        self.store = OfflineStore(':memory:')
        self.api = MagicMock()
        self.api.get.return_value = [{'id': 1, 'name': 'ACCRA EAST REGION'}]
        self.service = DataService(self.api, self.store)

    def tearDown(self):
        self.store.close()

    def test_cache_key(self):
        self.assertEqual(cache_key('regions'), 'regions:all')
        self.assertEqual(cache_key('feeders', {'region': 3, 'a': 1}), 'feeders:{"a": 1, "region": 3}')

    def test_second_fetch_served_from_cache(self):
        self.service.fetch('regions')
        self.assertEqual(self.service.fetch('regions'), [{'id': 1, 'name': 'ACCRA EAST REGION'}])
        self.api.get.assert_called_once_with('regions/', params=None)

        self.service.fetch('regions', force=True)
        self.assertEqual(self.api.get.call_count, 2)

    def test_store_cache_survives_new_service(self):
        self.service.fetch('regions')
        other = DataService(self.api, self.store)
        other.fetch('regions')
        self.api.get.assert_called_once()

    def test_stale_copy_served_when_offline(self):
        self.service.fetch('regions', max_age=0)
        time.sleep(0.01)
        self.api.get.side_effect = ApiError(None, 'Network error.', is_network_error=True)
        self.assertEqual(self.service.fetch('regions', max_age=0), [{'id': 1, 'name': 'ACCRA EAST REGION'}])

    def test_client_errors_not_masked(self):
        self.service.fetch('regions', max_age=0)
        time.sleep(0.01)
        self.api.get.side_effect = ApiError(404, 'Resource not found.')
        with self.assertRaises(ApiError):
            self.service.fetch('regions', max_age=0)

    def test_nothing_cached_raises(self):
        self.api.get.side_effect = ApiError(None, 'Network error.', is_network_error=True)
        with self.assertRaises(ApiError):
            self.service.fetch('districts')

    def test_writes_invalidate_entity(self):
        self.service.fetch('regions')
        self.service.fetch('districts')
        self.service.create('regions', {'name': 'NEW REGION'})
        self.api.post.assert_called_once_with('regions/', json={'name': 'NEW REGION'})
        self.service.fetch('regions')
        self.service.fetch('districts')
        self.assertEqual(self.api.get.call_count, 3)

    def test_update_and_delete(self):
        self.service.update('vit_assets', 4, {'status': 'Faulty'})
        self.api.patch.assert_called_once_with('vit-assets/4/', json={'status': 'Faulty'})
        self.service.update('vit_assets', 4, {'status': 'Faulty'}, partial=False)
        self.api.put.assert_called_once_with('vit-assets/4/', json={'status': 'Faulty'})
        self.service.delete('op5_faults', 8)
        self.api.delete.assert_called_once_with('op5-faults/8/')

    def test_unknown_entity(self):
        with self.assertRaises(ValueError):
            self.service.fetch('invoices')

    def test_preload_feeders(self):
        self.service.preload_feeders(3)
        self.api.get.assert_called_once_with('feeders/', params={'region': 3})
        self.assertIsNotNone(self.store.cache_get('feeders:{"region": 3}'))

    def test_max_age_bounds_cached_copy(self):
        self.service.preload_feeders(3)
        time.sleep(0.01)
        self.service.fetch('feeders', {'region': 3}, max_age=0)
        self.assertEqual(self.api.get.call_count, 2)

        other = DataService(self.api, self.store)
        other.preload_feeders(4)
        time.sleep(0.01)
        self.assertIsNone(self.store.cache_get('feeders:{"region": 4}', max_age=0))
        self.assertIsNotNone(self.store.cache_get('feeders:{"region": 4}', max_age=60))


class LoadMonitoringOfflineServiceTests(unittest.TestCase):

    def setUp(self):
        self.store = OfflineStore(':memory:')
        self.api = MagicMock()
        self.service = LoadMonitoringOfflineService(self.store, self.api)

    def tearDown(self):
        self.store.close()

    def test_save_offline_validation(self):
        with self.assertRaises(ValueError):
            self.service.save_offline('upsert', {})
        with self.assertRaises(ValueError):
            self.service.save_offline('update', {'rating': 100})
        self.service.save_offline('create', {'rating': 100})
        self.assertEqual(self.service.pending_count(), 1)

    def test_sync_pending(self):
        self.service.save_offline('create', {'rating': 100})
        self.service.save_offline('update', {'rating': 200}, record_id='9')
        self.service.save_offline('delete', record_id='10')
        sent = []

        def apply_batch(operations):
            sent.extend(operations)
            code = 500 if operations[0]['action'] == 'delete' else 200
            return {'results': [{'status': code, 'errors': {'error': 'Server error'} if code == 500 else None}]}

        self.api.sync_batch.side_effect = apply_batch

        self.assertEqual(self.service.sync_pending(), {'synced': 2, 'failed': 1, 'dropped': 0})
        by_action = {op['action']: op for op in sent}
        self.assertEqual(by_action['create']['entity_type'], 'load_monitoring')
        self.assertEqual(by_action['create']['data'], {'rating': 100})
        self.assertNotIn('object_id', by_action['create'])
        self.assertEqual(by_action['update']['object_id'], '9')
        self.assertEqual([op['action'] for op in self.service.get_pending()], ['delete'])
        self.api.post.assert_not_called()
        self.api.put.assert_not_called()

        self.service.sync_pending()
        self.assertEqual(self.service.sync_pending(), {'synced': 0, 'failed': 0, 'dropped': 1})
        self.assertEqual(self.service.pending_count(), 0)

    def test_retried_operation_reuses_stored_key(self):
        self.service.save_offline('create', {'rating': 100})
        stored_key = self.service.get_pending()[0]['idempotency_key']
        self.api.sync_batch.side_effect = [
            {'results': [{'status': 503, 'errors': {'error': 'Service unavailable'}}]},
            {'results': [{'status': 200, 'replayed': True}]},
        ]

        self.assertEqual(self.service.sync_pending()['failed'], 1)
        self.assertEqual(self.service.sync_pending()['synced'], 1)
        keys = [call.args[0][0]['idempotency_key'] for call in self.api.sync_batch.call_args_list]
        self.assertEqual(keys, [stored_key, stored_key])


class ConnectivityMonitorTests(unittest.TestCase):

    def test_transitions_fire_callbacks_and_sync(self):
        api = MagicMock()
        api.check_health.side_effect = [
            {'is_healthy': True, 'status': 'ok'},
            {'is_healthy': True, 'status': 'ok'},
            {'is_healthy': False, 'status': 'offline'},
        ]
        manager = MagicMock()
        monitor = ConnectivityMonitor(api, manager)
        changes = []
        monitor.on_change(changes.append)
        monitor.on_change(lambda online: 1 / 0)

        with patch.object(monitor, 'trigger_sync') as trigger:
            monitor.check()
            monitor.check()
            monitor.check()

        self.assertEqual(changes, [True, False])
        trigger.assert_called_once_with()
        self.assertFalse(manager.online)
        self.assertEqual(monitor.last_status['status'], 'offline')

    def test_trigger_sync_runs_in_background(self):
        manager = MagicMock()
        monitor = ConnectivityMonitor(MagicMock(), manager)
        worker = monitor.trigger_sync()
        worker.join(timeout=5)
        manager.start_sync.assert_called_once_with()


class CommandLineTests(unittest.TestCase):

    def test_parse_params(self):
        self.assertEqual(parse_params(['region=3', 'status=pending']), {'region': '3', 'status': 'pending'})
        with self.assertRaises(ValueError):
            parse_params(['region'])

    def test_sync_when_backend_down(self):
        api = MagicMock()
        api.check_health.return_value = {'is_healthy': False, 'status': 'offline'}
        store = OfflineStore(':memory:')
        with redirect_stdout(io.StringIO()) as out:
            self.assertEqual(run_sync(api, store), 1)
        self.assertIn('not reachable', out.getvalue())
        store.close()

    @patch('nms_client.__main__.ApiClient.from_config')
    @patch('nms_client.__main__.ClientConfig.from_env', return_value=ClientConfig(offline_db=':memory:'))
    def test_fetch_command(self, mock_config, mock_api):
        mock_api.return_value.get.return_value = [{'id': 1, 'name': 'TEMA REGION'}]
        with redirect_stdout(io.StringIO()) as out:
            self.assertEqual(main(['fetch', 'regions']), 0)
        self.assertIn('TEMA REGION', out.getvalue())
        mock_api.return_value.get.assert_called_once_with('regions/', params=None)


if __name__ == '__main__':
    unittest.main()
