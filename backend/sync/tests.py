"""
Test suite for the sync module
Tests: batch apply of offline operations, per-user idempotent replay, version conflicts, scope and permission checks
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from backend.assets.models import VITAsset, OverheadLineInspection, SubstationStatus
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import SyncReceipt
from .service import validate_operation
from .views import MAX_BATCH_OPERATIONS


class ValidateOperationTests(TestCase):
    """Shape checks done before anything touches the database"""

    def operation(self, **overrides):
        data = {'idempotency_key': 'key-1', 'entity_type': 'vit_asset', 'action': 'create', 'data': {}}
        data.update(overrides)
        return data

    def test_valid_create(self):
        self.assertIsNone(validate_operation(self.operation()))

    def test_errors(self):
        self.assertEqual(validate_operation('nope'), 'Operation must be an object')
        self.assertEqual(validate_operation(self.operation(idempotency_key='')), 'idempotency_key is required')
        self.assertEqual(validate_operation(self.operation(idempotency_key='k' * 101)), 'idempotency_key is too long')
        self.assertIn('Unknown entity_type', validate_operation(self.operation(entity_type='invoice')))
        self.assertIn('Unknown action', validate_operation(self.operation(action='upsert')))
        self.assertEqual(validate_operation(self.operation(action='update')), 'object_id is required for update and delete')
        self.assertEqual(
            validate_operation(self.operation(action='update', object_id='offline_1718000000000_abc123def')),
            'object_id must be a server record id',
        )
        self.assertEqual(
            validate_operation(self.operation(action='update', object_id=1, base_version='-1')),
            'base_version must be a non-negative integer',
        )


class SyncBatchAPITests(TestCase):
    """POST /sync/batch/"""

    def setUp(self):
        cache.clear()
        self.district = TestDataFactory.create_district(name='ADENTA')
        self.region = self.district.region
        self.other_district = TestDataFactory.create_district(name='TARKWA')
        self.user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def post(self, *operations):
        return self.client.post('/api/v1/sync/batch/', {'operations': list(operations)}, format='json')

    def create_overhead(self, key, district=None):
        district = district or self.district
        return {
            'idempotency_key': key,
            'entity_type': 'overhead_inspection',
            'action': 'create',
            'data': {
                'region': district.region.id,
                'district': district.id,
                'feeder_name': 'ADENTA F1',
                'components': {'pole_condition': {'leaning': True}},
            },
        }

    def test_create_stores_receipt(self):
        response = self.post(self.create_overhead('offline-1'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['applied'], 1)
        result = response.data['results'][0]
        self.assertEqual(result['status'], 201)
        inspection = OverheadLineInspection.objects.get(pk=result['object_id'])
        self.assertEqual(inspection.inspector, self.user)
        self.assertTrue(SyncReceipt.objects.filter(idempotency_key='offline-1', status_code=201).exists())

    def test_resent_operation_is_replayed(self):
        first = self.post(self.create_overhead('offline-2')).data['results'][0]
        response = self.post(self.create_overhead('offline-2'))
        self.assertEqual(response.data['replayed'], 1)
        self.assertEqual(response.data['applied'], 0)
        result = response.data['results'][0]
        self.assertTrue(result['replayed'])
        self.assertEqual(result['object_id'], first['object_id'])
        self.assertEqual(OverheadLineInspection.objects.count(), 1)

    def test_failures_do_not_store_receipts(self):
        bad = self.create_overhead('offline-3')
        bad['data']['components'] = 'broken'
        response = self.post(bad)
        self.assertEqual(response.data['results'][0]['status'], 400)
        self.assertFalse(SyncReceipt.objects.filter(idempotency_key='offline-3').exists())

        good = self.create_overhead('offline-3')
        response = self.post(good)
        self.assertEqual(response.data['results'][0]['status'], 201)

    def test_each_operation_independent(self):
        response = self.post(
            self.create_overhead('offline-4'),
            {'idempotency_key': 'offline-5', 'entity_type': 'invoice', 'action': 'create'},
            self.create_overhead('offline-6'),
        )
        self.assertEqual([r['status'] for r in response.data['results']], [201, 400, 201])
        self.assertEqual(response.data['failed'], 1)

    def test_out_of_scope_create_rejected(self):
        response = self.post(self.create_overhead('offline-7', district=self.other_district))
        self.assertEqual(response.data['results'][0]['status'], 403)
        self.assertFalse(OverheadLineInspection.objects.exists())

    def test_update_with_current_version(self):
        asset = TestDataFactory.create_vit_asset(district=self.district, status='Operational')
        response = self.post({
            'idempotency_key': 'offline-8', 'entity_type': 'vit_asset', 'action': 'update',
            'object_id': asset.id, 'base_version': 1, 'data': {'status': 'Faulty'},
        })
        result = response.data['results'][0]
        self.assertEqual(result['status'], 200)
        asset.refresh_from_db()
        self.assertEqual(asset.status, 'Faulty')
        self.assertEqual(asset.version, 2)

    def test_stale_update_conflicts(self):
        asset = TestDataFactory.create_vit_asset(district=self.district, status='Operational')
        asset.status = 'Faulty'
        asset.save()
        response = self.post({
            'idempotency_key': 'offline-9', 'entity_type': 'vit_asset', 'action': 'update',
            'object_id': asset.id, 'base_version': 1, 'data': {'status': 'Decommissioned'},
        })
        result = response.data['results'][0]
        self.assertEqual(result['status'], 409)
        self.assertEqual(result['errors']['server_version'], 2)
        self.assertEqual(result['errors']['server_data']['status'], 'Faulty')
        asset.refresh_from_db()
        self.assertEqual(asset.status, 'Faulty')

    def test_delete_and_missing_record(self):
        asset = TestDataFactory.create_vit_asset(district=self.district)
        delete = {'idempotency_key': 'offline-10', 'entity_type': 'vit_asset', 'action': 'delete', 'object_id': asset.id}
        self.assertEqual(self.post(delete).data['results'][0]['status'], 200)
        self.assertFalse(VITAsset.objects.filter(pk=asset.id).exists())

        again = dict(delete, idempotency_key='offline-11')
        self.assertEqual(self.post(again).data['results'][0]['status'], 404)

    def test_record_outside_scope_is_not_found(self):
        asset = TestDataFactory.create_vit_asset(district=self.other_district)
        response = self.post({
            'idempotency_key': 'offline-12', 'entity_type': 'vit_asset', 'action': 'update',
            'object_id': asset.id, 'data': {'status': 'Faulty'},
        })
        self.assertEqual(response.data['results'][0]['status'], 404)

    def test_feature_permission_checked_per_operation(self):
        technician = TestDataFactory.create_user(role='technician', district=self.district)
        self.client.authenticate_user(technician)
        asset = TestDataFactory.create_vit_asset(district=self.district)
        response = self.post({
            'idempotency_key': 'offline-13', 'entity_type': 'vit_asset', 'action': 'delete', 'object_id': asset.id,
        })
        self.assertEqual(response.data['results'][0]['status'], 403)
        self.assertTrue(VITAsset.objects.filter(pk=asset.id).exists())

    def test_duplicate_serial_number_is_400(self):
        TestDataFactory.create_vit_asset(district=self.district, serial_number='VIT-DUP')
        response = self.post({
            'idempotency_key': 'offline-14', 'entity_type': 'vit_asset', 'action': 'create',
            'data': {'serial_number': 'VIT-DUP', 'region': self.region.id, 'district': self.district.id},
        })
        self.assertEqual(response.data['results'][0]['status'], 400)

    def test_batch_limits(self):
        response = self.client.post('/api/v1/sync/batch/', {'operations': 'all'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        operations = [self.create_overhead(f'bulk-{i}') for i in range(MAX_BATCH_OPERATIONS + 1)]
        response = self.post(*operations)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(OverheadLineInspection.objects.exists())

    def test_pending_user_rejected(self):
        pending = TestDataFactory.create_user(role='technician', status='pending', district=self.district)
        self.client.authenticate_user(pending)
        response = self.post(self.create_overhead('offline-15'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_offline_object_id_fails_only_that_operation(self):
        response = self.post(
            self.create_overhead('offline-16'),
            {'idempotency_key': 'offline-17', 'entity_type': 'vit_asset', 'action': 'update',
             'object_id': 'offline_1718000000000_abc123def', 'data': {'status': 'Faulty'}},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['status'] for r in response.data['results']], [201, 400])
        self.assertEqual(response.data['results'][1]['errors'], {'error': 'object_id must be a server record id'})
        self.assertEqual(OverheadLineInspection.objects.count(), 1)

    def test_receipts_not_shared_between_users(self):
        first = self.post(self.create_overhead('shared-key')).data['results'][0]

        colleague = TestDataFactory.create_user(role='technician', district=self.district)
        self.client.authenticate_user(colleague)
        result = self.post(self.create_overhead('shared-key')).data['results'][0]
        self.assertEqual(result['status'], 201)
        self.assertFalse(result['replayed'])
        self.assertNotEqual(result['object_id'], first['object_id'])
        self.assertEqual(SyncReceipt.objects.filter(idempotency_key='shared-key').count(), 2)

    def test_outsider_with_known_key_gets_no_stored_data(self):
        self.post(self.create_overhead('known-key'))

        outsider = TestDataFactory.create_user(role='technician', district=self.other_district)
        self.client.authenticate_user(outsider)
        result = self.post(self.create_overhead('known-key')).data['results'][0]
        self.assertEqual(result['status'], 403)
        self.assertFalse(result['replayed'])
        self.assertNotIn('data', result)

    def test_key_reused_for_different_operation_conflicts(self):
        created = self.post(self.create_overhead('reused-key')).data['results'][0]
        response = self.post({
            'idempotency_key': 'reused-key', 'entity_type': 'overhead_inspection', 'action': 'delete',
            'object_id': created['object_id'],
        })
        result = response.data['results'][0]
        self.assertEqual(result['status'], 409)
        self.assertTrue(OverheadLineInspection.objects.filter(pk=created['object_id']).exists())

    def test_substation_status_applied(self):
        response = self.post({
            'idempotency_key': 'offline-18', 'entity_type': 'substation_status', 'action': 'create',
            'data': {
                'region': self.region.id, 'district': self.district.id,
                'substation_number': 'SS-220', 'substation_name': 'Adenta Bulk',
                'earthing_conditions': {'earthing_status': 'Intact'},
            },
        })
        result = response.data['results'][0]
        self.assertEqual(result['status'], 201)
        self.assertEqual(SubstationStatus.objects.get(pk=result['object_id']).created_by, self.user)
