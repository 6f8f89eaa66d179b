"""
Test suite for the assets module
Tests: VIT assets, VIT/overhead/substation inspections, substation status reports, photo stripping and base64 photo migration
"""
import base64
from io import StringIO
from unittest.mock import patch

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import VITAsset, VITInspection, SubstationInspection, SubstationStatus
from .photo_migration import migrate_record_photos, clear_record_photos, PHOTO_FIELDS

DATA_URL = 'data:image/jpeg;base64,' + base64.b64encode(b'\xff\xd8\xff\xe0' + b'0' * 64).decode()
BLOB_URL = 'https://ecgstore.blob.core.windows.net/uploads/vit-assets/1/photo.jpg'


class VITAssetAPITests(TestCase):
    """VIT asset list, create, detail and count"""

    def setUp(self):
        cache.clear()
        self.region = TestDataFactory.create_region(name='ACCRA EAST REGION')
        self.other_region = TestDataFactory.create_region(name='ASHANTI EAST REGION')
        self.district = TestDataFactory.create_district(region=self.region, name='ADENTA')
        self.other_district = TestDataFactory.create_district(region=self.other_region, name='EJISU')
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()

    def test_create_asset_records_owner_and_audit(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/vit-assets/', {
            'serial_number': 'VIT-0001',
            'region': self.region.id,
            'district': self.district.id,
            'feeder_name': 'ADENTA F1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['version'], 1)
        self.assertEqual(response.data['district_name'], 'ADENTA')
        asset = VITAsset.objects.get(serial_number='VIT-0001')
        self.assertEqual(asset.created_by, self.admin)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='VITAsset', object_id=str(asset.id)).exists())

    def test_create_rejects_mismatched_district(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/vit-assets/', {
            'serial_number': 'VIT-0002', 'region': self.region.id, 'district': self.other_district.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('district', response.data)

    def test_district_user_cannot_create_outside_district(self):
        user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/vit-assets/', {
            'serial_number': 'VIT-0003', 'region': self.other_region.id, 'district': self.other_district.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(VITAsset.objects.filter(serial_number='VIT-0003').exists())

    def test_list_is_scoped_and_paginated(self):
        TestDataFactory.create_vit_asset(district=self.district, serial_number='VIT-A')
        TestDataFactory.create_vit_asset(district=self.district, serial_number='VIT-B')
        TestDataFactory.create_vit_asset(district=self.other_district, serial_number='VIT-C')
        user = TestDataFactory.create_user(role='regional_engineer', region=self.region)
        self.client.authenticate_user(user)

        response = self.client.get('/api/v1/vit-assets/', {'limit': 1})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(len(response.data['data']), 1)
        self.assertTrue(response.data['has_next_page'])

    def test_list_search_and_sort(self):
        TestDataFactory.create_vit_asset(district=self.district, serial_number='VIT-100', location='Market square')
        TestDataFactory.create_vit_asset(district=self.district, serial_number='VIT-200')
        self.client.authenticate_user(self.admin)

        response = self.client.get('/api/v1/vit-assets/', {'search': 'market'})
        self.assertEqual([row['serial_number'] for row in response.data['data']], ['VIT-100'])

        response = self.client.get('/api/v1/vit-assets/', {'sort': 'serial_number', 'order': 'asc'})
        self.assertEqual([row['serial_number'] for row in response.data['data']], ['VIT-100', 'VIT-200'])

    def test_count_only_and_count_endpoint(self):
        TestDataFactory.create_vit_asset(district=self.district, status='Operational')
        TestDataFactory.create_vit_asset(district=self.district, status='Faulty')
        self.client.authenticate_user(self.admin)

        response = self.client.get('/api/v1/vit-assets/', {'countOnly': 'true'})
        self.assertEqual(response.data, {'count': 2})
        response = self.client.get('/api/v1/vit-assets/count/', {'status': 'faulty'})
        self.assertEqual(response.data, {'count': 1})

    def test_base64_photo_hidden_unless_requested(self):
        asset = TestDataFactory.create_vit_asset(district=self.district, photo=DATA_URL, photo_url=BLOB_URL)
        self.client.authenticate_user(self.admin)

        response = self.client.get(f'/api/v1/vit-assets/{asset.id}/')
        self.assertEqual(response.data['photo'], '')
        self.assertEqual(response.data['photo_url'], BLOB_URL)

        response = self.client.get(f'/api/v1/vit-assets/{asset.id}/', {'includeBase64': 'true'})
        self.assertEqual(response.data['photo'], DATA_URL)

    def test_update_bumps_version_and_audits_changes(self):
        asset = TestDataFactory.create_vit_asset(district=self.district, status='Operational')
        self.client.authenticate_user(self.admin)

        response = self.client.patch(f'/api/v1/vit-assets/{asset.id}/', {'status': 'Faulty'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['version'], 2)
        log = AuditLog.objects.filter(action='update', model_name='VITAsset').latest('id')
        self.assertEqual(log.changes['status'], {'old': 'Operational', 'new': 'Faulty'})
        self.assertNotIn('version', log.changes)

    def test_cannot_move_asset_out_of_scope(self):
        asset = TestDataFactory.create_vit_asset(district=self.district)
        user = TestDataFactory.create_user(role='regional_engineer', region=self.region)
        self.client.authenticate_user(user)
        response = self.client.patch(f'/api/v1/vit-assets/{asset.id}/', {
            'region': self.other_region.id, 'district': self.other_district.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_out_of_scope_detail_is_404(self):
        asset = TestDataFactory.create_vit_asset(district=self.other_district)
        user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.client.authenticate_user(user)
        response = self.client.get(f'/api/v1/vit-assets/{asset.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_asset(self):
        asset = TestDataFactory.create_vit_asset(district=self.district)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/vit-assets/{asset.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(VITAsset.objects.filter(pk=asset.id).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', model_name='VITAsset').exists())

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/vit-assets/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class InspectionAPITests(TestCase):
    """VIT, overhead line and substation inspections"""

    def setUp(self):
        cache.clear()
        self.district = TestDataFactory.create_district(name='ADENTA')
        self.region = self.district.region
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_vit_inspection_inherits_asset_location(self):
        asset = TestDataFactory.create_vit_asset(district=self.district)
        response = self.client.post('/api/v1/vit-inspections/', {
            'asset': asset.id,
            'inspection_date': '2024-03-01',
            'checklist': {'rodent_termite_encroachment': 'No'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['region'], self.region.id)
        self.assertEqual(response.data['district'], self.district.id)
        self.assertEqual(VITInspection.objects.get().inspected_by, self.admin)

    def test_vit_inspection_photo_urls_must_be_list(self):
        asset = TestDataFactory.create_vit_asset(district=self.district)
        response = self.client.post('/api/v1/vit-inspections/', {
            'asset': asset.id, 'inspection_date': '2024-03-01', 'photo_urls': 'not-a-list',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vit_inspection_filters_by_asset_and_date(self):
        asset = TestDataFactory.create_vit_asset(district=self.district)
        other = TestDataFactory.create_vit_asset(district=self.district)
        TestDataFactory.create_vit_inspection(asset=asset, inspection_date='2024-01-10')
        TestDataFactory.create_vit_inspection(asset=asset, inspection_date='2024-02-10')
        TestDataFactory.create_vit_inspection(asset=other, inspection_date='2024-02-11')

        response = self.client.get('/api/v1/vit-inspections/', {'asset': asset.id, 'start_date': '2024-02-01'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['inspection_date'], '2024-02-10')

    def test_invalid_date_filter_is_400(self):
        response = self.client.get('/api/v1/vit-inspections/', {'start_date': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_overhead_inspection_components_must_be_object(self):
        response = self.client.post('/api/v1/overhead-line-inspections/', {
            'region': self.region.id, 'district': self.district.id,
            'feeder_name': 'ADENTA F1', 'components': ['pole'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('components', response.data)

    def test_overhead_inspection_search(self):
        TestDataFactory.create_overhead_inspection(district=self.district, feeder_name='ADENTA F1', pole_id='P-77')
        TestDataFactory.create_overhead_inspection(district=self.district, feeder_name='MADINA F2')
        response = self.client.get('/api/v1/overhead-line-inspections/', {'search': 'p-77'})
        self.assertEqual([row['feeder_name'] for row in response.data['data']], ['ADENTA F1'])

    def test_overhead_before_after_photos_stripped(self):
        inspection = TestDataFactory.create_overhead_inspection(
            district=self.district, before_photo=DATA_URL, photos=[DATA_URL, BLOB_URL],
        )
        response = self.client.get(f'/api/v1/overhead-line-inspections/{inspection.id}/')
        self.assertEqual(response.data['before_photo'], '')
        self.assertEqual(response.data['photos'], [BLOB_URL])

    def test_substation_inspection_create_and_put(self):
        response = self.client.post('/api/v1/substation-inspections/', {
            'region': self.region.id, 'district': self.district.id,
            'substation_number': 'SS-101', 'substation_type': 'primary',
            'inspection_date': '2024-05-02', 'items': {'site_condition': [{'name': 'Fence', 'status': 'good'}]},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        inspection_id = response.data['id']

        response = self.client.put(f'/api/v1/substation-inspections/{inspection_id}/', {
            'region': self.region.id, 'district': self.district.id,
            'substation_number': 'SS-101', 'substation_type': 'primary',
            'inspection_date': '2024-05-02', 'items': {}, 'remarks': 'Re-inspected',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['version'], 2)
        self.assertEqual(SubstationInspection.objects.get(pk=inspection_id).remarks, 'Re-inspected')

    def test_substation_filter_by_type(self):
        TestDataFactory.create_substation_inspection(district=self.district, substation_type='primary')
        TestDataFactory.create_substation_inspection(district=self.district, substation_type='secondary')
        response = self.client.get('/api/v1/substation-inspections/', {'substation_type': 'PRIMARY'})
        self.assertEqual(response.data['total'], 1)


class SubstationStatusAPITests(TestCase):
    """Substation status reports: transformer, fuse and earthing conditions"""

    def setUp(self):
        cache.clear()
        self.district = TestDataFactory.create_district(name='ADENTA')
        self.region = self.district.region
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _payload(self, **overrides):
        payload = {
            'region': self.region.id, 'district': self.district.id,
            'substation_number': 'SS-220', 'substation_name': 'Adenta Bulk',
            'transformer_conditions': {'name_plate': 'Good', 'oil_leakage': 'No'},
            'fuse_conditions': {'fuse_type': 'HRC'},
            'earthing_conditions': {'earthing_status': 'Intact'},
            'submission_id': 'sub-001',
        }
        payload.update(overrides)
        return payload

    def test_create_defaults_and_owner(self):
        response = self.client.post('/api/v1/substation-status/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['transformer_type'], 'PMT')
        self.assertEqual(response.data['district_name'], 'ADENTA')
        self.assertEqual(SubstationStatus.objects.get().created_by, self.admin)

    def test_repeated_submission_is_conflict(self):
        self.client.post('/api/v1/substation-status/', self._payload(), format='json')
        response = self.client.post('/api/v1/substation-status/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(SubstationStatus.objects.count(), 1)

    def test_required_fields(self):
        response = self.client.post('/api/v1/substation-status/', self._payload(substation_name=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('substation_name', response.data)

    def test_conditions_must_be_objects(self):
        response = self.client.post('/api/v1/substation-status/', self._payload(fuse_conditions=['HRC']), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('fuse_conditions', response.data)

    def test_list_filters_and_update(self):
        self.client.post('/api/v1/substation-status/', self._payload(), format='json')
        self.client.post('/api/v1/substation-status/', self._payload(
            substation_number='SS-221', submission_id='sub-002', status='completed'), format='json')

        response = self.client.get('/api/v1/substation-status/', {'status': 'completed'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['substation_number'], 'SS-221')

        report = SubstationStatus.objects.get(substation_number='SS-220')
        response = self.client.patch(f'/api/v1/substation-status/{report.id}/', {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        report.refresh_from_db()
        self.assertEqual(report.status, 'completed')
        self.assertEqual(report.version, 2)

    def test_district_user_cannot_report_elsewhere(self):
        other = TestDataFactory.create_district(region=self.region, name='MADINA')
        engineer = TestDataFactory.create_user(role='district_engineer', district=other)
        self.client.authenticate_user(engineer)
        response = self.client.post('/api/v1/substation-status/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


@patch('backend.photos.blob_storage.upload_base64_image', return_value=BLOB_URL)
class PhotoMigrationTests(TestCase):
    """Moving inline base64 photos to blob storage"""

    def setUp(self):
        self.district = TestDataFactory.create_district()

    def test_vit_photo_moves_to_photo_url(self, mock_upload):
        asset = TestDataFactory.create_vit_asset(district=self.district, photo=DATA_URL)
        _, folder, fields = PHOTO_FIELDS['vit']
        uploaded = migrate_record_photos(asset, folder, fields)

        self.assertEqual(uploaded, 1)
        asset.refresh_from_db()
        self.assertEqual(asset.photo, '')
        self.assertEqual(asset.photo_url, BLOB_URL)
        self.assertEqual(asset.version, 2)
        blob_name = mock_upload.call_args[0][1]
        self.assertTrue(blob_name.startswith(f'vit-assets/{asset.pk}/photo-'))

    def test_list_fields_keep_existing_urls(self, mock_upload):
        inspection = TestDataFactory.create_substation_inspection(
            district=self.district, photos=[BLOB_URL, DATA_URL, DATA_URL],
        )
        _, folder, fields = PHOTO_FIELDS['substation']
        self.assertEqual(migrate_record_photos(inspection, folder, fields), 2)
        inspection.refresh_from_db()
        self.assertEqual(inspection.photos, [BLOB_URL, BLOB_URL, BLOB_URL])

    def test_record_without_base64_untouched(self, mock_upload):
        asset = TestDataFactory.create_vit_asset(district=self.district, photo_url=BLOB_URL)
        _, folder, fields = PHOTO_FIELDS['vit']
        self.assertEqual(migrate_record_photos(asset, folder, fields), 0)
        mock_upload.assert_not_called()
        asset.refresh_from_db()
        self.assertEqual(asset.version, 1)

    def test_clear_record_photos(self, mock_upload):
        inspection = TestDataFactory.create_overhead_inspection(
            district=self.district, after_photo=DATA_URL, photos=[DATA_URL, BLOB_URL],
        )
        _, _, fields = PHOTO_FIELDS['overhead']
        cleared = clear_record_photos(inspection, fields)
        self.assertEqual(set(cleared), {'after_photo', 'photos'})
        inspection.refresh_from_db()
        self.assertEqual(inspection.after_photo, '')
        self.assertEqual(inspection.photos, [BLOB_URL])
        mock_upload.assert_not_called()


class PhotoCommandTests(TestCase):
    """check_base64_photos, migrate_photos and remove_base64_photos"""

    def setUp(self):
        district = TestDataFactory.create_district()
        self.asset = TestDataFactory.create_vit_asset(district=district, photo=DATA_URL)
        self.inspection = TestDataFactory.create_overhead_inspection(district=district, photos=[DATA_URL])

    def run_command(self, *args):
        out = StringIO()
        call_command(*args, stdout=out)
        return out.getvalue()

    def test_check_reports_records_needing_migration(self):
        output = self.run_command('check_base64_photos')
        self.assertIn('2 record(s) need migration', output)

    @patch('backend.photos.blob_storage.is_configured', return_value=False)
    def test_migrate_requires_storage(self, mock_configured):
        with self.assertRaises(CommandError):
            self.run_command('migrate_photos')

    @patch('backend.photos.blob_storage.upload_base64_image', return_value=BLOB_URL)
    @patch('backend.photos.blob_storage.is_configured', return_value=True)
    def test_migrate_photos(self, mock_configured, mock_upload):
        output = self.run_command('migrate_photos', '--delay', '0')
        self.assertIn('Completed: 2 records migrated, 2 photos uploaded, 0 errors', output)
        self.asset.refresh_from_db()
        self.assertEqual(self.asset.photo_url, BLOB_URL)
        self.assertIn('No base64 photos found', self.run_command('check_base64_photos'))

    @patch('backend.photos.blob_storage.upload_base64_image')
    def test_migrate_photos_dry_run(self, mock_upload):
        output = self.run_command('migrate_photos', '--dry-run', '--model', 'vit')
        self.assertIn(f'Would migrate VITAsset {self.asset.pk}: photo', output)
        mock_upload.assert_not_called()

    def test_remove_base64_photos(self):
        output = self.run_command('remove_base64_photos', '--dry-run')
        self.assertIn('2 records would be cleared', output)
        self.asset.refresh_from_db()
        self.assertEqual(self.asset.photo, DATA_URL)

        self.run_command('remove_base64_photos')
        self.asset.refresh_from_db()
        self.inspection.refresh_from_db()
        self.assertEqual(self.asset.photo, '')
        self.assertEqual(self.inspection.photos, [])
