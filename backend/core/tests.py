"""
Test suite for the core module
Tests: versioning, access scope, permission matrix, user endpoints and admin commands
"""
import json
import tempfile
from io import StringIO
from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from backend.assets.models import VITAsset
from backend.core.access import get_access_scope, apply_access_scope, is_in_scope
from backend.core.models import Role, FeaturePermission, StaffId, AuditLog
from backend.core.permissions import (
    can_perform_action, save_permissions_document, get_permissions_document, invalidate_permissions_cache,
)
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient

User = get_user_model()


class VersionedModelTests(TestCase):
    """Generation counter on field records"""

    def test_version_starts_at_one_and_bumps_on_update(self):
        asset = TestDataFactory.create_vit_asset()
        self.assertEqual(asset.version, 1)
        asset.status = 'Faulty'
        asset.save()
        asset.refresh_from_db()
        self.assertEqual(asset.version, 2)

    def test_update_fields_save_still_bumps_version(self):
        asset = TestDataFactory.create_vit_asset()
        asset.location = 'Near the market'
        asset.save(update_fields=['location'])
        asset.refresh_from_db()
        self.assertEqual(asset.version, 2)
        self.assertEqual(asset.location, 'Near the market')


class AccessScopeTests(TestCase):
    """Region/district visibility per role"""

    def setUp(self):
        self.region = TestDataFactory.create_region(name='ACCRA EAST REGION')
        self.other_region = TestDataFactory.create_region(name='VOLTA REGION')
        self.district = TestDataFactory.create_district(region=self.region)
        self.sister_district = TestDataFactory.create_district(region=self.region)
        self.other_district = TestDataFactory.create_district(region=self.other_region)
        self.asset = TestDataFactory.create_vit_asset(district=self.district)
        self.sister_asset = TestDataFactory.create_vit_asset(district=self.sister_district)
        self.other_asset = TestDataFactory.create_vit_asset(district=self.other_district)

    def visible(self, user):
        return set(apply_access_scope(VITAsset.objects.all(), user).values_list('id', flat=True))

    def test_global_engineer_sees_everything(self):
        user = TestDataFactory.create_user(role='global_engineer')
        self.assertTrue(get_access_scope(user).unrestricted)
        self.assertEqual(self.visible(user), {self.asset.id, self.sister_asset.id, self.other_asset.id})

    def test_district_engineer_sees_own_district(self):
        user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.assertEqual(self.visible(user), {self.asset.id})
        self.assertTrue(is_in_scope(user, self.asset))
        self.assertFalse(is_in_scope(user, self.sister_asset))

    def test_regional_engineer_sees_own_region(self):
        user = TestDataFactory.create_user(role='regional_engineer', region=self.region)
        self.assertEqual(self.visible(user), {self.asset.id, self.sister_asset.id})

    def test_subtransmission_role_uses_allowed_region_names(self):
        user = TestDataFactory.create_user(role='accsubt')
        self.assertEqual(self.visible(user), {self.asset.id, self.sister_asset.id})

    def test_subtransmission_role_prefers_stored_regions(self):
        Role.objects.create(name='accsubt', display_name='Accra Subtransmission', allowed_regions=['VOLTA REGION'])
        user = TestDataFactory.create_user(role='accsubt')
        self.assertEqual(self.visible(user), {self.other_asset.id})

    def test_district_role_without_assignment_sees_nothing(self):
        user = TestDataFactory.create_user(role='technician')
        self.assertEqual(self.visible(user), set())
        self.assertEqual(get_access_scope(user).cache_key(), 'none')

    def test_other_roles_are_unrestricted(self):
        user = TestDataFactory.create_user(role='ict')
        self.assertEqual(len(self.visible(user)), 3)


class PermissionMatrixTests(TestCase):
    """Feature permission checks"""

    def setUp(self):
        cache.clear()

    def test_defaults_apply_when_matrix_is_empty(self):
        self.assertTrue(can_perform_action('technician', 'vit_inspection', 'create'))
        self.assertFalse(can_perform_action('technician', 'vit_inspection', 'delete'))
        self.assertFalse(can_perform_action('ict', 'fault_reporting', 'create'))
        self.assertTrue(can_perform_action('ict', 'fault_reporting', 'view'))

    def test_system_admin_can_do_anything(self):
        self.assertTrue(can_perform_action('system_admin', 'unknown_feature', 'delete'))

    def test_empty_role_is_denied(self):
        self.assertFalse(can_perform_action('', 'vit_inspection', 'view'))

    def test_stored_matrix_replaces_defaults(self):
        save_permissions_document({
            'features': {'vit_inspection': {'permissions': {'view': {'roles': ['ict']}}}}
        })
        self.assertTrue(can_perform_action('ict', 'vit_inspection', 'view'))
        self.assertFalse(can_perform_action('technician', 'vit_inspection', 'view'))
        self.assertEqual(FeaturePermission.objects.count(), 1)
        self.assertEqual(
            get_permissions_document()['features']['vit_inspection']['permissions']['view']['roles'], ['ict']
        )

    def test_invalid_document_is_rejected(self):
        with self.assertRaises(ValueError):
            save_permissions_document({'features': {'x': {'permissions': {'approve': {'roles': []}}}}})
        with self.assertRaises(ValueError):
            save_permissions_document({'nope': {}})

    def test_cache_is_invalidated_on_save(self):
        self.assertFalse(can_perform_action('ict', 'vit_inspection', 'create'))
        save_permissions_document({
            'features': {'vit_inspection': {'permissions': {'create': {'roles': ['ict']}}}}
        })
        self.assertTrue(can_perform_action('ict', 'vit_inspection', 'create'))


class UserAPITests(TestCase):
    """Authentication, profile and user management endpoints"""

    def setUp(self):
        cache.clear()
        self.region = TestDataFactory.create_region()
        self.district = TestDataFactory.create_district(region=self.region)
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()

    def test_health_check_needs_no_auth(self):
        response = APIClient().get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')

    def test_register_creates_pending_account(self):
        response = APIClient().post('/api/v1/auth/register/', {
            'username': 'newtech',
            'email': 'newtech@test.com',
            'password': 'S3cure-pass-123',
            'password_confirm': 'S3cure-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='newtech')
        self.assertEqual(user.role, 'pending')
        self.assertEqual(user.status, 'pending')

    def test_login_rejects_inactive_account(self):
        TestDataFactory.create_user(username='gone', status='inactive')
        response = APIClient().post('/api/v1/auth/login/', {'username': 'gone', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_permissions_and_scope(self):
        user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/users/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['access_scope']['district_id'], self.district.id)
        self.assertTrue(response.data['permissions']['vit_inspection_create'])
        self.assertFalse(response.data['is_pending'])

    def test_pending_user_cannot_use_feature_endpoints(self):
        user = TestDataFactory.create_user(role='pending', status='pending')
        self.client.authenticate_user(user)
        self.assertEqual(self.client.get('/api/v1/users/me/').data['is_pending'], True)
        response = self.client.get('/api/v1/vit-assets/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_technician_cannot_list_users(self):
        user = TestDataFactory.create_user(role='technician', district=self.district)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_status_change_is_audited(self):
        user = TestDataFactory.create_user(role='technician', status='pending', district=self.district)
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{user.id}/', {'status': 'active'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='status_change', object_id=str(user.id))
        self.assertEqual(log.changes['status'], {'old': 'pending', 'new': 'active'})

    def test_user_list_filters_by_role(self):
        TestDataFactory.create_user(role='technician', district=self.district)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/users/', {'role': 'technician'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)

    def test_admin_cannot_delete_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_raise_own_role(self):
        engineer = TestDataFactory.create_user(role='global_engineer')
        self.client.authenticate_user(engineer)
        response = self.client.patch(f'/api/v1/users/{engineer.id}/', {
            'role': 'system_admin', 'is_staff': True, 'status': 'active', 'display_name': 'Chief Engineer',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        engineer.refresh_from_db()
        self.assertEqual(engineer.role, 'global_engineer')
        self.assertFalse(engineer.is_staff)
        self.assertEqual(engineer.display_name, 'Chief Engineer')
        self.assertFalse(AuditLog.objects.filter(action='role_change').exists())

    def test_non_admin_cannot_edit_other_users(self):
        engineer = TestDataFactory.create_user(role='global_engineer')
        technician = TestDataFactory.create_user(role='technician', district=self.district)
        self.client.authenticate_user(engineer)
        self.assertEqual(self.client.get(f'/api/v1/users/{technician.id}/').status_code, status.HTTP_200_OK)
        response = self.client.patch(f'/api/v1/users/{technician.id}/', {'role': 'system_admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        technician.refresh_from_db()
        self.assertEqual(technician.role, 'technician')

    def test_admin_cannot_change_own_role(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.admin.id}/', {'role': 'technician'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, 'system_admin')

    def test_permission_check_endpoint(self):
        user = TestDataFactory.create_user(role='ict')
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/permissions/check/', {'feature': 'fault_reporting', 'action': 'create'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['allowed'])

    def test_permissions_document_update_requires_admin(self):
        user = TestDataFactory.create_user(role='global_engineer')
        self.client.authenticate_user(user)
        response = self.client.put('/api/v1/permissions/', {'features': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ManagementCommandTests(TestCase):
    """Administrative commands"""

    def run_command(self, *args, **kwargs):
        out = StringIO()
        call_command(*args, stdout=out, **kwargs)
        return out.getvalue()

    def test_create_admin_user(self):
        self.run_command('create_admin_user', '--email', 'Chief@ECG.com', '--password', 'x-pass-1234')
        user = User.objects.get(email='chief@ecg.com')
        self.assertEqual(user.role, 'system_admin')
        self.assertEqual(user.status, 'active')
        self.assertTrue(user.check_password('x-pass-1234'))

    def test_create_admin_user_dry_run_saves_nothing(self):
        output = self.run_command('create_admin_user', '--email', 'chief@ecg.com', '--dry-run')
        self.assertIn('DRY RUN', output)
        self.assertFalse(User.objects.filter(email='chief@ecg.com').exists())

    def test_create_admin_user_promotes_existing(self):
        user = TestDataFactory.create_user(email='eng@ecg.com', role='technician', status='pending')
        self.run_command('create_admin_user', '--email', 'eng@ecg.com')
        user.refresh_from_db()
        self.assertEqual(user.role, 'system_admin')

    def test_update_user_status(self):
        user = TestDataFactory.create_user(email='tech@ecg.com', role='pending', status='pending')
        self.run_command('update_user_status', 'TECH@ecg.com', 'active', '--role', 'technician')
        user.refresh_from_db()
        self.assertEqual(user.status, 'active')
        self.assertEqual(user.role, 'technician')

    def test_fix_user_uid_clears_uid(self):
        user = TestDataFactory.create_user(email='tech@ecg.com')
        user.uid = 'stale-oid'
        user.save()
        self.run_command('fix_user_uid', 'tech@ecg.com')
        user.refresh_from_db()
        self.assertIsNone(user.uid)

    def test_check_users_reports_pending(self):
        TestDataFactory.create_user(username='waiting', role='pending', status='pending')
        output = self.run_command('check_users')
        self.assertIn('Pending approval: 1', output)
        self.assertIn('waiting', output)

    def test_delete_users_no_status(self):
        TestDataFactory.create_user(username='legacy', status=None)
        TestDataFactory.create_user(username='kept')
        self.run_command('delete_users_no_status', '--dry-run')
        self.assertTrue(User.objects.filter(username='legacy').exists())
        self.run_command('delete_users_no_status', '--confirm')
        self.assertFalse(User.objects.filter(username='legacy').exists())
        self.assertTrue(User.objects.filter(username='kept').exists())

    def test_seed_roles_seeds_then_extends_matrix(self):
        self.run_command('seed_roles')
        self.assertTrue(Role.objects.filter(name='ashsubt').exists())
        self.assertEqual(Role.objects.get(name='accsubt').allowed_regions[0], 'SUBTRANSMISSION ACCRA')
        self.assertTrue(FeaturePermission.objects.exists())

        Role.objects.create(name='meter_reader', display_name='Meter Reader')
        self.run_command('seed_roles')
        row = FeaturePermission.objects.get(feature='vit_inspection', action='create')
        self.assertIn('meter_reader', row.roles)
        invalidate_permissions_cache()
        self.assertTrue(can_perform_action('meter_reader', 'vit_inspection', 'create'))

    def test_seed_roles_dry_run(self):
        self.run_command('seed_roles', '--dry-run')
        self.assertFalse(Role.objects.exists())
        self.assertFalse(FeaturePermission.objects.exists())

    def test_sync_role_regions_clear(self):
        self.run_command('sync_role_regions')
        self.assertEqual(len(Role.objects.get(name='ashsubt').allowed_regions), 4)
        self.run_command('sync_role_regions', '--role', 'ashsubt', '--clear')
        self.assertEqual(Role.objects.get(name='ashsubt').allowed_regions, [])

    def test_staff_ids_delete_all(self):
        StaffId.objects.create(staff_id='ECG001', name='Ama')
        StaffId.objects.create(staff_id='ECG002', name='Kofi', is_assigned=True)
        output = self.run_command('staff_ids', 'count')
        self.assertIn('2 (1 assigned, 1 unassigned)', output)
        self.run_command('staff_ids', 'delete-all', '--confirm')
        self.assertFalse(StaffId.objects.exists())

    def test_export_database_writes_manifest(self):
        TestDataFactory.create_vit_asset()
        with tempfile.TemporaryDirectory() as tmp:
            self.run_command('export_database', '--output', tmp, '--apps', 'locations', 'assets')
            export_dir = next(Path(tmp).iterdir())
            manifest = json.loads((export_dir / 'manifest.json').read_text())
            self.assertEqual(manifest['tables']['assets_vitasset'], 1)
            self.assertTrue((export_dir / 'locations_region.json').exists())
