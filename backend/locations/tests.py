"""
Test suite for the locations module
Tests: scoped region/district/feeder lists, creation rules, seeding and district de-duplication
"""
import json
import tempfile
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status

from backend.assets.models import VITAsset
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.locations.models import Region, District


class LocationAPITests(TestCase):
    """Region, district and feeder endpoints"""

    def setUp(self):
        cache.clear()
        self.region = TestDataFactory.create_region(name='ACCRA EAST REGION')
        self.other_region = TestDataFactory.create_region(name='WESTERN REGION')
        self.district = TestDataFactory.create_district(region=self.region, name='ADENTA')
        self.other_district = TestDataFactory.create_district(region=self.other_region, name='TARKWA')
        self.feeder = TestDataFactory.create_feeder(district=self.district, name='ADENTA F1')
        self.other_feeder = TestDataFactory.create_feeder(district=self.other_district, name='TARKWA F3', voltage_level='33kV')
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()

    def test_admin_sees_all_regions(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/regions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({row['name'] for row in response.data}, {'ACCRA EAST REGION', 'WESTERN REGION'})

    def test_district_user_sees_own_region_and_district(self):
        user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.client.authenticate_user(user)
        regions = self.client.get('/api/v1/regions/').data
        districts = self.client.get('/api/v1/districts/').data
        self.assertEqual([row['name'] for row in regions], ['ACCRA EAST REGION'])
        self.assertEqual([row['name'] for row in districts], ['ADENTA'])

    def test_district_list_filters_by_region(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/districts/', {'region': self.other_region.id})
        self.assertEqual([row['name'] for row in response.data], ['TARKWA'])

    def test_feeder_list_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/feeders/', {'voltage_level': '33kV'})
        self.assertEqual([row['name'] for row in response.data], ['TARKWA F3'])

    def test_feeder_list_is_scoped(self):
        user = TestDataFactory.create_user(role='regional_engineer', region=self.region)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/feeders/')
        self.assertEqual([row['name'] for row in response.data], ['ADENTA F1'])

    def test_new_feeder_appears_after_cached_list(self):
        self.client.authenticate_user(self.admin)
        self.assertEqual(len(self.client.get('/api/v1/feeders/').data), 2)
        response = self.client.post('/api/v1/feeders/', {
            'name': 'ADENTA F2', 'region': self.region.id, 'district': self.district.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(self.client.get('/api/v1/feeders/').data), 3)

    def test_feeder_district_must_match_region(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/feeders/', {
            'name': 'BAD', 'region': self.region.id, 'district': self.other_district.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_district_name_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/districts/', {'name': 'adenta', 'region': self.region.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_regional_user_cannot_add_district_elsewhere(self):
        user = TestDataFactory.create_user(role='regional_engineer', region=self.region)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/districts/', {'name': 'NEW', 'region': self.other_region.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_technician_cannot_delete_region(self):
        user = TestDataFactory.create_user(role='technician', district=self.district)
        self.client.authenticate_user(user)
        response = self.client.delete(f'/api/v1/regions/{self.region.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class LocationCommandTests(TestCase):
    """seed_regions and dedupe_districts"""

    def run_command(self, *args):
        out = StringIO()
        call_command(*args, stdout=out)
        return out.getvalue()

    def test_seed_regions_is_idempotent(self):
        self.run_command('seed_regions')
        count = Region.objects.count()
        self.assertTrue(Region.objects.filter(name='SUBTRANSMISSION ASHANTI').exists())
        self.run_command('seed_regions')
        self.assertEqual(Region.objects.count(), count)

    def test_seed_regions_loads_districts_file(self):
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False) as handle:
            json.dump({'TEMA REGION': ['Ashaiman', 'Tema North']}, handle)
        self.run_command('seed_regions', '--districts', handle.name)
        self.assertEqual(
            set(District.objects.filter(region__name='TEMA REGION').values_list('name', flat=True)),
            {'ASHAIMAN', 'TEMA NORTH'},
        )

    def test_seed_regions_dry_run(self):
        self.run_command('seed_regions', '--dry-run')
        self.assertFalse(Region.objects.exists())

    def test_dedupe_districts_repoints_records(self):
        region = TestDataFactory.create_region()
        keeper = TestDataFactory.create_district(region=region, name='ADENTA')
        duplicate = TestDataFactory.create_district(region=region, name='Adenta ')
        asset = TestDataFactory.create_vit_asset(district=duplicate)
        user = TestDataFactory.create_user(role='technician', district=duplicate)

        output = self.run_command('dedupe_districts', '--dry-run')
        self.assertIn('DRY RUN', output)
        self.assertTrue(District.objects.filter(pk=duplicate.pk).exists())

        self.run_command('dedupe_districts')
        self.assertFalse(District.objects.filter(pk=duplicate.pk).exists())
        self.assertEqual(VITAsset.objects.get(pk=asset.pk).district_id, keeper.id)
        user.refresh_from_db()
        self.assertEqual(user.district_id, keeper.id)

    def test_dedupe_districts_keeps_same_name_in_other_regions(self):
        TestDataFactory.create_district(region=TestDataFactory.create_region(), name='CENTRAL')
        TestDataFactory.create_district(region=TestDataFactory.create_region(), name='CENTRAL')
        output = self.run_command('dedupe_districts')
        self.assertIn('No duplicate districts found', output)
        self.assertEqual(District.objects.filter(name='CENTRAL').count(), 2)
