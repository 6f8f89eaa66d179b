"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.locations.models import Region, District, Feeder
from backend.assets.models import VITAsset, VITInspection, OverheadLineInspection, SubstationInspection
from backend.faults.models import OP5Fault, ControlOutage
from backend.load_monitoring.models import LoadMonitoringRecord
from datetime import timedelta
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_region(name=None, code=''):
        """Create a test region"""
        if not name:
            name = f'REGION {TestDataFactory.random_string(6).upper()}'
        return Region.objects.create(name=name, code=code)

    @staticmethod
    def create_district(region=None, name=None):
        """Create a test district"""
        if not region:
            region = TestDataFactory.create_region()
        if not name:
            name = f'DISTRICT {TestDataFactory.random_string(6).upper()}'
        return District.objects.create(region=region, name=name)

    @staticmethod
    def create_feeder(region=None, district=None, name=None, voltage_level='11kV'):
        """Create a test feeder"""
        if not district:
            district = TestDataFactory.create_district(region=region)
        return Feeder.objects.create(
            name=name or f'FEEDER {TestDataFactory.random_string(4).upper()}',
            region=region or district.region,
            district=district,
            voltage_level=voltage_level,
        )

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='system_admin', status='active',
                    region=None, district=None, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        if district and not region:
            region = district.region
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            status=status,
            region=region,
            district=district,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_vit_asset(district=None, user=None, serial_number=None, **kwargs):
        """Create a test VIT asset"""
        if not district:
            district = TestDataFactory.create_district()
        return VITAsset.objects.create(
            serial_number=serial_number or f'VIT-{TestDataFactory.random_string(8).upper()}',
            region=district.region,
            district=district,
            feeder_name=kwargs.pop('feeder_name', 'FEEDER A'),
            created_by=user,
            **kwargs
        )

    @staticmethod
    def create_vit_inspection(asset=None, user=None, **kwargs):
        """Create a test VIT inspection"""
        if not asset:
            asset = TestDataFactory.create_vit_asset(user=user)
        return VITInspection.objects.create(
            asset=asset,
            region=asset.region,
            district=asset.district,
            inspection_date=kwargs.pop('inspection_date', timezone.now().date()),
            inspected_by=user,
            **kwargs
        )

    @staticmethod
    def create_overhead_inspection(district=None, user=None, **kwargs):
        """Create a test overhead line inspection"""
        if not district:
            district = TestDataFactory.create_district()
        return OverheadLineInspection.objects.create(
            region=district.region,
            district=district,
            feeder_name=kwargs.pop('feeder_name', 'FEEDER A'),
            inspection_date=kwargs.pop('inspection_date', timezone.now().date()),
            inspector=user,
            **kwargs
        )

    @staticmethod
    def create_substation_inspection(district=None, user=None, **kwargs):
        """Create a test substation inspection"""
        if not district:
            district = TestDataFactory.create_district()
        return SubstationInspection.objects.create(
            region=district.region,
            district=district,
            substation_number=kwargs.pop('substation_number', f'SS-{TestDataFactory.random_string(4).upper()}'),
            inspection_date=kwargs.pop('inspection_date', timezone.now().date()),
            inspector=user,
            **kwargs
        )

    @staticmethod
    def create_op5_fault(district=None, user=None, occurrence_date=None, **kwargs):
        """Create a test OP5 fault"""
        if not district:
            district = TestDataFactory.create_district()
        return OP5Fault.objects.create(
            region=district.region,
            district=district,
            substation_number=kwargs.pop('substation_number', f'SS-{TestDataFactory.random_string(4).upper()}'),
            occurrence_date=occurrence_date or timezone.now() - timedelta(hours=6),
            created_by=user,
            **kwargs
        )

    @staticmethod
    def create_control_outage(district=None, user=None, occurrence_date=None, **kwargs):
        """Create a test control outage"""
        if not district:
            district = TestDataFactory.create_district()
        return ControlOutage.objects.create(
            region=district.region,
            district=district,
            feeder_name=kwargs.pop('feeder_name', 'FEEDER A'),
            occurrence_date=occurrence_date or timezone.now() - timedelta(hours=6),
            created_by=user,
            **kwargs
        )

    @staticmethod
    def feeder_leg(red=100.0, yellow=100.0, blue=100.0, neutral=5.0):
        return {
            'red_phase_current': red,
            'yellow_phase_current': yellow,
            'blue_phase_current': blue,
            'neutral_current': neutral,
        }

    @staticmethod
    def create_load_record(district=None, user=None, rating=500, feeder_legs=None, **kwargs):
        """Create a test load monitoring record"""
        if not district:
            district = TestDataFactory.create_district()
        if feeder_legs is None:
            feeder_legs = [TestDataFactory.feeder_leg()]
        return LoadMonitoringRecord.objects.create(
            region=district.region,
            district=district,
            date=kwargs.pop('date', timezone.now().date()),
            substation_number=kwargs.pop('substation_number', f'SS-{TestDataFactory.random_string(4).upper()}'),
            rating=rating,
            feeder_legs=feeder_legs,
            created_by=user,
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
