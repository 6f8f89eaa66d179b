"""
Test suite for the faults module
Tests: control outage metrics, OP5/control CRUD, the combined fault list and fault analytics
"""
from datetime import timedelta

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.cache_signals import suspend_cache_signals
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import OP5Fault, hours_between
from .views import mean_time_to_repair


class FaultMetricsTests(TestCase):
    """Derived durations and reliability figures"""

    def setUp(self):
        self.district = TestDataFactory.create_district()
        self.start = timezone.now() - timedelta(days=1)

    def test_hours_between(self):
        self.assertEqual(hours_between(self.start, self.start + timedelta(minutes=90)), 1.5)
        self.assertIsNone(hours_between(self.start, None))
        self.assertIsNone(hours_between(self.start, self.start - timedelta(hours=1)))

    def test_control_outage_metrics_computed_on_save(self):
        outage = TestDataFactory.create_control_outage(
            district=self.district,
            occurrence_date=self.start,
            restoration_date=self.start + timedelta(hours=2),
            load_mw=3.5,
            customers_affected_rural=10,
            customers_affected_urban=20,
            customers_affected_metro=5,
        )
        self.assertEqual(outage.duration_hours, 2)
        self.assertEqual(outage.unserved_energy_mwh, 7.0)
        self.assertEqual(outage.customer_interruption_duration_rural, 20)
        self.assertEqual(outage.customer_interruption_duration, 70)
        self.assertEqual(outage.customer_interruption_frequency, 35)

    def test_open_outage_has_no_unserved_energy(self):
        outage = TestDataFactory.create_control_outage(district=self.district, load_mw=5, customers_affected_urban=100)
        self.assertIsNone(outage.duration_hours)
        self.assertEqual(outage.unserved_energy_mwh, 0)
        self.assertEqual(outage.customer_interruption_frequency, 100)

    def test_metrics_refreshed_with_update_fields(self):
        outage = TestDataFactory.create_control_outage(district=self.district, occurrence_date=self.start, load_mw=2)
        outage.restoration_date = self.start + timedelta(hours=3)
        outage.save(update_fields=['restoration_date'])
        outage.refresh_from_db()
        self.assertEqual(outage.unserved_energy_mwh, 6.0)
        self.assertEqual(outage.version, 2)

    def test_op5_durations(self):
        fault = TestDataFactory.create_op5_fault(
            district=self.district,
            occurrence_date=self.start,
            repair_date=self.start + timedelta(hours=1),
            restoration_date=self.start + timedelta(hours=4),
            affected_population_rural=3,
            affected_population_metro=7,
        )
        self.assertEqual(fault.outage_duration_hours, 4)
        self.assertEqual(fault.repair_duration_hours, 3)
        self.assertEqual(fault.total_affected_population, 10)

    def test_mttr_counts_resolved_faults_only(self):
        TestDataFactory.create_op5_fault(
            district=self.district, occurrence_date=self.start, status='resolved',
            repair_date=self.start + timedelta(hours=1), restoration_date=self.start + timedelta(hours=3),
        )
        TestDataFactory.create_op5_fault(
            district=self.district, occurrence_date=self.start, status='resolved',
            repair_date=self.start, restoration_date=self.start + timedelta(hours=4),
        )
        TestDataFactory.create_op5_fault(
            district=self.district, occurrence_date=self.start, status='pending',
            repair_date=self.start, restoration_date=self.start + timedelta(hours=20),
        )
        self.assertEqual(mean_time_to_repair(OP5Fault.objects.all()), 3.0)
        self.assertEqual(mean_time_to_repair(OP5Fault.objects.none()), 0)


class FaultAPITests(TestCase):
    """OP5 faults, control outages and the combined fault views"""

    def setUp(self):
        cache.clear()
        self.district = TestDataFactory.create_district(name='ADENTA')
        self.region = self.district.region
        self.other_district = TestDataFactory.create_district(name='TARKWA')
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.start = timezone.now() - timedelta(days=2)

    def test_create_op5_fault(self):
        response = self.client.post('/api/v1/op5-faults/', {
            'region': self.region.id,
            'district': self.district.id,
            'substation_number': 'SS-001',
            'fault_type': 'Unplanned',
            'occurrence_date': self.start.isoformat(),
            'materials_used': [{'type': 'Fuse', 'rating': '100A', 'quantity': 2}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['fault_category'], 'op5')
        self.assertEqual(OP5Fault.objects.get().created_by, self.admin)

    def test_restoration_before_occurrence_rejected(self):
        response = self.client.post('/api/v1/op5-faults/', {
            'region': self.region.id,
            'district': self.district.id,
            'substation_number': 'SS-002',
            'occurrence_date': self.start.isoformat(),
            'restoration_date': (self.start - timedelta(hours=1)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('restoration_date', response.data)

    def test_create_control_outage_returns_metrics(self):
        response = self.client.post('/api/v1/control-outages/', {
            'region': self.region.id,
            'district': self.district.id,
            'feeder_name': 'ADENTA F1',
            'occurrence_date': self.start.isoformat(),
            'restoration_date': (self.start + timedelta(hours=2)).isoformat(),
            'load_mw': 1.25,
            'customers_affected_urban': 40,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['fault_category'], 'control')
        self.assertEqual(response.data['unserved_energy_mwh'], 2.5)
        self.assertEqual(response.data['customer_interruption_duration'], 80)

    def test_negative_load_rejected(self):
        response = self.client.post('/api/v1/control-outages/', {
            'region': self.region.id, 'district': self.district.id,
            'occurrence_date': self.start.isoformat(), 'load_mw': -1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_combined_list_merges_and_orders(self):
        TestDataFactory.create_op5_fault(district=self.district, occurrence_date=self.start, substation_number='OP5-OLD')
        TestDataFactory.create_control_outage(district=self.district, occurrence_date=self.start + timedelta(hours=1), feeder_name='CTRL-MID')
        TestDataFactory.create_op5_fault(district=self.district, occurrence_date=self.start + timedelta(hours=2), substation_number='OP5-NEW')

        response = self.client.get('/api/v1/faults/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        self.assertEqual([row['fault_category'] for row in response.data['data']], ['op5', 'control', 'op5'])
        self.assertEqual(response.data['data'][0]['substation_number'], 'OP5-NEW')

        response = self.client.get('/api/v1/faults/', {'limit': 1, 'offset': 1})
        self.assertEqual(response.data['data'][0]['feeder_name'], 'CTRL-MID')
        self.assertTrue(response.data['has_previous_page'])

        response = self.client.get('/api/v1/faults/', {'order': 'asc', 'limit': 1})
        self.assertEqual(response.data['data'][0]['substation_number'], 'OP5-OLD')

    def test_combined_list_orders_sub_second_times(self):
        whole_second = self.start.replace(microsecond=0)
        TestDataFactory.create_op5_fault(district=self.district, occurrence_date=whole_second, substation_number='OP5-FIRST')
        TestDataFactory.create_control_outage(district=self.district, occurrence_date=whole_second + timedelta(milliseconds=500),
                                              feeder_name='CTRL-HALF-SECOND-LATER')

        response = self.client.get('/api/v1/faults/')
        self.assertEqual([row['fault_category'] for row in response.data['data']], ['control', 'op5'])
        response = self.client.get('/api/v1/faults/', {'order': 'asc'})
        self.assertEqual([row['fault_category'] for row in response.data['data']], ['op5', 'control'])

    def test_combined_list_count_only_and_scope(self):
        TestDataFactory.create_op5_fault(district=self.district)
        TestDataFactory.create_control_outage(district=self.district)
        TestDataFactory.create_control_outage(district=self.other_district)

        response = self.client.get('/api/v1/faults/', {'countOnly': 'true'})
        self.assertEqual(response.data, {'total': 3})

        user = TestDataFactory.create_user(role='district_engineer', district=self.district)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/faults/')
        self.assertEqual(response.data['total'], 2)

    def test_combined_list_rejects_bad_date(self):
        response = self.client.get('/api/v1/faults/', {'start_date': 'not-a-date'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fault_detail_falls_back_to_control_outage(self):
        outage = TestDataFactory.create_control_outage(district=self.district)
        response = self.client.get(f'/api/v1/faults/{outage.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['fault_category'], 'control')

    def test_fault_detail_prefers_op5(self):
        fault = TestDataFactory.create_op5_fault(district=self.district)
        response = self.client.get(f'/api/v1/faults/{fault.id}/')
        self.assertEqual(response.data['fault_category'], 'op5')

    def test_fault_detail_not_found(self):
        response = self.client.get('/api/v1/faults/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Fault not found')

    def test_resolve_fault_with_patch(self):
        fault = TestDataFactory.create_op5_fault(district=self.district, occurrence_date=self.start)
        response = self.client.patch(f'/api/v1/op5-faults/{fault.id}/', {
            'status': 'resolved', 'restoration_date': (self.start + timedelta(hours=5)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['outage_duration_hours'], 5)
        self.assertEqual(response.data['version'], 2)


class FaultAnalyticsTests(TestCase):
    """Aggregates served by /faults/analytics/"""

    def setUp(self):
        cache.clear()
        self.district = TestDataFactory.create_district()
        self.admin = TestDataFactory.create_user(role='system_admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        start = timezone.now() - timedelta(days=1)
        TestDataFactory.create_op5_fault(
            district=self.district, occurrence_date=start, status='resolved', fault_type='Unplanned',
            repair_date=start + timedelta(hours=1), restoration_date=start + timedelta(hours=3),
        )
        TestDataFactory.create_op5_fault(
            district=self.district, occurrence_date=start, status='resolved', fault_type='Emergency',
            repair_date=start, restoration_date=start + timedelta(hours=4),
        )
        TestDataFactory.create_op5_fault(district=self.district, occurrence_date=start, fault_type='Unplanned')
        TestDataFactory.create_control_outage(
            district=self.district, occurrence_date=start, restoration_date=start + timedelta(minutes=90),
            load_mw=2, customers_affected_rural=10, customers_affected_urban=20,
        )

    def test_analytics_totals(self):
        response = self.client.get('/api/v1/faults/analytics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data['total'], 4)
        self.assertEqual(data['by_status'], {'resolved': 2, 'pending': 2})
        self.assertEqual(data['by_category'], {'op5': 3, 'control': 1})
        self.assertEqual(data['by_fault_type'], {'Unplanned': 2, 'Emergency': 1})
        self.assertEqual(data['mttr_hours'], 3.0)
        self.assertEqual(data['total_unserved_energy_mwh'], 3.0)
        self.assertEqual(data['total_customer_interruption_duration'], 45.0)
        self.assertEqual(data['total_customer_interruption_frequency'], 30)

    def test_analytics_is_cached_until_faults_change(self):
        self.assertEqual(self.client.get('/api/v1/faults/analytics/').data['total'], 4)
        with suspend_cache_signals():
            TestDataFactory.create_op5_fault(district=self.district)
        self.assertEqual(self.client.get('/api/v1/faults/analytics/').data['total'], 4)

        TestDataFactory.create_control_outage(district=self.district)
        self.assertEqual(self.client.get('/api/v1/faults/analytics/').data['total'], 6)

    def test_analytics_cached_per_scope(self):
        self.client.get('/api/v1/faults/analytics/')
        other_district = TestDataFactory.create_district()
        user = TestDataFactory.create_user(role='district_engineer', district=other_district)
        self.client.authenticate_user(user)
        self.assertEqual(self.client.get('/api/v1/faults/analytics/').data['total'], 0)

    def test_analytics_status_filter(self):
        response = self.client.get('/api/v1/faults/analytics/', {'status': 'resolved'})
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['total_unserved_energy_mwh'], 0)

    def test_analytics_rejects_bad_date(self):
        response = self.client.get('/api/v1/faults/analytics/', {'end_date': '2024-13-45'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_analytics_cached_per_fault_type_and_search(self):
        emergency = self.client.get('/api/v1/faults/analytics/', {'fault_type': 'Emergency'})
        self.assertEqual(emergency.data['by_category']['op5'], 1)
        self.assertEqual(self.client.get('/api/v1/faults/analytics/').data['by_category']['op5'], 3)
        searched = self.client.get('/api/v1/faults/analytics/', {'search': 'Emergency'})
        self.assertEqual(searched.data['by_category']['op5'], 1)

        TestDataFactory.create_control_outage(district=self.district, feeder_name='KASOA F3')
        self.assertEqual(self.client.get('/api/v1/faults/analytics/', {'feeder': 'kasoa'}).data['by_category']['control'], 1)
        self.assertEqual(self.client.get('/api/v1/faults/analytics/', {'feeder': 'other'}).data['by_category']['control'], 0)
