"""
Test suite for the load monitoring module
Tests: transformer load calculations, metric recalculation on save and the load monitoring API
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .calculations import calculate_load_metrics, empty_metrics, load_status, neutral_warning, phase_imbalance
from .models import LoadMonitoringRecord

leg = TestDataFactory.feeder_leg


class LoadCalculationTests(TestCase):
    """Pure calculation helpers"""

    def test_balanced_load(self):
        metrics = calculate_load_metrics(100, [leg(100, 100, 100, 4)])
        self.assertEqual(metrics['rated_load'], 133.4)
        self.assertEqual(metrics['average_current'], 100)
        self.assertEqual(metrics['percentage_load'], 74.96)
        self.assertEqual(metrics['ten_percent_full_load_neutral'], 13.34)
        self.assertEqual(metrics['calculated_neutral'], 0)
        self.assertEqual(metrics['load_status'], 'Action Required')
        self.assertEqual(metrics['imbalance_warning_level'], 'normal')

    def test_legs_are_summed_per_phase(self):
        metrics = calculate_load_metrics(500, [leg(50, 60, 70, 1), leg(50, 40, 30, 1)])
        self.assertEqual(metrics['red_phase_bulk_load'], 100)
        self.assertEqual(metrics['yellow_phase_bulk_load'], 100)
        self.assertEqual(metrics['blue_phase_bulk_load'], 100)
        self.assertEqual(metrics['load_status'], 'OKAY')

    def test_overload(self):
        metrics = calculate_load_metrics(50, [leg(100, 100, 100, 0)])
        self.assertEqual(metrics['load_status'], 'OVERLOAD')
        self.assertEqual(metrics['percentage_load'], 149.93)

    def test_unbalanced_phases(self):
        metrics = calculate_load_metrics(500, [leg(150, 100, 50, 10)])
        self.assertEqual(metrics['calculated_neutral'], 86.6)
        self.assertEqual(metrics['neutral_warning_level'], 'warning')
        self.assertEqual(metrics['imbalance_percentage'], 50)
        self.assertEqual(metrics['imbalance_warning_level'], 'critical')
        self.assertEqual(metrics['max_phase_current'], 150)
        self.assertEqual(metrics['min_phase_current'], 50)

    def test_invalid_input_gives_empty_metrics(self):
        self.assertEqual(calculate_load_metrics(0, [leg()]), empty_metrics())
        self.assertEqual(calculate_load_metrics('abc', [leg()]), empty_metrics())
        self.assertEqual(calculate_load_metrics(100, []), empty_metrics())
        self.assertEqual(calculate_load_metrics(100, [{'red_phase_current': 'x'}]), empty_metrics())
        self.assertEqual(calculate_load_metrics(float('nan'), [leg()]), empty_metrics())

    def test_thresholds(self):
        self.assertEqual(load_status(69.99), 'OKAY')
        self.assertEqual(load_status(70), 'Action Required')
        self.assertEqual(load_status(100), 'OVERLOAD')
        self.assertEqual(neutral_warning(10, 10)[0], 'normal')
        self.assertEqual(neutral_warning(21, 10)[0], 'critical')
        self.assertEqual(phase_imbalance(115, 100, 85)[1], 'warning')
        self.assertEqual(phase_imbalance(0, 0, 0), (0, 'normal', ''))


class LoadMonitoringRecordTests(TestCase):
    """Metrics stored on the model"""

    def test_metrics_stored_on_create(self):
        record = TestDataFactory.create_load_record(rating=100, feeder_legs=[leg(100, 100, 100, 4)])
        self.assertEqual(record.rated_load, 133.4)
        self.assertEqual(record.load_status, 'Action Required')

    def test_metrics_recalculated_with_update_fields(self):
        record = TestDataFactory.create_load_record(rating=500)
        record.rating = 50
        record.save(update_fields=['rating'])
        record.refresh_from_db()
        self.assertEqual(record.load_status, 'OVERLOAD')
        self.assertEqual(record.version, 2)

    def test_warnings_read_from_stored_loads(self):
        record = TestDataFactory.create_load_record(rating=500, feeder_legs=[leg(150, 100, 50, 10)])
        self.assertEqual(record.neutral_warning[0], 'warning')
        self.assertEqual(record.imbalance_warning[0], 'critical')


class LoadMonitoringAPITests(TestCase):
    """/load-monitoring/ endpoints"""

    def setUp(self):
        cache.clear()
        self.district = TestDataFactory.create_district(name='ADENTA')
        self.region = self.district.region
        self.user = TestDataFactory.create_user(role='technician', district=self.district)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def payload(self, **overrides):
        data = {
            'date': '2024-04-10',
            'time': '14:30:00',
            'region': self.region.id,
            'district': self.district.id,
            'substation_number': 'SS-5501',
            'rating': 200,
            'peak_load_status': 'night',
            'feeder_legs': [leg(120, 110, 90, 8), leg(40, 50, 60, 2)],
        }
        data.update(overrides)
        return data

    def test_create_computes_metrics(self):
        response = self.client.post('/api/v1/load-monitoring/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['rated_load'], 266.8)
        self.assertEqual(response.data['average_current'], 156.67)
        self.assertEqual(response.data['load_status'], 'OKAY')
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertIn('imbalance_warning_message', response.data)

    def test_client_cannot_set_metrics(self):
        response = self.client.post('/api/v1/load-monitoring/', self.payload(load_status='OVERLOAD', rated_load=1),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['load_status'], 'OKAY')
        self.assertEqual(response.data['rated_load'], 266.8)

    def test_rating_must_be_positive(self):
        response = self.client.post('/api/v1/load-monitoring/', self.payload(rating=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data)

    def test_negative_current_rejected(self):
        response = self.client.post('/api/v1/load-monitoring/', self.payload(feeder_legs=[leg(-1, 10, 10, 0)]),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_recomputes(self):
        record = TestDataFactory.create_load_record(district=self.district, rating=500)
        response = self.client.patch(f'/api/v1/load-monitoring/{record.id}/', {'rating': 50}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['load_status'], 'OVERLOAD')
        self.assertEqual(response.data['version'], 2)

    def test_list_filters(self):
        TestDataFactory.create_load_record(district=self.district, rating=50, substation_number='SS-HOT')
        TestDataFactory.create_load_record(district=self.district, rating=500, substation_number='SS-COOL')
        TestDataFactory.create_load_record(rating=50, substation_number='SS-ELSEWHERE')

        response = self.client.get('/api/v1/load-monitoring/', {'load_status': 'overload'})
        self.assertEqual([row['substation_number'] for row in response.data['data']], ['SS-HOT'])

        response = self.client.get('/api/v1/load-monitoring/', {'substation': 'cool'})
        self.assertEqual(response.data['total'], 1)

    def test_sort_by_percentage_load(self):
        TestDataFactory.create_load_record(district=self.district, rating=50, substation_number='SS-HOT')
        TestDataFactory.create_load_record(district=self.district, rating=500, substation_number='SS-COOL')
        response = self.client.get('/api/v1/load-monitoring/', {'sort': 'percentage_load', 'order': 'asc'})
        self.assertEqual([row['substation_number'] for row in response.data['data']], ['SS-COOL', 'SS-HOT'])

    def test_technician_cannot_delete(self):
        record = TestDataFactory.create_load_record(district=self.district)
        response = self.client.delete(f'/api/v1/load-monitoring/{record.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(LoadMonitoringRecord.objects.filter(pk=record.pk).exists())
