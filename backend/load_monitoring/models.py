from django.conf import settings
from django.db import models

from backend.core.models import VersionedModel
from .calculations import calculate_load_metrics, neutral_warning, phase_imbalance


class LoadMonitoringRecord(VersionedModel):
    """Transformer load reading; metrics are recalculated on every save"""
    PEAK_LOAD_CHOICES = [
        ('day', 'Day'),
        ('night', 'Night'),
    ]
    LOAD_STATUS_CHOICES = [
        ('OKAY', 'Okay'),
        ('Action Required', 'Action Required'),
        ('OVERLOAD', 'Overload'),
    ]

    date = models.DateField()
    time = models.TimeField(null=True, blank=True)
    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='load_records')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='load_records')
    substation_name = models.CharField(max_length=200, blank=True)
    substation_number = models.CharField(max_length=100)
    location = models.CharField(max_length=255, blank=True)
    gps_location = models.CharField(max_length=100, blank=True)
    rating = models.FloatField(help_text='Transformer rating in kVA')
    peak_load_status = models.CharField(max_length=10, choices=PEAK_LOAD_CHOICES, default='day')
    # [{red_phase_current, yellow_phase_current, blue_phase_current, neutral_current}, ...]
    feeder_legs = models.JSONField(default=list, blank=True)

    # Derived on save
    rated_load = models.FloatField(default=0)
    red_phase_bulk_load = models.FloatField(default=0)
    yellow_phase_bulk_load = models.FloatField(default=0)
    blue_phase_bulk_load = models.FloatField(default=0)
    average_current = models.FloatField(default=0)
    percentage_load = models.FloatField(default=0)
    ten_percent_full_load_neutral = models.FloatField(default=0)
    calculated_neutral = models.FloatField(default=0)
    load_status = models.CharField(max_length=20, choices=LOAD_STATUS_CHOICES, default='OKAY')
    imbalance_percentage = models.FloatField(default=0)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='load_records')

    METRIC_FIELDS = [
        'rated_load', 'red_phase_bulk_load', 'yellow_phase_bulk_load', 'blue_phase_bulk_load',
        'average_current', 'percentage_load', 'ten_percent_full_load_neutral', 'calculated_neutral',
        'load_status', 'imbalance_percentage',
    ]

    def __str__(self):
        return f"{self.substation_number} @ {self.date}"

    def compute_metrics(self):
        metrics = calculate_load_metrics(self.rating, self.feeder_legs)
        for field in self.METRIC_FIELDS:
            setattr(self, field, metrics[field])
        return metrics

    @property
    def neutral_warning(self):
        return neutral_warning(self.calculated_neutral, self.ten_percent_full_load_neutral)

    @property
    def imbalance_warning(self):
        _, level, message = phase_imbalance(self.red_phase_bulk_load, self.yellow_phase_bulk_load, self.blue_phase_bulk_load)
        return level, message

    def save(self, *args, **kwargs):
        self.compute_metrics()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | set(self.METRIC_FIELDS)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'load_monitoring'
        ordering = ['-date', '-time', '-created_at']
        indexes = [
            models.Index(fields=['region', 'district'], name='load_region_idx'),
            models.Index(fields=['date'], name='load_date_idx'),
            models.Index(fields=['load_status'], name='load_status_idx'),
        ]
