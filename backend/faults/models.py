from django.conf import settings
from django.db import models

from backend.core.models import VersionedModel


def hours_between(start, end):
    """Hours from ``start`` to ``end``; None when either is missing or end precedes start"""
    if start is None or end is None or end < start:
        return None
    return round((end - start).total_seconds() / 3600, 2)


class OP5Fault(VersionedModel):
    """Distribution fault report"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('resolved', 'Resolved'),
    ]
    FAULT_TYPE_CHOICES = [
        ('Planned', 'Planned'),
        ('Unplanned', 'Unplanned'),
        ('Emergency', 'Emergency'),
        ('ECG Load Shedding', 'ECG Load Shedding'),
        ('GridCo Outages', 'GridCo Outages'),
    ]

    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='op5_faults')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='op5_faults')
    fault_type = models.CharField(max_length=50, choices=FAULT_TYPE_CHOICES, default='Unplanned')
    specific_fault_type = models.CharField(max_length=100, blank=True)
    fault_location = models.CharField(max_length=255, blank=True, help_text='Areas affected')
    substation_number = models.CharField(max_length=100)
    occurrence_date = models.DateTimeField()
    repair_date = models.DateTimeField(null=True, blank=True)
    repair_end_date = models.DateTimeField(null=True, blank=True)
    restoration_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    affected_population_rural = models.PositiveIntegerField(default=0)
    affected_population_urban = models.PositiveIntegerField(default=0)
    affected_population_metro = models.PositiveIntegerField(default=0)
    reason = models.TextField(blank=True)
    materials_used = models.JSONField(default=list, blank=True)
    outage_description = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='op5_faults')

    def __str__(self):
        return f"OP5 {self.substation_number} @ {self.occurrence_date:%Y-%m-%d %H:%M}"

    @property
    def outage_duration_hours(self):
        return hours_between(self.occurrence_date, self.restoration_date)

    @property
    def repair_duration_hours(self):
        return hours_between(self.repair_date, self.restoration_date)

    @property
    def total_affected_population(self):
        return self.affected_population_rural + self.affected_population_urban + self.affected_population_metro

    class Meta:
        db_table = 'op5_faults'
        ordering = ['-occurrence_date']
        indexes = [
            models.Index(fields=['region', 'district'], name='op5_region_idx'),
            models.Index(fields=['occurrence_date'], name='op5_occurrence_idx'),
        ]


class ControlOutage(VersionedModel):
    """Control-room outage with reliability metrics computed on save"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('resolved', 'Resolved'),
    ]

    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='control_outages')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='control_outages')
    feeder_name = models.CharField(max_length=200, blank=True)
    voltage_level = models.CharField(max_length=20, blank=True)
    fault_type = models.CharField(max_length=50, blank=True)
    occurrence_date = models.DateTimeField()
    restoration_date = models.DateTimeField(null=True, blank=True)
    load_mw = models.FloatField(default=0)
    customers_affected_rural = models.PositiveIntegerField(default=0)
    customers_affected_urban = models.PositiveIntegerField(default=0)
    customers_affected_metro = models.PositiveIntegerField(default=0)
    area_affected = models.CharField(max_length=255, blank=True)
    reason = models.TextField(blank=True)
    control_panel_indications = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    # Derived on save
    duration_hours = models.FloatField(null=True, blank=True)
    unserved_energy_mwh = models.FloatField(default=0)
    customer_interruption_duration_rural = models.FloatField(default=0)
    customer_interruption_duration_urban = models.FloatField(default=0)
    customer_interruption_duration_metro = models.FloatField(default=0)
    customer_interruption_duration = models.FloatField(default=0)
    customer_interruption_frequency = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='control_outages')

    DERIVED_FIELDS = [
        'duration_hours', 'unserved_energy_mwh',
        'customer_interruption_duration_rural', 'customer_interruption_duration_urban',
        'customer_interruption_duration_metro', 'customer_interruption_duration',
        'customer_interruption_frequency',
    ]

    def __str__(self):
        return f"{self.feeder_name or 'Outage'} @ {self.occurrence_date:%Y-%m-%d %H:%M}"

    @property
    def customers_affected(self):
        return self.customers_affected_rural + self.customers_affected_urban + self.customers_affected_metro

    def compute_metrics(self):
        """Refresh duration, unserved energy and customer interruption figures"""
        self.duration_hours = hours_between(self.occurrence_date, self.restoration_date)
        duration = self.duration_hours or 0
        self.unserved_energy_mwh = round((self.load_mw or 0) * duration, 4)
        self.customer_interruption_duration_rural = round(self.customers_affected_rural * duration, 2)
        self.customer_interruption_duration_urban = round(self.customers_affected_urban * duration, 2)
        self.customer_interruption_duration_metro = round(self.customers_affected_metro * duration, 2)
        self.customer_interruption_duration = round(
            self.customer_interruption_duration_rural
            + self.customer_interruption_duration_urban
            + self.customer_interruption_duration_metro, 2
        )
        self.customer_interruption_frequency = self.customers_affected

    def save(self, *args, **kwargs):
        self.compute_metrics()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | set(self.DERIVED_FIELDS)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'control_outages'
        ordering = ['-occurrence_date']
        indexes = [
            models.Index(fields=['region', 'district'], name='control_region_idx'),
            models.Index(fields=['occurrence_date'], name='control_occurrence_idx'),
        ]
