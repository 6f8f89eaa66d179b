from django.conf import settings
from django.db import models

from backend.core.models import VersionedModel


class VITAsset(VersionedModel):
    """Switching/transformer unit tracked by serial number"""
    STATUS_CHOICES = [
        ('Operational', 'Operational'),
        ('Under Maintenance', 'Under Maintenance'),
        ('Faulty', 'Faulty'),
        ('Decommissioned', 'Decommissioned'),
    ]
    TYPE_CHOICES = [
        ('Ring Main Unit', 'Ring Main Unit'),
        ('Circuit Breaker', 'Circuit Breaker'),
        ('Load Break Switch', 'Load Break Switch'),
        ('Voltage Transformer', 'Voltage Transformer'),
        ('Other', 'Other'),
    ]

    serial_number = models.CharField(max_length=100, unique=True)
    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='vit_assets')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='vit_assets')
    feeder_name = models.CharField(max_length=200, blank=True)
    type_of_unit = models.CharField(max_length=50, choices=TYPE_CHOICES, default='Ring Main Unit')
    voltage_level = models.CharField(max_length=20, blank=True)
    location = models.CharField(max_length=255, blank=True)
    gps_coordinates = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='Operational')
    protection = models.CharField(max_length=200, blank=True)
    photo_url = models.TextField(blank=True)
    # Legacy inline base64 image, migrated to blob storage by migrate_photos
    photo = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='vit_assets')

    def __str__(self):
        return self.serial_number

    class Meta:
        db_table = 'vit_assets'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['region', 'district'], name='vit_assets_region_idx'),
            models.Index(fields=['status'], name='vit_assets_status_idx'),
        ]


class VITInspection(VersionedModel):
    """Checklist inspection of a VIT asset"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('requires_attention', 'Requires Attention'),
    ]

    asset = models.ForeignKey(VITAsset, on_delete=models.CASCADE, related_name='inspections')
    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='vit_inspections')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='vit_inspections')
    inspection_date = models.DateField()
    checklist = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='completed')
    remarks = models.TextField(blank=True)
    photo_urls = models.JSONField(default=list, blank=True)
    inspected_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='vit_inspections')

    def __str__(self):
        return f"{self.asset.serial_number} @ {self.inspection_date}"

    class Meta:
        db_table = 'vit_inspections'
        ordering = ['-inspection_date', '-created_at']


class OverheadLineInspection(VersionedModel):
    """Pole-by-pole overhead line (network) inspection"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('in-progress', 'In Progress'),
        ('completed', 'Completed'),
    ]

    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='overhead_inspections')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='overhead_inspections')
    feeder_name = models.CharField(max_length=200)
    voltage_level = models.CharField(max_length=20, blank=True)
    reference_pole = models.CharField(max_length=100, blank=True)
    pole_id = models.CharField(max_length=100, blank=True)
    pole_height = models.CharField(max_length=20, blank=True)
    pole_type = models.CharField(max_length=50, blank=True)
    gps_coordinates = models.CharField(max_length=100, blank=True)
    inspection_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    # Component sections: pole_condition, stay_condition, cross_arm_condition, insulators,
    # conductors, lightning_arresters, drop_out_fuse, transformer, recloser
    components = models.JSONField(default=dict, blank=True)
    remarks = models.TextField(blank=True)
    photo_url = models.TextField(blank=True)
    photos = models.JSONField(default=list, blank=True)
    before_photo = models.TextField(blank=True)
    after_photo = models.TextField(blank=True)
    inspector = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='overhead_inspections')

    def __str__(self):
        return f"{self.feeder_name} / {self.pole_id or 'n/a'}"

    class Meta:
        db_table = 'overhead_line_inspections'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['region', 'district'], name='overhead_region_idx'),
            models.Index(fields=['feeder_name'], name='overhead_feeder_idx'),
        ]


class SubstationInspection(VersionedModel):
    """Primary/secondary substation checklist inspection"""
    TYPE_CHOICES = [
        ('primary', 'Primary'),
        ('secondary', 'Secondary'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('in-progress', 'In Progress'),
        ('completed', 'Completed'),
    ]

    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='substation_inspections')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='substation_inspections')
    substation_name = models.CharField(max_length=200, blank=True)
    substation_number = models.CharField(max_length=100)
    substation_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='secondary')
    inspection_date = models.DateField()
    # Item sections keyed by category: site_condition, transformer, general_building, control_equipment, ...
    items = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')
    remarks = models.TextField(blank=True)
    photos = models.JSONField(default=list, blank=True)
    inspector = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='substation_inspections')

    def __str__(self):
        return f"{self.substation_number} @ {self.inspection_date}"

    class Meta:
        db_table = 'substation_inspections'
        ordering = ['-inspection_date', '-created_at']
        indexes = [
            models.Index(fields=['region', 'district'], name='substation_region_idx'),
        ]


class SubstationStatus(VersionedModel):
    """Condition report for a substation's transformer, fuses and earthing"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
    ]

    region = models.ForeignKey('locations.Region', on_delete=models.PROTECT, related_name='substation_statuses')
    district = models.ForeignKey('locations.District', on_delete=models.PROTECT, related_name='substation_statuses')
    substation_number = models.CharField(max_length=100)
    substation_name = models.CharField(max_length=200)
    location = models.CharField(max_length=255, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    rating = models.CharField(max_length=50, blank=True)
    transformer_type = models.CharField(max_length=50, default='PMT')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    inspector_name = models.CharField(max_length=200, blank=True)
    # {name_plate, oil_leakage, bushing, notes, photos, name_plate_photos}
    transformer_conditions = models.JSONField(default=dict, blank=True)
    # {fuse_type, fuse_holder, notes, photos}
    fuse_conditions = models.JSONField(default=dict, blank=True)
    # {earthing_status, notes, photos}
    earthing_conditions = models.JSONField(default=dict, blank=True)
    # Client generated id, rejects resubmission of the same form
    submission_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='substation_statuses')

    def __str__(self):
        return f"{self.substation_number} {self.substation_name}"

    class Meta:
        db_table = 'substation_statuses'
        ordering = ['-created_at']
        verbose_name_plural = 'substation statuses'
        indexes = [
            models.Index(fields=['region', 'district'], name='substation_status_region_idx'),
        ]
