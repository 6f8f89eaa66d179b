from django.db import models


class Region(models.Model):
    """Operational region (including subtransmission regions)"""
    name = models.CharField(max_length=200, unique=True)
    code = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'regions'
        ordering = ['name']


class District(models.Model):
    """District within a region"""
    name = models.CharField(max_length=200)
    region = models.ForeignKey(Region, on_delete=models.CASCADE, related_name='districts')
    population_rural = models.PositiveIntegerField(default=0)
    population_urban = models.PositiveIntegerField(default=0)
    population_metro = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.region.name})"

    class Meta:
        db_table = 'districts'
        ordering = ['name']
        indexes = [
            models.Index(fields=['region', 'name'], name='districts_region_name_idx'),
        ]


class Feeder(models.Model):
    """Distribution feeder"""
    VOLTAGE_CHOICES = [
        ('11kV', '11kV'),
        ('33kV', '33kV'),
        ('0.433kV', '0.433kV'),
    ]

    name = models.CharField(max_length=200)
    region = models.ForeignKey(Region, on_delete=models.CASCADE, related_name='feeders')
    district = models.ForeignKey(District, on_delete=models.SET_NULL, null=True, blank=True, related_name='feeders')
    voltage_level = models.CharField(max_length=20, choices=VOLTAGE_CHOICES, default='11kV')
    bsp_pss = models.CharField(max_length=200, blank=True, help_text="Bulk supply point / primary substation")
    feeder_type = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'feeders'
        ordering = ['name']
        indexes = [
            models.Index(fields=['region', 'name'], name='feeders_region_name_idx'),
        ]
