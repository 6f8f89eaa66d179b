from django.contrib import admin
from .models import Region, District, Feeder


@admin.register(Region)
class RegionAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'created_at']
    search_fields = ['name', 'code']
    ordering = ['name']


@admin.register(District)
class DistrictAdmin(admin.ModelAdmin):
    list_display = ['name', 'region', 'created_at']
    list_filter = ['region']
    search_fields = ['name']
    ordering = ['region__name', 'name']


@admin.register(Feeder)
class FeederAdmin(admin.ModelAdmin):
    list_display = ['name', 'region', 'district', 'voltage_level', 'bsp_pss']
    list_filter = ['region', 'voltage_level']
    search_fields = ['name', 'bsp_pss']
    ordering = ['name']
