from django.contrib import admin
from .models import VITAsset, VITInspection, OverheadLineInspection, SubstationInspection, SubstationStatus


@admin.register(VITAsset)
class VITAssetAdmin(admin.ModelAdmin):
    list_display = ['serial_number', 'region', 'district', 'type_of_unit', 'status', 'version', 'updated_at']
    list_filter = ['status', 'type_of_unit', 'region']
    search_fields = ['serial_number', 'feeder_name', 'location']
    readonly_fields = ['version', 'created_at', 'updated_at']
    exclude = ['photo']


@admin.register(VITInspection)
class VITInspectionAdmin(admin.ModelAdmin):
    list_display = ['asset', 'inspection_date', 'status', 'inspected_by']
    list_filter = ['status', 'region']
    search_fields = ['asset__serial_number']
    readonly_fields = ['version', 'created_at', 'updated_at']


@admin.register(OverheadLineInspection)
class OverheadLineInspectionAdmin(admin.ModelAdmin):
    list_display = ['feeder_name', 'pole_id', 'region', 'district', 'status', 'inspection_date']
    list_filter = ['status', 'region']
    search_fields = ['feeder_name', 'pole_id', 'reference_pole']
    readonly_fields = ['version', 'created_at', 'updated_at']
    exclude = ['before_photo', 'after_photo']


@admin.register(SubstationInspection)
class SubstationInspectionAdmin(admin.ModelAdmin):
    list_display = ['substation_number', 'substation_name', 'substation_type', 'region', 'inspection_date', 'status']
    list_filter = ['substation_type', 'status', 'region']
    search_fields = ['substation_number', 'substation_name']
    readonly_fields = ['version', 'created_at', 'updated_at']


@admin.register(SubstationStatus)
class SubstationStatusAdmin(admin.ModelAdmin):
    list_display = ['substation_number', 'substation_name', 'transformer_type', 'region', 'district', 'status']
    list_filter = ['status', 'transformer_type', 'region']
    search_fields = ['substation_number', 'substation_name', 'submission_id']
    readonly_fields = ['version', 'created_at', 'updated_at']
