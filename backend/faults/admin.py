from django.contrib import admin
from .models import OP5Fault, ControlOutage


@admin.register(OP5Fault)
class OP5FaultAdmin(admin.ModelAdmin):
    list_display = ['substation_number', 'region', 'district', 'fault_type', 'occurrence_date', 'status']
    list_filter = ['status', 'fault_type', 'region']
    search_fields = ['substation_number', 'fault_location', 'outage_description']
    readonly_fields = ['version', 'created_at', 'updated_at']
    date_hierarchy = 'occurrence_date'


@admin.register(ControlOutage)
class ControlOutageAdmin(admin.ModelAdmin):
    list_display = ['feeder_name', 'region', 'district', 'occurrence_date', 'duration_hours', 'unserved_energy_mwh', 'status']
    list_filter = ['status', 'region']
    search_fields = ['feeder_name', 'area_affected', 'reason']
    readonly_fields = ControlOutage.DERIVED_FIELDS + ['version', 'created_at', 'updated_at']
    date_hierarchy = 'occurrence_date'
