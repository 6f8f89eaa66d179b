from django.contrib import admin
from .models import LoadMonitoringRecord


@admin.register(LoadMonitoringRecord)
class LoadMonitoringRecordAdmin(admin.ModelAdmin):
    list_display = ['substation_number', 'region', 'district', 'date', 'rating', 'percentage_load', 'load_status']
    list_filter = ['load_status', 'peak_load_status', 'region']
    search_fields = ['substation_number', 'substation_name', 'location']
    readonly_fields = LoadMonitoringRecord.METRIC_FIELDS + ['version', 'created_at', 'updated_at']
    date_hierarchy = 'date'
