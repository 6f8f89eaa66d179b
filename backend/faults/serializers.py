from rest_framework import serializers

from backend.assets.serializers import RegionDistrictMixin
from .models import OP5Fault, ControlOutage


class FaultDatesMixin:
    """Reject repair/restoration dates that precede the occurrence"""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        occurrence = attrs.get('occurrence_date', getattr(self.instance, 'occurrence_date', None))
        errors = {}
        for field in ('repair_date', 'restoration_date'):
            value = attrs.get(field, getattr(self.instance, field, None))
            if value and occurrence and value < occurrence:
                errors[field] = f'{field.replace("_", " ").capitalize()} cannot be before the occurrence date'
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class OP5FaultSerializer(FaultDatesMixin, RegionDistrictMixin, serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)
    outage_duration_hours = serializers.FloatField(read_only=True)
    repair_duration_hours = serializers.FloatField(read_only=True)
    fault_category = serializers.SerializerMethodField()

    class Meta:
        model = OP5Fault
        fields = ['id', 'fault_category', 'region', 'region_name', 'district', 'district_name',
                  'fault_type', 'specific_fault_type', 'fault_location', 'substation_number',
                  'occurrence_date', 'repair_date', 'repair_end_date', 'restoration_date', 'status',
                  'affected_population_rural', 'affected_population_urban', 'affected_population_metro',
                  'reason', 'materials_used', 'outage_description', 'outage_duration_hours',
                  'repair_duration_hours', 'created_by', 'version', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'version', 'created_at', 'updated_at']

    def get_fault_category(self, obj):
        return 'op5'

    def validate_materials_used(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('materials_used must be a list')
        return value


class ControlOutageSerializer(FaultDatesMixin, RegionDistrictMixin, serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)
    fault_category = serializers.SerializerMethodField()

    class Meta:
        model = ControlOutage
        fields = ['id', 'fault_category', 'region', 'region_name', 'district', 'district_name',
                  'feeder_name', 'voltage_level', 'fault_type', 'occurrence_date', 'restoration_date',
                  'load_mw', 'customers_affected_rural', 'customers_affected_urban',
                  'customers_affected_metro', 'area_affected', 'reason', 'control_panel_indications',
                  'status'] + ControlOutage.DERIVED_FIELDS + [
                  'created_by', 'version', 'created_at', 'updated_at']
        read_only_fields = ControlOutage.DERIVED_FIELDS + ['created_by', 'version', 'created_at', 'updated_at']

    def get_fault_category(self, obj):
        return 'control'

    def validate_load_mw(self, value):
        if value < 0:
            raise serializers.ValidationError('Load cannot be negative')
        return value
