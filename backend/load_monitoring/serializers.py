from rest_framework import serializers

from backend.assets.serializers import RegionDistrictMixin
from .calculations import PHASE_KEYS
from .models import LoadMonitoringRecord


class FeederLegSerializer(serializers.Serializer):
    red_phase_current = serializers.FloatField(min_value=0)
    yellow_phase_current = serializers.FloatField(min_value=0)
    blue_phase_current = serializers.FloatField(min_value=0)
    neutral_current = serializers.FloatField(min_value=0)


class LoadMonitoringRecordSerializer(RegionDistrictMixin, serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)
    neutral_warning_level = serializers.SerializerMethodField()
    neutral_warning_message = serializers.SerializerMethodField()
    imbalance_warning_level = serializers.SerializerMethodField()
    imbalance_warning_message = serializers.SerializerMethodField()

    class Meta:
        model = LoadMonitoringRecord
        fields = ['id', 'date', 'time', 'region', 'region_name', 'district', 'district_name',
                  'substation_name', 'substation_number', 'location', 'gps_location', 'rating',
                  'peak_load_status', 'feeder_legs'] + LoadMonitoringRecord.METRIC_FIELDS + [
                  'neutral_warning_level', 'neutral_warning_message', 'imbalance_warning_level',
                  'imbalance_warning_message', 'created_by', 'version', 'created_at', 'updated_at']
        read_only_fields = LoadMonitoringRecord.METRIC_FIELDS + ['created_by', 'version', 'created_at', 'updated_at']

    def validate_rating(self, value):
        if value <= 0:
            raise serializers.ValidationError('Rating must be greater than 0')
        return value

    def validate_feeder_legs(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('feeder_legs must be a list')
        legs = FeederLegSerializer(data=value, many=True)
        legs.is_valid(raise_exception=True)
        return [{key: leg[key] for key in PHASE_KEYS} for leg in legs.validated_data]

    def get_neutral_warning_level(self, obj):
        return obj.neutral_warning[0]

    def get_neutral_warning_message(self, obj):
        return obj.neutral_warning[1]

    def get_imbalance_warning_level(self, obj):
        return obj.imbalance_warning[0]

    def get_imbalance_warning_message(self, obj):
        return obj.imbalance_warning[1]
