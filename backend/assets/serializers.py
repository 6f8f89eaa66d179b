from rest_framework import serializers

from .models import VITAsset, VITInspection, OverheadLineInspection, SubstationInspection, SubstationStatus
from .photo_migration import PHOTO_FIELDS, strip_base64


class RegionDistrictMixin:
    """Validates that the district belongs to the region and exposes their names"""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        region = attrs.get('region', getattr(self.instance, 'region', None))
        district = attrs.get('district', getattr(self.instance, 'district', None))
        if district and region and district.region_id != region.id:
            raise serializers.ValidationError({'district': 'District does not belong to the selected region'})
        return attrs


class PhotoFieldsMixin:
    """Omit base64 payloads from output unless the view asked for them"""
    photo_key = None

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.context.get('include_base64'):
            return data
        _, _, fields = PHOTO_FIELDS[self.photo_key]
        for field in fields:
            if field in data:
                data[field] = strip_base64(data[field])
        return data


class VITAssetSerializer(PhotoFieldsMixin, RegionDistrictMixin, serializers.ModelSerializer):
    photo_key = 'vit'
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)

    class Meta:
        model = VITAsset
        fields = ['id', 'serial_number', 'region', 'region_name', 'district', 'district_name',
                  'feeder_name', 'type_of_unit', 'voltage_level', 'location', 'gps_coordinates',
                  'status', 'protection', 'photo_url', 'photo', 'created_by', 'version',
                  'created_at', 'updated_at']
        read_only_fields = ['created_by', 'version', 'created_at', 'updated_at']


class VITInspectionSerializer(PhotoFieldsMixin, RegionDistrictMixin, serializers.ModelSerializer):
    photo_key = 'vit-inspection'
    asset_serial_number = serializers.CharField(source='asset.serial_number', read_only=True)
    region = serializers.PrimaryKeyRelatedField(read_only=True)
    district = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = VITInspection
        fields = ['id', 'asset', 'asset_serial_number', 'region', 'district', 'inspection_date',
                  'checklist', 'status', 'remarks', 'photo_urls', 'inspected_by', 'version',
                  'created_at', 'updated_at']
        read_only_fields = ['inspected_by', 'version', 'created_at', 'updated_at']

    def validate_photo_urls(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('photo_urls must be a list')
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        asset = attrs.get('asset')
        if asset is not None:
            # Inspections inherit the asset's location
            attrs['region'] = asset.region
            attrs['district'] = asset.district
        return attrs


class OverheadLineInspectionSerializer(PhotoFieldsMixin, RegionDistrictMixin, serializers.ModelSerializer):
    photo_key = 'overhead'
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)

    class Meta:
        model = OverheadLineInspection
        fields = ['id', 'region', 'region_name', 'district', 'district_name', 'feeder_name',
                  'voltage_level', 'reference_pole', 'pole_id', 'pole_height', 'pole_type',
                  'gps_coordinates', 'inspection_date', 'status', 'components', 'remarks',
                  'photo_url', 'photos', 'before_photo', 'after_photo', 'inspector', 'version',
                  'created_at', 'updated_at']
        read_only_fields = ['inspector', 'version', 'created_at', 'updated_at']

    def validate_components(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('components must be an object keyed by section')
        return value


class SubstationInspectionSerializer(PhotoFieldsMixin, RegionDistrictMixin, serializers.ModelSerializer):
    photo_key = 'substation'
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)

    class Meta:
        model = SubstationInspection
        fields = ['id', 'region', 'region_name', 'district', 'district_name', 'substation_name',
                  'substation_number', 'substation_type', 'inspection_date', 'items', 'status',
                  'remarks', 'photos', 'inspector', 'version', 'created_at', 'updated_at']
        read_only_fields = ['inspector', 'version', 'created_at', 'updated_at']

    def validate_items(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('items must be an object keyed by category')
        return value


class SubstationStatusSerializer(RegionDistrictMixin, serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)

    class Meta:
        model = SubstationStatus
        fields = ['id', 'region', 'region_name', 'district', 'district_name', 'substation_number',
                  'substation_name', 'location', 'latitude', 'longitude', 'rating', 'transformer_type',
                  'status', 'inspector_name', 'transformer_conditions', 'fuse_conditions',
                  'earthing_conditions', 'submission_id', 'created_by', 'version', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'version', 'created_at', 'updated_at']

    def _validate_conditions(self, value, name):
        if not isinstance(value, dict):
            raise serializers.ValidationError(f'{name} must be an object')
        return value

    def validate_transformer_conditions(self, value):
        return self._validate_conditions(value, 'transformer_conditions')

    def validate_fuse_conditions(self, value):
        return self._validate_conditions(value, 'fuse_conditions')

    def validate_earthing_conditions(self, value):
        return self._validate_conditions(value, 'earthing_conditions')

    def validate_submission_id(self, value):
        return value or None
