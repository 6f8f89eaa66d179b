from rest_framework import serializers
from .models import Region, District, Feeder


class RegionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Region
        fields = ['id', 'name', 'code', 'created_at', 'updated_at']


class DistrictSerializer(serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True)

    class Meta:
        model = District
        fields = ['id', 'name', 'region', 'region_name', 'population_rural', 'population_urban',
                  'population_metro', 'created_at', 'updated_at']


class FeederSerializer(serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True, default=None)

    class Meta:
        model = Feeder
        fields = ['id', 'name', 'region', 'region_name', 'district', 'district_name', 'voltage_level',
                  'bsp_pss', 'feeder_type', 'created_at', 'updated_at']

    def validate(self, attrs):
        region = attrs.get('region', getattr(self.instance, 'region', None))
        district = attrs.get('district', getattr(self.instance, 'district', None))
        if district and region and district.region_id != region.id:
            raise serializers.ValidationError({'district': 'District does not belong to the selected region'})
        return attrs
