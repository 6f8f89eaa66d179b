import django_filters
from django.db.models import Q

from .models import VITAsset, VITInspection, OverheadLineInspection, SubstationInspection, SubstationStatus


class LocationFilterMixin(django_filters.FilterSet):
    region = django_filters.NumberFilter(field_name='region_id', lookup_expr='exact')
    district = django_filters.NumberFilter(field_name='district_id', lookup_expr='exact')
    status = django_filters.CharFilter(field_name='status', lookup_expr='iexact')


class VITAssetFilter(LocationFilterMixin):
    feeder = django_filters.CharFilter(field_name='feeder_name', lookup_expr='icontains')
    type_of_unit = django_filters.CharFilter(field_name='type_of_unit', lookup_expr='iexact')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = VITAsset
        fields = ['region', 'district', 'status', 'feeder', 'type_of_unit']

    def filter_search(self, queryset, name, value):
        """Search serial number, location and feeder"""
        if not value:
            return queryset
        return queryset.filter(
            Q(serial_number__icontains=value) |
            Q(location__icontains=value) |
            Q(feeder_name__icontains=value)
        )


class VITInspectionFilter(LocationFilterMixin):
    asset = django_filters.NumberFilter(field_name='asset_id', lookup_expr='exact')
    start_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = VITInspection
        fields = ['region', 'district', 'status', 'asset']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(asset__serial_number__icontains=value) | Q(remarks__icontains=value)
        )


class OverheadLineInspectionFilter(LocationFilterMixin):
    feeder = django_filters.CharFilter(field_name='feeder_name', lookup_expr='icontains')
    start_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = OverheadLineInspection
        fields = ['region', 'district', 'status', 'feeder']

    def filter_search(self, queryset, name, value):
        """Search feeder, pole and reference pole"""
        if not value:
            return queryset
        return queryset.filter(
            Q(feeder_name__icontains=value) |
            Q(pole_id__icontains=value) |
            Q(reference_pole__icontains=value)
        )


class SubstationInspectionFilter(LocationFilterMixin):
    substation_type = django_filters.CharFilter(field_name='substation_type', lookup_expr='iexact')
    start_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = SubstationInspection
        fields = ['region', 'district', 'status', 'substation_type']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(substation_number__icontains=value) | Q(substation_name__icontains=value)
        )


class SubstationStatusFilter(LocationFilterMixin):
    transformer_type = django_filters.CharFilter(field_name='transformer_type', lookup_expr='iexact')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = SubstationStatus
        fields = ['region', 'district', 'status', 'transformer_type']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(substation_number__icontains=value) | Q(substation_name__icontains=value)
        )
