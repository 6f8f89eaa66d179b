import django_filters
from django.db.models import Q

from .models import LoadMonitoringRecord


class LoadMonitoringFilter(django_filters.FilterSet):
    region = django_filters.NumberFilter(field_name='region_id', lookup_expr='exact')
    district = django_filters.NumberFilter(field_name='district_id', lookup_expr='exact')
    start_date = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='date', lookup_expr='lte')
    substation = django_filters.CharFilter(method='filter_substation')
    load_status = django_filters.CharFilter(field_name='load_status', lookup_expr='iexact')
    peak_load_status = django_filters.CharFilter(field_name='peak_load_status', lookup_expr='iexact')

    class Meta:
        model = LoadMonitoringRecord
        fields = ['region', 'district', 'load_status', 'peak_load_status']

    def filter_substation(self, queryset, name, value):
        """Match substation number or name"""
        if not value:
            return queryset
        return queryset.filter(Q(substation_number__icontains=value) | Q(substation_name__icontains=value))
