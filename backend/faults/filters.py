import django_filters
from django.db.models import Q

from .models import OP5Fault, ControlOutage


class FaultFilter(django_filters.FilterSet):
    region = django_filters.NumberFilter(field_name='region_id', lookup_expr='exact')
    district = django_filters.NumberFilter(field_name='district_id', lookup_expr='exact')
    status = django_filters.CharFilter(field_name='status', lookup_expr='iexact')
    start_date = django_filters.DateFilter(field_name='occurrence_date', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='occurrence_date', lookup_expr='date__lte')
    search = django_filters.CharFilter(method='filter_search')

    search_fields = []

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        query = Q()
        for field in self.search_fields:
            query |= Q(**{f'{field}__icontains': value})
        return queryset.filter(query)


class OP5FaultFilter(FaultFilter):
    fault_type = django_filters.CharFilter(field_name='fault_type', lookup_expr='iexact')
    search_fields = ['fault_type', 'specific_fault_type', 'outage_description', 'substation_number', 'fault_location']

    class Meta:
        model = OP5Fault
        fields = ['region', 'district', 'status', 'fault_type']


class ControlOutageFilter(FaultFilter):
    feeder = django_filters.CharFilter(field_name='feeder_name', lookup_expr='icontains')
    search_fields = ['fault_type', 'reason', 'area_affected', 'feeder_name']

    class Meta:
        model = ControlOutage
        fields = ['region', 'district', 'status', 'feeder']
