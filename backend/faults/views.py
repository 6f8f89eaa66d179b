import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from django.db.models import Count, Sum
from django.shortcuts import get_object_or_404

from backend.core.records import list_records, create_record, record_detail
from backend.core.access import apply_access_scope, get_access_scope
from backend.core.cache_utils import namespace_key, FAULTS_NAMESPACE, FAULT_ANALYTICS_CACHE_TTL
from backend.core.pagination import get_limit_offset, is_truthy, page_payload
from backend.core.permissions import IsApprovedUser, feature_permission
from .filters import OP5FaultFilter, ControlOutageFilter
from .models import OP5Fault, ControlOutage
from .serializers import OP5FaultSerializer, ControlOutageSerializer

logger = logging.getLogger('backend.faults')

FAULT_PERMISSIONS = [IsAuthenticated, IsApprovedUser, feature_permission('fault_reporting')]
FAULT_SORT_FIELDS = ['occurrence_date', 'restoration_date', 'created_at', 'status']
# Every query parameter either fault filterset understands changes the result
ANALYTICS_FILTER_PARAMS = sorted(set(OP5FaultFilter.base_filters) | set(ControlOutageFilter.base_filters))


def _filtered(request, model, filter_class):
    queryset = apply_access_scope(model.objects.select_related('region', 'district'), request.user)
    return filter_class(request.query_params, queryset=queryset)


# OP5 fault views
@api_view(['GET', 'POST'])
@permission_classes(FAULT_PERMISSIONS)
def op5_fault_list_create(request):
    """List OP5 faults (scoped, filtered, paginated) or report one"""
    if request.method == 'GET':
        return list_records(request, OP5Fault.objects.select_related('region', 'district'), OP5FaultFilter,
                            OP5FaultSerializer, FAULT_SORT_FIELDS, default_sort='-occurrence_date')
    return create_record(request, OP5FaultSerializer, 'OP5Fault', 'created_by', 'substation_number')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(FAULT_PERMISSIONS)
def op5_fault_detail(request, pk):
    fault = get_object_or_404(apply_access_scope(OP5Fault.objects.select_related('region', 'district'), request.user), pk=pk)
    return record_detail(request, fault, OP5FaultSerializer, 'OP5Fault', 'substation_number')


# Control outage views
@api_view(['GET', 'POST'])
@permission_classes(FAULT_PERMISSIONS)
def control_outage_list_create(request):
    """List control outages or record one (metrics are derived on save)"""
    if request.method == 'GET':
        return list_records(request, ControlOutage.objects.select_related('region', 'district'), ControlOutageFilter,
                            ControlOutageSerializer, FAULT_SORT_FIELDS, default_sort='-occurrence_date')
    return create_record(request, ControlOutageSerializer, 'ControlOutage', 'created_by', 'feeder_name')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(FAULT_PERMISSIONS)
def control_outage_detail(request, pk):
    outage = get_object_or_404(apply_access_scope(ControlOutage.objects.select_related('region', 'district'), request.user), pk=pk)
    return record_detail(request, outage, ControlOutageSerializer, 'ControlOutage', 'feeder_name')


# Combined views
@api_view(['GET'])
@permission_classes(FAULT_PERMISSIONS)
def fault_list(request):
    """
    OP5 faults and control outages in one list, ordered by occurrence date.

    Each row carries ``fault_category`` (``op5`` or ``control``).
    """
    op5_filterset = _filtered(request, OP5Fault, OP5FaultFilter)
    control_filterset = _filtered(request, ControlOutage, ControlOutageFilter)
    if not op5_filterset.is_valid():
        return Response(op5_filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    if not control_filterset.is_valid():
        return Response(control_filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    op5_qs = op5_filterset.qs
    control_qs = control_filterset.qs
    if is_truthy(request.query_params.get('countOnly', 'false')):
        return Response({'total': op5_qs.count() + control_qs.count()})

    limit, offset = get_limit_offset(request, default_limit=20, max_limit=1000)
    descending = request.query_params.get('order', 'desc').lower() != 'asc'
    ordering = '-occurrence_date' if descending else 'occurrence_date'

    # Merging needs the first offset+limit rows of each source
    window = offset + limit
    records = list(op5_qs.order_by(ordering, '-id')[:window]) + list(control_qs.order_by(ordering, '-id')[:window])
    records.sort(key=lambda record: record.occurrence_date, reverse=descending)
    rows = [
        (OP5FaultSerializer if isinstance(record, OP5Fault) else ControlOutageSerializer)(record).data
        for record in records[offset:offset + limit]
    ]
    total = op5_qs.count() + control_qs.count()
    if limit > 500:
        logger.warning(f"Large combined fault query: limit={limit} by {request.user.username}")
    return Response(page_payload(rows, total, limit, offset))


@api_view(['GET'])
@permission_classes(FAULT_PERMISSIONS)
def fault_detail(request, pk):
    """Look up a fault by id in OP5 faults first, then control outages"""
    fault = apply_access_scope(OP5Fault.objects.select_related('region', 'district'), request.user).filter(pk=pk).first()
    if fault is not None:
        return Response(OP5FaultSerializer(fault).data)
    outage = apply_access_scope(ControlOutage.objects.select_related('region', 'district'), request.user).filter(pk=pk).first()
    if outage is not None:
        return Response(ControlOutageSerializer(outage).data)
    return Response({'error': 'Fault not found', 'id': pk}, status=status.HTTP_404_NOT_FOUND)


def mean_time_to_repair(op5_queryset):
    """Average hours from repair start to restoration over resolved faults with both dates"""
    durations = [
        (restored - repaired).total_seconds() / 3600
        for repaired, restored in op5_queryset.filter(
            status='resolved', repair_date__isnull=False, restoration_date__isnull=False
        ).values_list('repair_date', 'restoration_date')
        if restored >= repaired
    ]
    if not durations:
        return 0
    return round(sum(durations) / len(durations), 2)


def build_fault_analytics(op5_queryset, control_queryset):
    op5_by_status = dict(op5_queryset.values_list('status').annotate(n=Count('id')).order_by())
    control_by_status = dict(control_queryset.values_list('status').annotate(n=Count('id')).order_by())
    control_totals = control_queryset.aggregate(
        unserved_energy=Sum('unserved_energy_mwh'),
        interruption_duration=Sum('customer_interruption_duration'),
        interruption_frequency=Sum('customer_interruption_frequency'),
    )
    by_status = {
        key: op5_by_status.get(key, 0) + control_by_status.get(key, 0)
        for key in set(op5_by_status) | set(control_by_status)
    }
    return {
        'total': sum(by_status.values()),
        'by_status': by_status,
        'by_category': {
            'op5': sum(op5_by_status.values()),
            'control': sum(control_by_status.values()),
        },
        'by_fault_type': dict(op5_queryset.values_list('fault_type').annotate(n=Count('id')).order_by()),
        'mttr_hours': mean_time_to_repair(op5_queryset),
        'total_unserved_energy_mwh': round(control_totals['unserved_energy'] or 0, 4),
        'total_customer_interruption_duration': round(control_totals['interruption_duration'] or 0, 2),
        'total_customer_interruption_frequency': control_totals['interruption_frequency'] or 0,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('analytics')])
def fault_analytics(request):
    """Totals by status and category, MTTR, unserved energy and customer interruption"""
    filters = {
        key: request.query_params.get(key)
        for key in ANALYTICS_FILTER_PARAMS
        if request.query_params.get(key)
    }
    scope_key = get_access_scope(request.user).cache_key()
    cache_key = namespace_key(FAULTS_NAMESPACE, 'analytics', scope_key, **filters)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        return Response(cached_data)

    op5_filterset = _filtered(request, OP5Fault, OP5FaultFilter)
    control_filterset = _filtered(request, ControlOutage, ControlOutageFilter)
    if not op5_filterset.is_valid() or not control_filterset.is_valid():
        return Response(op5_filterset.errors or control_filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    response_data = build_fault_analytics(op5_filterset.qs, control_filterset.qs)
    cache.set(cache_key, response_data, FAULT_ANALYTICS_CACHE_TTL)
    return Response(response_data)
