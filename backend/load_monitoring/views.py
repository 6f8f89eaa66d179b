from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from backend.core.access import apply_access_scope
from backend.core.permissions import IsApprovedUser, feature_permission
from backend.core.records import list_records, create_record, record_detail
from .filters import LoadMonitoringFilter
from .models import LoadMonitoringRecord
from .serializers import LoadMonitoringRecordSerializer

LOAD_PERMISSIONS = [IsAuthenticated, IsApprovedUser, feature_permission('load_monitoring')]
LOAD_SORT_FIELDS = ['date', 'created_at', 'updated_at', 'percentage_load', 'substation_number', 'rating']


@api_view(['GET', 'POST'])
@permission_classes(LOAD_PERMISSIONS)
def load_record_list_create(request):
    """List load monitoring records or submit a reading"""
    if request.method == 'GET':
        queryset = LoadMonitoringRecord.objects.select_related('region', 'district')
        return list_records(request, queryset, LoadMonitoringFilter, LoadMonitoringRecordSerializer,
                            LOAD_SORT_FIELDS, default_sort='-date')
    return create_record(request, LoadMonitoringRecordSerializer, 'LoadMonitoringRecord', 'created_by', 'substation_number')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(LOAD_PERMISSIONS)
def load_record_detail(request, pk):
    record = get_object_or_404(apply_access_scope(LoadMonitoringRecord.objects.select_related('region', 'district'), request.user), pk=pk)
    return record_detail(request, record, LoadMonitoringRecordSerializer, 'LoadMonitoringRecord', 'substation_number')
