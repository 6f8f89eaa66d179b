from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from backend.core.access import apply_access_scope
from backend.core.permissions import IsApprovedUser, feature_permission
from backend.core.records import list_records, create_record, record_detail
from .filters import (
    VITAssetFilter, VITInspectionFilter, OverheadLineInspectionFilter, SubstationInspectionFilter,
    SubstationStatusFilter,
)
from .models import VITAsset, VITInspection, OverheadLineInspection, SubstationInspection, SubstationStatus
from .serializers import (
    VITAssetSerializer, VITInspectionSerializer, OverheadLineInspectionSerializer,
    SubstationInspectionSerializer, SubstationStatusSerializer,
)

VIT_SORT_FIELDS = ['created_at', 'updated_at', 'serial_number', 'status', 'feeder_name']
INSPECTION_SORT_FIELDS = ['created_at', 'updated_at', 'inspection_date', 'status']
OVERHEAD_SORT_FIELDS = INSPECTION_SORT_FIELDS + ['feeder_name', 'pole_id']
SUBSTATION_SORT_FIELDS = INSPECTION_SORT_FIELDS + ['substation_number', 'substation_type']
STATUS_SORT_FIELDS = ['created_at', 'updated_at', 'substation_number', 'status']


# VIT asset views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('asset_management')])
def vit_asset_list_create(request):
    """List VIT assets (scoped, filtered, paginated) or create one"""
    if request.method == 'GET':
        queryset = VITAsset.objects.select_related('region', 'district')
        return list_records(request, queryset, VITAssetFilter, VITAssetSerializer, VIT_SORT_FIELDS,
                            default_limit=50, max_limit=100, count_key='count')
    return create_record(request, VITAssetSerializer, 'VITAsset', 'created_by', 'serial_number')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('asset_management')])
def vit_asset_count(request):
    """Quick count of VIT assets visible to the user, honoring list filters"""
    queryset = apply_access_scope(VITAsset.objects.all(), request.user)
    filterset = VITAssetFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response({'count': filterset.qs.count()})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('asset_management')])
def vit_asset_detail(request, pk):
    """Retrieve, update or delete a VIT asset"""
    asset = get_object_or_404(apply_access_scope(VITAsset.objects.select_related('region', 'district'), request.user), pk=pk)
    return record_detail(request, asset, VITAssetSerializer, 'VITAsset', 'serial_number')


# VIT inspection views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('vit_inspection')])
def vit_inspection_list_create(request):
    """List VIT inspections or record a new one"""
    if request.method == 'GET':
        queryset = VITInspection.objects.select_related('asset', 'region', 'district')
        return list_records(request, queryset, VITInspectionFilter, VITInspectionSerializer,
                            INSPECTION_SORT_FIELDS, default_sort='-inspection_date')
    return create_record(request, VITInspectionSerializer, 'VITInspection', 'inspected_by', 'id')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('vit_inspection')])
def vit_inspection_detail(request, pk):
    inspection = get_object_or_404(apply_access_scope(VITInspection.objects.select_related('asset'), request.user), pk=pk)
    return record_detail(request, inspection, VITInspectionSerializer, 'VITInspection', 'id')


# Overhead line inspection views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('overhead_line_inspection')])
def overhead_inspection_list_create(request):
    """List overhead line inspections or record a new one"""
    if request.method == 'GET':
        queryset = OverheadLineInspection.objects.select_related('region', 'district')
        return list_records(request, queryset, OverheadLineInspectionFilter, OverheadLineInspectionSerializer,
                            OVERHEAD_SORT_FIELDS)
    return create_record(request, OverheadLineInspectionSerializer, 'OverheadLineInspection', 'inspector', 'feeder_name')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('overhead_line_inspection')])
def overhead_inspection_detail(request, pk):
    inspection = get_object_or_404(apply_access_scope(OverheadLineInspection.objects.all(), request.user), pk=pk)
    return record_detail(request, inspection, OverheadLineInspectionSerializer, 'OverheadLineInspection', 'feeder_name')


# Substation inspection views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('substation_inspection')])
def substation_inspection_list_create(request):
    """List substation inspections or record a new one"""
    if request.method == 'GET':
        queryset = SubstationInspection.objects.select_related('region', 'district')
        return list_records(request, queryset, SubstationInspectionFilter, SubstationInspectionSerializer,
                            SUBSTATION_SORT_FIELDS, default_sort='-inspection_date')
    return create_record(request, SubstationInspectionSerializer, 'SubstationInspection', 'inspector', 'substation_number')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('substation_inspection')])
def substation_inspection_detail(request, pk):
    inspection = get_object_or_404(apply_access_scope(SubstationInspection.objects.all(), request.user), pk=pk)
    return record_detail(request, inspection, SubstationInspectionSerializer, 'SubstationInspection', 'substation_number')


# Substation status views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('substation_status')])
def substation_status_list_create(request):
    """List substation status reports or submit one; a repeated submission_id is a conflict"""
    if request.method == 'GET':
        queryset = SubstationStatus.objects.select_related('region', 'district')
        return list_records(request, queryset, SubstationStatusFilter, SubstationStatusSerializer,
                            STATUS_SORT_FIELDS, default_limit=20)
    submission_id = request.data.get('submission_id')
    if submission_id and SubstationStatus.objects.filter(submission_id=submission_id).exists():
        return Response({'error': 'This submission has already been recorded'}, status=status.HTTP_409_CONFLICT)
    return create_record(request, SubstationStatusSerializer, 'SubstationStatus', 'created_by', 'substation_number')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('substation_status')])
def substation_status_detail(request, pk):
    report = get_object_or_404(apply_access_scope(SubstationStatus.objects.select_related('region', 'district'), request.user), pk=pk)
    return record_detail(request, report, SubstationStatusSerializer, 'SubstationStatus', 'substation_number')
