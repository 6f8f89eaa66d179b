import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import IntegrityError
from django.core.cache import cache

from backend.core.access import get_access_scope, apply_access_scope
from backend.core.cache_utils import namespace_key, LOCATIONS_NAMESPACE, LOCATION_LIST_CACHE_TTL, FEEDER_LIST_CACHE_TTL
from backend.core.permissions import IsApprovedUser, feature_permission
from backend.core.utils import create_audit_log
from .models import Region, District, Feeder
from .serializers import RegionSerializer, DistrictSerializer, FeederSerializer

logger = logging.getLogger('backend.locations')

LOCATION_PERMISSIONS = [IsAuthenticated, IsApprovedUser, feature_permission('locations')]


def get_scoped_regions(user):
    """Regions visible to the user"""
    scope = get_access_scope(user)
    queryset = Region.objects.all()
    if scope.unrestricted:
        return queryset
    if scope.district_id is not None:
        return queryset.filter(districts__id=scope.district_id)
    if scope.region_names is not None:
        return queryset.filter(name__in=scope.region_names)
    if scope.region_ids:
        return queryset.filter(id__in=scope.region_ids)
    return queryset.none()


def get_scoped_districts(user):
    """Districts visible to the user"""
    scope = get_access_scope(user)
    queryset = District.objects.select_related('region')
    if scope.unrestricted:
        return queryset
    if scope.district_id is not None:
        return queryset.filter(id=scope.district_id)
    if scope.region_names is not None:
        return queryset.filter(region__name__in=scope.region_names)
    if scope.region_ids:
        return queryset.filter(region_id__in=scope.region_ids)
    return queryset.none()


def _save_location(request, serializer, model_name, created=False):
    try:
        instance = serializer.save()
    except IntegrityError as e:
        logger.error(f"IntegrityError saving {model_name}: {str(e)}", exc_info=True)
        return Response({'error': f'A {model_name.lower()} with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request, 'create' if created else 'update', model_name, instance.id, object_name=instance.name)
    logger.info(f"{model_name} '{instance.name}' {'created' if created else 'updated'} by {request.user.username}")
    return Response(serializer.data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


# Region views
@api_view(['GET', 'POST'])
@permission_classes(LOCATION_PERMISSIONS)
def region_list_create(request):
    """List regions visible to the user or create one"""
    if request.method == 'GET':
        scope_key = get_access_scope(request.user).cache_key()
        cache_key = namespace_key(LOCATIONS_NAMESPACE, 'regions', scope_key)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            logger.debug(f"Cache hit for region list (scope: {scope_key})")
            return Response(cached_data)

        serializer = RegionSerializer(get_scoped_regions(request.user).distinct(), many=True)
        response_data = serializer.data
        cache.set(cache_key, response_data, LOCATION_LIST_CACHE_TTL)
        return Response(response_data)

    serializer = RegionSerializer(data=request.data)
    if serializer.is_valid():
        return _save_location(request, serializer, 'Region', created=True)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(LOCATION_PERMISSIONS)
def region_detail(request, pk):
    """Retrieve, update or delete a region"""
    region = get_object_or_404(get_scoped_regions(request.user).distinct(), pk=pk)

    if request.method == 'GET':
        return Response(RegionSerializer(region).data)
    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'Region', region.id, object_name=region.name)
        region.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = RegionSerializer(region, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        return _save_location(request, serializer, 'Region')
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# District views
@api_view(['GET', 'POST'])
@permission_classes(LOCATION_PERMISSIONS)
def district_list_create(request):
    """List districts visible to the user (optionally by region) or create one"""
    if request.method == 'GET':
        region_id = request.query_params.get('region')
        scope_key = get_access_scope(request.user).cache_key()
        cache_key = namespace_key(LOCATIONS_NAMESPACE, 'districts', scope_key, region_id)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            return Response(cached_data)

        districts = get_scoped_districts(request.user)
        if region_id:
            districts = districts.filter(region_id=region_id)
        response_data = DistrictSerializer(districts, many=True).data
        cache.set(cache_key, response_data, LOCATION_LIST_CACHE_TTL)
        return Response(response_data)

    serializer = DistrictSerializer(data=request.data)
    if serializer.is_valid():
        region = serializer.validated_data['region']
        if not get_scoped_regions(request.user).filter(pk=region.pk).exists():
            return Response({'error': 'You cannot add districts outside your region'}, status=status.HTTP_403_FORBIDDEN)
        if District.objects.filter(region=region, name__iexact=serializer.validated_data['name']).exists():
            return Response({'error': 'A district with this name already exists in the region'}, status=status.HTTP_400_BAD_REQUEST)
        return _save_location(request, serializer, 'District', created=True)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(LOCATION_PERMISSIONS)
def district_detail(request, pk):
    """Retrieve, update or delete a district"""
    district = get_object_or_404(get_scoped_districts(request.user), pk=pk)

    if request.method == 'GET':
        return Response(DistrictSerializer(district).data)
    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'District', district.id, object_name=district.name)
        district.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = DistrictSerializer(district, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        return _save_location(request, serializer, 'District')
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Feeder views
@api_view(['GET', 'POST'])
@permission_classes(LOCATION_PERMISSIONS)
def feeder_list_create(request):
    """List feeders (filter by region/district/voltage) or create one"""
    if request.method == 'GET':
        filters = {
            key: request.query_params.get(key)
            for key in ('region', 'district', 'voltage_level')
            if request.query_params.get(key)
        }
        scope_key = get_access_scope(request.user).cache_key()
        cache_key = namespace_key(LOCATIONS_NAMESPACE, 'feeders', scope_key, **filters)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            return Response(cached_data)

        feeders = apply_access_scope(Feeder.objects.select_related('region', 'district'), request.user)
        if filters:
            feeders = feeders.filter(**filters)
        response_data = FeederSerializer(feeders, many=True).data
        cache.set(cache_key, response_data, FEEDER_LIST_CACHE_TTL)
        return Response(response_data)

    serializer = FeederSerializer(data=request.data)
    if serializer.is_valid():
        return _save_location(request, serializer, 'Feeder', created=True)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(LOCATION_PERMISSIONS)
def feeder_detail(request, pk):
    """Retrieve, update or delete a feeder"""
    feeder = get_object_or_404(apply_access_scope(Feeder.objects.all(), request.user), pk=pk)

    if request.method == 'GET':
        return Response(FeederSerializer(feeder).data)
    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'Feeder', feeder.id, object_name=feeder.name)
        feeder.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = FeederSerializer(feeder, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        return _save_location(request, serializer, 'Feeder')
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
