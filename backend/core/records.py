"""
Shared list/create/detail handling for region/district scoped records.

Used by the function views of assets, faults and load monitoring: access scope,
FilterSet validation, sorting, pagination, version-bumping saves and audit logs.
"""
import logging
from rest_framework import status
from rest_framework.response import Response

from .access import apply_access_scope, is_in_scope
from .pagination import paginated_response, apply_sorting, is_truthy
from .utils import create_audit_log, diff_changes

logger = logging.getLogger(__name__)


def serializer_context(request):
    return {'request': request, 'include_base64': is_truthy(request.query_params.get('includeBase64', 'false'))}


def list_records(request, queryset, filter_class, serializer_class, sort_fields,
                 default_sort='-created_at', default_limit=50, max_limit=500, count_key='total'):
    queryset = apply_access_scope(queryset, request.user)
    filterset = filter_class(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    queryset = apply_sorting(filterset.qs, request, sort_fields, default=default_sort)
    return paginated_response(
        request, queryset, serializer_class,
        default_limit=default_limit, max_limit=max_limit, count_key=count_key,
        context=serializer_context(request),
    )


def create_record(request, serializer_class, model_name, owner_field, name_attr):
    serializer = serializer_class(data=request.data, context=serializer_context(request))
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    candidate = serializer_class.Meta.model(**{
        key: value for key, value in serializer.validated_data.items() if key in ('region', 'district')
    })
    if not is_in_scope(request.user, candidate):
        return Response({'error': 'You cannot create records outside your assigned area'}, status=status.HTTP_403_FORBIDDEN)

    instance = serializer.save(**{owner_field: request.user})
    create_audit_log(request, 'create', model_name, instance.id, object_name=str(getattr(instance, name_attr)))
    logger.info(f"{model_name} {instance.id} created by {request.user.username}")
    return Response(serializer.data, status=status.HTTP_201_CREATED)


def record_detail(request, instance, serializer_class, model_name, name_attr):
    if request.method == 'GET':
        return Response(serializer_class(instance, context=serializer_context(request)).data)

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', model_name, instance.id, object_name=str(getattr(instance, name_attr)))
        instance.delete()
        logger.info(f"{model_name} {instance.id} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    before = serializer_class(instance, context={'include_base64': False}).data
    serializer = serializer_class(
        instance, data=request.data, partial=request.method == 'PATCH', context=serializer_context(request)
    )
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if not is_in_scope(request.user, serializer_class.Meta.model(
            region=serializer.validated_data.get('region', instance.region),
            district=serializer.validated_data.get('district', instance.district))):
        return Response({'error': 'You cannot move records outside your assigned area'}, status=status.HTTP_403_FORBIDDEN)

    instance = serializer.save()
    after = serializer_class(instance, context={'include_base64': False}).data
    changes = diff_changes(
        {k: v for k, v in before.items() if k not in ('version', 'updated_at')},
        {k: v for k, v in after.items() if k not in ('version', 'updated_at')},
    )
    create_audit_log(request, 'update', model_name, instance.id, changes=changes,
                     object_name=str(getattr(instance, name_attr)))
    return Response(serializer.data)
