"""Shared list-endpoint helpers: limit/offset paging, sorting and countOnly"""
import math

from rest_framework.response import Response


def parse_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def is_truthy(value):
    return str(value).lower() in ('1', 'true', 'yes')


def get_limit_offset(request, default_limit=50, max_limit=100):
    """
    Read ``limit``/``offset`` (or ``page``) from the query string.

    Limits are clamped to [1, max_limit]; negative offsets become 0.
    """
    params = request.query_params
    limit = parse_int(params.get('limit'), default_limit)
    limit = max(1, min(limit, max_limit))
    if 'offset' in params:
        offset = parse_int(params.get('offset'), 0)
    else:
        page = max(1, parse_int(params.get('page'), 1))
        offset = (page - 1) * limit
    return limit, max(0, offset)


def apply_sorting(queryset, request, allowed_fields, default='-created_at'):
    """Order by ``sort`` (whitelisted) and ``order`` (asc/desc) query params"""
    sort = request.query_params.get('sort')
    if sort not in allowed_fields:
        return queryset.order_by(default)
    order = request.query_params.get('order', 'desc').lower()
    prefix = '' if order == 'asc' else '-'
    return queryset.order_by(f'{prefix}{sort}', f'{prefix}id')


def page_payload(data, total, limit, offset):
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        'data': data,
        'total': total,
        'page': offset // limit + 1 if limit else 1,
        'page_size': limit,
        'total_pages': total_pages,
        'has_next_page': offset + limit < total,
        'has_previous_page': offset > 0,
    }


def paginated_response(request, queryset, serializer_class, default_limit=50, max_limit=100,
                       count_key='total', context=None):
    """
    Serialize one page of ``queryset``.

    ``countOnly=true`` short-circuits to ``{count_key: n}``.
    """
    if is_truthy(request.query_params.get('countOnly', 'false')):
        return Response({count_key: queryset.count()})

    limit, offset = get_limit_offset(request, default_limit, max_limit)
    total = queryset.count()
    page = queryset[offset:offset + limit]
    serializer_context = {'request': request}
    serializer_context.update(context or {})
    serializer = serializer_class(page, many=True, context=serializer_context)
    return Response(page_payload(serializer.data, total, limit, offset))
