import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from backend.core.permissions import IsApprovedUser
from .service import apply_operation

logger = logging.getLogger('backend.sync')

MAX_BATCH_OPERATIONS = 100


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsApprovedUser])
def sync_batch(request):
    """
    Apply a batch of queued offline operations.

    Each operation is handled on its own: one failure does not abort the rest.
    Feature permissions are checked per operation.
    """
    operations = request.data.get('operations') if isinstance(request.data, dict) else None
    if not isinstance(operations, list):
        return Response({'error': 'operations must be a list'}, status=status.HTTP_400_BAD_REQUEST)
    if len(operations) > MAX_BATCH_OPERATIONS:
        return Response({'error': f'A batch may contain at most {MAX_BATCH_OPERATIONS} operations'},
                        status=status.HTTP_400_BAD_REQUEST)

    results = [apply_operation(request, operation) for operation in operations]
    applied = sum(1 for r in results if r['status'] < 300 and not r['replayed'])
    replayed = sum(1 for r in results if r['replayed'])
    failed = len(results) - applied - replayed
    logger.info(f"Sync batch from {request.user.username}: {applied} applied, {replayed} replayed, {failed} failed")
    return Response({'results': results, 'applied': applied, 'replayed': replayed, 'failed': failed})
