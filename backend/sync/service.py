"""
Applying queued offline operations.

Every operation carries a client-generated idempotency key. A successful
outcome is stored as a SyncReceipt for the submitting user, so a resent
operation from that user replays the stored result instead of writing
twice. Updates and deletes may carry the ``base_version`` the client
edited; when the server copy has moved past it the operation is rejected
with 409 and the server copy is returned.
"""
import logging

from django.db import IntegrityError, transaction
from rest_framework import status

from backend.core.access import apply_access_scope, is_in_scope
from backend.core.permissions import can_perform_action
from backend.core.utils import create_audit_log
from .models import SyncReceipt
from .registry import get_entity

logger = logging.getLogger(__name__)

SYNC_ACTIONS = ('create', 'update', 'delete')


def _result(operation, status_code, object_id=None, data=None, errors=None):
    result = {
        'idempotency_key': operation.get('idempotency_key'),
        'entity_type': operation.get('entity_type'),
        'action': operation.get('action'),
        'status': status_code,
        'object_id': object_id,
        'replayed': False,
    }
    if errors is not None:
        result['errors'] = errors
    else:
        result['data'] = data
    return result


def replay_receipt(receipt):
    result = dict(receipt.response)
    result['replayed'] = True
    return result


def _replay_or_conflict(operation, receipt):
    """Replay a stored receipt, unless the key was first used for a different operation"""
    if receipt.entity_type != operation['entity_type'] or receipt.action != operation['action']:
        logger.warning(f"Idempotency key {receipt.idempotency_key} reused for {operation['entity_type']} {operation['action']}")
        return _result(operation, status.HTTP_409_CONFLICT, object_id=receipt.object_id or None,
                       errors={'error': 'Idempotency key was already used for a different operation'})
    logger.debug(f"Replaying sync receipt {receipt.idempotency_key}")
    return replay_receipt(receipt)


def _can_act(user, entity, action):
    return user.is_superuser or can_perform_action(user.role, entity.feature, action)


def _in_scope(user, entity, validated_data, instance=None):
    candidate = entity.model(
        region=validated_data.get('region', getattr(instance, 'region', None)),
        district=validated_data.get('district', getattr(instance, 'district', None)),
    )
    return is_in_scope(user, candidate)


def _save(serializer, **kwargs):
    """Save inside a savepoint so a constraint failure doesn't poison the batch transaction"""
    with transaction.atomic():
        return serializer.save(**kwargs)


def _apply(request, operation, entity):
    user = request.user
    action = operation['action']
    data = operation.get('data') or {}
    context = {'request': request, 'include_base64': False}

    if action == 'create':
        serializer = entity.serializer_class(data=data, context=context)
        if not serializer.is_valid():
            return _result(operation, status.HTTP_400_BAD_REQUEST, errors=serializer.errors)
        if not _in_scope(user, entity, serializer.validated_data):
            return _result(operation, status.HTTP_403_FORBIDDEN, errors={'error': 'Outside your assigned area'})
        try:
            instance = _save(serializer, **{entity.owner_field: user})
        except IntegrityError as e:
            return _result(operation, status.HTTP_400_BAD_REQUEST, errors={'error': str(e)})
        create_audit_log(request, 'sync_apply', entity.model_name, instance.id, changes={'action': 'create'})
        return _result(operation, status.HTTP_201_CREATED, object_id=instance.id, data=serializer.data)

    object_id = operation.get('object_id')
    instance = apply_access_scope(entity.model.objects.all(), user).filter(pk=object_id).first() if object_id else None
    if instance is None:
        return _result(operation, status.HTTP_404_NOT_FOUND, object_id=object_id, errors={'error': 'Record not found'})

    base_version = operation.get('base_version')
    if base_version is not None and instance.version > int(base_version):
        logger.info(f"Sync conflict on {entity.model_name} {instance.id}: base {base_version}, server {instance.version}")
        return _result(
            operation, status.HTTP_409_CONFLICT, object_id=instance.id,
            errors={
                'error': 'Record has changed on the server',
                'server_version': instance.version,
                'server_data': entity.serializer_class(instance, context=context).data,
            },
        )

    if action == 'delete':
        create_audit_log(request, 'sync_apply', entity.model_name, instance.id, changes={'action': 'delete'})
        instance.delete()
        return _result(operation, status.HTTP_200_OK, object_id=object_id, data=None)

    serializer = entity.serializer_class(instance, data=data, partial=True, context=context)
    if not serializer.is_valid():
        return _result(operation, status.HTTP_400_BAD_REQUEST, object_id=instance.id, errors=serializer.errors)
    if not _in_scope(user, entity, serializer.validated_data, instance):
        return _result(operation, status.HTTP_403_FORBIDDEN, object_id=instance.id, errors={'error': 'Outside your assigned area'})
    try:
        instance = _save(serializer)
    except IntegrityError as e:
        return _result(operation, status.HTTP_400_BAD_REQUEST, object_id=instance.id, errors={'error': str(e)})
    create_audit_log(request, 'sync_apply', entity.model_name, instance.id,
                     changes={'action': 'update', 'fields': sorted(data)})
    return _result(operation, status.HTTP_200_OK, object_id=instance.id, data=serializer.data)


def validate_operation(operation):
    """Return an error message for a malformed operation, or None"""
    if not isinstance(operation, dict):
        return 'Operation must be an object'
    if not operation.get('idempotency_key'):
        return 'idempotency_key is required'
    if len(str(operation['idempotency_key'])) > 100:
        return 'idempotency_key is too long'
    if not isinstance(operation.get('entity_type'), str) or get_entity(operation['entity_type']) is None:
        return f"Unknown entity_type '{operation.get('entity_type')}'"
    if operation.get('action') not in SYNC_ACTIONS:
        return f"Unknown action '{operation.get('action')}'"
    if operation['action'] != 'create' and not operation.get('object_id'):
        return 'object_id is required for update and delete'
    if operation['action'] != 'create' and not str(operation['object_id']).isdigit():
        return 'object_id must be a server record id'
    base_version = operation.get('base_version')
    if base_version is not None and not str(base_version).isdigit():
        return 'base_version must be a non-negative integer'
    return None


def apply_operation(request, operation):
    """Apply one queued operation and return its result dict"""
    error = validate_operation(operation)
    if error:
        safe = operation if isinstance(operation, dict) else {}
        return _result(safe, status.HTTP_400_BAD_REQUEST, errors={'error': error})

    entity = get_entity(operation['entity_type'])
    if not _can_act(request.user, entity, operation['action']):
        return _result(operation, status.HTTP_403_FORBIDDEN, errors={'error': 'Forbidden - insufficient permissions'})

    key = str(operation['idempotency_key'])
    receipt = SyncReceipt.objects.filter(user=request.user, idempotency_key=key).first()
    if receipt is not None:
        return _replay_or_conflict(operation, receipt)

    try:
        with transaction.atomic():
            result = _apply(request, operation, entity)
            if result['status'] < 300:
                SyncReceipt.objects.create(
                    idempotency_key=key,
                    entity_type=operation['entity_type'],
                    action=operation['action'],
                    object_id=str(result['object_id'] or ''),
                    status_code=result['status'],
                    response=result,
                    user=request.user,
                )
    except IntegrityError:
        # Another request stored the same key first
        receipt = SyncReceipt.objects.filter(user=request.user, idempotency_key=key).first()
        if receipt is None:
            raise
        return _replay_or_conflict(operation, receipt)
    return result
