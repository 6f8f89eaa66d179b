"""Utility functions for audit logging and user identity lookup"""
import logging

from django.contrib.auth import get_user_model
from django.db.models import Q

from .models import AuditLog

User = get_user_model()

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, status_change, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., serial number, feeder name)
    """
    if not action or not model_name or not object_id:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    audit_user = user
    if audit_user is None and request is not None and hasattr(request, 'user'):
        audit_user = request.user

    try:
        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}", exc_info=True)
        return None


def diff_changes(before, after):
    """Return {field: {'old': x, 'new': y}} for keys whose values differ"""
    changes = {}
    for key in set(before) | set(after):
        if before.get(key) != after.get(key):
            changes[key] = {'old': before.get(key), 'new': after.get(key)}
    return changes


def resolve_user(uid=None, email=None):
    """
    Find a user by external uid, then by primary key, then by case-insensitive email.

    Returns None when nothing matches.
    """
    if uid:
        user = User.objects.filter(uid=uid).first()
        if user:
            return user
        if str(uid).isdigit():
            user = User.objects.filter(pk=int(uid)).first()
            if user:
                return user
    if email:
        return User.objects.filter(Q(email__iexact=email.strip())).order_by('id').first()
    return None
