"""
Role-based permission checks.

The role -> {feature_action: True} map is built from FeaturePermission rows
(or the built-in defaults when the table is empty) and cached in the Django
cache for PERMISSIONS_CACHE_TTL seconds.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from rest_framework.permissions import BasePermission

from .defaults import DEFAULT_FEATURE_PERMISSIONS, default_permissions_document
from .models import FeaturePermission

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS_CACHE_KEY = 'permissions:role_map'
PERMISSIONS_CACHE_TTL = getattr(settings, 'PERMISSIONS_CACHE_TTL', 300)

METHOD_ACTIONS = {
    'GET': 'view',
    'HEAD': 'view',
    'OPTIONS': 'view',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}

FORBIDDEN_MESSAGE = 'Forbidden - insufficient permissions'


def _load_feature_matrix():
    """Return {(feature, action): [roles]} from the database, or the defaults"""
    rows = list(FeaturePermission.objects.all())
    if rows:
        return {(row.feature, row.action): list(row.roles or []) for row in rows}
    logger.info("No feature permissions stored, using built-in defaults")
    return {
        (feature, action): roles
        for feature, actions in DEFAULT_FEATURE_PERMISSIONS.items()
        for action, roles in actions.items()
    }


def build_role_permission_map():
    role_map = {}
    for (feature, action), roles in _load_feature_matrix().items():
        for role in roles:
            role_map.setdefault(role, {})[f"{feature}_{action}"] = True
    return role_map


def get_role_permission_map(force_refresh=False):
    role_map = None if force_refresh else cache.get(ROLE_PERMISSIONS_CACHE_KEY)
    if role_map is None:
        role_map = build_role_permission_map()
        cache.set(ROLE_PERMISSIONS_CACHE_KEY, role_map, PERMISSIONS_CACHE_TTL)
        logger.debug(f"Rebuilt role permission map for {len(role_map)} roles")
    return role_map


def invalidate_permissions_cache():
    cache.delete(ROLE_PERMISSIONS_CACHE_KEY)
    logger.info("Invalidated role permission cache")


def get_permissions_for_role(role):
    """Return the {feature_action: True} map for a role"""
    role_map = get_role_permission_map()
    if role not in role_map:
        role_map = get_role_permission_map(force_refresh=True)
    return dict(role_map.get(role, {}))


def can_perform_action(role, feature, action):
    """Check whether a role may perform an action on a feature"""
    if not role:
        return False
    if role == 'system_admin':
        return True
    return bool(get_permissions_for_role(role).get(f"{feature}_{action}"))


def get_permissions_document():
    """Return the full matrix as {features: {feature: {permissions: {action: {roles}}}}}"""
    rows = list(FeaturePermission.objects.all())
    if not rows:
        return default_permissions_document()
    features = {}
    for row in rows:
        feature = features.setdefault(row.feature, {'permissions': {}})
        feature['permissions'][row.action] = {'roles': list(row.roles or [])}
    return {'features': features}


def save_permissions_document(document):
    """
    Replace the stored matrix with the given document.

    Raises ValueError when the document is not in the expected shape.
    """
    features = document.get('features') if isinstance(document, dict) else None
    if not isinstance(features, dict):
        raise ValueError("Permissions document must contain a 'features' object")

    rows = []
    for feature, feature_data in features.items():
        permissions = (feature_data or {}).get('permissions', {})
        if not isinstance(permissions, dict):
            raise ValueError(f"Feature '{feature}' has invalid permissions")
        for action, action_data in permissions.items():
            if action not in dict(FeaturePermission.ACTION_CHOICES):
                raise ValueError(f"Unknown action '{action}' for feature '{feature}'")
            roles = (action_data or {}).get('roles', [])
            if not isinstance(roles, list):
                raise ValueError(f"Roles for {feature}.{action} must be a list")
            rows.append(FeaturePermission(feature=feature, action=action, roles=roles))

    with transaction.atomic():
        FeaturePermission.objects.all().delete()
        FeaturePermission.objects.bulk_create(rows)
    invalidate_permissions_cache()
    logger.info(f"Saved permission matrix with {len(rows)} feature actions")
    return len(rows)


class IsApprovedUser(BasePermission):
    """Reject accounts that have not been approved yet"""
    message = 'Account pending approval'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_approved)


def require_roles(*roles):
    """Build a permission class allowing only the given roles (superusers always pass)"""
    allowed = set(roles)

    class RoleRequired(BasePermission):
        message = FORBIDDEN_MESSAGE

        def has_permission(self, request, view):
            user = request.user
            if not user or not user.is_authenticated:
                return False
            if user.is_superuser or user.role in allowed:
                return True
            logger.warning(f"User {user.username} with role {user.role} denied {request.method} {request.path}")
            return False

    RoleRequired.__name__ = f"RoleRequired[{','.join(sorted(allowed))}]"
    return RoleRequired


def feature_permission(feature):
    """Build a permission class checking the HTTP method's action against the feature matrix"""

    class FeaturePermissionRequired(BasePermission):
        message = FORBIDDEN_MESSAGE

        def has_permission(self, request, view):
            user = request.user
            if not user or not user.is_authenticated:
                return False
            if user.is_superuser:
                return True
            action = METHOD_ACTIONS.get(request.method, 'view')
            if can_perform_action(user.role, feature, action):
                return True
            logger.warning(f"User {user.username} with role {user.role} denied {feature}_{action}")
            return False

    FeaturePermissionRequired.__name__ = f"FeaturePermissionRequired[{feature}]"
    return FeaturePermissionRequired


IsSystemAdmin = require_roles('system_admin')
