"""
Region/district visibility rules per role.

- system_admin, global_engineer: everything
- district_engineer, technician, district_manager: their district
- regional_engineer, regional_general_manager, project_engineer: their region
- ashsubt, accsubt: the role's allowed regions
- any other role: no filter
"""
import logging

from .defaults import (
    UNRESTRICTED_ROLES, DISTRICT_ROLES, REGION_ROLES, SUBTRANSMISSION_ROLES,
    SUBTRANSMISSION_REGIONS,
)
from .models import Role

logger = logging.getLogger(__name__)


class AccessScope:
    """Regions/district a user may see. ``unrestricted`` wins over everything else."""

    def __init__(self, unrestricted=False, region_ids=None, region_names=None, district_id=None):
        self.unrestricted = unrestricted
        self.region_ids = region_ids
        self.region_names = region_names
        self.district_id = district_id

    def to_dict(self):
        return {
            'unrestricted': self.unrestricted,
            'region_ids': self.region_ids,
            'region_names': self.region_names,
            'district_id': self.district_id,
        }

    def cache_key(self):
        if self.unrestricted:
            return 'all'
        if self.district_id is not None:
            return f'district-{self.district_id}'
        if self.region_names is not None:
            return 'regions-' + '-'.join(sorted(self.region_names))
        if self.region_ids:
            return 'region-' + '-'.join(str(r) for r in sorted(self.region_ids))
        return 'none'


def get_allowed_regions_for_role(role):
    """Allowed region names for a subtransmission role, from the Role table or defaults"""
    stored = Role.objects.filter(name=role).values_list('allowed_regions', flat=True).first()
    if stored:
        return list(stored)
    return list(SUBTRANSMISSION_REGIONS.get(role, []))


def get_access_scope(user):
    if user.is_superuser or user.role in UNRESTRICTED_ROLES:
        return AccessScope(unrestricted=True)

    if user.role in DISTRICT_ROLES:
        if user.district_id is None:
            logger.warning(f"User {user.username} ({user.role}) has no district assigned")
            return AccessScope()
        return AccessScope(district_id=user.district_id)

    if user.role in REGION_ROLES:
        if user.region_id is None:
            logger.warning(f"User {user.username} ({user.role}) has no region assigned")
            return AccessScope()
        return AccessScope(region_ids=[user.region_id])

    if user.role in SUBTRANSMISSION_ROLES:
        return AccessScope(region_names=get_allowed_regions_for_role(user.role))

    return AccessScope(unrestricted=True)


def apply_access_scope(queryset, user, region_field='region', district_field='district'):
    """Filter a queryset of records carrying region/district foreign keys"""
    scope = get_access_scope(user)
    if scope.unrestricted:
        return queryset
    if scope.district_id is not None:
        return queryset.filter(**{f'{district_field}_id': scope.district_id})
    if scope.region_names is not None:
        return queryset.filter(**{f'{region_field}__name__in': scope.region_names})
    if scope.region_ids:
        return queryset.filter(**{f'{region_field}_id__in': scope.region_ids})
    return queryset.none()


def is_in_scope(user, record):
    """Check a single record with region/district attributes against the user's scope"""
    scope = get_access_scope(user)
    if scope.unrestricted:
        return True
    if scope.district_id is not None:
        return record.district_id == scope.district_id
    if scope.region_names is not None:
        return record.region is not None and record.region.name in scope.region_names
    if scope.region_ids:
        return record.region_id in scope.region_ids
    return False
