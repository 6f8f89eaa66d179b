"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from backend.core.cache_utils import bump_namespace, LOCATIONS_NAMESPACE, FAULTS_NAMESPACE
from backend.core.models import Role, FeaturePermission
from backend.core.permissions import invalidate_permissions_cache
from backend.faults.models import OP5Fault, ControlOutage
from backend.locations.models import Region, District, Feeder

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete], sender=Region)
@receiver([post_save, post_delete], sender=District)
@receiver([post_save, post_delete], sender=Feeder)
def invalidate_location_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    bump_namespace(LOCATIONS_NAMESPACE)
    logger.debug(f"Location cache invalidated by {sender.__name__} {instance.pk}")


@receiver([post_save, post_delete], sender=OP5Fault)
@receiver([post_save, post_delete], sender=ControlOutage)
def invalidate_fault_analytics_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    bump_namespace(FAULTS_NAMESPACE)


@receiver([post_save, post_delete], sender=Role)
@receiver([post_save, post_delete], sender=FeaturePermission)
def invalidate_role_permissions(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_permissions_cache()
