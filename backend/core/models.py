from django.contrib.auth.models import AbstractUser
from django.db import models


ROLE_CHOICES = [
    ('system_admin', 'System Administrator'),
    ('global_engineer', 'Global Engineer'),
    ('regional_engineer', 'Regional Engineer'),
    ('project_engineer', 'Project Engineer'),
    ('district_engineer', 'District Engineer'),
    ('regional_general_manager', 'Regional General Manager'),
    ('district_manager', 'District Manager'),
    ('ict', 'ICT'),
    ('technician', 'Technician'),
    ('ashsubt', 'Ashanti Subtransmission'),
    ('accsubt', 'Accra Subtransmission'),
    ('pending', 'Pending Approval'),
]


class User(AbstractUser):
    """Staff account with role and region/district assignment"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    uid = models.CharField(max_length=128, unique=True, null=True, blank=True, help_text="External identity provider object id")
    display_name = models.CharField(max_length=200, blank=True)
    role = models.CharField(max_length=50, choices=ROLE_CHOICES, default='pending')
    # Legacy accounts may have no status at all
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, null=True, blank=True, default='pending')
    region = models.ForeignKey('locations.Region', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    district = models.ForeignKey('locations.District', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    staff_id = models.CharField(max_length=50, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    @property
    def is_system_admin(self):
        return self.role == 'system_admin' or self.is_superuser

    @property
    def is_approved(self):
        return self.status == 'active' or self.is_superuser


class Role(models.Model):
    """Configurable role definition"""
    name = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    priority = models.PositiveIntegerField(default=0)
    allowed_regions = models.JSONField(default=list, blank=True, help_text="Region names visible to this role (subtransmission roles)")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.display_name or self.name

    class Meta:
        db_table = 'roles'
        ordering = ['-priority', 'name']


class FeaturePermission(models.Model):
    """Roles allowed to perform an action on a feature"""
    ACTION_CHOICES = [
        ('view', 'View'),
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
    ]

    feature = models.CharField(max_length=100)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    roles = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.feature}_{self.action}"

    class Meta:
        db_table = 'feature_permissions'
        unique_together = ['feature', 'action']
        ordering = ['feature', 'action']


class StaffId(models.Model):
    """Pre-registered staff identifiers"""
    staff_id = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    region = models.CharField(max_length=200, blank=True)
    district = models.CharField(max_length=200, blank=True)
    is_assigned = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.staff_id} - {self.name}"

    class Meta:
        db_table = 'staff_ids'
        ordering = ['staff_id']


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for record changes and administrative actions"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('view', 'View'),
        ('login', 'Login'),
        ('status_change', 'Status Change'),
        ('role_change', 'Role Change'),
        ('permissions_update', 'Permissions Update'),
        ('photo_upload', 'Photo Upload'),
        ('photo_delete', 'Photo Delete'),
        ('sync_apply', 'Offline Sync Applied'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., serial number, feeder name)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
        ]


class VersionedModel(models.Model):
    """Base for field records: timestamps plus a generation counter bumped on every update"""
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and not kwargs.get('force_insert'):
            self.version = (self.version or 0) + 1
            update_fields = kwargs.get('update_fields')
            if update_fields is not None:
                kwargs['update_fields'] = set(update_fields) | {'version', 'updated_at'}
        super().save(*args, **kwargs)
