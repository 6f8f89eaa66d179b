from django.conf import settings
from django.db import models


class SyncReceipt(models.Model):
    """Outcome of an applied offline operation, keyed by the submitting user and their idempotency key"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
    ]

    idempotency_key = models.CharField(max_length=100)
    entity_type = models.CharField(max_length=50)
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    object_id = models.CharField(max_length=100, blank=True)
    status_code = models.PositiveSmallIntegerField()
    response = models.JSONField(default=dict)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='sync_receipts')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.idempotency_key} ({self.entity_type} {self.action} -> {self.status_code})"

    class Meta:
        db_table = 'sync_receipts'
        ordering = ['-created_at']
        unique_together = ['user', 'idempotency_key']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='sync_receipts_user_idx'),
        ]
