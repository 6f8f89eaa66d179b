from django.contrib import admin
from .models import SyncReceipt


@admin.register(SyncReceipt)
class SyncReceiptAdmin(admin.ModelAdmin):
    list_display = ['idempotency_key', 'entity_type', 'action', 'object_id', 'status_code', 'user', 'created_at']
    list_filter = ['entity_type', 'action', 'status_code']
    search_fields = ['idempotency_key', 'object_id']
    readonly_fields = ['idempotency_key', 'entity_type', 'action', 'object_id', 'status_code', 'response', 'user', 'created_at']
