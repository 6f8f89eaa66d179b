from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Role, FeaturePermission, StaffId, Setting, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'role', 'status', 'region', 'district', 'is_active', 'date_joined']
    list_filter = ['role', 'status', 'is_active', 'is_superuser', 'region']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'display_name', 'staff_id', 'uid']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Assignment', {'fields': ('uid', 'display_name', 'role', 'status', 'region', 'district', 'staff_id', 'phone')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Assignment', {'fields': ('role', 'status', 'region', 'district')}),
    )


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'display_name', 'priority', 'is_active']
    search_fields = ['name', 'display_name']
    ordering = ['-priority']


@admin.register(FeaturePermission)
class FeaturePermissionAdmin(admin.ModelAdmin):
    list_display = ['feature', 'action', 'updated_at']
    list_filter = ['action']
    search_fields = ['feature']


@admin.register(StaffId)
class StaffIdAdmin(admin.ModelAdmin):
    list_display = ['staff_id', 'name', 'region', 'district', 'is_assigned']
    list_filter = ['is_assigned', 'region']
    search_fields = ['staff_id', 'name']


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__username', 'model_name', 'object_id']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'changes', 'ip_address', 'created_at']
