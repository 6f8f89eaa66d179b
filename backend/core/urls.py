from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    user_list_create, user_detail, user_lookup,
    role_public_list, role_list_create, role_detail,
    permissions_document, permission_check,
    staff_id_list_create, staff_id_detail,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail,
    health_check,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),

    # User endpoints
    path('users/me/', user_me, name='user-me'),
    path('users/lookup/', user_lookup, name='user-lookup'),
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Role and permission endpoints
    path('roles/public/', role_public_list, name='role-public-list'),
    path('roles/', role_list_create, name='role-list-create'),
    path('roles/<int:pk>/', role_detail, name='role-detail'),
    path('permissions/', permissions_document, name='permissions-document'),
    path('permissions/check/', permission_check, name='permission-check'),

    # Staff ID endpoints
    path('staff-ids/', staff_id_list_create, name='staff-id-list-create'),
    path('staff-ids/<int:pk>/', staff_id_detail, name='staff-id-detail'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    path('health/', health_check, name='health-check'),
]
