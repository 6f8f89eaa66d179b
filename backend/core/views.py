import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone

from .access import get_access_scope
from .models import Role, StaffId, Setting, AuditLog
from .pagination import paginated_response, apply_sorting
from .permissions import (
    IsApprovedUser, IsSystemAdmin, require_roles, feature_permission,
    get_permissions_for_role, get_permissions_document, save_permissions_document,
    can_perform_action, invalidate_permissions_cache,
)
from .serializers import (
    UserSerializer, UserCreateSerializer, AdminUserCreateSerializer, UserProfileUpdateSerializer,
    RoleSerializer, PublicRoleSerializer, StaffIdSerializer, SettingSerializer, AuditLogSerializer,
)
from .utils import create_audit_log, resolve_user

User = get_user_model()

logger = logging.getLogger(__name__)

USER_FILTER_FIELDS = ['role', 'status', 'region', 'district', 'staff_id']
USER_SORT_FIELDS = ['id', 'username', 'email', 'role', 'status', 'created_at']


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        # Ensure user is active
        if not self.user.is_active or self.user.status == 'inactive':
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        token['status'] = user.status
        token['region'] = user.region.name if user.region_id else None
        token['district'] = user.district.name if user.district_id else None
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            # User referenced in token doesn't exist anymore
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Self-registration; the account stays pending until an administrator approves it"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"New user registered: {user.username} (pending approval)")
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def build_user_profile(user):
    """Serialized user plus role permissions and visibility scope"""
    user_data = UserSerializer(user).data
    user_data['permissions'] = get_permissions_for_role(user.role)
    user_data['access_scope'] = get_access_scope(user).to_dict()
    user_data['is_admin'] = user.is_system_admin
    user_data['is_pending'] = not user.is_approved
    return user_data


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    user = resolve_user(uid=request.user.uid or str(request.user.pk), email=request.user.email)
    if user is None:
        return Response({'error': 'User not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'PATCH':
        serializer = UserProfileUpdateSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        logger.info(f"User {user.username} updated own profile")

    return Response(build_user_profile(user))


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('user_management')])
def user_list_create(request):
    """List users (filterable by any profile field) or create one"""
    if request.method == 'GET':
        queryset = User.objects.select_related('region', 'district')
        for field in USER_FILTER_FIELDS:
            value = request.query_params.get(field)
            if value:
                queryset = queryset.filter(**{field: value})
        email = request.query_params.get('email')
        if email:
            queryset = queryset.filter(email__iexact=email)
        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(username__icontains=search) |
                Q(email__icontains=search) |
                Q(display_name__icontains=search) |
                Q(staff_id__icontains=search)
            )
        queryset = apply_sorting(queryset, request, USER_SORT_FIELDS, default='id')
        return paginated_response(request, queryset, UserSerializer, default_limit=100, max_limit=1000, count_key='count')

    serializer = AdminUserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        create_audit_log(request, 'create', 'User', user.id, object_name=user.username,
                         changes={'role': user.role, 'status': user.status})
        logger.info(f"User {user.username} created by {request.user.username}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user. Users may read and edit their own profile."""
    user = get_object_or_404(User, pk=pk)
    actor = request.user
    is_self = actor.pk == user.pk
    is_admin = actor.is_approved and actor.is_system_admin
    can_view = is_admin or (actor.is_approved and can_perform_action(actor.role, 'user_management', 'view'))

    if request.method == 'DELETE':
        if not actor.is_system_admin:
            return Response({'error': 'Forbidden - insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)
        if is_self:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'User', user.id, object_name=user.username)
        user.delete()
        logger.info(f"User {pk} deleted by {actor.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    if request.method == 'GET':
        if not is_self and not can_view:
            return Response({'error': 'Forbidden - insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)
        return Response(UserSerializer(user).data)

    # Role, status and account flags are only writable by system administrators
    if not is_admin:
        if not is_self:
            return Response({'error': 'Forbidden - insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)
        serializer_class = UserProfileUpdateSerializer
    else:
        if is_self and 'role' in request.data and request.data['role'] != user.role:
            return Response({'error': 'You cannot change your own role'}, status=status.HTTP_400_BAD_REQUEST)
        serializer_class = UserSerializer

    partial = request.method == 'PATCH'
    before = {'role': user.role, 'status': user.status}
    serializer = serializer_class(user, data=request.data, partial=partial)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    user = serializer.save()

    if user.role != before['role']:
        create_audit_log(request, 'role_change', 'User', user.id, object_name=user.username,
                         changes={'role': {'old': before['role'], 'new': user.role}})
    if user.status != before['status']:
        create_audit_log(request, 'status_change', 'User', user.id, object_name=user.username,
                         changes={'status': {'old': before['status'], 'new': user.status}})
    return Response(UserSerializer(user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSystemAdmin])
def user_lookup(request):
    """Resolve a user by uid and/or email"""
    uid = request.query_params.get('uid')
    email = request.query_params.get('email')
    if not uid and not email:
        return Response({'error': 'uid or email is required'}, status=status.HTTP_400_BAD_REQUEST)
    user = resolve_user(uid=uid, email=email)
    if user is None:
        return Response({'error': 'User not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(UserSerializer(user).data)


# Role views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def role_public_list(request):
    """Active roles for selection lists"""
    roles = Role.objects.filter(is_active=True)
    return Response(PublicRoleSerializer(roles, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, require_roles('system_admin', 'global_engineer')])
def role_list_create(request):
    if request.method == 'GET':
        return Response(RoleSerializer(Role.objects.all(), many=True).data)

    if not request.user.is_system_admin:
        return Response({'error': 'Forbidden - insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)
    serializer = RoleSerializer(data=request.data)
    if serializer.is_valid():
        role = serializer.save()
        create_audit_log(request, 'create', 'Role', role.id, object_name=role.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, require_roles('system_admin', 'global_engineer')])
def role_detail(request, pk):
    role = get_object_or_404(Role, pk=pk)

    if request.method == 'GET':
        return Response(RoleSerializer(role).data)

    if not request.user.is_system_admin:
        return Response({'error': 'Forbidden - insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        if User.objects.filter(role=role.name).exists():
            return Response({'error': f'Role {role.name} is still assigned to users'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'Role', role.id, object_name=role.name)
        role.delete()
        invalidate_permissions_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = RoleSerializer(role, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'Role', role.id, object_name=role.name, changes=request.data)
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Permission matrix views
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsSystemAdmin])
def permissions_document(request):
    """Read or replace the feature permission matrix"""
    if request.method == 'GET':
        return Response(get_permissions_document())

    try:
        saved = save_permissions_document(request.data)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request, 'permissions_update', 'FeaturePermission', 'matrix',
                     changes={'feature_actions': saved})
    return Response({'message': 'Permissions updated successfully', 'feature_actions': saved})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def permission_check(request):
    """Answer whether the caller may perform ``action`` on ``feature``"""
    feature = request.query_params.get('feature')
    action = request.query_params.get('action', 'view')
    if not feature:
        return Response({'error': 'feature is required'}, status=status.HTTP_400_BAD_REQUEST)
    role = 'system_admin' if request.user.is_superuser else request.user.role
    allowed = request.user.is_approved and can_perform_action(role, feature, action)
    return Response({'feature': feature, 'action': action, 'role': role, 'allowed': allowed})


# Staff ID views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('staff_id_management')])
def staff_id_list_create(request):
    if request.method == 'GET':
        queryset = StaffId.objects.all()
        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(Q(staff_id__icontains=search) | Q(name__icontains=search))
        for field in ('region', 'district'):
            value = request.query_params.get(field)
            if value:
                queryset = queryset.filter(**{field: value})
        return paginated_response(request, queryset, StaffIdSerializer, default_limit=100, max_limit=1000, count_key='count')

    serializer = StaffIdSerializer(data=request.data)
    if serializer.is_valid():
        staff = serializer.save()
        create_audit_log(request, 'create', 'StaffId', staff.id, object_name=staff.staff_id)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsApprovedUser, feature_permission('staff_id_management')])
def staff_id_detail(request, pk):
    staff = get_object_or_404(StaffId, pk=pk)

    if request.method == 'GET':
        return Response(StaffIdSerializer(staff).data)
    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'StaffId', staff.id, object_name=staff.staff_id)
        staff.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = StaffIdSerializer(staff, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSystemAdmin])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings = Setting.objects.all()
        serializer = SettingSerializer(settings, many=True)
        return Response(serializer.data)
    serializer = SettingSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSystemAdmin])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)
    if request.method == 'DELETE':
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsApprovedUser])
def audit_log_list(request):
    """List audit logs with filtering; non-admins only see their own entries"""
    queryset = AuditLog.objects.select_related('user')

    if not request.user.is_system_admin:
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    return paginated_response(request, queryset, AuditLogSerializer, default_limit=100, max_limit=1000)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsApprovedUser])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not request.user.is_system_admin and audit_log.user_id != request.user.pk:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    return Response(AuditLogSerializer(audit_log).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    """Connectivity check used by offline clients"""
    return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})
