from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Role, StaffId, Setting, AuditLog


class UserSerializer(serializers.ModelSerializer):
    region_name = serializers.CharField(source='region.name', read_only=True, default=None)
    district_name = serializers.CharField(source='district.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'uid', 'username', 'email', 'first_name', 'last_name', 'display_name',
                  'role', 'status', 'region', 'region_name', 'district', 'district_name',
                  'staff_id', 'phone', 'is_active', 'is_staff', 'is_superuser',
                  'created_at', 'updated_at']
        read_only_fields = ['is_superuser', 'created_at', 'updated_at']

    def validate(self, attrs):
        region = attrs.get('region', getattr(self.instance, 'region', None))
        district = attrs.get('district', getattr(self.instance, 'district', None))
        if district and region and district.region_id != region.id:
            raise serializers.ValidationError({'district': 'District does not belong to the selected region'})
        return attrs


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own account"""

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'display_name', 'email', 'phone']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name',
                  'display_name', 'staff_id', 'phone', 'region', 'district']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        district = attrs.get('district')
        region = attrs.get('region')
        if district and region and district.region_id != region.id:
            raise serializers.ValidationError({'district': 'District does not belong to the selected region'})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        # New accounts wait for an administrator to assign a role
        validated_data.setdefault('role', 'pending')
        validated_data.setdefault('status', 'pending')
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user


class AdminUserCreateSerializer(UserCreateSerializer):
    """User creation by an administrator, with role and status"""

    class Meta(UserCreateSerializer.Meta):
        fields = UserCreateSerializer.Meta.fields + ['uid', 'role', 'status']


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'name', 'display_name', 'description', 'priority', 'allowed_regions',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_allowed_regions(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('allowed_regions must be a list of region names')
        return value


class PublicRoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'name', 'display_name', 'description']


class StaffIdSerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffId
        fields = ['id', 'staff_id', 'name', 'region', 'district', 'is_assigned', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']
