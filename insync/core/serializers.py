from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User
from .roles import role_for_email
from .workspaces import WORKSPACE_CHOICES, workspace_name


class UserSerializer(serializers.ModelSerializer):
    workspace_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'uid', 'email', 'display_name', 'role', 'workspace_id', 'workspace_name',
                  'phone', 'photo_url', 'created_at', 'updated_at']
        read_only_fields = ['uid', 'email', 'role', 'workspace_id', 'created_at', 'updated_at']

    def get_workspace_name(self, obj):
        return workspace_name(obj.workspace_id)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own profile"""

    class Meta:
        model = User
        fields = ['display_name', 'phone', 'photo_url']


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    workspace_id = serializers.ChoiceField(choices=WORKSPACE_CHOICES)

    class Meta:
        model = User
        fields = ['email', 'password', 'password_confirm', 'display_name', 'workspace_id', 'phone', 'photo_url']

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        email = validated_data['email']
        user = User(
            username=email,
            role=role_for_email(email),
            **validated_data
        )
        user.set_password(password)
        user.save()
        return user


class BulkIdsSerializer(serializers.Serializer):
    """Payload of the bulk-delete endpoints"""
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect.')
        return value
