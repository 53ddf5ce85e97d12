# registry_core/iam/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.common.permissions import ALL_ROLES, primary_role
from registry_core.iam.models import Profile


class LoginRequestSerializer(serializers.Serializer):
    # email is the username for registry accounts
    email = serializers.EmailField(required=False)
    username = serializers.CharField(required=False)
    password = serializers.CharField()

    def validate(self, attrs):
        if not attrs.get("email") and not attrs.get("username"):
            raise serializers.ValidationError("Email is required.")
        return attrs


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


class SignupSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)
    full_name = serializers.CharField(min_length=2, max_length=255)

    def validate_full_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Full name must be at least 2 characters.")
        return value


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ["id", "full_name", "email", "phone", "department", "avatar_url", "created_at", "updated_at"]
        read_only_fields = ["id", "email", "created_at", "updated_at"]


class ProfileUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(min_length=2, max_length=255, required=False)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    department = serializers.CharField(max_length=128, required=False, allow_blank=True)
    avatar_url = serializers.URLField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class StaffUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    email = serializers.EmailField()
    full_name = serializers.SerializerMethodField()
    phone = serializers.SerializerMethodField()
    department = serializers.SerializerMethodField()
    role = serializers.SerializerMethodField()
    is_active = serializers.BooleanField()
    last_login = serializers.DateTimeField(allow_null=True)
    date_joined = serializers.DateTimeField()

    def _profile(self, obj):
        return getattr(obj, "profile", None)

    def get_full_name(self, obj) -> str:
        p = self._profile(obj)
        return p.full_name if p else ""

    def get_phone(self, obj) -> str:
        p = self._profile(obj)
        return p.phone if p else ""

    def get_department(self, obj) -> str:
        p = self._profile(obj)
        return p.department if p else ""

    def get_role(self, obj) -> str | None:
        prefetched = getattr(obj, "role_groups", None)
        if prefetched is not None and not obj.is_superuser:
            names = {g.name for g in prefetched}
            return next((r for r in ALL_ROLES if r in names), None)
        return primary_role(obj)


class RoleAssignSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=list(ALL_ROLES))


class ActiveToggleSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()
