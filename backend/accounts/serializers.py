"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here — uniqueness,
passcode policy and lockout rules are delegated to ``services.py``.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.constants import MIN_PASSCODE_LENGTH

from .models import Role

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.ModelSerializer):
    """
    Validates officer self-registration data.

    Required fields: police_id, passcode, email, first_name, last_name,
    department, badge_number, rank, phone.

    Uniqueness of ``police_id`` / ``email`` is checked by the service so
    that duplicates are reported as a 409 conflict.
    """

    police_id = serializers.CharField(
        min_length=3,
        max_length=10,
        help_text="Police ID, 3 to 10 characters.",
    )
    passcode = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSCODE_LENGTH,
        style={"input_type": "password"},
        help_text=f"Minimum {MIN_PASSCODE_LENGTH} characters.",
    )
    email = serializers.EmailField()

    class Meta:
        model = User
        fields = [
            "police_id",
            "passcode",
            "email",
            "first_name",
            "last_name",
            "department",
            "badge_number",
            "rank",
            "phone",
        ]
        extra_kwargs = {
            "first_name": {"required": True, "allow_blank": False, "max_length": 50},
            "last_name": {"required": True, "allow_blank": False, "max_length": 50},
            "department": {"required": True, "allow_blank": False},
            "badge_number": {"required": True, "allow_blank": False},
            "rank": {"required": True, "allow_blank": False},
            "phone": {"required": True, "allow_blank": False},
        }


class LoginRequestSerializer(serializers.Serializer):
    """Police ID + passcode credentials."""

    police_id = serializers.CharField(help_text="Officer police ID.")
    passcode = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Account passcode.",
    )


class ChangePasscodeSerializer(serializers.Serializer):
    current_passcode = serializers.CharField(write_only=True, style={"input_type": "password"})
    new_passcode = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSCODE_LENGTH,
        style={"input_type": "password"},
    )


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()
    token = serializers.CharField()
    new_passcode = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSCODE_LENGTH,
        style={"input_type": "password"},
    )


class TokenResponseSerializer(serializers.Serializer):
    """
    Serializes the JWT token pair returned after successful login,
    with the officer nested alongside.
    """

    access = serializers.CharField(read_only=True)
    refresh = serializers.CharField(read_only=True)
    user = serializers.SerializerMethodField()

    def get_user(self, obj: Any) -> dict | None:
        user = getattr(obj, "user", None)
        if user:
            return UserDetailSerializer(user).data
        return None


# ═══════════════════════════════════════════════════════════════════
#  Role Serializers
# ═══════════════════════════════════════════════════════════════════


class RoleListSerializer(serializers.ModelSerializer):
    """
    Lightweight serializer for listing roles (no permissions detail).
    """

    class Meta:
        model = Role
        fields = ["id", "name", "description", "hierarchy_level"]
        read_only_fields = fields


# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserListSerializer(serializers.ModelSerializer):
    """
    Serializer for listing users (admin views).
    Includes role name and lock state for quick scanning.
    """

    role_name = serializers.CharField(
        source="role.name",
        read_only=True,
        default=None,
    )

    class Meta:
        model = User
        fields = [
            "id",
            "police_id",
            "email",
            "first_name",
            "last_name",
            "badge_number",
            "rank",
            "department",
            "is_active",
            "is_locked",
            "role_name",
        ]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Full officer representation (used in retrieve, me, login and
    registration responses).  ``permissions`` is a flat list such as
    ``['cases.view_case', 'cases.can_assign_case', ...]``.
    """

    role_detail = RoleListSerializer(source="role", read_only=True)
    permissions = serializers.ListField(
        child=serializers.CharField(),
        source="permissions_list",
        read_only=True,
        help_text="Flat list of 'app_label.codename' permission strings.",
    )

    class Meta:
        model = User
        fields = [
            "id",
            "police_id",
            "email",
            "first_name",
            "last_name",
            "badge_number",
            "rank",
            "department",
            "division",
            "precinct",
            "station",
            "special_unit",
            "phone",
            "mobile_phone",
            "work_phone",
            "profile_image_url",
            "supervisor_id",
            "clearance",
            "is_active",
            "is_verified",
            "require_password_reset",
            "failed_login_attempts",
            "lockout_end",
            "last_login",
            "last_password_change",
            "date_joined",
            "role_detail",
            "permissions",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Fields an officer may change on their own profile.  Sensitive
    fields (role, is_active, police_id) cannot be self-modified.
    """

    class Meta:
        model = User
        fields = [
            "first_name",
            "last_name",
            "email",
            "badge_number",
            "rank",
            "department",
            "division",
            "precinct",
            "station",
            "special_unit",
            "phone",
            "mobile_phone",
            "work_phone",
            "profile_image_url",
            "supervisor_id",
        ]
        extra_kwargs = {"email": {"validators": []}}

    def validate_email(self, value: str) -> str:
        if (
            self.instance
            and User.objects.exclude(pk=self.instance.pk)
            .filter(email__iexact=value)
            .exists()
        ):
            raise serializers.ValidationError(
                "This email is already in use by another account."
            )
        return value


class AdminUserUpdateSerializer(ProfileUpdateSerializer):
    """Admin edit: profile fields plus activation flags, clearance and role."""

    role = serializers.CharField(required=False, help_text="Role name, e.g. 'Supervisor'.")

    class Meta(ProfileUpdateSerializer.Meta):
        fields = ProfileUpdateSerializer.Meta.fields + [
            "clearance",
            "is_active",
            "is_verified",
            "role",
        ]


class AdminUserCreateSerializer(serializers.ModelSerializer):
    """Officer account created by an admin with a temporary passcode."""

    police_id = serializers.CharField(min_length=3, max_length=10)
    email = serializers.EmailField()
    role = serializers.CharField(required=False, help_text="Role name (defaults to 'Officer').")
    temporary_passcode = serializers.CharField(
        required=False,
        write_only=True,
        min_length=MIN_PASSCODE_LENGTH,
        help_text="Generated when omitted.",
    )

    class Meta:
        model = User
        fields = [
            "police_id",
            "email",
            "first_name",
            "last_name",
            "phone",
            "department",
            "badge_number",
            "rank",
            "role",
            "temporary_passcode",
        ]


class ChangeRoleSerializer(serializers.Serializer):
    role = serializers.CharField(help_text="Name of the role to assign.")

    def validate_role(self, value: str) -> str:
        if not Role.objects.filter(name__iexact=value.strip()).exists():
            raise serializers.ValidationError(f"Role '{value}' does not exist.")
        return value.strip()
