"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here — all domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

import re
from typing import Any

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from departments.models import Department

from .models import UserRole, UserStatus
from .services import AuthenticationService

User = get_user_model()

# ── Phone number validation regex ───────────────────────────────────
_PHONE_REGEX = re.compile(r"^\+?[\d\s\-()]{7,20}$")


def _validate_phone(value: str) -> str:
    value = value.strip()
    if value and not _PHONE_REGEX.match(value):
        raise serializers.ValidationError("Please provide a valid phone number.")
    return value


# ═══════════════════════════════════════════════════════════════════
#  Read Serializers
# ═══════════════════════════════════════════════════════════════════


class DepartmentRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "code"]
        read_only_fields = fields


class NotificationPreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    status_updates = serializers.BooleanField(required=False)
    feedback_reminders = serializers.BooleanField(required=False)


class UserListSerializer(serializers.ModelSerializer):
    """Compact user representation for list endpoints."""

    department = DepartmentRefSerializer(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone", "role", "department", "status", "last_active"]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """Full user profile, as returned by ``/me/`` and ``/users/{id}/``."""

    department = DepartmentRefSerializer(read_only=True)
    notification_preferences = NotificationPreferencesSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "phone",
            "address",
            "role",
            "department",
            "status",
            "notification_preferences",
            "last_active",
            "date_joined",
        ]
        read_only_fields = fields


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.Serializer):
    """
    Validates citizen self-registration.

    The ``password`` field is write-only and is hashed by the service
    layer.  The response is built from ``UserDetailSerializer`` plus a
    token pair.
    """

    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Minimum 8 characters.",
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Must match 'password'.",
    )
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate_phone(self, value: str) -> str:
        return _validate_phone(value)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )
        validate_password(attrs["password"])
        attrs.pop("password_confirm")
        return attrs


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    SimpleJWT serializer that:

    1. Accepts ``email`` + ``password``.
    2. Resolves the user through ``AuthenticationService`` (which uses
       ``EmailAuthBackend``) and stamps ``last_active``.
    3. Injects ``role`` / ``department`` claims into the token.
    4. Exposes the authenticated user as ``self.user`` for the view.
    """

    username_field = "email"

    @classmethod
    def get_token(cls, user) -> Any:
        return AuthenticationService.get_token(user)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        user = AuthenticationService.authenticate(
            self.context.get("request"),
            attrs.get("email"),
            attrs.get("password"),
        )
        AuthenticationService.record_login(user)

        refresh = self.get_token(user)
        self.user = user
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


class TokenResponseSerializer(serializers.Serializer):
    """Token pair plus the nested user, returned by login and register."""

    access = serializers.CharField(read_only=True)
    refresh = serializers.CharField(read_only=True)
    user = UserDetailSerializer(read_only=True)


# ═══════════════════════════════════════════════════════════════════
#  Current User Serializers
# ═══════════════════════════════════════════════════════════════════


class MeUpdateSerializer(serializers.Serializer):
    """
    Fields a user may change on their own profile.  Role, department
    and status are managed by admins only.
    """

    name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    notification_preferences = NotificationPreferencesSerializer(required=False)

    def validate_phone(self, value: str) -> str:
        return _validate_phone(value)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, style={"input_type": "password"})
    new_password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
    )

    def validate_new_password(self, value: str) -> str:
        validate_password(value)
        return value


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    """Body of ``POST /auth/password/reset/``; ``uid`` and ``token`` come from the e-mailed link."""

    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
    )

    def validate_new_password(self, value: str) -> str:
        validate_password(value)
        return value


# ═══════════════════════════════════════════════════════════════════
#  User Management Serializers
# ═══════════════════════════════════════════════════════════════════


class UserCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=UserRole.choices, default=UserRole.CITIZEN)
    department = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(),
        required=False,
        allow_null=True,
    )
    status = serializers.ChoiceField(choices=UserStatus.choices, required=False)

    def validate_phone(self, value: str) -> str:
        return _validate_phone(value)


class UserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=UserStatus.choices, required=False)

    def validate_phone(self, value: str) -> str:
        return _validate_phone(value)


class ChangeRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.choices)
    department = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(),
        required=False,
        allow_null=True,
        default=None,
    )


class ChangeStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=UserStatus.choices)
