"""
Departments app serializers.

Field definitions and field-level validation only; head hand-over,
uniqueness conflicts and delete guards live in ``services.py``.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers

from accounts.models import UserRole, UserStatus
from complaints.models import ComplaintCategory

from .models import Department, DepartmentStatus

User = get_user_model()


class DepartmentHeadSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email", "role"]
        read_only_fields = fields


class DepartmentSerializer(serializers.ModelSerializer):
    """Read representation for list and detail endpoints."""

    head = DepartmentHeadSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Department
        fields = [
            "id",
            "name",
            "code",
            "description",
            "head",
            "contact_email",
            "contact_phone",
            "status",
            "categories",
            "member_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_member_count(self, obj: Department) -> int:
        return obj.members.count()


class DepartmentWriteSerializer(serializers.Serializer):
    """
    Validates ``POST`` and ``PATCH`` on ``/api/departments/``.

    On PATCH the view passes ``partial=True`` so every field is optional.
    """

    name = serializers.CharField(max_length=150)
    code = serializers.CharField(max_length=20)
    description = serializers.CharField(required=False, allow_blank=True)
    head = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
    )
    contact_email = serializers.EmailField(required=False, allow_blank=True)
    contact_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=DepartmentStatus.choices, required=False)
    categories = serializers.ListField(
        child=serializers.ChoiceField(choices=ComplaintCategory.choices),
        required=False,
        allow_empty=True,
    )

    def validate_code(self, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Code cannot be blank.")
        return value

    def validate_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be blank.")
        return value

    def validate_categories(self, value: list[str]) -> list[str]:
        # Keep first occurrence order, drop duplicates
        return list(dict.fromkeys(value))

    def validate_head(self, value: Any) -> Any:
        if value is None:
            return value
        if value.status != UserStatus.ACTIVE:
            raise serializers.ValidationError("The department head must be an active user.")
        if value.role in (UserRole.CITIZEN, UserRole.ADMIN) or value.is_superuser:
            raise serializers.ValidationError(
                "The department head must be an officer or supervisor."
            )
        return value


class DepartmentMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email", "phone", "role", "status", "last_active"]
        read_only_fields = fields
