"""
Complaints app serializers.

Contains all Request and Response serializers for the Complaints API.
Serializers handle field definitions, read/write constraints, and field-level
validation only.  **No business logic, lifecycle transitions, or
notification fan-out lives here** — those belong in ``services.py``.

Structure
---------
1. Nested summary serializers (user, department)
2. Sub-record serializers (timeline, comment, feedback, attachment)
3. Complaint read serializers (list, detail, public tracking)
4. Complaint write serializers (create, lifecycle update)
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers

from departments.models import Department

from .models import (
    Complaint,
    ComplaintAttachment,
    ComplaintCategory,
    ComplaintComment,
    ComplaintFeedback,
    ComplaintPriority,
    ComplaintStatus,
    ComplaintTimelineEntry,
)

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  1. Nested Summaries
# ═══════════════════════════════════════════════════════════════════


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email", "role"]
        read_only_fields = fields


class DepartmentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "code"]
        read_only_fields = fields


# ═══════════════════════════════════════════════════════════════════
#  2. Sub-record Serializers
# ═══════════════════════════════════════════════════════════════════


class TimelineEntrySerializer(serializers.ModelSerializer):
    updated_by = UserSummarySerializer(read_only=True)
    department = DepartmentSummarySerializer(read_only=True)

    class Meta:
        model = ComplaintTimelineEntry
        fields = ["id", "status", "description", "timestamp", "updated_by", "department"]
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = ComplaintComment
        fields = ["id", "author", "text", "timestamp"]
        read_only_fields = fields


class FeedbackSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplaintFeedback
        fields = ["rating", "comment", "submitted_at"]
        read_only_fields = fields


class AttachmentSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = ComplaintAttachment
        fields = ["id", "filename", "mime_type", "size", "url", "uploaded_by", "uploaded_at"]
        read_only_fields = fields

    def get_url(self, obj: ComplaintAttachment) -> str | None:
        if not obj.file:
            return None
        request = self.context.get("request")
        url = obj.file.url
        return request.build_absolute_uri(url) if request else url


# ═══════════════════════════════════════════════════════════════════
#  3. Complaint Read Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintListSerializer(serializers.ModelSerializer):
    """
    Compact representation for list endpoints.

    Nested sub-records (timeline, comments, attachments) are left out
    to keep list payloads small.
    """

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    citizen = UserSummarySerializer(read_only=True)
    assigned_department = DepartmentSummarySerializer(read_only=True)
    assigned_officer = UserSummarySerializer(read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "id",
            "complaint_id",
            "category",
            "category_display",
            "location",
            "status",
            "status_display",
            "priority",
            "citizen",
            "assigned_department",
            "assigned_officer",
            "estimated_resolution_date",
            "resolved_at",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ComplaintDetailSerializer(ComplaintListSerializer):
    """Full complaint with every sub-record resolved for display."""

    timeline = TimelineEntrySerializer(many=True, read_only=True)
    comments = CommentSerializer(many=True, read_only=True)
    attachments = AttachmentSerializer(many=True, read_only=True)
    feedback = serializers.SerializerMethodField()

    class Meta(ComplaintListSerializer.Meta):
        fields = ComplaintListSerializer.Meta.fields + [
            "description",
            "timeline",
            "comments",
            "attachments",
            "feedback",
        ]
        read_only_fields = fields

    def get_feedback(self, obj: Complaint) -> dict[str, Any] | None:
        try:
            return FeedbackSerializer(obj.feedback).data
        except ComplaintFeedback.DoesNotExist:
            return None


class TrackingTimelineSerializer(serializers.ModelSerializer):
    department = serializers.CharField(source="department.name", default=None, read_only=True)

    class Meta:
        model = ComplaintTimelineEntry
        fields = ["status", "description", "timestamp", "department"]
        read_only_fields = fields


class ComplaintTrackingSerializer(serializers.ModelSerializer):
    """
    Public projection for ``GET /api/complaints/track/<complaint_id>/``.

    Carries no citizen data, no comments and no attachments.
    """

    assigned_department = serializers.CharField(
        source="assigned_department.name", default=None, read_only=True,
    )
    timeline = TrackingTimelineSerializer(many=True, read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "complaint_id",
            "category",
            "status",
            "priority",
            "created_at",
            "estimated_resolution_date",
            "resolved_at",
            "assigned_department",
            "timeline",
        ]
        read_only_fields = fields


# ═══════════════════════════════════════════════════════════════════
#  4. Complaint Write Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintCreateSerializer(serializers.Serializer):
    """
    Validates ``POST /api/complaints/``.

    ``citizen`` is only honoured when an admin files on a citizen's
    behalf; for citizens the service always uses the requesting user.
    Uploaded files arrive separately under the ``attachments`` key.
    """

    category = serializers.ChoiceField(choices=ComplaintCategory.choices)
    description = serializers.CharField(max_length=5000)
    location = serializers.CharField(max_length=255)
    priority = serializers.ChoiceField(choices=ComplaintPriority.choices, required=False)
    citizen = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        help_text="Admin only: PK of the citizen the complaint is filed for.",
    )

    def validate_description(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Description cannot be blank.")
        return value

    def validate_location(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Location cannot be blank.")
        return value


class AssignmentSerializer(serializers.Serializer):
    department = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(),
        required=False,
        allow_null=True,
    )
    officer = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
    )


class FeedbackInputSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")


class ComplaintUpdateSerializer(serializers.Serializer):
    """
    Validates ``PATCH /api/complaints/<id>/``.

    Every field is optional; the lifecycle service applies whichever
    are present in a fixed order.  ``version`` opts into the stale-write
    check.
    """

    status = serializers.ChoiceField(choices=ComplaintStatus.choices, required=False)
    status_description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=ComplaintPriority.choices, required=False)
    assigned_to = AssignmentSerializer(required=False)
    estimated_resolution_date = serializers.DateTimeField(required=False)
    comment = serializers.CharField(max_length=5000, required=False, allow_blank=True)
    feedback = FeedbackInputSerializer(required=False)
    version = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if not attrs:
            raise serializers.ValidationError("No updatable fields were provided.")
        return attrs
