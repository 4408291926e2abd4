"""
Core app serializers.

Response serializers for the dashboard, system constants and the
notification inbox.  They render the plain dicts produced by
``core.services``; nothing here touches the database.
"""

from __future__ import annotations

from rest_framework import serializers


# ════════════════════════════════════════════════════════════════════
#  Dashboard
# ════════════════════════════════════════════════════════════════════

class CountItemSerializer(serializers.Serializer):
    """
    One bucket of a grouped count.

    Example::

        {"value": "in_progress", "label": "In Progress", "count": 7}
    """

    value = serializers.CharField(allow_null=True)
    label = serializers.CharField(allow_null=True)
    count = serializers.IntegerField()


class OfficerCountSerializer(serializers.Serializer):
    officer_id = serializers.IntegerField()
    name = serializers.CharField()
    count = serializers.IntegerField()


class DepartmentCountSerializer(serializers.Serializer):
    department_id = serializers.IntegerField(allow_null=True)
    name = serializers.CharField()
    count = serializers.IntegerField()


class CategoryResolutionSerializer(serializers.Serializer):
    category = serializers.CharField()
    label = serializers.CharField()
    average_days = serializers.FloatField(allow_null=True)
    count = serializers.IntegerField()


class MonthlyCountSerializer(serializers.Serializer):
    month = serializers.CharField(help_text="Calendar month as YYYY-MM.")
    count = serializers.IntegerField()


class RecentComplaintSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    complaint_id = serializers.CharField()
    category = serializers.CharField()
    status = serializers.CharField()
    priority = serializers.CharField()
    department = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()


class DashboardStatsSerializer(serializers.Serializer):
    """
    Response serializer for ``GET /api/core/dashboard/``.

    The common block is present for every role.  Role-specific keys are
    declared ``required=False`` and are omitted from the payload when the
    service does not produce them.
    """

    role = serializers.CharField(allow_null=True)
    total_complaints = serializers.IntegerField()
    complaints_by_status = CountItemSerializer(many=True)
    complaints_by_category = CountItemSerializer(many=True)
    recent_complaints = RecentComplaintSerializer(many=True)

    # Citizen
    awaiting_feedback = serializers.IntegerField(
        required=False,
        help_text="Resolved complaints that have no feedback yet.",
    )

    # Officer / Supervisor
    complaints_by_officer = OfficerCountSerializer(many=True, required=False)
    high_priority_unresolved = serializers.IntegerField(required=False)
    average_rating = serializers.FloatField(required=False)

    # Admin
    total_users = serializers.IntegerField(required=False)
    total_departments = serializers.IntegerField(required=False)
    complaints_by_department = DepartmentCountSerializer(many=True, required=False)
    resolution_rate = serializers.FloatField(required=False)
    average_resolution_days = serializers.FloatField(required=False)
    resolution_time_by_category = CategoryResolutionSerializer(many=True, required=False)
    registrations_by_month = MonthlyCountSerializer(many=True, required=False)


# ════════════════════════════════════════════════════════════════════
#  System Constants / Enums
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "under_review", "label": "Under Review"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class TransitionItemSerializer(serializers.Serializer):
    status = serializers.CharField()
    allowed = serializers.ListField(child=serializers.CharField())


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Provides all system-wide choice enumerations so the frontend can
    dynamically build dropdowns, filters, and labels **without**
    hardcoding values.
    """

    complaint_categories = ChoiceItemSerializer(many=True)
    complaint_statuses = ChoiceItemSerializer(many=True)
    complaint_priorities = ChoiceItemSerializer(many=True)
    status_transitions = TransitionItemSerializer(
        many=True,
        help_text="Next statuses reachable from each status.",
    )
    user_roles = ChoiceItemSerializer(many=True)
    user_statuses = ChoiceItemSerializer(many=True)
    department_statuses = ChoiceItemSerializer(many=True)
    notification_types = ChoiceItemSerializer(many=True)
    report_periods = ChoiceItemSerializer(many=True)


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.

    Used by the Notification ViewSet to list and update notifications
    for the authenticated user.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    type = serializers.CharField(read_only=True)
    title = serializers.CharField(
        read_only=True,
        help_text="Short notification title.",
    )
    message = serializers.CharField(
        read_only=True,
        help_text="Full notification message body.",
    )
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    read_at = serializers.DateTimeField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was created.",
    )
    content_type = serializers.StringRelatedField(
        read_only=True,
        help_text="Related content type (if any).",
    )
    object_id = serializers.IntegerField(
        read_only=True,
        allow_null=True,
        help_text="PK of the related object (if any).",
    )
