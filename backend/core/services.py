"""
Core app service layer.

Contains cross-app aggregation services that query models from the
``accounts``, ``departments`` and ``complaints`` apps.

Rulebook
--------
* Cross-app models are resolved lazily with ``django.apps.apps.get_model``
  (or a function-local import) so that ``core`` never imports another
  app at module load time.
* Role scoping reuses the complaint scope config owned by the
  ``complaints`` app; nothing here re-implements visibility rules.
* Every public method returns plain dicts / querysets that the
  serializers in ``core.serializers`` render.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Iterable

from django.apps import apps
from django.db.models import Avg, Count, Q, QuerySet
from django.utils import timezone

from core.constants import (
    CITIZEN_RECENT_LIMIT,
    DEFAULT_REPORT_PERIOD,
    FEEDBACK_RATINGS,
    REGISTRATION_HISTORY_MONTHS,
    REPORT_PERIODS,
    STAFF_RECENT_LIMIT,
)
from core.domain.access import apply_role_filter, get_user_role_name
from core.domain.exceptions import DomainError, NotFound, PermissionDenied
from core.domain.filters import FilterField, QueryFilterBuilder, parse_bool, parse_choice

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


def resolve_period(raw: str | None) -> tuple[str, Any]:
    """
    Map a ``?period=`` value to ``(period_name, window_start)``.

    Raises ``DomainError`` for an unknown period name.
    """
    period = (raw or DEFAULT_REPORT_PERIOD).strip().lower()
    if period not in REPORT_PERIODS:
        raise DomainError(
            f"Invalid period '{period}'. "
            f"Allowed: {', '.join(REPORT_PERIODS)}."
        )
    return period, timezone.now() - timedelta(days=REPORT_PERIODS[period])


# ════════════════════════════════════════════════════════════════════
#  Analytics helpers
# ════════════════════════════════════════════════════════════════════

class AnalyticsService:
    """
    Stateless statistics over a complaint queryset.

    Shared by the dashboard and the reports so that "resolution rate"
    or "average resolution time" means the same thing everywhere.
    """

    @staticmethod
    def resolution_rate(complaint_qs: QuerySet) -> float:
        """Percentage (0-100, two decimals) of complaints that are resolved."""
        from complaints.models import ComplaintStatus

        counts = complaint_qs.aggregate(
            total=Count("id"),
            resolved=Count("id", filter=Q(status=ComplaintStatus.RESOLVED)),
        )
        if not counts["total"]:
            return 0.0
        return round(counts["resolved"] * 100.0 / counts["total"], 2)

    @staticmethod
    def avg_resolution_time(complaint_qs: QuerySet) -> float | None:
        """
        Mean days between ``created_at`` and ``resolved_at`` over resolved
        complaints, or ``None`` when nothing has been resolved.
        """
        rows = complaint_qs.filter(resolved_at__isnull=False).values_list(
            "created_at", "resolved_at",
        )
        return _mean_days(rows)

    @staticmethod
    def avg_resolution_time_by_category(complaint_qs: QuerySet) -> list[dict[str, Any]]:
        """Average resolution time in days, one row per category that has data."""
        from complaints.models import ComplaintCategory

        buckets: dict[str, list[tuple[Any, Any]]] = {}
        rows = complaint_qs.filter(resolved_at__isnull=False).values_list(
            "category", "created_at", "resolved_at",
        )
        for category, created_at, resolved_at in rows:
            buckets.setdefault(category, []).append((created_at, resolved_at))

        labels = dict(ComplaintCategory.choices)
        return [
            {
                "category": category,
                "label": labels.get(category, category),
                "average_days": _mean_days(pairs),
                "count": len(pairs),
            }
            for category, pairs in sorted(buckets.items())
        ]

    @staticmethod
    def feedback_stats(complaint_qs: QuerySet) -> dict[str, Any]:
        """Average rating, number of ratings and the 1-5 distribution."""
        ComplaintFeedback = apps.get_model("complaints", "ComplaintFeedback")

        feedback_qs = ComplaintFeedback.objects.filter(complaint__in=complaint_qs)
        summary = feedback_qs.aggregate(average=Avg("rating"), count=Count("id"))
        distribution = {str(rating): 0 for rating in FEEDBACK_RATINGS}
        for row in feedback_qs.values("rating").annotate(n=Count("id")):
            distribution[str(row["rating"])] = row["n"]

        average = summary["average"]
        return {
            "average": round(average, 2) if average is not None else None,
            "count": summary["count"],
            "distribution": distribution,
        }

    @staticmethod
    def count_by(
        complaint_qs: QuerySet,
        field: str,
        labels: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Group ``complaint_qs`` by ``field`` into ``{value, label, count}`` rows."""
        labels = labels or {}
        rows = (
            complaint_qs
            .order_by()
            .values(field)
            .annotate(count=Count("id"))
            .order_by(field)
        )
        return [
            {
                "value": row[field],
                "label": labels.get(row[field], row[field]),
                "count": row["count"],
            }
            for row in rows
        ]


def _mean_days(pairs: Iterable[tuple[Any, Any]]) -> float | None:
    durations = [(end - start).total_seconds() for start, end in pairs]
    if not durations:
        return None
    return round(sum(durations) / len(durations) / 86400, 2)


# ════════════════════════════════════════════════════════════════════
#  Dashboard Aggregation Service
# ════════════════════════════════════════════════════════════════════

class DashboardAggregationService:
    """
    Produces the statistics dict consumed by ``DashboardStatsSerializer``.

    The statistics are **role-aware**:

    * **Citizen**: own complaints only; totals, per-status and
      per-category counts, the most recent complaints and how many
      resolved complaints still lack feedback.
    * **Officer / Supervisor**: complaints assigned to their department;
      adds per-officer counts, unresolved high-priority count and the
      average feedback rating.
    * **Admin**: system-wide; adds user and department totals,
      per-department counts, average resolution time per category and
      the monthly registration series.
    """

    def __init__(self, user: Any) -> None:
        self.user = user
        self.role = get_user_role_name(user)

    # ── Public API ──────────────────────────────────────────────────

    def get_stats(self) -> dict[str, Any]:
        """Return the dashboard statistics dictionary for ``self.user``."""
        from accounts.models import UserRole

        complaint_qs = self._get_complaint_queryset()
        stats = {
            "role": self.role,
            "total_complaints": complaint_qs.count(),
            "complaints_by_status": self._by_status(complaint_qs),
            "complaints_by_category": self._by_category(complaint_qs),
        }

        if self.role == UserRole.CITIZEN:
            stats.update(self._citizen_stats(complaint_qs))
        elif self.role == UserRole.ADMIN:
            stats.update(self._admin_stats(complaint_qs))
        else:
            stats.update(self._staff_stats(complaint_qs))
        return stats

    # ── Per-role sections ───────────────────────────────────────────

    def _citizen_stats(self, complaint_qs: QuerySet) -> dict[str, Any]:
        from complaints.models import ComplaintStatus

        awaiting_feedback = complaint_qs.filter(
            status=ComplaintStatus.RESOLVED,
            feedback__isnull=True,
        ).count()
        return {
            "recent_complaints": self._recent(complaint_qs, CITIZEN_RECENT_LIMIT),
            "awaiting_feedback": awaiting_feedback,
        }

    def _staff_stats(self, complaint_qs: QuerySet) -> dict[str, Any]:
        from complaints.models import ComplaintPriority, ComplaintStatus

        by_officer = [
            {
                "officer_id": row["assigned_officer_id"],
                "name": row["assigned_officer__name"],
                "count": row["count"],
            }
            for row in (
                complaint_qs
                .filter(assigned_officer__isnull=False)
                .order_by()
                .values("assigned_officer_id", "assigned_officer__name")
                .annotate(count=Count("id"))
                .order_by("assigned_officer__name")
            )
        ]
        high_priority_open = (
            complaint_qs
            .filter(priority=ComplaintPriority.HIGH)
            .exclude(status=ComplaintStatus.RESOLVED)
            .count()
        )
        return {
            "complaints_by_officer": by_officer,
            "high_priority_unresolved": high_priority_open,
            "average_rating": AnalyticsService.feedback_stats(complaint_qs)["average"],
            "recent_complaints": self._recent(complaint_qs, STAFF_RECENT_LIMIT),
        }

    def _admin_stats(self, complaint_qs: QuerySet) -> dict[str, Any]:
        User = apps.get_model("accounts", "User")
        Department = apps.get_model("departments", "Department")

        by_department = [
            {
                "department_id": row["assigned_department_id"],
                "name": row["assigned_department__name"] or "Unassigned",
                "count": row["count"],
            }
            for row in (
                complaint_qs
                .order_by()
                .values("assigned_department_id", "assigned_department__name")
                .annotate(count=Count("id"))
                .order_by("assigned_department__name")
            )
        ]
        return {
            "total_users": User.objects.count(),
            "total_departments": Department.objects.count(),
            "complaints_by_department": by_department,
            "resolution_rate": AnalyticsService.resolution_rate(complaint_qs),
            "average_resolution_days": AnalyticsService.avg_resolution_time(complaint_qs),
            "resolution_time_by_category": (
                AnalyticsService.avg_resolution_time_by_category(complaint_qs)
            ),
            "registrations_by_month": self._registrations_by_month(),
            "recent_complaints": self._recent(complaint_qs, STAFF_RECENT_LIMIT),
        }

    # ── Private helpers ─────────────────────────────────────────────

    def _get_complaint_queryset(self) -> QuerySet:
        """Return a ``Complaint`` queryset scoped to the requesting user's role."""
        from complaints.services import COMPLAINT_SCOPE

        Complaint = apps.get_model("complaints", "Complaint")
        return apply_role_filter(
            Complaint.objects.all(),
            self.user,
            scope_config=COMPLAINT_SCOPE,
        )

    @staticmethod
    def _by_status(complaint_qs: QuerySet) -> list[dict[str, Any]]:
        from complaints.models import ComplaintStatus

        return AnalyticsService.count_by(complaint_qs, "status", dict(ComplaintStatus.choices))

    @staticmethod
    def _by_category(complaint_qs: QuerySet) -> list[dict[str, Any]]:
        from complaints.models import ComplaintCategory

        return AnalyticsService.count_by(complaint_qs, "category", dict(ComplaintCategory.choices))

    @staticmethod
    def _recent(complaint_qs: QuerySet, limit: int) -> list[dict[str, Any]]:
        rows = (
            complaint_qs
            .select_related("assigned_department")
            .order_by("-created_at")[:limit]
        )
        return [
            {
                "id": c.pk,
                "complaint_id": c.complaint_id,
                "category": c.category,
                "status": c.status,
                "priority": c.priority,
                "department": c.assigned_department.name if c.assigned_department else None,
                "created_at": c.created_at,
            }
            for c in rows
        ]

    @staticmethod
    def _registrations_by_month() -> list[dict[str, Any]]:
        """Users joined per calendar month, oldest first, zero-filled."""
        User = apps.get_model("accounts", "User")

        now = timezone.localtime()
        months: list[tuple[int, int]] = []
        year, month = now.year, now.month
        for _ in range(REGISTRATION_HISTORY_MONTHS):
            months.append((year, month))
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        months.reverse()

        first_year, first_month = months[0]
        window_start = now.replace(
            year=first_year, month=first_month, day=1,
            hour=0, minute=0, second=0, microsecond=0,
        )
        counts = {key: 0 for key in months}
        for joined in User.objects.filter(date_joined__gte=window_start).values_list(
            "date_joined", flat=True,
        ):
            local = timezone.localtime(joined)
            key = (local.year, local.month)
            if key in counts:
                counts[key] += 1

        return [
            {"month": f"{y:04d}-{m:02d}", "count": counts[(y, m)]}
            for y, m in months
        ]


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all system-wide choice enumerations into a single dict for
    the frontend.

    This service is **stateless** — it does not depend on the requesting
    user.  All constants are public information needed by the frontend
    to render dropdowns and labels.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import UserRole, UserStatus
        from complaints.models import ComplaintCategory, ComplaintPriority, ComplaintStatus
        from complaints.services import ALLOWED_TRANSITIONS
        from departments.models import DepartmentStatus

        to_list = SystemConstantsService._choices_to_list

        return {
            "complaint_categories": to_list(ComplaintCategory),
            "complaint_statuses": to_list(ComplaintStatus),
            "complaint_priorities": to_list(ComplaintPriority),
            "status_transitions": [
                {"status": str(source), "allowed": sorted(str(t) for t in targets)}
                for source, targets in ALLOWED_TRANSITIONS.items()
            ],
            "user_roles": to_list(UserRole),
            "user_statuses": to_list(UserStatus),
            "department_statuses": to_list(DepartmentStatus),
            "notification_types": to_list(NotificationType),
            "report_periods": [
                {"value": name, "label": f"Last {days} days"}
                for name, days in REPORT_PERIODS.items()
            ],
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Inbox Service
# ═══════════════════════════════════════════════════════════════════

NOTIFICATION_FILTERS = QueryFilterBuilder(
    fields=[
        FilterField("is_read", "is_read", parse_bool),
        FilterField("type", "type", parse_choice(NotificationType)),
    ],
    sortable={"created_at": "created_at"},
    default_sort="-created_at",
)


class NotificationInboxService:
    """
    Reads and updates the notifications of one recipient.

    Creation lives in ``core.domain.notifications``; this service only
    handles the recipient's side of the inbox.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    def list_notifications(self, params: dict[str, Any] | None = None) -> QuerySet:
        """Return ``self.user``'s notifications, most recent first."""
        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("content_type")
        )
        return NOTIFICATION_FILTERS.apply(qs, params or {})

    def unread_count(self) -> int:
        return Notification.objects.filter(recipient=self.user, is_read=False).count()

    def mark_as_read(self, notification_id: int) -> Notification:
        """
        Mark a single notification as read.

        Raises ``NotFound`` for an unknown id and ``PermissionDenied``
        when the notification belongs to someone else.
        """
        notification = self._get_own(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification as read; returns how many changed."""
        updated = Notification.objects.filter(
            recipient=self.user,
            is_read=False,
        ).update(is_read=True, read_at=timezone.now(), updated_at=timezone.now())
        logger.info("Marked %d notification(s) read for user=%s", updated, self.user.pk)
        return updated

    def delete_notification(self, notification_id: int) -> None:
        notification = self._get_own(notification_id)
        notification.delete()
        logger.info("Notification %s deleted by user=%s", notification_id, self.user.pk)

    def _get_own(self, notification_id: int) -> Notification:
        try:
            notification = Notification.objects.get(pk=notification_id)
        except Notification.DoesNotExist:
            raise NotFound(f"Notification with id {notification_id} not found.")
        if notification.recipient_id != self.user.pk:
            raise PermissionDenied("Not authorized to access this notification.")
        return notification
