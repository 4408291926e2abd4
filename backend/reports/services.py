"""
Reports app service layer.

Builds the data behind the three report endpoints.  Rendering (JSON or
CSV) is left to the views; services return model instances and plain
dicts only.

- ``ReportService.complaint_report``  — one complaint, read guard applies.
- ``ReportService.department_report`` — a department's complaints in a period.
- ``ReportService.system_report``     — system-wide totals (admin).
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models import Count, Q
from django.utils import timezone

from accounts.models import User, UserRole
from complaints.models import Complaint, ComplaintPriority, ComplaintStatus
from complaints.services import ComplaintQueryService
from core.domain.access import get_user_role_name, require_role
from core.domain.exceptions import PermissionDenied
from core.services import AnalyticsService, resolve_period
from departments.models import Department
from departments.services import DepartmentQueryService

logger = logging.getLogger(__name__)

#: Columns of the department CSV export, in order.
DEPARTMENT_CSV_COLUMNS: tuple[str, ...] = (
    "complaint_id",
    "category",
    "status",
    "priority",
    "created_at",
    "resolved_at",
)


class ReportService:
    """Stateless report builders; every method takes ``requesting_user``."""

    @staticmethod
    def complaint_report(pk: int, requesting_user: Any) -> Complaint:
        """
        Return the fully populated complaint for a report.

        Delegates to ``ComplaintQueryService.get_complaint`` so the same
        read guard as the detail endpoint applies.
        """
        complaint = ComplaintQueryService.get_complaint(pk, requesting_user)
        logger.info("Complaint report %s generated by user=%s", complaint.complaint_id, requesting_user.pk)
        return complaint

    @staticmethod
    def department_report(
        pk: int,
        period: str | None,
        requesting_user: Any,
    ) -> dict[str, Any]:
        """
        Summary and rows for complaints assigned to a department and
        created within ``period``.

        Allowed for admins and for supervisors of that department.

        Raises
        ------
        NotFound
            Unknown department.
        PermissionDenied
            Any other caller.
        DomainError
            Unknown ``period``.
        """
        department = DepartmentQueryService.get_department(pk)
        role = get_user_role_name(requesting_user)
        if role != UserRole.ADMIN and (
            role != UserRole.SUPERVISOR or requesting_user.department_id != department.pk
        ):
            raise PermissionDenied("Not authorized to access this department's reports.")

        period, since = resolve_period(period)
        complaint_qs = (
            Complaint.objects
            .filter(assigned_department=department, created_at__gte=since)
            .select_related("citizen", "assigned_officer")
            .order_by("-created_at")
        )

        summary = complaint_qs.aggregate(
            total=Count("id"),
            resolved=Count("id", filter=Q(status=ComplaintStatus.RESOLVED)),
            high_priority=Count("id", filter=Q(priority=ComplaintPriority.HIGH)),
        )
        summary.update({
            "by_status": AnalyticsService.count_by(
                complaint_qs, "status", dict(ComplaintStatus.choices),
            ),
            "by_priority": AnalyticsService.count_by(
                complaint_qs, "priority", dict(ComplaintPriority.choices),
            ),
            "resolution_rate": AnalyticsService.resolution_rate(complaint_qs),
            "average_resolution_days": AnalyticsService.avg_resolution_time(complaint_qs),
            "feedback": AnalyticsService.feedback_stats(complaint_qs),
        })

        logger.info(
            "Department report %s (%s) generated by user=%s: %d complaint(s)",
            department.code, period, requesting_user.pk, summary["total"],
        )
        return {
            "department": department,
            "period": period,
            "since": since,
            "generated_at": timezone.now(),
            "summary": summary,
            "complaints": complaint_qs,
        }

    @staticmethod
    def department_csv_rows(report: dict[str, Any]) -> list[dict[str, Any]]:
        """Flatten a department report into CSV rows."""
        return [
            {
                "complaint_id": c.complaint_id,
                "category": c.category,
                "status": c.status,
                "priority": c.priority,
                "created_at": c.created_at.isoformat(),
                "resolved_at": c.resolved_at.isoformat() if c.resolved_at else "",
            }
            for c in report["complaints"]
        ]

    @staticmethod
    def system_report(period: str | None, requesting_user: Any) -> dict[str, Any]:
        """System-wide totals and period activity.  Admin only."""
        require_role(requesting_user, UserRole.ADMIN, message="Only admins can view system reports.")
        period, since = resolve_period(period)

        complaint_qs = Complaint.objects.all()
        complaints = complaint_qs.aggregate(
            total=Count("id"),
            new=Count("id", filter=Q(created_at__gte=since)),
            resolved=Count("id", filter=Q(status=ComplaintStatus.RESOLVED)),
            resolved_in_period=Count(
                "id",
                filter=Q(status=ComplaintStatus.RESOLVED, resolved_at__gte=since),
            ),
        )
        complaints.update({
            "resolution_rate": AnalyticsService.resolution_rate(complaint_qs),
            "average_resolution_days": AnalyticsService.avg_resolution_time(complaint_qs),
            "by_status": AnalyticsService.count_by(
                complaint_qs, "status", dict(ComplaintStatus.choices),
            ),
        })

        users = User.objects.aggregate(
            total=Count("id"),
            new=Count("id", filter=Q(date_joined__gte=since)),
        )
        users["by_role"] = AnalyticsService.count_by(
            User.objects.all(), "role", dict(UserRole.choices),
        )

        departments = [
            {
                "id": dept.pk,
                "code": dept.code,
                "name": dept.name,
                "total": dept.total,
                "new": dept.new,
                "resolved": dept.resolved,
                "open": dept.total - dept.resolved,
            }
            for dept in Department.objects.annotate(
                total=Count("complaints"),
                new=Count("complaints", filter=Q(complaints__created_at__gte=since)),
                resolved=Count(
                    "complaints",
                    filter=Q(complaints__status=ComplaintStatus.RESOLVED),
                ),
            ).order_by("name")
        ]

        logger.info("System report (%s) generated by user=%s", period, requesting_user.pk)
        return {
            "period": period,
            "since": since,
            "generated_at": timezone.now(),
            "complaints": complaints,
            "users": users,
            "departments": departments,
        }

    @staticmethod
    def system_csv_rows(report: dict[str, Any]) -> list[dict[str, Any]]:
        """Flatten a system report into ``metric, value`` rows."""
        complaints = report["complaints"]
        users = report["users"]
        rows = [
            ("Total Complaints", complaints["total"]),
            ("New Complaints", complaints["new"]),
            ("Resolved Complaints", complaints["resolved"]),
            ("Resolved In Period", complaints["resolved_in_period"]),
            ("Resolution Rate (%)", complaints["resolution_rate"]),
            ("Average Resolution Days", complaints["average_resolution_days"] or ""),
            ("Total Users", users["total"]),
            ("New Users", users["new"]),
        ]
        rows += [(f"Status: {row['label']}", row["count"]) for row in complaints["by_status"]]
        rows += [(f"Role: {row['label']}", row["count"]) for row in users["by_role"]]
        rows += [(f"Department: {dept['name']}", dept["total"]) for dept in report["departments"]]
        return [{"metric": metric, "value": value} for metric, value in rows]
