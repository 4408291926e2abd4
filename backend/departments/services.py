"""
Departments Service Layer.

This module is the **single source of truth** for all business logic
within the ``departments`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, and return the result
wrapped in a DRF ``Response``.

Architecture
------------
- ``DepartmentDirectory``     — look-ups used by the complaint lifecycle
                                (category match, staff fan-out lists).
- ``DepartmentQueryService``  — filtered listing and detail retrieval.
- ``DepartmentService``       — admin CRUD, head hand-over, delete guard.
- ``DepartmentMemberService`` — department-scoped complaint / user lists.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from accounts.models import UserRole, UserStatus
from core.domain.access import get_user_role_name, require_role
from core.domain.exceptions import Conflict, NotFound, PermissionDenied
from core.domain.filters import FilterField, QueryFilterBuilder, parse_choice

from .models import Department, DepartmentStatus

User = get_user_model()
logger = logging.getLogger(__name__)


DEPARTMENT_FILTERS = QueryFilterBuilder(
    fields=[
        FilterField("status", "status", parse_choice(DepartmentStatus)),
        FilterField("code", "code", str.upper),
    ],
    sortable={"name": "name", "code": "code", "created_at": "created_at"},
    default_sort="name",
)

DEPARTMENT_USER_FILTERS = QueryFilterBuilder(
    fields=[
        FilterField("role", "role", parse_choice(UserRole)),
        FilterField("status", "status", parse_choice(UserStatus)),
    ],
    sortable={"name": "name", "email": "email", "created_at": "date_joined"},
    default_sort="name",
)


# ═══════════════════════════════════════════════════════════════════
#  Department Directory
# ═══════════════════════════════════════════════════════════════════


class DepartmentDirectory:
    """
    Read-only look-ups consumed by the complaint lifecycle.
    """

    @staticmethod
    def find_active_by_category(category: str) -> Department | None:
        """
        Return the first active department (lowest id) whose category
        list contains ``category``, or ``None``.

        ``categories`` is a JSON list; containment is evaluated in Python
        so the look-up behaves the same on every database backend.
        """
        for department in Department.objects.filter(
            status=DepartmentStatus.ACTIVE,
        ).order_by("pk"):
            if department.services_category(category):
                return department
        return None

    @staticmethod
    def find_staff(department: Department | int | None, roles: tuple[str, ...]) -> QuerySet:
        """
        Return active users of ``department`` whose role is in ``roles``.

        An unassigned department yields an empty queryset.
        """
        if department is None:
            return User.objects.none()
        return User.objects.filter(
            department=department,
            role__in=roles,
            status=UserStatus.ACTIVE,
        ).order_by("pk")


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════


class DepartmentQueryService:

    @staticmethod
    def list_departments(params: dict[str, Any]) -> QuerySet[Department]:
        qs = Department.objects.select_related("head")
        return DEPARTMENT_FILTERS.apply(qs, params)

    @staticmethod
    def get_department(pk: int) -> Department:
        try:
            return Department.objects.select_related("head").get(pk=pk)
        except Department.DoesNotExist:
            raise NotFound(f"Department with id {pk} not found.")


# ═══════════════════════════════════════════════════════════════════
#  Department CRUD
# ═══════════════════════════════════════════════════════════════════


class DepartmentService:
    """
    Administrative operations on departments.  Admin only.

    Head hand-over rules
    --------------------
    * The new head becomes a ``supervisor`` of this department.
    * The previous head is demoted to ``officer`` unless they still
      head another department.
    """

    @staticmethod
    @transaction.atomic
    def create_department(validated_data: dict[str, Any], requesting_user: Any) -> Department:
        """
        Create a department.

        Raises
        ------
        PermissionDenied
            If the requester is not an admin.
        Conflict
            If the code (case-insensitive) or name is already taken.
        """
        require_role(requesting_user, UserRole.ADMIN)

        code = validated_data["code"].strip().upper()
        if Department.objects.filter(code=code).exists():
            raise Conflict(f"Department with code '{code}' already exists.")
        if Department.objects.filter(name__iexact=validated_data["name"]).exists():
            raise Conflict(f"Department named '{validated_data['name']}' already exists.")

        head = validated_data.pop("head", None)
        try:
            department = Department.objects.create(**validated_data)
        except IntegrityError:
            raise Conflict("A department with this name or code already exists.")

        if head is not None:
            DepartmentService._install_head(department, head)

        logger.info(
            "Department %s created by %s",
            department.code,
            requesting_user,
        )
        return department

    @staticmethod
    @transaction.atomic
    def update_department(pk: int, validated_data: dict[str, Any], requesting_user: Any) -> Department:
        """
        Partially update a department, handing over the head role when
        ``head`` changes.
        """
        require_role(requesting_user, UserRole.ADMIN)
        department = DepartmentQueryService.get_department(pk)

        code = validated_data.get("code")
        if code is not None:
            code = code.strip().upper()
            validated_data["code"] = code
            if code != department.code and Department.objects.filter(code=code).exists():
                raise Conflict(f"Department with code '{code}' already exists.")

        name = validated_data.get("name")
        if (
            name is not None
            and name != department.name
            and Department.objects.filter(name__iexact=name).exclude(pk=department.pk).exists()
        ):
            raise Conflict(f"Department named '{name}' already exists.")

        head_given = "head" in validated_data
        new_head = validated_data.pop("head", None)
        previous_head = department.head

        for field, value in validated_data.items():
            setattr(department, field, value)
        department.save()

        if head_given and new_head is not None and new_head.pk != department.head_id:
            DepartmentService._install_head(department, new_head)
            if previous_head is not None:
                DepartmentService._release_head(department, previous_head)
        elif head_given and new_head is None and previous_head is not None:
            department.head = None
            department.save(update_fields=["head", "updated_at"])
            DepartmentService._release_head(department, previous_head)

        logger.info("Department %s updated by %s", department.code, requesting_user)
        return DepartmentQueryService.get_department(department.pk)

    @staticmethod
    @transaction.atomic
    def delete_department(pk: int, requesting_user: Any) -> None:
        """
        Delete a department that has neither members nor complaints.

        Raises
        ------
        Conflict
            If users or complaints are still assigned.
        """
        require_role(requesting_user, UserRole.ADMIN)
        department = DepartmentQueryService.get_department(pk)

        if department.members.exists():
            raise Conflict(
                "Department has users assigned. Please reassign them before deleting."
            )
        if department.complaints.exists():
            raise Conflict(
                "Department has complaints assigned. Please reassign them before deleting."
            )

        code = department.code
        department.delete()
        logger.info("Department %s deleted by %s", code, requesting_user)

    # ── Private helpers ─────────────────────────────────────────────

    @staticmethod
    def _install_head(department: Department, head: Any) -> None:
        department.head = head
        department.save(update_fields=["head", "updated_at"])
        head.role = UserRole.SUPERVISOR
        head.department = department
        head.save(update_fields=["role", "department"])

    @staticmethod
    def _release_head(department: Department, previous_head: Any) -> None:
        still_heads = Department.objects.filter(head=previous_head).exclude(pk=department.pk).exists()
        if not still_heads:
            previous_head.role = UserRole.OFFICER
            previous_head.save(update_fields=["role"])


# ═══════════════════════════════════════════════════════════════════
#  Department members & complaints
# ═══════════════════════════════════════════════════════════════════


class DepartmentMemberService:

    @staticmethod
    def list_department_complaints(
        pk: int,
        params: dict[str, Any],
        requesting_user: Any,
    ) -> QuerySet:
        """
        Complaints assigned to the department.  Admins, or staff of
        that same department.
        """
        from complaints.services import COMPLAINT_FILTERS
        from complaints.models import Complaint

        department = DepartmentQueryService.get_department(pk)
        role = get_user_role_name(requesting_user)
        if role != UserRole.ADMIN and (
            role not in (UserRole.OFFICER, UserRole.SUPERVISOR)
            or requesting_user.department_id != department.pk
        ):
            raise PermissionDenied("Not authorized to access this department's complaints.")

        qs = Complaint.objects.filter(assigned_department=department).select_related(
            "citizen", "assigned_department", "assigned_officer",
        )
        return COMPLAINT_FILTERS.apply(qs, params)

    @staticmethod
    def list_department_users(
        pk: int,
        params: dict[str, Any],
        requesting_user: Any,
    ) -> QuerySet:
        """
        Users belonging to the department.  Admins, or the supervisors
        of that same department.
        """
        department = DepartmentQueryService.get_department(pk)
        require_role(requesting_user, UserRole.ADMIN, UserRole.SUPERVISOR)
        if (
            get_user_role_name(requesting_user) == UserRole.SUPERVISOR
            and requesting_user.department_id != department.pk
        ):
            raise PermissionDenied("Not authorized to access this department's users.")

        qs = User.objects.filter(department=department).select_related("department")
        return DEPARTMENT_USER_FILTERS.apply(qs, params)
