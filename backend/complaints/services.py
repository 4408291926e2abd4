"""
Complaints app Service Layer.

This module is the **single source of truth** for all business logic
in the ``complaints`` app.  Views must remain thin: validate input via
serializers, call a service method with the explicit ``requesting_user``,
and return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``ComplaintIdGenerator``       — per-month ``CMP-YY-MM-NNNN`` identifiers.
- ``ComplaintAccessGuard``       — read / write / assign authorization.
- ``TimelineRecorder``           — append-only history entries.
- ``ComplaintNotifier``          — notification fan-out per lifecycle event.
- ``ComplaintQueryService``      — role-scoped, filtered listing and detail.
- ``ComplaintCreationService``   — filing, auto-assignment, first entry.
- ``ComplaintLifecycleService``  — the partial-update state machine.
- ``ComplaintAttachmentService`` — attachment upload / removal.
- ``ComplaintTrackingService``   — public, PII-free tracking look-up.

Lifecycle State-Machine Overview
--------------------------------
  SUBMITTED → UNDER_REVIEW → IN_PROGRESS → RESOLVED
                   ↑                           │
                   └──────── REOPENED ◀────────┘

Every lifecycle update runs in one transaction with the complaint row
locked.  Timeline entries and notifications commit together with the
complaint, or not at all.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction
from django.db.models import Case, IntegerField, Prefetch, Q, QuerySet, Value, When
from django.utils import timezone

from accounts.models import STAFF_ROLES, UserRole
from core.domain.access import ScopeConfig, apply_role_filter, get_user_role_name, require_role
from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.filters import (
    RANGE_OPERATORS,
    FilterField,
    QueryFilterBuilder,
    parse_choice,
    parse_date,
    parse_int,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import check_version, delete_file_on_commit, lock_for_update
from departments.services import DepartmentDirectory

from .models import (
    Complaint,
    ComplaintAttachment,
    ComplaintCategory,
    ComplaintComment,
    ComplaintFeedback,
    ComplaintPriority,
    ComplaintSequence,
    ComplaintStatus,
    ComplaintTimelineEntry,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Valid transition map
# ═══════════════════════════════════════════════════════════════════

#: Maps current status → statuses reachable in one update.
#: Transitions not present here are illegal.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    ComplaintStatus.SUBMITTED: {ComplaintStatus.UNDER_REVIEW},
    ComplaintStatus.UNDER_REVIEW: {ComplaintStatus.IN_PROGRESS},
    ComplaintStatus.IN_PROGRESS: {ComplaintStatus.RESOLVED},
    ComplaintStatus.RESOLVED: {ComplaintStatus.REOPENED},
    ComplaintStatus.REOPENED: {ComplaintStatus.UNDER_REVIEW},
}

#: Role-keyed visibility of complaints.
COMPLAINT_SCOPE: ScopeConfig = {
    UserRole.ADMIN: lambda qs, u: qs,
    UserRole.SUPERVISOR: lambda qs, u: qs.filter(
        assigned_department__isnull=False,
        assigned_department_id=u.department_id,
    ),
    UserRole.OFFICER: lambda qs, u: qs.filter(
        assigned_department__isnull=False,
        assigned_department_id=u.department_id,
    ),
    UserRole.CITIZEN: lambda qs, u: qs.filter(citizen=u),
}

# Ascending sort runs low to high; ``-priority`` puts the most urgent first.
PRIORITY_RANK = Case(
    When(priority=ComplaintPriority.LOW, then=Value(1)),
    When(priority=ComplaintPriority.MEDIUM, then=Value(2)),
    When(priority=ComplaintPriority.HIGH, then=Value(3)),
    output_field=IntegerField(),
)

COMPLAINT_FILTERS = QueryFilterBuilder(
    fields=[
        FilterField("status", "status", parse_choice(ComplaintStatus)),
        FilterField("category", "category", parse_choice(ComplaintCategory)),
        FilterField("priority", "priority", parse_choice(ComplaintPriority)),
        FilterField("department", "assigned_department_id", parse_int),
        FilterField("officer", "assigned_officer_id", parse_int),
        FilterField("citizen", "citizen_id", parse_int),
        FilterField("created_at", "created_at__date", parse_date, operators=RANGE_OPERATORS),
        FilterField("resolved_at", "resolved_at__date", parse_date, operators=RANGE_OPERATORS),
        FilterField(
            "estimated_resolution_date",
            "estimated_resolution_date__date",
            parse_date,
            operators=RANGE_OPERATORS,
        ),
    ],
    sortable={
        "created_at": "created_at",
        "updated_at": "updated_at",
        "status": "status",
        "priority": PRIORITY_RANK,
        "category": "category",
        "complaint_id": "complaint_id",
        "estimated_resolution_date": "estimated_resolution_date",
    },
    default_sort="-created_at",
)


def _detail_queryset() -> QuerySet:
    return Complaint.objects.select_related(
        "citizen",
        "assigned_department",
        "assigned_officer",
        "feedback",
    ).prefetch_related(
        Prefetch(
            "timeline",
            queryset=ComplaintTimelineEntry.objects.select_related("updated_by", "department"),
        ),
        Prefetch(
            "comments",
            queryset=ComplaintComment.objects.select_related("author"),
        ),
        "attachments",
    )


# ═══════════════════════════════════════════════════════════════════
#  ID Generator
# ═══════════════════════════════════════════════════════════════════


class ComplaintIdGenerator:
    """
    Produces ``<PREFIX>-<YY>-<MM>-<NNNN>`` identifiers.

    The sequence is kept in ``ComplaintSequence`` (one row per month) and
    incremented under a row lock, so IDs are unique and strictly
    increasing within a month even under concurrent filing.  A month's
    row is seeded with the number of complaints already created in it.
    """

    @staticmethod
    def next_id(now=None) -> str:
        now = timezone.localtime(now or timezone.now())
        period = now.strftime("%y%m")
        prefix = getattr(settings, "COMPLAINT_ID_PREFIX", "CMP")

        with transaction.atomic():
            sequence, _ = ComplaintSequence.objects.select_for_update().get_or_create(
                period=period,
                defaults={
                    "last_value": Complaint.objects.filter(
                        created_at__year=now.year,
                        created_at__month=now.month,
                    ).count(),
                },
            )
            sequence.last_value += 1
            sequence.save(update_fields=["last_value"])

        return f"{prefix}-{now:%y}-{now:%m}-{sequence.last_value:04d}"


# ═══════════════════════════════════════════════════════════════════
#  Authorization Guard
# ═══════════════════════════════════════════════════════════════════


class ComplaintAccessGuard:
    """
    Decides whether the acting principal may read, modify or reassign
    a complaint.

    * citizen            → only their own complaints.
    * officer/supervisor → only complaints assigned to their department
                           (unassigned complaints are out of reach).
    * admin              → everything.
    """

    @staticmethod
    def can_read(user: Any, complaint: Complaint) -> bool:
        role = get_user_role_name(user)
        if role == UserRole.ADMIN:
            return True
        if role == UserRole.CITIZEN:
            return complaint.citizen_id == user.pk
        if role in STAFF_ROLES:
            return (
                complaint.assigned_department_id is not None
                and complaint.assigned_department_id == user.department_id
            )
        return False

    @staticmethod
    def can_write(user: Any, complaint: Complaint) -> bool:
        return ComplaintAccessGuard.can_read(user, complaint)

    @staticmethod
    def can_assign(user: Any) -> bool:
        return get_user_role_name(user) in (UserRole.ADMIN, UserRole.SUPERVISOR)

    @staticmethod
    def ensure_read(user: Any, complaint: Complaint) -> None:
        if not ComplaintAccessGuard.can_read(user, complaint):
            raise PermissionDenied("Not authorized to access this complaint.")

    @staticmethod
    def ensure_write(user: Any, complaint: Complaint) -> None:
        if not ComplaintAccessGuard.can_write(user, complaint):
            raise PermissionDenied("Not authorized to update this complaint.")

    @staticmethod
    def ensure_assign(user: Any) -> None:
        if not ComplaintAccessGuard.can_assign(user):
            raise PermissionDenied("Not authorized to assign complaints.")


# ═══════════════════════════════════════════════════════════════════
#  Timeline Recorder
# ═══════════════════════════════════════════════════════════════════


class TimelineRecorder:
    """Appends immutable entries to a complaint's timeline."""

    @staticmethod
    def record(
        complaint: Complaint,
        description: str,
        actor: Any,
        department: Any = None,
    ) -> ComplaintTimelineEntry:
        """
        Append one entry carrying the complaint's *current* status.

        ``department`` defaults to the actor's own department (``None``
        for citizens and admins).
        """
        if department is None and actor is not None:
            department = getattr(actor, "department", None)
        return ComplaintTimelineEntry.objects.create(
            complaint=complaint,
            status=complaint.status,
            description=description,
            updated_by=actor,
            department=department,
        )


# ═══════════════════════════════════════════════════════════════════
#  Notification fan-out
# ═══════════════════════════════════════════════════════════════════


class ComplaintNotifier:
    """
    Maps lifecycle events to recipients and delegates record creation
    to ``NotificationService``.  One notification per recipient per event.
    """

    @staticmethod
    def _notify(actor: Any, recipients: Any, event_type: str, complaint: Complaint) -> list:
        return NotificationService.create(
            actor=actor,
            recipients=recipients,
            event_type=event_type,
            context={"complaint_id": complaint.complaint_id},
            related_object=complaint,
        )

    @staticmethod
    def department_staff(department: Any) -> QuerySet:
        return DepartmentDirectory.find_staff(department, STAFF_ROLES)

    @classmethod
    def complaint_created(cls, complaint: Complaint, actor: Any) -> list:
        return cls._notify(
            actor, cls.department_staff(complaint.assigned_department),
            "complaint_created", complaint,
        )

    @classmethod
    def complaint_resolved(cls, complaint: Complaint, actor: Any) -> list:
        return cls._notify(actor, complaint.citizen, "complaint_resolved", complaint)

    @classmethod
    def department_assigned(cls, complaint: Complaint, actor: Any) -> list:
        return cls._notify(
            actor, cls.department_staff(complaint.assigned_department),
            "department_assigned", complaint,
        )

    @classmethod
    def officer_assigned(cls, complaint: Complaint, actor: Any) -> list:
        return cls._notify(actor, complaint.assigned_officer, "officer_assigned", complaint)

    @classmethod
    def resolution_date_updated(cls, complaint: Complaint, actor: Any) -> list:
        return cls._notify(actor, complaint.citizen, "resolution_date_updated", complaint)

    @classmethod
    def comment_added(cls, complaint: Complaint, actor: Any) -> list:
        if get_user_role_name(actor) == UserRole.CITIZEN:
            return cls._notify(
                actor, cls.department_staff(complaint.assigned_department),
                "citizen_comment", complaint,
            )
        return cls._notify(actor, complaint.citizen, "staff_comment", complaint)

    @classmethod
    def feedback_submitted(cls, complaint: Complaint, actor: Any) -> list:
        recipients = DepartmentDirectory.find_staff(
            complaint.assigned_department,
            (UserRole.SUPERVISOR, UserRole.ADMIN),
        )
        return cls._notify(actor, recipients, "feedback_submitted", complaint)


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintQueryService:
    """
    Constructs role-scoped, filtered querysets for listing complaints
    and resolves single complaints behind the read guard.
    """

    @staticmethod
    def get_filtered_queryset(
        requesting_user: Any,
        params: dict[str, Any],
    ) -> QuerySet[Complaint]:
        """
        Build a role-scoped, filtered, ordered queryset.

        Role scoping (``COMPLAINT_SCOPE``) is applied first, then the
        enumerated filters of ``COMPLAINT_FILTERS`` and the optional
        free-text ``search`` on id / description / location.
        """
        qs = Complaint.objects.select_related(
            "citizen", "assigned_department", "assigned_officer",
        )
        qs = apply_role_filter(qs, requesting_user, scope_config=COMPLAINT_SCOPE)

        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(complaint_id__icontains=search)
                | Q(description__icontains=search)
                | Q(location__icontains=search)
            )
        return COMPLAINT_FILTERS.apply(qs, params)

    @staticmethod
    def get_complaint(pk: int, requesting_user: Any) -> Complaint:
        """
        Return a fully populated complaint the user may read.

        Raises
        ------
        NotFound
            If ``pk`` does not resolve.
        PermissionDenied
            If the read guard refuses access.
        """
        try:
            complaint = _detail_queryset().get(pk=pk)
        except Complaint.DoesNotExist:
            raise NotFound(f"Complaint with id {pk} not found.")
        ComplaintAccessGuard.ensure_read(requesting_user, complaint)
        return complaint

    @staticmethod
    def get_timeline(pk: int, requesting_user: Any) -> QuerySet[ComplaintTimelineEntry]:
        complaint = ComplaintQueryService.get_complaint(pk, requesting_user)
        return complaint.timeline.select_related("updated_by", "department")


# ═══════════════════════════════════════════════════════════════════
#  Creation Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintCreationService:
    """
    Files new complaints on behalf of citizens (or admins acting for a
    citizen).
    """

    @staticmethod
    @transaction.atomic
    def create_complaint(
        validated_data: dict[str, Any],
        requesting_user: Any,
        files: Iterable[Any] = (),
    ) -> Complaint:
        """
        Create a complaint in ``submitted`` status.

        Steps
        -----
        1. Only citizens and admins may file; an admin must name the
           citizen the complaint is filed for.
        2. Generate the human-readable ``complaint_id``.
        3. Auto-assign the first active department servicing the category.
        4. Default the estimated resolution date.
        5. Record "Complaint submitted successfully" on the timeline.
        6. Store any uploaded attachments.
        7. Notify every active officer/supervisor of the department.
        """
        require_role(requesting_user, UserRole.CITIZEN, UserRole.ADMIN)

        citizen = validated_data.pop("citizen", None)
        if get_user_role_name(requesting_user) == UserRole.CITIZEN:
            citizen = requesting_user
        elif citizen is None:
            raise DomainError("An admin filing a complaint must specify the citizen.")
        elif citizen.role != UserRole.CITIZEN:
            raise DomainError("Complaints can only be filed for citizen accounts.")

        files = list(files)
        ComplaintAttachmentService.validate_files(files, allow_empty=True)

        department = DepartmentDirectory.find_active_by_category(validated_data["category"])
        days = getattr(settings, "COMPLAINT_DEFAULT_RESOLUTION_DAYS", 3)

        complaint = Complaint.objects.create(
            complaint_id=ComplaintIdGenerator.next_id(),
            citizen=citizen,
            assigned_department=department,
            estimated_resolution_date=timezone.now() + timezone.timedelta(days=days),
            **validated_data,
        )

        TimelineRecorder.record(
            complaint,
            "Complaint submitted successfully",
            requesting_user,
            department=department,
        )
        ComplaintAttachmentService.store_files(complaint, files, requesting_user)

        if department is not None:
            ComplaintNotifier.complaint_created(complaint, requesting_user)

        logger.info(
            "Complaint %s filed by %s (department=%s)",
            complaint.complaint_id,
            requesting_user,
            department.code if department else None,
        )
        return _detail_queryset().get(pk=complaint.pk)


# ═══════════════════════════════════════════════════════════════════
#  Lifecycle Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintLifecycleService:
    """
    **The central state-machine gateway.**

    Applies a partial update to one complaint: status, assignment,
    priority, estimated date, comment and feedback, in that order.
    Each applied change appends a timeline entry and dispatches its
    notifications; the complaint is saved once at the end.
    """

    #: Payload keys that only touch the assignment.
    _ASSIGNMENT_ONLY_KEYS = frozenset({"assigned_to", "version"})

    @staticmethod
    @transaction.atomic
    def update_complaint(
        pk: int,
        payload: dict[str, Any],
        requesting_user: Any,
    ) -> Complaint:
        """
        Apply ``payload`` to complaint ``pk`` on behalf of ``requesting_user``.

        Parameters
        ----------
        pk : int
            Primary key of the complaint.
        payload : dict
            Cleaned data from ``ComplaintUpdateSerializer``; any subset of
            ``status``, ``status_description``, ``priority``,
            ``assigned_to`` (``department`` / ``officer``),
            ``estimated_resolution_date``, ``comment``, ``feedback``
            (``rating`` / ``comment``) and ``version``.
        requesting_user : User
            The acting principal.

        Returns
        -------
        Complaint
            The saved complaint with references resolved for display.

        Raises
        ------
        NotFound
            Unknown ``pk``.
        PermissionDenied
            Write guard, assignment guard or feedback-owner check failed.
        InvalidTransition
            ``status`` is not reachable from the current status.
        Conflict
            Stale ``version`` or feedback already submitted.
        DomainError
            Invalid assignment target or feedback before resolution.
        """
        complaint = lock_for_update(
            Complaint,
            pk,
            queryset=Complaint.objects.select_related(
                "citizen", "assigned_department", "assigned_officer",
            ),
        )
        ComplaintLifecycleService._authorize(complaint, payload, requesting_user)
        check_version(complaint, payload.get("version"))

        changed = False
        changed |= ComplaintLifecycleService._apply_status(complaint, payload, requesting_user)
        changed |= ComplaintLifecycleService._apply_assignment(complaint, payload, requesting_user)
        changed |= ComplaintLifecycleService._apply_priority(complaint, payload, requesting_user)
        changed |= ComplaintLifecycleService._apply_estimated_date(complaint, payload, requesting_user)
        changed |= ComplaintLifecycleService._apply_comment(complaint, payload, requesting_user)
        changed |= ComplaintLifecycleService._apply_feedback(complaint, payload, requesting_user)

        if changed:
            complaint.version += 1
            complaint.save()
            logger.info(
                "Complaint %s updated by %s (version %d)",
                complaint.complaint_id,
                requesting_user,
                complaint.version,
            )

        return _detail_queryset().get(pk=complaint.pk)

    # ── Authorization ────────────────────────────────────────────────

    @staticmethod
    def _authorize(complaint: Complaint, payload: dict[str, Any], user: Any) -> None:
        if ComplaintAccessGuard.can_write(user, complaint):
            return
        # A supervisor may claim an unassigned complaint for their own
        # department with an assignment-only update.
        department = (payload.get("assigned_to") or {}).get("department")
        if (
            get_user_role_name(user) == UserRole.SUPERVISOR
            and complaint.assigned_department_id is None
            and set(payload) <= ComplaintLifecycleService._ASSIGNMENT_ONLY_KEYS
            and department is not None
            and department.pk == user.department_id
        ):
            return
        raise PermissionDenied("Not authorized to update this complaint.")

    # ── Step 1: status ───────────────────────────────────────────────

    @staticmethod
    def _apply_status(complaint: Complaint, payload: dict[str, Any], user: Any) -> bool:
        target = payload.get("status")
        if not target or target == complaint.status:
            return False

        current = complaint.status
        if target not in ALLOWED_TRANSITIONS.get(current, set()):
            allowed = ", ".join(sorted(ALLOWED_TRANSITIONS.get(current, set()))) or "none"
            raise InvalidTransition(
                current=current,
                target=target,
                reason=f"Allowed next status: {allowed}.",
            )

        complaint.status = target
        if target == ComplaintStatus.RESOLVED:
            complaint.resolved_at = timezone.now()
        elif current == ComplaintStatus.RESOLVED:
            complaint.resolved_at = None

        TimelineRecorder.record(
            complaint,
            payload.get("status_description") or f"Status updated to {target}",
            user,
        )
        if target == ComplaintStatus.RESOLVED:
            ComplaintNotifier.complaint_resolved(complaint, user)

        logger.info(
            "Complaint %s: %s → %s by %s",
            complaint.complaint_id, current, target, user,
        )
        return True

    # ── Step 2: assignment ───────────────────────────────────────────

    @staticmethod
    def _apply_assignment(complaint: Complaint, payload: dict[str, Any], user: Any) -> bool:
        if "assigned_to" not in payload:
            return False
        ComplaintAccessGuard.ensure_assign(user)
        assignment = payload["assigned_to"] or {}
        changed = False

        if "department" in assignment:
            department = assignment["department"]
            if department is not None and not department.is_active:
                raise DomainError(f"Department '{department.name}' is inactive.")
            if department is not None and department.pk != complaint.assigned_department_id:
                if "officer" not in assignment and complaint.assigned_officer_id is not None:
                    ComplaintLifecycleService._unassign_officer(complaint, user)
                complaint.assigned_department = department
                TimelineRecorder.record(
                    complaint,
                    f"Complaint assigned to {department.name}",
                    user,
                    department=department,
                )
                ComplaintNotifier.department_assigned(complaint, user)
                changed = True
            elif department is None and complaint.assigned_department_id is not None:
                previous = complaint.assigned_department
                if complaint.assigned_officer_id is not None:
                    ComplaintLifecycleService._unassign_officer(complaint, user)
                complaint.assigned_department = None
                TimelineRecorder.record(
                    complaint,
                    f"Complaint unassigned from {previous.name}",
                    user,
                    department=previous,
                )
                changed = True

        if "officer" in assignment:
            officer = assignment["officer"]
            if officer is not None and officer.pk != complaint.assigned_officer_id:
                if officer.role not in STAFF_ROLES:
                    raise DomainError("Complaints can only be assigned to officers or supervisors.")
                if officer.department_id != complaint.assigned_department_id:
                    raise DomainError(
                        "The officer must belong to the complaint's assigned department."
                    )
                complaint.assigned_officer = officer
                TimelineRecorder.record(
                    complaint,
                    f"Complaint assigned to officer {officer.name}",
                    user,
                )
                ComplaintNotifier.officer_assigned(complaint, user)
                changed = True
            elif officer is None and complaint.assigned_officer_id is not None:
                ComplaintLifecycleService._unassign_officer(complaint, user)
                changed = True

        return changed

    @staticmethod
    def _unassign_officer(complaint: Complaint, user: Any) -> None:
        officer = complaint.assigned_officer
        complaint.assigned_officer = None
        TimelineRecorder.record(
            complaint,
            f"Officer {officer.name} unassigned",
            user,
            department=complaint.assigned_department,
        )
        logger.info("Complaint %s: officer %s unassigned by %s", complaint.complaint_id, officer.pk, user)

    # ── Step 3: priority ─────────────────────────────────────────────

    @staticmethod
    def _apply_priority(complaint: Complaint, payload: dict[str, Any], user: Any) -> bool:
        priority = payload.get("priority")
        if not priority or priority == complaint.priority:
            return False
        complaint.priority = priority
        TimelineRecorder.record(complaint, f"Priority updated to {priority}", user)
        return True

    # ── Step 4: estimated resolution date ────────────────────────────

    @staticmethod
    def _apply_estimated_date(complaint: Complaint, payload: dict[str, Any], user: Any) -> bool:
        new_date = payload.get("estimated_resolution_date")
        if new_date is None or new_date == complaint.estimated_resolution_date:
            return False
        complaint.estimated_resolution_date = new_date
        TimelineRecorder.record(
            complaint,
            f"Estimated resolution date updated to {timezone.localtime(new_date):%Y-%m-%d}",
            user,
        )
        ComplaintNotifier.resolution_date_updated(complaint, user)
        return True

    # ── Step 5: comment ──────────────────────────────────────────────

    @staticmethod
    def _apply_comment(complaint: Complaint, payload: dict[str, Any], user: Any) -> bool:
        text = (payload.get("comment") or "").strip()
        if not text:
            return False
        ComplaintComment.objects.create(complaint=complaint, author=user, text=text)
        role_label = UserRole(get_user_role_name(user)).label.lower()
        TimelineRecorder.record(complaint, f"Comment added by {role_label}", user)
        ComplaintNotifier.comment_added(complaint, user)
        return True

    # ── Step 6: feedback ─────────────────────────────────────────────

    @staticmethod
    def _apply_feedback(complaint: Complaint, payload: dict[str, Any], user: Any) -> bool:
        feedback = payload.get("feedback")
        if not feedback:
            return False
        if complaint.citizen_id != user.pk:
            raise PermissionDenied("Only the citizen who filed the complaint can submit feedback.")
        if ComplaintFeedback.objects.filter(complaint=complaint).exists():
            raise Conflict("Feedback has already been submitted for this complaint.")
        if complaint.status != ComplaintStatus.RESOLVED:
            raise DomainError("Feedback can only be submitted once the complaint is resolved.")

        ComplaintFeedback.objects.create(
            complaint=complaint,
            rating=feedback["rating"],
            comment=feedback.get("comment", ""),
        )
        TimelineRecorder.record(complaint, "Feedback submitted by citizen", user, department=None)
        ComplaintNotifier.feedback_submitted(complaint, user)
        return True


# ═══════════════════════════════════════════════════════════════════
#  Attachment Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintAttachmentService:
    """
    Manages uploaded files on complaints.  Both additions and removals
    are recorded on the timeline.
    """

    @staticmethod
    def validate_files(files: list[Any], *, allow_empty: bool = False) -> None:
        """
        Check count, MIME type and size of uploaded files.

        Raises
        ------
        DomainError
            On an empty upload (unless allowed), too many files, an
            unsupported type or an oversized file.
        """
        max_files = getattr(settings, "COMPLAINT_ATTACHMENT_MAX_FILES", 5)
        max_bytes = getattr(settings, "COMPLAINT_ATTACHMENT_MAX_BYTES", 5 * 1024 * 1024)
        allowed_types = getattr(settings, "COMPLAINT_ATTACHMENT_MIME_TYPES", ())

        if not files and not allow_empty:
            raise DomainError("Please upload at least one file.")
        if len(files) > max_files:
            raise DomainError(f"You can upload at most {max_files} files at once.")
        for upload in files:
            if upload.content_type not in allowed_types:
                raise DomainError(
                    f"File '{upload.name}' has unsupported type '{upload.content_type}'. "
                    "Only images, PDFs and Word documents are allowed."
                )
            if upload.size > max_bytes:
                raise DomainError(
                    f"File '{upload.name}' exceeds the {max_bytes // (1024 * 1024)} MB limit."
                )

    @staticmethod
    def store_files(complaint: Complaint, files: list[Any], user: Any) -> list[ComplaintAttachment]:
        return [
            ComplaintAttachment.objects.create(
                complaint=complaint,
                file=upload,
                filename=upload.name,
                mime_type=upload.content_type,
                size=upload.size,
                uploaded_by=user,
            )
            for upload in files
        ]

    @staticmethod
    @transaction.atomic
    def add_attachments(pk: int, files: Iterable[Any], requesting_user: Any) -> Complaint:
        """Attach uploaded files to a complaint the user may write."""
        files = list(files)
        complaint = lock_for_update(Complaint, pk)
        ComplaintAccessGuard.ensure_write(requesting_user, complaint)
        ComplaintAttachmentService.validate_files(files)

        ComplaintAttachmentService.store_files(complaint, files, requesting_user)
        TimelineRecorder.record(
            complaint,
            f"{len(files)} new attachment(s) added",
            requesting_user,
        )
        complaint.version += 1
        complaint.save(update_fields=["version", "updated_at"])

        logger.info(
            "%d attachment(s) added to %s by %s",
            len(files), complaint.complaint_id, requesting_user,
        )
        return _detail_queryset().get(pk=complaint.pk)

    @staticmethod
    @transaction.atomic
    def remove_attachment(pk: int, attachment_id: int, requesting_user: Any) -> Complaint:
        """
        Remove one attachment.  The stored file is deleted only after
        the transaction commits.
        """
        complaint = lock_for_update(Complaint, pk)
        ComplaintAccessGuard.ensure_write(requesting_user, complaint)

        try:
            attachment = complaint.attachments.get(pk=attachment_id)
        except ComplaintAttachment.DoesNotExist:
            raise NotFound(f"Attachment with id {attachment_id} not found.")

        filename = attachment.filename
        delete_file_on_commit(attachment.file)
        attachment.delete()

        TimelineRecorder.record(complaint, f"Attachment {filename} removed", requesting_user)
        complaint.version += 1
        complaint.save(update_fields=["version", "updated_at"])

        logger.info(
            "Attachment %s removed from %s by %s",
            filename, complaint.complaint_id, requesting_user,
        )
        return _detail_queryset().get(pk=complaint.pk)


# ═══════════════════════════════════════════════════════════════════
#  Public Tracking
# ═══════════════════════════════════════════════════════════════════


class ComplaintTrackingService:
    """Unauthenticated look-up by human-readable complaint ID."""

    @staticmethod
    def track(complaint_id: str) -> Complaint:
        """
        Return the complaint with its timeline (department names
        resolved) for the reduced public projection.

        Raises
        ------
        NotFound
            If no complaint carries ``complaint_id``.
        """
        try:
            return (
                Complaint.objects
                .select_related("assigned_department")
                .prefetch_related(
                    Prefetch(
                        "timeline",
                        queryset=ComplaintTimelineEntry.objects.select_related("department"),
                    ),
                )
                .get(complaint_id=complaint_id.strip().upper())
            )
        except Complaint.DoesNotExist:
            raise NotFound(f"No complaint found with ID {complaint_id}.")
