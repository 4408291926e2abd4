"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Synchronous, same transaction** — all DB writes happen in the calling
  thread.  When the caller runs inside ``transaction.atomic`` (every
  complaint lifecycle update does), notifications commit or roll back
  together with the change that triggered them.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.  One record per recipient, no dedupe.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.
* **Templated text** — each event type owns a ``(type, title, message)``
  template; ``context`` values are interpolated with ``str.format``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=complaint.citizen,
        event_type="complaint_resolved",
        context={"complaint_id": complaint.complaint_id},
        related_object=complaint,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → (notification type, title, message) templates ──────
_EVENT_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "complaint_created": (
        "assignment",
        "New Complaint Assigned",
        "A new complaint ({complaint_id}) has been assigned to your department.",
    ),
    "complaint_resolved": (
        "complaint_status",
        "Complaint Resolved",
        "Your complaint ({complaint_id}) has been resolved. "
        "Please provide feedback on your experience.",
    ),
    "department_assigned": (
        "assignment",
        "New Complaint Assigned",
        "Complaint {complaint_id} has been assigned to your department.",
    ),
    "officer_assigned": (
        "assignment",
        "Complaint Assigned to You",
        "Complaint {complaint_id} has been assigned to you.",
    ),
    "resolution_date_updated": (
        "complaint_status",
        "Resolution Date Updated",
        "The estimated resolution date for your complaint ({complaint_id}) "
        "has been updated.",
    ),
    "staff_comment": (
        "comment",
        "New Comment on Your Complaint",
        "A new comment has been added to your complaint ({complaint_id}).",
    ),
    "citizen_comment": (
        "comment",
        "New Comment from Citizen",
        "The citizen has added a new comment to complaint {complaint_id}.",
    ),
    "feedback_submitted": (
        "feedback_request",
        "Feedback Received",
        "The citizen has provided feedback for complaint {complaint_id}.",
    ),
}


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User,
        recipients: User | Iterable[User],
        event_type: str,
        context: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:          The user who performed the action (logged only).
            recipients:     A single ``User`` or iterable of ``User``
                            instances.
            event_type:     Key into ``_EVENT_TEMPLATES``.  Unknown keys
                            produce a ``system`` notification titled after
                            the event.
            context:        Values interpolated into the title/message.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy import

        if isinstance(recipients, models.Model):
            recipients = [recipients]
        else:
            recipients = list(recipients)

        if not recipients:
            logger.info(
                "No recipients for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        notif_type, title, message = _EVENT_TEMPLATES.get(
            event_type,
            ("system", event_type.replace("_", " ").title(), f"Event: {event_type}"),
        )
        context = context or {}
        title = title.format(**context)
        message = message.format(**context)

        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        notifications = Notification.objects.bulk_create([
            Notification(
                recipient=recipient,
                type=notif_type,
                title=title,
                message=message,
                content_type=content_type,
                object_id=object_id,
            )
            for recipient in recipients
        ])

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
