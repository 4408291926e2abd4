"""
Complaints app models.

Contains the core ``Complaint`` entity and its sub-records: the
append-only ``ComplaintTimelineEntry`` audit trail, comments, the single
feedback record, file attachments, and the per-month ID sequence.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class ComplaintCategory(models.TextChoices):
    WATER = "water", "Water"
    ELECTRICITY = "electricity", "Electricity"
    ROADS = "roads", "Roads"
    SANITATION = "sanitation", "Sanitation"
    PUBLIC_SERVICES = "public_services", "Public Services"
    OTHER = "other", "Other"


class ComplaintStatus(models.TextChoices):
    SUBMITTED = "submitted", "Submitted"
    UNDER_REVIEW = "under_review", "Under Review"
    IN_PROGRESS = "in_progress", "In Progress"
    RESOLVED = "resolved", "Resolved"
    REOPENED = "reopened", "Reopened"


class ComplaintPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


# ────────────────────────────────────────────────────────────────────
# Complaint
# ────────────────────────────────────────────────────────────────────

class Complaint(TimeStampedModel):
    """
    A citizen-filed record of an issue, tracked through a status lifecycle.

    ``complaint_id`` is the human-readable identifier
    (``<PREFIX>-<YY>-<MM>-<NNNN>``) shown to citizens and used by the
    public tracking endpoint.  ``version`` is bumped on every lifecycle
    save and lets clients detect concurrent edits.
    """

    complaint_id = models.CharField(
        max_length=32,
        unique=True,
        editable=False,
        verbose_name="Complaint ID",
    )
    citizen = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="complaints",
        verbose_name="Citizen",
    )
    category = models.CharField(
        max_length=20,
        choices=ComplaintCategory.choices,
        verbose_name="Category",
    )
    description = models.TextField(verbose_name="Description")
    location = models.CharField(max_length=255, verbose_name="Location")
    status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        default=ComplaintStatus.SUBMITTED,
        db_index=True,
        verbose_name="Status",
    )
    priority = models.CharField(
        max_length=10,
        choices=ComplaintPriority.choices,
        default=ComplaintPriority.MEDIUM,
        verbose_name="Priority",
    )
    assigned_department = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="complaints",
        verbose_name="Assigned Department",
    )
    assigned_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_complaints",
        verbose_name="Assigned Officer",
    )
    estimated_resolution_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Estimated Resolution Date",
    )
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name="Resolved At")
    version = models.PositiveIntegerField(default=1, verbose_name="Version")

    class Meta:
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["assigned_department", "status"], name="complaint_dept_status_idx"),
            models.Index(fields=["citizen", "-created_at"], name="complaint_citizen_created_idx"),
        ]

    def __str__(self):
        return f"{self.complaint_id} [{self.get_status_display()}]"


class ComplaintTimelineEntry(models.Model):
    """
    Immutable audit record of one lifecycle-relevant change.

    ``status`` is the complaint's status *at the time of the entry*.
    Entries are never edited or removed; creation order is the
    authoritative history.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="timeline",
        verbose_name="Complaint",
    )
    status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        verbose_name="Status",
    )
    description = models.CharField(max_length=500, verbose_name="Description")
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Updated By",
    )
    department = models.ForeignKey(
        "departments.Department",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Department",
    )
    timestamp = models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")

    class Meta:
        verbose_name = "Timeline Entry"
        verbose_name_plural = "Timeline Entries"
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.complaint_id} @ {self.timestamp}: {self.description}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Timeline entries are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Timeline entries are append-only.")


class ComplaintComment(models.Model):
    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="comments",
        verbose_name="Complaint",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="complaint_comments",
        verbose_name="Author",
    )
    text = models.TextField(verbose_name="Text")
    timestamp = models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")

    class Meta:
        verbose_name = "Comment"
        verbose_name_plural = "Comments"
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"Comment by {self.author_id} on {self.complaint_id}"


class ComplaintFeedback(models.Model):
    """Citizen rating of a resolved complaint.  At most one per complaint."""

    complaint = models.OneToOneField(
        Complaint,
        on_delete=models.CASCADE,
        related_name="feedback",
        verbose_name="Complaint",
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        verbose_name="Rating",
    )
    comment = models.TextField(blank=True, default="", verbose_name="Comment")
    submitted_at = models.DateTimeField(auto_now_add=True, verbose_name="Submitted At")

    class Meta:
        verbose_name = "Feedback"
        verbose_name_plural = "Feedback"

    def __str__(self):
        return f"{self.rating}/5 for {self.complaint_id}"


class ComplaintAttachment(models.Model):
    """An uploaded file attached to a complaint."""

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="attachments",
        verbose_name="Complaint",
    )
    file = models.FileField(
        upload_to="complaint_attachments/%Y/%m/",
        verbose_name="File",
    )
    filename = models.CharField(max_length=255, verbose_name="Original Filename")
    mime_type = models.CharField(max_length=100, verbose_name="MIME Type")
    size = models.PositiveIntegerField(verbose_name="Size (bytes)")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Uploaded By",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Attachment"
        verbose_name_plural = "Attachments"
        ordering = ["uploaded_at", "id"]

    def __str__(self):
        return f"{self.filename} ({self.complaint_id})"


class ComplaintSequence(models.Model):
    """
    Per-month counter behind ``Complaint.complaint_id``.

    ``period`` is ``YYMM``; ``last_value`` is the sequence number most
    recently handed out for that month.
    """

    period = models.CharField(max_length=4, unique=True, verbose_name="Period (YYMM)")
    last_value = models.PositiveIntegerField(default=0, verbose_name="Last Value")

    class Meta:
        verbose_name = "Complaint Sequence"
        verbose_name_plural = "Complaint Sequences"

    def __str__(self):
        return f"{self.period}: {self.last_value}"
