"""
Departments app models.

A ``Department`` is the organisational unit that services one or more
complaint categories and employs officers and supervisors.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class DepartmentStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Department(TimeStampedModel):
    """
    Organisational unit responsible for a set of complaint categories.

    ``categories`` holds ``ComplaintCategory`` values; at complaint
    creation the first *active* department (by id) whose list contains
    the complaint's category is auto-assigned.
    """

    name = models.CharField(max_length=150, unique=True, verbose_name="Name")
    code = models.CharField(
        max_length=20,
        unique=True,
        verbose_name="Code",
        help_text="Short unique code, stored upper-case (e.g. WATER).",
    )
    description = models.TextField(blank=True, default="", verbose_name="Description")
    head = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="headed_departments",
        verbose_name="Department Head",
    )
    contact_email = models.EmailField(blank=True, default="", verbose_name="Contact Email")
    contact_phone = models.CharField(max_length=20, blank=True, default="", verbose_name="Contact Phone")
    status = models.CharField(
        max_length=10,
        choices=DepartmentStatus.choices,
        default=DepartmentStatus.ACTIVE,
        db_index=True,
        verbose_name="Status",
    )
    categories = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Serviced Categories",
    )

    class Meta:
        verbose_name = "Department"
        verbose_name_plural = "Departments"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status == DepartmentStatus.ACTIVE

    def services_category(self, category: str) -> bool:
        return category in (self.categories or [])
