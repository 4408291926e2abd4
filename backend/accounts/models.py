"""
Accounts app models.

Defines the custom ``User`` model used across CitizenOne.  Users log in
with their e-mail address; the fixed ``role`` field together with the
``department`` link determines what each user may see and change.
"""

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserRole(models.TextChoices):
    CITIZEN = "citizen", "Citizen"
    OFFICER = "officer", "Officer"
    SUPERVISOR = "supervisor", "Supervisor"
    ADMIN = "admin", "Admin"


class UserStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    SUSPENDED = "suspended", "Suspended"


#: Roles that belong to a department.
STAFF_ROLES = (UserRole.OFFICER, UserRole.SUPERVISOR)


class UserManager(BaseUserManager):
    """Manager for the e-mail-keyed ``User`` model."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An e-mail address is required.")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", UserRole.ADMIN)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom user model for CitizenOne.

    * ``email`` is the login identifier (unique, stored lower-case).
    * ``role`` is one of citizen / officer / supervisor / admin.
    * ``department`` is required for officers and supervisors and
      ignored for the other roles.
    * ``status`` drives ``is_active``: only ``active`` users can log in.
    """

    username = None
    first_name = None
    last_name = None

    name = models.CharField(max_length=150, verbose_name="Full Name")
    email = models.EmailField(unique=True, verbose_name="Email Address")
    phone = models.CharField(max_length=20, blank=True, default="", verbose_name="Phone Number")
    address = models.TextField(blank=True, default="", verbose_name="Address")

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CITIZEN,
        db_index=True,
        verbose_name="Role",
    )
    department = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="members",
        verbose_name="Department",
    )
    status = models.CharField(
        max_length=20,
        choices=UserStatus.choices,
        default=UserStatus.ACTIVE,
        verbose_name="Account Status",
    )

    # ── Notification preferences ─────────────────────────────────────
    notify_email = models.BooleanField(default=True, verbose_name="Email Notifications")
    notify_sms = models.BooleanField(default=True, verbose_name="SMS Notifications")
    notify_status_updates = models.BooleanField(default=True, verbose_name="Status Update Notifications")
    notify_feedback_reminders = models.BooleanField(default=True, verbose_name="Feedback Reminders")

    last_active = models.DateTimeField(null=True, blank=True, verbose_name="Last Active")

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.role})"

    def save(self, *args, **kwargs):
        self.is_active = self.status == UserStatus.ACTIVE
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "status" in update_fields:
            kwargs["update_fields"] = {*update_fields, "is_active"}
        super().save(*args, **kwargs)

    def get_full_name(self):
        return self.name

    def get_short_name(self):
        return self.name

    # ── Role predicates ──────────────────────────────────────────────

    @property
    def is_citizen(self) -> bool:
        return self.role == UserRole.CITIZEN

    @property
    def is_department_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN or self.is_superuser

    @property
    def notification_preferences(self) -> dict[str, bool]:
        return {
            "email": self.notify_email,
            "sms": self.notify_sms,
            "status_updates": self.notify_status_updates,
            "feedback_reminders": self.notify_feedback_reminders,
        }
