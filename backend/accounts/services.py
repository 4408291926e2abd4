"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service function / method, and
return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — citizen self-registration.
- ``AuthenticationService``    — e-mail login, JWT issuance with role claims.
- ``UserManagementService``    — admin / supervisor user administration.
- ``CurrentUserService``       — "Me" endpoint helpers.
"""

from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.contrib.auth import authenticate as django_authenticate
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q, QuerySet
from django.utils import timezone
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken

from core.domain.access import ScopeConfig, apply_role_filter, get_user_role_name, require_role
from core.domain.exceptions import Conflict, DomainError, NotFound, PermissionDenied
from core.domain.filters import FilterField, QueryFilterBuilder, parse_choice, parse_int

from .models import STAFF_ROLES, UserRole, UserStatus

User = get_user_model()
logger = logging.getLogger(__name__)


#: Role-keyed visibility of user records.
USER_SCOPE: ScopeConfig = {
    UserRole.ADMIN: lambda qs, u: qs,
    UserRole.SUPERVISOR: lambda qs, u: qs.filter(
        Q(department_id=u.department_id, department__isnull=False)
        | Q(role=UserRole.CITIZEN)
    ),
}

USER_FILTERS = QueryFilterBuilder(
    fields=[
        FilterField("role", "role", parse_choice(UserRole)),
        FilterField("status", "status", parse_choice(UserStatus)),
        FilterField("department", "department_id", parse_int),
    ],
    sortable={
        "name": "name",
        "email": "email",
        "role": "role",
        "created_at": "date_joined",
        "last_active": "last_active",
    },
    default_sort="-created_at",
)


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """Public self-registration.  New accounts are always citizens."""

    @staticmethod
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new citizen account.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer``: ``name``,
            ``email``, ``password``, optional ``phone`` / ``address``.
            ``password_confirm`` has already been consumed.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the e-mail is already registered.
        """
        validated_data.pop("password_confirm", None)
        password = validated_data.pop("password")
        email = validated_data.pop("email").strip().lower()

        if User.objects.filter(email__iexact=email).exists():
            raise Conflict("Email already registered.")

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    role=UserRole.CITIZEN,
                    **validated_data,
                )
        except IntegrityError:
            raise Conflict("Email already registered.")

        logger.info("Citizen registered: %s", user.email)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    E-mail + password login and JWT token generation.
    """

    @staticmethod
    def authenticate(request: Any, email: str, password: str) -> User:
        """
        Validate credentials and return the active user.

        Raises
        ------
        AuthenticationFailed
            On wrong e-mail or password (HTTP 401).
        PermissionDenied
            If the credentials are right but the account is not active.
        """
        user = django_authenticate(request=request, email=email, password=password)
        if user is not None:
            return user

        # The backend refuses inactive accounts; tell the user why when
        # the password itself was correct.
        candidate = User.objects.filter(email__iexact=(email or "").strip()).first()
        if (
            candidate is not None
            and candidate.status != UserStatus.ACTIVE
            and candidate.check_password(password)
        ):
            raise PermissionDenied(
                f"Your account is {candidate.status}. Please contact support."
            )
        raise AuthenticationFailed("Invalid credentials.")

    @staticmethod
    def record_login(user: User) -> None:
        """Stamp ``last_login`` and ``last_active``."""
        now = timezone.now()
        user.last_login = now
        user.last_active = now
        user.save(update_fields=["last_login", "last_active"])

    @staticmethod
    def get_token(user: User) -> RefreshToken:
        """
        Refresh token carrying ``role`` and ``department`` claims.

        Claims set on the refresh token are copied onto every access
        token derived from it.
        """
        token = RefreshToken.for_user(user)
        token["role"] = get_user_role_name(user)
        token["department"] = user.department_id
        token["name"] = user.name
        return token

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair for the given user.

        Returns
        -------
        dict
            ``{"access": "<token>", "refresh": "<token>"}``.
        """
        refresh = AuthenticationService.get_token(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

    # ── Password reset ──────────────────────────────────────────────

    @staticmethod
    def request_password_reset(email: str) -> None:
        """
        E-mail a one-time reset link to the account owning ``email``.

        The link carries a base64 user id and a token from Django's
        ``default_token_generator``; it expires after
        ``PASSWORD_RESET_TIMEOUT`` seconds and stops working as soon as
        the password changes.

        Raises
        ------
        NotFound
            No account with that e-mail.
        """
        user = User.objects.filter(email__iexact=(email or "").strip()).first()
        if user is None:
            raise NotFound("No user found with that email.")

        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        reset_url = settings.PASSWORD_RESET_URL.format(uid=uid, token=token)

        send_mail(
            subject="Password reset token",
            message=(
                "You are receiving this email because you (or someone else) "
                "requested a password reset for your CitizenOne account. "
                f"Please visit:\n\n{reset_url}\n\n"
                "If you did not request this, you can ignore this email."
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
        )
        logger.info("Password reset e-mail sent to %s", user.email)

    @staticmethod
    def reset_password(uid: str, token: str, new_password: str) -> User:
        """
        Set a new password from a reset link.

        Raises
        ------
        DomainError
            Unknown user id or an invalid / expired token.
        PermissionDenied
            The account is not active.
        """
        try:
            pk = force_str(urlsafe_base64_decode(uid))
            user = User.objects.get(pk=pk)
        except (TypeError, ValueError, OverflowError, User.DoesNotExist):
            user = None

        if user is None or not default_token_generator.check_token(user, token):
            raise DomainError("Invalid or expired token.")
        if user.status != UserStatus.ACTIVE:
            raise PermissionDenied(f"Your account is {user.status}. Please contact support.")

        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info("Password reset completed for %s", user.email)
        return user


# ═══════════════════════════════════════════════════════════════════
#  User Management Service
# ═══════════════════════════════════════════════════════════════════


class UserManagementService:
    """
    Administrative operations on users.

    Access Policies
    ---------------
    * Admins see and manage every user.
    * Supervisors may list and read users of their own department and
      citizens, but never modify them.
    """

    @staticmethod
    def list_users(requesting_user: User, params: dict[str, Any]) -> QuerySet[User]:
        """
        Return a role-scoped, filtered queryset of users.

        ``search`` matches name, e-mail or phone (case-insensitive).
        """
        require_role(requesting_user, UserRole.ADMIN, UserRole.SUPERVISOR)
        qs = User.objects.select_related("department")
        qs = apply_role_filter(qs, requesting_user, scope_config=USER_SCOPE)

        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(name__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
            )
        return USER_FILTERS.apply(qs, params)

    @staticmethod
    def get_user(user_id: int, requesting_user: User) -> User:
        """
        Retrieve a single user visible to ``requesting_user``.

        Raises
        ------
        NotFound
            Unknown ``user_id``.
        PermissionDenied
            A supervisor asking for staff of another department.
        """
        require_role(requesting_user, UserRole.ADMIN, UserRole.SUPERVISOR)
        target = UserManagementService._get(user_id)
        if (
            get_user_role_name(requesting_user) == UserRole.SUPERVISOR
            and target.role != UserRole.CITIZEN
            and (target.department_id is None or target.department_id != requesting_user.department_id)
        ):
            raise PermissionDenied("Not authorized to access this user.")
        return target

    @staticmethod
    @transaction.atomic
    def create_user(validated_data: dict[str, Any], requesting_user: User) -> User:
        """
        Admin creates an account with any role.

        Raises
        ------
        Conflict
            If the e-mail is already registered.
        DomainError
            Staff roles without a department.
        """
        require_role(requesting_user, UserRole.ADMIN)
        password = validated_data.pop("password")
        email = validated_data.pop("email").strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise Conflict("Email already registered.")

        role = validated_data.get("role", UserRole.CITIZEN)
        UserManagementService._check_department(role, validated_data.get("department"))
        if role not in STAFF_ROLES:
            validated_data["department"] = None

        user = User.objects.create_user(email=email, password=password, **validated_data)
        logger.info("User %s (%s) created by %s", user.email, user.role, requesting_user)
        return user

    @staticmethod
    @transaction.atomic
    def update_user(user_id: int, validated_data: dict[str, Any], requesting_user: User) -> User:
        """Admin edits profile, status and notification fields of a user."""
        require_role(requesting_user, UserRole.ADMIN)
        target = UserManagementService._get(user_id)

        email = validated_data.get("email")
        if email is not None:
            email = email.strip().lower()
            validated_data["email"] = email
            if User.objects.filter(email__iexact=email).exclude(pk=target.pk).exists():
                raise Conflict("Email already registered.")

        for field, value in validated_data.items():
            setattr(target, field, value)
        target.save()
        logger.info("User %s updated by %s", target.email, requesting_user)
        return UserManagementService._get(target.pk)

    @staticmethod
    @transaction.atomic
    def delete_user(user_id: int, requesting_user: User) -> None:
        """
        Delete a user that owns no complaints or comments.

        Raises
        ------
        DomainError
            Self-deletion.
        Conflict
            The user is still referenced by complaints or comments.
        """
        require_role(requesting_user, UserRole.ADMIN)
        target = UserManagementService._get(user_id)
        if target.pk == requesting_user.pk:
            raise DomainError("You cannot delete your own account.")

        email = target.email
        try:
            target.delete()
        except ProtectedError:
            raise Conflict(
                "User has complaints or comments on record. Deactivate the account instead."
            )
        logger.info("User %s deleted by %s", email, requesting_user)

    @staticmethod
    @transaction.atomic
    def change_role(
        user_id: int,
        role: str,
        department: Any,
        requesting_user: User,
    ) -> User:
        """
        Change a user's role (and department).

        Officers and supervisors require a department; every other role
        has its department cleared.  A user leaving the staff roles stops
        heading any department.
        """
        require_role(requesting_user, UserRole.ADMIN)
        target = UserManagementService._get(user_id)
        UserManagementService._check_department(role, department)

        target.role = role
        target.department = department if role in STAFF_ROLES else None
        target.save(update_fields=["role", "department"])

        if role not in STAFF_ROLES or department is None:
            target.headed_departments.update(head=None)
        else:
            target.headed_departments.exclude(pk=department.pk).update(head=None)

        logger.info(
            "Role of %s changed to %s (department=%s) by %s",
            target.email, role, target.department_id, requesting_user,
        )
        return UserManagementService._get(target.pk)

    @staticmethod
    @transaction.atomic
    def change_status(user_id: int, new_status: str, requesting_user: User) -> User:
        """Set ``status``; ``is_active`` follows it."""
        require_role(requesting_user, UserRole.ADMIN)
        target = UserManagementService._get(user_id)
        if target.pk == requesting_user.pk and new_status != UserStatus.ACTIVE:
            raise DomainError("You cannot deactivate your own account.")

        target.status = new_status
        target.save(update_fields=["status"])
        logger.info("Status of %s set to %s by %s", target.email, new_status, requesting_user)
        return target

    # ── Private helpers ─────────────────────────────────────────────

    @staticmethod
    def _get(user_id: int) -> User:
        try:
            return User.objects.select_related("department").get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(f"User with id {user_id} not found.")

    @staticmethod
    def _check_department(role: str, department: Any) -> None:
        if role in STAFF_ROLES and department is None:
            raise DomainError("Department is required for officers and supervisors.")


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """
    Helpers for the "Me" endpoints.  A user may change their own
    contact details and notification preferences, never their role,
    department or status.
    """

    @staticmethod
    def get_profile(user: User) -> User:
        return User.objects.select_related("department").get(pk=user.pk)

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the authenticated user's own profile fields.

        ``notification_preferences`` arrives as a nested dict and is
        spread onto the ``notify_*`` columns.
        """
        preferences = validated_data.pop("notification_preferences", None) or {}
        for key, value in preferences.items():
            validated_data[f"notify_{key}"] = value

        if not validated_data:
            return CurrentUserService.get_profile(user)

        for field, value in validated_data.items():
            setattr(user, field, value)
        user.last_active = timezone.now()
        user.save(update_fields=[*validated_data.keys(), "last_active"])
        return CurrentUserService.get_profile(user)

    @staticmethod
    def change_password(user: User, current_password: str, new_password: str) -> dict[str, str]:
        """
        Replace the password after verifying the current one.

        Returns a fresh token pair.

        Raises
        ------
        DomainError
            If ``current_password`` is wrong.
        """
        if not user.check_password(current_password):
            raise DomainError("Current password is incorrect.")
        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info("Password changed for %s", user.email)
        return AuthenticationService.generate_tokens(user)

    @staticmethod
    def list_my_complaints(user: User, params: dict[str, Any]) -> QuerySet:
        """Complaints filed by ``user``, filtered and sorted like the main list."""
        from complaints.models import Complaint
        from complaints.services import COMPLAINT_FILTERS

        qs = Complaint.objects.filter(citizen=user).select_related(
            "citizen", "assigned_department", "assigned_officer",
        )
        return COMPLAINT_FILTERS.apply(qs, params)
