"""
core.domain.access — Role-scoped queryset selectors (shared patterns).

This module provides shared utilities that each app's service layer
calls to obtain querysets filtered by the requesting user's role.

╔══════════════════════════════════════════════════════════════════╗
║  IMPORTANT — Per-app scoping logic does NOT live here.          ║
║  Each app's ``services.py`` owns its own scope config.          ║
║  This module provides:                                          ║
║    1) ``apply_role_filter`` — role-keyed queryset dispatch.     ║
║    2) ``require_role``      — guard on the caller's role.       ║
║    3) ``get_user_role_name`` — role-name helper.                ║
╚══════════════════════════════════════════════════════════════════╝

Architecture overview
---------------------
Role-based data access follows a **scope-config** pattern:

    ┌─────────┐      ┌────────────────┐      ┌──────────────────┐
    │  View   │─────▶│  App service   │─────▶│ core.domain      │
    │ (thin)  │      │ (owns logic)   │      │   .access        │
    └─────────┘      └────────────────┘      │ (shared helpers) │
                                             └──────────────────┘

Usage in an app's service layer::

    from core.domain.access import apply_role_filter

    COMPLAINT_SCOPE: ScopeConfig = {
        "admin":      lambda qs, u: qs,
        "supervisor": lambda qs, u: qs.filter(assigned_department=u.department_id),
        "officer":    lambda qs, u: qs.filter(assigned_department=u.department_id),
        "citizen":    lambda qs, u: qs.filter(citizen=u),
    }

    qs = apply_role_filter(Complaint.objects.all(), user, scope_config=COMPLAINT_SCOPE)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# Role name → filter function.
ScopeConfig = dict[str, ScopeFilter]


def get_user_role_name(user: User) -> str | None:
    """
    Return the role name for a user, or ``None`` for anonymous users.

    Superusers created through ``createsuperuser`` are treated as
    ``admin`` regardless of their stored role.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return "admin"
    return getattr(user, "role", None)


def apply_role_filter(
    queryset: QuerySet,
    user: User,
    *,
    scope_config: ScopeConfig,
    default: str = "none",
) -> QuerySet:
    """
    Apply the scope filter registered for the user's role.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_config: Mapping of role name → ``filter_fn(qs, user)``.
        default:      What to do when the role has no entry.
                      ``"none"`` (default) → empty queryset.
                      ``"all"`` → return unfiltered.

    Returns:
        The (possibly filtered) queryset.
    """
    role_name = get_user_role_name(user)

    if role_name and role_name in scope_config:
        return scope_config[role_name](queryset, user)

    if default == "none":
        return queryset.none()
    return queryset


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user's role is not
    among ``allowed_roles``.

    Example::

        require_role(user, "admin")
        require_role(user, "admin", "supervisor",
                     message="Not authorized to assign complaints.")
    """
    role_name = get_user_role_name(user)
    if role_name not in allowed_roles:
        raise PermissionDenied(
            message
            or (
                f"Role '{role_name}' is not permitted for this operation. "
                f"Required: {', '.join(allowed_roles)}."
            )
        )
