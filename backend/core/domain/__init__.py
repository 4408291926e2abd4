"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions     Domain-specific exceptions that map cleanly to HTTP responses.
notifications  Synchronous notification creation helper.
transactions   Row locking, optimistic version checks, on-commit file cleanup.
access         Role-scoped queryset selectors and role guards.
filters        Typed, enumerated query-string filter builder.
pagination     Page/limit pagination used by every list endpoint.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import lock_for_update
    from core.domain.access import apply_role_filter, require_role
    from core.domain.filters import QueryFilterBuilder
"""
