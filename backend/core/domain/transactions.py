"""
core.domain.transactions — Helpers for row-locked, versioned updates.

Wraps ``select_for_update`` and optimistic version checks into reusable
patterns so every service layer follows the same concurrency-safe
approach.

Design goals
------------
* State-changing reads always lock the row first (``select_for_update``)
  so two concurrent updates of the same record serialise instead of
  overwriting each other.
* Clients that echo back the ``version`` they last read get a
  ``Conflict`` instead of a silent lost update.
* Side effects outside the database (deleting a stored file) only run
  once the surrounding transaction has committed.

Usage::

    from core.domain.transactions import (
        check_version, delete_file_on_commit, lock_for_update,
    )

    with transaction.atomic():
        complaint = lock_for_update(Complaint, pk)
        check_version(complaint, payload.get("version"))
        ...
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from django.db import models, transaction
from django.db.models.fields.files import FieldFile

from core.domain.exceptions import Conflict, NotFound

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


def lock_for_update(
    model_class: type[M],
    pk: Any,
    *,
    queryset: models.QuerySet | None = None,
) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        queryset:    Optional base queryset (e.g. with ``select_related``).
                     Only the model's own row is locked (``of=("self",)``);
                     PostgreSQL refuses ``FOR UPDATE`` on the nullable side
                     of the outer joins that ``select_related`` adds.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    qs = queryset if queryset is not None else model_class.objects.all()
    try:
        return qs.select_for_update(of=("self",)).get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class._meta.verbose_name.title()} with id {pk} not found.")


def check_version(
    instance: models.Model,
    expected_version: int | None,
    *,
    field: str = "version",
) -> None:
    """
    Compare a client-supplied version against the stored one.

    ``None`` skips the check (the client did not opt in).

    Raises:
        Conflict: If the versions differ.
    """
    if expected_version is None:
        return
    current = getattr(instance, field)
    if int(expected_version) != current:
        raise Conflict(
            f"{type(instance).__name__} was modified by another request "
            f"(expected version {expected_version}, current version {current}). "
            "Reload and try again."
        )


def delete_file_on_commit(field_file: FieldFile) -> None:
    """
    Delete a stored file once the current transaction commits.

    If the transaction rolls back, the file stays on disk together with
    the record that still references it.
    """
    storage = field_file.storage
    name = field_file.name
    if not name:
        return

    def _delete() -> None:
        storage.delete(name)
        logger.info("Deleted stored file %s", name)

    transaction.on_commit(_delete)
