"""
core.domain.transactions — Row lookup helpers for atomic units of work.

Services open the unit of work with ``transaction.atomic`` (usually via
the ``returns_outcome`` + ``transaction.atomic`` decorator pair) and use
these helpers to turn a missing row into a ``NotFound`` domain error.

Usage::

    from core.domain.transactions import get_or_not_found, lock_for_update

    case = get_or_not_found(Case, case_id)

    with transaction.atomic():
        user = lock_for_update(User, user_id)
        ...
"""

from __future__ import annotations

from typing import Any, TypeVar

from django.db import models

from core.domain.exceptions import NotFound

M = TypeVar("M", bound=models.Model)


def get_or_not_found(
    model_class: type[M],
    pk: Any,
    *,
    label: str | None = None,
    queryset: models.QuerySet | None = None,
) -> M:
    """
    Fetch a row by primary key or raise ``NotFound``.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        label:       Human label used in the error message
                     (defaults to the model's class name).
        queryset:    Optional pre-built queryset (e.g. with
                     ``prefetch_related``) to fetch from.

    Raises:
        NotFound: If no row with that PK exists.
    """
    qs = queryset if queryset is not None else model_class.objects.all()
    try:
        return qs.get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label or model_class.__name__} with id {pk} not found.")


def lock_for_update(model_class: type[M], pk: Any, *, label: str | None = None) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Raises:
        NotFound: If no row with that PK exists.
    """
    return get_or_not_found(
        model_class,
        pk,
        label=label,
        queryset=model_class.objects.select_for_update(),
    )
