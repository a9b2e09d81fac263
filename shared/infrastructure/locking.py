"""Row locking helpers for repositories."""

from __future__ import annotations

from django.db import connection, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic() on a backend that supports it."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    if not connection.features.has_select_for_update:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset
