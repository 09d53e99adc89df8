"""
core.domain.transactions — Helpers for safe multi-step mutations.

Provides utilities that wrap ``transaction.atomic`` and
``select_for_update`` into reusable patterns so that every app's
service layer follows the same concurrency-safe approach.

Design goals
------------
* A multi-step mutation (balance + ledger row, complaint + timeline +
  audit, withdrawal + redemption) either fully persists or not at all.
* Reads that precede a write always lock the row first
  (``select_for_update``).
* Database failures surface as ``StorageFailure`` only after the
  transaction has rolled back.
* Best-effort side effects (push, real-time events) run after commit and
  can never fail the operation that scheduled them.

Usage::

    from core.domain.transactions import atomic_operation, lock_for_update

    @staticmethod
    @atomic_operation
    def award_points(user_id, points, source, reference_id=None):
        user = lock_for_update(User, user_id)
        ...

    run_after_commit(lambda: dispatcher.send(...), label="push")
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from django.db import DatabaseError, models, transaction

from core.domain.exceptions import NotFound, StorageFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=models.Model)


def atomic_operation(fn: Callable[..., T]) -> Callable[..., T]:
    """
    Run ``fn`` inside ``transaction.atomic()``.

    Any ``DatabaseError`` escaping the block is re-raised as
    ``StorageFailure``.  By the time the caller sees it the block has
    already been rolled back, so no partial state is left behind.
    Nested calls join the caller's transaction as a savepoint.

    Raises:
        StorageFailure: If the database rejected any statement.
        Any domain exception raised by ``fn`` (the transaction is rolled
        back in that case as well).
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            with transaction.atomic():
                return fn(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception("Storage failure in %s", fn.__qualname__)
            raise StorageFailure() from exc

    return wrapper


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")


def run_after_commit(fn: Callable[[], Any], *, label: str) -> None:
    """
    Schedule a best-effort side effect for after the current transaction
    commits (immediately when no transaction is open).

    Errors raised by ``fn`` are logged and swallowed.
    """

    def _guarded() -> None:
        try:
            fn()
        except Exception:
            logger.exception("Side effect '%s' failed", label)

    transaction.on_commit(_guarded)
