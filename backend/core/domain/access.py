"""
core.domain.access — Permission-scoped queryset selectors (shared patterns).

Each app's ``services.py`` owns its own scope rules; this module only
provides the two generic helpers they call:

    1) ``apply_permission_scope`` — ordered permission dispatch.
    2) ``require_permission`` — guard that checks ``has_perm``.

Usage in an app's service layer::

    from core.domain.access import apply_permission_scope

    WITHDRAWAL_SCOPE_RULES = [
        ("withdrawals.can_process_withdrawal", lambda qs, u: qs),
    ]

    qs = apply_permission_scope(
        Withdrawal.objects.all(),
        user,
        scope_rules=WITHDRAWAL_SCOPE_RULES,
        fallback=lambda qs, u: qs.filter(user=u),
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# (full permission string, filter_fn), e.g. ("complaints.can_review_complaint", ...)
ScopeRule = tuple[str, ScopeFilter]


def apply_permission_scope(
    queryset: QuerySet,
    user: User,
    *,
    scope_rules: list[ScopeRule],
    fallback: ScopeFilter | None = None,
) -> QuerySet:
    """
    Apply the first matching permission-based scope rule.

    Rules are checked **in order**, first permission match wins, so order
    them from broadest to narrowest.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_rules:  Ordered list of ``(perm, filter_fn)`` tuples.
        fallback:     Filter applied when no rule matches.  ``None``
                      returns an empty queryset.

    Returns:
        The (possibly filtered) queryset.
    """
    for perm, filter_fn in scope_rules:
        if user.has_perm(perm):
            return filter_fn(queryset, user)

    if fallback is None:
        return queryset.none()
    return fallback(queryset, user)


def require_permission(user: User, *perms: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user lacks **all** of
    the given permissions (OR-logic: having any one is sufficient).

    Example::

        require_permission(admin, "complaints.can_review_complaint")
    """
    for perm in perms:
        if user.has_perm(perm):
            return
    raise PermissionDenied(
        message or f"Missing required permission: {', '.join(perms)}."
    )
