"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF ``EXCEPTION_HANDLER`` for the exceptions above.
notifications      In-app notification creation helper.
transactions       ``transaction.atomic`` + ``select_for_update`` helpers.
access             Permission-scoped queryset selectors and guards.
side_channels      Push dispatcher / real-time publisher interfaces.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import atomic_operation, lock_for_update
    from core.domain.access import require_permission
"""
