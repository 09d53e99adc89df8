"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  ``core.domain.exception_handler`` maps them to HTTP
responses.

Mapping cheatsheet
------------------
┌─────────────────────┬──────┐
│ Domain Exception    │ HTTP │
├─────────────────────┼──────┤
│ DomainError         │ 400  │
│ ValidationFailure   │ 400  │
│ InsufficientPoints  │ 400  │
│ PermissionDenied    │ 403  │
│ NotFound            │ 404  │
│ Conflict            │ 409  │
│ InvalidTransition   │ 409  │
│ StorageFailure      │ 503  │
└─────────────────────┴──────┘

Usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if target not in ALLOWED_TRANSITIONS[complaint.status]:
        raise InvalidTransition(current=complaint.status, target=target)
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Anything not caught by a more specific subclass becomes a 400.
    """

    http_status = 400
    code = "domain_error"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class ValidationFailure(DomainError):
    """
    Input rejected before any state was touched (negative points,
    amount below the withdrawal minimum, unknown category, ...).

    Maps to HTTP 400.
    """

    code = "invalid"

    def __init__(self, message: str = "The request is invalid.") -> None:
        super().__init__(message)


class InsufficientPoints(ValidationFailure):
    """
    A redemption would drive a user's balance below zero.

    Maps to HTTP 400.
    """

    code = "insufficient_points"

    def __init__(
        self,
        message: str | None = None,
        *,
        balance: int | None = None,
        requested: int | None = None,
    ) -> None:
        if message is None:
            message = "Insufficient points"
            if balance is not None and requested is not None:
                message += f": balance {balance}, requested {requested}"
            message += "."
        super().__init__(message)
        self.balance = balance
        self.requested = requested


class PermissionDenied(DomainError):
    """
    The authenticated user does not have the required role or permission
    for this operation.

    Maps to HTTP 403.
    """

    http_status = 403
    code = "permission_denied"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user).

    Maps to HTTP 404.
    """

    http_status = 404
    code = "not_found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Maps to HTTP 409.
    """

    http_status = 409
    code = "conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Example::

        raise InvalidTransition(
            current="approved",
            target="rejected",
            reason="Only pending complaints can be reviewed.",
        )
    """

    code = "invalid_transition"

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class StorageFailure(DomainError):
    """
    The database rejected a write inside an atomic operation.  The
    transaction has already been rolled back when this is raised.

    Maps to HTTP 503.
    """

    http_status = 503
    code = "storage_failure"

    def __init__(self, message: str = "The operation could not be stored. Please retry.") -> None:
        super().__init__(message)
