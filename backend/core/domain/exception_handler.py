"""
DRF exception handler for the domain error hierarchy.

Every ``DomainError`` subclass carries its own ``http_status`` and a
machine-readable ``code``; this handler turns them into a JSON body::

    {"detail": "<message>", "code": "<code>"}

``InsufficientPoints`` also reports ``balance`` and ``requested`` when
the ledger supplied them.  DRF's own exceptions (serializer errors,
authentication, throttling) keep DRF's default rendering.

Wired up through ``REST_FRAMEWORK["EXCEPTION_HANDLER"]`` in
``civic_rewards/settings.py``.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import DomainError, InsufficientPoints

logger = logging.getLogger(__name__)


def error_body(exc: DomainError) -> dict:
    body = {"detail": str(exc), "code": exc.code}
    if isinstance(exc, InsufficientPoints) and exc.balance is not None:
        body["balance"] = exc.balance
        body["requested"] = exc.requested
    return body


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    response = drf_default_handler(exc, context)
    if response is not None or not isinstance(exc, DomainError):
        return response

    view = context.get("view")
    view_name = type(view).__name__ if view is not None else "-"
    if exc.http_status >= 500:
        logger.error("%s in %s: %s", type(exc).__name__, view_name, exc)
    else:
        logger.warning("%s in %s: %s", type(exc).__name__, view_name, exc)

    return Response(error_body(exc), status=exc.http_status)
