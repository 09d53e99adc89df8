"""
core.domain.notifications — In-app notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Synchronous** — rows are written in the calling transaction, so an
  in-app notification exists if and only if the state change it
  describes was committed.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.
* **Templated text** — titles and messages are looked up by event type
  and formatted with ``payload``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=admin,
        recipients=complaint.user,
        event_type="complaint_status_changed",
        payload={"token": complaint.token, "status": complaint.status},
        related_object=complaint,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → (title, message) templates ─────────────────────────
# Messages are ``str.format`` templates filled from ``payload``.
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    "complaint_status_changed": ("Complaint Update",   "Your complaint {token} is now {status}"),
    "points_adjusted":          ("Points Adjusted",    "Your balance was adjusted by {points} points: {reason}"),
    "withdrawal_status_changed": ("Withdrawal Update", "Your withdrawal is now {status}"),
}


def render_event(event_type: str, payload: dict[str, Any] | None = None) -> tuple[str, str]:
    """Return the ``(title, message)`` pair for an event type."""
    title, template = _EVENT_TEMPLATES.get(
        event_type,
        (event_type.replace("_", " ").title(), f"Event: {event_type}"),
    )
    try:
        message = template.format(**(payload or {}))
    except (KeyError, IndexError):
        logger.warning("Missing payload keys for event_type=%s: %s", event_type, payload)
        message = template
    return title, message


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User] | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:          The user who performed the action (``None``
                            for system events).  Logged, not stored.
            recipients:     A single ``User``, an iterable of them, or
                            ``None``.  Inactive users are skipped.
            event_type:     Key into ``_EVENT_TEMPLATES``.  If unknown
                            the raw event_type is used as title.
            payload:        Values interpolated into the message template.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy import, models are not ready at module load

        if recipients is None or isinstance(recipients, models.Model):
            recipients = [recipients]
        # Anonymous complaints have no owner; deactivated accounts get nothing.
        recipients = [r for r in recipients if r is not None and r.is_active]
        if not recipients:
            logger.debug("No active recipients for event_type=%s", event_type)
            return []

        title, message = render_event(event_type, payload)

        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        notifications = Notification.objects.bulk_create([
            Notification(
                recipient=recipient,
                title=title,
                message=message,
                content_type=content_type,
                object_id=object_id,
            )
            for recipient in recipients
        ])

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
