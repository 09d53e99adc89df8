"""
Core app services — **Service Layer**.

Contains the cross-app audit log, the in-app notification inbox and the
system constants lookup.  Views delegate all business logic to the
service classes defined here, keeping views thin and ensuring
testability.

╔══════════════════════════════════════════════════════════════════════╗
║  CROSS-APP IMPORT RULEBOOK                                         ║
║                                                                    ║
║  Every other app imports from ``core``; ``core`` must never import ║
║  another app's models at module level.  Import them lazily inside  ║
║  the method that needs them, or use ``TYPE_CHECKING`` for hints.   ║
╚══════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from core import constants
from core.domain.exceptions import NotFound, ValidationFailure
from core.models import ActionHistory, Notification

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)


def audit_context_from_request(request) -> dict[str, Any]:
    """
    Extract the client address and user agent recorded alongside
    ``ActionHistory`` entries.
    """
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    ip_address = forwarded.split(",")[0].strip() if forwarded else request.META.get("REMOTE_ADDR")
    return {
        "ip_address": ip_address or None,
        "user_agent": request.META.get("HTTP_USER_AGENT", "")[:512],
    }


# ════════════════════════════════════════════════════════════════════
#  Action History (admin audit log)
# ════════════════════════════════════════════════════════════════════

class ActionHistoryService:
    """
    Writes and reads the append-only admin audit log.

    ``record`` is always called from inside the caller's atomic block so
    that an audit row exists if and only if the action it describes was
    committed.
    """

    @staticmethod
    def record(
        *,
        admin: User,
        action: str,
        resource: str,
        resource_id: Any = "",
        details: dict[str, Any] | None = None,
        audit: dict[str, Any] | None = None,
    ) -> ActionHistory:
        """
        Append one audit entry.

        Args:
            admin:       The acting administrator.
            action:      Verb, e.g. ``"update_complaint"``.
            resource:    Resource kind, e.g. ``"complaint"``.
            resource_id: Primary key (or other identifier) of the resource.
            details:     Free-form JSON context.
            audit:       Optional ``{"ip_address", "user_agent"}`` dict from
                         ``audit_context_from_request``.
        """
        audit = audit or {}
        entry = ActionHistory.objects.create(
            admin=admin,
            action=action,
            resource=resource,
            resource_id=str(resource_id),
            details=details or {},
            ip_address=audit.get("ip_address"),
            user_agent=audit.get("user_agent", ""),
        )
        logger.debug("Audit: admin=%s %s %s#%s", admin.pk, action, resource, resource_id)
        return entry

    @staticmethod
    def list_actions(filters: dict[str, Any]) -> QuerySet:
        """
        Return audit entries, newest first.

        Supported filters: ``admin_id``, ``action``, ``resource``,
        ``start_date`` and ``end_date`` (ISO date or datetime strings).

        Raises:
            ValidationFailure: If a date filter cannot be parsed.
        """
        qs = ActionHistory.objects.select_related("admin").order_by("-created_at", "-id")

        if filters.get("admin_id"):
            qs = qs.filter(admin_id=filters["admin_id"])
        if filters.get("action"):
            qs = qs.filter(action=filters["action"])
        if filters.get("resource"):
            qs = qs.filter(resource=filters["resource"])

        start = filters.get("start_date")
        if start:
            qs = qs.filter(**_date_lookup("created_at__gte", "created_at__date__gte", start))
        end = filters.get("end_date")
        if end:
            qs = qs.filter(**_date_lookup("created_at__lte", "created_at__date__lte", end))
        return qs


def _date_lookup(datetime_key: str, date_key: str, raw: str) -> dict[str, Any]:
    try:
        d = parse_date(raw)
        dt = None if d is not None else parse_datetime(raw)
    except ValueError:
        dt = d = None
    if d is not None:
        return {date_key: d}
    if dt is not None:
        # Offset-less values are read in the active time zone.
        if timezone.is_naive(dt):
            dt = timezone.make_aware(dt)
        return {datetime_key: dt}
    raise ValidationFailure(f"Invalid date: '{raw}'.")


# ════════════════════════════════════════════════════════════════════
#  System Constants
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers the choice enumerations and reward amounts the client needs
    to render forms and labels.  Stateless and public.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from complaints.models import ComplaintPriority, ComplaintStatus
        from withdrawals.models import WithdrawalMethod, WithdrawalStatus

        to_list = SystemConstantsService._choices_to_list

        return {
            "complaint_types": list(constants.COMPLAINT_TYPES),
            "complaint_statuses": to_list(ComplaintStatus),
            "complaint_priorities": to_list(ComplaintPriority),
            "withdrawal_methods": to_list(WithdrawalMethod),
            "withdrawal_statuses": to_list(WithdrawalStatus),
            "points": {
                "submission": constants.POINTS_FOR_SUBMISSION,
                "approval": constants.POINTS_FOR_APPROVAL,
                "min_withdrawal": constants.MIN_WITHDRAWAL_POINTS,
            },
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Service
# ═══════════════════════════════════════════════════════════════════

class NotificationService:
    """
    Handles listing and marking notifications as read for a given user.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet:
        """Return notifications for ``self.user``, most recent first."""
        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("content_type")
            .order_by("-created_at")
        )
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs

    def mark_as_read(self, notification_id: int) -> Notification:
        """
        Mark a single notification as read.

        Raises:
            NotFound: If the notification does not exist or belongs to
                      another user.
        """
        try:
            notification = Notification.objects.get(
                pk=notification_id,
                recipient=self.user,
            )
        except Notification.DoesNotExist:
            raise NotFound(f"Notification with id {notification_id} not found.")
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification as read; return how many changed."""
        return (
            Notification.objects
            .filter(recipient=self.user, is_read=False)
            .update(is_read=True)
        )
