"""
Complaints app services — the **Complaint Workflow**.

Architecture
------------
- ``ComplaintSubmissionService`` — filing a complaint (token, submission
  award, admin broadcast).
- ``ComplaintWorkflowService``   — the review state machine, the point
  award on approval and owner notifications.
- ``ComplaintQueryService``      — tracking, personal history and the
  admin listing.

State machine
-------------
::

    pending ──► approved
       └──────► rejected

Approved and rejected are terminal.  Any other request raises
``InvalidTransition`` and writes nothing.

Side channels
-------------
Push notifications and real-time events are best-effort.  They are
scheduled with ``run_after_commit`` so they only fire once the state
change is durable, and their failures are logged, never raised.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Any

from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from core.constants import (
    COMPLAINT_TOKEN_DIGITS,
    COMPLAINT_TOKEN_PREFIX,
    POINTS_FOR_APPROVAL,
    POINTS_FOR_SUBMISSION,
)
from core.domain.access import require_permission
from core.domain.exceptions import Conflict, InvalidTransition, NotFound, ValidationFailure
from core.domain.notifications import NotificationService, render_event
from core.domain.side_channels import (
    ADMIN_CHANNEL,
    PushDispatcher,
    RealtimePublisher,
    get_push_dispatcher,
    get_realtime_publisher,
    user_channel,
)
from core.domain.transactions import atomic_operation, lock_for_update, run_after_commit
from core.permissions_constants import ComplaintsPerms
from core.services import ActionHistoryService
from points.models import PointsSource
from points.services import PointsLedgerService

from .models import Complaint, ComplaintStatus, ComplaintTimelineEntry

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)

REVIEW_PERM = ComplaintsPerms.full(ComplaintsPerms.CAN_REVIEW_COMPLAINT)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    ComplaintStatus.PENDING: frozenset({ComplaintStatus.APPROVED, ComplaintStatus.REJECTED}),
    ComplaintStatus.APPROVED: frozenset(),
    ComplaintStatus.REJECTED: frozenset(),
}

_TOKEN_ATTEMPTS = 10


def generate_complaint_token() -> str:
    """Return a random tracking code such as ``BRTS482913``."""
    low = 10 ** (COMPLAINT_TOKEN_DIGITS - 1)
    number = low + secrets.randbelow(9 * low)
    return f"{COMPLAINT_TOKEN_PREFIX}{number}"


def complaint_event_payload(complaint: Complaint) -> dict[str, Any]:
    """Snapshot sent with real-time complaint events."""
    return {
        "id": complaint.pk,
        "token": complaint.token,
        "status": complaint.status,
        "reason": complaint.reason,
        "points": complaint.points,
    }


def _require_points(points: Any) -> int:
    if isinstance(points, bool) or not isinstance(points, int) or points < 0:
        raise ValidationFailure("Points must be a non-negative integer.")
    return points


# ═══════════════════════════════════════════════════════════════════
#  Submission
# ═══════════════════════════════════════════════════════════════════


class ComplaintSubmissionService:
    """Creates complaints from validated client input."""

    def __init__(self, publisher: RealtimePublisher | None = None) -> None:
        self.publisher = publisher or get_realtime_publisher()

    @atomic_operation
    def submit(
        self,
        validated_data: dict[str, Any],
        requesting_user: User | None,
    ) -> tuple[Complaint, int]:
        """
        File a new complaint.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``ComplaintCreateSerializer``.
        requesting_user : User | None
            The authenticated submitter, or ``None`` / an anonymous user
            for anonymous submissions.

        Returns
        -------
        tuple[Complaint, int]
            The stored complaint and the submission points credited
            (``0`` for anonymous submissions).
        """
        owner = requesting_user if requesting_user is not None and requesting_user.is_authenticated else None

        complaint = self._create_with_unique_token(
            user=owner,
            is_anonymous=owner is None,
            **validated_data,
        )

        awarded = 0
        if owner is not None:
            PointsLedgerService.award_points(
                owner.pk,
                POINTS_FOR_SUBMISSION,
                PointsSource.COMPLAINT_SUBMISSION,
                complaint.pk,
            )
            awarded = POINTS_FOR_SUBMISSION

        payload = {"id": complaint.pk, "token": complaint.token, "type": complaint.type}
        run_after_commit(
            lambda: self.publisher.publish(ADMIN_CHANNEL, "newComplaint", payload),
            label="newComplaint",
        )

        logger.info(
            "Complaint #%d (%s) submitted by %s",
            complaint.pk,
            complaint.token,
            f"user={owner.pk}" if owner else "anonymous",
        )
        return complaint, awarded

    @staticmethod
    def _create_with_unique_token(**fields: Any) -> Complaint:
        for _ in range(_TOKEN_ATTEMPTS):
            token = generate_complaint_token()
            if Complaint.objects.filter(token=token).exists():
                continue
            try:
                with transaction.atomic():
                    return Complaint.objects.create(token=token, **fields)
            except IntegrityError:
                # Token taken between the check and the insert.
                continue
        raise Conflict("Could not allocate a unique complaint token. Please retry.")


# ═══════════════════════════════════════════════════════════════════
#  Review workflow
# ═══════════════════════════════════════════════════════════════════


class ComplaintWorkflowService:
    """
    Review state machine plus point award on approval.

    The push dispatcher and the real-time publisher are injected; when
    omitted they are resolved from ``settings.NOTIFICATION_DISPATCHER``
    and ``settings.REALTIME_PUBLISHER``.
    """

    def __init__(
        self,
        dispatcher: PushDispatcher | None = None,
        publisher: RealtimePublisher | None = None,
    ) -> None:
        self.dispatcher = dispatcher or get_push_dispatcher()
        self.publisher = publisher or get_realtime_publisher()

    @atomic_operation
    def update_complaint_status(
        self,
        complaint: Complaint,
        status: str,
        reason: str,
        description: str,
        admin: User,
        audit: dict[str, Any] | None = None,
    ) -> Complaint:
        """
        Move a complaint to ``status`` and record the change.

        Writes, in one transaction: the new status / reason / admin
        description, exactly one timeline entry, exactly one
        ``ActionHistory`` row and, for owned complaints, one in-app
        notification.  After commit the owner also receives one push per
        registered device token and a ``complaintUpdate`` real-time
        event on their channel.

        Parameters
        ----------
        complaint : Complaint
            The complaint to transition.  Its fields are refreshed in
            place with the persisted values.
        status : str
            Target status (``approved`` or ``rejected``).
        reason, description : str
            Review reason and admin notes.
        admin : User
            The reviewing admin.
        audit : dict, optional
            Client address / user agent for the audit row.

        Returns
        -------
        Complaint
            The updated complaint.

        Raises
        ------
        PermissionDenied
            If ``admin`` lacks ``complaints.can_review_complaint``.
        ValidationFailure
            If ``status`` is not a known complaint status.
        NotFound
            If the complaint no longer exists.
        InvalidTransition
            If the complaint cannot move from its current status.
        """
        require_permission(admin, REVIEW_PERM, message="You do not have permission to review complaints.")
        if status not in ComplaintStatus.values:
            raise ValidationFailure(f"Unknown complaint status '{status}'.")

        locked = lock_for_update(Complaint, complaint.pk)
        if status not in ALLOWED_TRANSITIONS[locked.status]:
            raise InvalidTransition(
                current=locked.status,
                target=status,
                reason="Only pending complaints can be reviewed.",
            )

        locked.status = status
        locked.reason = reason or ""
        locked.admin_description = description or ""
        locked.save(update_fields=["status", "reason", "admin_description", "updated_at"])

        ComplaintTimelineEntry.objects.create(
            complaint=locked,
            action="status_update",
            status=status,
            reason=locked.reason,
            description=locked.admin_description,
            admin=admin,
        )
        ActionHistoryService.record(
            admin=admin,
            action="update_complaint",
            resource="complaint",
            resource_id=locked.pk,
            details={"status": status},
            audit=audit,
        )

        if locked.user_id is not None:
            NotificationService.create(
                actor=admin,
                recipients=locked.user,
                event_type="complaint_status_changed",
                payload={"token": locked.token, "status": status},
                related_object=locked,
            )
            self._notify_owner(locked.pk, locked.user_id)

        for field in ("status", "reason", "admin_description", "updated_at"):
            setattr(complaint, field, getattr(locked, field))

        logger.info("Complaint #%d -> %s by admin=%s", locked.pk, status, admin.pk)
        return locked

    @atomic_operation
    def approve_complaint(self, complaint_id: int, points: int, user_id: int | None) -> Complaint:
        """
        Record the awarded points on a complaint and credit its owner.

        Does not change ``status``; ``review_complaint`` composes this
        with ``update_complaint_status``.

        Parameters
        ----------
        complaint_id : int
        points : int
            Non-negative award.
        user_id : int | None
            The owner to credit; ``None`` for anonymous complaints, which
            are approved without touching any ledger.

        Raises
        ------
        ValidationFailure
            If ``points`` is not a non-negative integer.
        NotFound
            If the complaint does not exist.
        Conflict
            If points were already recorded for this complaint.
        """
        _require_points(points)
        complaint = lock_for_update(Complaint, complaint_id)
        if complaint.points is not None:
            raise Conflict(f"Points were already awarded for complaint #{complaint.pk}.")

        complaint.points = points
        complaint.save(update_fields=["points", "updated_at"])

        if user_id is not None:
            PointsLedgerService.award_points(
                user_id,
                points,
                PointsSource.COMPLAINT_APPROVAL,
                complaint.pk,
            )
        return complaint

    @atomic_operation
    def review_complaint(
        self,
        complaint_id: int,
        status: str,
        reason: str,
        description: str,
        admin: User,
        points: int | None = None,
        audit: dict[str, Any] | None = None,
    ) -> tuple[Complaint, int]:
        """
        Approve or reject a complaint in one transaction.

        When ``status`` is ``approved`` the owner is credited ``points``
        (default ``POINTS_FOR_APPROVAL``).  A failure anywhere rolls back
        the status change, the timeline, the audit row and the award.

        Returns
        -------
        tuple[Complaint, int]
            The updated complaint and the points credited to its owner
            (``0`` for rejections and anonymous complaints).
        """
        if points is not None:
            _require_points(points)

        complaint = lock_for_update(Complaint, complaint_id)
        self.update_complaint_status(complaint, status, reason, description, admin, audit=audit)

        credited = 0
        if status == ComplaintStatus.APPROVED:
            amount = POINTS_FOR_APPROVAL if points is None else points
            self.approve_complaint(complaint.pk, amount, complaint.user_id)
            if complaint.user_id is not None:
                credited = amount

        complaint.refresh_from_db()
        return complaint, credited

    # ── Side channels ───────────────────────────────────────────────

    def _notify_owner(self, complaint_id: int, user_id: int) -> None:
        run_after_commit(
            lambda: self._push_status(complaint_id, user_id),
            label=f"push complaint #{complaint_id}",
        )
        run_after_commit(
            lambda: self.publisher.publish(
                user_channel(user_id),
                "complaintUpdate",
                complaint_event_payload(Complaint.objects.get(pk=complaint_id)),
            ),
            label=f"complaintUpdate #{complaint_id}",
        )

    def _push_status(self, complaint_id: int, user_id: int) -> None:
        from accounts.services import DeviceTokenService

        complaint = Complaint.objects.get(pk=complaint_id)
        title, body = render_event(
            "complaint_status_changed",
            {"token": complaint.token, "status": complaint.status},
        )
        for token in DeviceTokenService.tokens_for(user_id):
            try:
                self.dispatcher.send(
                    token,
                    title,
                    body,
                    {"complaint_id": str(complaint.pk), "status": complaint.status},
                )
            except Exception:
                logger.exception("Push for complaint #%d to one device failed", complaint_id)


# ═══════════════════════════════════════════════════════════════════
#  Queries
# ═══════════════════════════════════════════════════════════════════


class ComplaintQueryService:
    """Read-side helpers used by the complaint views."""

    @staticmethod
    def track(token: str) -> Complaint:
        """
        Public lookup by tracking code.

        Raises
        ------
        NotFound
            If no complaint carries this token.
        """
        try:
            return (
                Complaint.objects
                .prefetch_related("timeline")
                .get(token=token.strip().upper())
            )
        except Complaint.DoesNotExist:
            raise NotFound("Complaint not found.")

    @staticmethod
    def user_history(user: User, filters: dict[str, Any] | None = None) -> QuerySet:
        """A user's own complaints, newest first (filters: status, type)."""
        filters = filters or {}
        qs = Complaint.objects.filter(user=user)
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("type"):
            qs = qs.filter(type=filters["type"])
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def list_for_admin(admin: User, filters: dict[str, Any] | None = None) -> QuerySet:
        """
        Every complaint, newest first (filters: status, priority, type).

        Raises
        ------
        PermissionDenied
            If ``admin`` lacks ``complaints.can_review_complaint``.
        """
        require_permission(admin, REVIEW_PERM, message="You do not have permission to list complaints.")
        filters = filters or {}
        qs = Complaint.objects.select_related("user")
        for key in ("status", "priority", "type"):
            if filters.get(key):
                qs = qs.filter(**{key: filters[key]})
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_detail(complaint_id: int, user: User) -> Complaint:
        """
        A single complaint with its timeline, visible to reviewers and to
        the owner.

        Raises
        ------
        NotFound
            If the complaint does not exist or the user may not see it.
        """
        try:
            complaint = (
                Complaint.objects
                .select_related("user")
                .prefetch_related("timeline__admin")
                .get(pk=complaint_id)
            )
        except Complaint.DoesNotExist:
            raise NotFound(f"Complaint with id {complaint_id} not found.")

        if complaint.user_id != user.pk and not user.has_perm(REVIEW_PERM):
            raise NotFound(f"Complaint with id {complaint_id} not found.")
        return complaint
