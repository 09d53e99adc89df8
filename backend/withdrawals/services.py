"""
Withdrawals app services.

``WithdrawalService`` files payout requests and moves them through
processing.  Filing a request redeems its points from the ledger in the
same transaction, so a withdrawal row exists if and only if the matching
``redeemed`` history entry does.

State machine
-------------
::

    pending ──► processing ──► approved
       │             └───────► rejected
       ├──────────────────────► approved
       └──────────────────────► rejected

Approved and rejected are terminal.  Rejection does not refund the
redeemed points; refunds are a manual ``adjust_points`` call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet

from core.constants import MIN_WITHDRAWAL_POINTS
from core.domain.access import apply_permission_scope, require_permission
from core.domain.exceptions import InsufficientPoints, InvalidTransition, NotFound, ValidationFailure
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
from core.permissions_constants import WithdrawalsPerms
from core.services import ActionHistoryService
from points.models import PointsSource
from points.services import PointsLedgerService

from .models import Withdrawal, WithdrawalMethod, WithdrawalStatus, WithdrawalTimelineEntry

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)

PROCESS_PERM = WithdrawalsPerms.full(WithdrawalsPerms.CAN_PROCESS_WITHDRAWAL)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    WithdrawalStatus.PENDING: frozenset({
        WithdrawalStatus.PROCESSING,
        WithdrawalStatus.APPROVED,
        WithdrawalStatus.REJECTED,
    }),
    WithdrawalStatus.PROCESSING: frozenset({
        WithdrawalStatus.APPROVED,
        WithdrawalStatus.REJECTED,
    }),
    WithdrawalStatus.APPROVED: frozenset(),
    WithdrawalStatus.REJECTED: frozenset(),
}

ESTIMATED_PROCESSING_TIME = "3-5 days"

_PAYMENT_FIELDS = ("upi_id", "bank_account", "ifsc")

# Admins see every withdrawal; everybody else only their own.
WITHDRAWAL_SCOPE_RULES = [
    (PROCESS_PERM, lambda qs, u: qs),
]


def withdrawal_event_payload(withdrawal: Withdrawal) -> dict[str, Any]:
    return {
        "id": withdrawal.pk,
        "points": withdrawal.points,
        "method": withdrawal.method,
        "status": withdrawal.status,
        "reason": withdrawal.reason,
        "transaction_id": withdrawal.transaction_id,
    }


class WithdrawalService:
    """
    Filing, processing and listing withdrawals.

    Side channels are injected the same way as for the complaint
    workflow; omitted collaborators are resolved from settings.
    """

    def __init__(
        self,
        dispatcher: PushDispatcher | None = None,
        publisher: RealtimePublisher | None = None,
    ) -> None:
        self.dispatcher = dispatcher or get_push_dispatcher()
        self.publisher = publisher or get_realtime_publisher()

    @atomic_operation
    def create_withdrawal(self, validated_data: dict[str, Any], user: User) -> Withdrawal:
        """
        File a withdrawal and redeem its points.

        Payment details left blank are filled from the user's profile
        defaults.

        Raises
        ------
        ValidationFailure
            Below ``MIN_WITHDRAWAL_POINTS`` or missing payment details for
            the chosen method.
        InsufficientPoints
            If the balance does not cover ``points``.
        """
        data = dict(validated_data)
        points = data["points"]
        if points < MIN_WITHDRAWAL_POINTS:
            raise ValidationFailure(
                f"Minimum withdrawal is {MIN_WITHDRAWAL_POINTS} points."
            )

        balance = PointsLedgerService.get_balance(user.pk)
        if balance < points:
            raise InsufficientPoints(balance=balance, requested=points)

        for field in _PAYMENT_FIELDS:
            if not data.get(field):
                data[field] = getattr(user, field, "")
        if not data.get("account_holder_name"):
            data["account_holder_name"] = user.get_full_name()
        self._check_payment_details(data)

        withdrawal = Withdrawal.objects.create(user=user, **data)
        PointsLedgerService.redeem_points(user.pk, points, PointsSource.WITHDRAWAL, withdrawal.pk)
        WithdrawalTimelineEntry.objects.create(
            withdrawal=withdrawal,
            action="created",
            status=withdrawal.status,
        )

        payload = {"id": withdrawal.pk, "points": withdrawal.points, "method": withdrawal.method}
        run_after_commit(
            lambda: self.publisher.publish(ADMIN_CHANNEL, "newWithdrawal", payload),
            label="newWithdrawal",
        )

        logger.info("Withdrawal #%d of %d points filed by user=%s", withdrawal.pk, points, user.pk)
        return withdrawal

    @staticmethod
    def _check_payment_details(data: dict[str, Any]) -> None:
        if data["method"] == WithdrawalMethod.UPI and not data.get("upi_id"):
            raise ValidationFailure("A UPI ID is required for UPI withdrawals.")
        if data["method"] == WithdrawalMethod.BANK_TRANSFER and not (
            data.get("bank_account") and data.get("ifsc")
        ):
            raise ValidationFailure("Bank account and IFSC are required for bank transfers.")

    @atomic_operation
    def process_withdrawal(
        self,
        withdrawal_id: int,
        status: str,
        admin: User,
        reason: str = "",
        description: str = "",
        transaction_id: str = "",
        audit: dict[str, Any] | None = None,
    ) -> Withdrawal:
        """
        Move a withdrawal to ``status`` on behalf of ``admin``.

        Writes the processing data, one timeline entry, one
        ``ActionHistory`` row and one in-app notification; the push and
        the ``withdrawalUpdate`` event follow after commit.

        Raises
        ------
        PermissionDenied
            If ``admin`` lacks ``withdrawals.can_process_withdrawal``.
        ValidationFailure
            Unknown status.
        NotFound
            If the withdrawal does not exist.
        InvalidTransition
            If the withdrawal cannot move from its current status.
        """
        require_permission(admin, PROCESS_PERM, message="You do not have permission to process withdrawals.")
        if status not in WithdrawalStatus.values:
            raise ValidationFailure(f"Unknown withdrawal status '{status}'.")

        withdrawal = lock_for_update(Withdrawal, withdrawal_id)
        if status not in ALLOWED_TRANSITIONS[withdrawal.status]:
            raise InvalidTransition(
                current=withdrawal.status,
                target=status,
                reason="Approved and rejected withdrawals are final.",
            )

        withdrawal.status = status
        withdrawal.reason = reason or ""
        withdrawal.description = description or ""
        if transaction_id:
            withdrawal.transaction_id = transaction_id
        withdrawal.processed_by = admin
        withdrawal.save(update_fields=[
            "status", "reason", "description", "transaction_id", "processed_by", "updated_at",
        ])

        WithdrawalTimelineEntry.objects.create(
            withdrawal=withdrawal,
            action="status_update",
            status=status,
            reason=withdrawal.reason,
            description=withdrawal.description,
            admin=admin,
        )
        ActionHistoryService.record(
            admin=admin,
            action="update_withdrawal",
            resource="withdrawal",
            resource_id=withdrawal.pk,
            details={"status": status, "transaction_id": withdrawal.transaction_id},
            audit=audit,
        )
        NotificationService.create(
            actor=admin,
            recipients=withdrawal.user,
            event_type="withdrawal_status_changed",
            payload={"status": status},
            related_object=withdrawal,
        )
        self._notify_owner(withdrawal.pk, withdrawal.user_id)

        logger.info("Withdrawal #%d -> %s by admin=%s", withdrawal.pk, status, admin.pk)
        return withdrawal

    # ── Queries ─────────────────────────────────────────────────────

    @staticmethod
    def list_withdrawals(user: User, filters: dict[str, Any] | None = None) -> QuerySet:
        """
        Withdrawals visible to ``user``, newest first.

        Filters: ``status`` and ``user_id`` (the latter only narrows an
        admin's view).
        """
        filters = filters or {}
        qs = apply_permission_scope(
            Withdrawal.objects.select_related("user", "processed_by"),
            user,
            scope_rules=WITHDRAWAL_SCOPE_RULES,
            fallback=lambda qs, u: qs.filter(user=u),
        )
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("user_id"):
            qs = qs.filter(user_id=filters["user_id"])
        return qs.order_by("-created_at", "-id")

    @classmethod
    def get_withdrawal(cls, withdrawal_id: int, user: User) -> Withdrawal:
        """
        Raises
        ------
        NotFound
            If the withdrawal does not exist or is outside the user's scope.
        """
        try:
            return cls.list_withdrawals(user).prefetch_related("timeline__admin").get(pk=withdrawal_id)
        except Withdrawal.DoesNotExist:
            raise NotFound(f"Withdrawal with id {withdrawal_id} not found.")

    # ── Side channels ───────────────────────────────────────────────

    def _notify_owner(self, withdrawal_id: int, user_id: int) -> None:
        run_after_commit(
            lambda: self._push_status(withdrawal_id, user_id),
            label=f"push withdrawal #{withdrawal_id}",
        )
        run_after_commit(
            lambda: self.publisher.publish(
                user_channel(user_id),
                "withdrawalUpdate",
                withdrawal_event_payload(Withdrawal.objects.get(pk=withdrawal_id)),
            ),
            label=f"withdrawalUpdate #{withdrawal_id}",
        )

    def _push_status(self, withdrawal_id: int, user_id: int) -> None:
        from accounts.services import DeviceTokenService

        withdrawal = Withdrawal.objects.get(pk=withdrawal_id)
        title, body = render_event("withdrawal_status_changed", {"status": withdrawal.status})
        for token in DeviceTokenService.tokens_for(user_id):
            try:
                self.dispatcher.send(
                    token,
                    title,
                    body,
                    {"withdrawal_id": str(withdrawal.pk), "status": withdrawal.status},
                )
            except Exception:
                logger.exception("Push for withdrawal #%d to one device failed", withdrawal_id)
