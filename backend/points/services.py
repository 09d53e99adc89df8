"""
Points app services — the **Points Ledger**.

Every change to ``User.points`` goes through ``PointsLedgerService``.
Each movement runs inside one ``transaction.atomic()`` block that:

1. locks the user row (``select_for_update``),
2. applies the delta as a conditional ``F()`` update, and
3. appends exactly one ``PointsHistory`` row whose ``points`` equals the
   delta applied.

Either both the balance change and the history row persist or neither
does, and concurrent movements on the same user serialize on the row
lock, so N concurrent awards of P raise the balance by exactly N×P.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from django.apps import apps
from django.contrib.auth import get_user_model
from django.db.models import Count, F, Q, QuerySet, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.domain.access import require_permission
from core.domain.exceptions import InsufficientPoints, NotFound, ValidationFailure
from core.domain.notifications import NotificationService
from core.domain.transactions import atomic_operation, lock_for_update
from core.permissions_constants import PointsPerms
from core.services import ActionHistoryService

from .models import PointsEntryType, PointsHistory, PointsSource

if TYPE_CHECKING:
    from accounts.models import User as UserType

User = get_user_model()

logger = logging.getLogger(__name__)


def _require_amount(points: Any, *, allow_zero: bool = True, allow_negative: bool = False) -> int:
    if isinstance(points, bool) or not isinstance(points, int):
        raise ValidationFailure("Points must be an integer.")
    if points < 0 and not allow_negative:
        raise ValidationFailure("Points must be zero or greater.")
    if points == 0 and not allow_zero:
        raise ValidationFailure("Points must not be zero.")
    return points


def _reference(reference_id: Any) -> str:
    return "" if reference_id is None else str(reference_id)


class PointsLedgerService:
    """
    Balance mutations and the read side of the ledger.

    All mutators are static, atomic and raise domain exceptions before
    touching any row when their input is invalid.
    """

    # ── Mutations ───────────────────────────────────────────────────

    @staticmethod
    @atomic_operation
    def award_points(
        user_id: int,
        points: int,
        source: str,
        reference_id: Any = None,
    ) -> PointsHistory:
        """
        Credit ``points`` to a user.

        Parameters
        ----------
        user_id : int
            The user receiving the points.
        points : int
            Non-negative amount.
        source : str
            What the points are for (e.g. ``"complaint_approval"``).
        reference_id : optional
            Id of the complaint / withdrawal that caused the movement.

        Returns
        -------
        PointsHistory
            The ``earned`` entry, delta ``+points``.

        Raises
        ------
        ValidationFailure
            If ``points`` is not a non-negative integer.
        NotFound
            If the user does not exist.
        StorageFailure
            If the database rejected the write (nothing persisted).
        """
        _require_amount(points)
        source = str(source)
        user = lock_for_update(User, user_id)

        User.objects.filter(pk=user.pk).update(points=F("points") + points)
        entry = PointsHistory.objects.create(
            user=user,
            type=PointsEntryType.EARNED,
            points=points,
            description=f"Points for {source}",
            source=source,
            reference_id=_reference(reference_id),
        )

        logger.info("Awarded %d points to user=%s for %s (ref=%s)", points, user.pk, source, reference_id)
        return entry

    @staticmethod
    @atomic_operation
    def redeem_points(
        user_id: int,
        points: int,
        source: str,
        reference_id: Any = None,
    ) -> PointsHistory:
        """
        Debit ``points`` from a user.

        Returns
        -------
        PointsHistory
            The ``redeemed`` entry, delta ``-points``.

        Raises
        ------
        ValidationFailure
            If ``points`` is not a non-negative integer.
        NotFound
            If the user does not exist.
        InsufficientPoints
            If the balance is lower than ``points``.
        """
        _require_amount(points)
        source = str(source)
        user = lock_for_update(User, user_id)

        if user.points < points:
            raise InsufficientPoints(balance=user.points, requested=points)

        updated = (
            User.objects
            .filter(pk=user.pk, points__gte=points)
            .update(points=F("points") - points)
        )
        if not updated:
            # Backends without row locks can still lose the race here.
            raise InsufficientPoints(requested=points)

        entry = PointsHistory.objects.create(
            user=user,
            type=PointsEntryType.REDEEMED,
            points=-points,
            description=f"Points redeemed for {source}",
            source=source,
            reference_id=_reference(reference_id),
        )

        logger.info("Redeemed %d points from user=%s for %s (ref=%s)", points, user.pk, source, reference_id)
        return entry

    @staticmethod
    @atomic_operation
    def adjust_points(
        user_id: int,
        delta: int,
        admin: UserType,
        reason: str,
        audit: dict[str, Any] | None = None,
    ) -> PointsHistory:
        """
        Apply a signed manual correction on behalf of an admin.

        Writes one ``adjusted`` history entry (carrying the admin) and
        one ``ActionHistory`` row, then notifies the user in-app.

        Raises
        ------
        PermissionDenied
            If ``admin`` lacks ``points.can_adjust_points``.
        ValidationFailure
            If ``delta`` is zero / not an integer, or ``reason`` is blank.
        NotFound
            If the user does not exist.
        InsufficientPoints
            If a negative delta would drive the balance below zero.
        """
        require_permission(
            admin,
            PointsPerms.full(PointsPerms.CAN_ADJUST_POINTS),
            message="You do not have permission to adjust points.",
        )
        _require_amount(delta, allow_zero=False, allow_negative=True)
        if not reason or not reason.strip():
            raise ValidationFailure("A reason is required for manual adjustments.")

        user = lock_for_update(User, user_id)

        qs = User.objects.filter(pk=user.pk)
        if delta < 0:
            if user.points + delta < 0:
                raise InsufficientPoints(balance=user.points, requested=-delta)
            qs = qs.filter(points__gte=-delta)
        if not qs.update(points=F("points") + delta):
            raise InsufficientPoints(requested=-delta)

        entry = PointsHistory.objects.create(
            user=user,
            type=PointsEntryType.ADJUSTED,
            points=delta,
            description=reason.strip(),
            source=PointsSource.ADMIN_ADJUSTMENT,
            admin=admin,
        )
        ActionHistoryService.record(
            admin=admin,
            action="adjust_points",
            resource="user",
            resource_id=user.pk,
            details={"delta": delta, "reason": reason.strip()},
            audit=audit,
        )
        NotificationService.create(
            actor=admin,
            recipients=user,
            event_type="points_adjusted",
            payload={"points": delta, "reason": reason.strip()},
            related_object=entry,
        )

        logger.info("Adjusted user=%s balance by %d (admin=%s)", user.pk, delta, admin.pk)
        return entry

    # ── Read side ───────────────────────────────────────────────────

    @staticmethod
    def get_balance(user_id: int) -> int:
        """
        Raises
        ------
        NotFound
            If the user does not exist.
        """
        balance = User.objects.filter(pk=user_id).values_list("points", flat=True).first()
        if balance is None:
            raise NotFound(f"User with pk={user_id} does not exist.")
        return balance

    @staticmethod
    def get_history(user: UserType | int, filters: dict[str, Any] | None = None) -> QuerySet:
        """
        Return a user's ledger entries, newest first.

        Supported filters: ``type`` (earned / redeemed / adjusted) and
        ``source``.
        """
        filters = filters or {}
        qs = PointsHistory.objects.filter(user=user).select_related("admin")
        if filters.get("type"):
            qs = qs.filter(type=filters["type"])
        if filters.get("source"):
            qs = qs.filter(source=filters["source"])
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_summary(user: UserType) -> dict[str, int]:
        """
        Current balance plus lifetime totals and the points currently
        held by pending withdrawals.
        """
        totals = PointsHistory.objects.filter(user=user).aggregate(
            total_earned=Coalesce(Sum("points", filter=Q(type=PointsEntryType.EARNED)), 0),
            total_redeemed=Coalesce(Sum("points", filter=Q(type=PointsEntryType.REDEEMED)), 0),
            total_adjusted=Coalesce(Sum("points", filter=Q(type=PointsEntryType.ADJUSTED)), 0),
        )

        Withdrawal = apps.get_model("withdrawals", "Withdrawal")
        pending = Withdrawal.objects.filter(
            user=user,
            status__in=Withdrawal.OPEN_STATUSES,
        ).aggregate(
            count=Count("id"),
            points=Coalesce(Sum("points"), 0),
        )

        return {
            "balance": PointsLedgerService.get_balance(user.pk),
            "total_earned": totals["total_earned"],
            "total_redeemed": -totals["total_redeemed"],
            "total_adjusted": totals["total_adjusted"],
            "pending_withdrawal_points": pending["points"],
            "pending_withdrawal_count": pending["count"],
        }


# ═══════════════════════════════════════════════════════════════════
#  Leaderboard
# ═══════════════════════════════════════════════════════════════════

LEADERBOARD_CATEGORIES = ("points", "complaints", "recent")
LEADERBOARD_TIME_FRAMES = ("all", "today", "week", "month", "year")
LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MAX_LIMIT = 100


def time_frame_start(time_frame: str, now: datetime | None = None) -> datetime | None:
    """
    Lower bound for a leaderboard time frame, or ``None`` for ``"all"``.

    ``today``, ``month`` and ``year`` start at local midnight of the
    current day, month and year; ``week`` is the last seven days.
    """
    now = now or timezone.now()
    midnight = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
    if time_frame == "today":
        return midnight
    if time_frame == "week":
        return now - timedelta(days=7)
    if time_frame == "month":
        return midnight.replace(day=1)
    if time_frame == "year":
        return midnight.replace(month=1, day=1)
    return None


def _display_name(user: UserType) -> str:
    return user.get_full_name() or user.username


class LeaderboardService:
    """
    Rankings of active users.

    Categories
    ----------
    points      Current balance, highest first.  The time frame does not
                apply; balances are not time-bucketed.
    complaints  Approved complaints created within the time frame.
    recent      Users who joined within the time frame, newest first.
    """

    @classmethod
    def get_leaderboard(
        cls,
        user: UserType,
        *,
        category: str = "points",
        time_frame: str = "all",
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
    ) -> dict[str, Any]:
        if category not in LEADERBOARD_CATEGORIES:
            raise ValidationFailure(f"Unknown leaderboard category '{category}'.")
        if time_frame not in LEADERBOARD_TIME_FRAMES:
            raise ValidationFailure(f"Unknown time frame '{time_frame}'.")
        if not 1 <= limit <= LEADERBOARD_MAX_LIMIT:
            raise ValidationFailure(f"Limit must be between 1 and {LEADERBOARD_MAX_LIMIT}.")

        start = time_frame_start(time_frame)
        if category == "points":
            rows, current = cls._by_points(user, limit)
        elif category == "complaints":
            rows, current = cls._by_complaints(user, start, limit)
        else:
            rows, current = cls._recent(start, limit), None

        return {
            "leaderboard": rows,
            "current_user_rank": current,
            "metadata": {
                "time_frame": time_frame,
                "category": category,
                "total": len(rows),
                "generated_at": timezone.now(),
            },
        }

    @staticmethod
    def _user_row(rank: int, member: UserType) -> dict[str, Any]:
        return {
            "rank": rank,
            "user_id": member.pk,
            "name": _display_name(member),
            "points": member.points,
            "joined_at": member.date_joined,
        }

    @classmethod
    def _by_points(cls, user: UserType, limit: int):
        active = User.objects.filter(is_active=True)
        top = active.order_by("-points", "date_joined", "id")[:limit]
        rows = [cls._user_row(rank, member) for rank, member in enumerate(top, start=1)]

        balance = PointsLedgerService.get_balance(user.pk)
        current = {
            "rank": active.filter(points__gt=balance).count() + 1,
            "points": balance,
        }
        return rows, current

    @staticmethod
    def _by_complaints(user: UserType, start: datetime | None, limit: int):
        Complaint = apps.get_model("complaints", "Complaint")
        approved = Complaint.objects.filter(
            status="approved",
            user__isnull=False,
            user__is_active=True,
        )
        if start is not None:
            approved = approved.filter(created_at__gte=start)

        per_user = approved.values("user").annotate(
            total_complaints=Count("id"),
            total_points=Coalesce(Sum("points"), 0),
        )
        stats = list(per_user.order_by("-total_complaints", "user")[:limit])
        members = User.objects.in_bulk([row["user"] for row in stats])

        rows = [
            {
                "rank": rank,
                "user_id": row["user"],
                "name": _display_name(members[row["user"]]),
                "total_complaints": row["total_complaints"],
                "total_points": row["total_points"],
                "joined_at": members[row["user"]].date_joined,
            }
            for rank, row in enumerate(stats, start=1)
        ]

        own = approved.filter(user=user).count()
        current = {
            "rank": per_user.order_by().filter(total_complaints__gt=own).count() + 1,
            "total_complaints": own,
        }
        return rows, current

    @classmethod
    def _recent(cls, start: datetime | None, limit: int) -> list[dict[str, Any]]:
        joined = User.objects.filter(is_active=True)
        if start is not None:
            joined = joined.filter(date_joined__gte=start)
        newest = joined.order_by("-date_joined", "-id")[:limit]
        return [cls._user_row(rank, member) for rank, member in enumerate(newest, start=1)]
