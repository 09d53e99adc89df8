"""
Analytics app services — the **Analytics Aggregator**.

Read-only counts over complaints, users and withdrawals.  The lookback
window (``days``) only bounds the time-series figures (the complaint
daily trend and new-user count); totals are always all-time.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone

from accounts.models import DeviceToken
from complaints.models import Complaint, ComplaintStatus
from core.constants import ANALYTICS_TIME_RANGES, USER_RETENTION_PLACEHOLDER
from withdrawals.models import Withdrawal, WithdrawalStatus

logger = logging.getLogger(__name__)

User = get_user_model()

DASHBOARD_DEFAULT_DAYS = 7
DETAIL_DEFAULT_DAYS = 30


def parse_time_range(value: str | None, default: int) -> int:
    """
    Map a ``timeRange`` query value (``"7d"``, ``"30d"``, ``"90d"``) to a
    number of days.  Anything else yields ``default``.
    """
    if not value:
        return default
    return ANALYTICS_TIME_RANGES.get(value.strip().lower(), default)


def _window_start(days: int):
    return timezone.now() - timedelta(days=days)


class AnalyticsService:
    """Aggregations behind the ``/api/analytics/`` endpoints."""

    @staticmethod
    def get_complaint_analytics(days: int) -> dict[str, Any]:
        counts = Complaint.objects.aggregate(
            total=Count("id"),
            pending=Count("id", filter=Q(status=ComplaintStatus.PENDING)),
            approved=Count("id", filter=Q(status=ComplaintStatus.APPROVED)),
            rejected=Count("id", filter=Q(status=ComplaintStatus.REJECTED)),
        )

        daily_trend = [
            {"date": row["date"], "count": row["count"]}
            for row in (
                Complaint.objects
                .filter(created_at__gte=_window_start(days))
                .annotate(date=TruncDate("created_at"))
                .values("date")
                .annotate(count=Count("id"))
                .order_by("date")
            )
        ]

        category_breakdown = list(
            Complaint.objects
            .values("type")
            .annotate(count=Count("id"))
            .order_by("type")
        )

        return {
            **counts,
            "daily_trend": daily_trend,
            "category_breakdown": category_breakdown,
        }

    @staticmethod
    def get_user_analytics(days: int) -> dict[str, Any]:
        counts = User.objects.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(is_active=True)),
            new_users=Count("id", filter=Q(date_joined__gte=_window_start(days))),
        )
        device_breakdown = list(
            DeviceToken.objects
            .values("platform")
            .annotate(count=Count("id"))
            .order_by("platform")
        )
        return {
            **counts,
            # Not computed; no cohort data is tracked yet.
            "retention": USER_RETENTION_PLACEHOLDER,
            "device_breakdown": device_breakdown,
        }

    @staticmethod
    def get_withdrawal_analytics(days: int) -> dict[str, Any]:
        return Withdrawal.objects.aggregate(
            total=Count("id"),
            amount=Coalesce(Sum("points"), 0),
            pending=Count("id", filter=Q(status=WithdrawalStatus.PENDING)),
            approved=Count("id", filter=Q(status=WithdrawalStatus.APPROVED)),
        )

    @classmethod
    def get_dashboard(cls, days: int) -> dict[str, Any]:
        logger.debug("Building analytics dashboard for %d days", days)
        return {
            "days": days,
            "complaints": cls.get_complaint_analytics(days),
            "users": cls.get_user_analytics(days),
            "withdrawals": cls.get_withdrawal_analytics(days),
        }

    @staticmethod
    def get_user_stats(user) -> dict[str, int]:
        """
        Personal counters for the citizen's home screen: own complaints
        and withdrawals by status, the current balance and the points
        already paid out.
        """
        complaints = Complaint.objects.filter(user=user).aggregate(
            total_complaints=Count("id"),
            approved_complaints=Count("id", filter=Q(status=ComplaintStatus.APPROVED)),
            pending_complaints=Count("id", filter=Q(status=ComplaintStatus.PENDING)),
        )
        withdrawals = Withdrawal.objects.filter(user=user).aggregate(
            total_withdrawals=Count("id"),
            approved_withdrawals=Count("id", filter=Q(status=WithdrawalStatus.APPROVED)),
            pending_withdrawals=Count("id", filter=Q(status=WithdrawalStatus.PENDING)),
            total_withdrawn_points=Coalesce(
                Sum("points", filter=Q(status=WithdrawalStatus.APPROVED)), 0,
            ),
        )
        balance = User.objects.filter(pk=user.pk).values_list("points", flat=True).get()
        return {**complaints, "total_points": balance, **withdrawals}
