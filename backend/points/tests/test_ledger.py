"""
Unit tests for ``PointsLedgerService``: balance and history always move
together, invalid input never touches a row.
"""

from __future__ import annotations

import threading

import pytest
from django.db import connection

from core.domain.exceptions import (
    InsufficientPoints,
    NotFound,
    PermissionDenied,
    ValidationFailure,
)
from core.models import ActionHistory, Notification
from points.models import PointsEntryType, PointsHistory, PointsSource
from points.services import PointsLedgerService


def _balance(user) -> int:
    user.refresh_from_db(fields=["points"])
    return user.points


@pytest.mark.django_db
class TestAwardPoints:

    def test_award_raises_balance_and_appends_entry(self, create_user):
        user = create_user(points=10)

        entry = PointsLedgerService.award_points(user.pk, 50, PointsSource.COMPLAINT_APPROVAL, 7)

        assert _balance(user) == 60
        assert entry.type == PointsEntryType.EARNED
        assert entry.points == 50
        assert entry.description == "Points for complaint_approval"
        assert entry.reference_id == "7"
        assert PointsHistory.objects.filter(user=user).count() == 1

    def test_award_zero_is_recorded(self, create_user):
        user = create_user()
        entry = PointsLedgerService.award_points(user.pk, 0, "complaint_approval")
        assert _balance(user) == 0
        assert entry.points == 0
        assert entry.reference_id == ""

    @pytest.mark.parametrize("bad", [-1, 1.5, "10", True, None])
    def test_invalid_amount_rejected_before_mutation(self, create_user, bad):
        user = create_user(points=5)
        with pytest.raises(ValidationFailure):
            PointsLedgerService.award_points(user.pk, bad, "complaint_approval")
        assert _balance(user) == 5
        assert not PointsHistory.objects.exists()

    def test_unknown_user(self, db):
        with pytest.raises(NotFound):
            PointsLedgerService.award_points(999_999, 5, "complaint_submission")
        assert not PointsHistory.objects.exists()


@pytest.mark.django_db
class TestRedeemPoints:

    def test_redeem_lowers_balance(self, create_user):
        user = create_user(points=150)

        entry = PointsLedgerService.redeem_points(user.pk, 100, PointsSource.WITHDRAWAL, 3)

        assert _balance(user) == 50
        assert entry.type == PointsEntryType.REDEEMED
        assert entry.points == -100
        assert entry.description == "Points redeemed for withdrawal"

    def test_redeem_whole_balance(self, create_user):
        user = create_user(points=100)
        PointsLedgerService.redeem_points(user.pk, 100, "withdrawal")
        assert _balance(user) == 0

    def test_redeem_more_than_balance(self, create_user):
        user = create_user(points=40)
        with pytest.raises(InsufficientPoints) as exc_info:
            PointsLedgerService.redeem_points(user.pk, 41, "withdrawal")

        assert isinstance(exc_info.value, ValidationFailure)
        assert exc_info.value.balance == 40
        assert exc_info.value.requested == 41
        assert _balance(user) == 40
        assert not PointsHistory.objects.exists()

    def test_negative_redeem_rejected(self, create_user):
        user = create_user(points=40)
        with pytest.raises(ValidationFailure):
            PointsLedgerService.redeem_points(user.pk, -5, "withdrawal")
        assert _balance(user) == 40


@pytest.mark.django_db
class TestAdjustPoints:

    def test_requires_permission(self, create_user):
        clerk = create_user()
        user = create_user(points=10)
        with pytest.raises(PermissionDenied):
            PointsLedgerService.adjust_points(user.pk, 5, clerk, "goodwill")
        assert _balance(user) == 10

    def test_positive_adjustment(self, create_user, admin_user):
        user = create_user(points=10)

        entry = PointsLedgerService.adjust_points(user.pk, 25, admin_user, "  goodwill  ")

        assert _balance(user) == 35
        assert entry.type == PointsEntryType.ADJUSTED
        assert entry.source == PointsSource.ADMIN_ADJUSTMENT
        assert entry.admin == admin_user
        assert entry.description == "goodwill"

        audit = ActionHistory.objects.get()
        assert audit.action == "adjust_points"
        assert audit.resource == "user"
        assert audit.resource_id == str(user.pk)
        assert audit.details == {"delta": 25, "reason": "goodwill"}

        notification = Notification.objects.get(recipient=user)
        assert notification.title == "Points Adjusted"

    def test_negative_adjustment_cannot_go_below_zero(self, create_user, admin_user):
        user = create_user(points=10)
        with pytest.raises(InsufficientPoints):
            PointsLedgerService.adjust_points(user.pk, -11, admin_user, "clawback")
        assert _balance(user) == 10
        assert not ActionHistory.objects.exists()

    def test_negative_adjustment(self, create_user, admin_user):
        user = create_user(points=10)
        PointsLedgerService.adjust_points(user.pk, -10, admin_user, "clawback")
        assert _balance(user) == 0

    def test_zero_and_blank_reason_rejected(self, create_user, admin_user):
        user = create_user(points=10)
        with pytest.raises(ValidationFailure):
            PointsLedgerService.adjust_points(user.pk, 0, admin_user, "nothing")
        with pytest.raises(ValidationFailure):
            PointsLedgerService.adjust_points(user.pk, 5, admin_user, "   ")
        assert not PointsHistory.objects.exists()


@pytest.mark.django_db
class TestReadSide:

    def test_get_balance(self, create_user):
        user = create_user(points=42)
        assert PointsLedgerService.get_balance(user.pk) == 42
        with pytest.raises(NotFound):
            PointsLedgerService.get_balance(999_999)

    def test_history_filters_and_order(self, create_user):
        user = create_user(points=200)
        first = PointsLedgerService.award_points(user.pk, 5, PointsSource.COMPLAINT_SUBMISSION)
        PointsLedgerService.redeem_points(user.pk, 100, PointsSource.WITHDRAWAL)
        last = PointsLedgerService.award_points(user.pk, 50, PointsSource.COMPLAINT_APPROVAL)

        history = list(PointsLedgerService.get_history(user))
        assert [e.pk for e in history][0] == last.pk
        assert [e.pk for e in history][-1] == first.pk

        earned = PointsLedgerService.get_history(user, {"type": "earned"})
        assert earned.count() == 2
        by_source = PointsLedgerService.get_history(user, {"source": "withdrawal"})
        assert by_source.count() == 1

    def test_summary(self, create_user):
        user = create_user()
        PointsLedgerService.award_points(user.pk, 150, PointsSource.COMPLAINT_APPROVAL)
        PointsLedgerService.redeem_points(user.pk, 100, PointsSource.WITHDRAWAL)

        summary = PointsLedgerService.get_summary(user)

        assert summary["balance"] == 50
        assert summary["total_earned"] == 150
        assert summary["total_redeemed"] == 100
        assert summary["total_adjusted"] == 0
        assert summary["pending_withdrawal_count"] == 0


@pytest.mark.django_db
class TestHistoryIsAppendOnly:

    def test_update_refused(self, create_user):
        user = create_user()
        entry = PointsLedgerService.award_points(user.pk, 5, "complaint_submission")
        entry.points = 500
        with pytest.raises(ValueError):
            entry.save()
        entry.refresh_from_db()
        assert entry.points == 5

    def test_delete_refused(self, create_user):
        user = create_user()
        entry = PointsLedgerService.award_points(user.pk, 5, "complaint_submission")
        with pytest.raises(ValueError):
            entry.delete()
        assert PointsHistory.objects.filter(pk=entry.pk).exists()


@pytest.mark.django_db(transaction=True)
class TestConcurrentMovements:

    def _run(self, target, workers):
        threads = [threading.Thread(target=target) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def test_concurrent_awards_are_all_applied(self, create_user):
        user = create_user()
        workers = 8
        errors: list[Exception] = []

        def _award():
            try:
                PointsLedgerService.award_points(user.pk, 10, "complaint_approval")
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        self._run(_award, workers)

        assert errors == []
        assert _balance(user) == 10 * workers
        assert PointsHistory.objects.filter(user=user).count() == workers

    def test_concurrent_redeems_never_overdraw(self, create_user):
        user = create_user(points=30)
        rejected: list[Exception] = []
        unexpected: list[Exception] = []

        def _redeem():
            try:
                PointsLedgerService.redeem_points(user.pk, 10, "withdrawal")
            except InsufficientPoints as exc:
                rejected.append(exc)
            except Exception as exc:
                unexpected.append(exc)
            finally:
                connection.close()

        self._run(_redeem, 8)

        assert unexpected == []
        assert len(rejected) == 5
        assert _balance(user) == 0
        assert PointsHistory.objects.filter(user=user, type=PointsEntryType.REDEEMED).count() == 3
