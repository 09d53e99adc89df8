from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from core.permissions_constants import PointsPerms
from points.services import PointsLedgerService


@pytest.mark.django_db
class TestPointsEndpoints:

    def test_requires_authentication(self, api_client):
        resp = api_client.get(reverse("points-balance"))
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED

    def test_balance(self, api_client, create_user):
        user = create_user(points=75)
        api_client.force_authenticate(user)

        resp = api_client.get(reverse("points-balance"))

        assert resp.status_code == status.HTTP_200_OK
        assert resp.data == {"user_id": user.pk, "balance": 75}

    def test_history_is_own_only(self, api_client, create_user):
        user = create_user()
        other = create_user()
        PointsLedgerService.award_points(user.pk, 5, "complaint_submission")
        PointsLedgerService.award_points(other.pk, 50, "complaint_approval")
        api_client.force_authenticate(user)

        resp = api_client.get(reverse("points-history"))

        assert resp.status_code == status.HTTP_200_OK
        assert [row["points"] for row in resp.data] == [5]

    def test_other_users_history_needs_permission(self, api_client, create_user, grant_perms):
        user = create_user()
        other = create_user()
        PointsLedgerService.award_points(other.pk, 50, "complaint_approval")

        api_client.force_authenticate(user)
        resp = api_client.get(reverse("points-history"), {"user_id": other.pk})
        assert resp.status_code == status.HTTP_403_FORBIDDEN

        auditor = grant_perms(create_user(), PointsPerms.full(PointsPerms.VIEW_POINTSHISTORY))
        api_client.force_authenticate(auditor)
        resp = api_client.get(reverse("points-history"), {"user_id": other.pk})
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data[0]["points"] == 50

    def test_history_bad_filter(self, api_client, create_user):
        api_client.force_authenticate(create_user())
        resp = api_client.get(reverse("points-history"), {"type": "stolen"})
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_summary(self, api_client, create_user):
        user = create_user()
        PointsLedgerService.award_points(user.pk, 55, "complaint_approval")
        api_client.force_authenticate(user)

        resp = api_client.get(reverse("points-summary"))

        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["balance"] == 55
        assert resp.data["total_earned"] == 55

    def test_adjust_forbidden_for_citizens(self, api_client, create_user):
        user = create_user(points=10)
        api_client.force_authenticate(user)

        resp = api_client.post(
            reverse("points-adjust"),
            {"user_id": user.pk, "delta": 1000, "reason": "free money"},
            format="json",
        )

        assert resp.status_code == status.HTTP_403_FORBIDDEN
        user.refresh_from_db()
        assert user.points == 10

    def test_adjust(self, api_client, create_user, admin_user):
        user = create_user(points=10)
        api_client.force_authenticate(admin_user)

        resp = api_client.post(
            reverse("points-adjust"),
            {"user_id": user.pk, "delta": -4, "reason": "duplicate award"},
            format="json",
        )

        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.data["points"] == -4
        assert resp.data["type"] == "adjusted"
        user.refresh_from_db()
        assert user.points == 6

    def test_adjust_below_zero_is_400(self, api_client, create_user, admin_user):
        user = create_user(points=3)
        api_client.force_authenticate(admin_user)

        resp = api_client.post(
            reverse("points-adjust"),
            {"user_id": user.pk, "delta": -4, "reason": "clawback"},
            format="json",
        )

        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert "Insufficient points" in resp.data["detail"]
