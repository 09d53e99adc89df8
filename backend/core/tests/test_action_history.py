from __future__ import annotations

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from core.domain.exceptions import ValidationFailure
from core.models import ActionHistory
from core.permissions_constants import CorePerms
from core.services import ActionHistoryService, _date_lookup


@pytest.mark.django_db
class TestActionHistoryService:

    def test_record(self, admin_user):
        entry = ActionHistoryService.record(
            admin=admin_user,
            action="update_complaint",
            resource="complaint",
            resource_id=12,
            details={"status": "approved"},
            audit={"ip_address": "10.0.0.1", "user_agent": "curl/8"},
        )
        assert entry.resource_id == "12"
        assert entry.ip_address == "10.0.0.1"
        assert entry.user_agent == "curl/8"

    def test_filters(self, admin_user, create_user):
        other_admin = create_user(is_staff=True, is_superuser=True)
        ActionHistoryService.record(admin=admin_user, action="update_complaint", resource="complaint", resource_id=1)
        ActionHistoryService.record(admin=admin_user, action="update_withdrawal", resource="withdrawal", resource_id=2)
        old = ActionHistoryService.record(admin=other_admin, action="adjust_points", resource="user", resource_id=3)
        ActionHistory.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=10))

        assert ActionHistoryService.list_actions({}).count() == 3
        assert ActionHistoryService.list_actions({"admin_id": other_admin.pk}).count() == 1
        assert ActionHistoryService.list_actions({"resource": "withdrawal"}).count() == 1
        assert ActionHistoryService.list_actions({"action": "update_complaint"}).count() == 1

        since = (timezone.now() - timedelta(days=2)).date().isoformat()
        assert ActionHistoryService.list_actions({"start_date": since}).count() == 2
        assert ActionHistoryService.list_actions({"end_date": since}).count() == 1

    def test_bad_date(self):
        with pytest.raises(ValidationFailure):
            ActionHistoryService.list_actions({"start_date": "yesterday"})

    def test_end_date_covers_the_whole_day(self, admin_user):
        ActionHistoryService.record(admin=admin_user, action="x", resource="y")
        today = timezone.localdate().isoformat()
        assert ActionHistoryService.list_actions({"end_date": today}).count() == 1

    def test_offsetless_datetime_is_made_aware(self, admin_user):
        ActionHistoryService.record(admin=admin_user, action="x", resource="y")
        lookup = _date_lookup("created_at__gte", "created_at__date__gte", "2000-01-01T08:30:00")

        assert timezone.is_aware(lookup["created_at__gte"])
        assert ActionHistoryService.list_actions({"start_date": "2000-01-01T08:30:00"}).count() == 1

    def test_impossible_date(self):
        with pytest.raises(ValidationFailure):
            ActionHistoryService.list_actions({"end_date": "2026-02-30"})

    def test_rows_are_append_only(self, admin_user):
        entry = ActionHistoryService.record(admin=admin_user, action="x", resource="y")
        entry.action = "rewritten"
        with pytest.raises(ValueError):
            entry.save()
        with pytest.raises(ValueError):
            entry.delete()
        entry.refresh_from_db()
        assert entry.action == "x"


@pytest.mark.django_db
class TestActionHistoryEndpoint:

    def test_requires_permission(self, api_client, create_user):
        api_client.force_authenticate(create_user())
        resp = api_client.get(reverse("core:action-history"))
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_lists_entries(self, api_client, create_user, grant_perms, admin_user):
        ActionHistoryService.record(admin=admin_user, action="update_complaint", resource="complaint", resource_id=9)
        auditor = grant_perms(create_user(), CorePerms.full(CorePerms.CAN_VIEW_ACTION_HISTORY))
        api_client.force_authenticate(auditor)

        resp = api_client.get(reverse("core:action-history"), {"resource": "complaint"})

        assert resp.status_code == status.HTTP_200_OK
        assert resp.data[0]["admin_username"] == admin_user.username
        assert resp.data[0]["resource_id"] == "9"

    def test_bad_date_is_400(self, api_client, admin_user):
        api_client.force_authenticate(admin_user)
        resp = api_client.get(reverse("core:action-history"), {"end_date": "not-a-date"})
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
