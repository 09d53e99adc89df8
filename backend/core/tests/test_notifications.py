from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from core.domain.notifications import NotificationService, render_event
from core.models import Notification


def test_render_known_event():
    title, message = render_event("complaint_status_changed", {"token": "BRTS123456", "status": "approved"})
    assert title == "Complaint Update"
    assert message == "Your complaint BRTS123456 is now approved"


def test_render_unknown_event_and_missing_keys():
    assert render_event("custom_event") == ("Custom Event", "Event: custom_event")
    title, message = render_event("withdrawal_status_changed", {})
    assert title == "Withdrawal Update"
    assert message == "Your withdrawal is now {status}"


@pytest.mark.django_db
class TestNotificationInbox:

    def _notify(self, user, status_value="approved"):
        NotificationService.create(
            actor=None,
            recipients=user,
            event_type="withdrawal_status_changed",
            payload={"status": status_value},
        )
        return Notification.objects.filter(recipient=user).order_by("-id").first()

    def test_create_for_many_recipients(self, create_user):
        users = [create_user(), create_user()]
        created = NotificationService.create(
            actor=None, recipients=users, event_type="points_adjusted",
            payload={"points": 5, "reason": "goodwill"},
        )
        assert len(created) == 2
        assert Notification.objects.count() == 2
        assert created[0].message == "Your balance was adjusted by 5 points: goodwill"

    def test_missing_and_inactive_recipients_are_skipped(self, create_user):
        assert NotificationService.create(actor=None, recipients=None, event_type="x") == []
        created = NotificationService.create(
            actor=None,
            recipients=[create_user(is_active=False), create_user()],
            event_type="withdrawal_status_changed",
            payload={"status": "approved"},
        )
        assert len(created) == 1
        assert Notification.objects.count() == 1

    def test_list_and_mark_read(self, api_client, create_user):
        user = create_user()
        first = self._notify(user)
        self._notify(user, "rejected")
        self._notify(create_user())
        api_client.force_authenticate(user)

        listing = api_client.get(reverse("core:notification-list"))
        assert listing.status_code == status.HTTP_200_OK
        assert len(listing.data) == 2

        resp = api_client.post(reverse("core:notification-mark-as-read", kwargs={"pk": first.pk}))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["is_read"] is True

        unread = api_client.get(reverse("core:notification-list"), {"unread": "true"})
        assert len(unread.data) == 1

    def test_cannot_read_someone_elses(self, api_client, create_user):
        foreign = self._notify(create_user())
        api_client.force_authenticate(create_user())

        resp = api_client.post(reverse("core:notification-mark-as-read", kwargs={"pk": foreign.pk}))

        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_read_all(self, api_client, create_user):
        user = create_user()
        self._notify(user)
        self._notify(user)
        api_client.force_authenticate(user)

        resp = api_client.post(reverse("core:notification-mark-all-as-read"))

        assert resp.data == {"updated": 2}
        assert not Notification.objects.filter(recipient=user, is_read=False).exists()
