from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from accounts.models import DeviceToken
from accounts.services import DeviceTokenService
from core.domain.exceptions import NotFound


@pytest.mark.django_db
class TestDeviceTokenService:

    def test_register_is_idempotent(self, create_user):
        user = create_user()

        first, created = DeviceTokenService.register(user, "tok-1", "android")
        again, created_again = DeviceTokenService.register(user, "tok-1", "ios")

        assert created is True
        assert created_again is False
        assert first.pk == again.pk
        assert again.platform == "ios"
        assert DeviceToken.objects.filter(user=user).count() == 1

    def test_same_token_for_two_users(self, create_user):
        a, b = create_user(), create_user()
        DeviceTokenService.register(a, "shared")
        DeviceTokenService.register(b, "shared")
        assert DeviceTokenService.tokens_for(a.pk) == ["shared"]
        assert DeviceTokenService.tokens_for(b.pk) == ["shared"]

    def test_unregister(self, create_user):
        user = create_user()
        DeviceTokenService.register(user, "tok-1")
        DeviceTokenService.unregister(user, "tok-1")
        assert DeviceTokenService.tokens_for(user.pk) == []
        with pytest.raises(NotFound):
            DeviceTokenService.unregister(user, "tok-1")


@pytest.mark.django_db
class TestDeviceTokenEndpoints:

    def test_register_then_reregister(self, api_client, create_user):
        api_client.force_authenticate(create_user())
        url = reverse("accounts:device-token-list")

        first = api_client.post(url, {"token": "fcm-abc", "platform": "android"}, format="json")
        second = api_client.post(url, {"token": "fcm-abc", "platform": "android"}, format="json")

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert len(api_client.get(url).data) == 1

    def test_invalid_platform(self, api_client, create_user):
        api_client.force_authenticate(create_user())
        resp = api_client.post(
            reverse("accounts:device-token-list"),
            {"token": "fcm-abc", "platform": "blackberry"},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_unregister(self, api_client, create_user):
        user = create_user()
        DeviceTokenService.register(user, "fcm-abc")
        api_client.force_authenticate(user)
        url = reverse("accounts:device-token-unregister")

        assert api_client.post(url, {"token": "fcm-abc"}, format="json").status_code == status.HTTP_204_NO_CONTENT
        assert api_client.post(url, {"token": "fcm-abc"}, format="json").status_code == status.HTTP_404_NOT_FOUND
