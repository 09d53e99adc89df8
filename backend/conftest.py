"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``admin_user`` fixture: a superuser (holds every permission).
  - ``grant_perms`` helper attaching permissions to a user through a role.
  - ``push_dispatcher`` / ``realtime_publisher`` recording fakes for the
    best-effort side channels.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient

from core.domain.side_channels import PushDispatcher, RealtimePublisher


class RecordingPushDispatcher(PushDispatcher):
    """Keeps every push instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send(self, token, title, body, data=None):
        self.sent.append({"token": token, "title": title, "body": body, "data": data or {}})


class FailingPushDispatcher(PushDispatcher):
    def __init__(self) -> None:
        self.attempts = 0

    def send(self, token, title, body, data=None):
        self.attempts += 1
        raise ConnectionError("push gateway unreachable")


class RecordingRealtimePublisher(RealtimePublisher):
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def publish(self, channel, event, payload):
        self.events.append((channel, event, payload))

    def names(self) -> list[str]:
        return [event for _, event, _ in self.events]


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
            # or with a starting balance:
            user = create_user(username="bob", points=250)
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        mobile: str | None = None,
        role=None,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if mobile is None:
            mobile = f"98{_counter:08d}"

        user = User.objects.create_user(
            username=username,
            password=password,
            mobile=mobile,
            is_active=is_active,
            **kwargs,
        )
        if role is not None:
            user.role = role
            user.save(update_fields=["role"])
        return user

    return _factory


@pytest.fixture()
def admin_user(create_user):
    """A superuser; ``has_perm`` is true for every permission."""
    return create_user(username="root_admin", is_staff=True, is_superuser=True)


@pytest.fixture()
def grant_perms(db):
    """
    Returns a helper that gives ``user`` the listed ``app_label.codename``
    permissions through a fresh role.

    Call it before the user's first ``has_perm`` check; permissions are
    cached on the instance.
    """
    from django.contrib.auth.models import Permission

    from accounts.models import Role

    def _grant(user, *perms: str):
        role = Role.objects.create(name=f"role-for-{user.username}")
        for perm in perms:
            app_label, codename = perm.split(".", 1)
            role.permissions.add(
                Permission.objects.get(content_type__app_label=app_label, codename=codename)
            )
        user.role = role
        user.save(update_fields=["role"])
        return user

    return _grant


@pytest.fixture()
def push_dispatcher() -> RecordingPushDispatcher:
    return RecordingPushDispatcher()


@pytest.fixture()
def failing_dispatcher() -> FailingPushDispatcher:
    return FailingPushDispatcher()


@pytest.fixture()
def realtime_publisher() -> RecordingRealtimePublisher:
    return RecordingRealtimePublisher()
