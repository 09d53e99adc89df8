"""
core.domain.side_channels — Best-effort delivery collaborators.

Two interfaces are injected into the workflow services:

``PushDispatcher``
    Delivers a device push notification to one registration token.
``RealtimePublisher``
    Emits a named event on a channel (a user id or ``"admin"``).

Neither is allowed to influence the outcome of the operation that
triggered it: services schedule calls through
``core.domain.transactions.run_after_commit``, which logs and swallows
any error.

The concrete classes are configured by dotted path in settings
(``NOTIFICATION_DISPATCHER`` / ``REALTIME_PUBLISHER``) and resolved with
``get_push_dispatcher()`` / ``get_realtime_publisher()``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

ADMIN_CHANNEL = "admin"


class PushDispatcher(ABC):
    """Sends a single push notification to a device registration token."""

    @abstractmethod
    def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        ...


class RealtimePublisher(ABC):
    """Publishes an event to subscribers of ``channel``."""

    @abstractmethod
    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        ...


class LoggingPushDispatcher(PushDispatcher):
    """Default dispatcher: records the push in the log instead of sending it."""

    def send(self, token, title, body, data=None):
        logger.info(
            "Push to token=%s… title=%r body=%r data=%s",
            token[:12],
            title,
            body,
            data or {},
        )


class NullRealtimePublisher(RealtimePublisher):
    """No-op publisher used when no real-time transport is configured."""

    def publish(self, channel, event, payload):
        logger.debug("Realtime event %s on channel %s dropped (no transport)", event, channel)


def get_push_dispatcher() -> PushDispatcher:
    return import_string(settings.NOTIFICATION_DISPATCHER)()


def get_realtime_publisher() -> RealtimePublisher:
    return import_string(settings.REALTIME_PUBLISHER)()


def user_channel(user_id: int) -> str:
    """Channel name a user's clients subscribe to."""
    return str(user_id)
