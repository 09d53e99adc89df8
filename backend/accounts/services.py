"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, and return the result
wrapped in a DRF ``Response``.

Architecture
------------
- ``CurrentUserService``  — "Me" endpoint helpers.
- ``DeviceTokenService``  — push registration token bookkeeping.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from core.domain.exceptions import NotFound

from .models import DevicePlatform, DeviceToken

User = get_user_model()

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me")
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """
    Helpers for the "Me" endpoint: who the caller is, their balance,
    their role and a flat permission list for conditional UI.
    """

    @staticmethod
    def get_profile(user: User) -> User:
        """
        Return the user re-fetched with role and permissions prefetched
        so ``UserDetailSerializer`` renders without N+1 queries.
        """
        return (
            User.objects.select_related("role")
            .prefetch_related("role__permissions__content_type")
            .get(pk=user.pk)
        )

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the authenticated user's own profile fields.

        Parameters
        ----------
        user : User
            The currently authenticated user.
        validated_data : dict
            Cleaned fields from ``MeUpdateSerializer``.

        Returns
        -------
        User
            The updated user.

        Notes
        -----
        ``points``, ``role``, ``is_active`` and ``username`` are never
        writable here; the serializer does not expose them.
        """
        if validated_data:
            for field, value in validated_data.items():
                setattr(user, field, value)
            user.save(update_fields=list(validated_data.keys()))

        return CurrentUserService.get_profile(user)


# ═══════════════════════════════════════════════════════════════════
#  Device Tokens
# ═══════════════════════════════════════════════════════════════════


class DeviceTokenService:
    """
    Maintains the set of push registration tokens per user.

    Registration is idempotent: re-registering a known token only
    refreshes its platform.
    """

    @staticmethod
    def register(user: User, token: str, platform: str = DevicePlatform.WEB) -> tuple[DeviceToken, bool]:
        """
        Add ``token`` to ``user``'s registered devices.

        Returns
        -------
        tuple[DeviceToken, bool]
            The token row and whether it was newly created.
        """
        try:
            with transaction.atomic():
                device, created = DeviceToken.objects.get_or_create(
                    user=user,
                    token=token,
                    defaults={"platform": platform},
                )
        except IntegrityError:
            # Lost a race with a concurrent registration of the same token.
            device, created = DeviceToken.objects.get(user=user, token=token), False

        if not created and device.platform != platform:
            device.platform = platform
            device.save(update_fields=["platform"])

        if created:
            logger.info("Registered %s device token for user=%s", platform, user.pk)
        return device, created

    @staticmethod
    def unregister(user: User, token: str) -> None:
        """
        Remove a token (e.g. on logout).

        Raises
        ------
        NotFound
            If the user never registered this token.
        """
        deleted, _ = DeviceToken.objects.filter(user=user, token=token).delete()
        if not deleted:
            raise NotFound("Device token not registered.")
        logger.info("Unregistered device token for user=%s", user.pk)

    @staticmethod
    def tokens_for(user_id: int) -> list[str]:
        """Return every registered token of a user."""
        return list(
            DeviceToken.objects.filter(user_id=user_id).values_list("token", flat=True)
        )
