"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here — all domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import DevicePlatform, DeviceToken, Role

User = get_user_model()


class RoleListSerializer(serializers.ModelSerializer):
    """Compact role representation nested inside user payloads."""

    class Meta:
        model = Role
        fields = ["id", "name", "description"]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Full user representation used by ``GET /me/``.

    ``permissions`` is a read-only flat list such as
    ``['complaints.can_review_complaint', ...]`` for conditional UI.
    """

    role_detail = RoleListSerializer(source="role", read_only=True)
    permissions = serializers.ListField(
        child=serializers.CharField(),
        source="permissions_list",
        read_only=True,
        help_text="Flat list of 'app_label.codename' permission strings.",
    )

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "mobile",
            "email",
            "address",
            "language",
            "points",
            "upi_id",
            "bank_account",
            "ifsc",
            "is_active",
            "date_joined",
            "role",
            "role_detail",
            "permissions",
        ]
        read_only_fields = [
            "id",
            "username",
            "mobile",
            "points",
            "is_active",
            "date_joined",
            "role",
            "role_detail",
            "permissions",
        ]


class MeUpdateSerializer(serializers.ModelSerializer):
    """
    Allows the authenticated user to update limited profile fields.
    Balance, role and activation state cannot be self-modified.
    """

    class Meta:
        model = User
        fields = [
            "first_name",
            "last_name",
            "email",
            "address",
            "language",
            "upi_id",
            "bank_account",
            "ifsc",
        ]

    def validate_email(self, value: str) -> str:
        if (
            value
            and self.instance
            and User.objects.exclude(pk=self.instance.pk).filter(email=value).exists()
        ):
            raise serializers.ValidationError(
                "This email is already in use by another account."
            )
        return value


class DeviceTokenRegisterSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=512)
    platform = serializers.ChoiceField(
        choices=DevicePlatform.choices,
        default=DevicePlatform.WEB,
    )


class DeviceTokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeviceToken
        fields = ["id", "token", "platform", "created_at"]
        read_only_fields = fields
