"""
Withdrawals app serializers.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import Withdrawal, WithdrawalMethod, WithdrawalStatus, WithdrawalTimelineEntry


class WithdrawalCreateSerializer(serializers.Serializer):
    """
    Body of ``POST /api/withdrawals/``.

    Payment fields are optional; blanks fall back to the profile's
    payout defaults.  The minimum amount and the balance are checked by
    the service.
    """

    points = serializers.IntegerField(min_value=1)
    method = serializers.ChoiceField(choices=WithdrawalMethod.choices)
    upi_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    bank_account = serializers.CharField(max_length=34, required=False, allow_blank=True, default="")
    ifsc = serializers.CharField(max_length=11, required=False, allow_blank=True, default="")
    account_holder_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")


class WithdrawalProcessSerializer(serializers.Serializer):
    """Body of ``POST /api/withdrawals/{id}/process/``."""

    status = serializers.ChoiceField(
        choices=[WithdrawalStatus.PROCESSING, WithdrawalStatus.APPROVED, WithdrawalStatus.REJECTED],
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    transaction_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class WithdrawalFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=WithdrawalStatus.choices, required=False)
    user_id = serializers.IntegerField(required=False, help_text="Admins only.")


class WithdrawalTimelineEntrySerializer(serializers.ModelSerializer):
    admin_username = serializers.CharField(source="admin.username", read_only=True, default=None)

    class Meta:
        model = WithdrawalTimelineEntry
        fields = ["id", "action", "status", "reason", "description",
                  "admin", "admin_username", "timestamp"]
        read_only_fields = fields


class WithdrawalSerializer(serializers.ModelSerializer):
    user_mobile = serializers.CharField(source="user.mobile", read_only=True)

    class Meta:
        model = Withdrawal
        fields = [
            "id",
            "user",
            "user_mobile",
            "points",
            "method",
            "status",
            "reason",
            "description",
            "upi_id",
            "bank_account",
            "ifsc",
            "account_holder_name",
            "processed_by",
            "transaction_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class WithdrawalDetailSerializer(WithdrawalSerializer):
    timeline = WithdrawalTimelineEntrySerializer(many=True, read_only=True)

    class Meta(WithdrawalSerializer.Meta):
        fields = WithdrawalSerializer.Meta.fields + ["timeline"]
        read_only_fields = fields


class WithdrawalCreateResponseSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    status = serializers.CharField()
    points = serializers.IntegerField()
    estimated_processing_time = serializers.CharField()
