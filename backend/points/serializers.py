"""
Points app serializers.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import PointsEntryType, PointsHistory
from .services import (
    LEADERBOARD_CATEGORIES,
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    LEADERBOARD_TIME_FRAMES,
)


class PointsHistorySerializer(serializers.ModelSerializer):
    admin_username = serializers.CharField(source="admin.username", read_only=True, default=None)

    class Meta:
        model = PointsHistory
        fields = [
            "id",
            "type",
            "points",
            "description",
            "source",
            "reference_id",
            "admin",
            "admin_username",
            "created_at",
        ]
        read_only_fields = fields


class PointsHistoryFilterSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PointsEntryType.choices, required=False)
    source = serializers.CharField(required=False)
    user_id = serializers.IntegerField(
        required=False,
        help_text="Staff only: read another user's ledger.",
    )


class PointsBalanceSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    balance = serializers.IntegerField()


class PointsSummarySerializer(serializers.Serializer):
    balance = serializers.IntegerField()
    total_earned = serializers.IntegerField()
    total_redeemed = serializers.IntegerField()
    total_adjusted = serializers.IntegerField()
    pending_withdrawal_points = serializers.IntegerField()
    pending_withdrawal_count = serializers.IntegerField()


class PointsAdjustSerializer(serializers.Serializer):
    """Request body for ``POST /api/points/adjust/``."""

    user_id = serializers.IntegerField()
    delta = serializers.IntegerField(help_text="Signed amount; must not be zero.")
    reason = serializers.CharField(max_length=255)

    def validate_delta(self, value: int) -> int:
        if value == 0:
            raise serializers.ValidationError("Adjustment must not be zero.")
        return value


class LeaderboardQuerySerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=LEADERBOARD_CATEGORIES, default="points")
    time_frame = serializers.ChoiceField(choices=LEADERBOARD_TIME_FRAMES, default="all")
    limit = serializers.IntegerField(
        min_value=1,
        max_value=LEADERBOARD_MAX_LIMIT,
        default=LEADERBOARD_DEFAULT_LIMIT,
    )


class LeaderboardEntrySerializer(serializers.Serializer):
    rank = serializers.IntegerField()
    user_id = serializers.IntegerField()
    name = serializers.CharField()
    points = serializers.IntegerField(required=False, help_text="points / recent categories.")
    total_complaints = serializers.IntegerField(required=False, help_text="complaints category.")
    total_points = serializers.IntegerField(required=False, help_text="complaints category.")
    joined_at = serializers.DateTimeField()


class CurrentUserRankSerializer(serializers.Serializer):
    rank = serializers.IntegerField()
    points = serializers.IntegerField(required=False)
    total_complaints = serializers.IntegerField(required=False)


class LeaderboardMetadataSerializer(serializers.Serializer):
    time_frame = serializers.CharField()
    category = serializers.CharField()
    total = serializers.IntegerField()
    generated_at = serializers.DateTimeField()


class LeaderboardSerializer(serializers.Serializer):
    leaderboard = LeaderboardEntrySerializer(many=True)
    current_user_rank = CurrentUserRankSerializer(allow_null=True)
    metadata = LeaderboardMetadataSerializer()
