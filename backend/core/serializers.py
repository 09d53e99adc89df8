"""
Core app serializers.

Response serializers for the system constants, notification inbox and
admin action-history endpoints, plus the query-parameter serializer for
action-history filtering.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import ActionHistory


# ════════════════════════════════════════════════════════════════════
#  System Constants / Enums
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "pending", "label": "Pending"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class PointsConfigSerializer(serializers.Serializer):
    submission = serializers.IntegerField(help_text="Points awarded for filing a complaint while logged in.")
    approval = serializers.IntegerField(help_text="Default points awarded when a complaint is approved.")
    min_withdrawal = serializers.IntegerField(help_text="Minimum points per withdrawal request.")


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "complaint_types": ["cleanliness", "punctuality", "behavior", "other"],
            "complaint_statuses": [{"value": "pending", "label": "Pending"}, ...],
            "complaint_priorities": [...],
            "withdrawal_methods": [...],
            "withdrawal_statuses": [...],
            "points": {"submission": 5, "approval": 50, "min_withdrawal": 100}
        }
    """

    complaint_types = serializers.ListField(
        child=serializers.CharField(),
        help_text="Accepted complaint categories.",
    )
    complaint_statuses = ChoiceItemSerializer(many=True)
    complaint_priorities = ChoiceItemSerializer(many=True)
    withdrawal_methods = ChoiceItemSerializer(many=True)
    withdrawal_statuses = ChoiceItemSerializer(many=True)
    points = PointsConfigSerializer()


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    title = serializers.CharField(
        read_only=True,
        help_text="Short notification title.",
    )
    message = serializers.CharField(
        read_only=True,
        help_text="Full notification message body.",
    )
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    created_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was created.",
    )
    content_type = serializers.StringRelatedField(
        read_only=True,
        help_text="Related content type (if any).",
    )
    object_id = serializers.IntegerField(
        read_only=True,
        allow_null=True,
        help_text="PK of the related object (if any).",
    )


# ════════════════════════════════════════════════════════════════════
#  Action History
# ════════════════════════════════════════════════════════════════════

class ActionHistorySerializer(serializers.ModelSerializer):
    admin_username = serializers.CharField(source="admin.username", read_only=True)

    class Meta:
        model = ActionHistory
        fields = [
            "id",
            "admin",
            "admin_username",
            "action",
            "resource",
            "resource_id",
            "details",
            "ip_address",
            "user_agent",
            "created_at",
        ]
        read_only_fields = fields


class ActionHistoryFilterSerializer(serializers.Serializer):
    """Query parameters accepted by ``GET /api/core/action-history/``."""

    admin_id = serializers.IntegerField(required=False)
    action = serializers.CharField(required=False)
    resource = serializers.CharField(required=False)
    start_date = serializers.CharField(required=False, help_text="ISO date or datetime (inclusive).")
    end_date = serializers.CharField(required=False, help_text="ISO date or datetime (inclusive).")
