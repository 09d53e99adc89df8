"""
Complaints app serializers.

Request serializers validate client input only; every workflow rule
(transitions, awards, visibility) lives in ``complaints.services``.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import (
    Complaint,
    ComplaintPriority,
    ComplaintStatus,
    ComplaintTimelineEntry,
    ComplaintType,
)


# ═══════════════════════════════════════════════════════════════════
#  Request serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintCreateSerializer(serializers.Serializer):
    """Body of ``POST /api/complaints/``."""

    type = serializers.ChoiceField(choices=ComplaintType.choices)
    description = serializers.CharField(max_length=5000)
    stop = serializers.CharField(max_length=255)
    incident_at = serializers.DateTimeField(required=False, allow_null=True)
    latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, required=False, allow_null=True,
        min_value=-90, max_value=90,
    )
    longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, required=False, allow_null=True,
        min_value=-180, max_value=180,
    )
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    extra_fields = serializers.DictField(required=False, default=dict)

    def validate(self, attrs):
        if (attrs.get("latitude") is None) != (attrs.get("longitude") is None):
            raise serializers.ValidationError(
                "Latitude and longitude must be provided together."
            )
        return attrs


class ComplaintReviewSerializer(serializers.Serializer):
    """Body of ``POST /api/complaints/{id}/review/``."""

    status = serializers.ChoiceField(
        choices=[ComplaintStatus.APPROVED, ComplaintStatus.REJECTED],
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    points = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=0,
        help_text="Approval award. Defaults to the configured approval points.",
    )


class ComplaintHistoryFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ComplaintStatus.choices, required=False)
    type = serializers.ChoiceField(choices=ComplaintType.choices, required=False)


class ComplaintAdminFilterSerializer(ComplaintHistoryFilterSerializer):
    priority = serializers.ChoiceField(choices=ComplaintPriority.choices, required=False)


# ═══════════════════════════════════════════════════════════════════
#  Response serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintTimelineEntrySerializer(serializers.ModelSerializer):
    admin_username = serializers.CharField(source="admin.username", read_only=True, default=None)

    class Meta:
        model = ComplaintTimelineEntry
        fields = [
            "id",
            "action",
            "status",
            "reason",
            "description",
            "admin",
            "admin_username",
            "timestamp",
        ]
        read_only_fields = fields


class ComplaintListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Complaint
        fields = [
            "id",
            "token",
            "type",
            "stop",
            "status",
            "priority",
            "points",
            "is_anonymous",
            "user",
            "created_at",
        ]
        read_only_fields = fields


class ComplaintDetailSerializer(serializers.ModelSerializer):
    timeline = ComplaintTimelineEntrySerializer(many=True, read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "id",
            "token",
            "type",
            "description",
            "stop",
            "incident_at",
            "latitude",
            "longitude",
            "address",
            "status",
            "reason",
            "admin_description",
            "points",
            "priority",
            "is_anonymous",
            "user",
            "extra_fields",
            "timeline",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ComplaintTrackSerializer(serializers.ModelSerializer):
    """Public tracking view: no owner or admin identities."""

    timeline = serializers.SerializerMethodField()

    class Meta:
        model = Complaint
        fields = [
            "token",
            "type",
            "stop",
            "status",
            "reason",
            "points",
            "timeline",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_timeline(self, obj: Complaint) -> list[dict]:
        return [
            {"status": entry.status, "reason": entry.reason, "timestamp": entry.timestamp}
            for entry in obj.timeline.all()
        ]


class ComplaintSubmitResponseSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    token = serializers.CharField()
    status = serializers.CharField()
    points = serializers.IntegerField(help_text="Submission points credited (0 when anonymous).")


class ComplaintReviewResponseSerializer(serializers.Serializer):
    complaint = ComplaintDetailSerializer()
    points_awarded = serializers.IntegerField()
