"""
Analytics app serializers (response shapes only).
"""

from rest_framework import serializers


class DailyCountSerializer(serializers.Serializer):
    date = serializers.DateField()
    count = serializers.IntegerField()


class CategoryCountSerializer(serializers.Serializer):
    type = serializers.CharField()
    count = serializers.IntegerField()


class PlatformCountSerializer(serializers.Serializer):
    platform = serializers.CharField()
    count = serializers.IntegerField()


class ComplaintAnalyticsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    approved = serializers.IntegerField()
    rejected = serializers.IntegerField()
    daily_trend = DailyCountSerializer(many=True)
    category_breakdown = CategoryCountSerializer(many=True)


class UserAnalyticsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    active = serializers.IntegerField()
    new_users = serializers.IntegerField()
    retention = serializers.IntegerField(help_text="Fixed placeholder percentage.")
    device_breakdown = PlatformCountSerializer(many=True)


class WithdrawalAnalyticsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    amount = serializers.IntegerField(help_text="Sum of requested points.")
    pending = serializers.IntegerField()
    approved = serializers.IntegerField()


class DashboardSerializer(serializers.Serializer):
    days = serializers.IntegerField()
    complaints = ComplaintAnalyticsSerializer()
    users = UserAnalyticsSerializer()
    withdrawals = WithdrawalAnalyticsSerializer()


class UserStatsSerializer(serializers.Serializer):
    total_complaints = serializers.IntegerField()
    approved_complaints = serializers.IntegerField()
    pending_complaints = serializers.IntegerField()
    total_points = serializers.IntegerField(help_text="Current balance.")
    total_withdrawals = serializers.IntegerField()
    approved_withdrawals = serializers.IntegerField()
    pending_withdrawals = serializers.IntegerField()
    total_withdrawn_points = serializers.IntegerField(help_text="Points of approved withdrawals.")
