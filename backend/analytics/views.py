"""
Analytics app views.

The reporting endpoints require ``analytics.can_view_analytics`` and accept
a ``timeRange`` query parameter (``7d`` / ``30d`` / ``90d``).  ``UserStatsView``
is open to any authenticated user and only reports on the caller.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.domain.access import require_permission
from core.permissions_constants import AnalyticsPerms

from .serializers import (
    ComplaintAnalyticsSerializer,
    DashboardSerializer,
    UserAnalyticsSerializer,
    UserStatsSerializer,
    WithdrawalAnalyticsSerializer,
)
from .services import (
    DASHBOARD_DEFAULT_DAYS,
    DETAIL_DEFAULT_DAYS,
    AnalyticsService,
    parse_time_range,
)

TIME_RANGE_PARAM = OpenApiParameter(
    "timeRange",
    str,
    enum=["7d", "30d", "90d"],
    description="Lookback window for time-series figures.",
)


class _AnalyticsView(APIView):
    permission_classes = [IsAuthenticated]
    default_days = DETAIL_DEFAULT_DAYS
    serializer_class = None

    def build(self, days: int) -> dict:
        raise NotImplementedError

    def get(self, request: Request) -> Response:
        require_permission(
            request.user,
            AnalyticsPerms.full(AnalyticsPerms.CAN_VIEW_ANALYTICS),
            message="You do not have permission to view analytics.",
        )
        days = parse_time_range(request.query_params.get("timeRange"), self.default_days)
        data = self.build(days)
        return Response(self.serializer_class(data).data, status=status.HTTP_200_OK)


_FORBIDDEN = OpenApiResponse(description="Missing analytics.can_view_analytics.")


@extend_schema(
    summary="Analytics dashboard",
    parameters=[TIME_RANGE_PARAM],
    responses={200: DashboardSerializer, 403: _FORBIDDEN},
    tags=["Analytics"],
)
class DashboardView(_AnalyticsView):
    default_days = DASHBOARD_DEFAULT_DAYS
    serializer_class = DashboardSerializer

    def build(self, days: int) -> dict:
        return AnalyticsService.get_dashboard(days)


@extend_schema(
    summary="Complaint analytics",
    parameters=[TIME_RANGE_PARAM],
    responses={200: ComplaintAnalyticsSerializer, 403: _FORBIDDEN},
    tags=["Analytics"],
)
class ComplaintAnalyticsView(_AnalyticsView):
    serializer_class = ComplaintAnalyticsSerializer

    def build(self, days: int) -> dict:
        return AnalyticsService.get_complaint_analytics(days)


@extend_schema(
    summary="User analytics",
    parameters=[TIME_RANGE_PARAM],
    responses={200: UserAnalyticsSerializer, 403: _FORBIDDEN},
    tags=["Analytics"],
)
class UserAnalyticsView(_AnalyticsView):
    serializer_class = UserAnalyticsSerializer

    def build(self, days: int) -> dict:
        return AnalyticsService.get_user_analytics(days)


@extend_schema(
    summary="Withdrawal analytics",
    parameters=[TIME_RANGE_PARAM],
    responses={200: WithdrawalAnalyticsSerializer, 403: _FORBIDDEN},
    tags=["Analytics"],
)
class WithdrawalAnalyticsView(_AnalyticsView):
    serializer_class = WithdrawalAnalyticsSerializer

    def build(self, days: int) -> dict:
        return AnalyticsService.get_withdrawal_analytics(days)


class UserStatsView(APIView):
    """
    **GET /api/analytics/user-stats/**

    The caller's own complaint and withdrawal counters and balance.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Own dashboard stats",
        responses={200: UserStatsSerializer},
        tags=["Analytics"],
    )
    def get(self, request: Request) -> Response:
        data = AnalyticsService.get_user_stats(request.user)
        return Response(UserStatsSerializer(data).data, status=status.HTTP_200_OK)
