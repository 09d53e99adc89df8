"""
Points app views — **Thin Views** over ``PointsLedgerService``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.access import require_permission
from core.permissions_constants import PointsPerms
from core.services import audit_context_from_request

from .serializers import (
    LeaderboardQuerySerializer,
    LeaderboardSerializer,
    PointsAdjustSerializer,
    PointsBalanceSerializer,
    PointsHistoryFilterSerializer,
    PointsHistorySerializer,
    PointsSummarySerializer,
)
from .services import LeaderboardService, PointsLedgerService


class PointsViewSet(viewsets.ViewSet):
    """
    GET  /api/points/balance/   → own balance
    GET  /api/points/history/   → own ledger (staff: ``?user_id=``)
    GET  /api/points/summary/   → balance + lifetime totals
    POST /api/points/adjust/    → manual adjustment (``points.can_adjust_points``)
    GET  /api/points/leaderboard/ → rankings of active users
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current points balance",
        responses={200: PointsBalanceSerializer},
        tags=["Points"],
    )
    @action(detail=False, methods=["get"], url_path="balance")
    def balance(self, request: Request) -> Response:
        data = {
            "user_id": request.user.pk,
            "balance": PointsLedgerService.get_balance(request.user.pk),
        }
        return Response(PointsBalanceSerializer(data).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Points history",
        parameters=[
            OpenApiParameter("type", str, enum=["earned", "redeemed", "adjusted"]),
            OpenApiParameter("source", str),
            OpenApiParameter("user_id", int, description="Staff only."),
        ],
        responses={200: PointsHistorySerializer(many=True)},
        tags=["Points"],
    )
    @action(detail=False, methods=["get"], url_path="history")
    def history(self, request: Request) -> Response:
        filter_serializer = PointsHistoryFilterSerializer(data=request.query_params)
        if not filter_serializer.is_valid():
            return Response(filter_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        filters = dict(filter_serializer.validated_data)
        target = filters.pop("user_id", None) or request.user.pk
        if target != request.user.pk:
            require_permission(request.user, PointsPerms.full(PointsPerms.VIEW_POINTSHISTORY))
            PointsLedgerService.get_balance(target)  # 404 for unknown users

        entries = PointsLedgerService.get_history(target, filters)
        return Response(PointsHistorySerializer(entries, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Points summary",
        responses={200: PointsSummarySerializer},
        tags=["Points"],
    )
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request: Request) -> Response:
        data = PointsLedgerService.get_summary(request.user)
        return Response(PointsSummarySerializer(data).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Adjust a user's balance",
        request=PointsAdjustSerializer,
        responses={
            201: OpenApiResponse(response=PointsHistorySerializer, description="Adjustment recorded."),
            400: OpenApiResponse(description="Invalid amount or insufficient balance."),
            403: OpenApiResponse(description="Missing points.can_adjust_points."),
            404: OpenApiResponse(description="User not found."),
        },
        tags=["Points"],
    )
    @action(detail=False, methods=["post"], url_path="adjust")
    def adjust(self, request: Request) -> Response:
        serializer = PointsAdjustSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        entry = PointsLedgerService.adjust_points(
            user_id=serializer.validated_data["user_id"],
            delta=serializer.validated_data["delta"],
            admin=request.user,
            reason=serializer.validated_data["reason"],
            audit=audit_context_from_request(request),
        )
        return Response(PointsHistorySerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Leaderboard",
        parameters=[
            OpenApiParameter("category", str, enum=["points", "complaints", "recent"]),
            OpenApiParameter("time_frame", str, enum=["all", "today", "week", "month", "year"]),
            OpenApiParameter("limit", int, description="1-100, default 50."),
        ],
        responses={200: LeaderboardSerializer},
        tags=["Points"],
    )
    @action(detail=False, methods=["get"], url_path="leaderboard")
    def leaderboard(self, request: Request) -> Response:
        query = LeaderboardQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        data = LeaderboardService.get_leaderboard(request.user, **query.validated_data)
        return Response(LeaderboardSerializer(data).data, status=status.HTTP_200_OK)
