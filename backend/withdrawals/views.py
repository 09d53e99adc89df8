"""
Withdrawals app views — thin layer over ``WithdrawalService``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.services import audit_context_from_request

from .models import Withdrawal
from .serializers import (
    WithdrawalCreateResponseSerializer,
    WithdrawalCreateSerializer,
    WithdrawalDetailSerializer,
    WithdrawalFilterSerializer,
    WithdrawalProcessSerializer,
    WithdrawalSerializer,
    WithdrawalTimelineEntrySerializer,
)
from .services import ESTIMATED_PROCESSING_TIME, WithdrawalService


class WithdrawalViewSet(viewsets.ViewSet):
    """
    Withdrawal requests.

    Users file and list their own; holders of
    ``withdrawals.can_process_withdrawal`` list everything and process.
    Scoping is done by ``WithdrawalService.list_withdrawals``.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"
    queryset = Withdrawal.objects.none()

    @extend_schema(
        summary="List withdrawals",
        parameters=[
            OpenApiParameter("status", str, enum=["pending", "processing", "approved", "rejected"]),
            OpenApiParameter("user_id", int, description="Admins only."),
        ],
        responses={200: WithdrawalSerializer(many=True)},
        tags=["Withdrawals"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = WithdrawalFilterSerializer(data=request.query_params)
        if not filter_serializer.is_valid():
            return Response(filter_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        withdrawals = WithdrawalService.list_withdrawals(request.user, filter_serializer.validated_data)
        return Response(WithdrawalSerializer(withdrawals, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Request a withdrawal",
        request=WithdrawalCreateSerializer,
        responses={
            201: WithdrawalCreateResponseSerializer,
            400: OpenApiResponse(description="Below minimum, insufficient points or missing payment details."),
        },
        tags=["Withdrawals"],
    )
    def create(self, request: Request) -> Response:
        serializer = WithdrawalCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        withdrawal = WithdrawalService().create_withdrawal(serializer.validated_data, request.user)
        data = {
            "id": withdrawal.pk,
            "status": withdrawal.status,
            "points": withdrawal.points,
            "estimated_processing_time": ESTIMATED_PROCESSING_TIME,
        }
        return Response(WithdrawalCreateResponseSerializer(data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Withdrawal detail",
        responses={200: WithdrawalDetailSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=["Withdrawals"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        withdrawal = WithdrawalService.get_withdrawal(int(pk), request.user)
        return Response(WithdrawalDetailSerializer(withdrawal).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Process a withdrawal",
        request=WithdrawalProcessSerializer,
        responses={
            200: WithdrawalDetailSerializer,
            403: OpenApiResponse(description="Missing withdrawals.can_process_withdrawal."),
            404: OpenApiResponse(description="Withdrawal not found."),
            409: OpenApiResponse(description="Withdrawal already finalised."),
        },
        tags=["Withdrawals"],
    )
    @action(detail=True, methods=["post"], url_path="process")
    def process(self, request: Request, pk: str = None) -> Response:
        serializer = WithdrawalProcessSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        withdrawal = WithdrawalService().process_withdrawal(
            int(pk),
            data["status"],
            request.user,
            reason=data["reason"],
            description=data["description"],
            transaction_id=data["transaction_id"],
            audit=audit_context_from_request(request),
        )
        withdrawal = WithdrawalService.get_withdrawal(withdrawal.pk, request.user)
        return Response(WithdrawalDetailSerializer(withdrawal).data, status=status.HTTP_200_OK)


class WithdrawalTimelineViewSet(viewsets.ViewSet):
    """GET /api/withdrawals/{withdrawal_pk}/timeline/"""

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="Withdrawal timeline",
        responses={200: WithdrawalTimelineEntrySerializer(many=True)},
        tags=["Withdrawals"],
    )
    def list(self, request: Request, withdrawal_pk: str = None) -> Response:
        withdrawal = WithdrawalService.get_withdrawal(int(withdrawal_pk), request.user)
        entries = withdrawal.timeline.all()
        return Response(WithdrawalTimelineEntrySerializer(entries, many=True).data, status=status.HTTP_200_OK)
