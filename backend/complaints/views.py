"""
Complaints app views.

Thin ``ViewSet`` layer over ``complaints.services``.  Views validate the
request, call one service method and serialise the result; permission
rules beyond authentication live in the service layer.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.services import audit_context_from_request

from .models import Complaint
from .serializers import (
    ComplaintAdminFilterSerializer,
    ComplaintCreateSerializer,
    ComplaintDetailSerializer,
    ComplaintHistoryFilterSerializer,
    ComplaintListSerializer,
    ComplaintReviewResponseSerializer,
    ComplaintReviewSerializer,
    ComplaintSubmitResponseSerializer,
    ComplaintTimelineEntrySerializer,
    ComplaintTrackSerializer,
)
from .services import (
    ComplaintQueryService,
    ComplaintSubmissionService,
    ComplaintWorkflowService,
)


class ComplaintViewSet(viewsets.ViewSet):
    """
    Complaint submission, tracking and review.

    ``create`` and ``track`` are public; everything else requires
    authentication, and the admin listing / review additionally require
    ``complaints.can_review_complaint`` (checked by the services).
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"
    # Allows drf-spectacular to infer path-parameter types automatically.
    queryset = Complaint.objects.none()

    _PUBLIC_ACTIONS = {"create", "track"}

    def get_permissions(self):
        if self.action in self._PUBLIC_ACTIONS:
            return [AllowAny()]
        return super().get_permissions()

    @extend_schema(
        summary="List all complaints (admin)",
        parameters=[
            OpenApiParameter("status", str, enum=["pending", "approved", "rejected"]),
            OpenApiParameter("priority", str, enum=["low", "medium", "high"]),
            OpenApiParameter("type", str),
        ],
        responses={
            200: ComplaintListSerializer(many=True),
            403: OpenApiResponse(description="Missing complaints.can_review_complaint."),
        },
        tags=["Complaints"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = ComplaintAdminFilterSerializer(data=request.query_params)
        if not filter_serializer.is_valid():
            return Response(filter_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        complaints = ComplaintQueryService.list_for_admin(request.user, filter_serializer.validated_data)
        return Response(ComplaintListSerializer(complaints, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a complaint",
        description=(
            "Anyone may submit.  Authenticated submitters are credited the "
            "submission points; unauthenticated submissions are stored as anonymous."
        ),
        request=ComplaintCreateSerializer,
        responses={201: ComplaintSubmitResponseSerializer, 400: OpenApiResponse(description="Validation error.")},
        tags=["Complaints"],
    )
    def create(self, request: Request) -> Response:
        serializer = ComplaintCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        complaint, awarded = ComplaintSubmissionService().submit(
            serializer.validated_data,
            requesting_user=request.user,
        )
        data = {
            "id": complaint.pk,
            "token": complaint.token,
            "status": complaint.status,
            "points": awarded,
        }
        return Response(ComplaintSubmitResponseSerializer(data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Complaint detail",
        responses={200: ComplaintDetailSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=["Complaints"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        complaint = ComplaintQueryService.get_detail(int(pk), request.user)
        return Response(ComplaintDetailSerializer(complaint).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="My complaints",
        parameters=[
            OpenApiParameter("status", str, enum=["pending", "approved", "rejected"]),
            OpenApiParameter("type", str),
        ],
        responses={200: ComplaintListSerializer(many=True)},
        tags=["Complaints"],
    )
    @action(detail=False, methods=["get"], url_path="history")
    def history(self, request: Request) -> Response:
        filter_serializer = ComplaintHistoryFilterSerializer(data=request.query_params)
        if not filter_serializer.is_valid():
            return Response(filter_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        complaints = ComplaintQueryService.user_history(request.user, filter_serializer.validated_data)
        return Response(ComplaintListSerializer(complaints, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Track a complaint by token",
        responses={200: ComplaintTrackSerializer, 404: OpenApiResponse(description="Unknown token.")},
        tags=["Complaints"],
    )
    @action(detail=False, methods=["get"], url_path=r"track/(?P<token>[A-Za-z0-9]+)")
    def track(self, request: Request, token: str = None) -> Response:
        complaint = ComplaintQueryService.track(token)
        return Response(ComplaintTrackSerializer(complaint).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Approve or reject a complaint",
        description=(
            "Transitions a pending complaint to approved or rejected.  Approval "
            "credits the owner (default award when `points` is omitted); "
            "anonymous complaints are approved without an award."
        ),
        request=ComplaintReviewSerializer,
        responses={
            200: ComplaintReviewResponseSerializer,
            403: OpenApiResponse(description="Missing complaints.can_review_complaint."),
            404: OpenApiResponse(description="Complaint not found."),
            409: OpenApiResponse(description="Complaint already reviewed."),
        },
        tags=["Complaints"],
    )
    @action(detail=True, methods=["post"], url_path="review")
    def review(self, request: Request, pk: str = None) -> Response:
        serializer = ComplaintReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        complaint, points_awarded = ComplaintWorkflowService().review_complaint(
            int(pk),
            data["status"],
            data["reason"],
            data["description"],
            request.user,
            points=data.get("points"),
            audit=audit_context_from_request(request),
        )
        complaint = ComplaintQueryService.get_detail(complaint.pk, request.user)
        payload = {"complaint": complaint, "points_awarded": points_awarded}
        return Response(ComplaintReviewResponseSerializer(payload).data, status=status.HTTP_200_OK)


class ComplaintTimelineViewSet(viewsets.ViewSet):
    """
    GET /api/complaints/{complaint_pk}/timeline/

    Status history of one complaint, oldest first.  Same visibility as
    the complaint detail.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="Complaint timeline",
        responses={200: ComplaintTimelineEntrySerializer(many=True)},
        tags=["Complaints"],
    )
    def list(self, request: Request, complaint_pk: str = None) -> Response:
        complaint = ComplaintQueryService.get_detail(int(complaint_pk), request.user)
        entries = complaint.timeline.all()
        return Response(ComplaintTimelineEntrySerializer(entries, many=True).data, status=status.HTTP_200_OK)
