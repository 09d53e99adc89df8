"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Extracting and validating query parameters from the request.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)

from core.domain.access import require_permission
from core.permissions_constants import CorePerms

from .serializers import (
    ActionHistoryFilterSerializer,
    ActionHistorySerializer,
    NotificationSerializer,
    SystemConstantsSerializer,
)
from .services import (
    ActionHistoryService,
    NotificationService,
    SystemConstantsService,
)


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Return complaint categories, status vocabularies and reward amounts
    so clients can build forms without hardcoding values.

    **Authentication**: Not required (``AllowAny``).
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        description="Return choice enumerations and configured reward amounts.",
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        serializer = SystemConstantsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)


class ActionHistoryView(APIView):
    """
    **GET /api/core/action-history/**

    Admin audit log, newest first.

    **Authentication**: Required, plus ``core.can_view_action_history``.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List admin actions",
        parameters=[
            OpenApiParameter("admin_id", int, description="Only actions by this admin."),
            OpenApiParameter("action", str, description="e.g. update_complaint"),
            OpenApiParameter("resource", str, description="e.g. complaint, withdrawal, points"),
            OpenApiParameter("start_date", str, description="ISO date or datetime, inclusive."),
            OpenApiParameter("end_date", str, description="ISO date or datetime, inclusive."),
        ],
        responses={
            200: OpenApiResponse(response=ActionHistorySerializer(many=True), description="Audit entries."),
            403: OpenApiResponse(description="Missing permission."),
        },
        tags=["Admin"],
    )
    def get(self, request: Request) -> Response:
        require_permission(request.user, CorePerms.full(CorePerms.CAN_VIEW_ACTION_HISTORY))

        filter_serializer = ActionHistoryFilterSerializer(data=request.query_params)
        if not filter_serializer.is_valid():
            return Response(filter_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        entries = ActionHistoryService.list_actions(filter_serializer.validated_data)
        return Response(ActionHistorySerializer(entries, many=True).data, status=status.HTTP_200_OK)


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — list and mark-as-read for the authenticated user.

    Endpoints
    ---------
    GET  /api/core/notifications/              → list notifications (``?unread=true``)
    POST /api/core/notifications/{id}/read/    → mark a notification as read
    POST /api/core/notifications/read-all/     → mark every notification as read
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List notifications",
        description="Return the notifications of the authenticated user, newest first.",
        parameters=[OpenApiParameter("unread", bool, description="Only unread notifications.")],
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        unread_only = request.query_params.get("unread", "").lower() in {"1", "true", "yes"}
        service = NotificationService(user=request.user)
        notifications = service.list_notifications(unread_only=unread_only)
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark notification as read",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            404: OpenApiResponse(description="Not found."),
        },
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"], url_path="read")
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        service = NotificationService(user=request.user)
        notification = service.mark_as_read(notification_id=pk)
        serializer = NotificationSerializer(notification)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(description='{"updated": <count>}')},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def mark_all_as_read(self, request: Request) -> Response:
        updated = NotificationService(user=request.user).mark_all_as_read()
        return Response({"updated": updated}, status=status.HTTP_200_OK)
