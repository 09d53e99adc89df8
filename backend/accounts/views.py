"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``MeView``              — GET / PATCH /me/
- ``DeviceTokenViewSet``  — /device-tokens/ (list, register, unregister)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import DeviceToken
from .serializers import (
    DeviceTokenRegisterSerializer,
    DeviceTokenSerializer,
    MeUpdateSerializer,
    UserDetailSerializer,
)
from .services import CurrentUserService, DeviceTokenService


class MeView(APIView):
    """
    GET  /api/accounts/me/  → Retrieve current user profile and balance.
    PATCH /api/accounts/me/ → Update own profile fields.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user profile",
        responses={200: UserDetailSerializer},
        tags=["Accounts"],
    )
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update own profile",
        request=MeUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Accounts"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(
            instance=request.user,
            data=request.data,
            partial=True,
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = CurrentUserService.update_profile(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


class DeviceTokenViewSet(viewsets.ViewSet):
    """
    Push registration tokens of the authenticated user.

    GET  /api/accounts/device-tokens/              → list own tokens
    POST /api/accounts/device-tokens/              → register (idempotent)
    POST /api/accounts/device-tokens/unregister/   → remove a token
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List registered device tokens",
        responses={200: DeviceTokenSerializer(many=True)},
        tags=["Accounts"],
    )
    def list(self, request: Request) -> Response:
        tokens = DeviceToken.objects.filter(user=request.user)
        return Response(DeviceTokenSerializer(tokens, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Register a device token",
        request=DeviceTokenRegisterSerializer,
        responses={
            201: OpenApiResponse(response=DeviceTokenSerializer, description="Token registered."),
            200: OpenApiResponse(response=DeviceTokenSerializer, description="Token already registered."),
        },
        tags=["Accounts"],
    )
    def create(self, request: Request) -> Response:
        serializer = DeviceTokenRegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        device, created = DeviceTokenService.register(
            request.user,
            serializer.validated_data["token"],
            serializer.validated_data["platform"],
        )
        return Response(
            DeviceTokenSerializer(device).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        summary="Unregister a device token",
        request=DeviceTokenRegisterSerializer,
        responses={204: None, 404: OpenApiResponse(description="Token not registered.")},
        tags=["Accounts"],
    )
    @action(detail=False, methods=["post"], url_path="unregister")
    def unregister(self, request: Request) -> Response:
        serializer = DeviceTokenRegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        DeviceTokenService.unregister(request.user, serializer.validated_data["token"])
        return Response(status=status.HTTP_204_NO_CONTENT)
