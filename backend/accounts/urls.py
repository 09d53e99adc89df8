"""
Accounts app URL configuration.

Included in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Current User Profile ("Me")
    GET    /me/                          → MeView  (retrieve)
    PATCH  /me/                          → MeView  (partial update)

Push registration tokens
    GET    /device-tokens/               → DeviceTokenViewSet.list
    POST   /device-tokens/               → DeviceTokenViewSet.create
    POST   /device-tokens/unregister/    → DeviceTokenViewSet.unregister
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import DeviceTokenViewSet, MeView

app_name = "accounts"

router = DefaultRouter()
router.register(r"device-tokens", DeviceTokenViewSet, basename="device-token")

urlpatterns = [
    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),

    # ── Router-registered viewsets (device-tokens/) ──────────────────
    path("", include(router.urls)),
]
