"""
Points app URL configuration (included under ``/api/``).

  GET    /api/points/balance/
  GET    /api/points/history/
  GET    /api/points/summary/
  POST   /api/points/adjust/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import PointsViewSet

router = DefaultRouter()
router.register(
    prefix=r"points",
    viewset=PointsViewSet,
    basename="points",
)

urlpatterns = [
    path("", include(router.urls)),
]
