"""
Withdrawals app URL configuration (included under ``/api/``).

  GET/POST /api/withdrawals/
  GET      /api/withdrawals/{id}/
  POST     /api/withdrawals/{id}/process/
  GET      /api/withdrawals/{withdrawal_pk}/timeline/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers as nested_routers

from .views import WithdrawalTimelineViewSet, WithdrawalViewSet

router = DefaultRouter()
router.register(
    prefix=r"withdrawals",
    viewset=WithdrawalViewSet,
    basename="withdrawal",
)

timeline_router = nested_routers.NestedDefaultRouter(
    parent_router=router,
    parent_prefix=r"withdrawals",
    lookup="withdrawal",
)
timeline_router.register(
    prefix=r"timeline",
    viewset=WithdrawalTimelineViewSet,
    basename="withdrawal-timeline",
)

urlpatterns = [
    path("", include(router.urls)),
    path("", include(timeline_router.urls)),
]
