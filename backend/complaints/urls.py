"""
Complaints app URL configuration.

Included from ``civic_rewards.urls`` as::

    path("api/", include("complaints.urls")),

Route Hierarchy
---------------
  POST /api/complaints/                          → submit (public)
  GET  /api/complaints/                          → admin listing
  GET  /api/complaints/{id}/                     → detail (owner / reviewer)
  GET  /api/complaints/history/                  → my complaints
  GET  /api/complaints/track/{token}/            → public tracking
  POST /api/complaints/{id}/review/              → approve / reject

  ── Nested ──────────────────────────────────────────────────────
  GET  /api/complaints/{complaint_pk}/timeline/  → status history
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers as nested_routers

from .views import ComplaintTimelineViewSet, ComplaintViewSet

router = DefaultRouter()
router.register(
    prefix=r"complaints",
    viewset=ComplaintViewSet,
    basename="complaint",
)

# Parent lookup kwarg → complaint_pk
timeline_router = nested_routers.NestedDefaultRouter(
    parent_router=router,
    parent_prefix=r"complaints",
    lookup="complaint",
)
timeline_router.register(
    prefix=r"timeline",
    viewset=ComplaintTimelineViewSet,
    basename="complaint-timeline",
)

urlpatterns = [
    path("", include(router.urls)),
    path("", include(timeline_router.urls)),
]
