"""
Analytics app URL configuration.

Included as ``path("api/analytics/", include("analytics.urls"))``.
"""

from django.urls import path

from . import views

app_name = "analytics"

urlpatterns = [
    path("dashboard/", views.DashboardView.as_view(), name="dashboard"),
    path("complaints/", views.ComplaintAnalyticsView.as_view(), name="complaints"),
    path("users/", views.UserAnalyticsView.as_view(), name="users"),
    path("withdrawals/", views.WithdrawalAnalyticsView.as_view(), name="withdrawals"),
    path("user-stats/", views.UserStatsView.as_view(), name="user-stats"),
]
