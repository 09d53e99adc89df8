"""
Analytics app models.

The analytics app stores nothing; it only reads complaints, users and
withdrawals.  ``AnalyticsAccess`` exists so the
``analytics.can_view_analytics`` permission has a content type to hang
off and can be granted to roles like any other permission.
"""

from django.db import models

from core.permissions_constants import AnalyticsPerms


class AnalyticsAccess(models.Model):
    class Meta:
        managed = False
        default_permissions = ()
        permissions = [
            (AnalyticsPerms.CAN_VIEW_ANALYTICS, "Can view analytics reports"),
        ]
