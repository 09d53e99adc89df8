"""
Points app models.

``PointsHistory`` is the append-only ledger of every balance movement.
The balance itself lives on ``accounts.User.points``; the two are only
ever written together by ``points.services.PointsLedgerService``.
"""

from django.conf import settings
from django.db import models

from core.models import AppendOnlyModel
from core.permissions_constants import PointsPerms


class PointsEntryType(models.TextChoices):
    EARNED = "earned", "Earned"
    REDEEMED = "redeemed", "Redeemed"
    ADJUSTED = "adjusted", "Adjusted"


class PointsSource(models.TextChoices):
    COMPLAINT_SUBMISSION = "complaint_submission", "Complaint Submission"
    COMPLAINT_APPROVAL = "complaint_approval", "Complaint Approval"
    WITHDRAWAL = "withdrawal", "Withdrawal"
    ADMIN_ADJUSTMENT = "admin_adjustment", "Admin Adjustment"


class PointsHistory(AppendOnlyModel):
    """
    One balance movement.  ``points`` is signed: positive for earned,
    negative for redeemed, either sign for admin adjustments.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="points_history",
        verbose_name="User",
    )
    type = models.CharField(
        max_length=10,
        choices=PointsEntryType.choices,
        db_index=True,
        verbose_name="Type",
    )
    points = models.IntegerField(verbose_name="Points Delta")
    description = models.CharField(max_length=255, verbose_name="Description")
    source = models.CharField(max_length=50, verbose_name="Source")
    reference_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        verbose_name="Reference ID",
        help_text="Identifier of the complaint / withdrawal that caused the movement.",
    )
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="points_adjustments",
        verbose_name="Adjusted By",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")

    class Meta:
        verbose_name = "Points History Entry"
        verbose_name_plural = "Points History"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "-created_at"]),
        ]
        default_permissions = ("add", "view")
        permissions = [
            (PointsPerms.CAN_ADJUST_POINTS, "Can manually adjust a user's points balance"),
        ]

    def __str__(self):
        sign = "+" if self.points >= 0 else ""
        return f"{self.user_id}: {sign}{self.points} ({self.source})"
