"""
Withdrawals app models.

A ``Withdrawal`` converts points into a payout.  The points are redeemed
from the ledger when the request is filed; admins then move it through
processing to approved or rejected.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel
from core.permissions_constants import WithdrawalsPerms


class WithdrawalMethod(models.TextChoices):
    UPI = "UPI", "UPI"
    BANK_TRANSFER = "Bank Transfer", "Bank Transfer"


class WithdrawalStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Withdrawal(TimeStampedModel):
    """A request to pay out ``points`` through ``method``."""

    # Statuses whose points are still in flight.
    OPEN_STATUSES = (WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="withdrawals",
        verbose_name="User",
    )
    points = models.PositiveIntegerField(verbose_name="Points")
    method = models.CharField(
        max_length=20,
        choices=WithdrawalMethod.choices,
        verbose_name="Payout Method",
    )
    status = models.CharField(
        max_length=12,
        choices=WithdrawalStatus.choices,
        default=WithdrawalStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )
    reason = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")

    # ── Payment details ─────────────────────────────────────────────
    upi_id = models.CharField(max_length=100, blank=True, default="", verbose_name="UPI ID")
    bank_account = models.CharField(max_length=34, blank=True, default="")
    ifsc = models.CharField(max_length=11, blank=True, default="", verbose_name="IFSC")
    account_holder_name = models.CharField(max_length=150, blank=True, default="")

    # ── Processing ──────────────────────────────────────────────────
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_withdrawals",
        verbose_name="Processed By",
    )
    transaction_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        verbose_name = "Withdrawal"
        verbose_name_plural = "Withdrawals"
        ordering = ["-created_at", "-id"]
        permissions = [
            (WithdrawalsPerms.CAN_PROCESS_WITHDRAWAL, "Can list and process withdrawals"),
        ]

    def __str__(self):
        return f"Withdrawal #{self.pk} ({self.points} pts, {self.status})"


class WithdrawalTimelineEntry(models.Model):
    withdrawal = models.ForeignKey(
        Withdrawal,
        on_delete=models.CASCADE,
        related_name="timeline",
    )
    action = models.CharField(max_length=32)
    status = models.CharField(max_length=12, choices=WithdrawalStatus.choices)
    reason = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Withdrawal Timeline Entry"
        verbose_name_plural = "Withdrawal Timeline"
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.withdrawal_id} {self.action} → {self.status}"
