"""
Complaints app models.

A ``Complaint`` is filed by a citizen (or anonymously), triaged by an
admin and resolved as approved or rejected.  Every status change is
recorded as a ``ComplaintTimelineEntry``.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel
from core.permissions_constants import ComplaintsPerms


class ComplaintType(models.TextChoices):
    CLEANLINESS = "cleanliness", "Cleanliness"
    PUNCTUALITY = "punctuality", "Punctuality"
    BEHAVIOR = "behavior", "Staff Behavior"
    OTHER = "other", "Other"


class ComplaintStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ComplaintPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


class Complaint(TimeStampedModel):
    """
    A citizen complaint about the transit service.

    ``token`` is the public tracking code handed back at submission.
    ``user`` is ``None`` for anonymous complaints; such complaints never
    trigger notifications or point awards.  Complaints are never deleted.
    """

    token = models.CharField(
        max_length=16,
        unique=True,
        verbose_name="Tracking Token",
    )
    type = models.CharField(
        max_length=20,
        choices=ComplaintType.choices,
        db_index=True,
        verbose_name="Category",
    )
    description = models.TextField(verbose_name="Description")
    stop = models.CharField(max_length=255, verbose_name="Stop / Station")
    incident_at = models.DateTimeField(null=True, blank=True, verbose_name="Incident Date/Time")

    # ── Location ─────────────────────────────────────────────────────
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    address = models.CharField(max_length=255, blank=True, default="")

    # ── Review state ─────────────────────────────────────────────────
    status = models.CharField(
        max_length=10,
        choices=ComplaintStatus.choices,
        default=ComplaintStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )
    reason = models.CharField(max_length=255, blank=True, default="", verbose_name="Review Reason")
    admin_description = models.TextField(blank=True, default="", verbose_name="Admin Notes")
    points = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name="Points Awarded",
        help_text="Set when the complaint is approved.",
    )
    priority = models.CharField(
        max_length=10,
        choices=ComplaintPriority.choices,
        default=ComplaintPriority.MEDIUM,
        db_index=True,
        verbose_name="Priority",
    )

    # ── Ownership ────────────────────────────────────────────────────
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="complaints",
        verbose_name="Submitted By",
    )
    is_anonymous = models.BooleanField(default=False, verbose_name="Anonymous")

    extra_fields = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Additional Fields",
        help_text="Category-specific answers collected by the client form.",
    )

    class Meta:
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        ordering = ["-created_at", "-id"]
        permissions = [
            (ComplaintsPerms.CAN_REVIEW_COMPLAINT, "Can list, approve and reject complaints"),
        ]

    def __str__(self):
        return f"{self.token} [{self.status}]"


class ComplaintTimelineEntry(models.Model):
    """One status change of a complaint, oldest first."""

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="timeline",
        verbose_name="Complaint",
    )
    action = models.CharField(max_length=32, verbose_name="Action")
    status = models.CharField(max_length=10, choices=ComplaintStatus.choices, verbose_name="Status")
    reason = models.CharField(max_length=255, blank=True, default="", verbose_name="Reason")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Admin",
    )
    timestamp = models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")

    class Meta:
        verbose_name = "Complaint Timeline Entry"
        verbose_name_plural = "Complaint Timeline"
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.complaint_id} {self.action} → {self.status}"
