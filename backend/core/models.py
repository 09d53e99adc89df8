"""
Core app models.

Provides the abstract timestamp base, the in-app ``Notification`` model
and the admin ``ActionHistory`` audit log shared by every app.
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models

from core.permissions_constants import CorePerms


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class AppendOnlyModel(models.Model):
    """
    Abstract base for ledger-style rows that are written once.

    Saving an already-persisted row or deleting one raises ``ValueError``.
    Queryset-level ``update()`` / ``delete()`` bypass these hooks and are
    not used by the service layer.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError(f"{type(self).__name__} rows are append-only and cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(f"{type(self).__name__} rows are append-only and cannot be deleted.")


class Notification(TimeStampedModel):
    """
    In-app notification shown to a user (complaint reviewed, points
    earned, withdrawal processed, ...).

    Uses a GenericForeignKey so any model instance can be the *source* of a
    notification.
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Recipient",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(verbose_name="Message")
    is_read = models.BooleanField(default=False, verbose_name="Read")

    # Generic relation to the object that triggered the notification
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        verbose_name="Related Content Type",
    )
    object_id = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name="Related Object ID",
    )
    content_object = GenericForeignKey("content_type", "object_id")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"]),
        ]

    def __str__(self):
        return f"[{self.recipient}] {self.title}"


class ActionHistory(AppendOnlyModel):
    """
    Audit record of one administrative action (complaint reviewed,
    withdrawal processed, balance adjusted, ...).
    """

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="admin_actions",
        verbose_name="Admin",
    )
    action = models.CharField(max_length=64, db_index=True, verbose_name="Action")
    resource = models.CharField(max_length=64, db_index=True, verbose_name="Resource")
    resource_id = models.CharField(max_length=64, blank=True, default="", verbose_name="Resource ID")
    details = models.JSONField(default=dict, blank=True, verbose_name="Details")
    ip_address = models.GenericIPAddressField(null=True, blank=True, verbose_name="IP Address")
    user_agent = models.CharField(max_length=512, blank=True, default="", verbose_name="User Agent")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")

    class Meta:
        verbose_name = "Action History"
        verbose_name_plural = "Action History"
        ordering = ["-created_at", "-id"]
        permissions = [
            (CorePerms.CAN_VIEW_ACTION_HISTORY, "Can view the admin action history"),
        ]

    def __str__(self):
        return f"{self.admin} {self.action} {self.resource}#{self.resource_id}"
