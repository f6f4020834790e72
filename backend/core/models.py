"""
Core app models.

Provides the abstract timestamp base model and the per-officer
``Notification`` inbox.
"""

from django.conf import settings
from django.db import models


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


class Notification(TimeStampedModel):
    """
    In-app notification delivered to an officer about case activity
    (assignment, handover, status change) or account events (lockout,
    role change, profile update).

    ``related_case_id`` is a plain integer rather than a foreign key so
    that deleting a case never removes the officer's notification history.
    """

    class NotificationKind(models.TextChoices):
        CASE = "case", "Case"
        ADMIN = "admin", "Admin"
        SYSTEM = "system", "System"

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Recipient",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(verbose_name="Message")
    notification_type = models.CharField(
        max_length=20,
        choices=NotificationKind.choices,
        default=NotificationKind.SYSTEM,
        verbose_name="Type",
    )
    is_read = models.BooleanField(default=False, verbose_name="Read")
    related_case_id = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name="Related Case ID",
    )
    action_by = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        verbose_name="Action By",
        help_text="Police ID of the officer who triggered the notification.",
    )

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
        ]

    def __str__(self):
        return f"[{self.recipient}] {self.title}"
