"""
Core app service layer.

Holds the officer-facing side of the notification inbox.  Notification
*creation* is not done here: services emit ``NotificationEvent`` values
and ``core.domain.notifications.NotificationDispatcher`` persists them
after commit.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models import QuerySet

from core.domain.exceptions import NotFound
from core.domain.results import returns_outcome
from core.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Handles listing, marking as read and deleting notifications for a
    given user.  Notifications belonging to other users are reported as
    not found.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet[Notification]:
        """Return notifications for ``self.user``, most recent first."""
        qs = Notification.objects.filter(recipient=self.user)
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs.order_by("-created_at")

    def unread_count(self) -> int:
        return Notification.objects.filter(recipient=self.user, is_read=False).count()

    @returns_outcome
    def mark_as_read(self, notification_id: int) -> Notification:
        """Mark a single notification as read."""
        notification = self._get_own(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
        return notification

    @returns_outcome
    def mark_all_as_read(self) -> int:
        """Mark every unread notification as read and return how many changed."""
        return (
            Notification.objects
            .filter(recipient=self.user, is_read=False)
            .update(is_read=True)
        )

    @returns_outcome
    def delete(self, notification_id: int) -> None:
        notification = self._get_own(notification_id)
        notification.delete()
        logger.info(
            "Notification #%s deleted by %s", notification_id, self.user.police_id
        )

    def _get_own(self, notification_id: int) -> Notification:
        try:
            return Notification.objects.get(pk=notification_id, recipient=self.user)
        except (Notification.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Notification with id {notification_id} not found.")
