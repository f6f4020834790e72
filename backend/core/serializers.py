"""
Core app serializers.

**Response-only** serializers for the notification inbox.  Notifications
are created by the dispatcher, never through the API.
"""

from __future__ import annotations

from rest_framework import serializers

from core.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for ``Notification`` instances.

    Used by the Notification ViewSet to list and retrieve notifications
    for the authenticated user.
    """

    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "message",
            "notification_type",
            "is_read",
            "related_case_id",
            "action_by",
            "created_at",
        ]
        read_only_fields = fields


class UnreadCountSerializer(serializers.Serializer):
    unread = serializers.IntegerField(
        read_only=True,
        help_text="Number of unread notifications for the authenticated user.",
    )
