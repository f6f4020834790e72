"""
Core app views — **Thin Views**.

Each view delegates all business logic to ``core.services``.  Views are
responsible only for:

1. Extracting parameters from the request.
2. Calling the service with the authenticated user.
3. Serialising the result (``Outcome.unwrap()`` re-raises failures for
   the global exception handler) and returning an HTTP ``Response``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)

from .serializers import NotificationSerializer, UnreadCountSerializer
from .services import NotificationService


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — inbox of the authenticated officer.

    Endpoints
    ---------
    GET    /api/core/notifications/               → list notifications
    GET    /api/core/notifications/unread-count/  → unread counter
    POST   /api/core/notifications/read-all/      → mark all as read
    POST   /api/core/notifications/{id}/read/     → mark one as read
    DELETE /api/core/notifications/{id}/          → delete one

    **Authentication**: Required (``IsAuthenticated``).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        description="Return notifications for the authenticated user, newest first.",
        parameters=[
            OpenApiParameter("unread", bool, description="Only unread notifications."),
        ],
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        unread_only = request.query_params.get("unread", "").lower() in ("1", "true", "yes")
        service = NotificationService(user=request.user)
        notifications = service.list_notifications(unread_only=unread_only)
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="unread-count")
    @extend_schema(
        summary="Unread notification count",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    def unread_count(self, request: Request) -> Response:
        count = NotificationService(user=request.user).unread_count()
        return Response({"unread": count}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="read-all")
    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(description="Number of notifications updated.")},
        tags=["Notifications"],
    )
    def mark_all_as_read(self, request: Request) -> Response:
        updated = NotificationService(user=request.user).mark_all_as_read().unwrap()
        return Response({"updated": updated}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="read")
    @extend_schema(
        summary="Mark notification as read",
        description="Mark a single notification as read by ID.",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            404: OpenApiResponse(description="Notification not found."),
        },
        tags=["Notifications"],
    )
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        service = NotificationService(user=request.user)
        notification = service.mark_as_read(notification_id=pk).unwrap()
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete notification",
        responses={
            204: OpenApiResponse(description="Deleted."),
            404: OpenApiResponse(description="Notification not found."),
        },
        tags=["Notifications"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        NotificationService(user=request.user).delete(notification_id=pk).unwrap()
        return Response(status=status.HTTP_204_NO_CONTENT)
