"""
Core app tests — notification outbox, dispatcher and inbox endpoints.

Covers:
  - events are delivered only after the surrounding transaction commits
  - e-mail-only events never create an inbox row
  - delivery failures are swallowed
  - the /api/core/notifications/ endpoints are scoped to the caller
"""

from __future__ import annotations

from unittest import mock

import pytest
from django.core import mail
from django.db import transaction
from rest_framework import status

from core.domain.exceptions import NotFound
from core.domain.notifications import (
    NotificationDispatcher,
    NotificationEvent,
    NotificationType,
    dispatch_on_commit,
)
from core.models import Notification
from core.services import NotificationService

NOTIFICATIONS_URL = "/api/core/notifications/"


@pytest.fixture()
def officer(create_user):
    return create_user(police_id="P1")


@pytest.fixture()
def other(create_user):
    return create_user(police_id="P2")


def _notify(user, title="Case Assigned", **kwargs) -> Notification:
    return Notification.objects.create(
        recipient=user,
        title=title,
        message=f"{title} message",
        notification_type=kwargs.pop("notification_type", NotificationType.CASE),
        **kwargs,
    )


@pytest.mark.django_db
class TestDispatcher:

    def test_dispatch_persists_and_emails(self, officer):
        event = NotificationEvent.for_user(officer, "Role Changed", "You are now a Supervisor.")
        created = NotificationDispatcher.dispatch([event])

        assert len(created) == 1
        assert created[0].recipient == officer
        assert created[0].notification_type == NotificationType.ADMIN
        assert len(mail.outbox) == 1
        assert mail.outbox[0].subject == "Role Changed"
        assert mail.outbox[0].to == [officer.email]
        html, mimetype = mail.outbox[0].alternatives[0]
        assert mimetype == "text/html"
        assert "You are now a Supervisor." in html

    def test_email_only_event_creates_no_row(self, officer):
        event = NotificationEvent.for_user(officer, "Account Deleted", "Bye.", email_only=True)
        assert NotificationDispatcher.dispatch([event]) == []
        assert not Notification.objects.exists()
        assert len(mail.outbox) == 1

    def test_mail_failure_is_swallowed(self, officer):
        event = NotificationEvent.for_user(officer, "Profile Updated", "Saved.")
        with mock.patch("core.domain.notifications.send_mail", side_effect=ConnectionError("smtp down")):
            created = NotificationDispatcher.dispatch([event])
        assert len(created) == 1

    def test_store_failure_is_swallowed(self, officer):
        event = NotificationEvent.for_user(officer, "Profile Updated", "Saved.")
        with mock.patch.object(Notification.objects, "create", side_effect=RuntimeError("db down")):
            created = NotificationDispatcher.dispatch([event])
        assert created == []
        assert len(mail.outbox) == 1

    def test_dispatch_waits_for_commit(self, officer, django_capture_on_commit_callbacks):
        event = NotificationEvent.for_user(officer, "Welcome", "Hello.")
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            with transaction.atomic():
                dispatch_on_commit([event])
            assert not Notification.objects.exists()
        assert len(callbacks) == 1

        callbacks[0]()
        assert Notification.objects.filter(recipient=officer, title="Welcome").exists()

    def test_nothing_scheduled_for_no_events(self, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            dispatch_on_commit([])
        assert callbacks == []


@pytest.mark.django_db
class TestNotificationService:

    def test_foreign_notification_is_not_found(self, officer, other):
        foreign = _notify(other)
        outcome = NotificationService(officer).mark_as_read(foreign.pk)
        assert isinstance(outcome.error, NotFound)
        assert isinstance(NotificationService(officer).delete(foreign.pk).error, NotFound)
        assert Notification.objects.filter(pk=foreign.pk).exists()

    def test_unread_count_and_mark_all(self, officer):
        _notify(officer)
        _notify(officer, title="Case Approved")
        service = NotificationService(officer)
        assert service.unread_count() == 2
        assert service.mark_all_as_read().unwrap() == 2
        assert service.unread_count() == 0


@pytest.mark.django_db
class TestNotificationEndpoints:

    def test_list_is_scoped_to_caller(self, client_for, officer, other):
        _notify(officer, title="Mine")
        _notify(other, title="Theirs")

        resp = client_for(officer).get(NOTIFICATIONS_URL)
        assert resp.status_code == status.HTTP_200_OK
        assert [n["title"] for n in resp.data] == ["Mine"]

    def test_unread_filter_and_count(self, client_for, officer):
        _notify(officer, title="Read", is_read=True)
        _notify(officer, title="Unread")
        client = client_for(officer)

        resp = client.get(NOTIFICATIONS_URL, {"unread": "true"})
        assert [n["title"] for n in resp.data] == ["Unread"]
        assert client.get(f"{NOTIFICATIONS_URL}unread-count/").data == {"unread": 1}

    def test_mark_read_and_delete(self, client_for, officer, other):
        mine = _notify(officer)
        theirs = _notify(other)
        client = client_for(officer)

        resp = client.post(f"{NOTIFICATIONS_URL}{mine.pk}/read/")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["is_read"] is True

        assert client.post(f"{NOTIFICATIONS_URL}{theirs.pk}/read/").status_code == status.HTTP_404_NOT_FOUND
        assert client.delete(f"{NOTIFICATIONS_URL}{theirs.pk}/").status_code == status.HTTP_404_NOT_FOUND
        assert client.delete(f"{NOTIFICATIONS_URL}{mine.pk}/").status_code == status.HTTP_204_NO_CONTENT
        assert not Notification.objects.filter(pk=mine.pk).exists()

    def test_read_all(self, client_for, officer):
        _notify(officer)
        resp = client_for(officer).post(f"{NOTIFICATIONS_URL}read-all/")
        assert resp.data == {"updated": 1}
