"""
core.domain.notifications — Notification outbox and dispatcher.

Service methods never perform notification or e-mail I/O themselves.
They describe what should be sent as ``NotificationEvent`` values and
return them on their ``Outcome``; the caller hands the list to
``dispatch_on_commit`` which runs ``NotificationDispatcher.dispatch``
once the surrounding transaction has committed.

Design decisions
----------------
* **Best effort** — a failed notification row or e-mail is logged and
  dropped.  It can never roll back or fail the case mutation that
  produced it.
* **E-mail-only events** — used when the recipient row is about to
  disappear (account deletion); only the captured address is mailed.
* **Templates** — e-mail bodies are rendered from
  ``core/email/notification.html``.

Usage::

    from core.domain.notifications import NotificationEvent, dispatch_on_commit

    events = [
        NotificationEvent.case_event(
            recipient=officer,
            title="Case Assigned",
            message=f"Case #{case.pk} has been assigned to you.",
            case=case,
            actor=actor,
        ),
    ]
    dispatch_on_commit(events)

Views finish a service call with ``settle(outcome)``, which schedules the
events and unwraps the value.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.template.loader import render_to_string
from django.utils.html import strip_tags

if TYPE_CHECKING:
    from accounts.models import User
    from core.domain.results import Outcome
    from core.models import Notification

logger = logging.getLogger(__name__)


class NotificationType:
    """Values stored in ``Notification.notification_type``."""

    CASE = "case"
    ADMIN = "admin"
    SYSTEM = "system"


@dataclass(frozen=True)
class NotificationEvent:
    """A notification the caller should deliver after commit."""

    recipient_id: int
    title: str
    message: str
    notification_type: str = NotificationType.SYSTEM
    related_case_id: int | None = None
    action_by: str | None = None
    email: str | None = None
    email_only: bool = False

    @classmethod
    def for_user(
        cls,
        recipient: User,
        title: str,
        message: str,
        *,
        notification_type: str = NotificationType.ADMIN,
        actor: User | None = None,
        email_only: bool = False,
    ) -> NotificationEvent:
        return cls(
            recipient_id=recipient.pk,
            title=title,
            message=message,
            notification_type=notification_type,
            action_by=actor.police_id if actor is not None else None,
            email=recipient.email or None,
            email_only=email_only,
        )

    @classmethod
    def case_event(
        cls,
        recipient: User,
        title: str,
        message: str,
        *,
        case: Any,
        actor: User | None = None,
    ) -> NotificationEvent:
        return cls(
            recipient_id=recipient.pk,
            title=title,
            message=message,
            notification_type=NotificationType.CASE,
            related_case_id=case.pk,
            action_by=actor.police_id if actor is not None else None,
            email=recipient.email or None,
        )


class NotificationDispatcher:
    """
    Stateless helper that delivers ``NotificationEvent`` values.

    All methods are classmethods — no instance state is needed.
    """

    EMAIL_TEMPLATE = "core/email/notification.html"

    @classmethod
    def dispatch(cls, events: Iterable[NotificationEvent]) -> list[Notification]:
        """
        Persist and e-mail every event, swallowing (and logging) failures.

        Returns:
            The ``Notification`` rows that were created.
        """
        created: list[Notification] = []
        for event in events:
            notification = None
            if not event.email_only:
                notification = cls._persist(event)
                if notification is not None:
                    created.append(notification)
            cls._send_email(event)

        if created:
            logger.info("Dispatched %d notification(s)", len(created))
        return created

    @classmethod
    def _persist(cls, event: NotificationEvent) -> Notification | None:
        from core.models import Notification  # lazy import — avoids circular deps

        try:
            return Notification.objects.create(
                recipient_id=event.recipient_id,
                title=event.title,
                message=event.message,
                notification_type=event.notification_type,
                related_case_id=event.related_case_id,
                action_by=event.action_by,
            )
        except Exception:
            logger.exception(
                "Could not store notification '%s' for user #%s",
                event.title,
                event.recipient_id,
            )
            return None

    @classmethod
    def _send_email(cls, event: NotificationEvent) -> None:
        if not event.email:
            return
        try:
            html = render_to_string(cls.EMAIL_TEMPLATE, {"event": event})
            send_mail(
                subject=event.title,
                message=strip_tags(html),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[event.email],
                html_message=html,
            )
        except Exception:
            logger.exception(
                "Could not e-mail notification '%s' to %s",
                event.title,
                event.email,
            )


def dispatch_on_commit(events: Iterable[NotificationEvent]) -> None:
    """
    Schedule ``NotificationDispatcher.dispatch`` to run after the current
    transaction commits (immediately when no transaction is open).
    """
    events = list(events)
    if not events:
        return
    transaction.on_commit(functools.partial(NotificationDispatcher.dispatch, events))


def settle(outcome: Outcome) -> Any:
    """
    Schedule the outcome's events and return its value, re-raising the
    carried domain error on failure.

    Events are scheduled for failures too (e.g. "Account Locked" on the
    login attempt that triggered the lockout).
    """
    dispatch_on_commit(outcome.events)
    return outcome.unwrap()
