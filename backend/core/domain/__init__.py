"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF exception handler rendering those exceptions.
results            ``Outcome`` result type and the ``returns_outcome`` decorator.
notifications      Notification events and the after-commit dispatcher.
transactions       Row lookup / locking helpers used inside ``transaction.atomic``.
access             Permission guards.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.results import Outcome, returns_outcome
    from core.domain.notifications import NotificationEvent, dispatch_on_commit
    from core.domain.transactions import get_or_not_found
    from core.domain.access import require_permission
"""
