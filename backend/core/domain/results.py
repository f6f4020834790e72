"""
core.domain.results — Success/failure results for service operations.

Service methods report expected business conditions (case not found,
no-op handover, locked account…) as a failure ``Outcome`` carrying the
domain exception and its human-readable reason, instead of letting the
exception escape.  Successful outcomes also carry the notification
events the caller should dispatch once the transaction has committed.

Usage inside a service::

    from core.domain.results import Outcome, returns_outcome

    class CaseLifecycleService:
        @staticmethod
        @returns_outcome
        @transaction.atomic
        def approve(case_id, actor):
            case = _load_case(case_id)          # may raise NotFound
            ...
            return Outcome.success(case, events=[...])

Usage in a view::

    outcome = CaseLifecycleService.approve(pk, request.user)
    case = outcome.unwrap()                    # re-raises on failure
    dispatch_on_commit(outcome.events)

``returns_outcome`` must wrap ``transaction.atomic`` (i.e. be listed
above it) so that a raised domain error rolls the unit of work back
before it is converted into a failure outcome.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from django.db import DatabaseError

from core.domain.exceptions import DomainError, PersistenceFailure

if TYPE_CHECKING:
    from core.domain.notifications import NotificationEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Result of a service operation."""

    value: T | None = None
    error: DomainError | None = None
    events: list[NotificationEvent] = field(default_factory=list)

    @classmethod
    def success(
        cls,
        value: T | None = None,
        *,
        events: list[NotificationEvent] | None = None,
    ) -> Outcome[T]:
        return cls(value=value, events=list(events or []))

    @classmethod
    def failure(
        cls,
        error: DomainError,
        *,
        events: list[NotificationEvent] | None = None,
    ) -> Outcome[T]:
        return cls(error=error, events=list(events or []))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str:
        """Human-readable failure reason (empty on success)."""
        return self.error.message if self.error is not None else ""

    def unwrap(self) -> T:
        """Return the value, or raise the carried domain error."""
        if self.error is not None:
            raise self.error
        return self.value


def returns_outcome(fn: Callable[..., Any]) -> Callable[..., Outcome]:
    """
    Convert a service function's raised errors into failure outcomes.

    * ``DomainError`` → ``Outcome.failure(exc)`` (logged at INFO).
    * ``DatabaseError`` → ``Outcome.failure(PersistenceFailure)`` (logged
      with traceback).
    * Any other return value that is not already an ``Outcome`` is
      wrapped with ``Outcome.success``.

    No retries are attempted.
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Outcome:
        try:
            result = fn(*args, **kwargs)
        except DomainError as exc:
            logger.info("%s rejected: %s", fn.__qualname__, exc.message)
            return Outcome.failure(exc)
        except DatabaseError:
            logger.exception("%s failed to persist", fn.__qualname__)
            return Outcome.failure(PersistenceFailure())
        if isinstance(result, Outcome):
            return result
        return Outcome.success(result)

    return wrapper
