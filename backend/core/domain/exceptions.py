"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  Services never let them escape: the
``core.domain.results.returns_outcome`` decorator captures them into a
failure ``Outcome``.  Views call ``outcome.unwrap()``, which re-raises the
carried exception for the global DRF exception handler to render.

Mapping cheatsheet
------------------
┌───────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception      │ Meaning                      │ Code │
├───────────────────────┼──────────────────────────────┼──────┤
│ DomainError           │ generic business rule        │ 400  │
│ ValidationFailure     │ malformed input              │ 400  │
│ AuthenticationFailure │ bad credentials / lockout    │ 401  │
│ PermissionDenied      │ missing permission           │ 403  │
│ NotFound              │ case / officer / user absent │ 404  │
│ Conflict              │ duplicate / state conflict   │ 409  │
│ InvalidTransition     │ rejected lifecycle change    │ 409  │
│ PersistenceFailure    │ store save did not apply     │ 500  │
│ UploadFailure         │ external file upload failed  │ 502  │
└───────────────────────┴──────────────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if new_officer.police_id == case.assigned_officer_id:
        raise InvalidTransition(
            current=case.assigned_officer_id,
            target=new_officer.police_id,
            reason="Case is already assigned to this officer.",
        )
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Rendered as a 400 Bad Request unless a subclass says otherwise.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class ValidationFailure(DomainError):
    """
    Input that is syntactically acceptable to the transport layer but
    violates a domain rule (blank comment, unknown status, weak passcode).

    Maps to HTTP 400.
    """

    def __init__(self, message: str = "The supplied data is invalid.") -> None:
        super().__init__(message)


class AuthenticationFailure(DomainError):
    """
    Credentials were rejected or the account is locked.

    Maps to HTTP 401.
    """

    def __init__(self, message: str = "Invalid credentials.") -> None:
        super().__init__(message)


class PermissionDenied(DomainError):
    """
    The acting user does not have the required role or permission
    for this operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate police id or e-mail at registration.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A lifecycle change that is not allowed from the current state, such
    as handing a case over to the officer who already owns it.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="P-100",
            target="P-100",
            reason="Case is already assigned to this officer.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"— {reason}")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class PersistenceFailure(DomainError):
    """
    The store rejected or failed to apply a write.  The unit of work has
    been rolled back.

    Maps to HTTP 500.
    """

    def __init__(self, message: str = "The change could not be saved.") -> None:
        super().__init__(message)


class UploadFailure(DomainError):
    """
    The external file-storage collaborator failed before any document
    metadata was recorded.

    Maps to HTTP 502.
    """

    def __init__(self, message: str = "The file could not be uploaded.") -> None:
        super().__init__(message)
