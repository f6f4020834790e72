"""
core.domain.access — Permission guards shared by the service layers.

Access control is permission-based: roles are bundles of Django
permissions (see ``accounts.management.commands.setup_rbac``) and every
service checks ``user.has_perm`` through ``require_permission`` rather
than comparing role names.

    ┌─────────┐      ┌────────────────┐      ┌──────────────────┐
    │  View   │─────▶│  App service   │─────▶│ core.domain      │
    │ (thin)  │      │ (owns logic)   │      │   .access        │
    └─────────┘      └────────────────┘      └──────────────────┘

Usage in an app's service layer::

    from core.domain.access import require_permission
    from core.permissions_constants import CasesPerms

    require_permission(actor, CasesPerms.full(CasesPerms.CAN_ASSIGN_CASE))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User


def get_user_role_name(user: User) -> str | None:
    """
    Return the role name for a user, or ``None`` if unassigned.

    This is an **informational** helper — used for JWT claims, API
    responses and logging.  Access control should use
    ``require_permission`` / ``user.has_perm()``, never role names.
    """
    role = getattr(user, "role", None)
    if role is None:
        return "Admin" if user.is_superuser else None
    return role.name


def require_permission(user: User, *perms: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user lacks **all** of
    the given permissions (OR-logic: having any one is sufficient).

    Args:
        user:    Authenticated user.
        *perms:  One or more full permission strings (``app.codename``).
        message: Optional custom error message.

    Raises:
        core.domain.exceptions.PermissionDenied: If the user has none
            of the listed permissions.

    Example::

        require_permission(user, "cases.can_approve_case")
    """
    for perm in perms:
        if user.has_perm(perm):
            return
    raise PermissionDenied(
        message or f"Missing required permission: {', '.join(perms)}."
    )
