"""
Permissions Constants — **Single Source of Truth**

Every permission referenced in code (services, ``setup_rbac``, tests)
MUST use one of the constants defined here.

Organisation
------------
- **Standard CRUD** permissions follow Django's auto-generated naming:
  ``<action>_<model_lowercase>``. They are listed here so that the
  ``setup_rbac`` command can map them to roles without typos.

- **Custom workflow** permissions are constants that map to codenames
  registered via each model's ``Meta.permissions`` tuple. Adding a new
  custom permission requires:
    1. Add the constant below.
    2. Add the ``(codename, description)`` to the related model's
       ``Meta.permissions``.
    3. Run ``makemigrations`` + ``migrate`` to insert it into Django's
       ``auth_permission`` table.
    4. Add the constant to the appropriate role lists in ``setup_rbac``.

All constants store the **codename only** (no ``app_label.`` prefix).
Use ``perm()`` helpers on each class to obtain the full
``app_label.codename`` string expected by ``User.has_perm``.
"""


class _PermGroup:
    """Mixin providing ``full()`` — codename → ``app_label.codename``."""

    APP_LABEL: str = ""

    @classmethod
    def full(cls, codename: str) -> str:
        return f"{cls.APP_LABEL}.{codename}"


# ════════════════════════════════════════════════════════════════════
#  ACCOUNTS APP — Standard CRUD + Custom
# ════════════════════════════════════════════════════════════════════

class AccountsPerms(_PermGroup):
    """Standard CRUD permissions for accounts models."""

    APP_LABEL = "accounts"

    # Role
    VIEW_ROLE = "view_role"
    ADD_ROLE = "add_role"
    CHANGE_ROLE = "change_role"
    DELETE_ROLE = "delete_role"

    # User
    VIEW_USER = "view_user"
    ADD_USER = "add_user"
    CHANGE_USER = "change_user"
    DELETE_USER = "delete_user"

    # ── Custom workflow permissions ─────────────────────────────────
    CAN_MANAGE_USERS = "can_manage_users"
    """Admin-level user management (create, delete, change role, promote)."""

    CAN_UNLOCK_ACCOUNTS = "can_unlock_accounts"
    """Lift a failed-login lockout on an officer account."""


# ════════════════════════════════════════════════════════════════════
#  CASES APP — Standard CRUD + Custom Workflow
# ════════════════════════════════════════════════════════════════════

class CasesPerms(_PermGroup):
    """Standard + custom permissions for the cases app."""

    APP_LABEL = "cases"

    # ── Case — standard CRUD ────────────────────────────────────────
    VIEW_CASE = "view_case"
    ADD_CASE = "add_case"
    CHANGE_CASE = "change_case"
    DELETE_CASE = "delete_case"

    # ── CaseComment — standard CRUD ─────────────────────────────────
    VIEW_CASECOMMENT = "view_casecomment"
    ADD_CASECOMMENT = "add_casecomment"
    CHANGE_CASECOMMENT = "change_casecomment"
    DELETE_CASECOMMENT = "delete_casecomment"

    # ── CaseDocument — standard CRUD ────────────────────────────────
    VIEW_CASEDOCUMENT = "view_casedocument"
    ADD_CASEDOCUMENT = "add_casedocument"
    CHANGE_CASEDOCUMENT = "change_casedocument"
    DELETE_CASEDOCUMENT = "delete_casedocument"

    # ── Custom workflow permissions ─────────────────────────────────
    CAN_APPROVE_CASE = "can_approve_case"
    """Approve a reported case (Admin, Supervisor)."""

    CAN_AUTO_APPROVE_CASE = "can_auto_approve_case"
    """Cases created by this user are approved on creation (Admin)."""

    CAN_ASSIGN_CASE = "can_assign_case"
    """Directly (re)assign a case's officer without a handover."""

    CAN_VIEW_STATISTICS = "can_view_statistics"
    """Read department-wide case statistics."""


# ════════════════════════════════════════════════════════════════════
#  CORE APP — Standard CRUD
# ════════════════════════════════════════════════════════════════════

class CorePerms(_PermGroup):
    """Standard CRUD permissions for core models."""

    APP_LABEL = "core"

    # ── Notification — standard CRUD ────────────────────────────────
    VIEW_NOTIFICATION = "view_notification"
    ADD_NOTIFICATION = "add_notification"
    CHANGE_NOTIFICATION = "change_notification"
    DELETE_NOTIFICATION = "delete_notification"
