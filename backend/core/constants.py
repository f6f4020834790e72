"""
Core constants — **Single Source of Truth** for project-wide magic values.

Any business rule that references one of these values should import it
from here instead of hardcoding.  Deploy-tunable values are read from
Django settings (see ``caserelay.env``).
"""

from django.conf import settings

# ── Case assignment ─────────────────────────────────────────────────
# Stored in ``Case.assigned_officer_id`` when the owning officer's
# account is deleted.
UNASSIGNED_OFFICER_ID: str = getattr(settings, "CASE_UNASSIGNED_OFFICER_ID", "Unassigned")

# Author recorded on audit comments written by the system itself.
SYSTEM_AUTHOR_ID: str = "System"

# Sentinels above are not officers; no account may hold them as police ID.
RESERVED_POLICE_IDS: frozenset[str] = frozenset(
    {UNASSIGNED_OFFICER_ID.casefold(), SYSTEM_AUTHOR_ID.casefold()}
)


def is_reserved_police_id(police_id) -> bool:
    return str(police_id or "").strip().casefold() in RESERVED_POLICE_IDS

# ── Account lockout ─────────────────────────────────────────────────
LOCKOUT_THRESHOLD: int = getattr(settings, "ACCOUNT_LOCKOUT_THRESHOLD", 5)
LOCKOUT_MINUTES: int = getattr(settings, "ACCOUNT_LOCKOUT_MINUTES", 30)

# ── Role names seeded by ``setup_rbac`` ─────────────────────────────
ADMIN_ROLE: str = "Admin"
SUPERVISOR_ROLE: str = "Supervisor"
OFFICER_ROLE: str = "Officer"

# Minimum passcode length accepted at registration / change
MIN_PASSCODE_LENGTH: int = 6
