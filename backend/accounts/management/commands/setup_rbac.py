"""
Management command: setup_rbac
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the base **Roles** (Admin, Supervisor, Officer)
and links each role to its set of Django permissions.  Optionally
creates the first Admin account.

Key design principle — **this command does NOT create Permission objects**.
Permissions must already exist in the database:
    • Standard CRUD permissions are auto-created by Django after
      ``migrate`` (one per model × {add, change, delete, view}).
    • Custom workflow permissions are declared in each model's
      ``Meta.permissions`` tuple and inserted by ``migrate``.

The command is **idempotent** — safe to run multiple times.  Existing
roles are updated; permissions are replaced (set) to match the
mapping below.

Usage::

    python manage.py setup_rbac
    python manage.py setup_rbac --admin-police-id ADMIN001 \\
        --admin-email admin@caserelay.com --admin-password '...'
"""

from django.contrib.auth.models import Permission
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Role, User
from core.constants import ADMIN_ROLE, OFFICER_ROLE, SUPERVISOR_ROLE
from core.permissions_constants import AccountsPerms, CasesPerms, CorePerms

# ────────────────────────────────────────────────────────────────────
# Role → Permission mapping  (uses constants — zero hard-coded strings)
# ────────────────────────────────────────────────────────────────────
# Key:   (role_name, description, hierarchy_level)
# Value: list of full ``app_label.codename`` strings

_NOTIFICATION_PERMS = [
    CorePerms.full(CorePerms.VIEW_NOTIFICATION),
    CorePerms.full(CorePerms.CHANGE_NOTIFICATION),
    CorePerms.full(CorePerms.DELETE_NOTIFICATION),
]

_CASE_WORK_PERMS = [
    CasesPerms.full(CasesPerms.VIEW_CASE),
    CasesPerms.full(CasesPerms.ADD_CASE),
    CasesPerms.full(CasesPerms.CHANGE_CASE),
    CasesPerms.full(CasesPerms.VIEW_CASECOMMENT),
    CasesPerms.full(CasesPerms.ADD_CASECOMMENT),
    CasesPerms.full(CasesPerms.VIEW_CASEDOCUMENT),
    CasesPerms.full(CasesPerms.ADD_CASEDOCUMENT),
]

ROLE_PERMISSIONS_MAP: dict[tuple[str, str, int], list[str]] = {

    # ── Administrator ───────────────────────────────────────────────
    (
        ADMIN_ROLE,
        "Full system access — manages officers, roles and all cases.",
        100,
    ): [
        # Accounts
        AccountsPerms.full(AccountsPerms.VIEW_ROLE), AccountsPerms.full(AccountsPerms.ADD_ROLE),
        AccountsPerms.full(AccountsPerms.CHANGE_ROLE), AccountsPerms.full(AccountsPerms.DELETE_ROLE),
        AccountsPerms.full(AccountsPerms.VIEW_USER), AccountsPerms.full(AccountsPerms.ADD_USER),
        AccountsPerms.full(AccountsPerms.CHANGE_USER), AccountsPerms.full(AccountsPerms.DELETE_USER),
        AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS),
        AccountsPerms.full(AccountsPerms.CAN_UNLOCK_ACCOUNTS),
        # Cases (standard + custom)
        *_CASE_WORK_PERMS,
        CasesPerms.full(CasesPerms.DELETE_CASE),
        CasesPerms.full(CasesPerms.CHANGE_CASECOMMENT), CasesPerms.full(CasesPerms.DELETE_CASECOMMENT),
        CasesPerms.full(CasesPerms.CHANGE_CASEDOCUMENT), CasesPerms.full(CasesPerms.DELETE_CASEDOCUMENT),
        CasesPerms.full(CasesPerms.CAN_APPROVE_CASE),
        CasesPerms.full(CasesPerms.CAN_AUTO_APPROVE_CASE),
        CasesPerms.full(CasesPerms.CAN_ASSIGN_CASE),
        CasesPerms.full(CasesPerms.CAN_VIEW_STATISTICS),
        # Core
        *_NOTIFICATION_PERMS,
        CorePerms.full(CorePerms.ADD_NOTIFICATION),
    ],

    # ── Supervisor ──────────────────────────────────────────────────
    (
        SUPERVISOR_ROLE,
        "Approves and dispatches cases; oversees officers.",
        50,
    ): [
        AccountsPerms.full(AccountsPerms.VIEW_USER),
        AccountsPerms.full(AccountsPerms.VIEW_ROLE),
        AccountsPerms.full(AccountsPerms.CAN_UNLOCK_ACCOUNTS),
        *_CASE_WORK_PERMS,
        CasesPerms.full(CasesPerms.CAN_APPROVE_CASE),
        CasesPerms.full(CasesPerms.CAN_ASSIGN_CASE),
        CasesPerms.full(CasesPerms.CAN_VIEW_STATISTICS),
        *_NOTIFICATION_PERMS,
    ],

    # ── Officer ─────────────────────────────────────────────────────
    (
        OFFICER_ROLE,
        "Field officer handling assigned cases.",
        10,
    ): [
        AccountsPerms.full(AccountsPerms.VIEW_ROLE),
        *_CASE_WORK_PERMS,
        *_NOTIFICATION_PERMS,
    ],
}


class Command(BaseCommand):
    help = (
        "Seeds the database with base Roles and maps each role to its "
        "Django permissions.  Safe to run multiple times (idempotent).  "
        "Does NOT create permissions — run `migrate` first."
    )

    def add_arguments(self, parser):
        parser.add_argument("--admin-police-id", help="Create (or update) this Admin account.")
        parser.add_argument("--admin-email", default="admin@caserelay.com")
        parser.add_argument("--admin-password", help="Passcode for the Admin account.")

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  RBAC Setup — Seeding Roles & Permissions"
            "\n══════════════════════════════════════════\n"
        ))

        # Pre-fetch ALL permissions into a dict for fast look-up
        all_permissions: dict[str, Permission] = {
            f"{p.content_type.app_label}.{p.codename}": p
            for p in Permission.objects.select_related("content_type").all()
        }

        roles_created = 0
        roles_updated = 0
        warnings = 0

        for (role_name, description, hierarchy_level), perm_names in ROLE_PERMISSIONS_MAP.items():
            # ── 1. Idempotent role creation / update ────────────────
            role, created = Role.objects.get_or_create(
                name=role_name,
                defaults={
                    "description": description,
                    "hierarchy_level": hierarchy_level,
                },
            )

            if not created and (
                role.description != description or role.hierarchy_level != hierarchy_level
            ):
                role.description = description
                role.hierarchy_level = hierarchy_level
                role.save(update_fields=["description", "hierarchy_level"])

            # ── 2. Resolve permission strings ───────────────────────
            resolved_permissions: list[Permission] = []
            for perm_name in perm_names:
                perm = all_permissions.get(perm_name)
                if perm is not None:
                    resolved_permissions.append(perm)
                else:
                    warnings += 1
                    self.stdout.write(self.style.WARNING(
                        f"  ⚠  Permission '{perm_name}' not found — "
                        f"skipped for role '{role_name}'.  "
                        f"(Run migrate first?)"
                    ))

            # ── 3. Set permissions (replaces old set entirely) ──────
            role.permissions.set(resolved_permissions)

            action = "Created" if created else "Updated"
            if created:
                roles_created += 1
            else:
                roles_updated += 1

            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {action} role: {role_name:<20s} "
                f"(hierarchy={hierarchy_level}, "
                f"permissions={len(resolved_permissions)})"
            ))

        if options.get("admin_police_id"):
            self._ensure_admin(options)

        # ── Summary ─────────────────────────────────────────────────
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        summary = (
            f"  Done!  {roles_created} role(s) created, "
            f"{roles_updated} role(s) updated.  "
            f"Total: {roles_created + roles_updated} role(s)."
        )
        if warnings:
            summary += f"  ({warnings} permission warning(s) — see above.)"
        self.stdout.write(self.style.SUCCESS(summary + "\n"))

    def _ensure_admin(self, options):
        police_id = options["admin_police_id"]
        password = options.get("admin_password")
        admin_role = Role.objects.get(name=ADMIN_ROLE)

        user = User.objects.filter(police_id=police_id).first()
        if user is None:
            if not password:
                raise CommandError("--admin-password is required to create the Admin account.")
            user = User.objects.create_user(
                police_id=police_id,
                email=options["admin_email"],
                password=password,
                first_name="System",
                last_name="Admin",
                role=admin_role,
                is_staff=True,
                is_verified=True,
            )
            self.stdout.write(self.style.SUCCESS(f"  ✔  Created admin account: {police_id}"))
        else:
            user.role = admin_role
            user.save(update_fields=["role"])
            self.stdout.write(self.style.SUCCESS(f"  ✔  Admin role ensured for: {police_id}"))
