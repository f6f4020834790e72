"""
Management command tests — ``setup_rbac``.

Verifies that the seeded roles carry the permissions the services
check, that the command is idempotent, and that the optional first
Admin account is created.
"""

from __future__ import annotations

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command
from django.test import TestCase

from accounts.models import Role
from core.permissions_constants import AccountsPerms, CasesPerms

User = get_user_model()


def _codenames(role: Role) -> set[str]:
    return {
        f"{p.content_type.app_label}.{p.codename}"
        for p in role.permissions.select_related("content_type")
    }


class TestSetupRbac(TestCase):

    def _run(self, *args):
        out = StringIO()
        call_command("setup_rbac", *args, stdout=out)
        return out.getvalue()

    def test_roles_and_hierarchy(self):
        self._run()
        levels = dict(Role.objects.values_list("name", "hierarchy_level"))
        self.assertEqual(levels, {"Admin": 100, "Supervisor": 50, "Officer": 10})

    def test_permission_split(self):
        self._run()
        admin = _codenames(Role.objects.get(name="Admin"))
        supervisor = _codenames(Role.objects.get(name="Supervisor"))
        officer = _codenames(Role.objects.get(name="Officer"))

        self.assertIn(CasesPerms.full(CasesPerms.CAN_AUTO_APPROVE_CASE), admin)
        self.assertIn(AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS), admin)

        self.assertIn(CasesPerms.full(CasesPerms.CAN_APPROVE_CASE), supervisor)
        self.assertIn(CasesPerms.full(CasesPerms.CAN_ASSIGN_CASE), supervisor)
        self.assertNotIn(CasesPerms.full(CasesPerms.CAN_AUTO_APPROVE_CASE), supervisor)
        self.assertNotIn(AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS), supervisor)

        self.assertIn(CasesPerms.full(CasesPerms.ADD_CASE), officer)
        self.assertNotIn(CasesPerms.full(CasesPerms.CAN_APPROVE_CASE), officer)
        self.assertNotIn(CasesPerms.full(CasesPerms.DELETE_CASE), officer)

    def test_idempotent(self):
        self._run()
        first = {r.name: _codenames(r) for r in Role.objects.all()}
        output = self._run()
        second = {r.name: _codenames(r) for r in Role.objects.all()}

        self.assertEqual(first, second)
        self.assertEqual(Role.objects.count(), 3)
        self.assertIn("3 role(s) updated", output)
        self.assertNotIn("not found", output)

    def test_creates_first_admin(self):
        self._run("--admin-police-id", "ADMIN001", "--admin-password", "Adm1n!Passcode")
        admin = User.objects.get(police_id="ADMIN001")
        self.assertEqual(admin.email, "admin@caserelay.com")
        self.assertEqual(admin.role.name, "Admin")
        self.assertTrue(admin.check_password("Adm1n!Passcode"))

    def test_admin_password_required_for_new_account(self):
        with self.assertRaises(CommandError):
            self._run("--admin-police-id", "ADMIN002")
