"""
Integration tests — Cases API.

Endpoints under test (``cases`` namespace, router basename ``case``):
    /api/cases/                       list / create
    /api/cases/{id}/                  retrieve / partial_update / destroy
    /api/cases/mine/, search/, statistics/
    /api/cases/{id}/approve/, status/, assign/, handover/, comments/, documents/
"""

from __future__ import annotations

import shutil
import tempfile
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import Role
from cases.models import Case, CaseStatus
from core.models import Notification

User = get_user_model()

_PASSCODE = "Str0ng!Pass99"


class CasesApiTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        call_command("setup_rbac", stdout=StringIO())
        roles = {role.name: role for role in Role.objects.all()}

        def _user(police_id, role):
            return User.objects.create_user(
                police_id=police_id,
                email=f"{police_id.lower()}@police.test",
                password=_PASSCODE,
                first_name="Test",
                last_name=police_id,
                role=roles[role],
            )

        cls.officer = _user("P100", "Officer")
        cls.other_officer = _user("P200", "Officer")
        cls.supervisor = _user("S100", "Supervisor")
        cls.admin = _user("A100", "Admin")

    def setUp(self):
        self.client = APIClient()

    def _as(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
        return self.client

    def _create_case(self, user=None, **payload):
        payload.setdefault("title", "Burglary")
        resp = self._as(user or self.officer).post(reverse("cases:case-list"), payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        return resp.data


class TestCaseCrud(CasesApiTestCase):

    def test_requires_authentication(self):
        resp = self.client.get(reverse("cases:case-list"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_and_retrieve(self):
        data = self._create_case(description="Window smashed", category="Property")

        self.assertEqual(data["status"], CaseStatus.PENDING)
        self.assertEqual(data["assigned_officer_id"], "P100")
        self.assertEqual(data["created_by"], "P100")
        self.assertFalse(data["is_approved"])
        self.assertTrue(data["case_number"].startswith("CR-"))

        resp = self.client.get(reverse("cases:case-detail", args=[data["id"]]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["comments"], [])
        self.assertEqual(resp.data["documents"], [])

    def test_create_rejects_unknown_status(self):
        resp = self._as(self.officer).post(
            reverse("cases:case-list"), {"title": "X", "status": "Frozen"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Case.objects.exists())

    def test_retrieve_missing_case(self):
        resp = self._as(self.officer).get(reverse("cases:case-detail", args=[9999]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_and_mine(self):
        self._create_case(self.officer, title="one")
        self._create_case(self.other_officer, title="two")

        resp = self._as(self.officer).get(reverse("cases:case-list"))
        self.assertEqual(len(resp.data), 2)

        resp = self.client.get(reverse("cases:case-mine"))
        self.assertEqual([c["title"] for c in resp.data], ["one"])

    def test_partial_update(self):
        data = self._create_case()
        resp = self._as(self.officer).patch(
            reverse("cases:case-detail", args=[data["id"]]), {"severity": "High"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["severity"], "High")

    def test_delete_requires_admin(self):
        data = self._create_case()
        url = reverse("cases:case-detail", args=[data["id"]])

        self.assertEqual(self._as(self.officer).delete(url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self._as(self.admin).delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Case.objects.exists())


class TestCaseLifecycleEndpoints(CasesApiTestCase):

    def test_approve(self):
        data = self._create_case()
        url = reverse("cases:case-approve", args=[data["id"]])

        self.assertEqual(self._as(self.officer).post(url).status_code, status.HTTP_403_FORBIDDEN)

        with self.captureOnCommitCallbacks(execute=True):
            resp = self._as(self.supervisor).post(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["is_approved"])
        self.assertTrue(
            Notification.objects.filter(recipient=self.officer, title="Case Approved").exists()
        )

    def test_status_change(self):
        data = self._create_case()
        url = reverse("cases:case-change-status", args=[data["id"]])

        resp = self._as(self.officer).patch(url, {"status": "Closed"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["is_closed"])
        self.assertIsNotNone(resp.data["resolved_at"])

        resp = self.client.patch(url, {"status": "Bogus"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Case.objects.get().status, CaseStatus.CLOSED)

    def test_assign(self):
        data = self._create_case()
        url = reverse("cases:case-assign", args=[data["id"]])

        resp = self._as(self.supervisor).post(url, {"officer_id": "P200"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["kind"], "direct")
        self.assertIsNone(resp.data["previous_officer_id"])
        self.assertEqual(resp.data["case"]["assigned_officer_id"], "P200")

        resp = self.client.post(url, {"officer_id": "NOBODY"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_handover(self):
        data = self._create_case()
        url = reverse("cases:case-handover", args=[data["id"]])

        with self.captureOnCommitCallbacks(execute=True):
            resp = self._as(self.officer).post(url, {"new_officer_id": "P200"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["kind"], "handover")
        self.assertEqual(resp.data["previous_officer_id"], "P100")
        self.assertEqual(
            resp.data["audit_comment"]["text"],
            "Case handed over from officer P100 to officer P200.",
        )
        self.assertTrue(Notification.objects.filter(recipient=self.other_officer).exists())

        resp = self.client.post(url, {"new_officer_id": "P200"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Case.objects.get().comments.count(), 1)

    def test_comments(self):
        data = self._create_case()
        url = reverse("cases:case-comments", args=[data["id"]])

        resp = self._as(self.other_officer).post(url, {"text": "Suspect seen nearby."}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["comments"][0]["author_id"], "P200")

        resp = self.client.post(url, {"text": "  "}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search(self):
        self._create_case(title="Stolen car")
        self._create_case(title="Lost dog")

        resp = self._as(self.officer).get(reverse("cases:case-search"), {"keyword": "car"})
        self.assertEqual([c["title"] for c in resp.data], ["Stolen car"])

        resp = self.client.get(reverse("cases:case-search"))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_statistics(self):
        self._create_case()
        self.assertEqual(
            self._as(self.officer).get(reverse("cases:case-statistics")).status_code,
            status.HTTP_403_FORBIDDEN,
        )
        resp = self._as(self.supervisor).get(reverse("cases:case-statistics"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["by_status"]["Pending"], 1)
        self.assertEqual(resp.data["total"], 1)


class TestCaseDocumentUpload(CasesApiTestCase):

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

    def test_upload_document(self):
        data = self._create_case()
        with override_settings(MEDIA_ROOT=self.media_root):
            resp = self._as(self.officer).post(
                reverse("cases:case-documents", args=[data["id"]]),
                {"file": SimpleUploadedFile("evidence.txt", b"log lines")},
                format="multipart",
            )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["file_name"], "evidence.txt")
        self.assertIn("case_documents/", resp.data["file_url"])
        self.assertEqual(resp.data["uploaded_by"], "P100")
