"""
Document upload tests — ``DocumentStorage`` and
``CaseLifecycleService.add_document`` / ``record_document``.
"""

from __future__ import annotations

from unittest import mock

import pytest
from django.core.files.storage import InMemoryStorage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError

from cases.models import CaseDocument
from cases.services import CaseLifecycleService
from cases.storage import DocumentStorage
from core.domain.exceptions import (
    NotFound,
    PersistenceFailure,
    UploadFailure,
    ValidationFailure,
)


def _upload(name: str = "report.pdf") -> SimpleUploadedFile:
    return SimpleUploadedFile(name, b"%PDF-1.4 test", content_type="application/pdf")


@pytest.fixture()
def officer(create_user):
    return create_user(police_id="P1")


@pytest.fixture()
def case(officer):
    return CaseLifecycleService.create({"title": "Document case"}, officer).unwrap()


class TestDocumentStorage:

    def test_upload_returns_url_under_dated_folder(self):
        storage = DocumentStorage(InMemoryStorage(base_url="/media/"))
        url = storage.upload(_upload("scene photo.pdf"))
        assert url.startswith("/media/case_documents/")
        assert url.endswith("_scene_photo.pdf")

    def test_backend_error_becomes_upload_failure(self):
        backend = mock.Mock()
        backend.save.side_effect = OSError("disk full")
        with pytest.raises(UploadFailure):
            DocumentStorage(backend).upload(_upload())


@pytest.mark.django_db
class TestAddDocument:

    def test_document_recorded(self, case, officer):
        storage = mock.Mock(spec=DocumentStorage)
        storage.upload.return_value = "/media/case_documents/2026/01/abc_report.pdf"

        outcome = CaseLifecycleService.add_document(case.pk, officer, _upload(), storage=storage)

        assert outcome.ok, outcome.reason
        document = outcome.value
        assert document.case_id == case.pk
        assert document.file_name == "report.pdf"
        assert document.file_url == "/media/case_documents/2026/01/abc_report.pdf"
        assert document.uploaded_by == "P1"
        # Uploader is the assigned officer: nobody else to tell.
        assert outcome.events == []

    def test_missing_case_uploads_nothing(self, officer):
        storage = mock.Mock(spec=DocumentStorage)
        outcome = CaseLifecycleService.add_document(777, officer, _upload(), storage=storage)
        assert isinstance(outcome.error, NotFound)
        storage.upload.assert_not_called()

    def test_upload_failure_records_nothing(self, case, officer):
        storage = mock.Mock(spec=DocumentStorage)
        storage.upload.side_effect = UploadFailure("bucket unavailable")

        outcome = CaseLifecycleService.add_document(case.pk, officer, _upload(), storage=storage)

        assert isinstance(outcome.error, UploadFailure)
        assert not CaseDocument.objects.exists()

    def test_metadata_failure_reports_orphaned_url(self, case, officer):
        storage = mock.Mock(spec=DocumentStorage)
        storage.upload.return_value = "/media/case_documents/orphan.pdf"

        with mock.patch.object(CaseDocument.objects, "create", side_effect=DatabaseError("boom")):
            outcome = CaseLifecycleService.add_document(case.pk, officer, _upload(), storage=storage)

        assert isinstance(outcome.error, PersistenceFailure)
        assert "/media/case_documents/orphan.pdf" in outcome.reason
        assert not CaseDocument.objects.exists()

    def test_record_document_metadata_only(self, case, create_user, officer):
        other = create_user(police_id="P9")
        outcome = CaseLifecycleService.record_document(
            case.pk, other, "statement.docx", "https://files.example/statement.docx"
        )
        assert outcome.ok, outcome.reason
        assert outcome.value.uploaded_by == "P9"
        assert [e.recipient_id for e in outcome.events] == [officer.pk]

    def test_record_document_requires_name_and_url(self, case, officer):
        outcome = CaseLifecycleService.record_document(case.pk, officer, "", "")
        assert isinstance(outcome.error, ValidationFailure)
