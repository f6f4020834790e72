"""
File upload collaborator for case documents.

Uploads go through Django's ``default_storage`` so that the backend
(local media directory, S3 via django-storages, …) is a settings
concern.  The service only ever sees ``upload(file) -> url``.
"""

from __future__ import annotations

import logging
import posixpath

from django.core.files.storage import Storage, default_storage
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.text import get_valid_filename

from core.domain.exceptions import UploadFailure

logger = logging.getLogger(__name__)


class DocumentStorage:
    """Stores uploaded case documents and returns their public URL."""

    UPLOAD_DIR = "case_documents"

    def __init__(self, storage: Storage | None = None) -> None:
        self.storage = storage or default_storage

    def upload(self, file) -> str:
        """
        Save ``file`` under ``case_documents/<year>/<month>/`` and return
        its URL.

        Raises:
            UploadFailure: if the storage backend rejects the file.
        """
        name = get_valid_filename(posixpath.basename(getattr(file, "name", "") or "document"))
        now = timezone.now()
        path = posixpath.join(
            self.UPLOAD_DIR,
            f"{now:%Y}",
            f"{now:%m}",
            f"{get_random_string(8)}_{name}",
        )
        try:
            saved = self.storage.save(path, file)
            url = self.storage.url(saved)
        except Exception as exc:
            logger.exception("Upload of %s failed", name)
            raise UploadFailure(f"The file '{name}' could not be uploaded.") from exc

        logger.info("Uploaded %s to %s", name, saved)
        return url
