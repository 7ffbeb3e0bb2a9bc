"""File storage for resumes and employee documents.

Two backends share one small interface (save / read / delete) keyed by a
relative storage key such as `resumes/<id>.pdf`:
- LocalStorage: files under UPLOAD_DIR (development).
- S3Storage: any S3-compatible bucket (production).
"""

import logging
import mimetypes
import os
import secrets
from dataclasses import dataclass
from pathlib import Path

from botocore.client import BaseClient
from botocore.exceptions import ClientError

from app.core.config import settings
from app.services.storage_client import get_s3_client

logger = logging.getLogger(__name__)


# =============================================================================
# Validation
# =============================================================================

RESUME_MIME_TYPES = {"application/pdf"}
MAX_RESUME_BYTES = 5 * 1024 * 1024  # 5 MB

DOCUMENT_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "image/gif",
}
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024  # 10 MB

EXTENSION_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


class InvalidStorageKey(ValueError):
    pass


def validate_resume(content_type: str | None, size: int) -> str | None:
    """Return an error message, or None when the resume is acceptable."""
    if content_type not in RESUME_MIME_TYPES:
        return "Only PDF files are allowed"
    if size > MAX_RESUME_BYTES:
        return "File too large. Maximum size is 5MB"
    return None


def validate_document(content_type: str | None, size: int) -> str | None:
    if content_type not in DOCUMENT_MIME_TYPES:
        return "Invalid file type. Allowed: PDF, Word documents, and images"
    if size > MAX_DOCUMENT_BYTES:
        return "File too large. Maximum size is 10MB"
    return None


def guess_content_type(key: str) -> str:
    ext = os.path.splitext(key)[1].lower()
    if ext in EXTENSION_MIME_TYPES:
        return EXTENSION_MIME_TYPES[ext]
    return mimetypes.guess_type(key)[0] or "application/octet-stream"


def build_document_key(employee_id: str, filename: str | None) -> str:
    """employees/<id>/<random><ext> so uploads never overwrite each other."""
    ext = os.path.splitext(filename or "")[1].lower()
    return f"employees/{employee_id}/{secrets.token_urlsafe(12)}{ext}"


def check_key(key: str) -> str:
    """Reject traversal and absolute keys."""
    if not key or ".." in key or key.startswith(("/", "\\")):
        raise InvalidStorageKey(key)
    return key


# =============================================================================
# Backends
# =============================================================================

@dataclass
class LocalStorage:
    root: Path

    def _path(self, key: str) -> Path:
        return self.root / check_key(key)

    def save(self, key: str, data: bytes, content_type: str | None = None) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return key

    def read(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


@dataclass
class S3Storage:
    client: BaseClient
    bucket: str

    def save(self, key: str, data: bytes, content_type: str | None = None) -> str:
        extra = {"ContentType": content_type} if content_type else {}
        self.client.put_object(Bucket=self.bucket, Key=check_key(key), Body=data, **extra)
        return key

    def read(self, key: str) -> bytes | None:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=check_key(key))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise
        return response["Body"].read()

    def delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=check_key(key))


def build_storage() -> LocalStorage | S3Storage:
    """Backend selected by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "s3":
        if not settings.S3_BUCKET:
            raise RuntimeError("S3_BUCKET must be set when STORAGE_BACKEND=s3")
        logger.info("Using S3 storage bucket %s", settings.S3_BUCKET)
        return S3Storage(client=get_s3_client(), bucket=settings.S3_BUCKET)
    return LocalStorage(root=Path(settings.UPLOAD_DIR))
