"""Tests for storage keys, upload validation and the two backends."""
import pytest
from botocore.stub import Stubber

from app.core.config import settings
from app.services import storage_service
from app.services.storage_service import LocalStorage, S3Storage


@pytest.mark.parametrize("key", ["../etc/passwd", "/abs/path.pdf", "", "resumes/../x.pdf"])
def test_check_key_rejects_traversal(key):
    with pytest.raises(storage_service.InvalidStorageKey):
        storage_service.check_key(key)


def test_document_key_keeps_extension_and_is_unique():
    first = storage_service.build_document_key("emp-1", "Contract.PDF")
    second = storage_service.build_document_key("emp-1", "Contract.PDF")

    assert first.startswith("employees/emp-1/")
    assert first.endswith(".pdf")
    assert first != second


def test_resume_validation_messages():
    assert storage_service.validate_resume("application/pdf", 1024) is None
    assert storage_service.validate_resume("image/png", 1024) == "Only PDF files are allowed"
    assert storage_service.validate_resume(
        "application/pdf", storage_service.MAX_RESUME_BYTES + 1
    ) == "File too large. Maximum size is 5MB"


@pytest.mark.parametrize(
    "key, content_type",
    [
        ("resumes/a.pdf", "application/pdf"),
        ("employees/1/b.docx",
         "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("employees/1/c.JPG", "image/jpeg"),
        ("employees/1/d", "application/octet-stream"),
    ],
)
def test_guess_content_type(key, content_type):
    assert storage_service.guess_content_type(key) == content_type


def test_local_storage_round_trip(tmp_path):
    storage = LocalStorage(root=tmp_path)

    storage.save("employees/1/doc.pdf", b"data")

    assert storage.read("employees/1/doc.pdf") == b"data"
    storage.delete("employees/1/doc.pdf")
    assert storage.read("employees/1/doc.pdf") is None


def test_build_storage_defaults_to_local(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))

    assert isinstance(storage_service.build_storage(), LocalStorage)


def test_build_storage_s3_requires_bucket(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "s3")
    monkeypatch.setattr(settings, "S3_BUCKET", "")

    with pytest.raises(RuntimeError):
        storage_service.build_storage()


@pytest.fixture
def s3_storage(monkeypatch) -> S3Storage:
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "s3")
    monkeypatch.setattr(settings, "S3_BUCKET", "taskclearers-files")
    monkeypatch.setattr(settings, "S3_ENDPOINT_URL", "https://r2.example.com/")
    monkeypatch.setattr(settings, "S3_REGION", "")
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", "key")
    monkeypatch.setattr(settings, "AWS_SECRET_ACCESS_KEY", "secret")
    storage = storage_service.build_storage()
    assert isinstance(storage, S3Storage)
    return storage


def test_s3_client_targets_compatible_endpoint(s3_storage):
    assert s3_storage.client.meta.endpoint_url == "https://r2.example.com"
    assert s3_storage.client.meta.region_name == "auto"


def test_s3_missing_object_reads_as_none(s3_storage):
    with Stubber(s3_storage.client) as stub:
        stub.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

        assert s3_storage.read("resumes/x.pdf") is None


def test_s3_other_errors_propagate(s3_storage):
    from botocore.exceptions import ClientError

    with Stubber(s3_storage.client) as stub:
        stub.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(ClientError):
            s3_storage.read("resumes/x.pdf")


def test_s3_save_returns_key(s3_storage):
    with Stubber(s3_storage.client) as stub:
        stub.add_response("put_object", {})

        assert s3_storage.save("resumes/x.pdf", b"%PDF", "application/pdf") == "resumes/x.pdf"
        stub.assert_no_pending_responses()
