"""Tests for the CSV export, stored file downloads and the health check."""
import csv
import io

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.core.deps import get_db
from app.main import app


# =============================================================================
# Export
# =============================================================================

@pytest.mark.asyncio
async def test_export_applications_csv(client: AsyncClient, db, admin, application):
    application.first_name = "=HYPERLINK(\"x\")"
    db.commit()

    response = await client.get("/api/admin/export", params={"type": "applications"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith(
        'attachment; filename="applications-'
    )
    header, row = list(csv.reader(io.StringIO(response.text)))
    assert header == [
        "First Name", "Last Name", "Email", "Phone",
        "Status", "Applied Date", "Job Title", "Department",
    ]
    assert row[0] == "'=HYPERLINK(\"x\")"
    assert row[2:5] == ["jane@example.com", "555-0100", "new"]
    assert row[6:] == ["Virtual Assistant", "Operations"]


@pytest.mark.asyncio
async def test_export_rejects_unknown_type(client: AsyncClient, admin):
    response = await client.get("/api/admin/export", params={"type": "employees"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid export type"}


@pytest.mark.asyncio
async def test_export_needs_permission(client: AsyncClient, login):
    login(permissions=["view_applications"])

    response = await client.get("/api/admin/export", params={"type": "applications"})

    assert response.status_code == 403


# =============================================================================
# Files
# =============================================================================

@pytest.mark.asyncio
async def test_file_requires_session(client: AsyncClient, storage):
    storage.save("resumes/abc.pdf", b"%PDF")

    response = await client.get("/api/files/resumes/abc.pdf")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_file_download_and_inline(client: AsyncClient, login, storage):
    login(permissions=[])
    storage.save("resumes/abc.pdf", b"%PDF")

    attachment = await client.get("/api/files/resumes/abc.pdf")
    inline = await client.get("/api/files/resumes/abc.pdf", params={"inline": "true"})

    assert attachment.content == b"%PDF"
    assert attachment.headers["content-type"] == "application/pdf"
    assert attachment.headers["content-disposition"] == 'attachment; filename="abc.pdf"'
    assert inline.headers["content-disposition"] == 'inline; filename="abc.pdf"'


@pytest.mark.asyncio
async def test_missing_file_is_404(client: AsyncClient, admin):
    response = await client.get("/api/files/resumes/nope.pdf")

    assert response.status_code == 404
    assert response.json() == {"error": "File not found"}


# =============================================================================
# Health
# =============================================================================

@pytest.mark.asyncio
async def test_health_connected(client: AsyncClient):
    response = await client.get("/api/health")

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


class _BrokenSession:
    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_health_disconnected(client: AsyncClient):
    app.dependency_overrides[get_db] = lambda: _BrokenSession()

    response = await client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["database"] == "disconnected"
