"""Tests for public submissions and the admin review pipeline."""
import uuid

import pytest
from httpx import AsyncClient

from app.db.models import AnalyticsEvent, Application, Job, SentEmail


def _form(job: Job, **overrides) -> dict:
    return {
        "jobId": str(job.id),
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@x.com",
        **overrides,
    }


# =============================================================================
# Public submission
# =============================================================================

@pytest.mark.asyncio
async def test_submit_without_resume(client: AsyncClient, db, job):
    response = await client.post("/api/applications", data=_form(job))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    row = db.get(Application, uuid.UUID(body["id"]))
    assert row.status == "new"
    assert row.job_id == job.id
    assert row.resume_path is None
    assert db.query(AnalyticsEvent).filter(
        AnalyticsEvent.event_type == "application_submit"
    ).count() == 1


@pytest.mark.asyncio
async def test_submit_with_resume_stores_pdf(client: AsyncClient, db, job, storage):
    response = await client.post(
        "/api/applications",
        data=_form(job),
        files={"resume": ("cv.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )

    assert response.status_code == 200
    application_id = response.json()["id"]
    row = db.get(Application, uuid.UUID(application_id))
    assert row.resume_path == f"resumes/{application_id}.pdf"
    assert storage.read(row.resume_path) == b"%PDF-1.4 fake"


@pytest.mark.asyncio
async def test_submit_rejects_non_pdf_resume(client: AsyncClient, db, job):
    response = await client.post(
        "/api/applications",
        data=_form(job),
        files={"resume": ("cv.docx", b"PK..", "application/msword")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Only PDF files are allowed"}
    assert db.query(Application).count() == 0


@pytest.mark.asyncio
async def test_submit_requires_fields(client: AsyncClient, job):
    response = await client.post("/api/applications", data=_form(job, lastName=""))

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


@pytest.mark.asyncio
@pytest.mark.parametrize("job_id", ["not-a-uuid", str(uuid.uuid4())])
async def test_submit_unknown_job_is_404(client: AsyncClient, job, job_id):
    response = await client.post("/api/applications", data=_form(job, jobId=job_id))

    assert response.status_code == 404
    assert response.json() == {"error": "Job not found"}


@pytest.mark.asyncio
async def test_submit_notifies_when_configured(client: AsyncClient, job, mail_client, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "NOTIFICATION_EMAIL", "hiring@taskclearers.com")

    await client.post("/api/applications", data=_form(job))

    assert mail_client.sent[0]["to"] == "hiring@taskclearers.com"
    assert mail_client.sent[0]["subject"] == "New application for Virtual Assistant"


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_submission(
    client: AsyncClient, db, job, mail_client, monkeypatch
):
    from app.core.config import settings

    monkeypatch.setattr(settings, "NOTIFICATION_EMAIL", "hiring@taskclearers.com")
    mail_client.fail = "Graph down"

    response = await client.post("/api/applications", data=_form(job))

    assert response.status_code == 200
    assert db.query(Application).count() == 1


@pytest.mark.asyncio
async def test_per_ip_limit_then_other_ip_still_allowed(client: AsyncClient, db, job):
    headers = {"X-Forwarded-For": "203.0.113.7"}
    for _ in range(5):
        ok = await client.post("/api/applications", data=_form(job), headers=headers)
        assert ok.status_code == 200

    limited = await client.post("/api/applications", data=_form(job), headers=headers)
    assert limited.status_code == 429
    assert int(limited.headers["Retry-After"]) > 0
    assert limited.json() == {"error": "Too many applications. Please try again later."}

    other = await client.post(
        "/api/applications", data=_form(job), headers={"X-Forwarded-For": "198.51.100.2"}
    )
    assert other.status_code == 200
    assert db.query(Application).count() == 6


# =============================================================================
# Admin review
# =============================================================================

@pytest.mark.asyncio
async def test_list_includes_job_and_filters(client: AsyncClient, admin, application, job):
    response = await client.get("/api/admin/applications", params={"status": "new"})

    [item] = response.json()
    assert item["jobTitle"] == job.title
    assert item["jobDepartment"] == job.department

    empty = await client.get("/api/admin/applications", params={"search": "nobody"})
    assert empty.json() == []


@pytest.mark.asyncio
async def test_status_change_prompts_for_email(client: AsyncClient, db, admin, application):
    response = await client.patch(
        f"/api/admin/applications/{application.id}", json={"status": "rejected"}
    )

    assert response.json() == {
        "success": True,
        "status": "rejected",
        "promptEmail": True,
        "suggestedTemplate": "rejection",
    }
    db.refresh(application)
    assert application.status == "rejected"


@pytest.mark.asyncio
async def test_status_change_validation(client: AsyncClient, admin, application):
    url = f"/api/admin/applications/{application.id}"

    missing = await client.patch(url, json={})
    invalid = await client.patch(url, json={"status": "archived"})
    unknown = await client.patch(
        f"/api/admin/applications/{uuid.uuid4()}", json={"status": "hired"}
    )

    assert missing.json() == {"error": "Status is required"}
    assert invalid.json() == {"error": "Invalid status"}
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_send_email_renders_and_records(
    client: AsyncClient, db, admin, application, mail_client
):
    response = await client.post(
        f"/api/admin/applications/{application.id}/emails",
        json={"subject": "About {{job_title}}", "body": "<p>Hi {{applicant_first}}</p>"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["devMode"] is False
    assert mail_client.sent == [
        {
            "to": "jane@example.com",
            "subject": "About Virtual Assistant",
            "body": "<p>Hi Jane</p>",
            "from": None,
        }
    ]
    row = db.query(SentEmail).one()
    assert row.status == "sent"
    assert row.message_id == "fake-1"
    assert row.sent_at is not None


@pytest.mark.asyncio
async def test_failed_send_keeps_status_and_marks_failed(
    client: AsyncClient, db, admin, application, mail_client
):
    await client.patch(f"/api/admin/applications/{application.id}", json={"status": "offered"})
    mail_client.fail = "Mailbox not found"

    response = await client.post(
        f"/api/admin/applications/{application.id}/emails",
        json={"subject": "Offer", "body": "<p>Congrats</p>"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send email", "details": "Mailbox not found"}
    row = db.query(SentEmail).one()
    assert row.status == "failed"
    assert row.error_message == "Mailbox not found"
    db.refresh(application)
    assert application.status == "offered"


@pytest.mark.asyncio
async def test_send_email_requires_subject_and_body(client: AsyncClient, admin, application):
    response = await client.post(
        f"/api/admin/applications/{application.id}/emails", json={"subject": "Hi"}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Subject and body are required"}


@pytest.mark.asyncio
async def test_email_history_merges_sent_and_received(
    client: AsyncClient, db, admin, application
):
    from datetime import datetime, timezone

    from app.db.models import ReceivedEmail

    await client.post(
        f"/api/admin/applications/{application.id}/emails",
        json={"subject": "Hello", "body": "<p>Hi</p>"},
    )
    db.add(
        ReceivedEmail(
            application_id=application.id,
            graph_message_id="graph-1",
            from_email=application.email,
            subject="Re: Hello",
            body="<p>Thanks</p>",
            received_at=datetime(2099, 1, 1, tzinfo=timezone.utc),
        )
    )
    db.commit()

    response = await client.get(f"/api/admin/applications/{application.id}/emails")

    assert [(item["type"], item["subject"]) for item in response.json()] == [
        ("received", "Re: Hello"),
        ("sent", "Hello"),
    ]
