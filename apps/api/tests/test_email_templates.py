"""Tests for email templates: CRUD, previews, rendering and defaults."""
import uuid

import pytest
from httpx import AsyncClient

from app.db.models import EmailTemplate
from app.services import template_service


def test_render_leaves_unknown_tokens():
    rendered = template_service.render_text(
        "Hi {{applicant_first}}, re {{unknown_thing}}", {"applicant_first": "Jane"}
    )

    assert rendered == "Hi Jane, re {{unknown_thing}}"


def test_seed_default_templates_is_idempotent(db):
    assert template_service.seed_default_templates(db) == len(template_service.DEFAULT_TEMPLATES)
    assert template_service.seed_default_templates(db) == 0

    rejection = template_service.get_template_by_name(db, "rejection")
    assert rejection.trigger_status == "rejected"


@pytest.mark.asyncio
async def test_template_crud(client: AsyncClient, db, admin):
    created = await client.post(
        "/api/admin/email-templates",
        json={"name": "welcome", "subject": "Welcome", "body": "<p>Hi</p>"},
    )
    assert created.status_code == 201
    template = created.json()
    assert template["isActive"] is True

    updated = await client.patch(
        f"/api/admin/email-templates/{template['id']}", json={"subject": "Welcome aboard"}
    )
    assert updated.json()["subject"] == "Welcome aboard"

    deleted = await client.delete(f"/api/admin/email-templates/{template['id']}")
    assert deleted.status_code == 200
    row = db.get(EmailTemplate, uuid.UUID(template["id"]))
    db.refresh(row)
    assert row.is_active is False


@pytest.mark.asyncio
async def test_create_validation(client: AsyncClient, admin):
    await client.post(
        "/api/admin/email-templates",
        json={"name": "welcome", "subject": "Welcome", "body": "<p>Hi</p>"},
    )

    missing = await client.post("/api/admin/email-templates", json={"name": "x", "subject": "s"})
    duplicate = await client.post(
        "/api/admin/email-templates",
        json={"name": "welcome", "subject": "Again", "body": "<p>Hi</p>"},
    )

    assert missing.json() == {"error": "Name, subject, and body are required"}
    assert duplicate.json() == {"error": "A template with this name already exists"}


@pytest.mark.asyncio
async def test_rename_to_taken_name_is_rejected(client: AsyncClient, db, admin):
    template_service.seed_default_templates(db)
    offer = template_service.get_template_by_name(db, "offer_letter")

    response = await client.patch(
        f"/api/admin/email-templates/{offer.id}", json={"name": "rejection"}
    )
    blank = await client.patch(f"/api/admin/email-templates/{offer.id}", json={"name": " "})

    assert response.status_code == 400
    assert response.json() == {"error": "A template with this name already exists"}
    assert blank.json() == {"error": "Name cannot be empty"}


@pytest.mark.asyncio
async def test_preview_with_sample_values(client: AsyncClient, admin):
    response = await client.post(
        "/api/admin/email-templates/preview",
        json={"subject": "Re: {{job_title}}", "body": "<p>Hi {{applicant_first}}</p>"},
    )

    assert response.json() == {"subject": "Re: Virtual Assistant", "body": "<p>Hi Jane</p>"}


@pytest.mark.asyncio
async def test_preview_stored_template_for_application(
    client: AsyncClient, db, admin, application
):
    template_service.seed_default_templates(db)
    offer = template_service.get_template_by_name(db, "offer_letter")
    application.first_name = "Priya"
    db.commit()

    response = await client.post(
        "/api/admin/email-templates/preview",
        json={"templateId": str(offer.id), "applicationId": str(application.id)},
    )

    body = response.json()
    assert body["subject"] == "Offer: Virtual Assistant at TaskClearers"
    assert "Hi Priya" in body["body"]


@pytest.mark.asyncio
async def test_preview_requires_content(client: AsyncClient, admin):
    empty = await client.post("/api/admin/email-templates/preview", json={})
    missing_app = await client.post(
        "/api/admin/email-templates/preview",
        json={"subject": "s", "body": "b", "applicationId": str(uuid.uuid4())},
    )

    assert empty.json() == {"error": "Template or subject and body are required"}
    assert missing_app.status_code == 404


@pytest.mark.asyncio
async def test_view_only_cannot_create(client: AsyncClient, login):
    login(permissions=["view_applications"])

    response = await client.post(
        "/api/admin/email-templates",
        json={"name": "welcome", "subject": "Welcome", "body": "<p>Hi</p>"},
    )

    assert response.status_code == 403
