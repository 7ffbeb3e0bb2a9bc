"""Tests for the Graph mail client, sender identities and inbox sync."""
import json

import httpx
import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.db.models import ReceivedEmail
from app.services import email_sync_service
from app.services.graph_mail import GraphMailClient, GraphMailError, TokenCache


@pytest.fixture
def hiring_mailbox(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_HIRING", "hiring@taskclearers.com")
    monkeypatch.setattr(settings, "EMAIL_SALES", "sales@taskclearers.com")
    monkeypatch.setattr(settings, "O365_SHARED_MAILBOX", "")
    return settings.EMAIL_HIRING


def _graph_client(handler) -> GraphMailClient:
    return GraphMailClient(
        tenant_id="tenant",
        client_id="client",
        client_secret="secret",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


# =============================================================================
# Token cache
# =============================================================================

def test_token_cache_refreshes_early():
    cache = TokenCache()
    cache.store("abc", expires_in=3600, now=1000.0)

    assert cache.get(now=1000.0) == "abc"
    assert cache.get(now=1000.0 + 3600 - 299) is None

    cache.clear()
    assert cache.get(now=1000.0) is None


# =============================================================================
# Client
# =============================================================================

@pytest.mark.asyncio
async def test_send_reuses_cached_token(hiring_mailbox):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if "oauth2" in request.url.path:
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        return httpx.Response(202)

    client = _graph_client(handler)
    first = await client.send_mail(to="jane@example.com", subject="Hi", body="<p>Hi</p>")
    await client.send_mail(to="jane@example.com", subject="Again", body="<p>Hi</p>")

    token_calls = [c for c in calls if "oauth2" in c.url.path]
    send_calls = [c for c in calls if c.url.path.endswith("/sendMail")]
    assert len(token_calls) == 1
    assert len(send_calls) == 2
    assert send_calls[0].headers["Authorization"] == "Bearer tok"
    assert f"/users/{hiring_mailbox}/sendMail" in send_calls[0].url.path
    payload = json.loads(send_calls[0].content)
    assert payload["message"]["from"]["emailAddress"]["name"] == settings.EMAIL_HIRING_NAME
    assert first.sent is True
    assert first.message_id.startswith("graph-")
    assert first.from_address == hiring_mailbox
    await client.aclose()


@pytest.mark.asyncio
async def test_send_error_raises(hiring_mailbox):
    def handler(request: httpx.Request) -> httpx.Response:
        if "oauth2" in request.url.path:
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        return httpx.Response(404, text="MailboxNotFound")

    client = _graph_client(handler)

    with pytest.raises(GraphMailError, match="404"):
        await client.send_mail(to="jane@example.com", subject="Hi", body="<p>Hi</p>")
    await client.aclose()


@pytest.mark.asyncio
async def test_unconfigured_client_logs_instead_of_sending(monkeypatch):
    for name in ("EMAIL_ADMIN", "EMAIL_SALES", "EMAIL_HIRING", "O365_SHARED_MAILBOX"):
        monkeypatch.setattr(settings, name, "")

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no network call expected")

    client = _graph_client(handler)
    result = await client.send_mail(to="jane@example.com", subject="Hi", body="<p>Hi</p>")

    assert client.configured is False
    assert result.sent is False
    assert result.message_id.startswith("dev-")
    await client.aclose()


@pytest.mark.asyncio
async def test_fetch_inbox_filters_by_since(hiring_mailbox):
    from datetime import datetime, timezone

    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if "oauth2" in request.url.path:
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        seen["filter"] = request.url.params.get("$filter")
        return httpx.Response(200, json={"value": [{"id": "m1"}]})

    client = _graph_client(handler)
    messages = await client.fetch_inbox(since=datetime(2025, 5, 1, 8, 30, tzinfo=timezone.utc))

    assert messages == [{"id": "m1"}]
    assert seen["filter"] == "receivedDateTime ge 2025-05-01T08:30:00Z"
    await client.aclose()


# =============================================================================
# Identities endpoint
# =============================================================================

@pytest.mark.asyncio
async def test_identities_and_defaults(client: AsyncClient, admin, hiring_mailbox):
    response = await client.get("/api/admin/email-identities")

    body = response.json()
    assert [i["id"] for i in body["identities"]] == ["sales", "hiring"]
    assert body["defaults"]["hiring"] == hiring_mailbox
    assert body["defaults"]["sales"] == "sales@taskclearers.com"
    # no admin mailbox configured, so admin contexts fall back to the first identity
    assert body["defaults"]["notification"] == "sales@taskclearers.com"
    assert body["configured"] is True


# =============================================================================
# Inbox sync
# =============================================================================

def _message(graph_id: str, sender: str, received: str = "2025-05-01T09:00:00Z") -> dict:
    return {
        "id": graph_id,
        "conversationId": "conv-1",
        "subject": "Re: Your application",
        "bodyPreview": "Thanks",
        "body": {"content": "<p>Thanks</p>"},
        "from": {"emailAddress": {"address": sender, "name": "Someone"}},
        "receivedDateTime": received,
    }


@pytest.mark.asyncio
async def test_sync_matches_applicants_and_skips_known(db, application, mail_client):
    mail_client.inbox = [
        _message("m1", "JANE@example.com"),
        _message("m2", "stranger@example.com"),
    ]

    first = await email_sync_service.sync_inbox(db, mail_client)
    second = await email_sync_service.sync_inbox(db, mail_client)

    assert (first.synced, first.matched) == (2, 1)
    assert (second.synced, second.matched) == (0, 0)
    matched = db.query(ReceivedEmail).filter(ReceivedEmail.graph_message_id == "m1").one()
    assert matched.application_id == application.id
    unmatched = db.query(ReceivedEmail).filter(ReceivedEmail.graph_message_id == "m2").one()
    assert unmatched.application_id is None


@pytest.mark.asyncio
async def test_sync_endpoint_and_status(client: AsyncClient, admin, application, mail_client):
    mail_client.inbox = [_message("m1", application.email)]

    response = await client.post("/api/admin/emails/sync")
    status = await client.get("/api/admin/emails/sync")

    assert response.json() == {"success": True, "synced": 1, "matched": 1}
    assert status.json()["totalReceived"] == 1
    assert status.json()["lastSyncedAt"] is not None


@pytest.mark.asyncio
async def test_sync_requires_graph(client: AsyncClient, admin, mail_client):
    mail_client.configured = False

    response = await client.post("/api/admin/emails/sync")

    assert response.status_code == 400
    assert response.json() == {"error": "Microsoft Graph is not configured"}
