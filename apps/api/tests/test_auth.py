"""Tests for magic-code authentication and sessions."""
from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.core.deps import COOKIE_NAME
from app.core.permissions import ALL_PERMISSIONS
from app.core.security import MAGIC_CODE_ALPHABET, decode_session_token
from app.db.models import AdminUser, AuthSession, MagicLinkToken
from app.db.types import utcnow
from app.services import auth_service


def _codes_for(db, email: str) -> list[MagicLinkToken]:
    return (
        db.query(MagicLinkToken)
        .filter(MagicLinkToken.email == email)
        .order_by(MagicLinkToken.created_at)
        .all()
    )


# =============================================================================
# Service level
# =============================================================================

def test_magic_code_is_single_use(db):
    code = auth_service.create_magic_code(db, "ops@taskclearers.com")

    assert auth_service.verify_magic_code(db, "ops@taskclearers.com", code) is True
    assert auth_service.verify_magic_code(db, "ops@taskclearers.com", code) is False


def test_magic_code_expires(db):
    code = auth_service.create_magic_code(db, "ops@taskclearers.com")
    record = db.query(MagicLinkToken).filter(MagicLinkToken.token == code).one()
    record.expires_at = utcnow() - timedelta(seconds=1)
    db.commit()

    assert auth_service.verify_magic_code(db, "ops@taskclearers.com", code) is False


def test_magic_code_bound_to_email(db):
    code = auth_service.create_magic_code(db, "ops@taskclearers.com")

    assert auth_service.verify_magic_code(db, "other@taskclearers.com", code) is False
    # Failed attempt for another email does not consume the code
    assert auth_service.verify_magic_code(db, "ops@taskclearers.com", code) is True


def test_magic_code_shape(db):
    code = auth_service.create_magic_code(db, "ops@taskclearers.com")

    assert len(code) == 8
    assert set(code) <= set(MAGIC_CODE_ALPHABET)
    assert not set(code) & set("01OI")


def test_first_user_gets_every_permission(db):
    first = auth_service.get_or_create_user(db, "first@taskclearers.com")
    db.commit()
    second = auth_service.get_or_create_user(db, "second@taskclearers.com")
    db.commit()

    assert sorted(first.permissions) == sorted(ALL_PERMISSIONS)
    assert second.permissions == []


def test_get_or_create_user_is_idempotent(db):
    first = auth_service.get_or_create_user(db, "First@TaskClearers.com")
    db.commit()
    again = auth_service.get_or_create_user(db, "first@taskclearers.com")

    assert again.id == first.id
    assert db.query(AdminUser).count() == 1


def test_session_token_round_trip(db):
    token = auth_service.create_session(db, "first@taskclearers.com")

    session = auth_service.get_session(db, token)
    payload = decode_session_token(token)

    assert session is not None
    assert session.email == "first@taskclearers.com"
    assert payload["sessionId"] == str(session.session_id)
    assert sorted(session.permissions) == sorted(ALL_PERMISSIONS)


def test_deleted_session_row_invalidates_token(db):
    token = auth_service.create_session(db, "first@taskclearers.com")
    session = auth_service.get_session(db, token)

    auth_service.delete_session(db, session.session_id)

    assert auth_service.get_session(db, token) is None


def test_session_reads_live_permissions(db):
    token = auth_service.create_session(db, "first@taskclearers.com")
    user = db.query(AdminUser).one()
    user.permissions = ["view_jobs"]
    db.commit()

    session = auth_service.get_session(db, token)

    assert session.permissions == ["view_jobs"]


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_invalid_tokens_resolve_to_no_session(db, token):
    assert auth_service.get_session(db, token) is None


# =============================================================================
# Endpoints
# =============================================================================

@pytest.mark.asyncio
async def test_login_rejects_foreign_domain(client: AsyncClient):
    response = await client.post("/api/auth/login", json={"email": "someone@gmail.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Only @taskclearers.com emails are allowed"}


@pytest.mark.asyncio
async def test_login_requires_email(client: AsyncClient):
    response = await client.post("/api/auth/login", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Email is required"


@pytest.mark.asyncio
async def test_login_sends_code_by_email(client: AsyncClient, db, mail_client):
    response = await client.post("/api/auth/login", json={"email": "Ops@TaskClearers.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    [code] = _codes_for(db, "ops@taskclearers.com")
    assert mail_client.sent[0]["to"] == "ops@taskclearers.com"
    assert code.token in mail_client.sent[0]["body"]


@pytest.mark.asyncio
async def test_login_succeeds_when_mail_fails(client: AsyncClient, db, mail_client):
    mail_client.fail = "Graph down"

    response = await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})

    assert response.status_code == 200
    assert len(_codes_for(db, "ops@taskclearers.com")) == 1


@pytest.mark.asyncio
async def test_earlier_code_still_valid_after_second_request(client: AsyncClient, db):
    await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})
    await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})
    first, second = _codes_for(db, "ops@taskclearers.com")

    assert first.token != second.token
    assert len(first.token) == len(second.token) == 8

    response = await client.post(
        "/api/auth/verify", json={"email": "ops@taskclearers.com", "token": first.token}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_verify_sets_cookie_and_me_works(client: AsyncClient, db):
    await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})
    [code] = _codes_for(db, "ops@taskclearers.com")

    response = await client.post(
        "/api/auth/verify",
        json={"email": "ops@taskclearers.com", "token": code.token.lower()},
    )
    assert response.status_code == 200
    assert COOKIE_NAME in response.cookies

    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "ops@taskclearers.com"
    assert sorted(body["permissions"]) == sorted(ALL_PERMISSIONS)


@pytest.mark.asyncio
async def test_verify_rejects_reused_code(client: AsyncClient, db):
    await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})
    [code] = _codes_for(db, "ops@taskclearers.com")
    payload = {"email": "ops@taskclearers.com", "token": code.token}

    assert (await client.post("/api/auth/verify", json=payload)).status_code == 200
    response = await client.post("/api/auth/verify", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired code"}


@pytest.mark.asyncio
async def test_verify_requires_both_fields(client: AsyncClient):
    response = await client.post("/api/auth/verify", json={"email": "ops@taskclearers.com"})

    assert response.status_code == 400
    assert response.json()["error"] == "Email and token are required"


@pytest.mark.asyncio
async def test_login_rate_limited_per_email(client: AsyncClient):
    for _ in range(5):
        ok = await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})
        assert ok.status_code == 200

    response = await client.post("/api/auth/login", json={"email": "ops@taskclearers.com"})

    assert response.status_code == 429
    assert "Retry-After" in response.headers


@pytest.mark.asyncio
async def test_me_requires_session(client: AsyncClient):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_logout_deletes_session(client: AsyncClient, db, admin):
    assert db.query(AuthSession).count() == 1

    response = await client.post("/api/auth/logout")

    assert response.status_code == 200
    assert db.query(AuthSession).count() == 0
    client.cookies.clear()
    assert (await client.get("/api/auth/me")).status_code == 401
