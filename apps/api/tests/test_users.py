"""Tests for admin user management."""
import pytest
from httpx import AsyncClient

from app.db.models import AuthSession
from app.services import auth_service


@pytest.mark.asyncio
async def test_list_users_includes_permission_groups(client: AsyncClient, admin):
    response = await client.get("/api/admin/users")

    body = response.json()
    assert [u["email"] for u in body["users"]] == [admin.email]
    keys = {p["key"] for group in body["permissionGroups"] for p in group["permissions"]}
    assert "manage_users" in keys


@pytest.mark.asyncio
async def test_cannot_drop_own_manage_users(client: AsyncClient, admin):
    response = await client.patch(
        f"/api/admin/users/{admin.id}", json={"permissions": ["view_jobs"]}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot remove user management permission from yourself"}


@pytest.mark.asyncio
async def test_changing_others_permissions_revokes_their_sessions(
    client: AsyncClient, db, admin, make_user
):
    other = make_user(permissions=["view_jobs"])
    auth_service.create_session(db, other.email)

    response = await client.patch(
        f"/api/admin/users/{other.id}",
        json={"permissions": ["view_jobs", "manage_jobs", "not_a_permission"]},
    )

    assert response.status_code == 200
    assert response.json()["permissions"] == ["view_jobs", "manage_jobs"]
    assert db.query(AuthSession).filter(AuthSession.user_id == other.id).count() == 0


@pytest.mark.asyncio
async def test_rename_keeps_sessions(client: AsyncClient, db, admin, make_user):
    other = make_user(permissions=["view_jobs"])
    auth_service.create_session(db, other.email)

    response = await client.patch(
        f"/api/admin/users/{other.id}", json={"name": "Renamed", "permissions": ["view_jobs"]}
    )

    assert response.json()["name"] == "Renamed"
    assert db.query(AuthSession).filter(AuthSession.user_id == other.id).count() == 1


@pytest.mark.asyncio
async def test_deactivate(client: AsyncClient, db, admin, make_user):
    other = make_user()
    auth_service.create_session(db, other.email)

    self_attempt = await client.delete(f"/api/admin/users/{admin.id}")
    response = await client.delete(f"/api/admin/users/{other.id}")

    assert self_attempt.status_code == 400
    assert self_attempt.json() == {"error": "Cannot deactivate yourself"}
    assert response.status_code == 200
    db.refresh(other)
    assert other.permissions == []
    assert db.query(AuthSession).filter(AuthSession.user_id == other.id).count() == 0


@pytest.mark.asyncio
async def test_users_require_manage_users(client: AsyncClient, login):
    login(permissions=["view_dashboard"])

    response = await client.get("/api/admin/users")

    assert response.status_code == 403
