"""Tests for the permission catalog and route gating."""
import pytest
from httpx import AsyncClient

from app.core.permissions import (
    ALL_PERMISSIONS,
    Permission,
    get_permission_groups,
    has_all_permissions,
    has_any_permission,
    has_permission,
    parse_permissions,
)
from app.db.models import Application


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, []),
        ("not json", []),
        ('{"a": 1}', []),
        ('["view_jobs", "bogus"]', ["view_jobs"]),
        (["manage_users", 3, "view_dashboard"], ["manage_users", "view_dashboard"]),
    ],
)
def test_parse_permissions(raw, expected):
    assert parse_permissions(raw) == expected


def test_permission_predicates():
    owned = ["view_jobs", "view_applications"]

    assert has_permission(owned, Permission.VIEW_JOBS)
    assert not has_permission(owned, "manage_jobs")
    assert has_any_permission(owned, [Permission.MANAGE_JOBS, Permission.VIEW_JOBS])
    assert not has_any_permission(owned, [])
    assert has_all_permissions(owned, ["view_jobs", "view_applications"])
    assert not has_all_permissions(owned, ["view_jobs", "manage_users"])


def test_permission_groups_cover_catalog():
    groups = get_permission_groups()
    keys = [p["key"] for group in groups for p in group["permissions"]]

    assert sorted(keys) == sorted(ALL_PERMISSIONS)
    assert [g["label"] for g in groups] == [
        "Dashboard", "Applications", "Jobs", "Employees", "Sales", "System",
    ]


@pytest.mark.asyncio
async def test_admin_route_without_session_is_401(client: AsyncClient):
    response = await client.get("/api/admin/applications")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_pending_user_is_forbidden(client: AsyncClient, login):
    login(permissions=[])

    response = await client.get("/api/admin/applications")

    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden"}


@pytest.mark.asyncio
async def test_view_only_admin_cannot_change_status(
    client: AsyncClient, db, login, application: Application
):
    login(permissions=["view_applications"])

    response = await client.patch(
        f"/api/admin/applications/{application.id}", json={"status": "hired"}
    )

    assert response.status_code == 403
    db.refresh(application)
    assert application.status == "new"

    # Reads are still allowed
    assert (await client.get(f"/api/admin/applications/{application.id}")).status_code == 200


@pytest.mark.asyncio
async def test_permission_revocation_applies_to_next_request(
    client: AsyncClient, db, login
):
    user = login(permissions=["view_jobs"])
    assert (await client.get("/api/admin/jobs")).status_code == 200

    user.permissions = []
    db.commit()

    assert (await client.get("/api/admin/jobs")).status_code == 403
