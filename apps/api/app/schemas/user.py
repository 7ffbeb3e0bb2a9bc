"""Pydantic schemas for admin user management."""

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel


class AdminUserRead(CamelModel):
    id: UUID
    email: str
    name: str | None = None
    permissions: list[str]
    created_at: datetime
    last_login_at: datetime | None = None


class PermissionOption(CamelModel):
    key: str
    label: str


class PermissionGroup(CamelModel):
    label: str
    permissions: list[PermissionOption]


class UserListResponse(CamelModel):
    users: list[AdminUserRead]
    permission_groups: list[PermissionGroup]


class AdminUserUpdate(CamelModel):
    name: str | None = None
    permissions: list[str] | None = None
