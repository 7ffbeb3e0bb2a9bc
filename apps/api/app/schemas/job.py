"""Pydantic schemas for job postings."""

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel


class JobCreate(CamelModel):
    # Required fields are checked by the service so the API can answer
    # with a single "Missing required fields" message.
    title: str | None = None
    department: str | None = None
    location: str | None = None
    description: str | None = None
    salary_range: str | None = None
    requirements: list[str] | None = None
    responsibilities: list[str] | None = None
    is_active: bool = True


class JobUpdate(CamelModel):
    title: str | None = None
    department: str | None = None
    location: str | None = None
    description: str | None = None
    salary_range: str | None = None
    requirements: list[str] | None = None
    responsibilities: list[str] | None = None
    is_active: bool | None = None


class JobRead(CamelModel):
    id: UUID
    title: str
    department: str
    location: str
    description: str
    salary_range: str | None = None
    requirements: list[str] | None = None
    responsibilities: list[str] | None = None
    is_active: bool
    view_count: int
    created_at: datetime
    updated_at: datetime


class AdminJobRead(JobRead):
    application_count: int = 0


class Pagination(CamelModel):
    limit: int
    offset: int
    total: int
    has_more: bool


class JobListResponse(CamelModel):
    data: list[JobRead]
    pagination: Pagination
