"""Pydantic schemas for job applications."""

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel


class ApplicationRead(CamelModel):
    id: UUID
    job_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    resume_path: str | None = None
    cover_letter: str | None = None
    good_at: str | None = None
    status: str
    source: str | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationListItem(ApplicationRead):
    job_title: str | None = None
    job_department: str | None = None


class ApplicationDetail(ApplicationListItem):
    suggested_template: str | None = None


class ApplicationStatusUpdate(CamelModel):
    status: str | None = None


class ApplicationStatusResponse(CamelModel):
    """
    Result of a status change.

    `prompt_email` tells the board to offer the suggested template; the
    status itself is already saved.
    """
    success: bool = True
    status: str
    prompt_email: bool
    suggested_template: str | None = None
