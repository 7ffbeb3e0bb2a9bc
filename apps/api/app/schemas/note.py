"""Pydantic schemas for notes (applications, employees, sales leads)."""

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel


class NoteCreate(CamelModel):
    content: str | None = None
    category: str | None = None


class NoteUpdate(CamelModel):
    note_id: UUID
    content: str | None = None
    category: str | None = None


class NoteRead(CamelModel):
    id: UUID
    content: str
    category: str | None = None
    admin_user_id: UUID
    author_name: str | None = None
    author_email: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
