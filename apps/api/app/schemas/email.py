"""Pydantic schemas for email templates, sends and history."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel


class EmailTemplateCreate(CamelModel):
    name: str | None = None
    subject: str | None = None
    body: str | None = None
    trigger_status: str | None = None
    is_active: bool = True


class EmailTemplateUpdate(CamelModel):
    name: str | None = None
    subject: str | None = None
    body: str | None = None
    trigger_status: str | None = None
    is_active: bool | None = None


class EmailTemplateRead(CamelModel):
    id: UUID
    name: str
    subject: str
    body: str
    trigger_status: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TemplatePreviewRequest(CamelModel):
    template_id: UUID | None = None
    subject: str | None = None
    body: str | None = None
    application_id: UUID | None = None


class TemplatePreviewResponse(CamelModel):
    subject: str
    body: str


class SendEmailRequest(CamelModel):
    template_id: UUID | None = None
    subject: str | None = None
    body: str | None = None
    from_address: str | None = Field(default=None, alias="from")


class SendEmailResponse(CamelModel):
    success: bool = True
    email_id: UUID
    message_id: str
    dev_mode: bool
    from_address: str | None = Field(default=None, alias="from")


class SentEmailRead(CamelModel):
    id: UUID
    recipient_email: str
    subject: str
    body: str
    status: str
    error_message: str | None = None
    sent_at: datetime | None = None
    created_at: datetime
    admin_name: str | None = None
    admin_email: str | None = None
    template_name: str | None = None


class EmailHistoryItem(CamelModel):
    id: UUID
    type: Literal["sent", "received"]
    subject: str
    body: str
    timestamp: datetime
    status: str | None = None
    error_message: str | None = None
    admin_name: str | None = None
    admin_email: str | None = None
    template_name: str | None = None
    from_email: str | None = None
    from_name: str | None = None
    body_preview: str | None = None
    is_read: bool | None = None


class EmailIdentityRead(CamelModel):
    id: str
    email: str
    name: str
    label: str


class EmailIdentitiesResponse(CamelModel):
    identities: list[EmailIdentityRead]
    defaults: dict[str, str | None]
    configured: bool


class EmailSyncResponse(CamelModel):
    success: bool = True
    synced: int
    matched: int


class EmailSyncStatus(CamelModel):
    configured: bool
    last_synced_at: datetime | None
    total_received: int
