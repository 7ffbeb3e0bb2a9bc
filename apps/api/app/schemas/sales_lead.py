"""Pydantic schemas for sales leads."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel


class SalesLeadCreate(CamelModel):
    company_name: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    stage: str | None = None
    estimated_value: int | None = Field(default=None, ge=0)  # cents
    currency: str = "USD"
    source: str | None = None
    assigned_to: UUID | None = None
    lost_reason: str | None = None


class SalesLeadUpdate(CamelModel):
    company_name: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    stage: str | None = None
    estimated_value: int | None = Field(default=None, ge=0)
    currency: str | None = None
    source: str | None = None
    assigned_to: UUID | None = None
    lost_reason: str | None = None


class SalesLeadRead(CamelModel):
    id: UUID
    company_name: str
    contact_name: str
    contact_email: str
    contact_phone: str | None = None
    stage: str
    estimated_value: int | None = None
    currency: str
    source: str | None = None
    assigned_to: UUID | None = None
    assigned_to_name: str | None = None
    won_date: datetime | None = None
    lost_date: datetime | None = None
    lost_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class SalesLeadListResponse(CamelModel):
    leads: list[SalesLeadRead]
    sources: list[str]
    stages: list[str]
