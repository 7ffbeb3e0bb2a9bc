"""Pydantic schemas for the public event beacon and the dashboard."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class TrackEventRequest(CamelModel):
    event_type: str | None = None
    job_id: UUID | None = None
    details: dict[str, Any] | None = Field(default=None, alias="metadata")


class TimeSeriesPoint(BaseModel):
    # Keys are event type names, so no camelCase aliasing here
    date: str
    page_view: int = 0
    job_view: int = 0
    application_start: int = 0
    application_submit: int = 0


class FunnelStage(CamelModel):
    stage: str
    label: str
    count: int
    rate: float


class SourceCount(CamelModel):
    source: str
    count: int


class TopJob(CamelModel):
    job_id: UUID
    title: str
    views: int


class AnalyticsResponse(CamelModel):
    time_series: list[TimeSeriesPoint]
    funnel: list[FunnelStage]
    sources: list[SourceCount]
    top_jobs: list[TopJob]
