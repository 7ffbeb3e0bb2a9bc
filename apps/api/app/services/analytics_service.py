"""Analytics service for the admin dashboard.

Events are written one row at a time by the public beacon and aggregated
here on read. Bucketing happens in Python so the same code runs on SQLite
and Postgres.
"""

from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.security import hash_ip
from app.db.enums import AnalyticsEventType
from app.db.models import AnalyticsEvent, Job
from app.schemas.analytics import (
    AnalyticsResponse,
    FunnelStage,
    SourceCount,
    TimeSeriesPoint,
    TopJob,
)

DEFAULT_RANGE_DAYS = 30
TOP_N = 10
GRANULARITIES = ("daily", "weekly", "monthly")

FUNNEL_LABELS = {
    AnalyticsEventType.PAGE_VIEW.value: "Page Views",
    AnalyticsEventType.JOB_VIEW.value: "Job Views",
    AnalyticsEventType.APPLICATION_START.value: "Applications Started",
    AnalyticsEventType.APPLICATION_SUBMIT.value: "Applications Submitted",
}


# =============================================================================
# Tracking
# =============================================================================

def extract_domain(url: str | None) -> str | None:
    """Hostname without a leading 'www.', or None when unparseable."""
    if not url:
        return None
    hostname = urlparse(url).hostname
    if not hostname:
        return None
    return hostname[4:] if hostname.startswith("www.") else hostname


def track_event(
    db: Session,
    event_type: str,
    *,
    job_id: UUID | None = None,
    details: dict[str, Any] | None = None,
    client_ip: str | None = None,
) -> AnalyticsEvent:
    """
    Store one event.

    Raises:
        ValueError: unknown event type
    """
    if not AnalyticsEventType.has_value(event_type):
        raise ValueError("Invalid event type")

    details = dict(details or {})
    if details.get("referrer"):
        details["referrer_domain"] = extract_domain(details["referrer"])

    event = AnalyticsEvent(
        event_type=event_type,
        job_id=job_id,
        details=details or None,
        ip_hash=hash_ip(client_ip) if client_ip else None,
    )
    db.add(event)
    db.commit()
    return event


# =============================================================================
# Aggregation
# =============================================================================

def resolve_range(
    start_date: date | None,
    end_date: date | None,
) -> tuple[datetime, datetime]:
    """[start of start_date, start of the day after end_date) in UTC."""
    end_date = end_date or datetime.now(timezone.utc).date()
    start_date = start_date or end_date - timedelta(days=DEFAULT_RANGE_DAYS)
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def bucket_key(moment: datetime, granularity: str) -> str:
    """daily YYYY-MM-DD, weekly = Monday of the ISO week, monthly YYYY-MM."""
    day = moment.date()
    if granularity == "weekly":
        return (day - timedelta(days=day.weekday())).isoformat()
    if granularity == "monthly":
        return day.strftime("%Y-%m")
    return day.isoformat()


def source_of(details: dict[str, Any] | None) -> str:
    if not details:
        return "direct"
    return details.get("utm_source") or details.get("referrer_domain") or "direct"


def build_funnel(totals: Counter) -> list[FunnelStage]:
    """Counts per stage with the share of page views that reached it (percent)."""
    top = totals.get(AnalyticsEventType.PAGE_VIEW.value, 0)
    return [
        FunnelStage(
            stage=stage,
            label=label,
            count=totals.get(stage, 0),
            rate=round(totals.get(stage, 0) / top * 100, 1) if top else 0.0,
        )
        for stage, label in FUNNEL_LABELS.items()
    ]


def get_dashboard(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    granularity: str = "daily",
) -> AnalyticsResponse:
    if granularity not in GRANULARITIES:
        raise ValueError("Invalid granularity")
    start, end = resolve_range(start_date, end_date)

    events = (
        db.query(AnalyticsEvent.event_type, AnalyticsEvent.created_at, AnalyticsEvent.details)
        .filter(AnalyticsEvent.created_at >= start, AnalyticsEvent.created_at < end)
        .all()
    )

    buckets: dict[str, Counter] = defaultdict(Counter)
    totals: Counter = Counter()
    sources: Counter = Counter()
    for event_type, created_at, details in events:
        buckets[bucket_key(created_at, granularity)][event_type] += 1
        totals[event_type] += 1
        sources[source_of(details)] += 1

    time_series = [
        TimeSeriesPoint(date=key, **{name: counts.get(name, 0) for name in FUNNEL_LABELS})
        for key, counts in sorted(buckets.items())
    ]

    views = func.count(AnalyticsEvent.id).label("views")
    top_jobs = (
        db.query(AnalyticsEvent.job_id, Job.title, views)
        .join(Job, Job.id == AnalyticsEvent.job_id)
        .filter(
            AnalyticsEvent.event_type == AnalyticsEventType.JOB_VIEW.value,
            AnalyticsEvent.created_at >= start,
            AnalyticsEvent.created_at < end,
        )
        .group_by(AnalyticsEvent.job_id, Job.title)
        .order_by(views.desc())
        .limit(TOP_N)
        .all()
    )

    return AnalyticsResponse(
        time_series=time_series,
        funnel=build_funnel(totals),
        sources=[
            SourceCount(source=source, count=count)
            for source, count in sources.most_common(TOP_N)
        ],
        top_jobs=[
            TopJob(job_id=job_id, title=title, views=count)
            for job_id, title, count in top_jobs
        ],
    )
