"""Analytics - public event beacon and the admin dashboard."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db, require_permission
from app.core.permissions import Permission
from app.core.rate_limit import get_client_ip, limiter
from app.schemas.analytics import AnalyticsResponse, TrackEventRequest
from app.schemas.auth import UserSession
from app.schemas.common import SuccessResponse
from app.services import analytics_service

router = APIRouter(tags=["analytics"])


@router.post("/analytics/track", response_model=SuccessResponse)
@limiter.limit(settings.RATE_LIMIT_TRACKING)
def track_event(
    request: Request,
    data: TrackEventRequest,
    db: Session = Depends(get_db),
):
    try:
        analytics_service.track_event(
            db,
            data.event_type or "",
            job_id=data.job_id,
            details=data.details,
            client_ip=get_client_ip(request),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessResponse()


@router.get("/admin/analytics", response_model=AnalyticsResponse)
def get_dashboard(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    granularity: str = Query("daily"),
    session: UserSession = Depends(require_permission(Permission.VIEW_DASHBOARD)),
    db: Session = Depends(get_db),
):
    """Time series, funnel, traffic sources and most-viewed jobs for a range."""
    try:
        return analytics_service.get_dashboard(
            db, start_date=start_date, end_date=end_date, granularity=granularity
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
