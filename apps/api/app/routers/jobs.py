"""Public careers API - active job listings."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.rate_limit import get_client_ip
from app.db.enums import AnalyticsEventType
from app.schemas.job import JobListResponse, JobRead, Pagination
from app.services import analytics_service, job_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=JobListResponse)
def list_jobs(
    limit: int = Query(job_service.DEFAULT_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Active jobs, newest first."""
    limit = job_service.clamp_limit(limit)
    jobs, total = job_service.list_active_jobs(db, limit, offset)
    return JobListResponse(
        data=[job_service.to_job_read(job) for job in jobs],
        pagination=Pagination(
            limit=limit,
            offset=offset,
            total=total,
            has_more=offset + len(jobs) < total,
        ),
    )


@router.get("/{job_id}", response_model=JobRead)
def get_job(
    job_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
):
    """One active job. Each call counts as a view."""
    job = job_service.get_active_job(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    job_service.record_view(db, job)
    analytics_service.track_event(
        db,
        AnalyticsEventType.JOB_VIEW.value,
        job_id=job.id,
        client_ip=get_client_ip(request),
    )
    return job_service.to_job_read(job)
