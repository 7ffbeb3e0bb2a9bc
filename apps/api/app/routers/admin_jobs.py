"""Admin jobs router - job posting management."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.core.permissions import Permission
from app.schemas.auth import UserSession
from app.schemas.common import SuccessResponse
from app.schemas.job import AdminJobRead, JobCreate, JobRead, JobUpdate
from app.services import job_service

router = APIRouter(prefix="/admin/jobs", tags=["admin-jobs"])


def _get_job_or_404(db: Session, job_id: UUID):
    job = job_service.get_job(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("", response_model=list[AdminJobRead])
def list_jobs(
    session: UserSession = Depends(require_permission(Permission.VIEW_JOBS)),
    db: Session = Depends(get_db),
):
    """All jobs, active or not, with application counts."""
    return job_service.list_jobs_with_counts(db)


@router.post("", response_model=JobRead, status_code=201)
def create_job(
    data: JobCreate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_JOBS)),
    db: Session = Depends(get_db),
):
    try:
        job = job_service.create_job(db, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return job_service.to_job_read(job)


@router.get("/{job_id}", response_model=JobRead)
def get_job(
    job_id: UUID,
    session: UserSession = Depends(require_permission(Permission.VIEW_JOBS)),
    db: Session = Depends(get_db),
):
    return job_service.to_job_read(_get_job_or_404(db, job_id))


@router.patch("/{job_id}", response_model=JobRead)
def update_job(
    job_id: UUID,
    data: JobUpdate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_JOBS)),
    db: Session = Depends(get_db),
):
    job = _get_job_or_404(db, job_id)
    try:
        job = job_service.update_job(db, job, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return job_service.to_job_read(job)


@router.delete("/{job_id}", response_model=SuccessResponse)
def delete_job(
    job_id: UUID,
    session: UserSession = Depends(require_permission(Permission.MANAGE_JOBS)),
    db: Session = Depends(get_db),
):
    """Delete a job and, with it, every application to it."""
    job_service.delete_job(db, _get_job_or_404(db, job_id))
    return SuccessResponse()
