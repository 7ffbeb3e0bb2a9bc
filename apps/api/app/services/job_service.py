"""Job service - job postings for the public careers page and the admin panel."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models import Application, Job
from app.schemas.job import AdminJobRead, JobCreate, JobRead, JobUpdate

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

REQUIRED_FIELDS = ("title", "department", "location", "description")


def clamp_limit(limit: int | None) -> int:
    if not limit or limit < 1:
        return DEFAULT_PAGE_SIZE
    return min(limit, MAX_PAGE_SIZE)


def list_active_jobs(db: Session, limit: int, offset: int) -> tuple[list[Job], int]:
    """Active jobs newest first, plus the total count for pagination."""
    query = db.query(Job).filter(Job.is_active.is_(True))
    total = query.count()
    jobs = (
        query.order_by(Job.created_at.desc())
        .offset(max(offset, 0))
        .limit(limit)
        .all()
    )
    return jobs, total


def get_active_job(db: Session, job_id: UUID) -> Job | None:
    return (
        db.query(Job)
        .filter(Job.id == job_id, Job.is_active.is_(True))
        .first()
    )


def record_view(db: Session, job: Job) -> None:
    """Increment the public view counter in SQL so concurrent views add up."""
    db.query(Job).filter(Job.id == job.id).update(
        {Job.view_count: Job.view_count + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(job)


def get_job(db: Session, job_id: UUID) -> Job | None:
    return db.query(Job).filter(Job.id == job_id).first()


def list_jobs_with_counts(db: Session) -> list[AdminJobRead]:
    """Every job (active or not) with its application count."""
    counts = (
        db.query(Application.job_id, func.count(Application.id).label("n"))
        .group_by(Application.job_id)
        .subquery()
    )
    rows = (
        db.query(Job, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.job_id == Job.id)
        .order_by(Job.created_at.desc())
        .all()
    )
    return [
        AdminJobRead.model_validate(job).model_copy(update={"application_count": n})
        for job, n in rows
    ]


def create_job(db: Session, data: JobCreate) -> Job:
    """
    Raises:
        ValueError: a required field is missing or blank
    """
    values = data.model_dump()
    if any(not (values.get(field) or "").strip() for field in REQUIRED_FIELDS):
        raise ValueError("Missing required fields")

    job = Job(**values)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def update_job(db: Session, job: Job, data: JobUpdate) -> Job:
    changes = data.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in changes and not (changes[field] or "").strip():
            raise ValueError(f"{field} cannot be empty")
    if changes.get("is_active") is None:
        changes.pop("is_active", None)

    for key, value in changes.items():
        setattr(job, key, value)
    db.commit()
    db.refresh(job)
    return job


def delete_job(db: Session, job: Job) -> None:
    """Hard delete; the job's applications go with it."""
    db.delete(job)
    db.commit()


def to_job_read(job: Job) -> JobRead:
    return JobRead.model_validate(job)
