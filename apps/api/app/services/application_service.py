"""Application service - public submissions and the admin review pipeline."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.structured_logging import build_log_context
from app.db.enums import ApplicationStatus
from app.db.models import Application, Job
from app.schemas.application import ApplicationDetail, ApplicationListItem
from app.services import stage_rules

logger = logging.getLogger(__name__)


@dataclass
class ApplicationSubmission:
    job_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    cover_letter: str | None = None
    good_at: str | None = None


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def create_application(
    db: Session,
    data: ApplicationSubmission,
    *,
    resume_path: str | None = None,
    application_id: UUID | None = None,
) -> Application:
    application = Application(
        job_id=data.job_id,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        email=data.email.strip(),
        phone=_clean(data.phone),
        cover_letter=_clean(data.cover_letter),
        good_at=_clean(data.good_at),
        resume_path=resume_path,
        status=ApplicationStatus.NEW.value,
    )
    if application_id is not None:
        application.id = application_id
    db.add(application)
    db.commit()
    db.refresh(application)
    logger.info(
        "Application received",
        extra=build_log_context(entity_id=str(application.id)),
    )
    return application


def get_application(db: Session, application_id: UUID) -> Application | None:
    return (
        db.query(Application)
        .options(joinedload(Application.job))
        .filter(Application.id == application_id)
        .first()
    )


def list_applications(
    db: Session,
    *,
    status: str | None = None,
    job_id: UUID | None = None,
    search: str | None = None,
) -> list[ApplicationListItem]:
    query = (
        db.query(Application, Job.title, Job.department)
        .outerjoin(Job, Job.id == Application.job_id)
    )
    if status:
        query = query.filter(Application.status == status)
    if job_id:
        query = query.filter(Application.job_id == job_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Application.first_name.ilike(pattern),
                Application.last_name.ilike(pattern),
                Application.email.ilike(pattern),
            )
        )

    rows = query.order_by(Application.created_at.desc()).all()
    return [
        ApplicationListItem.model_validate(application).model_copy(
            update={"job_title": title, "job_department": department}
        )
        for application, title, department in rows
    ]


def to_application_detail(application: Application) -> ApplicationDetail:
    job = application.job
    return ApplicationDetail.model_validate(application).model_copy(
        update={
            "job_title": job.title if job else None,
            "job_department": job.department if job else None,
            "suggested_template": stage_rules.get_suggested_template_name(application.status),
        }
    )


def update_status(db: Session, application: Application, status: str | None) -> Application:
    """
    Move an application to a new status.

    The write stands on its own: any follow-up email is a separate request.

    Raises:
        ValueError: status missing or not a known value
    """
    if not status:
        raise ValueError("Status is required")
    if not ApplicationStatus.has_value(status):
        raise ValueError("Invalid status")

    previous = application.status
    application.status = status
    db.commit()
    db.refresh(application)
    logger.info(
        "Application status changed %s -> %s",
        previous,
        status,
        extra=build_log_context(entity_id=str(application.id)),
    )
    return application
