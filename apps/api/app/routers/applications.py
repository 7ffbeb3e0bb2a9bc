"""Public application submission (multipart form from the careers page)."""

import logging
import uuid

import httpx
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_mail_client, get_storage
from app.core.rate_limit import enforce_rate_limit, get_client_ip
from app.db.enums import AnalyticsEventType
from app.schemas.common import SuccessResponse
from app.services import analytics_service, application_service, email_service, job_service
from app.services.application_service import ApplicationSubmission
from app.services.graph_mail import GraphMailClient, GraphMailError
from app.services.storage_service import validate_resume

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["applications"])


def _parse_job_id(raw: str | None) -> uuid.UUID | None:
    try:
        return uuid.UUID(raw) if raw else None
    except ValueError:
        return None


@router.post("", response_model=SuccessResponse)
async def submit_application(
    request: Request,
    job_id: str | None = Form(None, alias="jobId"),
    first_name: str | None = Form(None, alias="firstName"),
    last_name: str | None = Form(None, alias="lastName"),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    cover_letter: str | None = Form(None, alias="coverLetter"),
    good_at: str | None = Form(None, alias="goodAt"),
    resume: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
    storage=Depends(get_storage),
):
    """
    Submit an application.

    Per-IP limit first (429 + Retry-After), then the global limit (503).
    """
    client_ip = get_client_ip(request)
    enforce_rate_limit(
        "application",
        f"application:{client_ip}",
        "Too many applications. Please try again later.",
    )
    enforce_rate_limit(
        "application_global",
        "application:global",
        "Service temporarily unavailable. Please try again later.",
        status_code=503,
    )

    if not all(
        (value or "").strip() for value in (job_id, first_name, last_name, email)
    ):
        raise HTTPException(status_code=400, detail="Missing required fields")

    job_uuid = _parse_job_id(job_id.strip())
    job = job_service.get_job(db, job_uuid) if job_uuid else None
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    application_id = uuid.uuid4()
    resume_path = None
    if resume is not None and resume.filename:
        data = await resume.read()
        if data:
            error = validate_resume(resume.content_type, len(data))
            if error:
                raise HTTPException(status_code=400, detail=error)
            resume_path = storage.save(
                f"resumes/{application_id}.pdf", data, content_type="application/pdf"
            )

    application = application_service.create_application(
        db,
        ApplicationSubmission(
            job_id=job.id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            cover_letter=cover_letter,
            good_at=good_at,
        ),
        resume_path=resume_path,
        application_id=application_id,
    )

    analytics_service.track_event(
        db,
        AnalyticsEventType.APPLICATION_SUBMIT.value,
        job_id=job.id,
        details={"application_id": str(application.id)},
        client_ip=client_ip,
    )

    try:
        await email_service.send_new_application_notification(
            mail_client, job.title, application.full_name, application.email
        )
    except (GraphMailError, httpx.HTTPError) as e:
        logger.error("New application notification failed: %s", e)

    return SuccessResponse(message="Application submitted successfully", id=str(application.id))
