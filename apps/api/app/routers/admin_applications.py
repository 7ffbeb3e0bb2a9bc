"""Admin applications router - review pipeline, notes and applicant email."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_mail_client, require_permission
from app.core.permissions import Permission
from app.schemas.application import (
    ApplicationDetail,
    ApplicationListItem,
    ApplicationStatusResponse,
    ApplicationStatusUpdate,
)
from app.schemas.auth import UserSession
from app.schemas.common import SuccessResponse
from app.schemas.email import EmailHistoryItem, SendEmailRequest, SendEmailResponse
from app.schemas.note import NoteCreate, NoteRead, NoteUpdate
from app.routers.admin_shared import (
    create_note_or_error,
    delete_note_or_error,
    send_email_or_error,
    update_note_or_error,
)
from app.services import application_service, email_service, note_service, stage_rules
from app.services.graph_mail import GraphMailClient

router = APIRouter(prefix="/admin/applications", tags=["admin-applications"])


def _get_application_or_404(db: Session, application_id: UUID):
    application = application_service.get_application(db, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    return application


@router.get("", response_model=list[ApplicationListItem])
def list_applications(
    status: str | None = Query(None),
    job_id: UUID | None = Query(None, alias="jobId"),
    search: str | None = Query(None),
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    return application_service.list_applications(
        db, status=status, job_id=job_id, search=search
    )


@router.get("/{application_id}", response_model=ApplicationDetail)
def get_application(
    application_id: UUID,
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    return application_service.to_application_detail(application)


@router.patch("/{application_id}", response_model=ApplicationStatusResponse)
def update_application_status(
    application_id: UUID,
    data: ApplicationStatusUpdate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    """
    Change status. The response says whether to offer an email; sending it
    is a separate call to the emails endpoint.
    """
    if not data.status:
        raise HTTPException(status_code=400, detail="Status is required")
    application = _get_application_or_404(db, application_id)
    try:
        application = application_service.update_status(db, application, data.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ApplicationStatusResponse(
        status=application.status,
        prompt_email=stage_rules.should_prompt_for_email(application.status),
        suggested_template=stage_rules.get_suggested_template_name(application.status),
    )


# =============================================================================
# Notes
# =============================================================================

@router.get("/{application_id}/notes", response_model=list[NoteRead])
def list_notes(
    application_id: UUID,
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    _get_application_or_404(db, application_id)
    return note_service.list_notes(db, note_service.APPLICATION_NOTES, application_id)


@router.post("/{application_id}/notes", response_model=NoteRead, status_code=201)
def create_note(
    application_id: UUID,
    data: NoteCreate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    _get_application_or_404(db, application_id)
    return create_note_or_error(
        db, note_service.APPLICATION_NOTES, application_id, session, data
    )


@router.patch("/{application_id}/notes", response_model=NoteRead)
def update_note(
    application_id: UUID,
    data: NoteUpdate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    """Edit a note. Only its author may."""
    return update_note_or_error(
        db, note_service.APPLICATION_NOTES, application_id, session, data
    )


@router.delete("/{application_id}/notes", response_model=SuccessResponse)
def delete_note(
    application_id: UUID,
    note_id: UUID = Query(..., alias="noteId"),
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    """Delete a note. Only its author may."""
    delete_note_or_error(db, note_service.APPLICATION_NOTES, application_id, note_id, session)
    return SuccessResponse()


# =============================================================================
# Email
# =============================================================================

@router.get("/{application_id}/emails", response_model=list[EmailHistoryItem])
def list_emails(
    application_id: UUID,
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    """Sent emails and synced replies, newest first."""
    _get_application_or_404(db, application_id)
    return email_service.list_application_emails(db, application_id)


@router.post("/{application_id}/emails", response_model=SendEmailResponse)
async def send_email(
    application_id: UUID,
    data: SendEmailRequest,
    session: UserSession = Depends(require_permission(Permission.SEND_EMAILS)),
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
):
    application = _get_application_or_404(db, application_id)
    return await send_email_or_error(
        db,
        data,
        lambda subject, body: email_service.send_application_email(
            db,
            mail_client,
            application,
            admin_user_id=session.user_id,
            subject=subject,
            body=body,
            template_id=data.template_id,
            from_address=data.from_address,
        ),
    )
