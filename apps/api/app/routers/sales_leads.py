"""Sales leads router - pipeline CRUD, notes, activity and email."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_mail_client, require_permission
from app.core.permissions import Permission
from app.routers.admin_shared import (
    create_note_or_error,
    delete_note_or_error,
    send_email_or_error,
    update_note_or_error,
)
from app.schemas.activity import ActivityRead
from app.schemas.auth import UserSession
from app.schemas.common import SuccessResponse
from app.schemas.email import SendEmailRequest, SendEmailResponse, SentEmailRead
from app.schemas.note import NoteCreate, NoteRead, NoteUpdate
from app.schemas.sales_lead import (
    SalesLeadCreate,
    SalesLeadListResponse,
    SalesLeadRead,
    SalesLeadUpdate,
)
from app.services import email_service, note_service, sales_lead_service
from app.services.graph_mail import GraphMailClient

router = APIRouter(prefix="/admin/sales-leads", tags=["sales-leads"])

VIEW = Permission.VIEW_SALES_LEADS
MANAGE = Permission.MANAGE_SALES_LEADS


def _get_lead_or_404(db: Session, lead_id: UUID):
    lead = sales_lead_service.get_lead(db, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.get("", response_model=SalesLeadListResponse)
def list_leads(
    stage: str | None = Query(None),
    source: str | None = Query(None),
    assigned_to: UUID | None = Query(None, alias="assignedTo"),
    search: str | None = Query(None),
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    leads = sales_lead_service.list_leads(
        db, stage=stage, source=source, assigned_to=assigned_to, search=search
    )
    return SalesLeadListResponse(
        leads=[sales_lead_service.to_lead_read(lead) for lead in leads],
        sources=sales_lead_service.list_sources(db),
        stages=sales_lead_service.STAGES,
    )


@router.post("", response_model=SalesLeadRead, status_code=201)
def create_lead(
    data: SalesLeadCreate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    try:
        lead = sales_lead_service.create_lead(db, data, session.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return sales_lead_service.to_lead_read(lead)


@router.get("/{lead_id}", response_model=SalesLeadRead)
def get_lead(
    lead_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    return sales_lead_service.to_lead_read(_get_lead_or_404(db, lead_id))


@router.patch("/{lead_id}", response_model=SuccessResponse)
def update_lead(
    lead_id: UUID,
    data: SalesLeadUpdate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    """
    Partial update. Moving to won/lost (or back to an open stage) also
    stamps or clears the won/lost fields.
    """
    lead = _get_lead_or_404(db, lead_id)
    try:
        changes = sales_lead_service.update_lead(db, lead, data, session.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not changes:
        return SuccessResponse(message="No changes detected")
    return SuccessResponse(message=f"Updated {len(changes)} field(s)")


@router.delete("/{lead_id}", response_model=SuccessResponse)
def delete_lead(
    lead_id: UUID,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    sales_lead_service.delete_lead(db, _get_lead_or_404(db, lead_id))
    return SuccessResponse()


# =============================================================================
# Notes
# =============================================================================

@router.get("/{lead_id}/notes", response_model=list[NoteRead])
def list_notes(
    lead_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_lead_or_404(db, lead_id)
    return note_service.list_notes(db, note_service.SALES_LEAD_NOTES, lead_id)


@router.post("/{lead_id}/notes", response_model=NoteRead, status_code=201)
def create_note(
    lead_id: UUID,
    data: NoteCreate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    _get_lead_or_404(db, lead_id)
    return create_note_or_error(db, note_service.SALES_LEAD_NOTES, lead_id, session, data)


@router.patch("/{lead_id}/notes", response_model=NoteRead)
def update_note(
    lead_id: UUID,
    data: NoteUpdate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    return update_note_or_error(db, note_service.SALES_LEAD_NOTES, lead_id, session, data)


@router.delete("/{lead_id}/notes", response_model=SuccessResponse)
def delete_note(
    lead_id: UUID,
    note_id: UUID = Query(..., alias="noteId"),
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    delete_note_or_error(db, note_service.SALES_LEAD_NOTES, lead_id, note_id, session)
    return SuccessResponse()


# =============================================================================
# Activity & email
# =============================================================================

@router.get("/{lead_id}/activity", response_model=list[ActivityRead])
def list_activity(
    lead_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_lead_or_404(db, lead_id)
    return sales_lead_service.list_activity(db, lead_id, limit)


@router.get("/{lead_id}/emails", response_model=list[SentEmailRead])
def list_emails(
    lead_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_lead_or_404(db, lead_id)
    return email_service.list_sales_lead_emails(db, lead_id)


@router.post("/{lead_id}/emails", response_model=SendEmailResponse)
async def send_email(
    lead_id: UUID,
    data: SendEmailRequest,
    session: UserSession = Depends(require_permission(Permission.SEND_EMAILS)),
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
):
    lead = _get_lead_or_404(db, lead_id)
    return await send_email_or_error(
        db,
        data,
        lambda subject, body: email_service.send_sales_lead_email(
            db,
            mail_client,
            lead,
            admin_user_id=session.user_id,
            subject=subject,
            body=body,
            template_id=data.template_id,
            from_address=data.from_address,
        ),
    )
