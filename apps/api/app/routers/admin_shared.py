"""Helpers shared by the admin routers (notes and email sends)."""

import logging
from typing import Awaitable, Callable
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.schemas.auth import UserSession
from app.schemas.email import SendEmailRequest, SendEmailResponse
from app.schemas.note import NoteCreate, NoteRead, NoteUpdate
from app.services import note_service, template_service
from app.services.email_service import DispatchResult, EmailSendError

logger = logging.getLogger(__name__)


# =============================================================================
# Notes
# =============================================================================

def create_note_or_error(
    db: Session,
    kind: note_service.NoteKind,
    parent_id: UUID,
    session: UserSession,
    data: NoteCreate,
) -> NoteRead:
    try:
        return note_service.create_note(
            db, kind, parent_id, session.user_id, data.content, data.category
        )
    except note_service.InvalidNoteError as e:
        raise HTTPException(status_code=400, detail=str(e))


def update_note_or_error(
    db: Session,
    kind: note_service.NoteKind,
    parent_id: UUID,
    session: UserSession,
    data: NoteUpdate,
) -> NoteRead:
    try:
        return note_service.update_note(
            db, kind, parent_id, data.note_id, session.user_id, data.content, data.category
        )
    except note_service.NoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except note_service.NoteOwnershipError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except note_service.InvalidNoteError as e:
        raise HTTPException(status_code=400, detail=str(e))


def delete_note_or_error(
    db: Session,
    kind: note_service.NoteKind,
    parent_id: UUID,
    note_id: UUID,
    session: UserSession,
) -> None:
    try:
        note_service.delete_note(db, kind, parent_id, note_id, session.user_id)
    except note_service.NoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except note_service.NoteOwnershipError as e:
        raise HTTPException(status_code=403, detail=str(e))


# =============================================================================
# Email
# =============================================================================

SendFn = Callable[[str, str], Awaitable[DispatchResult]]


async def send_email_or_error(
    db: Session,
    data: SendEmailRequest,
    send: SendFn,
) -> SendEmailResponse:
    """
    Resolve subject/body (falling back to the chosen template) and send.

    A failed send has already been recorded as `failed`; it surfaces as 500.
    """
    subject, body = data.subject, data.body
    if data.template_id and not (subject and body):
        template = template_service.get_template(db, data.template_id)
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")
        subject = subject or template.subject
        body = body or template.body
    if not (subject or "").strip() or not (body or "").strip():
        raise HTTPException(status_code=400, detail="Subject and body are required")

    try:
        result = await send(subject, body)
    except EmailSendError as e:
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to send email", "details": e.message},
        )

    return SendEmailResponse(
        email_id=result.email_id,
        message_id=result.message_id,
        dev_mode=result.dev_mode,
        from_address=result.from_address,
    )
