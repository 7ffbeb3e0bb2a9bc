"""Sender identities and inbox sync."""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_mail_client, require_permission
from app.core.permissions import Permission
from app.schemas.auth import UserSession
from app.schemas.email import (
    EmailIdentitiesResponse,
    EmailIdentityRead,
    EmailSyncResponse,
    EmailSyncStatus,
)
from app.services import email_identity_service, email_sync_service
from app.services.graph_mail import GraphMailClient, GraphMailError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["emails"])

IDENTITY_CONTEXTS = ("admin", "notification", "sales", "hiring")


@router.get("/email-identities", response_model=EmailIdentitiesResponse)
def list_identities(
    session: UserSession = Depends(require_permission(Permission.SEND_EMAILS)),
):
    identities = email_identity_service.get_email_identities()
    defaults = {}
    for context in IDENTITY_CONTEXTS:
        identity = email_identity_service.get_default_identity(context)
        defaults[context] = identity.email if identity else None
    return EmailIdentitiesResponse(
        identities=[
            EmailIdentityRead(id=i.id, email=i.email, name=i.name, label=i.label)
            for i in identities
        ],
        defaults=defaults,
        configured=bool(identities),
    )


@router.post("/emails/sync", response_model=EmailSyncResponse)
async def sync_emails(
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
):
    """Pull new inbox messages from Graph and match them to applicants."""
    if not mail_client.configured:
        raise HTTPException(status_code=400, detail="Microsoft Graph is not configured")
    try:
        return await email_sync_service.sync_inbox(db, mail_client)
    except (GraphMailError, httpx.HTTPError) as e:
        logger.error("Email sync failed: %s", e)
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to sync emails", "details": str(e)},
        )


@router.get("/emails/sync", response_model=EmailSyncStatus)
def sync_status(
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
):
    return email_sync_service.get_sync_status(db, mail_client)
