"""Inbound email sync: pull replies from the shared inbox and match applicants."""

import logging
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models import Application, ReceivedEmail
from app.db.types import utcnow
from app.schemas.email import EmailSyncResponse, EmailSyncStatus
from app.services.graph_mail import GraphMailClient

logger = logging.getLogger(__name__)

SYNC_OVERLAP = timedelta(minutes=1)
INITIAL_LOOKBACK = timedelta(days=7)


def _parse_graph_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def get_sync_since(db: Session) -> datetime:
    """Newest stored message minus a small overlap, or a week back."""
    latest = (
        db.query(ReceivedEmail.received_at)
        .order_by(ReceivedEmail.received_at.desc())
        .limit(1)
        .scalar()
    )
    if latest is None:
        return utcnow() - INITIAL_LOOKBACK
    return latest - SYNC_OVERLAP


def match_application(db: Session, from_email: str) -> Application | None:
    """Most recent application submitted from this address (case-insensitive)."""
    return (
        db.query(Application)
        .filter(func.lower(Application.email) == from_email.lower())
        .order_by(Application.created_at.desc())
        .first()
    )


async def sync_inbox(db: Session, mail_client: GraphMailClient) -> EmailSyncResponse:
    """
    Store new inbox messages, skipping Graph ids already seen.

    Unmatched senders are kept with no application link.
    """
    since = get_sync_since(db)
    messages = await mail_client.fetch_inbox(since=since)

    synced = 0
    matched = 0
    for message in messages:
        graph_id = message.get("id")
        if not graph_id:
            continue
        exists = (
            db.query(ReceivedEmail.id)
            .filter(ReceivedEmail.graph_message_id == graph_id)
            .first()
        )
        if exists:
            continue

        sender = (message.get("from") or {}).get("emailAddress") or {}
        from_email = sender.get("address") or ""
        application = match_application(db, from_email) if from_email else None

        db.add(
            ReceivedEmail(
                application_id=application.id if application else None,
                graph_message_id=graph_id,
                conversation_id=message.get("conversationId"),
                from_email=from_email,
                from_name=sender.get("name"),
                subject=message.get("subject") or "(no subject)",
                body_preview=message.get("bodyPreview"),
                body=(message.get("body") or {}).get("content") or "",
                received_at=_parse_graph_datetime(message["receivedDateTime"]),
                is_read=False,
            )
        )
        synced += 1
        if application:
            matched += 1

    db.commit()
    logger.info("Email sync stored %d messages (%d matched)", synced, matched)
    return EmailSyncResponse(synced=synced, matched=matched)


def get_sync_status(db: Session, mail_client: GraphMailClient) -> EmailSyncStatus:
    latest = (
        db.query(ReceivedEmail)
        .order_by(ReceivedEmail.received_at.desc())
        .first()
    )
    total = db.query(func.count(ReceivedEmail.id)).scalar() or 0
    return EmailSyncStatus(
        configured=mail_client.configured,
        last_synced_at=latest.created_at if latest else None,
        total_received=total,
    )
