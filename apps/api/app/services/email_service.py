"""Outbound email dispatch and history.

Every send is a three-step sequence recorded on a *SentEmail row:
1. insert the row as `pending` and commit,
2. hand the message to the mail client,
3. mark the row `sent` (message id, timestamp) or `failed` (error text).

A failure never rolls back whatever write preceded the send (for example an
application status change); the row carries the outcome instead.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.structured_logging import build_log_context, mask_email
from app.db.enums import EmailStatus, EmployeeActivityAction, SalesLeadActivityAction
from app.db.models import (
    AdminUser,
    Application,
    EmailTemplate,
    Employee,
    EmployeeSentEmail,
    ReceivedEmail,
    SalesLead,
    SalesLeadSentEmail,
    SentEmail,
    SentEmailMixin,
)
from app.db.types import utcnow
from app.schemas.email import EmailHistoryItem, SentEmailRead
from app.services import activity_service, template_service
from app.services.email_identity_service import get_default_identity
from app.services.graph_mail import GraphMailClient, GraphMailError

logger = logging.getLogger(__name__)


class EmailSendError(Exception):
    """The mail API rejected or failed a send; the row is marked failed."""

    def __init__(self, email_id: UUID, message: str):
        super().__init__(message)
        self.email_id = email_id
        self.message = message


@dataclass
class DispatchResult:
    email_id: UUID
    message_id: str
    dev_mode: bool
    from_address: str | None


# =============================================================================
# Core dispatch
# =============================================================================

def mark_email_sent(db: Session, record: SentEmailMixin, message_id: str) -> None:
    """Mark an email as sent. Dev-mode sends count as sent too."""
    record.status = EmailStatus.SENT.value
    record.message_id = message_id
    record.sent_at = utcnow()
    record.error_message = None
    db.commit()


def mark_email_failed(db: Session, record: SentEmailMixin, error: str) -> None:
    """Mark an email as failed."""
    record.status = EmailStatus.FAILED.value
    record.error_message = error
    db.commit()


async def deliver(
    db: Session,
    mail_client: GraphMailClient,
    record: SentEmailMixin,
    *,
    from_name: str | None = None,
) -> DispatchResult:
    """
    Send a pending email row and record the outcome.

    Raises:
        EmailSendError: the mail API failed; the row is already `failed`
    """
    db.add(record)
    db.commit()

    try:
        result = await mail_client.send_mail(
            to=record.recipient_email,
            subject=record.subject,
            body=record.body,
            from_address=record.from_email,
            from_name=from_name,
        )
    except (GraphMailError, httpx.HTTPError) as exc:
        error = str(exc) or exc.__class__.__name__
        mark_email_failed(db, record, error)
        logger.error(
            "Email send failed: %s",
            error,
            extra=build_log_context(entity_id=str(record.id)),
        )
        raise EmailSendError(record.id, error) from exc

    mark_email_sent(db, record, result.message_id)
    return DispatchResult(
        email_id=record.id,
        message_id=result.message_id,
        dev_mode=not result.sent,
        from_address=result.from_address or record.from_email,
    )


# =============================================================================
# Entity sends
# =============================================================================

async def send_application_email(
    db: Session,
    mail_client: GraphMailClient,
    application: Application,
    *,
    admin_user_id: UUID,
    subject: str,
    body: str,
    template_id: UUID | None = None,
    from_address: str | None = None,
) -> DispatchResult:
    variables = template_service.build_application_variables(application, application.job)
    rendered_subject, rendered_body = template_service.render_template(subject, body, variables)
    identity = get_default_identity("hiring")
    record = SentEmail(
        application_id=application.id,
        admin_user_id=admin_user_id,
        template_id=template_id,
        from_email=from_address or (identity.email if identity else None),
        recipient_email=application.email,
        subject=rendered_subject,
        body=rendered_body,
        status=EmailStatus.PENDING.value,
    )
    return await deliver(db, mail_client, record)


async def send_employee_email(
    db: Session,
    mail_client: GraphMailClient,
    employee: Employee,
    *,
    admin_user_id: UUID,
    subject: str,
    body: str,
    template_id: UUID | None = None,
    from_address: str | None = None,
) -> DispatchResult:
    variables = template_service.build_employee_variables(employee)
    rendered_subject, rendered_body = template_service.render_template(subject, body, variables)
    identity = get_default_identity("hiring")
    record = EmployeeSentEmail(
        employee_id=employee.id,
        admin_user_id=admin_user_id,
        template_id=template_id,
        from_email=from_address or (identity.email if identity else None),
        recipient_email=employee.email,
        subject=rendered_subject,
        body=rendered_body,
        status=EmailStatus.PENDING.value,
    )
    try:
        result = await deliver(db, mail_client, record)
    finally:
        activity_service.log_employee_activity(
            db,
            employee.id,
            admin_user_id,
            EmployeeActivityAction.EMAIL_SENT,
            details={"emailId": record.id, "subject": rendered_subject, "status": record.status},
        )
        db.commit()
    return result


async def send_sales_lead_email(
    db: Session,
    mail_client: GraphMailClient,
    lead: SalesLead,
    *,
    admin_user_id: UUID,
    subject: str,
    body: str,
    template_id: UUID | None = None,
    from_address: str | None = None,
) -> DispatchResult:
    variables = template_service.build_sales_lead_variables(lead)
    rendered_subject, rendered_body = template_service.render_template(subject, body, variables)
    identity = get_default_identity("sales")
    record = SalesLeadSentEmail(
        lead_id=lead.id,
        admin_user_id=admin_user_id,
        template_id=template_id,
        from_email=from_address or (identity.email if identity else None),
        recipient_email=lead.contact_email,
        subject=rendered_subject,
        body=rendered_body,
        status=EmailStatus.PENDING.value,
    )
    try:
        result = await deliver(db, mail_client, record)
    finally:
        activity_service.log_sales_lead_activity(
            db,
            lead.id,
            admin_user_id,
            SalesLeadActivityAction.EMAIL_SENT,
            details={"emailId": record.id, "subject": rendered_subject, "status": record.status},
        )
        db.commit()
    return result


# =============================================================================
# System emails (no history row)
# =============================================================================

async def send_magic_code_email(mail_client: GraphMailClient, email: str, code: str) -> None:
    """Deliver a sign-in code. Without Graph the code is only logged in dev."""
    if not mail_client.configured:
        if settings.ENV == "dev":
            logger.info("Magic code for %s: %s", email, code)
        else:
            logger.warning("Graph not configured; magic code email not sent to %s", mask_email(email))
        return

    identity = get_default_identity("admin")
    await mail_client.send_mail(
        to=email,
        subject=f"Your login code for {settings.COMPANY_NAME} Admin",
        body=(
            '<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">'
            f"<h1>{settings.COMPANY_NAME} Admin</h1>"
            "<p>Use the code below to log in to your admin dashboard:</p>"
            '<div style="background-color: #f3f4f6; padding: 24px; text-align: center;">'
            f'<span style="font-family: monospace; font-size: 32px; letter-spacing: 4px;">{code}</span>'
            "</div>"
            f"<p>This code expires in {settings.MAGIC_CODE_MINUTES} minutes.</p>"
            "<p>If you didn't request this code, you can safely ignore this email.</p>"
            "</div>"
        ),
        from_address=identity.email if identity else None,
        from_name=identity.name if identity else None,
    )


async def send_new_application_notification(
    mail_client: GraphMailClient,
    job_title: str,
    applicant_name: str,
    applicant_email: str,
) -> None:
    if not settings.NOTIFICATION_EMAIL or not mail_client.configured:
        logger.info("New application for %s from %s", job_title, applicant_name)
        return

    identity = get_default_identity("notification")
    await mail_client.send_mail(
        to=settings.NOTIFICATION_EMAIL,
        subject=f"New application for {job_title}",
        body=(
            '<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">'
            "<h1>New Job Application</h1>"
            "<p>A new application has been submitted:</p><ul>"
            f"<li><strong>Position:</strong> {job_title}</li>"
            f"<li><strong>Applicant:</strong> {applicant_name}</li>"
            f"<li><strong>Email:</strong> {applicant_email}</li>"
            "</ul></div>"
        ),
        from_address=identity.email if identity else None,
        from_name=identity.name if identity else None,
    )


# =============================================================================
# History
# =============================================================================

def _sent_rows(db: Session, model, filter_clause):
    return (
        db.query(model, AdminUser.name, AdminUser.email, EmailTemplate.name)
        .outerjoin(AdminUser, AdminUser.id == model.admin_user_id)
        .outerjoin(EmailTemplate, EmailTemplate.id == model.template_id)
        .filter(filter_clause)
        .order_by(model.created_at.desc())
        .all()
    )


def _to_sent_read(row) -> SentEmailRead:
    email, admin_name, admin_email, template_name = row
    return SentEmailRead(
        id=email.id,
        recipient_email=email.recipient_email,
        subject=email.subject,
        body=email.body,
        status=email.status,
        error_message=email.error_message,
        sent_at=email.sent_at,
        created_at=email.created_at,
        admin_name=admin_name,
        admin_email=admin_email,
        template_name=template_name,
    )


def list_employee_emails(db: Session, employee_id: UUID) -> list[SentEmailRead]:
    rows = _sent_rows(db, EmployeeSentEmail, EmployeeSentEmail.employee_id == employee_id)
    return [_to_sent_read(row) for row in rows]


def list_sales_lead_emails(db: Session, lead_id: UUID) -> list[SentEmailRead]:
    rows = _sent_rows(db, SalesLeadSentEmail, SalesLeadSentEmail.lead_id == lead_id)
    return [_to_sent_read(row) for row in rows]


def list_application_emails(db: Session, application_id: UUID) -> list[EmailHistoryItem]:
    """Sent and received messages for an application, newest first."""
    items: list[EmailHistoryItem] = []
    for row in _sent_rows(db, SentEmail, SentEmail.application_id == application_id):
        email, admin_name, admin_email, template_name = row
        items.append(
            EmailHistoryItem(
                id=email.id,
                type="sent",
                subject=email.subject,
                body=email.body,
                status=email.status,
                error_message=email.error_message,
                admin_name=admin_name,
                admin_email=admin_email,
                template_name=template_name,
                timestamp=email.sent_at or email.created_at,
            )
        )
    received = (
        db.query(ReceivedEmail)
        .filter(ReceivedEmail.application_id == application_id)
        .all()
    )
    for email in received:
        items.append(
            EmailHistoryItem(
                id=email.id,
                type="received",
                subject=email.subject,
                body=email.body,
                body_preview=email.body_preview,
                from_email=email.from_email,
                from_name=email.from_name,
                is_read=email.is_read,
                timestamp=email.received_at,
            )
        )
    items.sort(key=lambda item: item.timestamp, reverse=True)
    return items
