"""SQLAlchemy ORM models for auth, recruiting, employees, sales and email."""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import (
    DEFAULT_APPLICATION_STATUS, DEFAULT_EMAIL_STATUS,
    DEFAULT_EMPLOYEE_STATUS, DEFAULT_SALES_LEAD_STAGE,
    EmployeeNoteCategory, SalesLeadNoteCategory,
)
from app.db.types import utcnow


def _pk() -> Mapped[uuid.UUID]:
    return mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


# =============================================================================
# Auth Models
# =============================================================================

class AdminUser(Base):
    """
    An internal operator.

    Created on first successful sign-in. `permissions` is a flat list of
    capability keys; an empty list means the account awaits approval.
    """
    __tablename__ = "admin_users"

    id: Mapped[uuid.UUID] = _pk()
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    permissions: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    last_login_at: Mapped[datetime | None]

    sessions: Mapped[list["AuthSession"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class BootstrapMarker(Base):
    """
    Single-row table recording which user bootstrapped the system.

    The fixed primary key makes "first user gets every permission" an
    atomic insert: only one transaction can ever create this row.
    """
    __tablename__ = "bootstrap_marker"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class MagicLinkToken(Base):
    """One-time sign-in code. `used_at` marks consumption; rows are kept."""
    __tablename__ = "magic_link_tokens"
    __table_args__ = (Index("idx_magic_link_email_token", "email", "token"),)

    id: Mapped[uuid.UUID] = _pk()
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    used_at: Mapped[datetime | None]
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class AuthSession(Base):
    """Server-side session record. Deleting it revokes the signed cookie."""
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    user: Mapped[AdminUser] = relationship(back_populates="sessions")


# =============================================================================
# Recruiting Models
# =============================================================================

class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = _pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="Remote", nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    salary_range: Mapped[str | None] = mapped_column(String(100))
    requirements: Mapped[list[str] | None]
    responsibilities: Mapped[list[str] | None]
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )

    applications: Mapped[list["Application"]] = relationship(
        back_populates="job", cascade="all, delete-orphan", passive_deletes=True
    )


class Application(Base):
    """A candidate's submission for one job."""
    __tablename__ = "applications"
    __table_args__ = (
        Index("idx_applications_status", "status"),
        Index("idx_applications_email", "email"),
    )

    id: Mapped[uuid.UUID] = _pk()
    job_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    resume_path: Mapped[str | None] = mapped_column(String(500))
    cover_letter: Mapped[str | None] = mapped_column(Text)
    good_at: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_APPLICATION_STATUS.value, nullable=False
    )
    source: Mapped[str | None] = mapped_column(String(50), default="website")
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )

    job: Mapped[Job] = relationship(back_populates="applications")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ApplicationNote(Base):
    __tablename__ = "application_notes"

    id: Mapped[uuid.UUID] = _pk()
    application_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(onupdate=utcnow)

    author: Mapped[AdminUser] = relationship()


class AnalyticsEvent(Base):
    """Write-only event from the public site; aggregated on read."""
    __tablename__ = "analytics_events"
    __table_args__ = (
        Index("idx_analytics_type_created", "event_type", "created_at"),
    )

    id: Mapped[uuid.UUID] = _pk()
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    job_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("jobs.id", ondelete="SET NULL")
    )
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)
    ip_hash: Mapped[str | None] = mapped_column(String(16))
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


# =============================================================================
# Email Models
# =============================================================================

class EmailTemplate(Base):
    """Reusable email with {{placeholder}} tokens."""
    __tablename__ = "email_templates"

    id: Mapped[uuid.UUID] = _pk()
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    trigger_status: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )


class SentEmailMixin:
    """Columns shared by every outbound email log (pending -> sent|failed)."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id"), nullable=False
    )
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("email_templates.id", ondelete="SET NULL")
    )
    from_email: Mapped[str | None] = mapped_column(String(255))
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_EMAIL_STATUS.value, nullable=False
    )
    message_id: Mapped[str | None] = mapped_column(String(255))
    error_message: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None]
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class SentEmail(SentEmailMixin, Base):
    """Email sent to an applicant."""
    __tablename__ = "sent_emails"

    application_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )


class ReceivedEmail(Base):
    """Inbound message synced from the shared mailbox."""
    __tablename__ = "received_emails"

    id: Mapped[uuid.UUID] = _pk()
    application_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), index=True
    )
    graph_message_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    conversation_id: Mapped[str | None] = mapped_column(String(255))
    from_email: Mapped[str] = mapped_column(String(255), nullable=False)
    from_name: Mapped[str | None] = mapped_column(String(255))
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    body_preview: Mapped[str | None] = mapped_column(Text)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    received_at: Mapped[datetime] = mapped_column(nullable=False)
    is_read: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


# =============================================================================
# Employee Models
# =============================================================================

class Employee(Base):
    """
    A staff record, created manually or from a hired application.

    salary / address / emergency_contact are native JSON validated by the
    pydantic schemas in app.schemas.employee before they reach this row.
    Termination is a status flip, never a row delete.
    """
    __tablename__ = "employees"
    __table_args__ = (Index("idx_employees_status", "status"),)

    id: Mapped[uuid.UUID] = _pk()
    application_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("applications.id", ondelete="SET NULL")
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    department: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(255), nullable=False)
    job_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("jobs.id", ondelete="SET NULL")
    )
    hire_date: Mapped[date] = mapped_column(nullable=False)
    salary: Mapped[dict[str, Any] | None]
    benefits: Mapped[list[str] | None]
    address: Mapped[dict[str, Any] | None]
    emergency_contact: Mapped[dict[str, Any] | None]
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_EMPLOYEE_STATUS.value, nullable=False
    )
    termination_date: Mapped[date | None]
    termination_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("admin_users.id"))


class EmployeeDocument(Base):
    __tablename__ = "employee_documents"

    id: Mapped[uuid.UUID] = _pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int | None]
    mime_type: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    expires_at: Mapped[date | None]
    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class EmployeeNote(Base):
    __tablename__ = "employee_notes"

    id: Mapped[uuid.UUID] = _pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        String(20), default=EmployeeNoteCategory.GENERAL.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(onupdate=utcnow)

    author: Mapped[AdminUser] = relationship()


class ActivityLogMixin:
    """
    Append-only audit row. Values are native JSON so nested structures
    (salary, address) round-trip without a parse step.
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    field: Mapped[str | None] = mapped_column(String(50))
    previous_value: Mapped[Any] = mapped_column(JSON(none_as_null=True), nullable=True)
    new_value: Mapped[Any] = mapped_column(JSON(none_as_null=True), nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON(none_as_null=True)
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class EmployeeActivityLog(ActivityLogMixin, Base):
    __tablename__ = "employee_activity_log"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )


class EmployeeSentEmail(SentEmailMixin, Base):
    __tablename__ = "employee_sent_emails"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )


# =============================================================================
# Sales Models
# =============================================================================

class SalesLead(Base):
    """
    Pipeline opportunity.

    won_date and lost_date are mutually exclusive and owned by the stage
    transition table in app.services.stage_rules.
    """
    __tablename__ = "sales_leads"
    __table_args__ = (Index("idx_sales_leads_stage", "stage"),)

    id: Mapped[uuid.UUID] = _pk()
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_phone: Mapped[str | None] = mapped_column(String(50))
    stage: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_SALES_LEAD_STAGE.value, nullable=False
    )
    estimated_value: Mapped[int | None]  # minor units (cents)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    source: Mapped[str | None] = mapped_column(String(50))
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("admin_users.id", ondelete="SET NULL")
    )
    won_date: Mapped[datetime | None]
    lost_date: Mapped[datetime | None]
    lost_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("admin_users.id"))

    assignee: Mapped[AdminUser | None] = relationship(foreign_keys=[assigned_to])


class SalesLeadNote(Base):
    __tablename__ = "sales_lead_notes"

    id: Mapped[uuid.UUID] = _pk()
    lead_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales_leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("admin_users.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        String(20), default=SalesLeadNoteCategory.GENERAL.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(onupdate=utcnow)

    author: Mapped[AdminUser] = relationship()


class SalesLeadActivityLog(ActivityLogMixin, Base):
    __tablename__ = "sales_lead_activity_log"

    lead_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales_leads.id", ondelete="CASCADE"), nullable=False, index=True
    )


class SalesLeadSentEmail(SentEmailMixin, Base):
    __tablename__ = "sales_lead_sent_emails"

    lead_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales_leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
