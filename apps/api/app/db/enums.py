"""Enum definitions for application constants."""

from enum import Enum


class ApplicationStatus(str, Enum):
    """
    Applicant pipeline, in board order.

    Moving into REJECTED, INTERVIEWED or OFFERED suggests sending the
    matching email template; the status write never depends on that email.
    """
    NEW = "new"
    REVIEWING = "reviewing"
    INTERVIEWED = "interviewed"
    OFFERED = "offered"
    HIRED = "hired"
    REJECTED = "rejected"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


class SalesLeadStage(str, Enum):
    """Sales pipeline. WON and LOST are terminal and carry their own dates."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    WON = "won"
    LOST = "lost"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


class EmailStatus(str, Enum):
    """Outbound send lifecycle: pending until the mail API answers."""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class EmployeeActivityAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_DELETED = "document_deleted"
    NOTE_ADDED = "note_added"
    NOTE_UPDATED = "note_updated"
    NOTE_DELETED = "note_deleted"
    EMAIL_SENT = "email_sent"


class SalesLeadActivityAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    STAGE_CHANGED = "stage_changed"
    NOTE_ADDED = "note_added"
    NOTE_UPDATED = "note_updated"
    NOTE_DELETED = "note_deleted"
    EMAIL_SENT = "email_sent"


class EmployeeNoteCategory(str, Enum):
    GENERAL = "general"
    PERFORMANCE = "performance"
    FEEDBACK = "feedback"
    HR = "hr"


class SalesLeadNoteCategory(str, Enum):
    GENERAL = "general"
    CALL = "call"
    MEETING = "meeting"
    EMAIL = "email"
    FOLLOW_UP = "follow_up"


class DocumentType(str, Enum):
    CONTRACT = "contract"
    ID_DOCUMENT = "id_document"
    TAX_FORM = "tax_form"
    CERTIFICATION = "certification"
    OTHER = "other"


class AnalyticsEventType(str, Enum):
    PAGE_VIEW = "page_view"
    JOB_VIEW = "job_view"
    APPLICATION_START = "application_start"
    APPLICATION_SUBMIT = "application_submit"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


# Defaults (used in models)
DEFAULT_APPLICATION_STATUS = ApplicationStatus.NEW
DEFAULT_SALES_LEAD_STAGE = SalesLeadStage.NEW
DEFAULT_EMPLOYEE_STATUS = EmployeeStatus.ACTIVE
DEFAULT_EMAIL_STATUS = EmailStatus.PENDING
