"""Email template storage and {{placeholder}} rendering."""

import re
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Application, EmailTemplate, Employee, Job, SalesLead

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# Documented placeholders per entity (shown in the template editor)
APPLICATION_PLACEHOLDERS = {
    "applicant_name": "Full name (first + last)",
    "applicant_first": "First name only",
    "job_title": "Position title",
    "company_name": "Company name",
    "application_date": "Date they applied",
}
EMPLOYEE_PLACEHOLDERS = {
    "employee_name": "Full name (first + last)",
    "employee_first": "First name only",
    "employee_last": "Last name only",
    "department": "Department",
    "role": "Job title",
    "company_name": "Company name",
}
SALES_LEAD_PLACEHOLDERS = {
    "contact_name": "Contact's name",
    "company_name": "Lead's company",
    "company": "Our company name",
}


def render_text(text: str, variables: dict[str, str]) -> str:
    """Replace known {{name}} tokens; unknown tokens are left as written."""
    def replace_var(match: re.Match) -> str:
        return variables.get(match.group(1), match.group(0))

    return VARIABLE_PATTERN.sub(replace_var, text)


def render_template(
    subject: str,
    body: str,
    variables: dict[str, str],
) -> tuple[str, str]:
    """Returns (rendered_subject, rendered_body)."""
    return render_text(subject, variables), render_text(body, variables)


def format_long_date(value: datetime | None) -> str:
    """'January 5, 2025' style, or 'N/A'."""
    if value is None:
        return "N/A"
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def build_application_variables(application: Application, job: Job | None) -> dict[str, str]:
    return {
        "applicant_name": f"{application.first_name} {application.last_name}",
        "applicant_first": application.first_name,
        "job_title": job.title if job else "",
        "company_name": settings.COMPANY_NAME,
        "application_date": format_long_date(application.created_at),
    }


def build_sample_application_variables() -> dict[str, str]:
    """Stand-in values for previewing a template without an application."""
    return {
        "applicant_name": "Jane Doe",
        "applicant_first": "Jane",
        "job_title": "Virtual Assistant",
        "company_name": settings.COMPANY_NAME,
        "application_date": format_long_date(datetime.now()),
    }


def build_employee_variables(employee: Employee) -> dict[str, str]:
    return {
        "employee_name": f"{employee.first_name} {employee.last_name}",
        "employee_first": employee.first_name,
        "employee_last": employee.last_name,
        "department": employee.department,
        "role": employee.role,
        "company_name": settings.COMPANY_NAME,
    }


def build_sales_lead_variables(lead: SalesLead) -> dict[str, str]:
    # company_name is the prospect's company here; ours is {{company}}.
    return {
        "contact_name": lead.contact_name,
        "company_name": lead.company_name,
        "company": settings.COMPANY_NAME,
    }


# =============================================================================
# CRUD
# =============================================================================

def list_templates(db: Session, *, active_only: bool = False) -> list[EmailTemplate]:
    query = db.query(EmailTemplate)
    if active_only:
        query = query.filter(EmailTemplate.is_active.is_(True))
    return query.order_by(EmailTemplate.name).all()


def get_template(db: Session, template_id: UUID) -> EmailTemplate | None:
    return db.query(EmailTemplate).filter(EmailTemplate.id == template_id).first()


def get_template_by_name(db: Session, name: str) -> EmailTemplate | None:
    return db.query(EmailTemplate).filter(EmailTemplate.name == name).first()


def create_template(
    db: Session,
    *,
    name: str,
    subject: str,
    body: str,
    trigger_status: str | None = None,
    is_active: bool = True,
) -> EmailTemplate:
    template = EmailTemplate(
        name=name,
        subject=subject,
        body=body,
        trigger_status=trigger_status,
        is_active=is_active,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def update_template(db: Session, template: EmailTemplate, changes: dict) -> EmailTemplate:
    for key, value in changes.items():
        setattr(template, key, value)
    db.commit()
    db.refresh(template)
    return template


def deactivate_template(db: Session, template: EmailTemplate) -> None:
    """Templates are never deleted; sent-email rows keep pointing at them."""
    template.is_active = False
    db.commit()


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_TEMPLATES: list[dict] = [
    {
        "name": "rejection",
        "subject": "Your application for {{job_title}}",
        "trigger_status": "rejected",
        "body": (
            "<p>Hi {{applicant_first}},</p>"
            "<p>Thank you for applying for the {{job_title}} position at {{company_name}}. "
            "After careful review we have decided to move forward with other candidates.</p>"
            "<p>We appreciate your interest and wish you the best in your search.</p>"
            "<p>The {{company_name}} Team</p>"
        ),
    },
    {
        "name": "interview_invite",
        "subject": "Interview invitation: {{job_title}}",
        "trigger_status": "interviewed",
        "body": (
            "<p>Hi {{applicant_first}},</p>"
            "<p>Thanks for applying for the {{job_title}} position on {{application_date}}. "
            "We would like to invite you to an interview.</p>"
            "<p>Please reply with a few times that work for you this week.</p>"
            "<p>The {{company_name}} Team</p>"
        ),
    },
    {
        "name": "offer_letter",
        "subject": "Offer: {{job_title}} at {{company_name}}",
        "trigger_status": "offered",
        "body": (
            "<p>Hi {{applicant_first}},</p>"
            "<p>We are delighted to offer you the {{job_title}} position at {{company_name}}.</p>"
            "<p>We will follow up shortly with the details. Reply to this email with any questions.</p>"
            "<p>The {{company_name}} Team</p>"
        ),
    },
    {
        "name": "status_update",
        "subject": "Update on your application for {{job_title}}",
        "trigger_status": None,
        "body": (
            "<p>Hi {{applicant_first}},</p>"
            "<p>We wanted to let you know your application for {{job_title}} is still under review.</p>"
            "<p>The {{company_name}} Team</p>"
        ),
    },
]


def seed_default_templates(db: Session) -> int:
    """Create any missing default template. Existing ones are left untouched."""
    created = 0
    for definition in DEFAULT_TEMPLATES:
        if get_template_by_name(db, definition["name"]):
            continue
        create_template(db, **definition)
        created += 1
    return created
