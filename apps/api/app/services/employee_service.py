"""Employee service - staff records, documents and their audit trail."""

import logging
from datetime import date
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.enums import (
    ApplicationStatus,
    DocumentType,
    EmployeeActivityAction,
    EmployeeStatus,
)
from app.db.models import Application, Employee, EmployeeDocument
from app.schemas.activity import ActivityRead
from app.schemas.employee import (
    EmployeeCreate,
    EmployeePrefill,
    EmployeeRead,
    EmployeeUpdate,
)
from app.services import activity_service

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("first_name", "last_name", "email", "department", "role", "hire_date")

# Fields a PATCH may change; anything else in the payload is ignored
TRACKED_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "department",
    "role",
    "job_id",
    "hire_date",
    "salary",
    "benefits",
    "address",
    "emergency_contact",
    "status",
    "termination_date",
    "termination_reason",
)

DELETE_REASON = "Deleted via admin panel"


class DuplicateEmployeeError(ValueError):
    pass


# =============================================================================
# Queries
# =============================================================================

def get_employee(db: Session, employee_id: UUID) -> Employee | None:
    return db.query(Employee).filter(Employee.id == employee_id).first()


def get_by_email(db: Session, email: str) -> Employee | None:
    return db.query(Employee).filter(Employee.email == email).first()


def list_employees(
    db: Session,
    *,
    status: str | None = None,
    department: str | None = None,
    search: str | None = None,
) -> list[Employee]:
    query = db.query(Employee)
    if status:
        query = query.filter(Employee.status == status)
    if department:
        query = query.filter(Employee.department == department)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Employee.first_name.ilike(pattern),
                Employee.last_name.ilike(pattern),
                Employee.email.ilike(pattern),
                Employee.role.ilike(pattern),
            )
        )
    return query.order_by(Employee.last_name, Employee.first_name).all()


def list_departments(db: Session) -> list[str]:
    rows = db.query(Employee.department).distinct().order_by(Employee.department).all()
    return [department for (department,) in rows if department]


def to_employee_read(employee: Employee) -> EmployeeRead:
    return EmployeeRead.model_validate(employee)


# =============================================================================
# Mutations
# =============================================================================

def _json_or_none(model) -> dict | None:
    return model.model_dump() if model is not None else None


def create_employee(db: Session, data: EmployeeCreate, admin_user_id: UUID) -> Employee:
    """
    Raises:
        ValueError: a required field is missing
        DuplicateEmployeeError: the email already belongs to an employee
    """
    for field in REQUIRED_FIELDS:
        value = getattr(data, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Missing required fields")

    email = data.email.strip()
    if get_by_email(db, email):
        raise DuplicateEmployeeError("An employee with this email already exists")

    employee = Employee(
        application_id=data.application_id,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        email=email,
        phone=data.phone,
        department=data.department.strip(),
        role=data.role.strip(),
        job_id=data.job_id,
        hire_date=data.hire_date,
        salary=_json_or_none(data.salary),
        benefits=data.benefits,
        address=_json_or_none(data.address),
        emergency_contact=_json_or_none(data.emergency_contact),
        status=EmployeeStatus.ACTIVE.value,
        created_by=admin_user_id,
    )
    db.add(employee)
    db.flush()
    activity_service.log_employee_activity(
        db,
        employee.id,
        admin_user_id,
        EmployeeActivityAction.CREATED,
        details={"name": f"{employee.first_name} {employee.last_name}"},
    )
    db.commit()
    db.refresh(employee)
    logger.info(
        "Employee created",
        extra=build_log_context(user_id=str(admin_user_id), entity_id=str(employee.id)),
    )
    return employee


def update_employee(
    db: Session,
    employee: Employee,
    data: EmployeeUpdate,
    admin_user_id: UUID,
) -> list[activity_service.FieldChange]:
    """
    Apply only the fields that actually differ and log one row per change.

    Returns the list of changes; an empty list means nothing was written.

    Raises:
        ValueError: invalid status or a required field blanked
        DuplicateEmployeeError: email taken by another employee
    """
    # Nested JSON models are dumped whole so their defaults are stored too
    incoming = {
        field: _json_or_none(value) if isinstance(value, BaseModel) else value
        for field, value in ((f, getattr(data, f)) for f in data.model_fields_set)
        if field in TRACKED_FIELDS
    }
    for field in REQUIRED_FIELDS:
        if field not in incoming:
            continue
        value = incoming[field]
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Missing required fields")
    if "status" in incoming:
        if not incoming["status"] or not EmployeeStatus.has_value(incoming["status"]):
            raise ValueError("Invalid status")
        if (
            incoming["status"] == EmployeeStatus.TERMINATED.value
            and employee.status != EmployeeStatus.TERMINATED.value
            and not incoming.get("termination_date")
        ):
            incoming["termination_date"] = date.today()
    if "email" in incoming and incoming["email"] != employee.email:
        other = get_by_email(db, incoming["email"])
        if other and other.id != employee.id:
            raise DuplicateEmployeeError("An employee with this email already exists")

    current = {field: getattr(employee, field) for field in incoming}
    changes = activity_service.diff_fields(current, incoming)
    if not changes:
        return []

    for change in changes:
        setattr(employee, change.field, incoming[change.field])
    activity_service.log_employee_changes(db, employee.id, admin_user_id, changes)
    db.commit()
    db.refresh(employee)
    return changes


def terminate_employee(db: Session, employee: Employee, admin_user_id: UUID) -> None:
    """Soft delete: status flips to terminated, the row stays."""
    previous = employee.status
    employee.status = EmployeeStatus.TERMINATED.value
    if employee.termination_date is None:
        employee.termination_date = date.today()
    activity_service.log_employee_activity(
        db,
        employee.id,
        admin_user_id,
        EmployeeActivityAction.STATUS_CHANGED,
        field="status",
        previous_value=previous,
        new_value=EmployeeStatus.TERMINATED.value,
        details={"reason": DELETE_REASON},
    )
    db.commit()


def build_prefill(db: Session, application_id: UUID) -> EmployeePrefill:
    """
    Raises:
        LookupError: application not found
        ValueError: application is not hired
    """
    application = db.query(Application).filter(Application.id == application_id).first()
    if application is None:
        raise LookupError("Application not found")
    if application.status != ApplicationStatus.HIRED.value:
        raise ValueError("Only hired applications can be converted to employees")

    job = application.job
    return EmployeePrefill(
        application_id=application.id,
        first_name=application.first_name,
        last_name=application.last_name,
        email=application.email,
        phone=application.phone,
        department=job.department if job else None,
        role=job.title if job else None,
        job_id=application.job_id,
    )


# =============================================================================
# Documents
# =============================================================================

def list_documents(db: Session, employee_id: UUID) -> list[EmployeeDocument]:
    return (
        db.query(EmployeeDocument)
        .filter(EmployeeDocument.employee_id == employee_id)
        .order_by(EmployeeDocument.created_at.desc())
        .all()
    )


def get_document(db: Session, document_id: UUID) -> EmployeeDocument | None:
    return db.query(EmployeeDocument).filter(EmployeeDocument.id == document_id).first()


def add_document(
    db: Session,
    employee: Employee,
    admin_user_id: UUID,
    *,
    name: str,
    document_type: str,
    file_path: str,
    file_size: int,
    mime_type: str | None,
    description: str | None = None,
    expires_at: date | None = None,
) -> EmployeeDocument:
    document = EmployeeDocument(
        employee_id=employee.id,
        name=name,
        type=DocumentType(document_type).value,
        file_path=file_path,
        file_size=file_size,
        mime_type=mime_type,
        description=description,
        expires_at=expires_at,
        uploaded_by=admin_user_id,
    )
    db.add(document)
    db.flush()
    activity_service.log_employee_activity(
        db,
        employee.id,
        admin_user_id,
        EmployeeActivityAction.DOCUMENT_UPLOADED,
        details={"documentId": document.id, "name": name, "type": document.type},
    )
    db.commit()
    db.refresh(document)
    return document


def remove_document(db: Session, document: EmployeeDocument, admin_user_id: UUID) -> None:
    activity_service.log_employee_activity(
        db,
        document.employee_id,
        admin_user_id,
        EmployeeActivityAction.DOCUMENT_DELETED,
        details={"documentId": document.id, "name": document.name},
    )
    db.delete(document)
    db.commit()


# =============================================================================
# Activity
# =============================================================================

def list_activity(db: Session, employee_id: UUID, limit: int = 50) -> list[ActivityRead]:
    rows = activity_service.list_employee_activity(db, employee_id, limit)
    return [activity_service.to_activity_read(entry, actor) for entry, actor in rows]
