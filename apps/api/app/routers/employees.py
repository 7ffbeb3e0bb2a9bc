"""Employees router - staff records, notes, documents, activity and email."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_mail_client, get_storage, require_permission
from app.core.permissions import Permission
from app.db.enums import DocumentType
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
from app.schemas.employee import (
    DocumentRead,
    EmployeeCreate,
    EmployeeListResponse,
    EmployeePrefill,
    EmployeeRead,
    EmployeeUpdate,
)
from app.schemas.note import NoteCreate, NoteRead, NoteUpdate
from app.services import email_service, employee_service, note_service, storage_service
from app.services.graph_mail import GraphMailClient

router = APIRouter(prefix="/admin/employees", tags=["employees"])

VIEW = Permission.VIEW_EMPLOYEES
MANAGE = Permission.MANAGE_EMPLOYEES


def _get_employee_or_404(db: Session, employee_id: UUID):
    employee = employee_service.get_employee(db, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.get("", response_model=EmployeeListResponse)
def list_employees(
    status: str | None = Query(None),
    department: str | None = Query(None),
    search: str | None = Query(None),
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    employees = employee_service.list_employees(
        db, status=status, department=department, search=search
    )
    return EmployeeListResponse(
        employees=[employee_service.to_employee_read(e) for e in employees],
        departments=employee_service.list_departments(db),
    )


@router.post("", response_model=EmployeeRead, status_code=201)
def create_employee(
    data: EmployeeCreate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    try:
        employee = employee_service.create_employee(db, data, session.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return employee_service.to_employee_read(employee)


@router.get("/from-application", response_model=EmployeePrefill)
def prefill_from_application(
    application_id: UUID = Query(..., alias="applicationId"),
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    """Form values for converting a hired applicant."""
    try:
        return employee_service.build_prefill(db, application_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{employee_id}", response_model=EmployeeRead)
def get_employee(
    employee_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    return employee_service.to_employee_read(_get_employee_or_404(db, employee_id))


@router.patch("/{employee_id}", response_model=SuccessResponse)
def update_employee(
    employee_id: UUID,
    data: EmployeeUpdate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    """Partial update. Only fields whose value differs are written and logged."""
    employee = _get_employee_or_404(db, employee_id)
    try:
        changes = employee_service.update_employee(db, employee, data, session.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not changes:
        return SuccessResponse(message="No changes detected")
    return SuccessResponse(message=f"Updated {len(changes)} field(s)")


@router.delete("/{employee_id}", response_model=SuccessResponse)
def delete_employee(
    employee_id: UUID,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    """Soft delete: the employee is marked terminated."""
    employee = _get_employee_or_404(db, employee_id)
    employee_service.terminate_employee(db, employee, session.user_id)
    return SuccessResponse()


# =============================================================================
# Notes
# =============================================================================

@router.get("/{employee_id}/notes", response_model=list[NoteRead])
def list_notes(
    employee_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_employee_or_404(db, employee_id)
    return note_service.list_notes(db, note_service.EMPLOYEE_NOTES, employee_id)


@router.post("/{employee_id}/notes", response_model=NoteRead, status_code=201)
def create_note(
    employee_id: UUID,
    data: NoteCreate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    _get_employee_or_404(db, employee_id)
    return create_note_or_error(db, note_service.EMPLOYEE_NOTES, employee_id, session, data)


@router.patch("/{employee_id}/notes", response_model=NoteRead)
def update_note(
    employee_id: UUID,
    data: NoteUpdate,
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    return update_note_or_error(db, note_service.EMPLOYEE_NOTES, employee_id, session, data)


@router.delete("/{employee_id}/notes", response_model=SuccessResponse)
def delete_note(
    employee_id: UUID,
    note_id: UUID = Query(..., alias="noteId"),
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
):
    delete_note_or_error(db, note_service.EMPLOYEE_NOTES, employee_id, note_id, session)
    return SuccessResponse()


# =============================================================================
# Documents
# =============================================================================

@router.get("/{employee_id}/documents", response_model=list[DocumentRead])
def list_documents(
    employee_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_employee_or_404(db, employee_id)
    return employee_service.list_documents(db, employee_id)


@router.post("/{employee_id}/documents", response_model=DocumentRead, status_code=201)
async def upload_document(
    employee_id: UUID,
    file: UploadFile | None = File(None),
    document_type: str | None = Form(None, alias="documentType"),
    description: str | None = Form(None),
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    employee = _get_employee_or_404(db, employee_id)
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="File is required")
    if not document_type or document_type not in {t.value for t in DocumentType}:
        raise HTTPException(status_code=400, detail="Invalid document type")

    data = await file.read()
    error = storage_service.validate_document(file.content_type, len(data))
    if error:
        raise HTTPException(status_code=400, detail=error)

    key = storage_service.build_document_key(str(employee.id), file.filename)
    storage.save(key, data, content_type=file.content_type)
    return employee_service.add_document(
        db,
        employee,
        session.user_id,
        name=file.filename,
        document_type=document_type,
        file_path=key,
        file_size=len(data),
        mime_type=file.content_type,
        description=(description or "").strip() or None,
    )


@router.delete("/{employee_id}/documents", response_model=SuccessResponse)
def delete_document(
    employee_id: UUID,
    document_id: UUID = Query(..., alias="documentId"),
    session: UserSession = Depends(require_permission(MANAGE)),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    document = employee_service.get_document(db, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    if document.employee_id != employee_id:
        raise HTTPException(status_code=403, detail="Document does not belong to this employee")

    file_path = document.file_path
    employee_service.remove_document(db, document, session.user_id)
    storage.delete(file_path)
    return SuccessResponse()


# =============================================================================
# Activity & email
# =============================================================================

@router.get("/{employee_id}/activity", response_model=list[ActivityRead])
def list_activity(
    employee_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_employee_or_404(db, employee_id)
    return employee_service.list_activity(db, employee_id, limit)


@router.get("/{employee_id}/emails", response_model=list[SentEmailRead])
def list_emails(
    employee_id: UUID,
    session: UserSession = Depends(require_permission(VIEW)),
    db: Session = Depends(get_db),
):
    _get_employee_or_404(db, employee_id)
    return email_service.list_employee_emails(db, employee_id)


@router.post("/{employee_id}/emails", response_model=SendEmailResponse)
async def send_email(
    employee_id: UUID,
    data: SendEmailRequest,
    session: UserSession = Depends(require_permission(Permission.SEND_EMAILS)),
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
):
    employee = _get_employee_or_404(db, employee_id)
    return await send_email_or_error(
        db,
        data,
        lambda subject, body: email_service.send_employee_email(
            db,
            mail_client,
            employee,
            admin_user_id=session.user_id,
            subject=subject,
            body=body,
            template_id=data.template_id,
            from_address=data.from_address,
        ),
    )
