"""Email template endpoints - CRUD and rendered previews."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.core.permissions import Permission
from app.schemas.auth import UserSession
from app.schemas.common import SuccessResponse
from app.schemas.email import (
    EmailTemplateCreate,
    EmailTemplateRead,
    EmailTemplateUpdate,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
)
from app.services import application_service, template_service

router = APIRouter(prefix="/admin/email-templates", tags=["email-templates"])


def _get_template_or_404(db: Session, template_id: UUID):
    template = template_service.get_template(db, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.get("", response_model=list[EmailTemplateRead])
def list_templates(
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    return template_service.list_templates(db)


@router.post("", response_model=EmailTemplateRead, status_code=201)
def create_template(
    data: EmailTemplateCreate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    name = (data.name or "").strip()
    if not name or not (data.subject or "").strip() or not (data.body or "").strip():
        raise HTTPException(status_code=400, detail="Name, subject, and body are required")
    if template_service.get_template_by_name(db, name):
        raise HTTPException(status_code=400, detail="A template with this name already exists")

    return template_service.create_template(
        db,
        name=name,
        subject=data.subject,
        body=data.body,
        trigger_status=data.trigger_status,
        is_active=data.is_active,
    )


@router.post("/preview", response_model=TemplatePreviewResponse)
def preview_template(
    data: TemplatePreviewRequest,
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    """
    Render a stored template (or ad-hoc subject/body) for display.

    With an applicationId the real applicant's values are used; otherwise
    sample values stand in.
    """
    subject, body = data.subject, data.body
    if data.template_id:
        template = _get_template_or_404(db, data.template_id)
        subject = subject or template.subject
        body = body or template.body
    if subject is None or body is None:
        raise HTTPException(status_code=400, detail="Template or subject and body are required")

    if data.application_id:
        application = application_service.get_application(db, data.application_id)
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")
        variables = template_service.build_application_variables(application, application.job)
    else:
        variables = template_service.build_sample_application_variables()

    rendered_subject, rendered_body = template_service.render_template(subject, body, variables)
    return TemplatePreviewResponse(subject=rendered_subject, body=rendered_body)


@router.get("/{template_id}", response_model=EmailTemplateRead)
def get_template(
    template_id: UUID,
    session: UserSession = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    return _get_template_or_404(db, template_id)


@router.patch("/{template_id}", response_model=EmailTemplateRead)
def update_template(
    template_id: UUID,
    data: EmailTemplateUpdate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    template = _get_template_or_404(db, template_id)
    changes = data.model_dump(exclude_unset=True)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Name cannot be empty")
        existing = template_service.get_template_by_name(db, name)
        if existing and existing.id != template.id:
            raise HTTPException(status_code=400, detail="A template with this name already exists")
        changes["name"] = name
    for field in ("subject", "body", "is_active"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be empty")

    return template_service.update_template(db, template, changes)


@router.delete("/{template_id}", response_model=SuccessResponse)
def delete_template(
    template_id: UUID,
    session: UserSession = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
    db: Session = Depends(get_db),
):
    template_service.deactivate_template(db, _get_template_or_404(db, template_id))
    return SuccessResponse()
