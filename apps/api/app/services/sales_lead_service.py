"""Sales lead service - pipeline CRUD with stage bookkeeping and audit rows."""

import logging
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.structured_logging import build_log_context
from app.db.enums import SalesLeadActivityAction, SalesLeadStage
from app.db.models import SalesLead
from app.db.types import utcnow
from app.schemas.activity import ActivityRead
from app.schemas.sales_lead import SalesLeadCreate, SalesLeadRead, SalesLeadUpdate
from app.services import activity_service, stage_rules

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("company_name", "contact_name", "contact_email")

TRACKED_FIELDS = (
    "company_name",
    "contact_name",
    "contact_email",
    "contact_phone",
    "stage",
    "estimated_value",
    "currency",
    "source",
    "assigned_to",
    "lost_reason",
)

STAGES = [stage.value for stage in SalesLeadStage]


def get_lead(db: Session, lead_id: UUID) -> SalesLead | None:
    return (
        db.query(SalesLead)
        .options(joinedload(SalesLead.assignee))
        .filter(SalesLead.id == lead_id)
        .first()
    )


def list_leads(
    db: Session,
    *,
    stage: str | None = None,
    source: str | None = None,
    assigned_to: UUID | None = None,
    search: str | None = None,
) -> list[SalesLead]:
    query = db.query(SalesLead).options(joinedload(SalesLead.assignee))
    if stage:
        query = query.filter(SalesLead.stage == stage)
    if source:
        query = query.filter(SalesLead.source == source)
    if assigned_to:
        query = query.filter(SalesLead.assigned_to == assigned_to)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                SalesLead.company_name.ilike(pattern),
                SalesLead.contact_name.ilike(pattern),
                SalesLead.contact_email.ilike(pattern),
            )
        )
    return query.order_by(SalesLead.updated_at.desc()).all()


def list_sources(db: Session) -> list[str]:
    rows = (
        db.query(SalesLead.source)
        .filter(SalesLead.source.isnot(None))
        .distinct()
        .order_by(SalesLead.source)
        .all()
    )
    return [source for (source,) in rows if source]


def to_lead_read(lead: SalesLead) -> SalesLeadRead:
    return SalesLeadRead.model_validate(lead).model_copy(
        update={"assigned_to_name": lead.assignee.name if lead.assignee else None}
    )


def _check_stage(stage: str | None) -> str:
    if not stage or not SalesLeadStage.has_value(stage):
        raise ValueError("Invalid stage")
    return stage


def create_lead(db: Session, data: SalesLeadCreate, admin_user_id: UUID) -> SalesLead:
    """
    Raises:
        ValueError: missing required field or unknown stage
    """
    for field in REQUIRED_FIELDS:
        if not (getattr(data, field) or "").strip():
            raise ValueError("Missing required fields")
    stage = _check_stage(data.stage or SalesLeadStage.NEW.value)

    lead = SalesLead(
        company_name=data.company_name.strip(),
        contact_name=data.contact_name.strip(),
        contact_email=data.contact_email.strip(),
        contact_phone=data.contact_phone,
        stage=stage,
        estimated_value=data.estimated_value,
        currency=data.currency or "USD",
        source=data.source,
        assigned_to=data.assigned_to,
        created_by=admin_user_id,
    )
    for field, value in stage_rules.stage_transition_deltas(
        stage, utcnow(), data.lost_reason
    ).items():
        setattr(lead, field, value)

    db.add(lead)
    db.flush()
    activity_service.log_sales_lead_activity(
        db,
        lead.id,
        admin_user_id,
        SalesLeadActivityAction.CREATED,
        details={"companyName": lead.company_name, "stage": lead.stage},
    )
    db.commit()
    db.refresh(lead)
    logger.info(
        "Sales lead created",
        extra=build_log_context(user_id=str(admin_user_id), entity_id=str(lead.id)),
    )
    return lead


def update_lead(
    db: Session,
    lead: SalesLead,
    data: SalesLeadUpdate,
    admin_user_id: UUID,
) -> list[activity_service.FieldChange]:
    """
    Apply the fields that differ; a stage change also runs the transition table.

    Returns the applied changes (empty when the payload matches the row).

    Raises:
        ValueError: unknown stage or a required field blanked
    """
    # An empty string clears the field
    incoming = {
        field: None if value == "" else value
        for field, value in data.model_dump(exclude_unset=True).items()
        if field in TRACKED_FIELDS
    }
    if "stage" in incoming:
        _check_stage(incoming["stage"])
    for field in REQUIRED_FIELDS:
        if field in incoming and not (incoming[field] or "").strip():
            raise ValueError("Missing required fields")
    if "currency" in incoming and not incoming["currency"]:
        incoming.pop("currency")
    # A lost reason only belongs on a lost lead
    if incoming.get("stage", lead.stage) != SalesLeadStage.LOST.value:
        incoming.pop("lost_reason", None)

    current = {field: getattr(lead, field) for field in incoming}
    changes = activity_service.diff_fields(current, incoming)
    if not changes:
        return []

    for change in changes:
        setattr(lead, change.field, incoming[change.field])
    if any(change.field == "stage" for change in changes):
        deltas = stage_rules.stage_transition_deltas(
            lead.stage, utcnow(), incoming.get("lost_reason", lead.lost_reason)
        )
        for field, value in deltas.items():
            setattr(lead, field, value)

    activity_service.log_sales_lead_changes(db, lead.id, admin_user_id, changes)
    db.commit()
    db.refresh(lead)
    return changes


def delete_lead(db: Session, lead: SalesLead) -> None:
    """Hard delete; notes, activity and email rows cascade."""
    db.delete(lead)
    db.commit()


def list_activity(db: Session, lead_id: UUID, limit: int = 50) -> list[ActivityRead]:
    rows = activity_service.list_sales_lead_activity(db, lead_id, limit)
    return [activity_service.to_activity_read(entry, actor) for entry, actor in rows]
