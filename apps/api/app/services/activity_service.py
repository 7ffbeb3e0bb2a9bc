"""Activity logging service - append-only audit trail for employees and leads."""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from pydantic_core import to_jsonable_python
from sqlalchemy.orm import Session

from app.db.enums import EmployeeActivityAction, SalesLeadActivityAction
from app.db.models import AdminUser, EmployeeActivityLog, SalesLeadActivityLog
from app.schemas.activity import ActivityRead


@dataclass(frozen=True)
class FieldChange:
    field: str
    previous_value: Any
    new_value: Any


def to_log_value(value: Any) -> Any:
    """Coerce a value into plain JSON data (dates become ISO strings)."""
    return to_jsonable_python(value)


def diff_fields(current: dict[str, Any], incoming: dict[str, Any]) -> list[FieldChange]:
    """
    Compare incoming values against current ones, field by field.

    Only keys present in `incoming` are considered. Equality is checked on
    the JSON form so nested dicts/lists and dates compare by value.
    """
    changes: list[FieldChange] = []
    for field, new_value in incoming.items():
        old_json = to_log_value(current.get(field))
        new_json = to_log_value(new_value)
        if old_json != new_json:
            changes.append(FieldChange(field, old_json, new_json))
    return changes


# =============================================================================
# Employee activity
# =============================================================================

def log_employee_activity(
    db: Session,
    employee_id: UUID,
    admin_user_id: UUID,
    action: EmployeeActivityAction,
    field: str | None = None,
    previous_value: Any = None,
    new_value: Any = None,
    details: dict | None = None,
) -> EmployeeActivityLog:
    """
    Log an employee activity.

    Args:
        db: Database session
        employee_id: The employee this activity is for
        admin_user_id: Admin who performed the action
        action: Type of activity
        field: Changed field (updates only)
        previous_value / new_value: Any JSON-compatible value
        details: Extra context stored in the metadata column

    Returns:
        The created activity log entry
    """
    activity = EmployeeActivityLog(
        employee_id=employee_id,
        admin_user_id=admin_user_id,
        action=action.value,
        field=field,
        previous_value=to_log_value(previous_value),
        new_value=to_log_value(new_value),
        details=to_log_value(details),
    )
    db.add(activity)
    db.flush()  # Don't commit - let caller control transaction
    return activity


def log_employee_changes(
    db: Session,
    employee_id: UUID,
    admin_user_id: UUID,
    changes: list[FieldChange],
) -> list[EmployeeActivityLog]:
    """One row per changed field; `status` gets its own action."""
    return [
        log_employee_activity(
            db,
            employee_id,
            admin_user_id,
            EmployeeActivityAction.STATUS_CHANGED
            if change.field == "status"
            else EmployeeActivityAction.UPDATED,
            field=change.field,
            previous_value=change.previous_value,
            new_value=change.new_value,
        )
        for change in changes
    ]


def list_employee_activity(
    db: Session,
    employee_id: UUID,
    limit: int = 50,
) -> list[tuple[EmployeeActivityLog, AdminUser | None]]:
    return (
        db.query(EmployeeActivityLog, AdminUser)
        .outerjoin(AdminUser, AdminUser.id == EmployeeActivityLog.admin_user_id)
        .filter(EmployeeActivityLog.employee_id == employee_id)
        .order_by(EmployeeActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )


# =============================================================================
# Sales lead activity
# =============================================================================

def log_sales_lead_activity(
    db: Session,
    lead_id: UUID,
    admin_user_id: UUID,
    action: SalesLeadActivityAction,
    field: str | None = None,
    previous_value: Any = None,
    new_value: Any = None,
    details: dict | None = None,
) -> SalesLeadActivityLog:
    """Log a sales lead activity (see log_employee_activity)."""
    activity = SalesLeadActivityLog(
        lead_id=lead_id,
        admin_user_id=admin_user_id,
        action=action.value,
        field=field,
        previous_value=to_log_value(previous_value),
        new_value=to_log_value(new_value),
        details=to_log_value(details),
    )
    db.add(activity)
    db.flush()
    return activity


def log_sales_lead_changes(
    db: Session,
    lead_id: UUID,
    admin_user_id: UUID,
    changes: list[FieldChange],
) -> list[SalesLeadActivityLog]:
    """One row per changed field; `stage` is logged as stage_changed."""
    return [
        log_sales_lead_activity(
            db,
            lead_id,
            admin_user_id,
            SalesLeadActivityAction.STAGE_CHANGED
            if change.field == "stage"
            else SalesLeadActivityAction.UPDATED,
            field=change.field,
            previous_value=change.previous_value,
            new_value=change.new_value,
            details=(
                {"from": change.previous_value, "to": change.new_value}
                if change.field == "stage"
                else None
            ),
        )
        for change in changes
    ]


def list_sales_lead_activity(
    db: Session,
    lead_id: UUID,
    limit: int = 50,
) -> list[tuple[SalesLeadActivityLog, AdminUser | None]]:
    return (
        db.query(SalesLeadActivityLog, AdminUser)
        .outerjoin(AdminUser, AdminUser.id == SalesLeadActivityLog.admin_user_id)
        .filter(SalesLeadActivityLog.lead_id == lead_id)
        .order_by(SalesLeadActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )


def to_activity_read(
    entry: EmployeeActivityLog | SalesLeadActivityLog,
    actor: AdminUser | None,
) -> ActivityRead:
    return ActivityRead(
        id=entry.id,
        action=entry.action,
        field=entry.field,
        previous_value=entry.previous_value,
        new_value=entry.new_value,
        details=entry.details,
        admin_user_id=entry.admin_user_id,
        admin_name=actor.name if actor else None,
        admin_email=actor.email if actor else None,
        created_at=entry.created_at,
    )
