"""Status/stage transition rules for applications and sales leads.

Both pipelines are closed enumerations whose transitions carry side effects:
- Application: some target statuses suggest an email template.
- SalesLead: the target stage decides won/lost bookkeeping fields.

The sales rules are a table from target stage to a pure function producing
field deltas, so every stage has an explicit, individually testable entry.
"""

from datetime import datetime
from typing import Any, Callable

from app.db.enums import ApplicationStatus, SalesLeadStage


# =============================================================================
# Application status
# =============================================================================

STATUS_TEMPLATE_MAP: dict[str, str] = {
    ApplicationStatus.REJECTED.value: "rejection",
    ApplicationStatus.INTERVIEWED.value: "interview_invite",
    ApplicationStatus.OFFERED.value: "offer_letter",
}


def should_prompt_for_email(status: str) -> bool:
    """Whether moving to `status` should offer to email the applicant."""
    return status in STATUS_TEMPLATE_MAP


def get_suggested_template_name(status: str) -> str | None:
    return STATUS_TEMPLATE_MAP.get(status)


# =============================================================================
# Sales lead stage
# =============================================================================

StageDeltaFn = Callable[[datetime, str | None], dict[str, Any]]


def _won(now: datetime, lost_reason: str | None) -> dict[str, Any]:
    return {"won_date": now, "lost_date": None, "lost_reason": None}


def _lost(now: datetime, lost_reason: str | None) -> dict[str, Any]:
    return {"lost_date": now, "lost_reason": lost_reason, "won_date": None}


def _open(now: datetime, lost_reason: str | None) -> dict[str, Any]:
    return {"won_date": None, "lost_date": None, "lost_reason": None}


STAGE_TRANSITIONS: dict[SalesLeadStage, StageDeltaFn] = {
    SalesLeadStage.NEW: _open,
    SalesLeadStage.CONTACTED: _open,
    SalesLeadStage.QUALIFIED: _open,
    SalesLeadStage.PROPOSAL: _open,
    SalesLeadStage.NEGOTIATION: _open,
    SalesLeadStage.WON: _won,
    SalesLeadStage.LOST: _lost,
}


def stage_transition_deltas(
    target_stage: str,
    now: datetime,
    lost_reason: str | None = None,
) -> dict[str, Any]:
    """
    Field deltas for moving a lead into `target_stage`.

    Raises:
        ValueError: unknown stage
    """
    return STAGE_TRANSITIONS[SalesLeadStage(target_stage)](now, lost_reason)
