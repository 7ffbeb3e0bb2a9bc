"""Tests for application status prompts and the sales stage transition table."""
from datetime import datetime, timezone

import pytest

from app.db.enums import ApplicationStatus, SalesLeadStage
from app.services import stage_rules

NOW = datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "status, template",
    [
        ("rejected", "rejection"),
        ("interviewed", "interview_invite"),
        ("offered", "offer_letter"),
        ("new", None),
        ("reviewing", None),
        ("hired", None),
    ],
)
def test_status_email_prompts(status, template):
    assert stage_rules.get_suggested_template_name(status) == template
    assert stage_rules.should_prompt_for_email(status) is (template is not None)


def test_every_stage_has_a_transition():
    assert set(stage_rules.STAGE_TRANSITIONS) == set(SalesLeadStage)


def test_won_sets_won_date_and_clears_lost_fields():
    deltas = stage_rules.stage_transition_deltas("won", NOW, "price")

    assert deltas == {"won_date": NOW, "lost_date": None, "lost_reason": None}


def test_lost_sets_lost_date_and_reason_and_clears_won():
    deltas = stage_rules.stage_transition_deltas("lost", NOW, "went with competitor")

    assert deltas == {"lost_date": NOW, "lost_reason": "went with competitor", "won_date": None}


@pytest.mark.parametrize("stage", ["new", "contacted", "qualified", "proposal", "negotiation"])
def test_open_stages_clear_both_dates(stage):
    deltas = stage_rules.stage_transition_deltas(stage, NOW, "ignored")

    assert deltas == {"won_date": None, "lost_date": None, "lost_reason": None}


def test_unknown_stage_raises():
    with pytest.raises(ValueError):
        stage_rules.stage_transition_deltas("archived", NOW)


def test_status_enum_is_closed():
    assert ApplicationStatus.has_value("hired")
    assert not ApplicationStatus.has_value("archived")
