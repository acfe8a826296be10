"""
Tests for the reconciliation rules (pure)
"""
from datetime import datetime, timedelta, timezone

import pytest

from supportdesk.models.schemas import AISettings, Ticket, TicketAIStatus
from supportdesk.services.reconciliation import (
    NOTE_AI_DISABLED,
    NOTE_DRAFT_WRITTEN,
    NOTE_HUMAN_EDIT_PRESERVED,
    NOTE_SUPERSEDED,
    draft_edited_since,
    plan_reconciliation,
)

from pipeline_fakes import make_draft

STARTED = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
ENABLED = AISettings(ai_enabled=True)
DISABLED = AISettings(ai_enabled=False)


def make_ticket(**fields) -> Ticket:
    data = {"id": "ticket-1", "org_id": "org-1", "latest_run_id": "run-1", "ai_status": "pending"}
    data.update(fields)
    return Ticket(**data)


class TestPlanReconciliation:
    """Ordered checks: disabled, superseded, human edit, write"""

    def test_writes_draft_for_latest_run(self):
        plan = plan_reconciliation(make_ticket(), "run-1", STARTED, make_draft("AI text"), ENABLED)

        assert plan.note == NOTE_DRAFT_WRITTEN
        assert plan.updates == {
            "ai_status": TicketAIStatus.DRAFT_READY,
            "draft_response": "AI text",
            "confidence": 90,
            "sentiment": 7,
        }

    def test_ai_disabled_clears_status_for_latest_run(self):
        plan = plan_reconciliation(make_ticket(), "run-1", STARTED, make_draft(), DISABLED)

        assert plan.note == NOTE_AI_DISABLED
        assert plan.updates == {"ai_status": None}

    def test_ai_disabled_ignores_older_run(self):
        plan = plan_reconciliation(make_ticket(latest_run_id="run-2"), "run-1", STARTED, make_draft(), DISABLED)

        assert plan.note == NOTE_AI_DISABLED
        assert plan.writes_ticket is False

    def test_superseded_run_writes_nothing(self):
        plan = plan_reconciliation(make_ticket(latest_run_id="run-2"), "run-1", STARTED, make_draft(), ENABLED)

        assert plan.note == NOTE_SUPERSEDED
        assert plan.updates is None

    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(seconds=5)])
    def test_human_edit_at_or_after_start_is_preserved(self, offset):
        ticket = make_ticket(draft_updated_at=STARTED + offset, draft_response="human text")
        plan = plan_reconciliation(ticket, "run-1", STARTED, make_draft(), ENABLED)

        assert plan.note == NOTE_HUMAN_EDIT_PRESERVED
        assert plan.updates == {"ai_status": TicketAIStatus.DRAFT_READY}

    def test_human_needed_is_kept(self):
        ticket = make_ticket(draft_updated_at=STARTED, ai_status="human_needed")
        plan = plan_reconciliation(ticket, "run-1", STARTED, make_draft(), ENABLED)

        assert plan.updates == {"ai_status": TicketAIStatus.HUMAN_NEEDED}

    def test_edit_before_start_is_overwritten(self):
        ticket = make_ticket(draft_updated_at=STARTED - timedelta(minutes=1))
        plan = plan_reconciliation(ticket, "run-1", STARTED, make_draft(), ENABLED)

        assert plan.note == NOTE_DRAFT_WRITTEN


class TestDraftEditedSince:
    """Timestamp comparison"""

    def test_never_edited(self):
        assert draft_edited_since(None, STARTED) is False

    def test_naive_timestamps_are_utc(self):
        assert draft_edited_since(datetime(2025, 1, 15, 12, 0), STARTED) is True
        assert draft_edited_since(datetime(2025, 1, 15, 11, 59), STARTED) is False

    def test_other_offsets(self):
        plus_two = timezone(timedelta(hours=2))
        assert draft_edited_since(datetime(2025, 1, 15, 14, 0, 1, tzinfo=plus_two), STARTED) is True
