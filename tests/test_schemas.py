"""
Tests for Pydantic schemas to verify validation logic
"""
import pytest
from pydantic import ValidationError

from supportdesk.models.schemas import (
    AIRun,
    AIRunStatus,
    AISettings,
    DraftResult,
    DraftSource,
    NotificationCreate,
    Persona,
    RunResult,
    Ticket,
    TicketAIStatus,
    TicketCategory,
    TicketCreate,
    Urgency,
)


class TestTicketValidation:
    """Test Ticket model validation"""

    def test_row_is_parsed(self, sample_ticket_row):
        ticket = Ticket(**sample_ticket_row)

        assert ticket.ticket_number == "1042"
        assert ticket.category == TicketCategory.BILLING
        assert ticket.ai_status == TicketAIStatus.DRAFT_READY
        assert ticket.created_at.tzinfo is not None

    def test_float_scores_are_rounded(self, sample_ticket_row):
        ticket = Ticket(**sample_ticket_row)

        assert ticket.confidence == 72
        assert ticket.sentiment == 2

    def test_sentiment_out_of_range(self, sample_ticket_row):
        with pytest.raises(ValidationError):
            Ticket(**{**sample_ticket_row, "sentiment": 11})

    def test_negative_version(self, sample_ticket_row):
        with pytest.raises(ValidationError):
            Ticket(**{**sample_ticket_row, "version": -1})

    def test_camel_case_serialization(self, sample_ticket_row):
        data = Ticket(**sample_ticket_row).model_dump(by_alias=True)

        assert data["latestRunId"] == "run-7"
        assert data["draftUpdatedAt"] is None
        assert "latest_run_id" not in data

    def test_camel_case_input(self):
        ticket = Ticket(id="t1", orgId="org-demo", latestRunId="run-1")
        assert ticket.latest_run_id == "run-1"


class TestTicketCreateValidation:
    """Test TicketCreate model validation"""

    def test_subject_too_short(self):
        with pytest.raises(ValidationError):
            TicketCreate(
                org_id="org-demo",
                customer_id="customer-1",
                subject="Hi",
                content="Help",
                category=TicketCategory.GENERAL,
            )

    def test_defaults(self):
        ticket = TicketCreate(
            org_id="org-demo",
            customer_id="customer-1",
            subject="Order missing",
            content="Where is it?",
            category="shipping",
        )

        assert ticket.priority.value == "medium"
        assert ticket.status.value == "open"
        assert ticket.ai_status is None


class TestAIRun:
    """Test AIRun status helpers"""

    @pytest.mark.parametrize("status,terminal", [
        (AIRunStatus.QUEUED, False),
        (AIRunStatus.RUNNING, False),
        (AIRunStatus.DONE, True),
        (AIRunStatus.ERROR, True),
    ])
    def test_terminal_statuses(self, status, terminal):
        run = AIRun(id="run-1", ticket_id="t1", status=status)

        assert run.is_terminal is terminal
        assert run.is_in_flight is not terminal


class TestAISettings:
    """Test AISettings construction from rows"""

    def test_from_row(self, sample_settings_row):
        settings = AISettings.from_row(sample_settings_row)

        assert settings.ai_enabled is True
        assert settings.learning_mode is True
        assert settings.selected_persona == Persona.FRIENDLY
        assert settings.max_response_length == 400

    def test_missing_row_disables_ai(self):
        assert AISettings.from_row(None).ai_enabled is False
        assert AISettings.from_row({}).ai_enabled is False

    def test_numeric_ranges_are_clamped(self, sample_settings_row):
        settings = AISettings.from_row({
            **sample_settings_row,
            "max_response_length": 10,
            "tone_value": 140.4,
            "confidence_threshold": -3,
        })

        assert settings.max_response_length == 50
        assert settings.tone_value == 100
        assert settings.confidence_threshold == 0

    def test_non_numeric_values_use_defaults(self, sample_settings_row):
        settings = AISettings.from_row({
            **sample_settings_row,
            "max_response_length": "long",
            "tone_value": True,
            "confidence_threshold": None,
        })

        assert settings.max_response_length == 250
        assert settings.tone_value == 50
        assert settings.confidence_threshold == 85

    def test_unknown_persona_falls_back(self, sample_settings_row):
        settings = AISettings.from_row({**sample_settings_row, "selected_persona": "pirate"})
        assert settings.selected_persona == Persona.PROFESSIONAL

    def test_immutable(self, sample_settings_row):
        settings = AISettings.from_row(sample_settings_row)

        with pytest.raises(ValidationError):
            settings.ai_enabled = False


class TestDraftResult:
    """Test DraftResult validation"""

    def draft(self, **overrides):
        fields = {
            "intent": "Billing Issue",
            "urgency": Urgency.HIGH,
            "confidence": 71,
            "sentiment": 2,
            "draft_response": "Hello Jane,\n\nThanks for flagging this.",
        }
        fields.update(overrides)
        return DraftResult(**fields)

    def test_defaults_to_heuristic_source(self):
        assert self.draft().source == DraftSource.HEURISTIC

    def test_run_fields(self):
        assert self.draft().as_run_fields() == {
            "intent": "Billing Issue",
            "urgency": "high",
            "confidence": 71,
            "sentiment": 2,
            "draft_response": "Hello Jane,\n\nThanks for flagging this.",
        }

    @pytest.mark.parametrize("overrides", [
        {"confidence": 101},
        {"sentiment": 0},
        {"draft_response": ""},
        {"intent": ""},
        {"urgency": "critical"},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(ValidationError):
            self.draft(**overrides)


class TestNotificationCreate:
    """Test NotificationCreate validation"""

    def test_requires_title(self):
        with pytest.raises(ValidationError):
            NotificationCreate(org_id="org-demo", title="", message="Please review.")


class TestRunResult:
    """Test RunResult helpers"""

    def test_failure(self):
        result = RunResult.failure("run-1", "NOT_FOUND", "Run not found.")

        assert result.ok is False
        assert result.status is None
        assert result.model_dump(by_alias=True, exclude_none=True) == {
            "ok": False,
            "runId": "run-1",
            "error": {"code": "NOT_FOUND", "message": "Run not found."},
        }
