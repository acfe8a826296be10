"""
Unit tests for the Supabase repositories

Query shapes are checked against a chainable MagicMock client.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from supportdesk.models.schemas import (
    AIRunStatus,
    NotificationCreate,
    NotificationPriority,
    NotificationType,
    Persona,
    TicketAIStatus,
    TicketCategory,
    TicketCreate,
)
from supportdesk.repositories import (
    AISettingsRepository,
    CustomerRepository,
    NotificationRepository,
    RecordNotFoundError,
    RunRepository,
    TicketRepository,
    TicketStore,
    TicketVersionConflictError,
)

TICKET_ROW = {
    "id": "ticket-1",
    "org_id": "org-1",
    "customer_id": "customer-1",
    "ticket_number": 1042,
    "subject": "Double charge",
    "content": "I was billed twice.",
    "category": "billing",
    "priority": "high",
    "status": "open",
    "ai_status": None,
    "latest_run_id": None,
    "confidence": 87.0,
    "version": 2,
    "created_at": "2025-01-15T12:00:00+00:00",
}

RUN_ROW = {
    "id": "run-1",
    "org_id": "org-1",
    "ticket_id": "ticket-1",
    "status": "queued",
    "created_at": "2025-01-15T12:00:00+00:00",
}


@pytest.fixture
def mock_supabase():
    """Fixture for mock Supabase client"""
    client = MagicMock()
    client.table.return_value = client
    client.select.return_value = client
    client.insert.return_value = client
    client.update.return_value = client
    client.eq.return_value = client
    client.in_.return_value = client
    client.lt.return_value = client
    client.ilike.return_value = client
    client.order.return_value = client
    client.limit.return_value = client
    client.execute.return_value = MagicMock(data=[])
    return client


def rows(*data):
    return MagicMock(data=list(data))


class TestRepositoryInitialization:
    """Test repository initialization"""

    def test_init_with_client(self, mock_supabase):
        repo = TicketRepository(supabase_client=mock_supabase)
        assert repo.client == mock_supabase
        assert repo.table_name == "tickets"

    def test_init_default_client(self):
        """Test initialization with default client (requires env vars)"""
        with patch('supabase.create_client') as create_client:
            repo = RunRepository()

        create_client.assert_called_once()
        assert repo.table_name == "ai_runs"


class TestTicketRepository:
    """Reads and version-checked writes"""

    def test_get_ticket(self, mock_supabase):
        mock_supabase.execute.return_value = rows(TICKET_ROW)

        ticket = TicketRepository(mock_supabase).get_ticket("ticket-1", "org-1")

        mock_supabase.table.assert_called_with("tickets")
        mock_supabase.eq.assert_any_call("id", "ticket-1")
        mock_supabase.eq.assert_any_call("org_id", "org-1")
        assert ticket.ticket_number == "1042"
        assert ticket.confidence == 87
        assert ticket.version == 2

    def test_get_missing_ticket(self, mock_supabase):
        assert TicketRepository(mock_supabase).get_ticket("nope") is None

    def test_create_ticket_starts_at_version_zero(self, mock_supabase):
        mock_supabase.execute.return_value = rows({**TICKET_ROW, "version": 0})

        TicketRepository(mock_supabase).create_ticket(TicketCreate(
            org_id="org-1",
            customer_id="customer-1",
            subject="Double charge",
            content="I was billed twice.",
            category=TicketCategory.BILLING,
            ai_status=TicketAIStatus.PENDING,
        ))

        payload = mock_supabase.insert.call_args.args[0]
        assert payload["version"] == 0
        assert payload["category"] == "billing"
        assert payload["ai_status"] == "pending"
        assert payload["latest_run_id"] is None

    def test_compare_and_swap(self, mock_supabase):
        mock_supabase.execute.return_value = rows({**TICKET_ROW, "version": 3, "ai_status": "draft_ready"})

        updated = TicketRepository(mock_supabase).compare_and_swap(
            "ticket-1",
            {"ai_status": TicketAIStatus.DRAFT_READY, "version": 99, "org_id": "other"},
            expected_version=2,
        )

        payload = mock_supabase.update.call_args.args[0]
        assert payload == {"ai_status": "draft_ready", "version": 3}
        mock_supabase.eq.assert_any_call("version", 2)
        assert updated.version == 3

    def test_compare_and_swap_conflict(self, mock_supabase):
        assert TicketRepository(mock_supabase).compare_and_swap("ticket-1", {"status": "open"}, 2) is None

    def test_update_ticket_reads_current_version(self, mock_supabase):
        mock_supabase.execute.side_effect = [
            rows(TICKET_ROW),
            rows({**TICKET_ROW, "version": 3, "status": "resolved"}),
        ]

        updated = TicketRepository(mock_supabase).update_ticket("ticket-1", {"status": "resolved"})

        mock_supabase.eq.assert_any_call("version", 2)
        assert updated.status.value == "resolved"

    def test_update_ticket_clears_column(self, mock_supabase):
        mock_supabase.execute.return_value = rows({**TICKET_ROW, "version": 3})

        TicketRepository(mock_supabase).update_ticket("ticket-1", {"ai_status": None}, expected_version=2)

        assert mock_supabase.update.call_args.args[0]["ai_status"] is None

    def test_update_missing_ticket(self, mock_supabase):
        with pytest.raises(RecordNotFoundError):
            TicketRepository(mock_supabase).update_ticket("nope", {"status": "open"})

    def test_update_ticket_gives_up(self, mock_supabase):
        # every read succeeds, every conditional write misses
        mock_supabase.execute.side_effect = [rows(TICKET_ROW), rows()] * 2

        repo = TicketRepository(mock_supabase, max_cas_attempts=2)
        with pytest.raises(TicketVersionConflictError):
            repo.update_ticket("ticket-1", {"status": "open"})

    def test_errors_are_reraised(self, mock_supabase):
        mock_supabase.execute.side_effect = ConnectionError("db down")

        with pytest.raises(ConnectionError):
            TicketRepository(mock_supabase).get_ticket("ticket-1")


class TestRunRepository:
    """ai_runs queue and audit trail"""

    def test_insert_run(self, mock_supabase):
        mock_supabase.execute.return_value = rows(RUN_ROW)

        run = RunRepository(mock_supabase).insert_run("ticket-1", "org-1")

        assert mock_supabase.insert.call_args.args[0] == {
            "ticket_id": "ticket-1",
            "status": "queued",
            "org_id": "org-1",
        }
        assert run.status == AIRunStatus.QUEUED

    def test_update_run_with_status_guard(self, mock_supabase):
        mock_supabase.execute.return_value = rows({**RUN_ROW, "status": "running"})
        started = datetime(2025, 1, 15, 12, 1, tzinfo=timezone.utc)

        run = RunRepository(mock_supabase).update_run(
            "run-1",
            {"status": AIRunStatus.RUNNING, "started_at": started},
            expected_statuses=[AIRunStatus.QUEUED, AIRunStatus.RUNNING],
        )

        assert mock_supabase.update.call_args.args[0] == {
            "status": "running",
            "started_at": "2025-01-15T12:01:00+00:00",
        }
        mock_supabase.in_.assert_called_once_with("status", ["queued", "running"])
        assert run.status == AIRunStatus.RUNNING

    def test_update_run_guard_miss(self, mock_supabase):
        result = RunRepository(mock_supabase).update_run(
            "run-1", {"status": AIRunStatus.DONE}, expected_statuses=[AIRunStatus.RUNNING]
        )
        assert result is None

    def test_list_runs_newest_first(self, mock_supabase):
        mock_supabase.execute.return_value = rows(RUN_ROW, {**RUN_ROW, "id": "run-0"})

        runs = RunRepository(mock_supabase).list_runs("ticket-1", limit=10)

        mock_supabase.order.assert_called_once_with("created_at", desc=True)
        mock_supabase.limit.assert_called_once_with(10)
        assert [run.id for run in runs] == ["run-1", "run-0"]

    def test_list_stale_queued_runs(self, mock_supabase):
        cutoff = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

        RunRepository(mock_supabase).list_stale_queued_runs(cutoff, limit=5)

        mock_supabase.eq.assert_called_once_with("status", "queued")
        mock_supabase.lt.assert_called_once_with("created_at", "2025-01-15T12:00:00+00:00")
        mock_supabase.order.assert_called_once_with("created_at")


class TestAISettingsRepository:
    """Per-org settings rows"""

    def test_missing_row_means_disabled(self, mock_supabase):
        settings = AISettingsRepository(mock_supabase).get_org_settings("org-1")
        assert settings.ai_enabled is False

    def test_row_is_clamped(self, mock_supabase):
        mock_supabase.execute.return_value = rows({
            "org_id": "org-1",
            "ai_enabled": True,
            "selected_persona": "pirate",
            "max_response_length": 9000,
            "tone_value": -5,
        })

        settings = AISettingsRepository(mock_supabase).get_org_settings("org-1")

        assert settings.selected_persona == Persona.PROFESSIONAL
        assert settings.max_response_length == 2000
        assert settings.tone_value == 0

    def test_get_or_create_inserts_defaults(self, mock_supabase):
        mock_supabase.execute.side_effect = [rows(), rows({"org_id": "org-1", "ai_enabled": True})]

        settings = AISettingsRepository(mock_supabase).get_or_create_settings("org-1")

        mock_supabase.insert.assert_called_once_with({"org_id": "org-1"})
        assert settings.ai_enabled is True

    def test_update_settings(self, mock_supabase):
        existing = rows({"org_id": "org-1", "ai_enabled": True})
        updated = rows({"org_id": "org-1", "ai_enabled": True, "selected_persona": "concise"})
        mock_supabase.execute.side_effect = [existing, MagicMock(data=[]), updated]

        settings = AISettingsRepository(mock_supabase).update_settings(
            "org-1", {"selected_persona": Persona.CONCISE}
        )

        assert mock_supabase.update.call_args.args[0] == {"selected_persona": "concise"}
        assert settings.selected_persona == Persona.CONCISE

    def test_update_requires_fields(self, mock_supabase):
        with pytest.raises(ValueError):
            AISettingsRepository(mock_supabase).update_settings("org-1", {})


class TestCustomerRepository:
    """Customer lookup by email"""

    def test_existing_customer(self, mock_supabase):
        mock_supabase.execute.return_value = rows({"id": "customer-1", "org_id": "org-1", "email": "a@b.co"})

        customer = CustomerRepository(mock_supabase).find_or_create_customer("org-1", "A", " A@B.co ")

        mock_supabase.ilike.assert_called_once_with("email", "a@b.co")
        mock_supabase.insert.assert_not_called()
        assert customer.id == "customer-1"

    def test_unique_violation_resolves_to_winner(self, mock_supabase):
        conflict = Exception("duplicate key value")
        conflict.code = "23505"
        winner = rows({"id": "customer-9", "org_id": "org-1", "email": "a@b.co"})
        mock_supabase.execute.side_effect = [rows(), conflict, winner]

        customer = CustomerRepository(mock_supabase).find_or_create_customer("org-1", "A", "a@b.co")

        assert customer.id == "customer-9"

    def test_other_insert_errors_propagate(self, mock_supabase):
        mock_supabase.execute.side_effect = [rows(), ConnectionError("db down")]

        with pytest.raises(ConnectionError):
            CustomerRepository(mock_supabase).find_or_create_customer("org-1", "A", "a@b.co")


class TestNotificationRepository:
    """Operator notifications"""

    def test_insert_notification(self, mock_supabase):
        mock_supabase.execute.return_value = rows({
            "id": "notification-1",
            "org_id": "org-1",
            "type": "ai",
            "priority": "high",
            "title": "AI run failed",
            "message": "Please review.",
            "ticket_id": "ticket-1",
        })

        created = NotificationRepository(mock_supabase).insert_notification(NotificationCreate(
            org_id="org-1",
            type=NotificationType.AI,
            priority=NotificationPriority.HIGH,
            title="AI run failed",
            message="Please review.",
            ticket_id="ticket-1",
        ))

        payload = mock_supabase.insert.call_args.args[0]
        assert payload["type"] == "ai"
        assert payload["priority"] == "high"
        assert payload["ticket_id"] == "ticket-1"
        assert created.id == "notification-1"


class TestTicketStore:
    """Async facade"""

    @pytest.mark.asyncio
    async def test_calls_run_off_the_event_loop(self, mock_supabase):
        mock_supabase.execute.return_value = rows(TICKET_ROW)

        store = TicketStore(supabase_client=mock_supabase)
        ticket = await store.get_ticket("ticket-1", "org-1")

        assert ticket.id == "ticket-1"

    @pytest.mark.asyncio
    async def test_update_run_passes_status_guard(self, mock_supabase):
        mock_supabase.execute.return_value = rows({**RUN_ROW, "status": "done"})

        store = TicketStore(supabase_client=mock_supabase)
        run = await store.update_run("run-1", {"status": AIRunStatus.DONE}, expected_statuses=[AIRunStatus.RUNNING])

        mock_supabase.in_.assert_called_once_with("status", ["running"])
        assert run.status == AIRunStatus.DONE
