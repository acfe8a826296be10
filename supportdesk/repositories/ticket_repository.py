"""
Ticket Repository

CRUD for the `tickets` table with version-checked (compare-and-swap)
updates. Every write made through this repository bumps `version`, so
concurrent writers (human edits vs. the AI run pipeline) detect each
other instead of silently overwriting.
"""
from typing import Any, Dict, Optional

from supportdesk.models.schemas import Ticket, TicketCreate
from supportdesk.repositories.base_repository import (
    BaseRepository,
    RecordNotFoundError,
    TicketVersionConflictError,
)
from supportdesk.config import get_settings
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

# Columns callers may never set directly
_PROTECTED_FIELDS = ("id", "org_id", "version", "created_at")


class TicketRepository(BaseRepository):
    """Repository for tickets table operations"""

    table_name = "tickets"

    def __init__(self, supabase_client=None, max_cas_attempts: Optional[int] = None) -> None:
        super().__init__(supabase_client)
        self.max_cas_attempts = max_cas_attempts or settings.ticket_cas_max_attempts

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_ticket(self, ticket_id: str, org_id: Optional[str] = None) -> Optional[Ticket]:
        """
        Get ticket by ID

        Args:
            ticket_id: Ticket UUID
            org_id: Restrict the lookup to this organization when given

        Returns:
            Ticket if found, None otherwise
        """
        try:
            query = self._table().select("*").eq("id", ticket_id)
            if org_id:
                query = query.eq("org_id", org_id)

            row = self._first_row(query.limit(1).execute())
            return Ticket(**row) if row else None

        except Exception as exc:
            self._handle_error(f"get_ticket({ticket_id})", exc)
            raise

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_ticket(self, ticket: TicketCreate) -> Ticket:
        """Insert a new ticket at version 0."""
        try:
            payload = self._serialize_payload(ticket.model_dump())
            payload["version"] = 0
            payload["latest_run_id"] = None

            row = self._first_row(self._table().insert(payload).execute())
            if not row:
                raise ValueError("Supabase insert returned no data")

            created = Ticket(**row)
            logger.info(f"Created ticket {created.id} for org {created.org_id}")
            return created

        except Exception as exc:
            self._handle_error("create_ticket", exc)
            raise

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def compare_and_swap(
        self,
        ticket_id: str,
        fields: Dict[str, Any],
        expected_version: int
    ) -> Optional[Ticket]:
        """
        Write `fields` only if the ticket is still at `expected_version`.

        Returns:
            Updated ticket, or None when the version moved (conflict)
        """
        payload = self._serialize_payload(
            {k: v for k, v in fields.items() if k not in _PROTECTED_FIELDS}
        )
        payload["version"] = expected_version + 1

        try:
            response = self._table() \
                .update(payload) \
                .eq("id", ticket_id) \
                .eq("version", expected_version) \
                .execute()

            row = self._first_row(response)
            return Ticket(**row) if row else None

        except Exception as exc:
            self._handle_error(f"compare_and_swap({ticket_id})", exc)
            raise

    def update_ticket(
        self,
        ticket_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> Optional[Ticket]:
        """
        Update ticket fields.

        With `expected_version` this is a single compare-and-swap attempt
        (None on conflict). Without it, the current version is read and
        the write retried until it lands.

        Raises:
            RecordNotFoundError: Ticket does not exist
            TicketVersionConflictError: Retries exhausted
        """
        if expected_version is not None:
            return self.compare_and_swap(ticket_id, fields, expected_version)

        for attempt in range(1, self.max_cas_attempts + 1):
            current = self.get_ticket(ticket_id)
            if current is None:
                raise RecordNotFoundError(f"Ticket {ticket_id} not found")

            updated = self.compare_and_swap(ticket_id, fields, current.version)
            if updated is not None:
                return updated

            logger.info(
                f"Ticket {ticket_id} changed during update "
                f"(attempt {attempt}/{self.max_cas_attempts}), retrying"
            )

        raise TicketVersionConflictError(
            f"Ticket {ticket_id} kept changing; gave up after {self.max_cas_attempts} attempts"
        )
