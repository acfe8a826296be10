"""
AI Run Repository

Append-only access to the `ai_runs` table. The table doubles as the
durable hand-off queue: a run row in `queued` status is a pending job.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from supportdesk.models.schemas import AIRun, AIRunStatus
from supportdesk.repositories.base_repository import BaseRepository
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)


class RunRepository(BaseRepository):
    """Repository for ai_runs table operations"""

    table_name = "ai_runs"

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def insert_run(self, ticket_id: str, org_id: Optional[str] = None) -> AIRun:
        """Insert a new run in `queued` status."""
        try:
            payload: Dict[str, Any] = {"ticket_id": ticket_id, "status": AIRunStatus.QUEUED.value}
            if org_id:
                payload["org_id"] = org_id

            row = self._first_row(self._table().insert(payload).execute())
            if not row:
                raise ValueError("Supabase insert returned no data")

            run = AIRun(**row)
            logger.info(f"Queued AI run {run.id} for ticket {ticket_id}")
            return run

        except Exception as exc:
            self._handle_error(f"insert_run({ticket_id})", exc)
            raise

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_run(self, run_id: str) -> Optional[AIRun]:
        try:
            response = self._table() \
                .select("*") \
                .eq("id", run_id) \
                .limit(1) \
                .execute()

            row = self._first_row(response)
            return AIRun(**row) if row else None

        except Exception as exc:
            self._handle_error(f"get_run({run_id})", exc)
            raise

    def list_runs(self, ticket_id: str, limit: int = 50) -> List[AIRun]:
        """Runs for a ticket, newest first (audit trail)."""
        try:
            response = self._table() \
                .select("*") \
                .eq("ticket_id", ticket_id) \
                .order("created_at", desc=True) \
                .limit(limit) \
                .execute()

            return [AIRun(**row) for row in response.data or []]

        except Exception as exc:
            self._handle_error(f"list_runs({ticket_id})", exc)
            raise

    def list_stale_queued_runs(self, older_than: datetime, limit: int = 50) -> List[AIRun]:
        """
        Queued runs created before `older_than`, oldest first.

        These are runs whose hand-off was lost; the sweeper re-dispatches them.
        """
        try:
            response = self._table() \
                .select("*") \
                .eq("status", AIRunStatus.QUEUED.value) \
                .lt("created_at", older_than.isoformat()) \
                .order("created_at") \
                .limit(limit) \
                .execute()

            return [AIRun(**row) for row in response.data or []]

        except Exception as exc:
            self._handle_error("list_stale_queued_runs", exc)
            raise

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def update_run(
        self,
        run_id: str,
        fields: Dict[str, Any],
        expected_statuses: Optional[Iterable[AIRunStatus]] = None
    ) -> Optional[AIRun]:
        """
        Update run fields.

        Args:
            run_id: Run UUID
            fields: Columns to write
            expected_statuses: Only write if the run is currently in one of
                these statuses (guards the queued -> running -> terminal order)

        Returns:
            Updated run, or None if no row matched
        """
        try:
            query = self._table() \
                .update(self._serialize_payload(fields)) \
                .eq("id", run_id)

            if expected_statuses is not None:
                query = query.in_("status", [status.value for status in expected_statuses])

            row = self._first_row(query.execute())
            return AIRun(**row) if row else None

        except Exception as exc:
            self._handle_error(f"update_run({run_id})", exc)
            raise
