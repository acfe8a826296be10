"""
Run Trigger - one ticket, one AI run

Entry point used by the ticket routes ("regenerate draft" and ticket
creation). Enforces in-flight idempotency and org AI enablement, writes
the queued run, points the ticket at it and hands the run off without
waiting for it.
"""
from typing import Optional

from supportdesk.models.schemas import ApiModel, Ticket, TicketAIStatus
from supportdesk.repositories.base_repository import RecordNotFoundError
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)


class TriggerResult(ApiModel):
    """run_id is None when AI is disabled for the org"""
    run_id: Optional[str] = None
    ticket: Ticket


class RunTrigger:
    """Creates (or reuses) AI runs and hands them to the dispatcher"""

    def __init__(self, store, dispatcher):
        self.store = store
        self.dispatcher = dispatcher

    async def trigger(
        self,
        ticket_id: str,
        *,
        org_id: Optional[str] = None,
        force: bool = False
    ) -> TriggerResult:
        """
        Trigger an AI run for a ticket.

        Args:
            ticket_id: Ticket UUID
            org_id: Restrict the ticket lookup to this organization
            force: Always create a new run, even if one is in flight

        Returns:
            TriggerResult (run_id None means "no AI involvement")

        Raises:
            RecordNotFoundError: Ticket not found
        """
        ticket = await self.store.get_ticket(ticket_id, org_id)
        if ticket is None:
            raise RecordNotFoundError(f"Ticket {ticket_id} not found")

        ai_settings = await self.store.get_org_settings(ticket.org_id)
        if not ai_settings.ai_enabled:
            logger.info(f"AI disabled for org {ticket.org_id}; no run for ticket {ticket_id}")
            return TriggerResult(run_id=None, ticket=ticket)

        if not force and ticket.latest_run_id:
            latest = await self.store.get_run(ticket.latest_run_id)
            if latest is not None and latest.is_in_flight:
                logger.info(f"Reusing in-flight AI run {latest.id} for ticket {ticket_id}")
                return TriggerResult(run_id=latest.id, ticket=ticket)

        run = await self.store.insert_run(ticket.id, ticket.org_id)
        updated = await self.store.update_ticket(
            ticket.id,
            {"latest_run_id": run.id, "ai_status": TicketAIStatus.PENDING},
        )

        # The run row is the durable record; a lost hand-off is picked up by the sweep
        try:
            await self.dispatcher.dispatch(run.id)
        except Exception as e:
            logger.error(f"Dispatching AI run {run.id} failed, left queued: {e}")

        return TriggerResult(run_id=run.id, ticket=updated or ticket)
