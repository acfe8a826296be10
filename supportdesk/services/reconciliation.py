"""
Ticket reconciliation for a finished AI run

Pure decision logic: given the ticket as last read, the run that just
finished and the org settings snapshot, decide which ticket fields the
run may write. Checks are applied in order:

1. AI disabled      -> clear ai_status (latest run only), no draft fields
2. Not latest run   -> no write
3. Human edit since the run started -> ai_status only
4. Otherwise        -> ai_status=draft_ready plus draft/confidence/sentiment
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from supportdesk.models.schemas import AISettings, DraftResult, Ticket, TicketAIStatus

NOTE_ALREADY_FINISHED = "already_finished"
NOTE_AI_DISABLED = "ai_disabled"
NOTE_SUPERSEDED = "superseded"
NOTE_HUMAN_EDIT_PRESERVED = "human_edit_preserved"
NOTE_DRAFT_WRITTEN = "draft_written"


class ReconciliationPlan(BaseModel):
    """Ticket write decided for one run (updates=None means no write)"""
    model_config = ConfigDict(frozen=True)

    note: str
    updates: Optional[Dict[str, Any]] = None

    @property
    def writes_ticket(self) -> bool:
        return bool(self.updates)


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def draft_edited_since(draft_updated_at: Optional[datetime], started_at: Optional[datetime]) -> bool:
    """True if the draft was edited at or after the run started."""
    if draft_updated_at is None:
        return False
    if started_at is None:
        return True
    return _as_utc(draft_updated_at) >= _as_utc(started_at)


def plan_reconciliation(
    ticket: Ticket,
    run_id: str,
    started_at: Optional[datetime],
    result: DraftResult,
    ai_settings: AISettings
) -> ReconciliationPlan:
    """
    Decide the ticket write for a finished run.

    Args:
        ticket: Ticket as currently stored
        run_id: Finished run
        started_at: When the run started processing
        result: Structured output of the run
        ai_settings: Settings snapshot taken at the start of the run

    Returns:
        ReconciliationPlan
    """
    is_latest = ticket.latest_run_id == run_id

    if not ai_settings.ai_enabled:
        if is_latest:
            return ReconciliationPlan(note=NOTE_AI_DISABLED, updates={"ai_status": None})
        return ReconciliationPlan(note=NOTE_AI_DISABLED)

    if not is_latest:
        return ReconciliationPlan(note=NOTE_SUPERSEDED)

    if draft_edited_since(ticket.draft_updated_at, started_at):
        if ticket.ai_status == TicketAIStatus.HUMAN_NEEDED:
            ai_status = TicketAIStatus.HUMAN_NEEDED
        else:
            ai_status = TicketAIStatus.DRAFT_READY
        return ReconciliationPlan(note=NOTE_HUMAN_EDIT_PRESERVED, updates={"ai_status": ai_status})

    return ReconciliationPlan(
        note=NOTE_DRAFT_WRITTEN,
        updates={
            "ai_status": TicketAIStatus.DRAFT_READY,
            "draft_response": result.draft_response,
            "confidence": result.confidence,
            "sentiment": result.sentiment,
        },
    )
