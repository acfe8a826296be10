"""
Run Lifecycle Manager

Owns the AIRun state machine (queued -> running -> done | error) for a
single run id:

1. Load the run; terminal runs are a no-op (safe to invoke repeatedly)
2. Mark running, keeping the first started_at
3. Load ticket, org AI settings (once) and customer
4. Draft with the generative client, falling back to the heuristic analyzer
5. Persist run outputs and mark done
6. Reconcile onto the ticket with a version-checked write

Any unexpected exception in steps 3-6 marks the run as error, puts the
ticket back in front of a human (if this run is still the latest) and
raises one operator notification.
"""
from datetime import datetime
from typing import Callable, Optional

from supportdesk.config import get_settings
from supportdesk.models.schemas import (
    AIRun,
    AIRunStatus,
    AISettings,
    Customer,
    DraftResult,
    IN_FLIGHT_RUN_STATUSES,
    NotificationCreate,
    NotificationPriority,
    NotificationType,
    RunResult,
    Ticket,
    TicketAIStatus,
    TicketStatus,
    utc_now,
)
from supportdesk.repositories.base_repository import (
    RecordNotFoundError,
    TicketVersionConflictError,
)
from supportdesk.services.heuristics import analyze_ticket
from supportdesk.services.reconciliation import (
    NOTE_ALREADY_FINISHED,
    ReconciliationPlan,
    plan_reconciliation,
)
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

ERROR_NOT_FOUND = "NOT_FOUND"
ERROR_INTERNAL = "INTERNAL"

MAX_ERROR_CHARS = 1000

FAILURE_NOTIFICATION_TITLE = "AI run failed"
FAILURE_NOTIFICATION_MESSAGE = (
    "The AI worker failed to generate a draft. "
    "Please review the ticket manually and retry if needed."
)


class RunLifecycleManager:
    """
    Processes AI runs end to end.

    Safe to call concurrently for different runs and more than once for
    the same run id.
    """

    def __init__(
        self,
        store,
        drafting_client=None,
        clock: Callable[[], datetime] = utc_now,
        max_reconcile_attempts: Optional[int] = None
    ):
        """
        Args:
            store: TicketStore (or any object with the same async methods)
            drafting_client: GenerativeDraftingClient; None means heuristic only
            clock: Source of "now" for started_at/finished_at
            max_reconcile_attempts: Version-conflict retries for the ticket write
        """
        self.store = store
        self.drafting_client = drafting_client
        self.clock = clock
        self.max_reconcile_attempts = max_reconcile_attempts or settings.ticket_cas_max_attempts

    async def process_run(self, run_id: str) -> RunResult:
        """
        Process one run.

        Returns:
            RunResult; ok=False with NOT_FOUND or INTERNAL on failure

        Raises:
            Exception: Persistence errors outside the drafting/reconcile
                steps, including errors writing failure bookkeeping
        """
        run = await self.store.get_run(run_id)
        if run is None:
            logger.warning(f"AI run {run_id} not found")
            return RunResult.failure(run_id, ERROR_NOT_FOUND, "Run not found.")

        if run.is_terminal:
            logger.info(f"AI run {run_id} already {run.status.value}, nothing to do")
            return RunResult(ok=True, run_id=run_id, status=run.status, note=NOTE_ALREADY_FINISHED)

        started_at = run.started_at or self.clock()
        running = await self.store.update_run(
            run_id,
            {"status": AIRunStatus.RUNNING, "started_at": started_at},
            expected_statuses=IN_FLIGHT_RUN_STATUSES,
        )
        if running is None:
            # Finished by a concurrent invocation between our read and write
            return await self._already_finished(run_id)

        logger.info(f"AI run {run_id} started for ticket {running.ticket_id}")

        ai_settings: Optional[AISettings] = None
        marked_done = False
        try:
            ticket = await self.store.get_ticket(running.ticket_id)
            if ticket is None:
                return await self._fail_missing_ticket(running)

            ai_settings = await self.store.get_org_settings(ticket.org_id)
            customer = await self._load_customer(ticket)

            result = await self._draft(ticket, customer, ai_settings)

            finished = await self.store.update_run(
                run_id,
                {
                    **result.as_run_fields(),
                    "status": AIRunStatus.DONE,
                    "error": None,
                    "finished_at": self.clock(),
                },
                expected_statuses=[AIRunStatus.RUNNING],
            )
            if finished is None:
                return await self._already_finished(run_id)
            marked_done = True

            plan = await self._reconcile(ticket, run_id, started_at, result, ai_settings)

        except Exception as exc:
            return await self._fail_run(running, exc, ai_settings, marked_done)

        logger.info(f"AI run {run_id} done (source={result.source.value}, ticket={ticket.id}): {plan.note}")
        return RunResult(ok=True, run_id=run_id, status=AIRunStatus.DONE, note=plan.note)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def _load_customer(self, ticket: Ticket) -> Optional[Customer]:
        if not ticket.customer_id:
            return None
        return await self.store.get_customer(ticket.customer_id)

    async def _draft(
        self,
        ticket: Ticket,
        customer: Optional[Customer],
        ai_settings: AISettings
    ) -> DraftResult:
        """Generative draft, or the heuristic analysis on any failure."""
        client = self.drafting_client
        if client is not None and client.is_configured:
            try:
                return await client.generate(ticket, customer, ai_settings)
            except Exception as exc:
                reason = getattr(exc, "reason", type(exc).__name__)
                logger.warning(f"Generative draft failed for ticket {ticket.id} ({reason}): {exc}; using heuristic")

        return analyze_ticket(
            ticket.priority,
            ticket.content,
            ticket.category,
            ticket.subject,
            persona=ai_settings.selected_persona,
            customer_name=customer.name if customer else None,
        )

    async def _reconcile(
        self,
        ticket: Ticket,
        run_id: str,
        started_at: datetime,
        result: DraftResult,
        ai_settings: AISettings
    ) -> ReconciliationPlan:
        """
        Apply the reconciliation plan with compare-and-swap on ticket.version.

        A conflict re-reads the ticket and re-plans, so a human edit or a
        newer trigger that lands mid-write is honoured.
        """
        current = ticket
        for attempt in range(1, self.max_reconcile_attempts + 1):
            plan = plan_reconciliation(current, run_id, started_at, result, ai_settings)
            if not plan.writes_ticket:
                return plan

            updated = await self.store.update_ticket(
                current.id, plan.updates, expected_version=current.version
            )
            if updated is not None:
                return plan

            logger.info(
                f"Ticket {current.id} changed while reconciling run {run_id} "
                f"(attempt {attempt}/{self.max_reconcile_attempts})"
            )
            current = await self.store.get_ticket(ticket.id)
            if current is None:
                raise RecordNotFoundError(f"Ticket {ticket.id} disappeared during reconciliation")

        raise TicketVersionConflictError(
            f"Ticket {ticket.id} kept changing; run {run_id} gave up after "
            f"{self.max_reconcile_attempts} attempts"
        )

    async def _already_finished(self, run_id: str) -> RunResult:
        current = await self.store.get_run(run_id)
        if current is None:
            return RunResult.failure(run_id, ERROR_NOT_FOUND, "Run not found.")
        return RunResult(ok=True, run_id=run_id, status=current.status, note=NOTE_ALREADY_FINISHED)

    # ------------------------------------------------------------------
    # Failure bookkeeping
    # ------------------------------------------------------------------
    async def _fail_missing_ticket(self, run: AIRun) -> RunResult:
        message = "Ticket not found."
        logger.error(f"AI run {run.id}: ticket {run.ticket_id} not found")

        await self.store.update_run(
            run.id,
            {"status": AIRunStatus.ERROR, "error": message, "finished_at": self.clock()},
            expected_statuses=[AIRunStatus.RUNNING],
        )
        return RunResult.failure(run.id, ERROR_NOT_FOUND, message, status=AIRunStatus.ERROR)

    async def _fail_run(
        self,
        run: AIRun,
        exc: Exception,
        ai_settings: Optional[AISettings],
        marked_done: bool = False
    ) -> RunResult:
        """
        Mark the run as error, hand the ticket back to a human and notify.

        A run this invocation already marked done (reconciliation failed)
        is moved to error as well; a run finished by another invocation is not.
        """
        message = (str(exc) or type(exc).__name__)[:MAX_ERROR_CHARS]
        expected = [AIRunStatus.RUNNING, AIRunStatus.DONE] if marked_done else [AIRunStatus.RUNNING]
        logger.error(f"AI run {run.id} failed: {message}", exc_info=exc)

        await self.store.update_run(
            run.id,
            {"status": AIRunStatus.ERROR, "error": message, "finished_at": self.clock()},
            expected_statuses=expected,
        )

        ticket = await self.store.get_ticket(run.ticket_id)
        if ticket is not None and ticket.latest_run_id == run.id:
            # unknown settings (lookup failed) still need a human
            ai_enabled = ai_settings is None or ai_settings.ai_enabled
            await self.store.update_ticket(
                ticket.id,
                {
                    "status": TicketStatus.OPEN,
                    "ai_status": TicketAIStatus.HUMAN_NEEDED if ai_enabled else None,
                },
            )

        org_id = ticket.org_id if ticket is not None else run.org_id
        if org_id:
            await self.store.insert_notification(NotificationCreate(
                org_id=org_id,
                type=NotificationType.AI,
                priority=NotificationPriority.HIGH,
                title=FAILURE_NOTIFICATION_TITLE,
                message=FAILURE_NOTIFICATION_MESSAGE,
                ticket_id=run.ticket_id,
            ))
        else:
            logger.warning(f"AI run {run.id} failed with no known org; notification skipped")

        return RunResult.failure(run.id, ERROR_INTERNAL, message, status=AIRunStatus.ERROR)
