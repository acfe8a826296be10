"""AI run pipeline services"""
from supportdesk.services.dispatcher import (
    HttpRunDispatcher,
    InlineRunDispatcher,
    RunDispatcher,
    build_dispatcher,
)
from supportdesk.services.drafting_client import DraftingError, GenerativeDraftingClient
from supportdesk.services.heuristics import analyze_ticket
from supportdesk.services.reconciliation import ReconciliationPlan, plan_reconciliation
from supportdesk.services.run_manager import RunLifecycleManager
from supportdesk.services.run_sweeper import RunSweeper
from supportdesk.services.run_trigger import RunTrigger, TriggerResult

__all__ = [
    "DraftingError",
    "GenerativeDraftingClient",
    "HttpRunDispatcher",
    "InlineRunDispatcher",
    "ReconciliationPlan",
    "RunDispatcher",
    "RunLifecycleManager",
    "RunSweeper",
    "RunTrigger",
    "TriggerResult",
    "analyze_ticket",
    "build_dispatcher",
    "plan_reconciliation",
]
