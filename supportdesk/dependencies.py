"""
FastAPI dependency providers

Long-lived collaborators (store, drafting client, manager, dispatcher)
are process singletons; tests replace them with app.dependency_overrides.
"""
import hmac
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from supportdesk.config import get_settings
from supportdesk.repositories.store import TicketStore
from supportdesk.services.dispatcher import RunDispatcher, build_dispatcher
from supportdesk.services.drafting_client import GenerativeDraftingClient
from supportdesk.services.run_manager import RunLifecycleManager
from supportdesk.services.run_sweeper import RunSweeper
from supportdesk.services.run_trigger import RunTrigger
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


@lru_cache()
def get_store() -> TicketStore:
    return TicketStore()


@lru_cache()
def get_drafting_client() -> GenerativeDraftingClient:
    client = GenerativeDraftingClient()
    if not client.is_configured:
        logger.warning("GOOGLE_API_KEY not set; AI runs will use heuristic drafts only")
    return client


@lru_cache()
def get_run_manager() -> RunLifecycleManager:
    return RunLifecycleManager(get_store(), get_drafting_client())


@lru_cache()
def get_dispatcher() -> RunDispatcher:
    return build_dispatcher(get_run_manager())


def get_run_trigger(
    store: TicketStore = Depends(get_store),
    dispatcher: RunDispatcher = Depends(get_dispatcher)
) -> RunTrigger:
    return RunTrigger(store, dispatcher)


def get_run_sweeper(
    store: TicketStore = Depends(get_store),
    dispatcher: RunDispatcher = Depends(get_dispatcher)
) -> RunSweeper:
    return RunSweeper(store, dispatcher)


def get_org_id(request: Request) -> str:
    """Organization resolved by OrgMiddleware"""
    org_id = getattr(request.state, "org_id", None)
    if not org_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing org_id. Provide X-Org-Id header or org_id query parameter."
        )
    return org_id


def verify_worker_key(
    api_key: Annotated[Optional[str], Header(alias="X-Worker-Key")] = None
) -> bool:
    """
    Verify the worker API key on worker endpoints.

    Raises:
        HTTPException: 401 missing, 403 invalid, 500 not configured
    """
    if not api_key:
        logger.warning("Worker request missing API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing worker API key",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    if not settings.worker_api_key:
        logger.error("WORKER_API_KEY not configured; rejecting worker request")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Worker authentication not configured"
        )

    # Constant-time comparison
    if not hmac.compare_digest(api_key, settings.worker_api_key):
        logger.warning("Invalid worker API key attempt")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid worker API key"
        )

    return True
