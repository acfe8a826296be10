"""
Ticket routes

- POST  /api/tickets                    create a ticket (optionally runs AI)
- GET   /api/tickets/{ticket_id}        ticket detail
- PATCH /api/tickets/{ticket_id}        human edit (draft edits stamp draft_updated_at)
- POST  /api/tickets/{ticket_id}/ai/run trigger / regenerate the AI draft
- GET   /api/tickets/{ticket_id}/ai/runs AI run audit trail
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field, field_validator

from supportdesk.dependencies import get_org_id, get_run_trigger, get_store
from supportdesk.models.schemas import (
    AIRun,
    ApiModel,
    Ticket,
    TicketAIStatus,
    TicketCategory,
    TicketCreate,
    TicketPriority,
    TicketStatus,
    utc_now,
)
from supportdesk.repositories.base_repository import (
    RecordNotFoundError,
    TicketVersionConflictError,
)
from supportdesk.repositories.store import TicketStore
from supportdesk.services.run_trigger import RunTrigger, TriggerResult
from supportdesk.utils.logger import get_logger
from supportdesk.utils.validators import normalize_email, sanitize_input, validate_email

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


# ============================================================================
# Request/Response Models
# ============================================================================

class CustomerInput(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=320)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not validate_email(v.strip()):
            raise ValueError("Invalid email address")
        return v.strip()


class TicketCreateRequest(ApiModel):
    """New ticket: either an existing customer id or customer name/email"""
    customer_id: Optional[str] = None
    customer: Optional[CustomerInput] = None
    subject: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)
    category: TicketCategory
    priority: TicketPriority = TicketPriority.MEDIUM
    run_ai: Optional[bool] = Field(None, alias="runAI")

    @field_validator("subject", "content", mode="before")
    @classmethod
    def clean_text(cls, v):
        return sanitize_input(v) if isinstance(v, str) else v


class TicketCreateResponse(ApiModel):
    ticket: Ticket
    run_id: Optional[str] = None


class TicketUpdateRequest(ApiModel):
    subject: Optional[str] = Field(None, min_length=3, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=20000)
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    draft_response: Optional[str] = Field(None, max_length=20000)

    @field_validator("subject", "content", "draft_response", mode="before")
    @classmethod
    def clean_text(cls, v):
        return sanitize_input(v) if isinstance(v, str) else v


class TriggerRunRequest(ApiModel):
    force: bool = False


# ============================================================================
# Routes
# ============================================================================

@router.post("", response_model=TicketCreateResponse, response_model_by_alias=True)
async def create_ticket(
    body: TicketCreateRequest,
    org_id: str = Depends(get_org_id),
    store: TicketStore = Depends(get_store),
    trigger: RunTrigger = Depends(get_run_trigger)
):
    """Create a ticket and, unless AI is disabled or runAI=false, queue an AI run."""
    try:
        customer_id = body.customer_id
        if not customer_id and body.customer is not None:
            customer = await store.find_or_create_customer(
                org_id, body.customer.name, normalize_email(body.customer.email)
            )
            customer_id = customer.id

        if not customer_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing customerId/customer."
            )

        ai_settings = await store.get_org_settings(org_id)
        should_run_ai = ai_settings.ai_enabled and (body.run_ai is None or body.run_ai)

        ticket = await store.create_ticket(TicketCreate(
            org_id=org_id,
            customer_id=customer_id,
            subject=body.subject,
            content=body.content,
            category=body.category,
            priority=body.priority,
            ai_status=TicketAIStatus.PENDING if should_run_ai else None,
        ))

        if not should_run_ai:
            return TicketCreateResponse(ticket=ticket, run_id=None)

        result = await trigger.trigger(ticket.id, org_id=org_id)
        return TicketCreateResponse(ticket=result.ticket, run_id=result.run_id)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Ticket creation error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/{ticket_id}", response_model=Ticket, response_model_by_alias=True)
async def get_ticket(
    ticket_id: str,
    org_id: str = Depends(get_org_id),
    store: TicketStore = Depends(get_store)
):
    ticket = await store.get_ticket(ticket_id, org_id)
    if ticket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found.")
    return ticket


@router.patch("/{ticket_id}", response_model=Ticket, response_model_by_alias=True)
async def update_ticket(
    ticket_id: str,
    body: TicketUpdateRequest,
    org_id: str = Depends(get_org_id),
    store: TicketStore = Depends(get_store)
):
    """
    Human edit of a ticket.

    Any change to draftResponse (including clearing it with null) stamps
    draft_updated_at, so in-flight AI runs will not overwrite it.
    """
    updates = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key == "draft_response"
    }
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")

    if "draft_response" in updates:
        updates["draft_updated_at"] = utc_now()

    if await store.get_ticket(ticket_id, org_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found.")

    try:
        ticket = await store.update_ticket(ticket_id, updates)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found.")
    except TicketVersionConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info(f"Ticket {ticket_id} updated: {sorted(updates)}")
    return ticket


@router.post("/{ticket_id}/ai/run", response_model=TriggerResult, response_model_by_alias=True)
async def trigger_ai_run(
    ticket_id: str,
    body: Optional[TriggerRunRequest] = None,
    org_id: str = Depends(get_org_id),
    trigger: RunTrigger = Depends(get_run_trigger)
):
    """Queue an AI run (reuses an in-flight run unless force=true). runId is null when AI is off."""
    force = body.force if body is not None else False

    try:
        return await trigger.trigger(ticket_id, org_id=org_id, force=force)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found.")
    except Exception as e:
        logger.error(f"AI run trigger error for ticket {ticket_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/{ticket_id}/ai/runs", response_model=List[AIRun], response_model_by_alias=True)
async def list_ai_runs(
    ticket_id: str,
    limit: int = 50,
    org_id: str = Depends(get_org_id),
    store: TicketStore = Depends(get_store)
):
    """AI runs for a ticket, newest first"""
    if await store.get_ticket(ticket_id, org_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found.")

    return await store.list_runs(ticket_id, limit=min(max(limit, 1), 200))
