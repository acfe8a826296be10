"""
AI settings routes (per organization)

A missing settings row is created with defaults on first read.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field

from supportdesk.dependencies import get_org_id, get_store
from supportdesk.models.schemas import AISettings, ApiModel, Persona
from supportdesk.repositories.store import TicketStore
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/ai-settings", tags=["ai-settings"])


class AISettingsResponse(ApiModel):
    settings: AISettings


class AISettingsUpdate(ApiModel):
    ai_enabled: Optional[bool] = None
    auto_reply: Optional[bool] = None
    learning_mode: Optional[bool] = None
    confidence_threshold: Optional[int] = Field(None, ge=0, le=100)
    max_response_length: Optional[int] = Field(None, ge=50, le=2000)
    tone_value: Optional[int] = Field(None, ge=0, le=100)
    selected_persona: Optional[Persona] = None


@router.get("", response_model=AISettingsResponse, response_model_by_alias=True)
async def get_ai_settings(
    org_id: str = Depends(get_org_id),
    store: TicketStore = Depends(get_store)
):
    return AISettingsResponse(settings=await store.get_or_create_settings(org_id))


@router.patch("", response_model=AISettingsResponse, response_model_by_alias=True)
async def update_ai_settings(
    body: AISettingsUpdate,
    org_id: str = Depends(get_org_id),
    store: TicketStore = Depends(get_store)
):
    """Partial update; takes effect for runs that start after it."""
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")

    updated = await store.update_settings(org_id, updates)

    logger.info(f"AI settings updated for org {org_id}: {sorted(updates)}")
    return AISettingsResponse(settings=updated)
