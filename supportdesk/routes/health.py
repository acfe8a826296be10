"""
Health check endpoint
"""
import time
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from supportdesk import __version__
from supportdesk.config import get_settings
from supportdesk.dependencies import get_drafting_client
from supportdesk.models.schemas import utc_now
from supportdesk.services.drafting_client import GenerativeDraftingClient

settings = get_settings()

router = APIRouter(prefix="/api/health", tags=["health"])

# Application start time for uptime calculation
APP_START_TIME = time.time()


class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    generative_drafting: bool = Field(..., description="Gemini drafting configured")
    dispatch_mode: str = Field(..., description="Run hand-off mode")


@router.get("", response_model=HealthResponse)
async def health_check(
    drafting_client: GenerativeDraftingClient = Depends(get_drafting_client)
) -> HealthResponse:
    """
    Basic health check

    Does not call external dependencies. Reports "degraded" when Gemini
    is not configured (runs still complete with heuristic drafts).
    """
    configured = drafting_client.is_configured

    return HealthResponse(
        status="healthy" if configured else "degraded",
        timestamp=utc_now(),
        version=__version__,
        uptime_seconds=round(time.time() - APP_START_TIME, 2),
        generative_drafting=configured,
        dispatch_mode=settings.run_dispatch_mode,
    )
