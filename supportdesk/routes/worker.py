"""
Worker routes - run consumer endpoints

Invoked by HttpRunDispatcher (or any at-least-once delivery mechanism)
with a single run id. Guarded by the X-Worker-Key header.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import Field

from supportdesk.dependencies import get_run_manager, get_run_sweeper, verify_worker_key
from supportdesk.models.schemas import ApiModel, RunResult
from supportdesk.services.run_manager import (
    ERROR_INTERNAL,
    ERROR_NOT_FOUND,
    RunLifecycleManager,
)
from supportdesk.services.run_sweeper import RunSweeper
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/worker",
    tags=["worker"],
    dependencies=[Depends(verify_worker_key)]
)


class RunInvocation(ApiModel):
    run_id: str = Field(..., min_length=1)


class SweepResponse(ApiModel):
    dispatched: List[str]


def _status_code(result: RunResult) -> int:
    if result.ok:
        return status.HTTP_200_OK
    if result.error is not None and result.error.code == ERROR_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.post("/ai-runs", response_model=RunResult)
async def process_ai_run(
    body: RunInvocation,
    manager: RunLifecycleManager = Depends(get_run_manager)
):
    """
    Process one AI run.

    Returns 200 when the run is done (or was already finished), 404 when
    the run or its ticket is missing, 500 on any other failure.
    """
    try:
        result = await manager.process_run(body.run_id)
    except Exception as e:
        logger.error(f"Persisting AI run {body.run_id} failed: {e}", exc_info=True)
        result = RunResult.failure(body.run_id, ERROR_INTERNAL, str(e) or type(e).__name__)

    return JSONResponse(
        status_code=_status_code(result),
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True)
    )


@router.post("/ai-runs/sweep", response_model=SweepResponse, response_model_by_alias=True)
async def sweep_ai_runs(sweeper: RunSweeper = Depends(get_run_sweeper)):
    """Re-dispatch queued runs whose hand-off was lost."""
    dispatched = await sweeper.sweep()
    return SweepResponse(dispatched=dispatched)
