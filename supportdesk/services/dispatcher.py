"""
Run dispatchers - hand a queued run to a consumer

The `ai_runs` row is written before dispatch, so it is the durable
record of pending work. A dispatcher only delivers the run id to
whatever will process it:

- InlineRunDispatcher: background asyncio task in this process
- HttpRunDispatcher: POST to a worker service (/api/worker/ai-runs)

Dispatch returns as soon as delivery is scheduled and never raises.
A run id already being delivered or processed by this dispatcher is not
scheduled again. An undelivered run stays `queued` and is picked up
again by the RunSweeper.
"""
import asyncio
from functools import partial
from typing import Optional, Set

import httpx

from supportdesk.config import get_settings
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

WORKER_RUNS_PATH = "/api/worker/ai-runs"
WORKER_KEY_HEADER = "X-Worker-Key"

# The worker answers after processing the run, which may take the full draft timeout
WORKER_RESPONSE_MARGIN_SECONDS = 15.0


class RunDispatcher:
    """
    Delivers run ids to a consumer in background tasks.

    Subclasses implement `_deliver(run_id)`.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._run_ids: Set[str] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def is_pending(self, run_id: str) -> bool:
        return run_id in self._run_ids

    async def dispatch(self, run_id: str) -> None:
        if run_id in self._run_ids:
            logger.debug(f"AI run {run_id} already dispatched, skipping")
            return

        task = asyncio.create_task(self._deliver(run_id), name=f"ai-run-{run_id}")
        self._tasks.add(task)
        self._run_ids.add(run_id)
        task.add_done_callback(partial(self._finished, run_id))

    def _finished(self, run_id: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._run_ids.discard(run_id)

    async def _deliver(self, run_id: str) -> None:
        raise NotImplementedError

    async def drain(self) -> None:
        """Wait for every dispatched run to be delivered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class InlineRunDispatcher(RunDispatcher):
    """
    In-process consumer.

    Each run is processed in its own asyncio task; at most `concurrency`
    runs are processed at once.
    """

    def __init__(self, manager, concurrency: Optional[int] = None):
        super().__init__()
        self.manager = manager
        self.concurrency = concurrency or settings.run_worker_concurrency
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def _deliver(self, run_id: str) -> None:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.concurrency)

        async with self._semaphore:
            try:
                result = await self.manager.process_run(run_id)
            except Exception as e:
                # run stays queued/running; the sweeper or a retry picks it up
                logger.error(f"AI run {run_id} crashed: {e}", exc_info=True)
                return

        if not result.ok:
            logger.warning(f"AI run {run_id} finished with error: {result.error}")


class HttpRunDispatcher(RunDispatcher):
    """Remote consumer: a worker service exposing POST /api/worker/ai-runs"""

    def __init__(
        self,
        worker_url: Optional[str] = None,
        worker_key: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        super().__init__()
        self.worker_url = (worker_url or settings.worker_url).rstrip("/")
        self.worker_key = settings.worker_api_key if worker_key is None else worker_key
        self.timeout = timeout or settings.ai_draft_timeout_seconds + WORKER_RESPONSE_MARGIN_SECONDS

    async def _deliver(self, run_id: str) -> None:
        url = f"{self.worker_url}{WORKER_RUNS_PATH}"
        headers = {"Content-Type": "application/json"}
        if self.worker_key:
            headers[WORKER_KEY_HEADER] = self.worker_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json={"runId": run_id}, headers=headers)
                response.raise_for_status()
            logger.info(f"Worker processed AI run {run_id}")

        except httpx.HTTPStatusError as e:
            # worker processed the run and reported a failure, or rejected it
            logger.warning(
                f"Worker returned {e.response.status_code} for AI run {run_id}"
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to deliver AI run {run_id} to {url}: {e}")


def build_dispatcher(manager, mode: Optional[str] = None) -> RunDispatcher:
    """Dispatcher for `run_dispatch_mode` (inline | http)."""
    mode = (mode or settings.run_dispatch_mode).lower()

    if mode == "inline":
        return InlineRunDispatcher(manager)
    if mode == "http":
        if not settings.worker_url:
            raise ValueError("run_dispatch_mode=http requires WORKER_URL")
        return HttpRunDispatcher()

    raise ValueError(f"Unknown run dispatch mode: {mode}")
