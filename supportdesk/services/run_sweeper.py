"""
Run Sweeper - recover runs whose hand-off was lost

Queued runs older than the staleness threshold are dispatched again.
Re-dispatch is safe: the lifecycle manager is idempotent per run id.
Runs stuck in `running` are left alone; a slow provider call must not
be processed twice.
"""
import asyncio
from datetime import datetime, timedelta
from typing import List, Optional

from supportdesk.config import get_settings
from supportdesk.models.schemas import utc_now
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class RunSweeper:
    """Periodic re-dispatch of stale queued runs"""

    def __init__(
        self,
        store,
        dispatcher,
        stale_seconds: Optional[float] = None,
        interval_seconds: Optional[float] = None,
        batch_size: Optional[int] = None
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.stale_seconds = stale_seconds or settings.run_sweep_stale_seconds
        self.interval_seconds = interval_seconds or settings.run_sweep_interval_seconds
        self.batch_size = batch_size or settings.run_sweep_batch_size

    async def sweep(self, now: Optional[datetime] = None) -> List[str]:
        """
        Re-dispatch stale queued runs once.

        Returns:
            Run ids that were dispatched (oldest first)
        """
        cutoff = (now or utc_now()) - timedelta(seconds=self.stale_seconds)
        stale_runs = await self.store.list_stale_queued_runs(cutoff, self.batch_size)

        dispatched = []
        for run in stale_runs:
            await self.dispatcher.dispatch(run.id)
            dispatched.append(run.id)

        if dispatched:
            logger.info(f"Re-dispatched {len(dispatched)} stale queued AI run(s)")
        return dispatched

    async def run_forever(self) -> None:
        """Sweep every `interval_seconds` until cancelled."""
        logger.info(
            f"Run sweeper started (interval={self.interval_seconds}s, stale={self.stale_seconds}s)"
        )
        while True:
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Run sweep failed: {e}")
            await asyncio.sleep(self.interval_seconds)
