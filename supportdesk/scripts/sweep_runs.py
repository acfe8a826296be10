"""
Re-dispatch stale queued AI runs

Runs whose hand-off was lost stay `queued`. This sweeps them once
(--once) or keeps sweeping every RUN_SWEEP_INTERVAL_SECONDS.

Usage:
    python -m supportdesk.scripts.sweep_runs --once
    python -m supportdesk.scripts.sweep_runs --stale-seconds 300
"""
import argparse
import asyncio

from supportdesk.dependencies import get_dispatcher, get_store
from supportdesk.services.run_sweeper import RunSweeper
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Re-dispatch stale queued AI runs")
    parser.add_argument("--once", action="store_true", help="Sweep once and exit")
    parser.add_argument(
        "--stale-seconds",
        type=float,
        default=None,
        help="Queued runs older than this are re-dispatched (default: RUN_SWEEP_STALE_SECONDS)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Maximum runs per sweep (default: RUN_SWEEP_BATCH_SIZE)"
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)

    dispatcher = get_dispatcher()
    sweeper = RunSweeper(
        get_store(),
        dispatcher,
        stale_seconds=args.stale_seconds,
        batch_size=args.batch_size
    )

    if not args.once:
        await sweeper.run_forever()
        return 0

    dispatched = await sweeper.sweep()

    # Deliveries run as background tasks; finish them before exiting
    await dispatcher.drain()

    logger.info(f"Sweep complete: {len(dispatched)} run(s) re-dispatched")
    for run_id in dispatched:
        print(run_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
