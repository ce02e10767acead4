"""Balance repair command.

Recomputes every account's ``used_days`` from its approved requests and
rewrites counters that drifted. Intended for migrations and one-off
consistency repair; request processing never calls it.

Run with:  python -m vacation_portal.backfill [--actor-id N]
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from vacation_portal.db import dispose_engine, get_session_factory
from vacation_portal.schemas.analytics import RepairResult
from vacation_portal.services.ledger import repair_balances

logger = logging.getLogger(__name__)


async def run_backfill(actor_id: int | None = None) -> RepairResult:
    """Run one repair pass in its own session."""
    session_factory = get_session_factory()
    try:
        async with session_factory() as session:
            result = await repair_balances(session, actor_id=actor_id)
    finally:
        await dispose_engine()
    logger.info(
        "Balance repair complete: processed=%d corrected=%d skipped=%d",
        result.processed,
        result.corrected,
        result.skipped,
    )
    return result


def main() -> None:
    """Entry point for the backfill command."""
    parser = argparse.ArgumentParser(description="Recompute vacation days used from approved requests.")
    parser.add_argument("--actor-id", type=int, default=None, help="account id recorded in the audit log")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    result = asyncio.run(run_backfill(args.actor_id))
    if result.skipped:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
