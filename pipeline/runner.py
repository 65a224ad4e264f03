"""Scheduler cycle runner.

run_once() is the single entry point used by the CLI, cron and the HTTP
trigger: flush due notifications, discover new ones, retry unassigned
approval requests and expire stale offers.
"""

import time
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core.app_context import AppContext
from core.workflow.offers import expire_offers
from core.workflow.router import assign_queued
from database.models import utcnow
from database.uow import placement_uow
from notification.scheduler import FlushResult, DiscoverResult, flush_due, discover

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of one scheduler cycle."""
    skipped: bool = False
    flush: FlushResult = field(default_factory=FlushResult)
    discover: DiscoverResult = field(default_factory=DiscoverResult)
    assigned: int = 0
    expired_offers: int = 0
    execution_time: float = 0.0


def run_once(ctx: AppContext, now: Optional[datetime] = None, source: str = "cli") -> RunResult:
    """Run one cycle under the host-wide scheduler lock.

    Each step commits in its own unit of work, so a failing discover never
    undoes the sent_at marks of the flush before it. Store errors propagate.

    Returns:
        RunResult; `skipped` is True when another cycle holds the lock.
    """
    now = now or utcnow()
    cycle_start = time.time()

    if not ctx.controller.acquire_lock(source, {"now": now.isoformat()}):
        logger.warning("Scheduler cycle already running, skipping")
        return RunResult(skipped=True)

    result = RunResult()
    try:
        logger.info("=" * 60)
        logger.info(f"STARTING SCHEDULER CYCLE at {now.isoformat()}")
        logger.info("=" * 60)

        step_start = time.time()
        logger.info("=== STEP 1: Flush due notifications ===")
        with placement_uow(ctx.session_factory) as repo:
            result.flush = flush_due(repo, ctx.deliverer, now, batch_size=ctx.config.scheduler.flush_batch_size)
        logger.info(f"=== STEP 1 done in {time.time() - step_start:.2f}s ===")

        step_start = time.time()
        logger.info("=== STEP 2: Discover reminders ===")
        with placement_uow(ctx.session_factory) as repo:
            result.discover = discover(repo, now, ctx.config)
        logger.info(f"=== STEP 2 done in {time.time() - step_start:.2f}s ===")

        step_start = time.time()
        logger.info("=== STEP 3: Route queued approval requests ===")
        with placement_uow(ctx.session_factory) as repo:
            result.assigned = assign_queued(repo, now, ctx.config.routing)
        logger.info(f"=== STEP 3 done in {time.time() - step_start:.2f}s ===")

        step_start = time.time()
        logger.info("=== STEP 4: Expire unanswered offers ===")
        with placement_uow(ctx.session_factory) as repo:
            result.expired_offers = expire_offers(repo, now)
        logger.info(f"=== STEP 4 done in {time.time() - step_start:.2f}s ===")
    finally:
        ctx.controller.release_lock()

    result.execution_time = time.time() - cycle_start
    logger.info(
        f"Scheduler cycle complete: {result.flush.processed} sent, {result.flush.failed} failed, "
        f"{result.discover.created} discovered, {result.assigned} assigned, "
        f"{result.expired_offers} offers expired in {result.execution_time:.2f}s"
    )
    return result
