#!/usr/bin/env python3
"""
Scheduler endpoints - externally triggered cycle and pending notifications.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from database.repository import PlacementRepository
from pipeline.runner import run_once
from ..dependencies import get_app_context, get_now, get_repo, require_cron_token
from ..models.responses import (
    NotificationResponse,
    PendingNotificationsResponse,
    SchedulerRunResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scheduler", tags=["scheduler"])


@router.post("/run", response_model=SchedulerRunResponse, dependencies=[Depends(require_cron_token)])
def run_scheduler(
    ctx: AppContext = Depends(get_app_context),
    now: datetime = Depends(get_now),
):
    """
    Run one scheduler cycle: flush due notifications, discover reminders,
    route queued approval requests and expire unanswered offers.

    Requires `Authorization: Bearer <cron token>`. Returns `skipped: true`
    when another cycle on this host holds the lock.
    """
    result = run_once(ctx, now=now, source="http")
    return SchedulerRunResponse(
        skipped=result.skipped,
        processed=result.flush.processed,
        failed=result.flush.failed,
        created=result.discover.created,
        by_scanner=result.discover.by_scanner,
        failed_scanners=result.discover.failed_scanners,
        assigned=result.assigned,
        expired_offers=result.expired_offers,
        execution_time=round(result.execution_time, 3),
    )


@router.get("/notifications/{recipient_id}", response_model=PendingNotificationsResponse)
def get_pending_notifications(
    recipient_id: int,
    limit: int = Query(default=100, ge=1, le=500),
    repo: PlacementRepository = Depends(get_repo),
):
    """Notifications scheduled for a recipient that have not been sent yet."""
    pending = repo.notifications.list_pending(recipient_id, limit=limit)
    return PendingNotificationsResponse(
        recipient_id=recipient_id,
        notifications=[NotificationResponse.model_validate(n) for n in pending],
    )
