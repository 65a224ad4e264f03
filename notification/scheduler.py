#!/usr/bin/env python3
"""
Notification Scheduler

- schedule(): creation API used by workflow services, fan-out and scanners.
- flush_due(): deliver due notifications, highest priority first.
- discover(): run every scanner and report what was created.

All three take the PlacementRepository of the caller's unit of work; none of
them commits.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List

from core.config_loader import AppConfig
from core.exceptions import ScannerError
from database.models import (
    ScheduledNotification, NotificationCategory, NotificationPriority,
)
from notification.tracker import (
    NotificationSubject, DeduplicationStrategy, PendingOnlyStrategy, generate_dedup_key,
)

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 1000


@dataclass
class FlushResult:
    processed: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.failed


@dataclass
class DiscoverResult:
    created: int = 0
    by_scanner: Dict[str, int] = field(default_factory=dict)
    failed_scanners: List[str] = field(default_factory=list)
    errors: List[ScannerError] = field(default_factory=list)


def schedule(
    repo,
    recipient_id: int,
    category: NotificationCategory,
    subject: NotificationSubject,
    trigger_window: str,
    title: str,
    message: str,
    scheduled_for: datetime,
    priority: NotificationPriority = NotificationPriority.NORMAL,
    payload: Optional[Dict[str, Any]] = None,
    strategy: Optional[DeduplicationStrategy] = None,
) -> Optional[ScheduledNotification]:
    """
    Schedule a notification unless it would duplicate an existing one.

    Returns the new row, or None when the dedup strategy or the pending-key
    unique index suppressed it.
    """
    strategy = strategy or PendingOnlyStrategy()
    dedup_key = generate_dedup_key(
        recipient_id, category, subject.subject_type, subject.subject_id, trigger_window
    )

    if not strategy.should_schedule(repo, dedup_key):
        logger.debug(
            f"Suppressed duplicate {category.value} notification for user {recipient_id} "
            f"({subject.subject_type} {subject.subject_id}, window {trigger_window})"
        )
        return None

    notification = ScheduledNotification(
        recipient_id=recipient_id,
        category=category,
        subject_type=subject.subject_type,
        subject_id=subject.subject_id,
        trigger_window=trigger_window,
        dedup_key=dedup_key,
        title=title,
        message=message,
        payload=payload or {},
        priority=priority,
        scheduled_for=scheduled_for,
    )
    created = repo.notifications.insert_if_absent(notification)
    if created is not None:
        logger.debug(
            f"Scheduled {category.value}/{priority.value} notification for user {recipient_id} "
            f"at {scheduled_for.isoformat()}"
        )
    return created


def flush_due(repo, deliverer, now: datetime, batch_size: int = 500) -> FlushResult:
    """
    Deliver every unsent notification with scheduled_for <= now.

    A row is marked sent only when delivery returns True. Failures leave it
    pending with attempts/last_error updated so the next flush retries it.
    Rows are taken in batches of `batch_size`; each row is attempted at most
    once per flush.
    """
    start = time.time()
    result = FlushResult()
    attempted = set()

    while True:
        due = repo.notifications.select_due(now, limit=batch_size, exclude_ids=attempted)
        if not due:
            break
        logger.info(f"Flushing batch of {len(due)} due notification(s)")

        for notification in due:
            attempted.add(notification.id)
            notification.attempts = (notification.attempts or 0) + 1
            try:
                delivered = deliverer.deliver(notification)
            except Exception as e:
                logger.error(f"Delivery of notification {notification.id} failed: {e}", exc_info=True)
                notification.last_error = str(e)[:MAX_ERROR_LENGTH]
                result.failed += 1
                repo.flush()
                continue

            if delivered:
                notification.sent_at = now
                notification.last_error = None
                result.processed += 1
            else:
                notification.last_error = "Delivery returned no success"
                result.failed += 1
                logger.warning(f"Notification {notification.id} not delivered, left pending")
            repo.flush()

    elapsed = time.time() - start
    logger.info(f"Flush complete: {result.processed} sent, {result.failed} failed in {elapsed:.2f}s")
    return result


def discover(repo, now: datetime, config: Optional[AppConfig] = None, scanners=None) -> DiscoverResult:
    """
    Run each scanner in its own savepoint.

    A failing scanner is rolled back, logged and reported; the others still run.
    """
    from notification.scanners import default_scanners

    config = config or AppConfig()
    scanners = scanners if scanners is not None else default_scanners(config)
    result = DiscoverResult()
    start = time.time()

    for name, scan in scanners:
        try:
            with repo.savepoint():
                created = scan(repo, now, config)
        except Exception as e:
            logger.error(f"Scanner '{name}' failed: {e}", exc_info=True)
            result.failed_scanners.append(name)
            result.errors.append(ScannerError(name, e))
            result.by_scanner[name] = 0
            continue
        result.by_scanner[name] = created
        result.created += created
        logger.info(f"Scanner '{name}' scheduled {created} notification(s)")

    elapsed = time.time() - start
    logger.info(
        f"Discover complete: {result.created} created, "
        f"{len(result.failed_scanners)} scanner(s) failed in {elapsed:.2f}s"
    )
    return result
