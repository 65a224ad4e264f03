"""Approval request priority and expected response windows."""

from datetime import datetime, timedelta
from typing import Optional

from core.config_loader import RoutingConfig
from core.scorer.skills import round_half_up
from database.models import ApprovalPriority, NotificationPriority

_NOTIFICATION_PRIORITY = {
    ApprovalPriority.URGENT: NotificationPriority.URGENT,
    ApprovalPriority.HIGH: NotificationPriority.HIGH,
    ApprovalPriority.MEDIUM: NotificationPriority.NORMAL,
    ApprovalPriority.LOW: NotificationPriority.NORMAL,
}


def compute_priority(
    deadline: Optional[datetime],
    waiting_since: datetime,
    assigned: bool,
    now: datetime,
    config: Optional[RoutingConfig] = None,
) -> ApprovalPriority:
    """
    URGENT if the deadline is less than 3 days away (also when already past).
    HIGH if it is less than 7 days away, or the application has waited more than
    5 days without a reviewer. MEDIUM after 2 days of waiting. LOW otherwise.
    `waiting_since` is the application's applied_at.
    """
    config = config or RoutingConfig()

    if deadline is not None:
        remaining = deadline - now
        if remaining < timedelta(days=config.urgent_deadline_days):
            return ApprovalPriority.URGENT
        if remaining < timedelta(days=config.high_deadline_days):
            return ApprovalPriority.HIGH

    waiting = now - waiting_since
    if not assigned and waiting > timedelta(days=config.high_waiting_days):
        return ApprovalPriority.HIGH
    if waiting > timedelta(days=config.medium_waiting_days):
        return ApprovalPriority.MEDIUM
    return ApprovalPriority.LOW


def max_response_hours(priority: ApprovalPriority, config: Optional[RoutingConfig] = None) -> int:
    config = config or RoutingConfig()
    return int(config.response_hours.get(priority.value, 72))


def estimated_response_window(priority: ApprovalPriority, config: Optional[RoutingConfig] = None) -> str:
    """e.g. "10-12 hours" for URGENT."""
    upper = max_response_hours(priority, config)
    return f"{round_half_up(upper * 0.8)}-{upper} hours"


def notification_priority(priority: ApprovalPriority) -> NotificationPriority:
    return _NOTIFICATION_PRIORITY[priority]
