"""
Notification Module

Scheduling, deduplication and delivery of reminder and workflow notifications.

Usage:
    from notification import schedule, flush_due, discover, Deliverer

    with placement_uow() as repo:
        flush_due(repo, Deliverer(config.delivery), now)
"""

from notification.channels import (
    NotificationChannel,
    EmailChannel,
    WebhookChannel,
    InAppChannel,
    NotificationChannelFactory,
)

from notification.tracker import (
    NotificationSubject,
    DeduplicationStrategy,
    PendingOnlyStrategy,
    OncePerWindowStrategy,
    generate_dedup_key,
)

from notification.delivery import Deliverer

from notification.scheduler import (
    FlushResult,
    DiscoverResult,
    schedule,
    flush_due,
    discover,
)

__all__ = [
    # Channels
    'NotificationChannel',
    'EmailChannel',
    'WebhookChannel',
    'InAppChannel',
    'NotificationChannelFactory',
    'Deliverer',
    # Tracker
    'NotificationSubject',
    'DeduplicationStrategy',
    'PendingOnlyStrategy',
    'OncePerWindowStrategy',
    'generate_dedup_key',
    # Scheduler
    'FlushResult',
    'DiscoverResult',
    'schedule',
    'flush_due',
    'discover',
]
