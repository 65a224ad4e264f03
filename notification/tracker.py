#!/usr/bin/env python3
"""
Notification Tracker - Deduplication

Every scheduled notification carries a dedup key hashed from
(recipient, category, subject entity, trigger window). The partial unique index
on scheduled_notification guarantees at most one *unsent* row per key; the
strategies here decide whether a new row should even be attempted.

Usage:
    from notification.tracker import generate_dedup_key, OncePerWindowStrategy

    key = generate_dedup_key(42, NotificationCategory.DEADLINE, "application", 7, "2026-03-01:1d")
    if OncePerWindowStrategy().should_schedule(repo, key):
        ...
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from database.models import NotificationCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationSubject:
    """The entity a notification is about, e.g. ("opportunity", 12)."""
    subject_type: str
    subject_id: int


def generate_dedup_key(
    recipient_id: int,
    category: NotificationCategory,
    subject_type: str,
    subject_id: Any,
    trigger_window: str,
) -> str:
    """
    Generate the deduplication key for a notification.

    Two notifications with the same key are the same reminder.
    """
    category_value = getattr(category, 'value', category)
    key = f"{recipient_id}:{category_value}:{subject_type}:{subject_id}:{trigger_window}"
    return hashlib.sha256(key.encode('utf-8')).hexdigest()[:32]


class DeduplicationStrategy(ABC):
    """Decides whether a notification with `dedup_key` may be scheduled."""

    @abstractmethod
    def should_schedule(self, repo, dedup_key: str) -> bool:
        pass


class PendingOnlyStrategy(DeduplicationStrategy):
    """
    Suppress only while an unsent notification with the key exists.

    Used by the creation API: once the earlier one is delivered, the same event
    may be announced again.
    """

    def should_schedule(self, repo, dedup_key: str) -> bool:
        return not repo.notifications.has_pending(dedup_key)


class OncePerWindowStrategy(DeduplicationStrategy):
    """
    Suppress if any notification with the key was ever scheduled.

    Scanners use this: their keys embed an absolute trigger window, so a
    reminder fires at most once per window even after it has been sent.
    """

    def should_schedule(self, repo, dedup_key: str) -> bool:
        return not repo.notifications.has_any(dedup_key)
