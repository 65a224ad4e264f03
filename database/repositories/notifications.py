import logging
from datetime import datetime
from typing import List, Optional, Iterable, Set

from sqlalchemy import select, case
from sqlalchemy.exc import IntegrityError

from database.models import ScheduledNotification, NotificationPriority
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_PRIORITY_RANK = case(
    *[(ScheduledNotification.priority == p, p.rank) for p in NotificationPriority],
    else_=0,
)


class NotificationRepository(BaseRepository):
    def get(self, notification_id: int) -> Optional[ScheduledNotification]:
        return self.db.get(ScheduledNotification, notification_id)

    def has_pending(self, dedup_key: str) -> bool:
        stmt = select(ScheduledNotification.id).where(
            ScheduledNotification.dedup_key == dedup_key,
            ScheduledNotification.sent_at == None,
        )
        return self.db.execute(stmt).first() is not None

    def has_any(self, dedup_key: str) -> bool:
        stmt = select(ScheduledNotification.id).where(ScheduledNotification.dedup_key == dedup_key)
        return self.db.execute(stmt).first() is not None

    def insert_if_absent(self, notification: ScheduledNotification) -> Optional[ScheduledNotification]:
        """
        Insert `notification` unless an unsent row with the same dedup_key exists.

        The insert runs in a SAVEPOINT so a unique-index violation from a concurrent
        writer only discards this row, not the caller's transaction.
        """
        if self.has_pending(notification.dedup_key):
            return None
        try:
            with self.db.begin_nested():
                self.db.add(notification)
        except IntegrityError:
            logger.debug(f"Concurrent insert for dedup key {notification.dedup_key[:12]}..., suppressed")
            return None
        return notification

    def select_due(
        self, now: datetime, limit: int = 500, exclude_ids: Optional[Iterable[int]] = None,
    ) -> List[ScheduledNotification]:
        """
        Unsent rows due at `now`, highest priority first then oldest.

        Rows are locked with SKIP LOCKED so overlapping flushes never pick the
        same row; dialects without row locks ignore the clause.
        """
        stmt = (
            select(ScheduledNotification)
            .where(
                ScheduledNotification.sent_at == None,
                ScheduledNotification.scheduled_for <= now,
            )
            .order_by(
                _PRIORITY_RANK.desc(),
                ScheduledNotification.scheduled_for.asc(),
                ScheduledNotification.id.asc(),
            )
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        if exclude_ids:
            stmt = stmt.where(ScheduledNotification.id.notin_(list(exclude_ids)))
        return self.db.execute(stmt).scalars().all()

    def list_pending(self, recipient_id: Optional[int] = None, limit: int = 100) -> List[ScheduledNotification]:
        stmt = select(ScheduledNotification).where(ScheduledNotification.sent_at == None)
        if recipient_id is not None:
            stmt = stmt.where(ScheduledNotification.recipient_id == recipient_id)
        stmt = stmt.order_by(ScheduledNotification.scheduled_for, ScheduledNotification.id).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def list_for_subject(self, subject_type: str, subject_id: int) -> List[ScheduledNotification]:
        stmt = (
            select(ScheduledNotification)
            .where(
                ScheduledNotification.subject_type == subject_type,
                ScheduledNotification.subject_id == subject_id,
            )
            .order_by(ScheduledNotification.id)
        )
        return self.db.execute(stmt).scalars().all()

    def notified_subject_ids(self, recipient_id: int, subject_type: str, subject_ids: Iterable[int]) -> Set[int]:
        ids = list(subject_ids)
        if not ids:
            return set()
        stmt = select(ScheduledNotification.subject_id).where(
            ScheduledNotification.recipient_id == recipient_id,
            ScheduledNotification.subject_type == subject_type,
            ScheduledNotification.subject_id.in_(ids),
        )
        return set(self.db.execute(stmt).scalars().all())
