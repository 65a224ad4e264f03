from sqlalchemy import Column, Text, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text as sql_text
from sqlalchemy.types import JSON

from .base import Base, UTCDateTime, utcnow, enum_type
from .enums import NotificationCategory, NotificationPriority


class ScheduledNotification(Base):
    """
    A notification scheduled for delivery at `scheduled_for`.

    Rows are created by scanners and the workflow services, updated exactly once
    by the flush step (sent_at) and never deleted, so the table doubles as the
    delivery audit trail.

    Deduplication: `dedup_key` hashes (recipient, category, subject, trigger
    window). The partial unique index allows at most one *unsent* row per key.
    """
    __tablename__ = 'scheduled_notification'

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category = Column(enum_type(NotificationCategory), nullable=False)

    # Subject entity, e.g. ("opportunity", 12) or ("approval_request", 3)
    subject_type = Column(Text, nullable=False)
    subject_id = Column(Integer, nullable=False)
    trigger_window = Column(Text, nullable=False)
    dedup_key = Column(Text, nullable=False)

    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)

    priority = Column(enum_type(NotificationPriority), nullable=False, default=NotificationPriority.NORMAL)
    scheduled_for = Column(UTCDateTime, nullable=False)
    sent_at = Column(UTCDateTime, nullable=True)

    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    recipient = relationship("User")

    __table_args__ = (
        Index(
            'uq_scheduled_notification_pending',
            'dedup_key',
            unique=True,
            postgresql_where=sql_text('sent_at IS NULL'),
            sqlite_where=sql_text('sent_at IS NULL'),
        ),
        Index('idx_scheduled_notification_key', 'dedup_key'),
        Index('idx_scheduled_notification_due', 'sent_at', 'scheduled_for'),
        Index('idx_scheduled_notification_recipient', 'recipient_id', 'created_at'),
    )

    @property
    def is_pending(self) -> bool:
        return self.sent_at is None
