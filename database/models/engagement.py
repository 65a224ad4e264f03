from sqlalchemy import Column, Text, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, utcnow, enum_type
from .enums import InterviewMode, InterviewStatus, OfferStatus


class Interview(Base):
    __tablename__ = 'interview'

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('application.id', ondelete='CASCADE'), nullable=False)
    candidate_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    interviewer_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    scheduled_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    mode = Column(enum_type(InterviewMode), nullable=False, default=InterviewMode.ONLINE)
    location = Column(Text, nullable=True)
    status = Column(enum_type(InterviewStatus), nullable=False, default=InterviewStatus.SCHEDULED)
    notes = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    application = relationship("Application")

    __table_args__ = (
        Index('idx_interview_scheduled', 'status', 'scheduled_at'),
        Index('idx_interview_interviewer', 'interviewer_id', 'scheduled_at'),
    )


class Offer(Base):
    """Placement offer extended for an application."""
    __tablename__ = 'offer'

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('application.id', ondelete='CASCADE'), nullable=False)
    candidate_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    compensation = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)
    status = Column(enum_type(OfferStatus), nullable=False, default=OfferStatus.EXTENDED)
    response_deadline = Column(UTCDateTime, nullable=False)

    extended_at = Column(UTCDateTime, nullable=False, default=utcnow)
    responded_at = Column(UTCDateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    application = relationship("Application")

    __table_args__ = (
        Index('idx_offer_application', 'application_id'),
        Index('idx_offer_status_deadline', 'status', 'response_deadline'),
    )


class Feedback(Base):
    """Post-engagement feedback; its absence drives the feedback reminder scanner."""
    __tablename__ = 'feedback'

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('application.id', ondelete='CASCADE'), nullable=False)
    author_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    rating = Column(Integer, nullable=False)
    comments = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('rating BETWEEN 1 AND 5', name='ck_feedback_rating'),
        Index('idx_feedback_application', 'application_id'),
    )
