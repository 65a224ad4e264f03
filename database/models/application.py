from sqlalchemy import Column, String, Text, Boolean, Integer, Float, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, utcnow, enum_type
from .enums import ApplicationStatus, ApprovalStatus, ApprovalPriority


class Application(Base):
    """
    A candidate's application to an opportunity.

    `status` is written only through core.workflow.status.apply_transition,
    which also appends an ApplicationStatusChange audit row.
    """
    __tablename__ = 'application'

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    opportunity_id = Column(Integer, ForeignKey('opportunity.id', ondelete='CASCADE'), nullable=False)

    status = Column(enum_type(ApplicationStatus), nullable=False, default=ApplicationStatus.APPLIED)
    reviewer_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    cover_note = Column(Text, nullable=True)
    applied_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)
    completed_at = Column(UTCDateTime, nullable=True)

    candidate = relationship("User", foreign_keys=[candidate_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    opportunity = relationship("Opportunity", back_populates="applications")
    approval_request = relationship("ApprovalRequest", back_populates="application", uselist=False)
    history = relationship(
        "ApplicationStatusChange",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationStatusChange.id",
    )

    __table_args__ = (
        UniqueConstraint('candidate_id', 'opportunity_id', name='uq_application_candidate_opportunity'),
        Index('idx_application_status', 'status'),
        Index('idx_application_opportunity', 'opportunity_id'),
    )


class ApplicationStatusChange(Base):
    """Append-only audit of application status transitions."""
    __tablename__ = 'application_status_change'

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('application.id', ondelete='CASCADE'), nullable=False)
    from_status = Column(enum_type(ApplicationStatus), nullable=True)
    to_status = Column(enum_type(ApplicationStatus), nullable=False)
    actor_id = Column(Integer, nullable=True)
    reason = Column(Text, nullable=True)
    changed_at = Column(UTCDateTime, nullable=False, default=utcnow)

    application = relationship("Application", back_populates="history")

    __table_args__ = (
        Index('idx_status_change_application', 'application_id', 'changed_at'),
    )


class ApprovalRequest(Base):
    """
    Mentor/faculty approval request, one per application.

    Mutated by the router (assignment) and by the reviewer's decision. A
    withdrawal closes a PENDING request as REJECTED with `closed_reason` set
    and no `reviewed_at`. After a terminal status only `comments` may change.
    """
    __tablename__ = 'approval_request'

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('application.id', ondelete='CASCADE'), nullable=False)
    candidate_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    reviewer_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    status = Column(enum_type(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    priority = Column(enum_type(ApprovalPriority), nullable=False, default=ApprovalPriority.LOW)
    auto_assigned = Column(Boolean, nullable=False, default=False)

    submitted_at = Column(UTCDateTime, nullable=False, default=utcnow)
    assigned_at = Column(UTCDateTime, nullable=True)
    reviewed_at = Column(UTCDateTime, nullable=True)
    response_hours = Column(Float, nullable=True)
    comments = Column(Text, nullable=True)
    closed_reason = Column(String(64), nullable=True)

    application = relationship("Application", back_populates="approval_request")
    candidate = relationship("User", foreign_keys=[candidate_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])

    __table_args__ = (
        UniqueConstraint('application_id', name='uq_approval_request_application'),
        Index('idx_approval_reviewer_status', 'reviewer_id', 'status'),
        Index('idx_approval_submitted', 'submitted_at'),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status != ApprovalStatus.PENDING
