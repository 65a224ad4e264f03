from sqlalchemy import Column, Text, Boolean, Integer, ForeignKey, Index
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship, validates

from .base import Base, UTCDateTime, utcnow, enum_type, normalize_labels
from .enums import OpportunityType, VerificationStatus


class Opportunity(Base):
    """
    An open placement or internship.

    Owned externally (employers / placement office); read-only to the engine.
    `verification_status` is moved by the placement office, never by the engine.
    """
    __tablename__ = 'opportunity'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    company_name = Column(Text, nullable=False)
    posted_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    eligible_groups = Column(JSON, nullable=False, default=list)
    required_skills = Column(JSON, nullable=False, default=list)

    compensation_min = Column(Integer, nullable=True)
    compensation_max = Column(Integer, nullable=True)
    opportunity_type = Column(enum_type(OpportunityType), nullable=False, default=OpportunityType.INTERNSHIP)
    work_mode = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    verification_status = Column(enum_type(VerificationStatus), nullable=False, default=VerificationStatus.PENDING)
    deadline = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    posted_by = relationship("User")
    applications = relationship("Application", back_populates="opportunity")

    __table_args__ = (
        Index('idx_opportunity_active', 'is_active', 'verification_status'),
        Index('idx_opportunity_deadline', 'deadline'),
        Index('idx_opportunity_created', 'created_at'),
    )

    @validates('eligible_groups', 'required_skills')
    def _validate_labels(self, key, value):
        return normalize_labels(value)

    @property
    def is_open(self) -> bool:
        return bool(self.is_active) and self.verification_status == VerificationStatus.VERIFIED
