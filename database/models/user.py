from sqlalchemy import Column, Text, Boolean, Integer, ForeignKey, Index
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship, validates

from .base import Base, UTCDateTime, utcnow, enum_type, normalize_labels
from .enums import UserRole, TypePreference, NotificationFrequency, PlacementStatus


class User(Base):
    """
    Any person the engine routes work to or notifies.

    Candidates, reviewers (mentors/faculty) and employer contacts share this
    table; `group` is the eligibility group (department) used for matching and
    reviewer routing.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    role = Column(enum_type(UserRole), nullable=False)
    group = Column('group_name', Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    webhook_url = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    profile = relationship("CandidateProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_users_role_group', 'role', 'group_name'),
    )

    def __repr__(self):
        return f"<User id={self.id} role={self.role} group={self.group}>"


class CandidateProfile(Base):
    """
    Matching-relevant part of a candidate's profile.

    Owned by the profile subsystem; the engine only reads it, apart from
    `placement_status` which changes when an offer is accepted.
    """
    __tablename__ = 'candidate_profile'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    skills = Column(JSON, nullable=False, default=list)
    experience_level = Column(Integer, nullable=False, default=1)  # e.g. current semester
    min_compensation = Column(Integer, nullable=True)
    work_mode = Column(Text, nullable=True)  # remote|onsite|hybrid
    type_preference = Column(enum_type(TypePreference), nullable=True)
    notification_frequency = Column(enum_type(NotificationFrequency), nullable=False, default=NotificationFrequency.DAILY)
    placement_status = Column(enum_type(PlacementStatus), nullable=False, default=PlacementStatus.AVAILABLE)

    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="profile")

    @validates('skills')
    def _validate_skills(self, key, value):
        return normalize_labels(value)

    @validates('experience_level')
    def _validate_experience_level(self, key, value):
        if value is None or int(value) < 0:
            raise ValueError("experience_level must be a non-negative integer")
        return int(value)
