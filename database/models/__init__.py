from .base import Base, UTCDateTime, utcnow, as_utc
from .enums import (
    UserRole,
    OpportunityType,
    TypePreference,
    VerificationStatus,
    PlacementStatus,
    NotificationFrequency,
    ApplicationStatus,
    ApprovalStatus,
    ApprovalPriority,
    InterviewMode,
    InterviewStatus,
    OfferStatus,
    NotificationCategory,
    NotificationPriority,
)
from .user import User, CandidateProfile
from .opportunity import Opportunity
from .application import Application, ApplicationStatusChange, ApprovalRequest
from .engagement import Interview, Offer, Feedback
from .notification import ScheduledNotification

__all__ = [
    'Base',
    'UTCDateTime',
    'utcnow',
    'as_utc',
    'UserRole',
    'OpportunityType',
    'TypePreference',
    'VerificationStatus',
    'PlacementStatus',
    'NotificationFrequency',
    'ApplicationStatus',
    'ApprovalStatus',
    'ApprovalPriority',
    'InterviewMode',
    'InterviewStatus',
    'OfferStatus',
    'NotificationCategory',
    'NotificationPriority',
    'User',
    'CandidateProfile',
    'Opportunity',
    'Application',
    'ApplicationStatusChange',
    'ApprovalRequest',
    'Interview',
    'Offer',
    'Feedback',
    'ScheduledNotification',
]
