import enum


class UserRole(str, enum.Enum):
    CANDIDATE = "CANDIDATE"
    REVIEWER = "REVIEWER"
    EMPLOYER = "EMPLOYER"
    ADMIN = "ADMIN"


class OpportunityType(str, enum.Enum):
    PLACEMENT = "PLACEMENT"
    INTERNSHIP = "INTERNSHIP"


class TypePreference(str, enum.Enum):
    PLACEMENT = "PLACEMENT"
    INTERNSHIP = "INTERNSHIP"
    EITHER = "EITHER"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class PlacementStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    INTERNING = "INTERNING"
    PLACED = "PLACED"


class NotificationFrequency(str, enum.Enum):
    IMMEDIATE = "IMMEDIATE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


class ApplicationStatus(str, enum.Enum):
    APPLIED = "APPLIED"
    MENTOR_REVIEW = "MENTOR_REVIEW"
    MENTOR_APPROVED = "MENTOR_APPROVED"
    MENTOR_REJECTED = "MENTOR_REJECTED"
    EMPLOYER_REVIEW = "EMPLOYER_REVIEW"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    INTERVIEWED = "INTERVIEWED"
    OFFERED = "OFFERED"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"
    OFFER_REJECTED = "OFFER_REJECTED"
    NOT_OFFERED = "NOT_OFFERED"
    COMPLETED = "COMPLETED"
    WITHDRAWN = "WITHDRAWN"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"


class ApprovalPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return _APPROVAL_PRIORITY_RANK[self]


_APPROVAL_PRIORITY_RANK = {
    ApprovalPriority.LOW: 0,
    ApprovalPriority.MEDIUM: 1,
    ApprovalPriority.HIGH: 2,
    ApprovalPriority.URGENT: 3,
}


class InterviewMode(str, enum.Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    PHONE = "PHONE"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class OfferStatus(str, enum.Enum):
    EXTENDED = "EXTENDED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    EXPIRED = "EXPIRED"


class NotificationCategory(str, enum.Enum):
    DEADLINE = "DEADLINE"
    INTERVIEW = "INTERVIEW"
    APPROVAL = "APPROVAL"
    FEEDBACK = "FEEDBACK"
    CROSS_CATEGORY = "CROSS_CATEGORY"
    GENERAL = "GENERAL"


class NotificationPriority(str, enum.Enum):
    """Priority levels for scheduled notifications."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return _NOTIFICATION_PRIORITY_RANK[self]


_NOTIFICATION_PRIORITY_RANK = {
    NotificationPriority.LOW: 0,
    NotificationPriority.NORMAL: 1,
    NotificationPriority.HIGH: 2,
    NotificationPriority.URGENT: 3,
}
