from database.repositories.base import BaseRepository
from database.repositories.users import UserRepository
from database.repositories.opportunities import OpportunityRepository
from database.repositories.applications import ApplicationRepository
from database.repositories.approvals import ApprovalRepository
from database.repositories.engagements import InterviewRepository, OfferRepository, FeedbackRepository
from database.repositories.notifications import NotificationRepository

__all__ = [
    'BaseRepository',
    'UserRepository',
    'OpportunityRepository',
    'ApplicationRepository',
    'ApprovalRepository',
    'InterviewRepository',
    'OfferRepository',
    'FeedbackRepository',
    'NotificationRepository',
]
