import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from database.models import Interview, InterviewStatus, Offer, OfferStatus, Feedback
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

ACTIVE_INTERVIEW_STATUSES = (InterviewStatus.SCHEDULED, InterviewStatus.CONFIRMED)


class InterviewRepository(BaseRepository):
    def get(self, interview_id: int) -> Optional[Interview]:
        return self.db.get(Interview, interview_id)

    def add(self, interview: Interview) -> Interview:
        self.db.add(interview)
        self.db.flush()
        return interview

    def active_for_application(self, application_id: int) -> List[Interview]:
        stmt = (
            select(Interview)
            .where(
                Interview.application_id == application_id,
                Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
            )
            .order_by(Interview.scheduled_at)
        )
        return self.db.execute(stmt).scalars().all()

    def list_upcoming(self, start: datetime, end: datetime) -> List[Interview]:
        """Scheduled/confirmed interviews starting in (start, end]."""
        stmt = (
            select(Interview)
            .where(
                Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
                Interview.scheduled_at > start,
                Interview.scheduled_at <= end,
            )
            .order_by(Interview.scheduled_at, Interview.id)
        )
        return self.db.execute(stmt).scalars().all()


class OfferRepository(BaseRepository):
    def get(self, offer_id: int) -> Optional[Offer]:
        return self.db.get(Offer, offer_id)

    def get_for_update(self, offer_id: int) -> Optional[Offer]:
        stmt = select(Offer).where(Offer.id == offer_id).with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, offer: Offer) -> Offer:
        self.db.add(offer)
        self.db.flush()
        return offer

    def active_for_application(self, application_id: int) -> Optional[Offer]:
        stmt = select(Offer).where(
            Offer.application_id == application_id,
            Offer.status == OfferStatus.EXTENDED,
        )
        return self.db.execute(stmt).scalars().first()

    def list_expired(self, now: datetime) -> List[Offer]:
        stmt = (
            select(Offer)
            .where(Offer.status == OfferStatus.EXTENDED, Offer.response_deadline < now)
            .order_by(Offer.id)
        )
        return self.db.execute(stmt).scalars().all()


class FeedbackRepository(BaseRepository):
    def add(self, feedback: Feedback) -> Feedback:
        self.db.add(feedback)
        self.db.flush()
        return feedback

    def list_for_application(self, application_id: int) -> List[Feedback]:
        stmt = (
            select(Feedback)
            .where(Feedback.application_id == application_id)
            .order_by(Feedback.id)
        )
        return self.db.execute(stmt).scalars().all()

    def exists_from_author(self, application_id: int, author_id: int) -> bool:
        stmt = select(Feedback.id).where(
            Feedback.application_id == application_id,
            Feedback.author_id == author_id,
        )
        return self.db.execute(stmt).first() is not None
