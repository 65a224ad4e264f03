import logging
from datetime import datetime
from typing import List, Optional, Set, Iterable

from sqlalchemy import select, exists
from sqlalchemy.orm import selectinload

from database.models import (
    Application, ApplicationStatus, ApplicationStatusChange, Opportunity, Feedback,
)
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ApplicationRepository(BaseRepository):
    def get(self, application_id: int) -> Optional[Application]:
        return self.db.get(Application, application_id)

    def get_for_update(self, application_id: int) -> Optional[Application]:
        stmt = select(Application).where(Application.id == application_id).with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def find(self, candidate_id: int, opportunity_id: int) -> Optional[Application]:
        stmt = select(Application).where(
            Application.candidate_id == candidate_id,
            Application.opportunity_id == opportunity_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, application: Application) -> Application:
        self.db.add(application)
        self.db.flush()
        return application

    def record_status_change(self, change: ApplicationStatusChange) -> ApplicationStatusChange:
        self.db.add(change)
        self.db.flush()
        return change

    def history(self, application_id: int) -> List[ApplicationStatusChange]:
        stmt = (
            select(ApplicationStatusChange)
            .where(ApplicationStatusChange.application_id == application_id)
            .order_by(ApplicationStatusChange.id)
        )
        return self.db.execute(stmt).scalars().all()

    def list_for_candidate(self, candidate_id: int) -> List[Application]:
        stmt = (
            select(Application)
            .where(Application.candidate_id == candidate_id)
            .order_by(Application.applied_at.desc(), Application.id.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def applied_opportunity_ids(self, candidate_id: int) -> Set[int]:
        stmt = select(Application.opportunity_id).where(Application.candidate_id == candidate_id)
        return set(self.db.execute(stmt).scalars().all())

    def list_with_deadline_between(
        self,
        start: datetime,
        end: datetime,
        statuses: Iterable[ApplicationStatus],
    ) -> List[Application]:
        """Applications in `statuses` whose opportunity deadline is in (start, end]."""
        stmt = (
            select(Application)
            .join(Opportunity, Opportunity.id == Application.opportunity_id)
            .options(selectinload(Application.opportunity))
            .where(
                Application.status.in_(list(statuses)),
                Opportunity.deadline != None,
                Opportunity.deadline > start,
                Opportunity.deadline <= end,
            )
            .order_by(Application.id)
        )
        return self.db.execute(stmt).scalars().all()

    def list_completed_without_feedback(self, completed_before: datetime) -> List[Application]:
        has_feedback = exists().where(Feedback.application_id == Application.id)
        stmt = (
            select(Application)
            .options(selectinload(Application.opportunity))
            .where(
                Application.status == ApplicationStatus.COMPLETED,
                Application.completed_at != None,
                Application.completed_at <= completed_before,
                ~has_feedback,
            )
            .order_by(Application.id)
        )
        return self.db.execute(stmt).scalars().all()
