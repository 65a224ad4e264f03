import logging
from datetime import datetime
from typing import List, Optional, Dict, Iterable

from sqlalchemy import select, func, or_

from database.models import Opportunity, Application, VerificationStatus
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class OpportunityRepository(BaseRepository):
    def get(self, opportunity_id: int) -> Optional[Opportunity]:
        return self.db.get(Opportunity, opportunity_id)

    def add(self, opportunity: Opportunity) -> Opportunity:
        self.db.add(opportunity)
        self.db.flush()
        return opportunity

    def _open_stmt(self, now: datetime):
        return select(Opportunity).where(
            Opportunity.is_active == True,
            Opportunity.verification_status == VerificationStatus.VERIFIED,
            or_(Opportunity.deadline == None, Opportunity.deadline > now),
        )

    def list_open(self, now: datetime) -> List[Opportunity]:
        """Active, verified opportunities whose deadline has not passed."""
        stmt = self._open_stmt(now).order_by(Opportunity.created_at.desc(), Opportunity.id.desc())
        return self.db.execute(stmt).scalars().all()

    def list_open_for_group(self, group: Optional[str], now: datetime) -> List[Opportunity]:
        # eligible_groups is a JSON list; membership is checked here to stay portable
        if not group:
            return []
        wanted = group.strip().lower()
        return [
            o for o in self.list_open(now)
            if any(g.lower() == wanted for g in (o.eligible_groups or []))
        ]

    def list_recent_open(self, since: datetime, now: datetime) -> List[Opportunity]:
        stmt = (
            self._open_stmt(now)
            .where(Opportunity.created_at >= since)
            .order_by(Opportunity.created_at.desc(), Opportunity.id.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def application_counts(self, opportunity_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(opportunity_ids)
        if not ids:
            return {}
        stmt = (
            select(Application.opportunity_id, func.count(Application.id))
            .where(Application.opportunity_id.in_(ids))
            .group_by(Application.opportunity_id)
        )
        counts = {opportunity_id: 0 for opportunity_id in ids}
        for opportunity_id, count in self.db.execute(stmt).all():
            counts[opportunity_id] = count
        return counts
