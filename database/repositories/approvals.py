import logging
from datetime import datetime
from typing import List, Optional, Dict, Iterable

from sqlalchemy import select, func

from database.models import ApprovalRequest, ApprovalStatus
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ApprovalRepository(BaseRepository):
    def get(self, request_id: int) -> Optional[ApprovalRequest]:
        return self.db.get(ApprovalRequest, request_id)

    def get_for_update(self, request_id: int) -> Optional[ApprovalRequest]:
        stmt = select(ApprovalRequest).where(ApprovalRequest.id == request_id).with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_application(self, application_id: int) -> Optional[ApprovalRequest]:
        stmt = select(ApprovalRequest).where(ApprovalRequest.application_id == application_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, request: ApprovalRequest) -> ApprovalRequest:
        self.db.add(request)
        self.db.flush()
        return request

    def pending_counts(self, reviewer_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(reviewer_ids)
        if not ids:
            return {}
        stmt = (
            select(ApprovalRequest.reviewer_id, func.count(ApprovalRequest.id))
            .where(
                ApprovalRequest.reviewer_id.in_(ids),
                ApprovalRequest.status == ApprovalStatus.PENDING,
            )
            .group_by(ApprovalRequest.reviewer_id)
        )
        counts = {reviewer_id: 0 for reviewer_id in ids}
        for reviewer_id, count in self.db.execute(stmt).all():
            counts[reviewer_id] = count
        return counts

    def list_unassigned_pending(self, limit: int = 100) -> List[ApprovalRequest]:
        stmt = (
            select(ApprovalRequest)
            .where(
                ApprovalRequest.status == ApprovalStatus.PENDING,
                ApprovalRequest.reviewer_id == None,
            )
            .order_by(ApprovalRequest.submitted_at, ApprovalRequest.id)
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def list_pending_for_reviewer(self, reviewer_id: int) -> List[ApprovalRequest]:
        stmt = select(ApprovalRequest).where(
            ApprovalRequest.reviewer_id == reviewer_id,
            ApprovalRequest.status == ApprovalStatus.PENDING,
        )
        return self.db.execute(stmt).scalars().all()

    def list_aged_pending(self, submitted_before: datetime) -> List[ApprovalRequest]:
        """Assigned PENDING requests submitted at or before `submitted_before`."""
        stmt = (
            select(ApprovalRequest)
            .where(
                ApprovalRequest.status == ApprovalStatus.PENDING,
                ApprovalRequest.reviewer_id != None,
                ApprovalRequest.submitted_at <= submitted_before,
            )
            .order_by(ApprovalRequest.id)
        )
        return self.db.execute(stmt).scalars().all()

    def list_submitted_since(self, since: datetime) -> List[ApprovalRequest]:
        stmt = (
            select(ApprovalRequest)
            .where(ApprovalRequest.submitted_at >= since)
            .order_by(ApprovalRequest.id)
        )
        return self.db.execute(stmt).scalars().all()
