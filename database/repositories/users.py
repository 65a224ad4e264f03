import logging
from typing import List, Optional, Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from database.models import User, CandidateProfile, UserRole, PlacementStatus
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository):
    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_candidate(self, user_id: int) -> Optional[User]:
        stmt = (
            select(User)
            .options(selectinload(User.profile))
            .where(User.id == user_id, User.role == UserRole.CANDIDATE)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def lock_reviewers_in_group(self, group: str) -> List[User]:
        """
        Active reviewers of `group`, row-locked for the rest of the transaction.

        Concurrent submissions for the same group serialise on these locks, so the
        pending counts read afterwards cannot be stale when the new request is
        inserted.
        """
        stmt = (
            select(User)
            .where(
                User.role == UserRole.REVIEWER,
                User.is_active == True,
                func.lower(User.group) == group.strip().lower(),
            )
            .order_by(User.id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalars().all()

    def available_candidates_page(
        self,
        groups: Iterable[str],
        after_id: int = 0,
        limit: int = 200,
    ) -> List[User]:
        """Keyset page of active, AVAILABLE candidates in any of `groups`."""
        groups = [g.strip().lower() for g in groups if g]
        if not groups:
            return []
        stmt = (
            select(User)
            .join(CandidateProfile, CandidateProfile.user_id == User.id)
            .options(selectinload(User.profile))
            .where(
                User.role == UserRole.CANDIDATE,
                User.is_active == True,
                func.lower(User.group).in_(groups),
                User.id > after_id,
                CandidateProfile.placement_status == PlacementStatus.AVAILABLE,
            )
            .order_by(User.id)
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def active_candidates_page(self, after_id: int = 0, limit: int = 200) -> List[User]:
        """Keyset page of active, AVAILABLE candidates across all groups."""
        stmt = (
            select(User)
            .join(CandidateProfile, CandidateProfile.user_id == User.id)
            .options(selectinload(User.profile))
            .where(
                User.role == UserRole.CANDIDATE,
                User.is_active == True,
                User.id > after_id,
                CandidateProfile.placement_status == PlacementStatus.AVAILABLE,
            )
            .order_by(User.id)
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()
