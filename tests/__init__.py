#!/usr/bin/env python3
"""
Test suite configuration and utilities.

All tests run against an in-memory SQLite store built from the real models,
so no external database is needed:

    python -m pytest tests/ -v

StoreTestCase gives each test a fresh store, a PlacementRepository on it and
small builders for users, opportunities and applications.
"""

import itertools
import unittest
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import sessionmaker

from database.database import make_engine
from database.models import (
    Application,
    ApplicationStatus,
    ApprovalRequest,
    ApprovalStatus,
    ApprovalPriority,
    Base,
    CandidateProfile,
    NotificationFrequency,
    Opportunity,
    OpportunityType,
    PlacementStatus,
    TypePreference,
    User,
    UserRole,
    VerificationStatus,
)
from database.repository import PlacementRepository

# A Monday, noon UTC
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


def make_session_factory():
    """Fresh in-memory store with all tables; returns (engine, session_factory)."""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    return engine, factory


class StoreTestCase(unittest.TestCase):
    """Base class for tests that need a populated store."""

    def setUp(self):
        self.engine, self.session_factory = make_session_factory()
        self.session = self.session_factory()
        self.repo = PlacementRepository(self.session)
        self.now = NOW

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    # ============ Builders ============

    def add_user(self, role: UserRole, group: Optional[str] = "CSE", name: Optional[str] = None, **kwargs) -> User:
        n = next(_ids)
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=f"{role.value.lower()}{n}@example.com",
            role=role,
            group=group,
            created_at=self.now - timedelta(days=365),
            **kwargs
        )
        return self.repo.users.add(user)

    def add_candidate(
        self,
        group: Optional[str] = "CSE",
        skills: Iterable[str] = (),
        experience_level: int = 1,
        min_compensation: Optional[int] = None,
        type_preference: Optional[TypePreference] = None,
        frequency: NotificationFrequency = NotificationFrequency.DAILY,
        placement_status: PlacementStatus = PlacementStatus.AVAILABLE,
        **kwargs
    ) -> User:
        user = self.add_user(UserRole.CANDIDATE, group=group, **kwargs)
        user.profile = CandidateProfile(
            skills=list(skills),
            experience_level=experience_level,
            min_compensation=min_compensation,
            type_preference=type_preference,
            notification_frequency=frequency,
            placement_status=placement_status,
        )
        self.session.flush()
        return user

    def add_reviewer(self, group: Optional[str] = "CSE", **kwargs) -> User:
        return self.add_user(UserRole.REVIEWER, group=group, **kwargs)

    def add_employer(self, **kwargs) -> User:
        return self.add_user(UserRole.EMPLOYER, group=None, **kwargs)

    def add_admin(self, **kwargs) -> User:
        return self.add_user(UserRole.ADMIN, group=None, **kwargs)

    def add_opportunity(
        self,
        groups: Iterable[str] = ("CSE",),
        skills: Iterable[str] = (),
        deadline: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        verified: bool = True,
        is_active: bool = True,
        posted_by: Optional[User] = None,
        opportunity_type: OpportunityType = OpportunityType.INTERNSHIP,
        compensation_max: Optional[int] = None,
        title: Optional[str] = None,
    ) -> Opportunity:
        n = next(_ids)
        opportunity = Opportunity(
            title=title or f"Engineer {n}",
            company_name=f"Company {n}",
            posted_by_id=posted_by.id if posted_by else None,
            eligible_groups=list(groups),
            required_skills=list(skills),
            compensation_max=compensation_max,
            opportunity_type=opportunity_type,
            is_active=is_active,
            verification_status=VerificationStatus.VERIFIED if verified else VerificationStatus.PENDING,
            deadline=deadline if deadline is not None else self.now + timedelta(days=30),
            created_at=created_at or self.now - timedelta(days=10),
        )
        return self.repo.opportunities.add(opportunity)

    def add_application(
        self,
        candidate: User,
        opportunity: Opportunity,
        status: ApplicationStatus = ApplicationStatus.APPLIED,
        reviewer: Optional[User] = None,
        applied_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> Application:
        """Insert an application directly in `status`, bypassing the workflow."""
        applied_at = applied_at or self.now - timedelta(days=1)
        application = Application(
            candidate_id=candidate.id,
            opportunity_id=opportunity.id,
            status=status,
            reviewer_id=reviewer.id if reviewer else None,
            applied_at=applied_at,
            updated_at=applied_at,
            completed_at=completed_at,
        )
        return self.repo.applications.add(application)

    def add_approval_request(
        self,
        application: Application,
        reviewer: Optional[User] = None,
        status: ApprovalStatus = ApprovalStatus.PENDING,
        priority: ApprovalPriority = ApprovalPriority.LOW,
        submitted_at: Optional[datetime] = None,
        reviewed_at: Optional[datetime] = None,
        response_hours: Optional[float] = None,
    ) -> ApprovalRequest:
        submitted_at = submitted_at or self.now - timedelta(hours=1)
        request = ApprovalRequest(
            application_id=application.id,
            candidate_id=application.candidate_id,
            reviewer_id=reviewer.id if reviewer else None,
            status=status,
            priority=priority,
            submitted_at=submitted_at,
            assigned_at=submitted_at if reviewer else None,
            reviewed_at=reviewed_at,
            response_hours=response_hours,
        )
        return self.repo.approvals.add(request)
