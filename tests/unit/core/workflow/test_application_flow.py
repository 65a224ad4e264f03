#!/usr/bin/env python3
"""
Unit tests for applying, withdrawing and application history.
"""

from datetime import timedelta

from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.workflow import applications, router
from database.models import (
    ApplicationStatus,
    ApprovalStatus,
    InterviewStatus,
    OfferStatus,
    PlacementStatus,
)
from database.uow import placement_uow
from tests import StoreTestCase


class TestApply(StoreTestCase):

    def setUp(self):
        super().setUp()
        self.candidate = self.add_candidate(group="CSE")
        self.opportunity = self.add_opportunity(groups=["cse"])

    def test_creates_applied_application_with_history(self):
        application = applications.apply(self.repo, self.candidate.id, self.opportunity.id, self.now, cover_note="Hi")
        self.assertEqual(application.status, ApplicationStatus.APPLIED)
        self.assertEqual(application.applied_at, self.now)
        self.assertEqual(application.cover_note, "Hi")
        [change] = applications.history(self.repo, application.id)
        self.assertIsNone(change.from_status)
        self.assertEqual(change.to_status, ApplicationStatus.APPLIED)

    def test_history_sees_transitions_within_one_unit_of_work(self):
        self.session.commit()
        with placement_uow(self.session_factory) as repo:
            application = applications.apply(repo, self.candidate.id, self.opportunity.id, self.now)
            self.assertEqual(
                [c.to_status for c in applications.history(repo, application.id)],
                [ApplicationStatus.APPLIED],
            )
            applications.withdraw(repo, application.id, self.candidate.id, None, self.now)
            self.assertEqual(
                [c.to_status for c in applications.history(repo, application.id)],
                [ApplicationStatus.APPLIED, ApplicationStatus.WITHDRAWN],
            )

    def test_duplicate_application_conflicts(self):
        applications.apply(self.repo, self.candidate.id, self.opportunity.id, self.now)
        with self.assertRaises(ConflictError):
            applications.apply(self.repo, self.candidate.id, self.opportunity.id, self.now)

    def test_rejections(self):
        with self.assertRaises(NotFoundError):
            applications.apply(self.repo, 9999, self.opportunity.id, self.now)
        with self.assertRaises(NotFoundError):
            applications.apply(self.repo, self.candidate.id, 9999, self.now)

        cases = [
            self.add_opportunity(groups=["ECE"]),
            self.add_opportunity(verified=False),
            self.add_opportunity(is_active=False),
            self.add_opportunity(deadline=self.now - timedelta(minutes=1)),
        ]
        for opportunity in cases:
            with self.assertRaises(ValidationError):
                applications.apply(self.repo, self.candidate.id, opportunity.id, self.now)

    def test_placed_or_inactive_candidates_cannot_apply(self):
        placed = self.add_candidate(placement_status=PlacementStatus.PLACED)
        inactive = self.add_candidate(is_active=False)
        for user in (placed, inactive):
            with self.assertRaises(ValidationError):
                applications.apply(self.repo, user.id, self.opportunity.id, self.now)


class TestWithdraw(StoreTestCase):

    def setUp(self):
        super().setUp()
        self.reviewer = self.add_reviewer()
        self.candidate = self.add_candidate()
        self.application = applications.apply(self.repo, self.candidate.id, self.add_opportunity().id, self.now)

    def test_withdraw_closes_pending_approval_request(self):
        request_id = router.submit(self.repo, self.application.id, self.now).approval_request_id
        applications.withdraw(self.repo, self.application.id, self.candidate.id, "Took another offer", self.now)

        self.assertEqual(self.application.status, ApplicationStatus.WITHDRAWN)
        request = self.repo.approvals.get(request_id)
        self.assertEqual(request.status, ApprovalStatus.REJECTED)
        self.assertIsNone(request.reviewed_at)
        self.assertEqual(request.closed_reason, applications.CLOSED_BY_WITHDRAWAL)
        self.assertIn("application withdrawn", request.comments)
        self.assertEqual(applications.history(self.repo, self.application.id)[-1].reason, "Took another offer")

    def test_withdraw_cancels_interviews_and_offer(self):
        from database.models import Interview, Offer

        self.application.status = ApplicationStatus.OFFERED
        interview = self.repo.interviews.add(Interview(
            application_id=self.application.id,
            candidate_id=self.candidate.id,
            interviewer_id=self.reviewer.id,
            scheduled_at=self.now + timedelta(days=1),
        ))
        offer = self.repo.offers.add(Offer(
            application_id=self.application.id,
            candidate_id=self.candidate.id,
            response_deadline=self.now + timedelta(days=3),
        ))

        applications.withdraw(self.repo, self.application.id, self.candidate.id, None, self.now)

        self.assertEqual(interview.status, InterviewStatus.CANCELLED)
        self.assertEqual(offer.status, OfferStatus.WITHDRAWN)
        self.assertEqual(offer.responded_at, self.now)

    def test_only_the_owner_may_withdraw(self):
        with self.assertRaises(AuthorizationError):
            applications.withdraw(self.repo, self.application.id, self.add_candidate().id, None, self.now)

    def test_terminal_application_cannot_be_withdrawn(self):
        applications.withdraw(self.repo, self.application.id, self.candidate.id, None, self.now)
        with self.assertRaises(ValidationError):
            applications.withdraw(self.repo, self.application.id, self.candidate.id, None, self.now)

    def test_history_of_unknown_application(self):
        with self.assertRaises(NotFoundError):
            applications.history(self.repo, 9999)
