#!/usr/bin/env python3
"""
Tests for the discovery scanners.

Usage:
    python -m pytest tests/unit/notification/test_scanners.py -v
"""

from datetime import timedelta

from core.config_loader import AppConfig
from database.models import (
    ApplicationStatus,
    ApprovalPriority,
    Feedback,
    Interview,
    NotificationCategory,
    NotificationPriority,
)
from notification import scanners
from tests import StoreTestCase


class ScannerTestCase(StoreTestCase):

    def setUp(self):
        super().setUp()
        self.config = AppConfig()
        self.candidate = self.add_candidate(group="CSE")

    def pending(self, user, category):
        return [n for n in self.repo.notifications.list_pending(user.id) if n.category == category]


class TestDeadlineScanner(ScannerTestCase):

    def apply_to(self, deadline, status=ApplicationStatus.APPLIED):
        opportunity = self.add_opportunity(deadline=deadline)
        return self.add_application(self.candidate, opportunity, status=status)

    def test_deadline_tomorrow_fires_once(self):
        application = self.apply_to(self.now + timedelta(days=1))

        self.assertEqual(scanners.scan_deadlines(self.repo, self.now, self.config), 1)
        [note] = self.pending(self.candidate, NotificationCategory.DEADLINE)
        self.assertEqual(note.scheduled_for, self.now)
        self.assertEqual(note.priority, NotificationPriority.HIGH)
        self.assertEqual(note.subject_id, application.id)
        self.assertEqual(note.payload['days_until'], 1)

        self.assertEqual(scanners.scan_deadlines(self.repo, self.now, self.config), 0)
        note.sent_at = self.now
        self.session.flush()
        self.assertEqual(scanners.scan_deadlines(self.repo, self.now + timedelta(hours=1), self.config), 0)

    def test_week_out_reminder_is_normal_priority(self):
        self.apply_to(self.now + timedelta(days=7))
        self.assertEqual(scanners.scan_deadlines(self.repo, self.now, self.config), 1)
        [note] = self.pending(self.candidate, NotificationCategory.DEADLINE)
        self.assertEqual(note.priority, NotificationPriority.NORMAL)
        self.assertEqual(note.payload['days_until'], 7)

    def test_partial_days_round_up(self):
        deadline = self.now + timedelta(hours=20)
        self.apply_to(deadline)
        self.assertEqual(scanners.scan_deadlines(self.repo, self.now, self.config), 1)
        [note] = self.pending(self.candidate, NotificationCategory.DEADLINE)
        self.assertEqual(note.scheduled_for, deadline - timedelta(days=1))

    def test_other_offsets_and_closed_applications_are_skipped(self):
        self.apply_to(self.now + timedelta(days=3))
        self.apply_to(self.now + timedelta(days=1), status=ApplicationStatus.WITHDRAWN)
        self.apply_to(self.now - timedelta(hours=1))
        self.assertEqual(scanners.scan_deadlines(self.repo, self.now, self.config), 0)


class TestInterviewScanner(ScannerTestCase):

    def setUp(self):
        super().setUp()
        self.interviewer = self.add_employer()
        self.application = self.add_application(
            self.candidate, self.add_opportunity(), status=ApplicationStatus.INTERVIEW_SCHEDULED,
        )

    def interview(self, scheduled_at):
        return self.repo.interviews.add(Interview(
            application_id=self.application.id,
            candidate_id=self.candidate.id,
            interviewer_id=self.interviewer.id,
            scheduled_at=scheduled_at,
        ))

    def test_day_before_reminds_both_sides(self):
        interview = self.interview(self.now + timedelta(hours=24))
        self.assertEqual(scanners.scan_interviews(self.repo, self.now, self.config), 2)

        for user in (self.candidate, self.interviewer):
            [note] = self.pending(user, NotificationCategory.INTERVIEW)
            self.assertEqual(note.subject_id, interview.id)
            self.assertEqual(note.priority, NotificationPriority.NORMAL)
            self.assertEqual(note.scheduled_for, self.now)

        self.assertEqual(scanners.scan_interviews(self.repo, self.now, self.config), 0)

    def test_hour_before_is_high_priority(self):
        self.interview(self.now + timedelta(minutes=45))
        self.assertEqual(scanners.scan_interviews(self.repo, self.now, self.config), 2)
        [note] = self.pending(self.candidate, NotificationCategory.INTERVIEW)
        self.assertEqual(note.priority, NotificationPriority.HIGH)

    def test_other_marks_are_skipped(self):
        self.interview(self.now + timedelta(hours=5))
        self.assertEqual(scanners.scan_interviews(self.repo, self.now, self.config), 0)


class TestApprovalScanner(ScannerTestCase):

    def request(self, reviewer, hours_ago, priority=ApprovalPriority.LOW):
        application = self.add_application(
            self.add_candidate(), self.add_opportunity(), status=ApplicationStatus.MENTOR_REVIEW,
        )
        return self.add_approval_request(
            application, reviewer=reviewer, priority=priority,
            submitted_at=self.now - timedelta(hours=hours_ago),
        )

    def test_aged_request_nudges_reviewer_once(self):
        reviewer = self.add_reviewer()
        request = self.request(reviewer, hours_ago=30, priority=ApprovalPriority.URGENT)
        self.request(reviewer, hours_ago=2)
        self.request(None, hours_ago=48)

        self.assertEqual(scanners.scan_aged_approvals(self.repo, self.now, self.config), 1)
        [note] = self.pending(reviewer, NotificationCategory.APPROVAL)
        self.assertEqual(note.subject_id, request.id)
        self.assertEqual(note.priority, NotificationPriority.HIGH)

        self.assertEqual(scanners.scan_aged_approvals(self.repo, self.now + timedelta(hours=6), self.config), 0)


class TestFeedbackScanner(ScannerTestCase):

    def completed(self, posted_by=None, reviewer=None, days_ago=4):
        return self.add_application(
            self.candidate,
            self.add_opportunity(posted_by=posted_by),
            status=ApplicationStatus.COMPLETED,
            reviewer=reviewer,
            completed_at=self.now - timedelta(days=days_ago),
        )

    def test_asks_poster_then_reviewer(self):
        employer = self.add_employer()
        reviewer = self.add_reviewer()
        self.completed(posted_by=employer, reviewer=reviewer)
        self.completed(reviewer=reviewer)

        self.assertEqual(scanners.scan_missing_feedback(self.repo, self.now, self.config), 2)
        self.assertEqual(len(self.pending(employer, NotificationCategory.FEEDBACK)), 1)
        self.assertEqual(len(self.pending(reviewer, NotificationCategory.FEEDBACK)), 1)
        self.assertEqual(scanners.scan_missing_feedback(self.repo, self.now, self.config), 0)

    def test_skips_recent_reviewed_and_orphaned(self):
        employer = self.add_employer()
        self.completed(posted_by=employer, days_ago=1)
        with_feedback = self.completed(posted_by=employer)
        self.repo.feedback.add(Feedback(application_id=with_feedback.id, author_id=employer.id, rating=5))
        self.completed()

        self.assertEqual(scanners.scan_missing_feedback(self.repo, self.now, self.config), 0)


class TestCrossGroupScanner(ScannerTestCase):

    def test_recent_other_group_opportunities(self):
        other = self.add_opportunity(groups=["ECE"], created_at=self.now - timedelta(days=1))
        self.add_opportunity(groups=["cse"], created_at=self.now - timedelta(days=1))
        self.add_opportunity(groups=["ME"], created_at=self.now - timedelta(days=20))

        self.assertEqual(scanners.scan_cross_group(self.repo, self.now, self.config), 1)
        [note] = self.pending(self.candidate, NotificationCategory.CROSS_CATEGORY)
        self.assertEqual(note.subject_id, other.id)
        self.assertEqual(note.priority, NotificationPriority.LOW)

        self.assertEqual(scanners.scan_cross_group(self.repo, self.now, self.config), 0)

    def test_limit_per_candidate(self):
        for _ in range(5):
            self.add_opportunity(groups=["ECE"], created_at=self.now - timedelta(days=1))
        self.assertEqual(scanners.scan_cross_group(self.repo, self.now, self.config), 3)

    def test_no_recent_opportunities(self):
        self.assertEqual(scanners.scan_cross_group(self.repo, self.now, self.config), 0)


class TestDefaultScanners(ScannerTestCase):

    def test_registry(self):
        names = [name for name, _ in scanners.default_scanners(self.config)]
        self.assertEqual(names, ['deadline', 'interview', 'approval', 'feedback', 'cross_group'])

    def test_hours_and_days_round_up(self):
        self.assertEqual(scanners.days_until(self.now + timedelta(hours=1), self.now), 1)
        self.assertEqual(scanners.days_until(self.now + timedelta(days=1, seconds=1), self.now), 2)
        self.assertEqual(scanners.hours_until(self.now + timedelta(minutes=1), self.now), 1)
