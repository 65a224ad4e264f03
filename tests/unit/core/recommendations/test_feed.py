#!/usr/bin/env python3
"""
Unit tests for recommendation ranking and the personalised feed.
"""

import unittest
from datetime import timedelta

from core.config_loader import MatchingConfig
from core.recommendations import (
    is_new,
    next_delivery_time,
    personalized_feed,
    recommend,
    trending_score,
)
from core.exceptions import NotFoundError
from core.scorer import CandidateSnapshot, OpportunitySnapshot
from database.models import NotificationCategory, NotificationFrequency
from notification.scheduler import schedule
from notification.tracker import NotificationSubject
from tests import NOW, StoreTestCase


class TestRecommend(unittest.TestCase):

    def setUp(self):
        self.candidate = CandidateSnapshot(id=1, group="CSE", skills=("python", "sql"), experience_level=2)
        self.opportunities = [
            OpportunitySnapshot(id=1, eligible_groups=("CSE",), required_skills=("Go",)),
            OpportunitySnapshot(id=2, eligible_groups=("ECE",), required_skills=("Python",)),
            OpportunitySnapshot(id=3, eligible_groups=("CSE",), required_skills=("Python", "SQL")),
            OpportunitySnapshot(id=4, eligible_groups=("CSE",), required_skills=("Python", "Java")),
            OpportunitySnapshot(id=5, eligible_groups=("cse",), required_skills=("Go",)),
        ]

    def test_drops_zero_scores_and_sorts_descending(self):
        results = recommend(self.candidate, self.opportunities, limit=10)
        self.assertNotIn(2, [r.opportunity_id for r in results])
        self.assertTrue(all(r.score > 0 for r in results))
        scores = [r.score for r in results]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual(results[0].opportunity_id, 3)

    def test_equal_scores_keep_input_order(self):
        results = recommend(self.candidate, self.opportunities, limit=10)
        ids = [r.opportunity_id for r in results]
        self.assertLess(ids.index(1), ids.index(5))

    def test_limit(self):
        self.assertEqual(len(recommend(self.candidate, self.opportunities, limit=2)), 2)
        self.assertEqual(recommend(self.candidate, self.opportunities, limit=0), [])


class TestFeedSignals(unittest.TestCase):

    def test_is_new_window(self):
        class Posting:
            created_at = NOW - timedelta(days=7)
        self.assertTrue(is_new(Posting, NOW))
        Posting.created_at = NOW - timedelta(days=7, seconds=1)
        self.assertFalse(is_new(Posting, NOW))
        self.assertTrue(is_new(Posting, NOW, window_days=8))

    def test_trending_score(self):
        self.assertEqual(trending_score(10, NOW - timedelta(days=5), NOW), 40)
        # Posted today: raw count
        self.assertEqual(trending_score(3, NOW - timedelta(hours=5), NOW), 60)
        self.assertEqual(trending_score(10, NOW - timedelta(days=1), NOW), 100)
        self.assertEqual(trending_score(0, NOW - timedelta(days=3), NOW), 0)

    def test_next_delivery_time(self):
        # NOW is Monday 12:00 UTC
        self.assertEqual(next_delivery_time(NotificationFrequency.IMMEDIATE, NOW), NOW)
        self.assertEqual(
            next_delivery_time(NotificationFrequency.DAILY, NOW, digest_hour=9),
            NOW.replace(day=3, hour=9),
        )
        self.assertEqual(
            next_delivery_time(NotificationFrequency.DAILY, NOW.replace(hour=8), digest_hour=9),
            NOW.replace(hour=9),
        )
        self.assertEqual(
            next_delivery_time(NotificationFrequency.WEEKLY, NOW, digest_hour=9, digest_weekday=0),
            NOW.replace(day=9, hour=9),
        )
        self.assertEqual(
            next_delivery_time(NotificationFrequency.WEEKLY, NOW, digest_hour=9, digest_weekday=2),
            NOW.replace(day=4, hour=9),
        )


class TestPersonalizedFeed(StoreTestCase):

    def setUp(self):
        super().setUp()
        self.candidate = self.add_candidate(group="CSE", skills=["python", "sql"])
        self.strong = self.add_opportunity(skills=["Python", "SQL"], created_at=self.now - timedelta(days=2))
        self.weak = self.add_opportunity(skills=["Go", "Rust"], created_at=self.now - timedelta(days=20))
        self.unverified = self.add_opportunity(skills=["Python"], verified=False)
        self.other_group = self.add_opportunity(groups=["ECE"], skills=["Python"])
        self.closed = self.add_opportunity(skills=["Python"], deadline=self.now - timedelta(hours=1))

    def test_only_open_opportunities_of_the_group(self):
        feed = personalized_feed(self.repo, self.candidate.id, self.now)
        ids = [item.match.opportunity_id for item in feed.items]
        self.assertEqual(ids, [self.strong.id, self.weak.id])
        self.assertEqual(feed.total_score, sum(item.match.score for item in feed.items))

    def test_new_and_previously_notified_flags(self):
        schedule(
            self.repo, self.candidate.id, NotificationCategory.GENERAL,
            NotificationSubject('opportunity', self.weak.id), "recommendation",
            "title", "message", self.now,
        )
        feed = personalized_feed(self.repo, self.candidate.id, self.now)
        by_id = {item.match.opportunity_id: item for item in feed.items}
        self.assertTrue(by_id[self.strong.id].is_new)
        self.assertFalse(by_id[self.weak.id].is_new)
        self.assertEqual(feed.new_count, 1)
        self.assertTrue(by_id[self.weak.id].previously_notified)
        self.assertFalse(by_id[self.strong.id].previously_notified)

    def test_trending_items(self):
        # 4 applications in 2 days -> 40 points, under the threshold
        for _ in range(4):
            self.add_application(self.add_candidate(), self.strong)
        feed = personalized_feed(self.repo, self.candidate.id, self.now)
        self.assertEqual(feed.trending, [])

        for _ in range(4):
            self.add_application(self.add_candidate(), self.strong)
        feed = personalized_feed(self.repo, self.candidate.id, self.now)
        self.assertEqual([item.match.opportunity_id for item in feed.trending], [self.strong.id])
        self.assertEqual(feed.trending[0].application_count, 8)
        self.assertEqual(feed.trending[0].trending_score, 80)

    def test_limit_defaults_to_config(self):
        feed = personalized_feed(self.repo, self.candidate.id, self.now, config=MatchingConfig(default_limit=1))
        self.assertEqual(len(feed.items), 1)

    def test_unknown_candidate(self):
        with self.assertRaises(NotFoundError):
            personalized_feed(self.repo, 9999, self.now)


if __name__ == '__main__':
    unittest.main()
