#!/usr/bin/env python3
"""
Unit tests for the match scorer.

Covers the eligibility gate, each weighted rule and the explanation list.
"""

import unittest

from core.config_loader import MatchingConfig
from core.scorer import CandidateSnapshot, OpportunitySnapshot, score
from core.scorer import rules
from database.models import OpportunityType, TypePreference


def candidate(**kwargs):
    defaults = dict(id=1, group="CSE", skills=(), experience_level=1)
    defaults.update(kwargs)
    return CandidateSnapshot(**defaults)


def opportunity(**kwargs):
    defaults = dict(id=10, title="Backend Intern", eligible_groups=("CSE",))
    defaults.update(kwargs)
    return OpportunitySnapshot(**defaults)


class TestEligibilityGate(unittest.TestCase):
    """A candidate outside the eligible groups always scores 0."""

    def test_other_group_scores_zero(self):
        result = score(
            candidate(group="ECE", skills=("python",), experience_level=8),
            opportunity(required_skills=("Python",), compensation_max=5000),
        )
        self.assertEqual(result.score, 0)
        self.assertFalse(result.eligible)
        self.assertEqual(result.reasons, ("Not eligible for your group",))
        self.assertEqual(result.skill_match_percentage, 0)

    def test_missing_group_scores_zero(self):
        result = score(candidate(group=None), opportunity())
        self.assertEqual(result.score, 0)
        self.assertFalse(result.eligible)

    def test_group_matching_ignores_case(self):
        result = score(candidate(group="cse"), opportunity(eligible_groups=("CSE", "IT")))
        self.assertTrue(result.eligible)
        self.assertGreater(result.score, 0)

    def test_ineligible_for_every_rule_combination(self):
        for level in (0, 4, 6, 10):
            for preference in (None, TypePreference.EITHER, TypePreference.INTERNSHIP):
                result = score(
                    candidate(group="MECH", experience_level=level, type_preference=preference),
                    opportunity(),
                )
                self.assertEqual(result.score, 0)


class TestScoreComposition(unittest.TestCase):

    def test_two_of_three_skills(self):
        """react + sql against React, Node.js, SQL: 67% and 20 skill points."""
        result = score(
            candidate(skills=("react", "sql")),
            opportunity(required_skills=("React", "Node.js", "SQL")),
        )
        self.assertEqual(result.skill_match_percentage, 67)
        points, pct, reason = rules.skill_overlap(
            candidate(skills=("react", "sql")),
            opportunity(required_skills=("React", "Node.js", "SQL")),
        )
        self.assertEqual(points, 20)
        self.assertEqual(pct, 67)
        self.assertEqual(reason, "2/3 skills match (67%)")
        # 40 eligibility + 20 skills + 5 early career + 5 no type preference + 2 no salary floor
        self.assertEqual(result.score, 72)
        self.assertEqual(result.reasons, (
            "Eligible for CSE candidates",
            "2/3 skills match (67%)",
            "Early career - good learning opportunity",
        ))

    def test_no_required_skills_gives_no_skill_points(self):
        result = score(candidate(skills=("python",)), opportunity(required_skills=()))
        self.assertEqual(result.skill_match_percentage, 0)
        self.assertEqual(result.score, 40 + 0 + 5 + 5 + 2)

    def test_perfect_match_is_capped_at_100(self):
        result = score(
            candidate(
                skills=("python", "sql"),
                experience_level=7,
                type_preference=TypePreference.INTERNSHIP,
                min_compensation=1000,
            ),
            opportunity(
                required_skills=("Python", "SQL"),
                opportunity_type=OpportunityType.INTERNSHIP,
                compensation_max=2000,
            ),
        )
        self.assertEqual(result.score, 100)
        self.assertIn("Matches your internship preference", result.reasons)
        self.assertIn("Meets your compensation expectations", result.reasons)

    def test_score_is_monotonic_in_skill_fraction(self):
        required = ("Python", "SQL", "Docker", "Kafka")
        have = ("python", "sql", "docker", "kafka")
        scores = [
            score(candidate(skills=have[:k]), opportunity(required_skills=required)).score
            for k in range(len(have) + 1)
        ]
        self.assertEqual(scores, sorted(scores))
        self.assertLess(scores[0], scores[-1])

    def test_score_is_deterministic(self):
        c = candidate(skills=("go", "rust"), experience_level=5)
        o = opportunity(required_skills=("Go", "Kubernetes"))
        self.assertEqual(score(c, o), score(c, o))


class TestRules(unittest.TestCase):

    def setUp(self):
        self.config = MatchingConfig()

    def test_experience_bands(self):
        self.assertEqual(rules.experience_bonus(candidate(experience_level=6), self.config)[0], 15)
        self.assertEqual(rules.experience_bonus(candidate(experience_level=4), self.config)[0], 10)
        self.assertEqual(rules.experience_bonus(candidate(experience_level=3), self.config)[0], 5)

    def test_experience_bands_follow_config(self):
        config = MatchingConfig(senior_level=3, mid_level=2)
        self.assertEqual(rules.experience_bonus(candidate(experience_level=3), config)[0], 15)

    def test_type_preference(self):
        internship = opportunity(opportunity_type=OpportunityType.INTERNSHIP)
        self.assertEqual(rules.type_preference(candidate(type_preference=None), internship), (5, None))
        self.assertEqual(rules.type_preference(candidate(type_preference=TypePreference.EITHER), internship), (5, None))
        self.assertEqual(rules.type_preference(candidate(type_preference=TypePreference.INTERNSHIP), internship)[0], 10)
        self.assertEqual(rules.type_preference(candidate(type_preference=TypePreference.PLACEMENT), internship), (0, None))

    def test_compensation(self):
        self.assertEqual(rules.compensation(candidate(min_compensation=None), opportunity())[0], 2)
        self.assertEqual(rules.compensation(candidate(min_compensation=1000), opportunity(compensation_max=1000))[0], 5)
        self.assertEqual(rules.compensation(candidate(min_compensation=1000), opportunity(compensation_max=900))[0], 0)
        self.assertEqual(rules.compensation(candidate(min_compensation=1000), opportunity(compensation_max=None))[0], 0)


if __name__ == '__main__':
    unittest.main()
