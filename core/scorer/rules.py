#!/usr/bin/env python3
"""
Scoring Rules - One function per weighted rule.

Each rule returns (points, reason); reason is None when the rule adds no
explanation. The eligibility gate lives in service.score().

Points:
- Eligibility: 40
- Skill overlap: up to 30
- Experience level: 5 / 10 / 15
- Type preference: 0 / 5 / 10
- Compensation: 0 / 2 / 5
"""

from typing import Optional, Tuple

from database.models import TypePreference
from core.config_loader import MatchingConfig
from core.scorer.models import CandidateSnapshot, OpportunitySnapshot
from core.scorer.skills import split_skills, round_half_up

ELIGIBILITY_POINTS = 40
SKILL_POINTS = 30

RuleOutcome = Tuple[int, Optional[str]]


def skill_overlap(candidate: CandidateSnapshot, opportunity: OpportunitySnapshot) -> Tuple[int, int, Optional[str]]:
    """Returns (points, skill_match_percentage, reason)."""
    required = opportunity.required_skills
    if not required:
        return 0, 0, None

    matching, _ = split_skills(required, candidate.skills)
    fraction = len(matching) / len(required)
    percentage = round_half_up(fraction * 100)
    points = round_half_up(fraction * SKILL_POINTS)
    reason = None
    if matching:
        reason = f"{len(matching)}/{len(required)} skills match ({percentage}%)"
    return points, percentage, reason


def experience_bonus(candidate: CandidateSnapshot, config: MatchingConfig) -> RuleOutcome:
    level = candidate.experience_level or 0
    if level >= config.senior_level:
        return 15, "Strong experience level for this role"
    if level >= config.mid_level:
        return 10, "Adequate experience level"
    return 5, "Early career - good learning opportunity"


def type_preference(candidate: CandidateSnapshot, opportunity: OpportunitySnapshot) -> RuleOutcome:
    preference = candidate.type_preference
    if preference is None or preference == TypePreference.EITHER:
        return 5, None
    if preference.value == opportunity.opportunity_type.value:
        return 10, f"Matches your {preference.value.lower()} preference"
    return 0, None


def compensation(candidate: CandidateSnapshot, opportunity: OpportunitySnapshot) -> RuleOutcome:
    minimum = candidate.min_compensation
    if minimum is None:
        return 2, None
    if opportunity.compensation_max is not None and opportunity.compensation_max >= minimum:
        return 5, "Meets your compensation expectations"
    return 0, None


def is_eligible(candidate: CandidateSnapshot, opportunity: OpportunitySnapshot) -> bool:
    if not candidate.group:
        return False
    return candidate.group.strip().lower() in opportunity.group_set

