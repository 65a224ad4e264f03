#!/usr/bin/env python3
"""
Scoring Service - deterministic candidate/opportunity match score.

score() is pure: same inputs, same MatchResult. It never reads the store, so
it is safe to call from fan-out batches and request handlers alike.
"""

import logging
from typing import Optional

from core.config_loader import MatchingConfig
from core.scorer.models import CandidateSnapshot, OpportunitySnapshot, MatchResult
from core.scorer import rules

logger = logging.getLogger(__name__)

MAX_SCORE = 100
NOT_ELIGIBLE_REASON = "Not eligible for your group"


def score(
    candidate: CandidateSnapshot,
    opportunity: OpportunitySnapshot,
    config: Optional[MatchingConfig] = None,
) -> MatchResult:
    """
    Score `candidate` against `opportunity`.

    A candidate outside the opportunity's eligible groups scores 0 regardless
    of any other rule. Otherwise the score is the sum of the rule points and
    `reasons` lists one entry per rule that contributed, in rule order.
    """
    config = config or MatchingConfig()

    if not rules.is_eligible(candidate, opportunity):
        return MatchResult(
            opportunity_id=opportunity.id,
            score=0,
            reasons=(NOT_ELIGIBLE_REASON,),
            skill_match_percentage=0,
            eligible=False,
        )

    total = rules.ELIGIBILITY_POINTS
    reasons = [f"Eligible for {candidate.group} candidates"]

    skill_points, skill_pct, skill_reason = rules.skill_overlap(candidate, opportunity)
    total += skill_points
    if skill_reason:
        reasons.append(skill_reason)

    for points, reason in (
        rules.experience_bonus(candidate, config),
        rules.type_preference(candidate, opportunity),
        rules.compensation(candidate, opportunity),
    ):
        total += points
        if points and reason:
            reasons.append(reason)

    return MatchResult(
        opportunity_id=opportunity.id,
        score=min(total, MAX_SCORE),
        reasons=tuple(reasons),
        skill_match_percentage=skill_pct,
        eligible=True,
    )
