#!/usr/bin/env python3
"""
Scoring Module - deterministic weighted match score.

- models.py: value objects (CandidateSnapshot, OpportunitySnapshot, MatchResult)
- skills.py: fuzzy skill matching, skill gap, trending skills
- rules.py: one function per weighted rule
- service.py: score() orchestrator
"""

from core.scorer.models import (
    CandidateSnapshot,
    OpportunitySnapshot,
    MatchResult,
    SkillGap,
    SkillDemand,
)
from core.scorer.service import score
from core.scorer.skills import skill_gap, trending_skills

__all__ = [
    'CandidateSnapshot',
    'OpportunitySnapshot',
    'MatchResult',
    'SkillGap',
    'SkillDemand',
    'score',
    'skill_gap',
    'trending_skills',
]
