#!/usr/bin/env python3
"""
Scoring Models - Value objects consumed and produced by the scorer.

The scorer never touches ORM rows directly: callers convert them with
`CandidateSnapshot.from_user()` / `OpportunitySnapshot.from_model()`, which
freezes skill and group sets at the boundary.
"""

from typing import List, Optional, FrozenSet, Tuple
from dataclasses import dataclass, field

from database.models import OpportunityType, TypePreference


def _labels(values) -> Tuple[str, ...]:
    return tuple(v for v in (values or []) if v)


@dataclass(frozen=True)
class CandidateSnapshot:
    id: int
    group: Optional[str]
    skills: Tuple[str, ...] = ()
    experience_level: int = 0
    min_compensation: Optional[int] = None
    type_preference: Optional[TypePreference] = None

    @property
    def skill_set(self) -> FrozenSet[str]:
        return frozenset(s.lower() for s in self.skills)

    @classmethod
    def from_user(cls, user) -> "CandidateSnapshot":
        profile = user.profile
        return cls(
            id=user.id,
            group=user.group,
            skills=_labels(profile.skills if profile else None),
            experience_level=profile.experience_level if profile else 0,
            min_compensation=profile.min_compensation if profile else None,
            type_preference=profile.type_preference if profile else None,
        )


@dataclass(frozen=True)
class OpportunitySnapshot:
    id: int
    title: str = ""
    eligible_groups: Tuple[str, ...] = ()
    required_skills: Tuple[str, ...] = ()
    compensation_max: Optional[int] = None
    opportunity_type: OpportunityType = OpportunityType.INTERNSHIP

    @property
    def group_set(self) -> FrozenSet[str]:
        return frozenset(g.lower() for g in self.eligible_groups)

    @classmethod
    def from_model(cls, opportunity) -> "OpportunitySnapshot":
        return cls(
            id=opportunity.id,
            title=opportunity.title or "",
            eligible_groups=_labels(opportunity.eligible_groups),
            required_skills=_labels(opportunity.required_skills),
            compensation_max=opportunity.compensation_max,
            opportunity_type=opportunity.opportunity_type or OpportunityType.INTERNSHIP,
        )


@dataclass(frozen=True)
class MatchResult:
    """Score of one candidate against one opportunity. Never persisted."""
    opportunity_id: int
    score: int
    reasons: Tuple[str, ...] = ()
    skill_match_percentage: int = 0
    eligible: bool = False

    def to_dict(self) -> dict:
        return {
            'opportunity_id': self.opportunity_id,
            'score': self.score,
            'reasons': list(self.reasons),
            'skill_match_percentage': self.skill_match_percentage,
            'eligible': self.eligible,
        }


@dataclass
class SkillGap:
    matching_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


@dataclass
class SkillDemand:
    skill: str
    demand_count: int
    percentage: int
