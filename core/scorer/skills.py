#!/usr/bin/env python3
"""
Skill matching.

A required skill is covered when it and some candidate skill contain one
another, case-insensitively ("react" covers "React Native" and vice versa).
"""

import math
from collections import OrderedDict
from typing import Iterable, List, Tuple

from core.scorer.models import SkillGap, SkillDemand

GENERIC_SUGGESTIONS = (
    "Complete relevant online courses or certifications",
    "Work on projects that demonstrate these skills",
    "Consider related internships to build experience",
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def skill_covered(required: str, candidate_skills: Iterable[str]) -> bool:
    needle = required.lower()
    for skill in candidate_skills:
        have = skill.lower()
        if not have:
            continue
        if have in needle or needle in have:
            return True
    return False


def split_skills(required_skills: Iterable[str], candidate_skills: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Partition required skills into (matching, missing), preserving order."""
    candidate_skills = [s for s in candidate_skills if s]
    matching, missing = [], []
    for skill in required_skills:
        if skill_covered(skill, candidate_skills):
            matching.append(skill)
        else:
            missing.append(skill)
    return matching, missing


def skill_gap(candidate, opportunity) -> SkillGap:
    matching, missing = split_skills(opportunity.required_skills, candidate.skills)
    suggestions = [f"Learn {skill} to improve your match for this role" for skill in missing]
    suggestions.extend(GENERIC_SUGGESTIONS)
    return SkillGap(matching_skills=matching, missing_skills=missing, suggestions=suggestions)


def trending_skills(opportunities, top: int = 20) -> List[SkillDemand]:
    """
    Demand per required skill across `opportunities`.

    Skills are merged case-insensitively and reported with the first spelling
    seen; percentage is the share of opportunities requiring the skill.
    """
    opportunities = list(opportunities)
    if not opportunities:
        return []

    counts: "OrderedDict[str, list]" = OrderedDict()
    for opportunity in opportunities:
        seen = set()
        for skill in opportunity.required_skills:
            key = skill.lower()
            if key in seen:
                continue
            seen.add(key)
            if key not in counts:
                counts[key] = [skill, 0]
            counts[key][1] += 1

    total = len(opportunities)
    demand = [
        SkillDemand(skill=label, demand_count=count, percentage=round_half_up(count * 100 / total))
        for label, count in counts.values()
    ]
    demand.sort(key=lambda d: d.demand_count, reverse=True)
    return demand[:top]
