#!/usr/bin/env python3
"""
Recommendation endpoints - personalised feed, fan-out and skill insights.
"""

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from core.recommendations import (
    ingest_opportunity,
    personalized_feed,
    skill_gap_report,
    trending_skills_report,
)
from database.repository import PlacementRepository
from ..dependencies import get_app_context, get_now, get_repo
from ..models.responses import (
    FanOutResponse,
    FeedResponse,
    SkillDemandResponse,
    SkillGapResponse,
    TrendingSkillsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


@router.get("/feed/{candidate_id}", response_model=FeedResponse)
def get_feed(
    candidate_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Maximum items to return"),
    repo: PlacementRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context),
    now: datetime = Depends(get_now),
):
    """
    Ranked open opportunities of the candidate's group.

    Items are flagged as new (recently posted) and previously notified; the
    `trending` list holds the best-scoring items above the trending threshold.
    """
    feed = personalized_feed(repo, candidate_id, now, limit=limit, config=ctx.config.matching)
    return FeedResponse(**asdict(feed))


@router.post("/opportunities/{opportunity_id}/ingest", response_model=FanOutResponse)
def ingest(
    opportunity_id: int,
    repo: PlacementRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context),
    now: datetime = Depends(get_now),
):
    """Score a newly posted opportunity against available candidates and schedule recommendations."""
    result = ingest_opportunity(repo, opportunity_id, now, ctx.config.matching)
    logger.info(f"Ingested opportunity {opportunity_id}: {result.scheduled} scheduled")
    return FanOutResponse(**asdict(result))


@router.get("/skill-gap", response_model=SkillGapResponse)
def get_skill_gap(
    candidate_id: int = Query(...),
    opportunity_id: int = Query(...),
    repo: PlacementRepository = Depends(get_repo),
):
    return SkillGapResponse(**asdict(skill_gap_report(repo, candidate_id, opportunity_id)))


@router.get("/trending-skills", response_model=TrendingSkillsResponse)
def get_trending_skills(
    top: int = Query(default=20, ge=1, le=100),
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Most requested skills across open opportunities."""
    demand = trending_skills_report(repo, now, top=top)
    return TrendingSkillsResponse(skills=[SkillDemandResponse(**asdict(d)) for d in demand])
