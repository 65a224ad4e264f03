#!/usr/bin/env python3
"""
Approval endpoints - reviewer decisions, escalation, workqueue and analytics.
"""

import logging
from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from core.exceptions import NotFoundError
from core.workflow import router as approval_router
from core.workflow.analytics import workflow_analytics
from database.repository import PlacementRepository
from ..dependencies import get_app_context, get_now, get_repo
from ..models.requests import CommentRequest, DecisionRequest, EscalateRequest
from ..models.responses import (
    AnalyticsResponse,
    ApprovalRequestResponse,
    DecisionResponse,
    WorkqueueResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    days: int = Query(default=30, ge=1, le=365, description="Look-back window in days"),
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Request volume, approval rate and response times, overall and per reviewer."""
    return AnalyticsResponse(**asdict(workflow_analytics(repo, now, days=days)))


@router.get("/workqueue/{reviewer_id}", response_model=WorkqueueResponse)
def get_workqueue(
    reviewer_id: int,
    repo: PlacementRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context),
    now: datetime = Depends(get_now),
):
    """Pending requests for a reviewer, most urgent first."""
    return WorkqueueResponse(**asdict(approval_router.workqueue(repo, reviewer_id, now, ctx.config.routing)))


@router.get("/{request_id}", response_model=ApprovalRequestResponse)
def get_approval_request(request_id: int, repo: PlacementRepository = Depends(get_repo)):
    request = repo.approvals.get(request_id)
    if request is None:
        raise NotFoundError("ApprovalRequest", request_id)
    return ApprovalRequestResponse.model_validate(request)


@router.post("/{request_id}/decision", response_model=DecisionResponse)
def decide(
    request_id: int,
    request: DecisionRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Record the assigned reviewer's APPROVED / REJECTED decision."""
    result = approval_router.decide(repo, request_id, request.reviewer_id, request.decision, request.comments, now)
    return DecisionResponse(**asdict(result))


@router.post("/{request_id}/escalate", response_model=ApprovalRequestResponse)
def escalate(
    request_id: int,
    request: EscalateRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    approval = approval_router.escalate(repo, request_id, request.actor_id, request.reason, now)
    return ApprovalRequestResponse.model_validate(approval)


@router.post("/{request_id}/comments", response_model=ApprovalRequestResponse)
def add_comment(
    request_id: int,
    request: CommentRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    approval = approval_router.add_comment(repo, request_id, request.author_id, request.comment, now)
    return ApprovalRequestResponse.model_validate(approval)
