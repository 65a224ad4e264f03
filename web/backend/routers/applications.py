#!/usr/bin/env python3
"""
Application endpoints - apply, withdraw, submit for approval, history.
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from core.exceptions import NotFoundError
from core.workflow import applications as application_flow
from core.workflow import router as approval_router
from database.repository import PlacementRepository
from ..dependencies import get_app_context, get_now, get_repo
from ..models.requests import ApplyRequest, WithdrawRequest
from ..models.responses import (
    ApplicationResponse,
    ApplicationHistoryResponse,
    StatusChangeResponse,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
def apply(
    request: ApplyRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """
    Create an application for an open opportunity.

    The candidate must be active, not yet placed and eligible for the
    opportunity; a second application to the same opportunity is a conflict.
    """
    application = application_flow.apply(
        repo, request.candidate_id, request.opportunity_id, now, cover_note=request.cover_note
    )
    return ApplicationResponse.model_validate(application)


@router.get("", response_model=List[ApplicationResponse])
def list_applications(
    candidate_id: int = Query(..., description="Candidate whose applications to list"),
    repo: PlacementRepository = Depends(get_repo),
):
    return [ApplicationResponse.model_validate(a) for a in repo.applications.list_for_candidate(candidate_id)]


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, repo: PlacementRepository = Depends(get_repo)):
    application = repo.applications.get(application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    return ApplicationResponse.model_validate(application)


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
def withdraw(
    application_id: int,
    request: WithdrawRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Withdraw a non-terminal application (candidate only)."""
    application = application_flow.withdraw(repo, application_id, request.candidate_id, request.reason, now)
    return ApplicationResponse.model_validate(application)


@router.post("/{application_id}/submit", response_model=SubmissionResponse, status_code=201)
def submit_for_approval(
    application_id: int,
    repo: PlacementRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context),
    now: datetime = Depends(get_now),
):
    """
    Open an approval request and route it to the least-loaded reviewer.

    When no reviewer is available the request is still created and the
    outcome is NO_REVIEWER_AVAILABLE; a later scheduler run assigns it.
    """
    result = approval_router.submit(repo, application_id, now, ctx.config.routing)
    return SubmissionResponse(
        approval_request_id=result.approval_request_id,
        assigned_reviewer=result.assigned_reviewer,
        estimated_response_window=result.estimated_response_window,
        priority=result.priority,
        outcome=result.outcome.value,
    )


@router.get("/{application_id}/history", response_model=ApplicationHistoryResponse)
def get_history(application_id: int, repo: PlacementRepository = Depends(get_repo)):
    changes = application_flow.history(repo, application_id)
    return ApplicationHistoryResponse(
        application_id=application_id,
        history=[StatusChangeResponse.model_validate(c) for c in changes],
    )
