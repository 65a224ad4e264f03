#!/usr/bin/env python3
"""
Engagement endpoints - interviews, offers, completion and feedback.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from core.workflow import offers as offer_flow
from database.repository import PlacementRepository
from ..dependencies import get_now, get_repo
from ..models.requests import (
    ActorRequest,
    ConfirmInterviewRequest,
    ExtendOfferRequest,
    FeedbackRequest,
    InterviewOutcomeRequest,
    OfferResponseRequest,
    ScheduleInterviewRequest,
)
from ..models.responses import (
    ApplicationResponse,
    FeedbackResponse,
    InterviewResponse,
    OfferResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["engagement"])


@router.post("/applications/{application_id}/interviews", response_model=InterviewResponse, status_code=201)
def schedule_interview(
    application_id: int,
    request: ScheduleInterviewRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Schedule an interview round; the first round moves the application to INTERVIEW_SCHEDULED."""
    interview = offer_flow.schedule_interview(
        repo,
        application_id,
        request.interviewer_id,
        request.scheduled_at,
        now,
        duration_minutes=request.duration_minutes,
        mode=request.mode,
        location=request.location,
        notes=request.notes,
    )
    return InterviewResponse.model_validate(interview)


@router.post("/interviews/{interview_id}/confirm", response_model=InterviewResponse)
def confirm_interview(
    interview_id: int,
    request: ConfirmInterviewRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    interview = offer_flow.confirm_interview(repo, interview_id, request.candidate_id, now)
    return InterviewResponse.model_validate(interview)


@router.post("/interviews/{interview_id}/cancel", response_model=InterviewResponse)
def cancel_interview(
    interview_id: int,
    request: ActorRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    interview = offer_flow.cancel_interview(repo, interview_id, request.actor_id, request.reason, now)
    return InterviewResponse.model_validate(interview)


@router.post("/interviews/{interview_id}/outcome", response_model=InterviewResponse)
def record_interview_outcome(
    interview_id: int,
    request: InterviewOutcomeRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    interview = offer_flow.record_interview_outcome(repo, interview_id, request.actor_id, now, notes=request.notes)
    return InterviewResponse.model_validate(interview)


@router.post("/applications/{application_id}/offers", response_model=OfferResponse, status_code=201)
def extend_offer(
    application_id: int,
    request: ExtendOfferRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    offer = offer_flow.extend_offer(
        repo,
        application_id,
        request.actor_id,
        request.response_deadline,
        now,
        compensation=request.compensation,
        details=request.details,
    )
    return OfferResponse.model_validate(offer)


@router.post("/applications/{application_id}/decline", response_model=ApplicationResponse)
def decline_candidate(
    application_id: int,
    request: ActorRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Close an interviewed application without an offer (NOT_OFFERED)."""
    application = offer_flow.decline_candidate(repo, application_id, request.actor_id, request.reason, now)
    return ApplicationResponse.model_validate(application)


@router.post("/offers/{offer_id}/respond", response_model=OfferResponse)
def respond_to_offer(
    offer_id: int,
    request: OfferResponseRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    """Candidate accepts or rejects an offer before its response deadline."""
    offer = offer_flow.respond_to_offer(
        repo, offer_id, request.candidate_id, request.accept, now, reason=request.reason
    )
    return OfferResponse.model_validate(offer)


@router.post("/applications/{application_id}/complete", response_model=ApplicationResponse)
def complete_engagement(
    application_id: int,
    request: ActorRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    application = offer_flow.complete_engagement(repo, application_id, request.actor_id, now)
    return ApplicationResponse.model_validate(application)


@router.post("/applications/{application_id}/feedback", response_model=FeedbackResponse, status_code=201)
def submit_feedback(
    application_id: int,
    request: FeedbackRequest,
    repo: PlacementRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    feedback = offer_flow.submit_feedback(
        repo, application_id, request.author_id, request.rating, now, comments=request.comments
    )
    return FeedbackResponse.model_validate(feedback)
