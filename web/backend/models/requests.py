#!/usr/bin/env python3
"""
Request models for API endpoints.

Acting users are passed explicitly (`actor_id`, `reviewer_id`, `candidate_id`);
authentication lives in front of this API.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from database.models import ApprovalStatus, InterviewMode


class ApplyRequest(BaseModel):
    """Candidate applies to an opportunity."""
    candidate_id: int
    opportunity_id: int
    cover_note: Optional[str] = Field(None, max_length=5000)


class WithdrawRequest(BaseModel):
    candidate_id: int
    reason: Optional[str] = None


class DecisionRequest(BaseModel):
    """Reviewer decision on an approval request."""
    reviewer_id: int
    decision: ApprovalStatus = Field(..., description="APPROVED or REJECTED")
    comments: Optional[str] = None


class EscalateRequest(BaseModel):
    actor_id: int
    reason: str = Field(..., min_length=1)


class CommentRequest(BaseModel):
    author_id: int
    comment: str = Field(..., min_length=1)


class ScheduleInterviewRequest(BaseModel):
    interviewer_id: int = Field(..., description="Employer or reviewer running the interview")
    scheduled_at: datetime
    duration_minutes: int = Field(default=60, ge=15, le=480)
    mode: InterviewMode = InterviewMode.ONLINE
    location: Optional[str] = None
    notes: Optional[str] = None


class ConfirmInterviewRequest(BaseModel):
    candidate_id: int


class ActorRequest(BaseModel):
    """Staff action that only needs the acting user (and an optional reason)."""
    actor_id: int
    reason: Optional[str] = None


class InterviewOutcomeRequest(BaseModel):
    actor_id: int
    notes: Optional[str] = None


class ExtendOfferRequest(BaseModel):
    actor_id: int
    response_deadline: datetime
    compensation: Optional[int] = Field(None, ge=0)
    details: Optional[str] = None


class OfferResponseRequest(BaseModel):
    candidate_id: int
    accept: bool
    reason: Optional[str] = None


class FeedbackRequest(BaseModel):
    author_id: int
    rating: int = Field(..., ge=1, le=5)
    comments: Optional[str] = None
