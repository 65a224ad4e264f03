#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional

from database.models import (
    ApplicationStatus,
    ApprovalPriority,
    ApprovalStatus,
    InterviewMode,
    InterviewStatus,
    NotificationCategory,
    NotificationPriority,
    OfferStatus,
)


class ApplicationResponse(BaseModel):
    """An application and its current status."""
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 12,
                "candidate_id": 4,
                "opportunity_id": 7,
                "status": "MENTOR_REVIEW",
                "reviewer_id": 2,
                "cover_note": None,
                "applied_at": "2026-02-01T12:00:00Z",
                "updated_at": "2026-02-01T12:05:00Z",
                "completed_at": None
            }
        }
    )

    id: int
    candidate_id: int
    opportunity_id: int
    status: ApplicationStatus
    reviewer_id: Optional[int] = None
    cover_note: Optional[str] = None
    applied_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class StatusChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_status: Optional[ApplicationStatus] = None
    to_status: ApplicationStatus
    actor_id: Optional[int] = None
    reason: Optional[str] = None
    changed_at: datetime


class ApplicationHistoryResponse(BaseModel):
    application_id: int
    history: List[StatusChangeResponse]


class SubmissionResponse(BaseModel):
    """Result of submitting an application for approval."""
    approval_request_id: int
    assigned_reviewer: Optional[int] = None
    estimated_response_window: Optional[str] = None
    priority: ApprovalPriority
    outcome: str


class ApprovalRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    candidate_id: int
    reviewer_id: Optional[int] = None
    status: ApprovalStatus
    priority: ApprovalPriority
    auto_assigned: bool
    submitted_at: datetime
    assigned_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    response_hours: Optional[float] = None
    comments: Optional[str] = None
    closed_reason: Optional[str] = None


class DecisionResponse(BaseModel):
    approval_request_id: int
    status: ApprovalStatus
    next_status: ApplicationStatus


class WorkqueueItemResponse(BaseModel):
    approval_request_id: int
    application_id: int
    candidate_id: int
    priority: ApprovalPriority
    submitted_at: datetime
    waiting_hours: float
    overdue: bool


class WorkqueueResponse(BaseModel):
    reviewer_id: int
    items: List[WorkqueueItemResponse]
    total: int
    high_priority: int
    average_waiting_hours: float


class ReviewerStatsResponse(BaseModel):
    reviewer_id: int
    reviewer_name: Optional[str] = None
    requests_handled: int
    average_response_hours: float
    approval_rate: float


class AnalyticsResponse(BaseModel):
    period_days: int
    total_requests: int
    pending: int
    decided: int
    escalated: int
    average_response_hours: float
    approval_rate: float
    reviewers: List[ReviewerStatsResponse]


class MatchResponse(BaseModel):
    opportunity_id: int
    score: int = Field(ge=0, le=100)
    reasons: List[str]
    skill_match_percentage: int = Field(ge=0, le=100)
    eligible: bool


class FeedItemResponse(BaseModel):
    match: MatchResponse
    title: str
    company_name: str
    is_new: bool
    previously_notified: bool
    application_count: int
    trending_score: int


class FeedResponse(BaseModel):
    candidate_id: int
    items: List[FeedItemResponse]
    new_count: int
    trending: List[FeedItemResponse]
    total_score: int


class FanOutResponse(BaseModel):
    opportunity_id: int
    evaluated: int
    matched: int
    scheduled: int
    high_priority: int
    failed: int


class SkillGapResponse(BaseModel):
    matching_skills: List[str]
    missing_skills: List[str]
    suggestions: List[str]


class SkillDemandResponse(BaseModel):
    skill: str
    demand_count: int
    percentage: int


class TrendingSkillsResponse(BaseModel):
    skills: List[SkillDemandResponse]


class InterviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    candidate_id: int
    interviewer_id: int
    scheduled_at: datetime
    duration_minutes: int
    mode: InterviewMode
    location: Optional[str] = None
    status: InterviewStatus
    notes: Optional[str] = None


class OfferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    candidate_id: int
    compensation: Optional[int] = None
    details: Optional[str] = None
    status: OfferStatus
    response_deadline: datetime
    extended_at: datetime
    responded_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    author_id: Optional[int] = None
    rating: int
    comments: Optional[str] = None
    created_at: datetime


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_id: int
    category: NotificationCategory
    subject_type: str
    subject_id: int
    title: str
    message: str
    priority: NotificationPriority
    scheduled_for: datetime
    sent_at: Optional[datetime] = None
    attempts: int


class PendingNotificationsResponse(BaseModel):
    recipient_id: int
    notifications: List[NotificationResponse]


class SchedulerRunResponse(BaseModel):
    """Summary of one scheduler cycle."""
    success: bool = True
    skipped: bool
    processed: int = 0
    failed: int = 0
    created: int = 0
    by_scanner: Dict[str, int] = Field(default_factory=dict)
    failed_scanners: List[str] = Field(default_factory=list)
    assigned: int = 0
    expired_offers: int = 0
    execution_time: float
