"""Reviewer workload analytics. Read-only; never feeds back into routing."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from database.models import ApprovalStatus

logger = logging.getLogger(__name__)

DECIDED = (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)


@dataclass
class ReviewerStats:
    reviewer_id: int
    reviewer_name: Optional[str]
    requests_handled: int
    average_response_hours: float
    approval_rate: float


@dataclass
class WorkflowAnalytics:
    period_days: int
    total_requests: int = 0
    pending: int = 0
    decided: int = 0
    escalated: int = 0
    average_response_hours: float = 0.0
    approval_rate: float = 0.0
    reviewers: List[ReviewerStats] = field(default_factory=list)


def _rate(approved: int, decided: int) -> float:
    return round(approved * 100.0 / decided, 1) if decided else 0.0


def _average(values) -> float:
    values = [v for v in values if v is not None]
    return round(sum(values) / len(values), 2) if values else 0.0


def workflow_analytics(repo, now: datetime, days: int = 30) -> WorkflowAnalytics:
    """Approval statistics over requests submitted in the last `days` days."""
    requests = repo.approvals.list_submitted_since(now - timedelta(days=days))
    result = WorkflowAnalytics(period_days=days, total_requests=len(requests))

    # Requests closed by a withdrawal carry no reviewed_at and are not reviewer decisions
    decided = [r for r in requests if r.status in DECIDED and r.reviewed_at is not None]
    result.pending = sum(1 for r in requests if r.status == ApprovalStatus.PENDING)
    result.escalated = sum(1 for r in requests if r.status == ApprovalStatus.ESCALATED)
    result.decided = len(decided)
    result.average_response_hours = _average(r.response_hours for r in decided)
    result.approval_rate = _rate(sum(1 for r in decided if r.status == ApprovalStatus.APPROVED), len(decided))

    by_reviewer = defaultdict(list)
    for request in decided:
        if request.reviewer_id is not None:
            by_reviewer[request.reviewer_id].append(request)

    for reviewer_id, handled in by_reviewer.items():
        reviewer = repo.users.get(reviewer_id)
        result.reviewers.append(ReviewerStats(
            reviewer_id=reviewer_id,
            reviewer_name=reviewer.name if reviewer else None,
            requests_handled=len(handled),
            average_response_hours=_average(r.response_hours for r in handled),
            approval_rate=_rate(sum(1 for r in handled if r.status == ApprovalStatus.APPROVED), len(handled)),
        ))
    result.reviewers.sort(key=lambda s: (-s.requests_handled, s.reviewer_id))

    logger.debug(f"Workflow analytics over {days} days: {result.total_requests} requests")
    return result
