"""
Approval routing: submission, least-loaded reviewer assignment, decisions.

Every function takes the PlacementRepository of the caller's unit of work and
leaves commit/rollback to it.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from core.config_loader import RoutingConfig
from core.exceptions import (
    AuthorizationError, CapacityError, ConflictError, NotFoundError, ValidationError,
)
from core.workflow.priority import (
    compute_priority, estimated_response_window, max_response_hours, notification_priority,
)
from core.workflow.status import apply_transition, transition
from database.models import (
    ApplicationStatus, ApprovalPriority, ApprovalRequest, ApprovalStatus,
    NotificationCategory, NotificationPriority, UserRole,
)
from notification.message_builder import NotificationMessageBuilder as Messages
from notification.scheduler import schedule
from notification.tracker import NotificationSubject

logger = logging.getLogger(__name__)


class RoutingOutcome(str, enum.Enum):
    ASSIGNED = "ASSIGNED"
    NO_REVIEWER_AVAILABLE = "NO_REVIEWER_AVAILABLE"


@dataclass
class SubmissionResult:
    approval_request_id: int
    assigned_reviewer: Optional[int]
    estimated_response_window: Optional[str]
    priority: ApprovalPriority
    outcome: RoutingOutcome


@dataclass
class DecisionResult:
    approval_request_id: int
    status: ApprovalStatus
    next_status: ApplicationStatus


@dataclass
class WorkqueueItem:
    approval_request_id: int
    application_id: int
    candidate_id: int
    priority: ApprovalPriority
    submitted_at: datetime
    waiting_hours: float
    overdue: bool


@dataclass
class Workqueue:
    reviewer_id: int
    items: List[WorkqueueItem] = field(default_factory=list)
    total: int = 0
    high_priority: int = 0
    average_waiting_hours: float = 0.0


def _hours_between(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / 3600, 2)


def _assign_reviewer(repo, request: ApprovalRequest, now: datetime, config: RoutingConfig):
    """
    Assign the least-loaded active reviewer of the candidate's group.

    Reviewer rows are locked before counting so two concurrent submissions for
    the same group cannot both pick the reviewer that was least loaded before
    either insert. Raises CapacityError when the group has no reviewer.
    """
    application = request.application
    candidate = repo.users.get(request.candidate_id)
    group = candidate.group if candidate else None
    if not group:
        raise CapacityError(f"Candidate {request.candidate_id} has no group to route by")

    reviewers = repo.users.lock_reviewers_in_group(group)
    if not reviewers:
        raise CapacityError(f"No active reviewer in group '{group}'")

    counts = repo.approvals.pending_counts(r.id for r in reviewers)
    reviewer = min(reviewers, key=lambda r: (counts.get(r.id, 0), r.id))

    request.reviewer_id = reviewer.id
    request.assigned_at = now
    request.auto_assigned = True
    application.reviewer_id = reviewer.id
    apply_transition(
        repo, application, ApplicationStatus.MENTOR_REVIEW,
        actor_id=None, reason=f"Auto-assigned to reviewer {reviewer.id}", now=now,
    )

    opportunity = application.opportunity
    window = estimated_response_window(request.priority, config)
    content = Messages.approval_requested(
        candidate.name, opportunity.title, opportunity.company_name, request.priority.value, window,
    )
    schedule(
        repo,
        recipient_id=reviewer.id,
        category=NotificationCategory.APPROVAL,
        subject=NotificationSubject('approval_request', request.id),
        trigger_window=f"assigned:{reviewer.id}",
        title=content.title,
        message=content.message,
        scheduled_for=now,
        priority=notification_priority(request.priority),
        payload={
            'approval_request_id': request.id,
            'application_id': application.id,
            'candidate_id': candidate.id,
            'priority': request.priority.value,
            'estimated_response_window': window,
        },
    )
    logger.info(
        f"Approval request {request.id} ({request.priority.value}) assigned to reviewer {reviewer.id} "
        f"with {counts.get(reviewer.id, 0)} pending"
    )
    return reviewer


def submit(repo, application_id: int, now: datetime, config: Optional[RoutingConfig] = None) -> SubmissionResult:
    """
    Create the approval request for an APPLIED application and route it.

    When the candidate's group has no reviewer, the request is kept unassigned
    (retried by assign_queued) and the outcome says so; nothing is raised.
    """
    config = config or RoutingConfig()

    application = repo.applications.get_for_update(application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    if application.status != ApplicationStatus.APPLIED:
        raise ValidationError(
            f"Application {application_id} is {application.status.value}, only APPLIED applications can be submitted"
        )
    if repo.approvals.get_by_application(application_id) is not None:
        raise ConflictError(f"Application {application_id} already has an approval request")

    priority = compute_priority(
        application.opportunity.deadline, application.applied_at, assigned=False, now=now, config=config,
    )
    request = ApprovalRequest(
        application_id=application.id,
        candidate_id=application.candidate_id,
        status=ApprovalStatus.PENDING,
        priority=priority,
        submitted_at=now,
    )
    try:
        with repo.savepoint():
            repo.approvals.add(request)
    except IntegrityError as e:
        raise ConflictError(f"Application {application_id} already has an approval request") from e

    try:
        with repo.savepoint():
            reviewer = _assign_reviewer(repo, request, now, config)
    except CapacityError as e:
        logger.warning(f"Approval request {request.id} queued unassigned: {e}")
        return SubmissionResult(
            approval_request_id=request.id,
            assigned_reviewer=None,
            estimated_response_window=None,
            priority=priority,
            outcome=RoutingOutcome.NO_REVIEWER_AVAILABLE,
        )

    return SubmissionResult(
        approval_request_id=request.id,
        assigned_reviewer=reviewer.id,
        estimated_response_window=estimated_response_window(priority, config),
        priority=priority,
        outcome=RoutingOutcome.ASSIGNED,
    )


def assign_queued(repo, now: datetime, config: Optional[RoutingConfig] = None) -> int:
    """Retry routing of PENDING requests that were stored without a reviewer."""
    config = config or RoutingConfig()
    assigned = 0

    for request in repo.approvals.list_unassigned_pending(limit=config.queue_retry_batch_size):
        application = request.application
        if application.status != ApplicationStatus.APPLIED:
            logger.debug(f"Approval request {request.id}: application is {application.status.value}, not routable")
            continue
        request.priority = compute_priority(
            application.opportunity.deadline, application.applied_at, assigned=False, now=now, config=config,
        )
        try:
            with repo.savepoint():
                _assign_reviewer(repo, request, now, config)
        except CapacityError as e:
            logger.debug(f"Approval request {request.id} still unassigned: {e}")
            continue
        assigned += 1

    if assigned:
        logger.info(f"Assigned {assigned} queued approval request(s)")
    return assigned


def _load_request(repo, request_id: int) -> ApprovalRequest:
    request = repo.approvals.get_for_update(request_id)
    if request is None:
        raise NotFoundError("ApprovalRequest", request_id)
    return request


def decide(
    repo,
    request_id: int,
    reviewer_id: int,
    decision: ApprovalStatus,
    comments: Optional[str],
    now: datetime,
) -> DecisionResult:
    """
    Record the assigned reviewer's decision and move the application on.

    APPROVED drives MENTOR_REVIEW -> MENTOR_APPROVED -> EMPLOYER_REVIEW;
    REJECTED ends in MENTOR_REJECTED. The candidate is notified either way.
    """
    try:
        decision = ApprovalStatus(decision)
    except ValueError as e:
        raise ValidationError(f"Unknown decision: {decision}") from e
    if decision not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
        raise ValidationError(f"Decision must be APPROVED or REJECTED, got {decision.value}")

    request = _load_request(repo, request_id)
    if request.status != ApprovalStatus.PENDING:
        raise ValidationError(f"Approval request {request_id} is already {request.status.value}")
    if request.reviewer_id is None or request.reviewer_id != reviewer_id:
        raise AuthorizationError(f"Reviewer {reviewer_id} is not assigned to approval request {request_id}")

    application = request.application
    if decision == ApprovalStatus.APPROVED:
        path = [ApplicationStatus.MENTOR_APPROVED, ApplicationStatus.EMPLOYER_REVIEW]
    else:
        path = [ApplicationStatus.MENTOR_REJECTED]

    # Validate the whole path before touching anything
    current = application.status
    for target in path:
        current = transition(current, target)

    request.status = decision
    request.reviewed_at = now
    request.response_hours = _hours_between(request.submitted_at, now)
    if comments:
        request.comments = comments

    reason = f"Reviewer {reviewer_id}: {decision.value.lower()}"
    for target in path:
        apply_transition(repo, application, target, actor_id=reviewer_id, reason=reason, now=now)

    opportunity = application.opportunity
    approved = decision == ApprovalStatus.APPROVED
    content = Messages.approval_decided(opportunity.title, opportunity.company_name, approved, comments)
    schedule(
        repo,
        recipient_id=application.candidate_id,
        category=NotificationCategory.APPROVAL,
        subject=NotificationSubject('approval_request', request.id),
        trigger_window=f"decision:{decision.value}",
        title=content.title,
        message=content.message,
        scheduled_for=now,
        priority=NotificationPriority.HIGH if approved else NotificationPriority.NORMAL,
        payload={
            'approval_request_id': request.id,
            'application_id': application.id,
            'decision': decision.value,
            'comments': comments,
        },
    )
    logger.info(
        f"Approval request {request.id} {decision.value} by reviewer {reviewer_id} "
        f"after {request.response_hours}h"
    )
    return DecisionResult(approval_request_id=request.id, status=decision, next_status=application.status)


def escalate(repo, request_id: int, actor_id: int, reason: str, now: datetime) -> ApprovalRequest:
    """Hand a PENDING request over to manual handling (ESCALATED is final for the router)."""
    request = _load_request(repo, request_id)
    if request.status != ApprovalStatus.PENDING:
        raise ValidationError(f"Approval request {request_id} is already {request.status.value}")

    actor = repo.users.get(actor_id)
    if actor is None:
        raise NotFoundError("User", actor_id)
    if actor.role != UserRole.ADMIN and actor.id != request.reviewer_id:
        raise AuthorizationError(f"User {actor_id} may not escalate approval request {request_id}")

    request.status = ApprovalStatus.ESCALATED
    _append_comment(request, actor_id, f"Escalated: {reason}", now)
    logger.warning(f"Approval request {request.id} escalated by user {actor_id}: {reason}")
    return request


def _append_comment(request: ApprovalRequest, author_id: int, comment: str, now: datetime) -> None:
    line = f"[{now.isoformat()}] user {author_id}: {comment}"
    request.comments = f"{request.comments}\n{line}" if request.comments else line


def add_comment(repo, request_id: int, author_id: int, comment: str, now: datetime) -> ApprovalRequest:
    """Comments stay writable after the request is decided."""
    if not comment or not comment.strip():
        raise ValidationError("Comment must not be empty")
    request = repo.approvals.get(request_id)
    if request is None:
        raise NotFoundError("ApprovalRequest", request_id)

    author = repo.users.get(author_id)
    if author is None:
        raise NotFoundError("User", author_id)
    if author.role != UserRole.ADMIN and author.id not in (request.reviewer_id, request.candidate_id):
        raise AuthorizationError(f"User {author_id} may not comment on approval request {request_id}")

    _append_comment(request, author_id, comment.strip(), now)
    return request


def workqueue(repo, reviewer_id: int, now: datetime, config: Optional[RoutingConfig] = None) -> Workqueue:
    """PENDING requests of a reviewer, most urgent first, oldest first within a priority."""
    config = config or RoutingConfig()
    items = []
    for request in repo.approvals.list_pending_for_reviewer(reviewer_id):
        waiting = _hours_between(request.submitted_at, now)
        items.append(WorkqueueItem(
            approval_request_id=request.id,
            application_id=request.application_id,
            candidate_id=request.candidate_id,
            priority=request.priority,
            submitted_at=request.submitted_at,
            waiting_hours=waiting,
            overdue=waiting > max_response_hours(request.priority, config),
        ))

    items.sort(key=lambda item: (-item.priority.rank, item.submitted_at, item.approval_request_id))
    total = len(items)
    return Workqueue(
        reviewer_id=reviewer_id,
        items=items,
        total=total,
        high_priority=sum(1 for i in items if i.priority in (ApprovalPriority.HIGH, ApprovalPriority.URGENT)),
        average_waiting_hours=round(sum(i.waiting_hours for i in items) / total, 2) if total else 0.0,
    )
