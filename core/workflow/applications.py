"""Candidate-side application lifecycle: apply, withdraw, history."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.scorer import CandidateSnapshot, OpportunitySnapshot
from core.scorer.rules import is_eligible
from core.workflow.status import apply_transition
from database.models import (
    Application, ApplicationStatus, ApplicationStatusChange, ApprovalStatus,
    InterviewStatus, OfferStatus, PlacementStatus,
)

logger = logging.getLogger(__name__)

CLOSED_BY_WITHDRAWAL = "APPLICATION_WITHDRAWN"


def apply(
    repo,
    candidate_id: int,
    opportunity_id: int,
    now: datetime,
    cover_note: Optional[str] = None,
) -> Application:
    """Create an APPLIED application after eligibility, openness and duplicate checks."""
    candidate = repo.users.get_candidate(candidate_id)
    if candidate is None:
        raise NotFoundError("Candidate", candidate_id)
    if not candidate.is_active:
        raise ValidationError(f"Candidate {candidate_id} is not active")
    if candidate.profile is not None and candidate.profile.placement_status == PlacementStatus.PLACED:
        raise ValidationError(f"Candidate {candidate_id} is already placed")

    opportunity = repo.opportunities.get(opportunity_id)
    if opportunity is None:
        raise NotFoundError("Opportunity", opportunity_id)
    if not opportunity.is_open:
        raise ValidationError(f"Opportunity {opportunity_id} is not open for applications")
    if opportunity.deadline is not None and opportunity.deadline <= now:
        raise ValidationError(f"Application deadline for opportunity {opportunity_id} has passed")
    if not is_eligible(CandidateSnapshot.from_user(candidate), OpportunitySnapshot.from_model(opportunity)):
        raise ValidationError(f"Candidate {candidate_id} is not eligible for opportunity {opportunity_id}")
    if repo.applications.find(candidate_id, opportunity_id) is not None:
        raise ConflictError(f"Candidate {candidate_id} already applied to opportunity {opportunity_id}")

    application = Application(
        candidate_id=candidate_id,
        opportunity_id=opportunity_id,
        status=ApplicationStatus.APPLIED,
        cover_note=cover_note,
        applied_at=now,
        updated_at=now,
    )
    try:
        with repo.savepoint():
            repo.applications.add(application)
    except IntegrityError as e:
        raise ConflictError(f"Candidate {candidate_id} already applied to opportunity {opportunity_id}") from e

    repo.applications.record_status_change(ApplicationStatusChange(
        application_id=application.id,
        from_status=None,
        to_status=ApplicationStatus.APPLIED,
        actor_id=candidate_id,
        reason="Application submitted",
        changed_at=now,
    ))
    logger.info(f"Candidate {candidate_id} applied to opportunity {opportunity_id} (application {application.id})")
    return application


def withdraw(repo, application_id: int, candidate_id: int, reason: Optional[str], now: datetime) -> Application:
    """
    Withdraw a non-terminal application.

    Open interviews are cancelled, an extended offer is withdrawn and a pending
    approval request is closed without a reviewer decision.
    """
    application = repo.applications.get_for_update(application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    if application.candidate_id != candidate_id:
        raise AuthorizationError(f"Application {application_id} does not belong to candidate {candidate_id}")

    apply_transition(
        repo, application, ApplicationStatus.WITHDRAWN,
        actor_id=candidate_id, reason=reason or "Withdrawn by candidate", now=now,
    )

    for interview in repo.interviews.active_for_application(application_id):
        interview.status = InterviewStatus.CANCELLED

    offer = repo.offers.active_for_application(application_id)
    if offer is not None:
        offer.status = OfferStatus.WITHDRAWN
        offer.responded_at = now

    request = repo.approvals.get_by_application(application_id)
    if request is not None and request.status == ApprovalStatus.PENDING:
        request.status = ApprovalStatus.REJECTED
        request.closed_reason = CLOSED_BY_WITHDRAWAL
        note = f"[{now.isoformat()}] Closed: application withdrawn"
        request.comments = f"{request.comments}\n{note}" if request.comments else note

    return application


def history(repo, application_id: int) -> List[ApplicationStatusChange]:
    if repo.applications.get(application_id) is None:
        raise NotFoundError("Application", application_id)
    return repo.applications.history(application_id)
