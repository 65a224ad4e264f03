"""
Employer-side flow: interviews, offers, completion and feedback.

Status changes go through status.apply_transition; every participant-facing
change schedules a notification through the scheduler creation API.
"""

import logging
from datetime import datetime
from typing import Optional

from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.workflow.status import apply_transition, transition
from database.models import (
    Application, ApplicationStatus, Feedback, Interview, InterviewMode, InterviewStatus,
    NotificationCategory, NotificationPriority, Offer, OfferStatus, OpportunityType,
    PlacementStatus, UserRole, as_utc,
)
from notification.message_builder import NotificationMessageBuilder as Messages
from notification.scheduler import schedule
from notification.tracker import NotificationSubject

logger = logging.getLogger(__name__)

ACTIVE_INTERVIEW = (InterviewStatus.SCHEDULED, InterviewStatus.CONFIRMED)


def _application(repo, application_id: int) -> Application:
    application = repo.applications.get_for_update(application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    return application


def _require_staff(repo, application: Application, actor_id: int):
    """Admins, the opportunity's poster, or (for unowned postings) any employer/reviewer."""
    actor = repo.users.get(actor_id)
    if actor is None:
        raise NotFoundError("User", actor_id)
    if actor.role == UserRole.ADMIN:
        return actor
    posted_by_id = application.opportunity.posted_by_id
    if posted_by_id is not None:
        if actor.id == posted_by_id:
            return actor
    elif actor.role in (UserRole.EMPLOYER, UserRole.REVIEWER):
        return actor
    raise AuthorizationError(f"User {actor_id} may not manage application {application.id}")


def _notify(repo, recipient_id, category, subject, window, content, now, priority=NotificationPriority.NORMAL, payload=None):
    return schedule(
        repo,
        recipient_id=recipient_id,
        category=category,
        subject=subject,
        trigger_window=window,
        title=content.title,
        message=content.message,
        scheduled_for=now,
        priority=priority,
        payload=payload,
    )


def schedule_interview(
    repo,
    application_id: int,
    interviewer_id: int,
    scheduled_at: datetime,
    now: datetime,
    duration_minutes: int = 60,
    mode: InterviewMode = InterviewMode.ONLINE,
    location: Optional[str] = None,
    notes: Optional[str] = None,
) -> Interview:
    """
    Schedule an interview round.

    The first round moves EMPLOYER_REVIEW -> INTERVIEW_SCHEDULED; later rounds
    for an application already in INTERVIEW_SCHEDULED leave the status alone.
    """
    application = _application(repo, application_id)
    _require_staff(repo, application, interviewer_id)
    scheduled_at = as_utc(scheduled_at)
    if scheduled_at <= now:
        raise ValidationError("Interview must be scheduled in the future")
    if duration_minutes <= 0:
        raise ValidationError("Interview duration must be positive")

    if application.status != ApplicationStatus.INTERVIEW_SCHEDULED:
        apply_transition(
            repo, application, ApplicationStatus.INTERVIEW_SCHEDULED,
            actor_id=interviewer_id, reason="Interview scheduled", now=now,
        )

    interview = repo.interviews.add(Interview(
        application_id=application.id,
        candidate_id=application.candidate_id,
        interviewer_id=interviewer_id,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        mode=InterviewMode(mode),
        location=location,
        notes=notes,
        status=InterviewStatus.SCHEDULED,
        created_at=now,
    ))

    opportunity = application.opportunity
    subject = NotificationSubject('interview', interview.id)
    payload = {
        'interview_id': interview.id,
        'application_id': application.id,
        'scheduled_at': scheduled_at.isoformat(),
        'mode': interview.mode.value,
        'location': location,
    }
    for recipient_id, for_candidate in ((application.candidate_id, True), (interviewer_id, False)):
        content = Messages.interview_scheduled(
            opportunity.title, opportunity.company_name, scheduled_at.isoformat(), for_candidate,
        )
        _notify(repo, recipient_id, NotificationCategory.INTERVIEW, subject, "scheduled", content, now, payload=payload)

    logger.info(f"Interview {interview.id} scheduled for application {application.id} at {scheduled_at.isoformat()}")
    return interview


def _active_interview(repo, interview_id: int) -> Interview:
    interview = repo.interviews.get(interview_id)
    if interview is None:
        raise NotFoundError("Interview", interview_id)
    if interview.status not in ACTIVE_INTERVIEW:
        raise ValidationError(f"Interview {interview_id} is already {interview.status.value}")
    return interview


def confirm_interview(repo, interview_id: int, candidate_id: int, now: datetime) -> Interview:
    interview = _active_interview(repo, interview_id)
    if interview.candidate_id != candidate_id:
        raise AuthorizationError(f"Interview {interview_id} does not belong to candidate {candidate_id}")
    interview.status = InterviewStatus.CONFIRMED
    return interview


def cancel_interview(repo, interview_id: int, actor_id: int, reason: Optional[str], now: datetime) -> Interview:
    interview = _active_interview(repo, interview_id)
    application = interview.application
    _require_staff(repo, application, actor_id)

    interview.status = InterviewStatus.CANCELLED
    if reason:
        interview.notes = f"{interview.notes}\n{reason}" if interview.notes else reason

    opportunity = application.opportunity
    content = Messages.interview_cancelled(opportunity.title, opportunity.company_name)
    _notify(
        repo, application.candidate_id, NotificationCategory.INTERVIEW,
        NotificationSubject('interview', interview.id), "cancelled", content, now,
        priority=NotificationPriority.HIGH, payload={'interview_id': interview.id, 'reason': reason},
    )
    logger.info(f"Interview {interview.id} cancelled by user {actor_id}")
    return interview


def record_interview_outcome(
    repo,
    interview_id: int,
    actor_id: int,
    now: datetime,
    notes: Optional[str] = None,
) -> Interview:
    """Mark the interview held; the application moves to INTERVIEWED on its first completed round."""
    interview = _active_interview(repo, interview_id)
    application = repo.applications.get_for_update(interview.application_id)
    _require_staff(repo, application, actor_id)

    if application.status == ApplicationStatus.INTERVIEW_SCHEDULED:
        apply_transition(
            repo, application, ApplicationStatus.INTERVIEWED,
            actor_id=actor_id, reason="Interview completed", now=now,
        )
    elif application.status != ApplicationStatus.INTERVIEWED:
        raise ValidationError(
            f"Application {application.id} is {application.status.value}, interview outcome cannot be recorded"
        )

    interview.status = InterviewStatus.COMPLETED
    if notes:
        interview.notes = f"{interview.notes}\n{notes}" if interview.notes else notes
    return interview


def extend_offer(
    repo,
    application_id: int,
    actor_id: int,
    response_deadline: datetime,
    now: datetime,
    compensation: Optional[int] = None,
    details: Optional[str] = None,
) -> Offer:
    application = _application(repo, application_id)
    _require_staff(repo, application, actor_id)
    response_deadline = as_utc(response_deadline)
    if response_deadline <= now:
        raise ValidationError("Offer response deadline must be in the future")
    if compensation is not None and compensation < 0:
        raise ValidationError("Compensation must not be negative")
    if repo.offers.active_for_application(application_id) is not None:
        raise ConflictError(f"Application {application_id} already has an open offer")

    apply_transition(repo, application, ApplicationStatus.OFFERED, actor_id=actor_id, reason="Offer extended", now=now)
    offer = repo.offers.add(Offer(
        application_id=application.id,
        candidate_id=application.candidate_id,
        compensation=compensation,
        details=details,
        status=OfferStatus.EXTENDED,
        response_deadline=response_deadline,
        extended_at=now,
    ))

    opportunity = application.opportunity
    content = Messages.offer_extended(opportunity.title, opportunity.company_name, response_deadline.isoformat())
    _notify(
        repo, application.candidate_id, NotificationCategory.GENERAL,
        NotificationSubject('offer', offer.id), "extended", content, now,
        priority=NotificationPriority.HIGH,
        payload={
            'offer_id': offer.id,
            'application_id': application.id,
            'compensation': compensation,
            'response_deadline': response_deadline.isoformat(),
        },
    )
    logger.info(f"Offer {offer.id} extended for application {application.id}")
    return offer


def decline_candidate(repo, application_id: int, actor_id: int, reason: Optional[str], now: datetime) -> Application:
    application = _application(repo, application_id)
    _require_staff(repo, application, actor_id)
    apply_transition(
        repo, application, ApplicationStatus.NOT_OFFERED,
        actor_id=actor_id, reason=reason or "Not offered", now=now,
    )

    opportunity = application.opportunity
    content = Messages.application_outcome(opportunity.title, opportunity.company_name, "not offered")
    _notify(
        repo, application.candidate_id, NotificationCategory.GENERAL,
        NotificationSubject('application', application.id), "not-offered", content, now,
    )
    return application


def respond_to_offer(
    repo,
    offer_id: int,
    candidate_id: int,
    accept: bool,
    now: datetime,
    reason: Optional[str] = None,
) -> Offer:
    """
    Accept or reject an EXTENDED offer before its response deadline.

    Accepting marks the candidate PLACED (placement) or INTERNING (internship).
    """
    offer = repo.offers.get_for_update(offer_id)
    if offer is None:
        raise NotFoundError("Offer", offer_id)
    if offer.candidate_id != candidate_id:
        raise AuthorizationError(f"Offer {offer_id} does not belong to candidate {candidate_id}")
    if offer.status != OfferStatus.EXTENDED:
        raise ValidationError(f"Offer {offer_id} is {offer.status.value} and can no longer be answered")
    if now > offer.response_deadline:
        raise ValidationError(f"Offer {offer_id} response deadline has passed")

    application = repo.applications.get_for_update(offer.application_id)
    target = ApplicationStatus.OFFER_ACCEPTED if accept else ApplicationStatus.OFFER_REJECTED
    transition(application.status, target)

    offer.status = OfferStatus.ACCEPTED if accept else OfferStatus.REJECTED
    offer.responded_at = now
    if not accept:
        offer.rejection_reason = reason

    apply_transition(
        repo, application, target, actor_id=candidate_id,
        reason="Offer accepted" if accept else (reason or "Offer rejected"), now=now,
    )

    opportunity = application.opportunity
    if accept:
        candidate = repo.users.get_candidate(candidate_id)
        if candidate is not None and candidate.profile is not None:
            candidate.profile.placement_status = (
                PlacementStatus.PLACED
                if opportunity.opportunity_type == OpportunityType.PLACEMENT
                else PlacementStatus.INTERNING
            )

    if opportunity.posted_by_id is not None:
        candidate_user = repo.users.get(candidate_id)
        content = Messages.offer_response(candidate_user.name, opportunity.title, accept)
        _notify(
            repo, opportunity.posted_by_id, NotificationCategory.GENERAL,
            NotificationSubject('offer', offer.id), f"response:{offer.status.value}", content, now,
            payload={'offer_id': offer.id, 'application_id': application.id, 'accepted': accept},
        )

    logger.info(f"Offer {offer.id} {offer.status.value.lower()} by candidate {candidate_id}")
    return offer


def expire_offers(repo, now: datetime) -> int:
    """Expire EXTENDED offers past their response deadline; the application becomes OFFER_REJECTED."""
    expired = 0
    for offer in repo.offers.list_expired(now):
        try:
            with repo.savepoint():
                offer.status = OfferStatus.EXPIRED
                application = repo.applications.get(offer.application_id)
                if application.status == ApplicationStatus.OFFERED:
                    apply_transition(
                        repo, application, ApplicationStatus.OFFER_REJECTED,
                        actor_id=None, reason="Offer expired", now=now,
                    )
        except Exception as e:
            logger.error(f"Failed to expire offer {offer.id}: {e}", exc_info=True)
            continue
        expired += 1

    if expired:
        logger.info(f"Expired {expired} offer(s)")
    return expired


def complete_engagement(repo, application_id: int, actor_id: int, now: datetime) -> Application:
    application = _application(repo, application_id)
    _require_staff(repo, application, actor_id)
    apply_transition(
        repo, application, ApplicationStatus.COMPLETED,
        actor_id=actor_id, reason="Engagement completed", now=now,
    )
    return application


def submit_feedback(
    repo,
    application_id: int,
    author_id: int,
    rating: int,
    now: datetime,
    comments: Optional[str] = None,
) -> Feedback:
    application = repo.applications.get(application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    if application.status != ApplicationStatus.COMPLETED:
        raise ValidationError(f"Feedback requires a completed engagement, application is {application.status.value}")
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")

    author = repo.users.get(author_id)
    if author is None:
        raise NotFoundError("User", author_id)
    participants = {application.candidate_id, application.reviewer_id, application.opportunity.posted_by_id}
    if author.role != UserRole.ADMIN and author.id not in participants:
        raise AuthorizationError(f"User {author_id} did not take part in application {application_id}")
    if repo.feedback.exists_from_author(application_id, author_id):
        raise ConflictError(f"User {author_id} already left feedback for application {application_id}")

    feedback = repo.feedback.add(Feedback(
        application_id=application_id,
        author_id=author_id,
        rating=rating,
        comments=comments,
        created_at=now,
    ))
    logger.info(f"Feedback {feedback.id} recorded for application {application_id}")
    return feedback
