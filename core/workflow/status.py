"""
Application status machine.

TRANSITIONS is the whole graph: any edge not listed here is illegal.
apply_transition() is the only code path that writes Application.status.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from core.exceptions import IllegalTransitionError
from database.models import Application, ApplicationStatus, ApplicationStatusChange

logger = logging.getLogger(__name__)

S = ApplicationStatus

TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset({
    S.MENTOR_REJECTED,
    S.NOT_OFFERED,
    S.OFFER_REJECTED,
    S.COMPLETED,
    S.WITHDRAWN,
})

NON_TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset(set(S) - TERMINAL_STATUSES)

_FORWARD: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    S.APPLIED: frozenset({S.MENTOR_REVIEW}),
    S.MENTOR_REVIEW: frozenset({S.MENTOR_APPROVED, S.MENTOR_REJECTED}),
    S.MENTOR_APPROVED: frozenset({S.EMPLOYER_REVIEW}),
    S.EMPLOYER_REVIEW: frozenset({S.INTERVIEW_SCHEDULED}),
    S.INTERVIEW_SCHEDULED: frozenset({S.INTERVIEWED}),
    S.INTERVIEWED: frozenset({S.OFFERED, S.NOT_OFFERED}),
    S.OFFERED: frozenset({S.OFFER_ACCEPTED, S.OFFER_REJECTED}),
    S.OFFER_ACCEPTED: frozenset({S.COMPLETED}),
}

# Every non-terminal status may also be withdrawn
TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    status: _FORWARD.get(status, frozenset()) | ({S.WITHDRAWN} if status in NON_TERMINAL_STATUSES else frozenset())
    for status in S
}


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_targets(status: ApplicationStatus) -> FrozenSet[ApplicationStatus]:
    return TRANSITIONS.get(status, frozenset())


def transition(current: ApplicationStatus, target: ApplicationStatus) -> ApplicationStatus:
    """Validate the edge current -> target and return target."""
    if target not in allowed_targets(current):
        raise IllegalTransitionError(current, target)
    return target


def apply_transition(
    repo,
    application: Application,
    target: ApplicationStatus,
    actor_id: Optional[int],
    reason: Optional[str],
    now: datetime,
) -> ApplicationStatusChange:
    """Move `application` to `target` and append the audit row."""
    current = application.status
    transition(current, target)

    application.status = target
    application.updated_at = now
    if target == S.COMPLETED:
        application.completed_at = now

    change = ApplicationStatusChange(
        application_id=application.id,
        from_status=current,
        to_status=target,
        actor_id=actor_id,
        reason=reason,
        changed_at=now,
    )
    repo.applications.record_status_change(change)
    logger.info(f"Application {application.id}: {current.value} -> {target.value}")
    return change
