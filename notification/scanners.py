#!/usr/bin/env python3
"""
Discovery scanners.

Each scanner reads live state and schedules reminders through
scheduler.schedule() with the once-per-window strategy: the trigger window
embeds an absolute timestamp (deadline, interview time, completion time), so
a reminder fires once per window no matter how often discover() runs.

Scanner signature: scan(repo, now, config) -> number of notifications created.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, List, Tuple

from core.config_loader import AppConfig
from core.workflow.status import NON_TERMINAL_STATUSES
from database.models import NotificationCategory, NotificationPriority, ApprovalPriority
from notification.message_builder import NotificationMessageBuilder as Messages
from notification.scheduler import schedule
from notification.tracker import NotificationSubject, OncePerWindowStrategy

logger = logging.getLogger(__name__)

Scanner = Callable[[object, datetime, AppConfig], int]

ONCE_PER_WINDOW = OncePerWindowStrategy()


def days_until(target: datetime, now: datetime) -> int:
    return math.ceil((target - now).total_seconds() / 86400)


def hours_until(target: datetime, now: datetime) -> int:
    return math.ceil((target - now).total_seconds() / 3600)


def scan_deadlines(repo, now: datetime, config: AppConfig) -> int:
    """DEADLINE reminders for open applications whose deadline is exactly 1 or 7 days out."""
    offsets = sorted(set(config.scheduler.deadline_offsets_days))
    if not offsets:
        return 0
    horizon = now + timedelta(days=max(offsets))
    created = 0

    for application in repo.applications.list_with_deadline_between(now, horizon, NON_TERMINAL_STATUSES):
        opportunity = application.opportunity
        deadline = opportunity.deadline
        days = days_until(deadline, now)
        if days not in offsets:
            continue

        content = Messages.deadline_reminder(opportunity.title, opportunity.company_name, days)
        row = schedule(
            repo,
            recipient_id=application.candidate_id,
            category=NotificationCategory.DEADLINE,
            subject=NotificationSubject('application', application.id),
            trigger_window=f"deadline:{deadline.isoformat()}:{days}d",
            title=content.title,
            message=content.message,
            scheduled_for=deadline - timedelta(days=days),
            priority=NotificationPriority.HIGH if days == 1 else NotificationPriority.NORMAL,
            payload={
                'opportunity_id': opportunity.id,
                'opportunity_title': opportunity.title,
                'company_name': opportunity.company_name,
                'deadline': deadline.isoformat(),
                'days_until': days,
            },
            strategy=ONCE_PER_WINDOW,
        )
        if row is not None:
            created += 1
    return created


def scan_interviews(repo, now: datetime, config: AppConfig) -> int:
    """INTERVIEW reminders for candidate and interviewer at 24h and 1h before."""
    marks = sorted(set(config.scheduler.interview_marks_hours))
    if not marks:
        return 0
    horizon = now + timedelta(hours=max(marks))
    created = 0

    for interview in repo.interviews.list_upcoming(now, horizon):
        hours = hours_until(interview.scheduled_at, now)
        if hours not in marks:
            continue

        opportunity = interview.application.opportunity
        for recipient_id, for_candidate in (
            (interview.candidate_id, True),
            (interview.interviewer_id, False),
        ):
            content = Messages.interview_reminder(opportunity.title, opportunity.company_name, hours, for_candidate)
            row = schedule(
                repo,
                recipient_id=recipient_id,
                category=NotificationCategory.INTERVIEW,
                subject=NotificationSubject('interview', interview.id),
                trigger_window=f"interview:{interview.scheduled_at.isoformat()}:{hours}h",
                title=content.title,
                message=content.message,
                scheduled_for=interview.scheduled_at - timedelta(hours=hours),
                priority=NotificationPriority.HIGH if hours == 1 else NotificationPriority.NORMAL,
                payload={
                    'interview_id': interview.id,
                    'application_id': interview.application_id,
                    'opportunity_title': opportunity.title,
                    'company_name': opportunity.company_name,
                    'scheduled_at': interview.scheduled_at.isoformat(),
                    'mode': interview.mode.value,
                },
                strategy=ONCE_PER_WINDOW,
            )
            if row is not None:
                created += 1
    return created


def scan_aged_approvals(repo, now: datetime, config: AppConfig) -> int:
    """Nudge the assigned reviewer once about a request pending longer than the age threshold."""
    cutoff = now - timedelta(hours=config.scheduler.approval_age_hours)
    created = 0

    for request in repo.approvals.list_aged_pending(cutoff):
        opportunity = request.application.opportunity
        content = Messages.approval_pending(opportunity.title, opportunity.company_name)
        urgent = request.priority in (ApprovalPriority.HIGH, ApprovalPriority.URGENT)
        row = schedule(
            repo,
            recipient_id=request.reviewer_id,
            category=NotificationCategory.APPROVAL,
            subject=NotificationSubject('approval_request', request.id),
            trigger_window=f"pending:reviewer:{request.reviewer_id}",
            title=content.title,
            message=content.message,
            scheduled_for=now,
            priority=NotificationPriority.HIGH if urgent else NotificationPriority.NORMAL,
            payload={
                'approval_request_id': request.id,
                'application_id': request.application_id,
                'candidate_id': request.candidate_id,
                'submitted_at': request.submitted_at.isoformat(),
                'priority': request.priority.value,
            },
            strategy=ONCE_PER_WINDOW,
        )
        if row is not None:
            created += 1
    return created


def scan_missing_feedback(repo, now: datetime, config: AppConfig) -> int:
    """Ask for feedback on engagements completed a while ago with none recorded."""
    cutoff = now - timedelta(days=config.scheduler.feedback_age_days)
    created = 0

    for application in repo.applications.list_completed_without_feedback(cutoff):
        opportunity = application.opportunity
        recipient_id = opportunity.posted_by_id or application.reviewer_id
        if recipient_id is None:
            logger.warning(f"Application {application.id}: nobody to ask for feedback, skipped")
            continue

        candidate_name = application.candidate.name if application.candidate else "the candidate"
        content = Messages.feedback_request(candidate_name, opportunity.title)
        row = schedule(
            repo,
            recipient_id=recipient_id,
            category=NotificationCategory.FEEDBACK,
            subject=NotificationSubject('application', application.id),
            trigger_window=f"completed:{application.completed_at.isoformat()}",
            title=content.title,
            message=content.message,
            scheduled_for=now,
            priority=NotificationPriority.NORMAL,
            payload={
                'application_id': application.id,
                'candidate_id': application.candidate_id,
                'opportunity_title': opportunity.title,
                'company_name': opportunity.company_name,
                'completed_at': application.completed_at.isoformat(),
            },
            strategy=ONCE_PER_WINDOW,
        )
        if row is not None:
            created += 1
    return created


def scan_cross_group(repo, now: datetime, config: AppConfig) -> int:
    """Point candidates at recent opportunities posted for other groups."""
    since = now - timedelta(days=config.matching.recency_days)
    recent = repo.opportunities.list_recent_open(since, now)
    if not recent:
        return 0

    limit = config.scheduler.cross_group_limit
    batch_size = config.matching.fanout_batch_size
    created = 0
    after_id = 0

    while True:
        candidates = repo.users.active_candidates_page(after_id=after_id, limit=batch_size)
        if not candidates:
            break
        after_id = candidates[-1].id

        for candidate in candidates:
            group = (candidate.group or "").strip().lower()
            if not group:
                continue
            applied = repo.applications.applied_opportunity_ids(candidate.id)
            picks = [
                o for o in recent
                if o.id not in applied and group not in {g.lower() for g in (o.eligible_groups or [])}
            ][:limit]

            for opportunity in picks:
                content = Messages.cross_group(opportunity.title, opportunity.company_name)
                row = schedule(
                    repo,
                    recipient_id=candidate.id,
                    category=NotificationCategory.CROSS_CATEGORY,
                    subject=NotificationSubject('opportunity', opportunity.id),
                    trigger_window="cross-group",
                    title=content.title,
                    message=content.message,
                    scheduled_for=now,
                    priority=NotificationPriority.LOW,
                    payload={
                        'opportunity_id': opportunity.id,
                        'opportunity_title': opportunity.title,
                        'company_name': opportunity.company_name,
                        'eligible_groups': list(opportunity.eligible_groups or []),
                    },
                    strategy=ONCE_PER_WINDOW,
                )
                if row is not None:
                    created += 1

        if len(candidates) < batch_size:
            break
    return created


def default_scanners(config: AppConfig) -> List[Tuple[str, Scanner]]:
    scanners = [
        ('deadline', scan_deadlines),
        ('interview', scan_interviews),
        ('approval', scan_aged_approvals),
        ('feedback', scan_missing_feedback),
    ]
    if config.scheduler.cross_group_enabled:
        scanners.append(('cross_group', scan_cross_group))
    return scanners
