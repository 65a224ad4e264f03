"""
Recommendation feed.

recommend() ranks already-loaded opportunities for one candidate;
personalized_feed() adds store-backed signals (new, trending, already
notified); ingest_opportunity() fans a newly published opportunity out to
every eligible candidate as scheduled recommendation notifications.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from core.config_loader import MatchingConfig
from core.exceptions import NotFoundError, ValidationError
from core.scorer import (
    CandidateSnapshot, OpportunitySnapshot, MatchResult, SkillGap, SkillDemand,
    score, skill_gap, trending_skills,
)
from core.scorer.skills import round_half_up
from database.models import NotificationCategory, NotificationFrequency, NotificationPriority
from notification.message_builder import NotificationMessageBuilder as Messages
from notification.scheduler import schedule
from notification.tracker import NotificationSubject

logger = logging.getLogger(__name__)

TRENDING_POINTS_PER_DAILY_APPLICATION = 20


@dataclass
class FeedItem:
    match: MatchResult
    title: str
    company_name: str
    is_new: bool
    previously_notified: bool
    application_count: int
    trending_score: int


@dataclass
class PersonalizedFeed:
    candidate_id: int
    items: List[FeedItem] = field(default_factory=list)
    new_count: int = 0
    trending: List[FeedItem] = field(default_factory=list)
    total_score: int = 0


@dataclass
class FanOutResult:
    opportunity_id: int
    evaluated: int = 0
    matched: int = 0
    scheduled: int = 0
    high_priority: int = 0
    failed: int = 0


def recommend(
    candidate: CandidateSnapshot,
    opportunities: Iterable[OpportunitySnapshot],
    limit: int = 10,
    config: Optional[MatchingConfig] = None,
) -> List[MatchResult]:
    """Score-ordered matches, ineligible (score 0) results dropped, at most `limit`."""
    if limit <= 0:
        return []
    results = [score(candidate, opportunity, config) for opportunity in opportunities]
    results = [r for r in results if r.score > 0]
    # sorted() is stable, so equal scores keep input order
    results = sorted(results, key=lambda r: r.score, reverse=True)
    return results[:limit]


def is_new(opportunity, now: datetime, window_days: int = 7) -> bool:
    """Posted within the last `window_days` days."""
    return now - opportunity.created_at <= timedelta(days=window_days)


def trending_score(application_count: int, created_at: datetime, now: datetime) -> int:
    """
    Applications per day since posting, 20 points each, capped at 100.

    Days are whole days; an opportunity posted today uses its raw count.
    """
    days = (now - created_at).days
    per_day = application_count / days if days >= 1 else application_count
    return min(100, round_half_up(per_day * TRENDING_POINTS_PER_DAILY_APPLICATION))


def next_delivery_time(
    frequency: NotificationFrequency,
    now: datetime,
    digest_hour: int = 9,
    digest_weekday: int = 0,
) -> datetime:
    """When a deferred recommendation should go out for a candidate's cadence."""
    if frequency == NotificationFrequency.IMMEDIATE:
        return now

    slot = now.replace(hour=digest_hour, minute=0, second=0, microsecond=0)
    if frequency == NotificationFrequency.DAILY:
        return slot if slot > now else slot + timedelta(days=1)

    days_ahead = (digest_weekday - now.weekday()) % 7
    slot = slot + timedelta(days=days_ahead)
    return slot if slot > now else slot + timedelta(days=7)


def personalized_feed(
    repo,
    candidate_id: int,
    now: datetime,
    limit: Optional[int] = None,
    config: Optional[MatchingConfig] = None,
) -> PersonalizedFeed:
    """Ranked open opportunities of the candidate's group with new/trending signals."""
    config = config or MatchingConfig()
    limit = limit if limit is not None else config.default_limit

    user = repo.users.get_candidate(candidate_id)
    if user is None:
        raise NotFoundError("Candidate", candidate_id)

    opportunities = {o.id: o for o in repo.opportunities.list_open_for_group(user.group, now)}
    candidate = CandidateSnapshot.from_user(user)
    matches = recommend(
        candidate, [OpportunitySnapshot.from_model(o) for o in opportunities.values()], limit, config,
    )

    ids = [m.opportunity_id for m in matches]
    counts = repo.opportunities.application_counts(ids)
    notified = repo.notifications.notified_subject_ids(candidate_id, 'opportunity', ids)

    feed = PersonalizedFeed(candidate_id=candidate_id)
    for match in matches:
        opportunity = opportunities[match.opportunity_id]
        application_count = counts.get(opportunity.id, 0)
        feed.items.append(FeedItem(
            match=match,
            title=opportunity.title,
            company_name=opportunity.company_name,
            is_new=is_new(opportunity, now, config.recency_days),
            previously_notified=opportunity.id in notified,
            application_count=application_count,
            trending_score=trending_score(application_count, opportunity.created_at, now),
        ))

    feed.new_count = sum(1 for item in feed.items if item.is_new)
    feed.total_score = sum(item.match.score for item in feed.items)
    trending = [item for item in feed.items if item.trending_score > config.trending_threshold]
    trending.sort(key=lambda item: item.trending_score, reverse=True)
    feed.trending = trending[:config.trending_limit]
    return feed


def ingest_opportunity(
    repo,
    opportunity_id: int,
    now: datetime,
    config: Optional[MatchingConfig] = None,
) -> FanOutResult:
    """
    Fan a newly published opportunity out to every AVAILABLE candidate of its groups.

    Candidates are read in keyset-paginated batches and each one is scored and
    scheduled inside its own savepoint, so a failure for one candidate is
    logged and counted without undoing the others.
    """
    config = config or MatchingConfig()
    start = time.time()

    opportunity = repo.opportunities.get(opportunity_id)
    if opportunity is None:
        raise NotFoundError("Opportunity", opportunity_id)
    if not opportunity.is_open:
        raise ValidationError(f"Opportunity {opportunity_id} is not active and verified")
    if opportunity.deadline is not None and opportunity.deadline <= now:
        raise ValidationError(f"Opportunity {opportunity_id} deadline has passed")

    target = OpportunitySnapshot.from_model(opportunity)
    result = FanOutResult(opportunity_id=opportunity_id)
    after_id = 0

    logger.info(f"Fan-out for opportunity {opportunity_id} to groups {list(target.eligible_groups)}")
    while True:
        page = repo.users.available_candidates_page(
            target.eligible_groups, after_id=after_id, limit=config.fanout_batch_size,
        )
        if not page:
            break
        after_id = page[-1].id

        for user in page:
            result.evaluated += 1
            try:
                with repo.savepoint():
                    _recommend_to(repo, user, opportunity, target, now, config, result)
            except Exception as e:
                result.failed += 1
                logger.error(f"Fan-out of opportunity {opportunity_id} to candidate {user.id} failed: {e}", exc_info=True)

        if len(page) < config.fanout_batch_size:
            break

    elapsed = time.time() - start
    logger.info(
        f"Fan-out for opportunity {opportunity_id}: {result.evaluated} evaluated, {result.matched} matched, "
        f"{result.scheduled} scheduled ({result.high_priority} high priority), {result.failed} failed "
        f"in {elapsed:.2f}s"
    )
    return result


def _recommend_to(repo, user, opportunity, target: OpportunitySnapshot, now: datetime, config: MatchingConfig, result: FanOutResult):
    match = score(CandidateSnapshot.from_user(user), target, config)
    if match.score < config.notify_threshold:
        return
    result.matched += 1

    high = match.score >= config.immediate_threshold
    if high:
        result.high_priority += 1
        scheduled_for = now
    else:
        scheduled_for = next_delivery_time(
            user.profile.notification_frequency, now, config.digest_hour, config.digest_weekday,
        )

    content = Messages.recommendation(opportunity.title, opportunity.company_name, match.score, list(match.reasons))
    row = schedule(
        repo,
        recipient_id=user.id,
        category=NotificationCategory.GENERAL,
        subject=NotificationSubject('opportunity', opportunity.id),
        trigger_window="recommendation",
        title=content.title,
        message=content.message,
        scheduled_for=scheduled_for,
        priority=NotificationPriority.HIGH if high else NotificationPriority.NORMAL,
        payload={
            'kind': 'recommendation',
            'opportunity_id': opportunity.id,
            'score': match.score,
            'reasons': list(match.reasons),
            'skill_match_percentage': match.skill_match_percentage,
        },
    )
    if row is not None:
        result.scheduled += 1


def skill_gap_report(repo, candidate_id: int, opportunity_id: int) -> SkillGap:
    user = repo.users.get_candidate(candidate_id)
    if user is None:
        raise NotFoundError("Candidate", candidate_id)
    opportunity = repo.opportunities.get(opportunity_id)
    if opportunity is None:
        raise NotFoundError("Opportunity", opportunity_id)
    return skill_gap(CandidateSnapshot.from_user(user), OpportunitySnapshot.from_model(opportunity))


def trending_skills_report(repo, now: datetime, top: int = 20) -> List[SkillDemand]:
    return trending_skills([OpportunitySnapshot.from_model(o) for o in repo.opportunities.list_open(now)], top)
