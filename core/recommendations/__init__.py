"""
Recommendations Module - ranking, feed signals and opportunity fan-out.
"""

from core.recommendations.feed import (
    FeedItem,
    PersonalizedFeed,
    FanOutResult,
    recommend,
    is_new,
    trending_score,
    next_delivery_time,
    personalized_feed,
    ingest_opportunity,
    skill_gap_report,
    trending_skills_report,
)

__all__ = [
    'FeedItem',
    'PersonalizedFeed',
    'FanOutResult',
    'recommend',
    'is_new',
    'trending_score',
    'next_delivery_time',
    'personalized_feed',
    'ingest_opportunity',
    'skill_gap_report',
    'trending_skills_report',
]
