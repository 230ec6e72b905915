"""Event ranking and engagement tracking."""

from realtea_engine.ranking.engagement_tracker import EngagementResult, EngagementTracker
from realtea_engine.ranking.rank_scorer import (
    EventRankScorer,
    RankBreakdown,
    engagement_score,
    freshness_score,
)

__all__ = [
    "EventRankScorer",
    "RankBreakdown",
    "EngagementTracker",
    "EngagementResult",
    "freshness_score",
    "engagement_score",
]
