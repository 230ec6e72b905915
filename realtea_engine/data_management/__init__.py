"""Data management package for the ranking and trust engine.

Storage contracts live in repository.py; the in-memory stores below
implement them for tests and single-node deployments:
- EventStore: events, comments, votes (EventRepository)
- UserStatsStore: per-user trust accumulators (UserStatsRepository)
- SourceTrustStore: per-domain reputation (SourceTrustRepository)
- ReviewQueue: moderation-flagged content (ReviewQueueRepository)
- InMemoryRateLimitStore: per-process rate-limit windows (RateLimitStore)
"""

from realtea_engine.data_management.event_store import EventStore
from realtea_engine.data_management.user_store import UserStatsStore
from realtea_engine.data_management.source_trust_store import SourceTrustStore
from realtea_engine.data_management.review_queue import ReviewQueue
from realtea_engine.data_management.rate_limit_store import InMemoryRateLimitStore

__all__ = [
    "EventStore",
    "UserStatsStore",
    "SourceTrustStore",
    "ReviewQueue",
    "InMemoryRateLimitStore",
]
