"""Schema package for events, users, moderation, rate limits and fact-checks.

Usage:
    from realtea_engine.data_management.schemas import Event, Category
    event = Event(id="evt-1", title="Rates rise", category=Category.ECONOMY)
"""

from realtea_engine.data_management.schemas.event_schema import (
    BiasLabel,
    Category,
    Comment,
    Event,
    FactCheckStatus,
)
from realtea_engine.data_management.schemas.user_schema import (
    TrustUpdate,
    UserStats,
    Vote,
    VoteDirection,
    VoteTarget,
)
from realtea_engine.data_management.schemas.moderation_schema import (
    Correction,
    CorrectionStatus,
    ModerationReason,
    ModerationResult,
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
    Severity,
)
from realtea_engine.data_management.schemas.rate_limit_schema import (
    ActionKind,
    RateLimitDecision,
    RateLimitWindow,
)
from realtea_engine.data_management.schemas.source_trust_schema import (
    SourceTrustRecord,
)
from realtea_engine.data_management.schemas.fact_check_schema import (
    Citation,
    ClaimVerdict,
    FactCheckResult,
    RejectionReason,
)

__all__ = [
    # Events
    "Event",
    "Comment",
    "Category",
    "BiasLabel",
    "FactCheckStatus",
    # Users
    "UserStats",
    "Vote",
    "VoteDirection",
    "VoteTarget",
    "TrustUpdate",
    # Moderation
    "ModerationResult",
    "ModerationReason",
    "Severity",
    "ReviewQueueEntry",
    "ReviewKind",
    "ReviewStatus",
    "Correction",
    "CorrectionStatus",
    # Rate limits
    "ActionKind",
    "RateLimitWindow",
    "RateLimitDecision",
    # Source trust
    "SourceTrustRecord",
    # Fact-check
    "Citation",
    "ClaimVerdict",
    "FactCheckResult",
    "RejectionReason",
]
