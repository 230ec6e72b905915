"""Rate limiting, trust scoring and abuse-aware voting."""

from realtea_engine.abuse.rate_limiter import RateLimiter, RateLimitPolicy
from realtea_engine.abuse.trust_calculator import (
    compute_trust_score,
    has_voting_influence,
)
from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.abuse.vote_service import VoteService

__all__ = [
    "RateLimiter",
    "RateLimitPolicy",
    "compute_trust_score",
    "has_voting_influence",
    "TrustScoreUpdater",
    "VoteService",
]
