"""User trust score as a pure function of a UserStats snapshot.

Score breakdown (clamped to 0-100 and rounded):

| Term                    | Points                                        |
|-------------------------|-----------------------------------------------|
| base                    | 50                                            |
| account age             | +10 (>365d) / +5 (>180d) / +2 (>30d)          |
| email verified          | +5                                            |
| voting accuracy         | +10 if > 0.7, -10 if < 0.3 (needs > 10 votes)  |
| low-credibility upvotes | -2 each                                       |
| burst voting flag       | -15                                           |
| IP violations           | -3 each                                       |
| approved corrections    | +5 each, at most +20                          |
| flagged content         | -5 each                                       |
"""

from datetime import datetime, timezone
from typing import Optional

from realtea_engine.config.scoring import (
    ACCOUNT_AGE_TIERS,
    ACCURACY_ADJUSTMENT,
    ACCURACY_HIGH,
    ACCURACY_LOW,
    ACCURACY_MIN_VOTES,
    BURST_VOTING_PENALTY,
    CORRECTION_BONUS,
    CORRECTION_BONUS_CAP,
    EMAIL_VERIFIED_BONUS,
    FLAGGED_CONTENT_PENALTY,
    IP_VIOLATION_PENALTY,
    LOW_CREDIBILITY_UPVOTE_PENALTY,
    TRUST_BASE,
    VOTING_INFLUENCE_THRESHOLD,
)
from realtea_engine.data_management.schemas import UserStats


def account_age_bonus(account_age_days: float) -> int:
    """Largest applicable age tier; tiers are mutually exclusive."""
    for min_days, bonus in ACCOUNT_AGE_TIERS:
        if account_age_days > min_days:
            return bonus
    return 0


def accuracy_adjustment(total_votes: int, aligned_votes: int) -> int:
    """+/-10 for consistently aligned or misaligned voters with > 10 judged votes."""
    if total_votes <= ACCURACY_MIN_VOTES:
        return 0
    accuracy = aligned_votes / total_votes
    if accuracy > ACCURACY_HIGH:
        return ACCURACY_ADJUSTMENT
    if accuracy < ACCURACY_LOW:
        return -ACCURACY_ADJUSTMENT
    return 0


def compute_trust_score(stats: UserStats, now: Optional[datetime] = None) -> int:
    """
    Derive a 0-100 trust score from a UserStats snapshot.

    Same snapshot and clock give the same score; nothing else is read.

    Args:
        stats: User accumulator snapshot
        now: Reference time for account age (defaults to current UTC time)

    Returns:
        Integer trust score in [0, 100]
    """
    now = now or datetime.now(timezone.utc)
    age_days = (now - stats.account_created_at).total_seconds() / 86400

    score = TRUST_BASE
    score += account_age_bonus(age_days)
    if stats.email_verified:
        score += EMAIL_VERIFIED_BONUS
    score += accuracy_adjustment(stats.total_votes, stats.aligned_votes)
    score -= LOW_CREDIBILITY_UPVOTE_PENALTY * stats.low_credibility_upvotes
    if stats.burst_voting_flag:
        score -= BURST_VOTING_PENALTY
    score -= IP_VIOLATION_PENALTY * stats.ip_violations
    score += min(CORRECTION_BONUS_CAP, CORRECTION_BONUS * stats.approved_corrections)
    score -= FLAGGED_CONTENT_PENALTY * stats.flagged_content_count

    return int(round(max(0, min(100, score))))


def has_voting_influence(stats: UserStats, now: Optional[datetime] = None) -> bool:
    """Users below the threshold still vote, but are ignored for consensus."""
    return compute_trust_score(stats, now) >= VOTING_INFLUENCE_THRESHOLD


def trust_level(score: int) -> str:
    """Display tier for a trust score."""
    if score >= 80:
        return "trusted"
    if score >= 50:
        return "established"
    if score >= VOTING_INFLUENCE_THRESHOLD:
        return "new"
    return "restricted"
