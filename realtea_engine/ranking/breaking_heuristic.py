"""Keyword heuristics for breaking stories and contested events.

Used alongside model output: a story the model calls routine can still be
marked breaking when its headline reads like one, and an event whose
votes split down the middle is surfaced as contested.
"""

from typing import Optional

from realtea_engine.config.scoring import (
    BREAKING_KEYWORDS,
    CONTESTED_HIGH_ENGAGEMENT_VOTES,
    CONTESTED_LOW_CREDIBILITY,
    CONTESTED_MIN_VOTES,
    CONTESTED_RATIO_RANGE,
    DEFAULT_CREDIBILITY,
    HIGH_URGENCY_KEYWORDS,
    URGENCY_BASE,
    URGENCY_BREAKING_POINTS,
    URGENCY_KEYWORD_POINTS,
    URGENCY_KEYWORDS_FOR_BREAKING,
)
from realtea_engine.data_management.schemas import Event


def _headline_text(title: Optional[str], description: Optional[str]) -> str:
    return f"{title or ''} {description or ''}".lower()


def is_breaking_heuristic(title: Optional[str], description: Optional[str]) -> bool:
    """
    True when a headline carries a breaking keyword, or at least two
    high-urgency keywords.

    Matching is by substring, so "live" also matches "lives".
    """
    if not title and not description:
        return False
    text = _headline_text(title, description)

    if any(keyword in text for keyword in BREAKING_KEYWORDS):
        return True
    urgent = sum(1 for keyword in HIGH_URGENCY_KEYWORDS if keyword in text)
    return urgent >= URGENCY_KEYWORDS_FOR_BREAKING


def calculate_urgency_score(title: Optional[str], description: Optional[str]) -> int:
    """Urgency 0-100: base 30, +15 per breaking keyword, +10 per urgency keyword."""
    text = _headline_text(title, description)
    score = URGENCY_BASE
    score += URGENCY_BREAKING_POINTS * sum(1 for k in BREAKING_KEYWORDS if k in text)
    score += URGENCY_KEYWORD_POINTS * sum(1 for k in HIGH_URGENCY_KEYWORDS if k in text)
    return min(score, 100)


def is_contested(event: Event) -> bool:
    """
    Whether readers disagree about an event.

    Needs at least 10 votes. Contested when the upvote share is within
    40-60%, or when an unconvincing event (credibility under 50) still
    draws more than 50 votes.
    """
    total = event.upvotes + event.downvotes
    if total < CONTESTED_MIN_VOTES:
        return False

    ratio = event.upvotes / total
    low, high = CONTESTED_RATIO_RANGE
    if low <= ratio <= high:
        return True

    credibility = (
        event.credibility_score
        if event.credibility_score is not None
        else DEFAULT_CREDIBILITY
    )
    return credibility < CONTESTED_LOW_CREDIBILITY and total > CONTESTED_HIGH_ENGAGEMENT_VOTES
