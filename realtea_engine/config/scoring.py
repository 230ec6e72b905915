"""Scoring constants for event ranking and user trust.

Rank score (0-100):
    0.40 x credibility + 0.30 x freshness + 0.20 x engagement
    + 0.10 x (neutrality x 10)
    + breaking boost + fact-check modifier - category diversity penalty

Trust score (0-100): base 50 adjusted by account age, email verification,
voting accuracy, abuse signals and contribution history.
"""

from typing import Dict

# ── Rank weights ──────────────────────────────────────────────────────────
RANK_WEIGHTS: Dict[str, float] = {
    "credibility": 0.40,
    "freshness": 0.30,
    "engagement": 0.20,
    "neutrality": 0.10,
}

# Used when an event has not been fact-checked yet
DEFAULT_CREDIBILITY: float = 70.0

# Used when an event carries no creation timestamp
DEFAULT_FRESHNESS: float = 50.0

# ── Engagement ───────────────────────────────────────────────────────────
ENGAGEMENT_POINTS: Dict[str, float] = {
    "views": 0.1,
    "upvotes": 5.0,
    "downvotes": -3.0,
    "comments": 10.0,
    "shares": 15.0,
}
# Points that map to a full 100 engagement score
ENGAGEMENT_SATURATION: float = 500.0

# ── Neutrality (scaled x10 before weighting) ─────────────────────────────
NEUTRALITY_SCORES: Dict[str, float] = {
    "neutral": 10,
    "unknown": 5,
    "left-leaning": 3,
    "right-leaning": 3,
    "left": 2,
    "right": 2,
    "state-controlled": 0,
    "sensational": 0,
    "conspiracy": -5,
}
NEUTRALITY_SCALE: float = 10.0

# ── Additive modifiers ───────────────────────────────────────────────────
BREAKING_BOOST_START: float = 30.0
BREAKING_BOOST_FLOOR: float = 15.0
BREAKING_DECAY_HOURS: float = 24.0

FACT_CHECK_MODIFIERS: Dict[str, float] = {
    "pending": 0.0,
    "verified": 10.0,
    "unverified": 0.0,
    "disputed": -10.0,
    "false": -50.0,
}

# ── Category diversity ───────────────────────────────────────────────────
DIVERSITY_WINDOW: int = 20
DIVERSITY_PENALTY_PER_DUPLICATE: float = 5.0
DIVERSITY_MAX_PENALTY: float = 25.0

# ── Homepage selection ───────────────────────────────────────────────────
HOMEPAGE_MAX_AGE_DAYS: float = 7.0
HOMEPAGE_MIN_CREDIBILITY: float = 60.0
HOMEPAGE_LIMIT: int = 8

# ── Trust score ──────────────────────────────────────────────────────────
TRUST_BASE: int = 50
# (minimum account age in days, bonus); first matching tier wins
ACCOUNT_AGE_TIERS = ((365, 10), (180, 5), (30, 2))
EMAIL_VERIFIED_BONUS: int = 5
ACCURACY_MIN_VOTES: int = 10
ACCURACY_HIGH: float = 0.7
ACCURACY_LOW: float = 0.3
ACCURACY_ADJUSTMENT: int = 10
LOW_CREDIBILITY_UPVOTE_PENALTY: int = 2
BURST_VOTING_PENALTY: int = 15
IP_VIOLATION_PENALTY: int = 3
CORRECTION_BONUS: int = 5
CORRECTION_BONUS_CAP: int = 20
FLAGGED_CONTENT_PENALTY: int = 5
VOTING_INFLUENCE_THRESHOLD: int = 20

# Events below this credibility make an upvote count as a low-credibility upvote
LOW_CREDIBILITY_EVENT_THRESHOLD: float = 40.0

# ── Voting abuse ─────────────────────────────────────────────────────────
RECENT_VOTE_RING_SIZE: int = 20
BURST_WINDOW_SECONDS: int = 300
BURST_VOTE_THRESHOLD: int = 10
CONSENSUS_MIN_VOTES: int = 10

# ── Breaking and contested heuristics ────────────────────────────────────
BREAKING_KEYWORDS = (
    "breaking",
    "urgent",
    "alert",
    "live",
    "just in",
    "developing",
    "emergency",
    "critical",
    "major",
    "massive",
    "catastrophic",
    "tragic",
    "deadly",
)
HIGH_URGENCY_KEYWORDS = (
    "war",
    "attack",
    "disaster",
    "crisis",
    "explosion",
    "crash",
    "death",
    "killed",
    "injured",
    "evacuate",
    "threat",
    "terror",
)
URGENCY_BASE: int = 30
URGENCY_BREAKING_POINTS: int = 15
URGENCY_KEYWORD_POINTS: int = 10
# Two urgency keywords alone mark a story as breaking
URGENCY_KEYWORDS_FOR_BREAKING: int = 2

CONTESTED_MIN_VOTES: int = 10
CONTESTED_RATIO_RANGE = (0.4, 0.6)
CONTESTED_LOW_CREDIBILITY: float = 50.0
CONTESTED_HIGH_ENGAGEMENT_VOTES: int = 50
