"""Event rank scoring with freshness decay and category diversity.

Rank score (0-100, one decimal):

    0.40 x credibility (70 if unchecked)
  + 0.30 x freshness
  + 0.20 x engagement
  + 0.10 x neutrality x 10
  + breaking boost (30 decaying to 15 over 24h, 15 after, 0 if not breaking)
  + fact-check modifier (+10 / 0 / -10 / -50)
  - category diversity penalty

The diversity penalty depends on the ranking itself, so a full ranking is
an explicit two-stage pipeline over the whole candidate set:
score without diversity -> sort -> penalize against the provisional top
20 -> re-sort. Single-event updates skip the diversity stage.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from realtea_engine.config.logging import get_logger
from realtea_engine.config.scoring import (
    BREAKING_BOOST_FLOOR,
    BREAKING_BOOST_START,
    BREAKING_DECAY_HOURS,
    DEFAULT_CREDIBILITY,
    DEFAULT_FRESHNESS,
    DIVERSITY_MAX_PENALTY,
    DIVERSITY_PENALTY_PER_DUPLICATE,
    DIVERSITY_WINDOW,
    ENGAGEMENT_POINTS,
    ENGAGEMENT_SATURATION,
    FACT_CHECK_MODIFIERS,
    HOMEPAGE_LIMIT,
    HOMEPAGE_MAX_AGE_DAYS,
    HOMEPAGE_MIN_CREDIBILITY,
    NEUTRALITY_SCALE,
    NEUTRALITY_SCORES,
    RANK_WEIGHTS,
)
from realtea_engine.data_management.repository import EventRepository
from realtea_engine.data_management.schemas import (
    BiasLabel,
    Event,
    FactCheckStatus,
)
from realtea_engine.ranking.breaking_heuristic import is_contested

logger = get_logger("ranking.scorer")


def clamp_score(value: float) -> float:
    return round(max(0.0, min(100.0, value)), 1)


def event_age_hours(created_at: Optional[datetime], now: datetime) -> Optional[float]:
    if created_at is None:
        return None
    return max(0.0, (now - created_at).total_seconds() / 3600)


def freshness_score(created_at: Optional[datetime], now: datetime) -> float:
    """
    Piecewise-linear freshness decay.

    | Age        | Score               |
    |------------|---------------------|
    | < 6h       | 100                 |
    | 6h - 24h   | 100 -> 90           |
    | 1d - 7d    | 90 -> 70            |
    | 7d - 30d   | 70 -> 40            |
    | 30d - 90d  | 40 -> 20            |
    | > 90d      | 20 - (days-90)/10   |

    Events without a creation time score 50.
    """
    hours = event_age_hours(created_at, now)
    if hours is None:
        return DEFAULT_FRESHNESS
    if hours < 6:
        return 100.0
    if hours < 24:
        return 90 + 10 * (1 - (hours - 6) / 18)

    days = hours / 24
    if days < 7:
        return 70 + 20 * (1 - (days - 1) / 6)
    if days < 30:
        return 40 + 30 * (1 - (days - 7) / 23)
    if days < 90:
        return 20 + 20 * (1 - (days - 30) / 60)
    return max(0.0, 20 - (days - 90) / 10)


def engagement_score(event: Event) -> float:
    points = (
        ENGAGEMENT_POINTS["views"] * event.views
        + ENGAGEMENT_POINTS["upvotes"] * event.upvotes
        + ENGAGEMENT_POINTS["downvotes"] * event.downvotes
        + ENGAGEMENT_POINTS["comments"] * event.comment_count
        + ENGAGEMENT_POINTS["shares"] * event.shares
    )
    return max(0.0, min(100.0, points / ENGAGEMENT_SATURATION * 100))


def neutrality_score(bias_label: BiasLabel) -> float:
    """Raw table value (-5..10), before the x10 scaling."""
    return float(NEUTRALITY_SCORES.get(bias_label.value, 5))


def breaking_boost(event: Event, now: datetime) -> float:
    if not event.is_breaking:
        return 0.0
    hours = event_age_hours(event.created_at, now)
    if hours is None or hours >= BREAKING_DECAY_HOURS:
        return BREAKING_BOOST_FLOOR
    decay = (hours / BREAKING_DECAY_HOURS) * (BREAKING_BOOST_START - BREAKING_BOOST_FLOOR)
    return BREAKING_BOOST_START - decay


def fact_check_modifier(status: FactCheckStatus) -> float:
    return FACT_CHECK_MODIFIERS.get(status.value, 0.0)


def diversity_penalty(event: Event, provisional_order: list[Event]) -> float:
    """Penalty for category duplicates among the provisional top window."""
    window = provisional_order[:DIVERSITY_WINDOW]
    duplicates = sum(
        1 for other in window if other.id != event.id and other.category == event.category
    )
    return min(DIVERSITY_MAX_PENALTY, duplicates * DIVERSITY_PENALTY_PER_DUPLICATE)


@dataclass
class RankBreakdown:
    """Per-event score components for debugging and the CLI.

    Attributes:
        credibility: Credibility input (0-100)
        freshness: Freshness sub-score (0-100)
        engagement: Engagement sub-score (0-100)
        neutrality: Neutrality table value (-5..10), unscaled
        breaking_boost: Additive breaking-news boost
        fact_check_modifier: Additive fact-check modifier
        provisional_score: Clamped score before diversity
        diversity_penalty: Penalty from the second pass (0 for single updates)
        rank_score: Final clamped score
    """

    event_id: str
    credibility: float
    freshness: float
    engagement: float
    neutrality: float
    breaking_boost: float
    fact_check_modifier: float
    provisional_score: float
    diversity_penalty: float = 0.0
    rank_score: float = 0.0

    @property
    def weighted_sum(self) -> float:
        return (
            RANK_WEIGHTS["credibility"] * self.credibility
            + RANK_WEIGHTS["freshness"] * self.freshness
            + RANK_WEIGHTS["engagement"] * self.engagement
            + RANK_WEIGHTS["neutrality"] * self.neutrality * NEUTRALITY_SCALE
        )


class EventRankScorer:
    """
    Computes rank scores and orders candidate events.

    Pure methods (score_event, rank_events, rank_score, top_ranked,
    homepage_events, ranking_distribution) work on Event lists. Only
    update_event_rank touches storage, so a repository is optional.

    Usage:
        scorer = EventRankScorer(event_store)
        ranked = scorer.rank_events(events)
        await scorer.update_event_rank("evt-1")
    """

    def __init__(self, event_repository: Optional[EventRepository] = None):
        self._events = event_repository
        self._logger = logger

    def score_event(self, event: Event, now: Optional[datetime] = None) -> RankBreakdown:
        """Score one event without the diversity stage."""
        now = now or datetime.now(timezone.utc)
        breakdown = RankBreakdown(
            event_id=event.id,
            credibility=(
                event.credibility_score
                if event.credibility_score is not None
                else DEFAULT_CREDIBILITY
            ),
            freshness=freshness_score(event.created_at, now),
            engagement=engagement_score(event),
            neutrality=neutrality_score(event.bias_label),
            breaking_boost=breaking_boost(event, now),
            fact_check_modifier=fact_check_modifier(event.fact_check_status),
            provisional_score=0.0,
        )
        breakdown.provisional_score = clamp_score(
            breakdown.weighted_sum + breakdown.breaking_boost + breakdown.fact_check_modifier
        )
        breakdown.rank_score = breakdown.provisional_score
        return breakdown

    def rank_events(
        self, events: list[Event], now: Optional[datetime] = None
    ) -> list[RankBreakdown]:
        """
        Two-pass ranking over the full candidate set.

        Ties break on event id so the order is deterministic.

        Returns:
            Breakdowns sorted by final rank score, highest first
        """
        now = now or datetime.now(timezone.utc)
        by_id = {e.id: e for e in events}
        scored = {e.id: self.score_event(e, now) for e in events}

        provisional = sorted(
            by_id.values(), key=lambda e: (-scored[e.id].provisional_score, e.id)
        )

        for event in provisional:
            breakdown = scored[event.id]
            breakdown.diversity_penalty = diversity_penalty(event, provisional)
            breakdown.rank_score = clamp_score(
                breakdown.provisional_score - breakdown.diversity_penalty
            )

        return sorted(scored.values(), key=lambda b: (-b.rank_score, b.event_id))

    def rank_score(
        self,
        event: Event,
        candidates: list[Event],
        now: Optional[datetime] = None,
    ) -> float:
        """Final rank score of one event within its candidate set."""
        pool = {c.id: c for c in candidates}
        pool[event.id] = event
        for breakdown in self.rank_events(list(pool.values()), now):
            if breakdown.event_id == event.id:
                return breakdown.rank_score
        raise RuntimeError(f"Event {event.id} missing from its own ranking")

    def top_ranked(
        self, events: list[Event], n: int = 10, now: Optional[datetime] = None
    ) -> list[Event]:
        by_id = {e.id: e for e in events}
        return [by_id[b.event_id] for b in self.rank_events(events, now)[:n]]

    def homepage_events(
        self,
        events: list[Event],
        now: Optional[datetime] = None,
        max_age_days: float = HOMEPAGE_MAX_AGE_DAYS,
        min_credibility: float = HOMEPAGE_MIN_CREDIBILITY,
        limit: int = HOMEPAGE_LIMIT,
    ) -> list[Event]:
        """
        Recent, credible events for the homepage.

        Breaking events are always eligible and listed first; the rest must
        be younger than max_age_days and clear min_credibility.
        """
        now = now or datetime.now(timezone.utc)
        by_id = {e.id: e for e in events}
        selected = []
        for breakdown in self.rank_events(events, now):
            event = by_id[breakdown.event_id]
            if event.is_breaking:
                selected.append(event)
                continue
            hours = event_age_hours(event.created_at, now)
            if hours is None or hours / 24 > max_age_days:
                continue
            credibility = (
                event.credibility_score
                if event.credibility_score is not None
                else DEFAULT_CREDIBILITY
            )
            if credibility >= min_credibility:
                selected.append(event)

        selected.sort(key=lambda e: not e.is_breaking)
        return selected[:limit]

    def ranking_distribution(self, events: list[Event]) -> dict[str, Any]:
        """Summary of stored rank scores plus a count of contested events."""
        if not events:
            return {"total": 0, "average": 0.0, "max": 0.0, "min": 0.0,
                    "categories": {}, "buckets": {}, "contested": 0}

        scores = [e.rank_score for e in events]
        categories: dict[str, int] = {}
        buckets = {"0-20": 0, "20-40": 0, "40-60": 0, "60-80": 0, "80-100": 0}
        for event in events:
            categories[event.category.value] = categories.get(event.category.value, 0) + 1
            lower = min(int(event.rank_score // 20) * 20, 80)
            buckets[f"{lower}-{lower + 20}"] += 1

        return {
            "total": len(events),
            "average": round(sum(scores) / len(scores), 1),
            "max": max(scores),
            "min": min(scores),
            "categories": categories,
            "buckets": buckets,
            "contested": sum(1 for e in events if is_contested(e)),
        }

    async def update_event_rank(
        self, event_id: str, now: Optional[datetime] = None
    ) -> Optional[float]:
        """
        Recompute and store one event's rank without the diversity stage.

        Returns:
            The new rank score, or None if the event is unknown or the write
            failed (the next full re-rank retries it).

        Raises:
            ValueError: If no event repository is configured.
        """
        if self._events is None:
            raise ValueError("EventRankScorer: event repository not configured")
        now = now or datetime.now(timezone.utc)

        event = await self._events.load_event(event_id)
        if event is None:
            return None

        score = self.score_event(event, now).rank_score
        try:
            written = await self._events.save_derived_fields(
                event_id, {"rank_score": score, "ranked_at": now}
            )
        except Exception as e:
            self._logger.error(f"Rank write failed for {event_id}: {e}")
            return None

        if not written:
            return None
        self._logger.debug(f"Rank updated: {event_id} -> {score}")
        return score
