"""Tests for EngagementTracker.

Tests cover:
- Views, likes, unlikes and shares move counters atomically
- One like per user (duplicates rejected, concurrent duplicates too)
- Comments: rate limit, moderation gate, review queue
- Resolution of held comments, acted on once
- Construction requires an event repository and a review queue
- Single-event re-rank after engagement
"""

import asyncio
from datetime import datetime, timezone

import pytest

from realtea_engine.abuse.rate_limiter import RateLimiter, RateLimitPolicy
from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.data_management.event_store import EventStore
from realtea_engine.data_management.rate_limit_store import InMemoryRateLimitStore
from realtea_engine.data_management.review_queue import ReviewQueue
from realtea_engine.data_management.schemas import (
    ActionKind,
    Event,
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
)
from realtea_engine.data_management.user_store import UserStatsStore
from realtea_engine.ranking.engagement_tracker import EngagementTracker
from realtea_engine.ranking.rank_scorer import EventRankScorer

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
async def event_store() -> EventStore:
    store = EventStore()
    await store.save_event(Event(id="evt-1", title="Launch delayed", created_at=NOW))
    return store


@pytest.fixture
def user_store() -> UserStatsStore:
    return UserStatsStore()


@pytest.fixture
def queue() -> ReviewQueue:
    return ReviewQueue()


@pytest.fixture
def tracker(event_store, user_store, queue) -> EngagementTracker:
    limiter = RateLimiter(
        InMemoryRateLimitStore(),
        {ActionKind.COMMENT: RateLimitPolicy(limit=3, window_seconds=60)},
    )
    return EngagementTracker(
        event_store,
        EventRankScorer(event_store),
        rate_limiter=limiter,
        review_queue=queue,
        trust_updater=TrustScoreUpdater(user_store),
    )


# ── Counter Tests ────────────────────────────────────────────────────────


class TestCounters:
    @pytest.mark.asyncio
    async def test_record_view(self, tracker, event_store):
        await tracker.record_view("evt-1")
        result = await tracker.record_view("evt-1")
        assert result.count == 2
        assert (await event_store.load_event("evt-1")).views == 2

    @pytest.mark.asyncio
    async def test_view_unknown_event(self, tracker):
        result = await tracker.record_view("missing")
        assert result.error == "event_not_found"

    @pytest.mark.asyncio
    async def test_share_reranks(self, tracker, event_store):
        result = await tracker.record_share("evt-1", user_id="user-1", now=NOW)
        stored = await event_store.load_event("evt-1")
        assert stored.shares == 1
        assert result.rank_score == stored.rank_score
        assert stored.ranked_at == NOW


class TestLikes:
    @pytest.mark.asyncio
    async def test_like_once(self, tracker, event_store):
        result = await tracker.record_like("evt-1", "user-1", now=NOW)
        assert result.success
        assert result.count == 1
        stored = await event_store.load_event("evt-1")
        assert stored.liked_by == {"user-1"}

    @pytest.mark.asyncio
    async def test_duplicate_like_rejected(self, tracker, event_store):
        await tracker.record_like("evt-1", "user-1", now=NOW)
        result = await tracker.record_like("evt-1", "user-1", now=NOW)

        assert result.success is False
        assert result.error == "already_liked"
        assert (await event_store.load_event("evt-1")).upvotes == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_likes(self, tracker, event_store):
        results = await asyncio.gather(
            *(tracker.record_like("evt-1", "user-1", now=NOW) for _ in range(5))
        )
        assert sum(1 for r in results if r.success) == 1
        assert (await event_store.load_event("evt-1")).upvotes == 1

    @pytest.mark.asyncio
    async def test_unlike(self, tracker, event_store):
        await tracker.record_like("evt-1", "user-1", now=NOW)
        result = await tracker.record_unlike("evt-1", "user-1", now=NOW)
        assert result.success
        stored = await event_store.load_event("evt-1")
        assert stored.upvotes == 0
        assert stored.liked_by == set()

    @pytest.mark.asyncio
    async def test_unlike_without_like(self, tracker):
        result = await tracker.record_unlike("evt-1", "user-1", now=NOW)
        assert result.error == "not_liked"


# ── Comment Tests ────────────────────────────────────────────────────────


class TestComments:
    @pytest.mark.asyncio
    async def test_clean_comment_published(self, tracker, event_store):
        result = await tracker.record_comment(
            "evt-1", "user-1", "Confirmed by the agency press office.", username="ana", now=NOW
        )

        assert result.success
        assert result.count == 1
        stored = await event_store.load_event("evt-1")
        assert stored.comment_count == 1
        assert stored.comments[0].id == result.comment_id
        assert stored.comments[0].trust_score_snapshot == 50

    @pytest.mark.asyncio
    async def test_flagged_comment_held(self, tracker, event_store, queue):
        result = await tracker.record_comment("evt-1", "user-1", "death to immigrants", now=NOW)

        assert result.success is False
        assert result.error == "flagged"
        entry = await queue.get(result.review_entry_id)
        assert entry.kind == ReviewKind.COMMENT
        assert entry.reason == "hate_speech"
        assert (await event_store.load_event("evt-1")).comment_count == 0

    @pytest.mark.asyncio
    async def test_comment_rate_limit(self, tracker):
        for i in range(3):
            assert (await tracker.record_comment("evt-1", "user-1", f"Note {i}", now=NOW)).success
        result = await tracker.record_comment("evt-1", "user-1", "One more", now=NOW)
        assert result.error == "rate_limited"
        assert result.reset_at is not None

    @pytest.mark.asyncio
    async def test_empty_comment(self, tracker):
        with pytest.raises(ValueError):
            await tracker.record_comment("evt-1", "user-1", "  ", now=NOW)

    @pytest.mark.asyncio
    async def test_approved_held_comment_published(self, tracker, event_store):
        held = await tracker.record_comment("evt-1", "user-1", "This is fake news", now=NOW)
        result = await tracker.resolve_flagged_comment(held.review_entry_id, approved=True, now=NOW)

        assert result.success
        stored = await event_store.load_event("evt-1")
        assert stored.comment_count == 1
        assert stored.comments[0].text == "This is fake news"

    @pytest.mark.asyncio
    async def test_rejected_held_comment_penalizes_author(self, tracker, user_store):
        held = await tracker.record_comment("evt-1", "user-1", "This is fake news", now=NOW)
        await tracker.resolve_flagged_comment(held.review_entry_id, approved=False, now=NOW)

        stats = await user_store.load_user_stats("user-1")
        assert stats.flagged_content_count == 1

    @pytest.mark.asyncio
    async def test_resolve_unknown_entry(self, tracker):
        result = await tracker.resolve_flagged_comment("rev-missing", approved=True, now=NOW)
        assert result.error == "review_entry_not_found"

    @pytest.mark.asyncio
    async def test_second_approval_does_not_republish(self, tracker, event_store):
        held = await tracker.record_comment("evt-1", "user-1", "This is fake news", now=NOW)
        await tracker.resolve_flagged_comment(held.review_entry_id, approved=True, now=NOW)

        again = await tracker.resolve_flagged_comment(held.review_entry_id, approved=True, now=NOW)

        assert again.error == "already_resolved"
        stored = await event_store.load_event("evt-1")
        assert stored.comment_count == 1
        assert len(stored.comments) == 1

    @pytest.mark.asyncio
    async def test_second_rejection_does_not_penalize_again(self, tracker, user_store):
        held = await tracker.record_comment("evt-1", "user-1", "This is fake news", now=NOW)
        await tracker.resolve_flagged_comment(held.review_entry_id, approved=False, now=NOW)

        again = await tracker.resolve_flagged_comment(held.review_entry_id, approved=False, now=NOW)

        assert again.error == "already_resolved"
        stats = await user_store.load_user_stats("user-1")
        assert stats.flagged_content_count == 1

    @pytest.mark.asyncio
    async def test_correction_entry_left_pending(self, tracker, queue):
        await queue.enqueue(
            ReviewQueueEntry(
                id="corr-1",
                kind=ReviewKind.CORRECTION,
                target_id="evt-1",
                user_id="user-1",
                content="Wrong year",
                reason="user_correction",
            )
        )
        result = await tracker.resolve_flagged_comment("corr-1", approved=True, now=NOW)

        assert result.error == "review_entry_not_found"
        assert (await queue.get("corr-1")).status == ReviewStatus.PENDING


# ── Construction Tests ───────────────────────────────────────────────────


class TestConstruction:
    def test_requires_review_queue(self, event_store):
        with pytest.raises(ValueError, match="review queue not configured"):
            EngagementTracker(event_store, EventRankScorer(event_store))

    def test_requires_event_repository(self, queue):
        with pytest.raises(ValueError, match="event repository not configured"):
            EngagementTracker(None, EventRankScorer(), review_queue=queue)
