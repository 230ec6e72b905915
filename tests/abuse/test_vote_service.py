"""Tests for VoteService.

Tests cover:
- Counter deltas for cast, switch and withdraw
- One active vote per user and event
- Rate-limited and unknown-event votes leave counters untouched
- Low-credibility upvote tracking
- Burst voting detection and review flag
- Consensus settlement (minimum votes, ties, idempotence)
- Comment votes and author feedback
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from realtea_engine.abuse.rate_limiter import RateLimiter, RateLimitPolicy
from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.abuse.vote_service import VoteService, counter_deltas, is_burst
from realtea_engine.data_management.event_store import EventStore
from realtea_engine.data_management.rate_limit_store import InMemoryRateLimitStore
from realtea_engine.data_management.review_queue import ReviewQueue
from realtea_engine.data_management.schemas import (
    ActionKind,
    Comment,
    Event,
    ReviewKind,
    VoteDirection,
)
from realtea_engine.data_management.user_store import UserStatsStore
from realtea_engine.moderation.flags import FlagService

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
UP = VoteDirection.UP
DOWN = VoteDirection.DOWN


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def event_store() -> EventStore:
    return EventStore()


@pytest.fixture
def user_store() -> UserStatsStore:
    return UserStatsStore()


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(
        InMemoryRateLimitStore(),
        {ActionKind.VOTE: RateLimitPolicy(limit=20, window_seconds=3600)},
    )


@pytest.fixture
def service(event_store, user_store, limiter) -> VoteService:
    return VoteService(event_store, user_store, limiter, TrustScoreUpdater(user_store))


@pytest.fixture
async def event(event_store) -> Event:
    event = Event(id="evt-1", title="Bridge reopens", created_at=NOW)
    await event_store.save_event(event)
    return event


# ── Helpers ──────────────────────────────────────────────────────────────


def _yield_before_increment(store: EventStore) -> None:
    """Suspend inside every counter write so concurrent casts interleave."""
    atomic_increment = store.atomic_increment

    async def yielding(event_id, field, delta):
        await asyncio.sleep(0)
        return await atomic_increment(event_id, field, delta)

    store.atomic_increment = yielding


# ── Helper Tests ─────────────────────────────────────────────────────────


class TestCounterDeltas:
    @pytest.mark.parametrize(
        "old,new,expected",
        [
            (VoteDirection.NONE, UP, (1, 0)),
            (VoteDirection.NONE, DOWN, (0, 1)),
            (UP, VoteDirection.NONE, (-1, 0)),
            (UP, DOWN, (-1, 1)),
            (DOWN, UP, (1, -1)),
            (DOWN, DOWN, (0, 0)),
        ],
    )
    def test_deltas(self, old, new, expected):
        assert counter_deltas(old, new) == expected

    def test_burst_needs_more_than_ten_in_window(self):
        recent = [NOW - timedelta(seconds=i) for i in range(10)]
        assert is_burst(recent, NOW) is False
        assert is_burst(recent + [NOW], NOW) is True

    def test_old_votes_do_not_count_toward_burst(self):
        old = [NOW - timedelta(minutes=10)] * 15
        assert is_burst(old, NOW) is False


# ── Cast Vote Tests ──────────────────────────────────────────────────────


class TestCastVote:
    @pytest.mark.asyncio
    async def test_upvote(self, service, event, event_store):
        result = await service.cast_vote("user-1", "evt-1", UP, now=NOW)

        assert result.success
        assert result.direction == UP
        stored = await event_store.load_event("evt-1")
        assert (stored.upvotes, stored.downvotes) == (1, 0)

    @pytest.mark.asyncio
    async def test_same_direction_withdraws(self, service, event, event_store):
        await service.cast_vote("user-1", "evt-1", UP, now=NOW)
        result = await service.cast_vote("user-1", "evt-1", UP, now=NOW)

        assert result.direction == VoteDirection.NONE
        stored = await event_store.load_event("evt-1")
        assert (stored.upvotes, stored.downvotes) == (0, 0)

    @pytest.mark.asyncio
    async def test_switch_moves_one_count(self, service, event, event_store):
        await service.cast_vote("user-1", "evt-1", UP, now=NOW)
        result = await service.cast_vote("user-1", "evt-1", DOWN, now=NOW)

        assert result.direction == DOWN
        stored = await event_store.load_event("evt-1")
        assert (stored.upvotes, stored.downvotes) == (0, 1)
        vote = await event_store.get_vote("user-1", "evt-1")
        assert vote.direction == DOWN

    @pytest.mark.asyncio
    async def test_concurrent_same_direction_counts_match_vote(self, service, event, event_store):
        _yield_before_increment(event_store)

        await asyncio.gather(
            service.cast_vote("user-1", "evt-1", UP, now=NOW),
            service.cast_vote("user-1", "evt-1", UP, now=NOW),
        )

        stored = await event_store.load_event("evt-1")
        vote = await event_store.get_vote("user-1", "evt-1")
        # second cast withdraws the first
        assert vote.direction == VoteDirection.NONE
        assert (stored.upvotes, stored.downvotes) == (0, 0)

    @pytest.mark.asyncio
    async def test_concurrent_opposite_directions_one_active_vote(
        self, service, event, event_store
    ):
        _yield_before_increment(event_store)

        await asyncio.gather(
            service.cast_vote("user-1", "evt-1", UP, now=NOW),
            service.cast_vote("user-1", "evt-1", DOWN, now=NOW),
        )

        stored = await event_store.load_event("evt-1")
        vote = await event_store.get_vote("user-1", "evt-1")
        expected = (int(vote.direction == UP), int(vote.direction == DOWN))
        assert (stored.upvotes, stored.downvotes) == expected
        assert stored.upvotes + stored.downvotes == 1

    @pytest.mark.asyncio
    async def test_unknown_event(self, service):
        result = await service.cast_vote("user-1", "missing", UP, now=NOW)
        assert result.success is False
        assert result.error == "event_not_found"

    @pytest.mark.asyncio
    async def test_rate_limited_vote_changes_nothing(self, event_store, user_store, event):
        limiter = RateLimiter(
            InMemoryRateLimitStore(),
            {ActionKind.VOTE: RateLimitPolicy(limit=1, window_seconds=3600)},
        )
        service = VoteService(event_store, user_store, limiter, TrustScoreUpdater(user_store))

        await service.cast_vote("user-1", "evt-1", UP, now=NOW)
        result = await service.cast_vote("user-1", "evt-1", DOWN, now=NOW)

        assert result.success is False
        assert result.error == "rate_limited"
        assert result.reset_at is not None
        stored = await event_store.load_event("evt-1")
        assert (stored.upvotes, stored.downvotes) == (1, 0)

    @pytest.mark.asyncio
    async def test_direction_none_rejected(self, service, event):
        with pytest.raises(ValueError):
            await service.cast_vote("user-1", "evt-1", VoteDirection.NONE, now=NOW)

    @pytest.mark.asyncio
    async def test_low_credibility_upvote_tracked(self, service, event_store, user_store):
        await event_store.save_event(
            Event(id="evt-low", title="Miracle cure", credibility_score=25.0)
        )
        await service.cast_vote("user-1", "evt-low", UP, now=NOW)

        stats = await user_store.load_user_stats("user-1")
        assert stats.low_credibility_upvotes == 1

    @pytest.mark.asyncio
    async def test_downvote_on_low_credibility_not_tracked(self, service, event_store, user_store):
        await event_store.save_event(
            Event(id="evt-low", title="Miracle cure", credibility_score=25.0)
        )
        await service.cast_vote("user-1", "evt-low", DOWN, now=NOW)

        stats = await user_store.load_user_stats("user-1")
        assert stats.low_credibility_upvotes == 0

    @pytest.mark.asyncio
    async def test_ranker_called_after_vote(self, event_store, user_store, limiter, event):
        ranker = AsyncMock()
        service = VoteService(
            event_store, user_store, limiter, TrustScoreUpdater(user_store), ranker=ranker
        )
        await service.cast_vote("user-1", "evt-1", UP, now=NOW)
        ranker.update_event_rank.assert_awaited_once_with("evt-1", now=NOW)


class TestBurstVoting:
    @pytest.mark.asyncio
    async def test_eleven_votes_in_five_minutes(self, service, event_store, user_store):
        for i in range(11):
            await event_store.save_event(Event(id=f"evt-{i}", title=f"Event {i}"))

        results = []
        for i in range(11):
            results.append(
                await service.cast_vote(
                    "user-1", f"evt-{i}", UP, now=NOW + timedelta(seconds=i * 10)
                )
            )

        assert not any(r.burst_detected for r in results[:10])
        assert results[10].burst_detected is True
        stats = await user_store.load_user_stats("user-1")
        assert stats.burst_voting_flag is True
        assert len(stats.recent_vote_timestamps) == 11

    @pytest.mark.asyncio
    async def test_burst_voter_flagged_for_review(self, event_store, user_store, limiter):
        queue = ReviewQueue()
        service = VoteService(
            event_store,
            user_store,
            limiter,
            TrustScoreUpdater(user_store),
            flag_service=FlagService(event_store, queue),
        )
        for i in range(12):
            await event_store.save_event(Event(id=f"evt-{i}", title=f"Event {i}"))
        for i in range(12):
            await service.cast_vote("user-1", f"evt-{i}", UP, now=NOW + timedelta(seconds=i))

        flags = await queue.list_pending(ReviewKind.USER)
        assert len(flags) == 1
        assert flags[0].target_id == "user-1"
        assert flags[0].reason == "burst_voting"

    @pytest.mark.asyncio
    async def test_spread_out_votes_are_not_burst(self, service, event_store, user_store):
        for i in range(12):
            await event_store.save_event(Event(id=f"evt-{i}", title=f"Event {i}"))
        for i in range(12):
            await service.cast_vote(
                "user-1", f"evt-{i}", UP, now=NOW + timedelta(minutes=i)
            )

        stats = await user_store.load_user_stats("user-1")
        assert stats.burst_voting_flag is False


# ── Consensus Tests ──────────────────────────────────────────────────────


class TestConsensus:
    @pytest.mark.asyncio
    async def test_settles_after_ten_influential_votes(self, service, event, user_store):
        for i in range(7):
            await service.cast_vote(f"up-{i}", "evt-1", UP, now=NOW)
        for i in range(3):
            await service.cast_vote(f"down-{i}", "evt-1", DOWN, now=NOW)

        up_stats = await user_store.load_user_stats("up-0")
        down_stats = await user_store.load_user_stats("down-0")
        assert (up_stats.total_votes, up_stats.aligned_votes) == (1, 1)
        assert (down_stats.total_votes, down_stats.aligned_votes) == (1, 0)

    @pytest.mark.asyncio
    async def test_no_settlement_below_minimum(self, service, event, user_store):
        for i in range(9):
            await service.cast_vote(f"user-{i}", "evt-1", UP, now=NOW)
        stats = await user_store.load_user_stats("user-0")
        assert stats.total_votes == 0

    @pytest.mark.asyncio
    async def test_tie_is_not_settled(self, service, event):
        for i in range(5):
            await service.cast_vote(f"up-{i}", "evt-1", UP, now=NOW)
        for i in range(5):
            await service.cast_vote(f"down-{i}", "evt-1", DOWN, now=NOW)
        assert await service.settle_consensus("evt-1", now=NOW) == 0

    @pytest.mark.asyncio
    async def test_votes_settle_once(self, service, event, user_store):
        for i in range(10):
            await service.cast_vote(f"user-{i}", "evt-1", UP, now=NOW)

        assert await service.settle_consensus("evt-1", now=NOW) == 0
        stats = await user_store.load_user_stats("user-0")
        assert stats.total_votes == 1

    @pytest.mark.asyncio
    async def test_low_trust_voters_ignored(self, service, event, user_store):
        # 50 - 5 x 7 flagged = 15, below the influence threshold
        for i in range(10):
            for _ in range(7):
                await user_store.increment_counter(f"user-{i}", "flagged_content_count", 1)
        for i in range(10):
            await service.cast_vote(f"user-{i}", "evt-1", UP, now=NOW)

        stats = await user_store.load_user_stats("user-0")
        assert stats.total_votes == 0


# ── Comment Vote Tests ───────────────────────────────────────────────────


class TestCommentVotes:
    @pytest.fixture
    async def comment(self, event_store, event) -> Comment:
        comment = Comment(id="cmt-1", event_id="evt-1", user_id="author", text="Confirmed by AP.")
        await event_store.append_comment("evt-1", comment)
        return comment

    @pytest.mark.asyncio
    async def test_upvote_rewards_author(self, service, comment, event_store, user_store):
        result = await service.vote_on_comment("reader", "cmt-1", UP, now=NOW)

        assert result.success
        assert result.upvotes == 1
        assert (await event_store.find_comment("cmt-1")).upvotes == 1
        assert (await user_store.load_user_stats("author")).aligned_votes == 1

    @pytest.mark.asyncio
    async def test_downvote_flags_author(self, service, comment, user_store):
        await service.vote_on_comment("reader", "cmt-1", DOWN, now=NOW)
        assert (await user_store.load_user_stats("author")).flagged_content_count == 1

    @pytest.mark.asyncio
    async def test_self_vote_rejected(self, service, comment):
        result = await service.vote_on_comment("author", "cmt-1", UP, now=NOW)
        assert result.error == "self_vote"

    @pytest.mark.asyncio
    async def test_unknown_comment(self, service, event):
        result = await service.vote_on_comment("reader", "nope", UP, now=NOW)
        assert result.error == "comment_not_found"

    @pytest.mark.asyncio
    async def test_concurrent_comment_votes_one_active_vote(self, service, comment, event_store):
        increment = event_store.increment_comment_votes

        async def yielding(comment_id, upvotes, downvotes):
            await asyncio.sleep(0)
            return await increment(comment_id, upvotes, downvotes)

        event_store.increment_comment_votes = yielding

        await asyncio.gather(
            service.vote_on_comment("reader", "cmt-1", UP, now=NOW),
            service.vote_on_comment("reader", "cmt-1", UP, now=NOW),
        )

        stored = await event_store.find_comment("cmt-1")
        assert (await event_store.get_vote("reader", "cmt-1")).direction == VoteDirection.NONE
        assert stored.upvotes == 0
