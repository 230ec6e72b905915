"""Comprehensive tests for EventStore.

Tests cover:
- Save, load and snapshot isolation
- Naive timestamps read as UTC
- Atomic counter increments (floor at 0, unknown events, concurrency)
- Derived-field writes never touch counters
- likedBy membership
- Comments and comment votes
- Vote records
- JSON persistence round trip
"""

import asyncio
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from realtea_engine.data_management.event_store import EventStore
from realtea_engine.data_management.schemas import (
    Comment,
    Event,
    FactCheckStatus,
    Vote,
    VoteDirection,
    VoteTarget,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> EventStore:
    return EventStore()


@pytest.fixture
def event() -> Event:
    return Event(id="evt-1", title="Ceasefire agreed", created_at=NOW, views=3)


# ── Save and Load Tests ──────────────────────────────────────────────────


class TestSaveAndLoad:
    @pytest.mark.asyncio
    async def test_roundtrip(self, store, event):
        await store.save_event(event)
        loaded = await store.load_event("evt-1")
        assert loaded.title == "Ceasefire agreed"

    @pytest.mark.asyncio
    async def test_snapshot_isolated(self, store, event):
        await store.save_event(event)
        loaded = await store.load_event("evt-1")
        loaded.views = 999
        assert (await store.load_event("evt-1")).views == 3

    @pytest.mark.asyncio
    async def test_unknown(self, store):
        assert await store.load_event("missing") is None

    def test_score_bounds_validated(self):
        with pytest.raises(ValidationError):
            Event(id="e", title="t", credibility_score=101)

    def test_naive_created_at_read_as_utc(self):
        event = Event.model_validate(
            {"id": "e", "title": "t", "created_at": "2024-03-15T12:00:00"}
        )
        assert event.created_at == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


# ── Counter Tests ────────────────────────────────────────────────────────


class TestAtomicIncrement:
    @pytest.mark.asyncio
    async def test_increment(self, store, event):
        await store.save_event(event)
        assert await store.atomic_increment("evt-1", "views", 2) == 5

    @pytest.mark.asyncio
    async def test_floor_at_zero(self, store, event):
        await store.save_event(event)
        assert await store.atomic_increment("evt-1", "downvotes", -1) == 0

    @pytest.mark.asyncio
    async def test_unknown_event(self, store):
        assert await store.atomic_increment("missing", "views", 1) is None

    @pytest.mark.asyncio
    async def test_non_counter_rejected(self, store, event):
        await store.save_event(event)
        with pytest.raises(ValueError):
            await store.atomic_increment("evt-1", "rank_score", 1)

    @pytest.mark.asyncio
    async def test_concurrent_increments(self, store, event):
        await store.save_event(event)
        await asyncio.gather(*(store.atomic_increment("evt-1", "shares", 1) for _ in range(50)))
        assert (await store.load_event("evt-1")).shares == 50


class TestDerivedFields:
    @pytest.mark.asyncio
    async def test_write_keeps_counters(self, store, event):
        await store.save_event(event)
        await store.atomic_increment("evt-1", "upvotes", 4)

        written = await store.save_derived_fields(
            "evt-1",
            {"rank_score": 61.5, "fact_check_status": FactCheckStatus.VERIFIED},
        )

        stored = await store.load_event("evt-1")
        assert written is True
        assert stored.rank_score == 61.5
        assert stored.upvotes == 4

    @pytest.mark.asyncio
    async def test_counter_not_writable(self, store, event):
        await store.save_event(event)
        with pytest.raises(ValueError):
            await store.save_derived_fields("evt-1", {"views": 0})

    @pytest.mark.asyncio
    async def test_unknown_event(self, store):
        assert await store.save_derived_fields("missing", {"rank_score": 1.0}) is False


# ── Engagement Tests ─────────────────────────────────────────────────────


class TestLikedBy:
    @pytest.mark.asyncio
    async def test_add_once(self, store, event):
        await store.save_event(event)
        assert await store.add_to_liked_by("evt-1", "u1") is True
        assert await store.add_to_liked_by("evt-1", "u1") is False

    @pytest.mark.asyncio
    async def test_remove(self, store, event):
        await store.save_event(event)
        assert await store.remove_from_liked_by("evt-1", "u1") is False
        await store.add_to_liked_by("evt-1", "u1")
        assert await store.remove_from_liked_by("evt-1", "u1") is True


class TestComments:
    @pytest.mark.asyncio
    async def test_append_and_find(self, store, event):
        await store.save_event(event)
        comment = Comment(id="c1", event_id="evt-1", user_id="u1", text="Source?")
        assert await store.append_comment("evt-1", comment) is True
        assert (await store.find_comment("c1")).text == "Source?"

    @pytest.mark.asyncio
    async def test_comment_votes_floor(self, store, event):
        await store.save_event(event)
        await store.append_comment(
            "evt-1", Comment(id="c1", event_id="evt-1", user_id="u1", text="x")
        )
        await store.increment_comment_votes("c1", 1, -1)
        comment = await store.find_comment("c1")
        assert (comment.upvotes, comment.downvotes) == (1, 0)

    @pytest.mark.asyncio
    async def test_append_to_unknown_event(self, store):
        comment = Comment(id="c1", event_id="nope", user_id="u1", text="x")
        assert await store.append_comment("nope", comment) is False


class TestVotes:
    @pytest.mark.asyncio
    async def test_one_vote_per_key(self, store):
        await store.save_vote(Vote(user_id="u1", target_id="evt-1", direction=VoteDirection.UP))
        await store.save_vote(Vote(user_id="u1", target_id="evt-1", direction=VoteDirection.DOWN))

        votes = await store.list_votes("evt-1")
        assert len(votes) == 1
        assert votes[0].direction == VoteDirection.DOWN

    @pytest.mark.asyncio
    async def test_swap_vote_sets_switches_and_toggles(self, store):
        old, vote = await store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.UP, NOW)
        assert (old, vote.direction) == (VoteDirection.NONE, VoteDirection.UP)

        old, vote = await store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.DOWN, NOW)
        assert (old, vote.direction) == (VoteDirection.UP, VoteDirection.DOWN)

        old, vote = await store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.DOWN, NOW)
        assert (old, vote.direction) == (VoteDirection.DOWN, VoteDirection.NONE)

    @pytest.mark.asyncio
    async def test_concurrent_swaps_serialize(self, store):
        results = await asyncio.gather(
            *[
                store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.UP, NOW)
                for _ in range(5)
            ]
        )
        olds = [old for old, _ in results]
        # each swap sees the previous one's result: NONE, UP, NONE, UP, NONE
        assert olds.count(VoteDirection.NONE) == 3
        assert olds.count(VoteDirection.UP) == 2
        assert (await store.get_vote("u1", "evt-1")).direction == VoteDirection.UP

    @pytest.mark.asyncio
    async def test_swap_keeps_settled_flag(self, store):
        await store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.UP, NOW)
        assert await store.mark_vote_settled("u1", "evt-1") is True

        _, vote = await store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.DOWN, NOW)

        assert vote.alignment_settled is True

    @pytest.mark.asyncio
    async def test_mark_settled_keeps_direction(self, store):
        await store.swap_vote("u1", "evt-1", VoteTarget.EVENT, VoteDirection.DOWN, NOW)
        await store.mark_vote_settled("u1", "evt-1")
        assert (await store.get_vote("u1", "evt-1")).direction == VoteDirection.DOWN
        assert await store.mark_vote_settled("u2", "evt-1") is False


# ── Persistence Tests ────────────────────────────────────────────────────


class TestPersistence:
    @pytest.mark.asyncio
    async def test_reload_from_file(self, tmp_path, event):
        path = tmp_path / "events.json"
        store = EventStore(persistence_path=str(path))
        await store.save_event(event)
        await store.add_to_liked_by("evt-1", "u1")
        await store.append_comment(
            "evt-1", Comment(id="c1", event_id="evt-1", user_id="u1", text="x")
        )
        await store.save_vote(Vote(user_id="u1", target_id="evt-1", direction=VoteDirection.UP))

        reloaded = EventStore(persistence_path=str(path))

        loaded = await reloaded.load_event("evt-1")
        assert loaded.liked_by == {"u1"}
        assert await reloaded.find_comment("c1") is not None
        assert (await reloaded.get_vote("u1", "evt-1")).direction == VoteDirection.UP
        stats = await reloaded.get_stats()
        assert stats["persistence_enabled"] is True
