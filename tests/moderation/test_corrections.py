"""Tests for CorrectionService and the review queue.

Tests cover:
- Submission queues every correction as pending
- Flagged corrections keep their moderation reason and severity
- Approval and rejection update the author's trust
- Unknown events and empty text
- Review queue resolution rules, including repeat reviews
"""

from datetime import datetime, timezone

import pytest

from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.data_management.event_store import EventStore
from realtea_engine.data_management.review_queue import ReviewQueue
from realtea_engine.data_management.schemas import (
    CorrectionStatus,
    Event,
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
    Severity,
)
from realtea_engine.data_management.user_store import UserStatsStore
from realtea_engine.moderation.corrections import CorrectionService

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def queue() -> ReviewQueue:
    return ReviewQueue()


@pytest.fixture
def user_store() -> UserStatsStore:
    return UserStatsStore()


@pytest.fixture
async def service(queue, user_store) -> CorrectionService:
    events = EventStore()
    await events.save_event(Event(id="evt-1", title="Dam completed in 1936"))
    return CorrectionService(events, queue, TrustScoreUpdater(user_store))


# ── Submission Tests ─────────────────────────────────────────────────────


class TestSubmitCorrection:
    @pytest.mark.asyncio
    async def test_clean_correction_pending(self, service, queue):
        correction = await service.submit_correction(
            "user-1", "evt-1", "It was completed in 1935, not 1936.", now=NOW
        )

        assert correction.status == CorrectionStatus.PENDING
        assert correction.id.startswith("corr-")
        entry = await queue.get(correction.id)
        assert entry.kind == ReviewKind.CORRECTION
        assert entry.reason == "user_correction"
        assert entry.severity == Severity.LOW

    @pytest.mark.asyncio
    async def test_flagged_correction_keeps_reason(self, service, queue):
        correction = await service.submit_correction(
            "user-1", "evt-1", "kill immigrants", now=NOW
        )
        entry = await queue.get(correction.id)
        assert entry.reason == "hate_speech"
        assert entry.severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_unknown_event(self, service):
        assert await service.submit_correction("user-1", "missing", "Wrong year") is None

    @pytest.mark.asyncio
    async def test_empty_text(self, service):
        with pytest.raises(ValueError):
            await service.submit_correction("user-1", "evt-1", "   ")

    @pytest.mark.asyncio
    async def test_pending_list(self, service):
        await service.submit_correction("user-1", "evt-1", "Wrong year", now=NOW)
        await service.submit_correction("user-2", "evt-1", "Wrong river", now=NOW)
        pending = await service.pending_corrections()
        assert [c.user_id for c in pending] == ["user-1", "user-2"]


# ── Review Tests ─────────────────────────────────────────────────────────


class TestReviewCorrection:
    @pytest.mark.asyncio
    async def test_approval_rewards_author(self, service, user_store):
        correction = await service.submit_correction("user-1", "evt-1", "Wrong year", now=NOW)
        reviewed = await service.review_correction(correction.id, approved=True, now=NOW)

        assert reviewed.status == CorrectionStatus.APPROVED
        assert reviewed.reviewed_at is not None
        stats = await user_store.load_user_stats("user-1")
        assert stats.approved_corrections == 1
        assert stats.cached_trust_score == 55
        assert await service.pending_corrections() == []

    @pytest.mark.asyncio
    async def test_rejection(self, service, user_store):
        correction = await service.submit_correction("user-1", "evt-1", "Wrong year", now=NOW)
        reviewed = await service.review_correction(correction.id, approved=False, now=NOW)

        assert reviewed.status == CorrectionStatus.REJECTED
        stats = await user_store.load_user_stats("user-1")
        assert stats.approved_corrections == 0

    @pytest.mark.asyncio
    async def test_unknown_correction(self, service):
        assert await service.review_correction("corr-missing", approved=True) is None

    @pytest.mark.asyncio
    async def test_second_approval_ignored(self, service, user_store):
        correction = await service.submit_correction("user-1", "evt-1", "Wrong year", now=NOW)
        await service.review_correction(correction.id, approved=True, now=NOW)

        assert await service.review_correction(correction.id, approved=True, now=NOW) is None
        stats = await user_store.load_user_stats("user-1")
        assert stats.approved_corrections == 1
        assert stats.cached_trust_score == 55

    @pytest.mark.asyncio
    async def test_approval_after_rejection_ignored(self, service, user_store, queue):
        correction = await service.submit_correction("user-1", "evt-1", "Wrong year", now=NOW)
        await service.review_correction(correction.id, approved=False, now=NOW)

        assert await service.review_correction(correction.id, approved=True, now=NOW) is None
        assert (await queue.get(correction.id)).status == ReviewStatus.REJECTED
        stats = await user_store.load_user_stats("user-1")
        assert stats.approved_corrections == 0

    @pytest.mark.asyncio
    async def test_comment_entry_not_reviewed_as_correction(self, service, queue):
        await queue.enqueue(
            ReviewQueueEntry(
                id="rev-c",
                kind=ReviewKind.COMMENT,
                target_id="evt-1",
                user_id="u",
                content="x",
                reason="link_spam",
            )
        )
        assert await service.review_correction("rev-c", approved=True, now=NOW) is None
        assert (await queue.get("rev-c")).status == ReviewStatus.PENDING


class TestReviewQueue:
    @pytest.mark.asyncio
    async def test_resolve_to_pending_rejected(self, queue):
        await queue.enqueue(
            ReviewQueueEntry(
                id="rev-1",
                kind=ReviewKind.COMMENT,
                target_id="evt-1",
                user_id="u",
                content="x",
                reason="link_spam",
            )
        )
        with pytest.raises(ValueError):
            await queue.resolve("rev-1", ReviewStatus.PENDING)

    @pytest.mark.asyncio
    async def test_filter_by_kind(self, queue):
        for kind in (ReviewKind.COMMENT, ReviewKind.CORRECTION):
            await queue.enqueue(
                ReviewQueueEntry(
                    id=f"rev-{kind.value}",
                    kind=kind,
                    target_id="evt-1",
                    user_id="u",
                    content="x",
                    reason="link_spam",
                )
            )
        comments = await queue.list_pending(ReviewKind.COMMENT)
        assert [e.id for e in comments] == ["rev-comment"]
        assert len(await queue.list_pending()) == 2

    @pytest.mark.asyncio
    async def test_resolved_entries_kept(self, queue):
        await queue.enqueue(
            ReviewQueueEntry(
                id="rev-1",
                kind=ReviewKind.COMMENT,
                target_id="evt-1",
                user_id="u",
                content="x",
                reason="link_spam",
            )
        )
        await queue.resolve("rev-1", ReviewStatus.REJECTED)
        entry = await queue.get("rev-1")
        assert entry.status == ReviewStatus.REJECTED
        assert await queue.list_pending() == []

    @pytest.mark.asyncio
    async def test_resolved_entry_not_resolved_again(self, queue):
        await queue.enqueue(
            ReviewQueueEntry(
                id="rev-1",
                kind=ReviewKind.COMMENT,
                target_id="evt-1",
                user_id="u",
                content="x",
                reason="link_spam",
            )
        )
        assert (await queue.resolve("rev-1", ReviewStatus.APPROVED)) is not None
        assert await queue.resolve("rev-1", ReviewStatus.REJECTED) is None
        assert await queue.resolve("rev-1", ReviewStatus.APPROVED) is None
        assert (await queue.get("rev-1")).status == ReviewStatus.APPROVED
