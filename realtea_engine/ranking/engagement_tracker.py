"""Engagement recording: views, likes, comments and shares.

Counters move only through the repository's atomic increments. Like,
unlike, comment and share re-rank the touched event on its own; re-ranking
against peers for diversity is left to the batched maintenance job.

Comments pass the comment rate limit and the moderation gate first.
Flagged comments go to the review queue with their reason and are
published only if a moderator approves them.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import BaseModel

from realtea_engine.abuse.rate_limiter import RateLimiter
from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.data_management.repository import (
    EventRepository,
    ReviewQueueRepository,
)
from realtea_engine.data_management.schemas import (
    ActionKind,
    Comment,
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
)
from realtea_engine.moderation.content_moderator import ContentModerator
from realtea_engine.ranking.rank_scorer import EventRankScorer


class EngagementResult(BaseModel):
    success: bool
    error: Optional[str] = None
    count: Optional[int] = None
    rank_score: Optional[float] = None
    comment_id: Optional[str] = None
    review_entry_id: Optional[str] = None
    reset_at: Optional[datetime] = None


class EngagementTracker:
    """Records engagement on events and triggers single-event re-ranks."""

    def __init__(
        self,
        event_repository: Optional[EventRepository],
        scorer: EventRankScorer,
        rate_limiter: Optional[RateLimiter] = None,
        moderator: Optional[ContentModerator] = None,
        review_queue: Optional[ReviewQueueRepository] = None,
        trust_updater: Optional[TrustScoreUpdater] = None,
    ) -> None:
        if event_repository is None:
            raise ValueError("EngagementTracker: event repository not configured")
        if review_queue is None:
            raise ValueError("EngagementTracker: review queue not configured")
        self._events = event_repository
        self._scorer = scorer
        self._limiter = rate_limiter
        self._moderator = moderator or ContentModerator()
        self._queue = review_queue
        self._trust = trust_updater
        self._logger = structlog.get_logger().bind(component="EngagementTracker")

    async def record_view(self, event_id: str) -> EngagementResult:
        count = await self._events.atomic_increment(event_id, "views", 1)
        if count is None:
            return EngagementResult(success=False, error="event_not_found")
        return EngagementResult(success=True, count=count)

    async def record_like(
        self, event_id: str, user_id: str, now: Optional[datetime] = None
    ) -> EngagementResult:
        """Like an event once per user; duplicates are rejected untouched."""
        if not user_id:
            raise ValueError("user_id is required")
        if await self._events.load_event(event_id) is None:
            return EngagementResult(success=False, error="event_not_found")

        if not await self._events.add_to_liked_by(event_id, user_id):
            self._logger.debug("duplicate_like", event_id=event_id, user_id=user_id)
            return EngagementResult(success=False, error="already_liked")

        count = await self._events.atomic_increment(event_id, "upvotes", 1)
        return await self._rerank(event_id, count, now)

    async def record_unlike(
        self, event_id: str, user_id: str, now: Optional[datetime] = None
    ) -> EngagementResult:
        if not user_id:
            raise ValueError("user_id is required")
        if await self._events.load_event(event_id) is None:
            return EngagementResult(success=False, error="event_not_found")

        if not await self._events.remove_from_liked_by(event_id, user_id):
            return EngagementResult(success=False, error="not_liked")

        count = await self._events.atomic_increment(event_id, "upvotes", -1)
        return await self._rerank(event_id, count, now)

    async def record_share(
        self, event_id: str, user_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> EngagementResult:
        count = await self._events.atomic_increment(event_id, "shares", 1)
        if count is None:
            return EngagementResult(success=False, error="event_not_found")
        self._logger.debug("event_shared", event_id=event_id, user_id=user_id)
        return await self._rerank(event_id, count, now)

    async def record_comment(
        self,
        event_id: str,
        user_id: str,
        text: str,
        username: str = "Anonymous",
        parent_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EngagementResult:
        """
        Post a comment through the rate limit and moderation gate.

        Returns:
            success=False with error "rate_limited" or "cooldown" when
            throttled, "flagged" (plus review_entry_id) when moderation
            held the comment for review.
        """
        if not user_id:
            raise ValueError("user_id is required")
        text = (text or "").strip()
        if not text:
            raise ValueError("Comment text is empty")
        now = now or datetime.now(timezone.utc)

        if await self._events.load_event(event_id) is None:
            return EngagementResult(success=False, error="event_not_found")

        if self._limiter is not None:
            decision = await self._limiter.acquire(user_id, ActionKind.COMMENT, now=now)
            if not decision.allowed:
                return EngagementResult(
                    success=False, error=decision.reason, reset_at=decision.reset_at
                )

        moderation = self._moderator.moderate(text)
        if not moderation.clean:
            entry_id = await self._hold_for_review(event_id, user_id, text, moderation, now)
            return EngagementResult(
                success=False, error="flagged", review_entry_id=entry_id
            )

        comment = await self._publish_comment(
            event_id, user_id, text, username, parent_id, now
        )
        count = await self._events.atomic_increment(event_id, "comment_count", 1)
        result = await self._rerank(event_id, count, now)
        result.comment_id = comment.id
        return result

    async def resolve_flagged_comment(
        self, entry_id: str, approved: bool, now: Optional[datetime] = None
    ) -> EngagementResult:
        """Publish an approved held comment, or penalize the author on rejection.

        An entry is acted on once; later calls return "already_resolved".
        """
        now = now or datetime.now(timezone.utc)

        queued = await self._queue.get(entry_id)
        if queued is None or queued.kind != ReviewKind.COMMENT:
            return EngagementResult(success=False, error="review_entry_not_found")

        status = ReviewStatus.APPROVED if approved else ReviewStatus.REJECTED
        entry = await self._queue.resolve(entry_id, status)
        if entry is None:
            return EngagementResult(success=False, error="already_resolved")

        if not approved:
            if self._trust is not None:
                await self._trust.apply_action(
                    entry.user_id, "flagged_content", reason=entry.reason, now=now
                )
            return EngagementResult(success=True)

        comment = await self._publish_comment(
            entry.target_id, entry.user_id, entry.content, "Anonymous", None, now
        )
        count = await self._events.atomic_increment(entry.target_id, "comment_count", 1)
        result = await self._rerank(entry.target_id, count, now)
        result.comment_id = comment.id
        return result

    async def _publish_comment(
        self,
        event_id: str,
        user_id: str,
        text: str,
        username: str,
        parent_id: Optional[str],
        now: datetime,
    ) -> Comment:
        snapshot = 50
        if self._trust is not None:
            snapshot = await self._trust.get_trust_score(user_id, now=now)
        comment = Comment(
            id=f"cmt-{uuid.uuid4().hex[:12]}",
            event_id=event_id,
            user_id=user_id,
            username=username,
            text=text,
            parent_id=parent_id,
            trust_score_snapshot=snapshot,
            created_at=now,
        )
        await self._events.append_comment(event_id, comment)
        return comment

    async def _hold_for_review(self, event_id, user_id, text, moderation, now) -> str:
        entry = ReviewQueueEntry(
            id=f"rev-{uuid.uuid4().hex[:12]}",
            kind=ReviewKind.COMMENT,
            target_id=event_id,
            user_id=user_id,
            content=text,
            reason=moderation.reason.value,
            severity=moderation.severity,
            created_at=now,
        )
        await self._queue.enqueue(entry)
        return entry.id

    async def _rerank(
        self, event_id: str, count: Optional[int], now: Optional[datetime]
    ) -> EngagementResult:
        rank = await self._scorer.update_event_rank(event_id, now=now)
        return EngagementResult(success=True, count=count, rank_score=rank)
