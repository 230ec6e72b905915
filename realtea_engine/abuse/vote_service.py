"""Voting on events and comments with abuse detection and consensus settlement.

One active vote per (user, target). Casting the same direction again
withdraws the vote; switching direction moves exactly one count from one
side to the other through atomic increments.

Abuse signals gathered on every event vote:
- upvoting an event whose credibility is below 40
- more than 10 votes inside 5 minutes (burst voting)

Consensus settlement judges each vote once, after the event has at least
10 votes from users with voting influence. Settled votes add to
total_votes and, when they match the majority, to aligned_votes.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from realtea_engine.abuse.rate_limiter import RateLimiter
from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.config.scoring import (
    BURST_VOTE_THRESHOLD,
    BURST_WINDOW_SECONDS,
    CONSENSUS_MIN_VOTES,
    LOW_CREDIBILITY_EVENT_THRESHOLD,
    RECENT_VOTE_RING_SIZE,
    VOTING_INFLUENCE_THRESHOLD,
)
from realtea_engine.data_management.repository import (
    EventRepository,
    UserStatsRepository,
)
from realtea_engine.data_management.schemas import (
    ActionKind,
    VoteDirection,
    VoteTarget,
)


class VoteResult(BaseModel):
    success: bool
    direction: VoteDirection = VoteDirection.NONE
    upvotes: int = 0
    downvotes: int = 0
    error: Optional[str] = None
    reset_at: Optional[datetime] = None
    burst_detected: bool = False


def counter_deltas(old: VoteDirection, new: VoteDirection) -> tuple[int, int]:
    """(upvote delta, downvote delta) for moving a vote from old to new."""
    up = (new == VoteDirection.UP) - (old == VoteDirection.UP)
    down = (new == VoteDirection.DOWN) - (old == VoteDirection.DOWN)
    return int(up), int(down)


def is_burst(timestamps: list[datetime], now: datetime) -> bool:
    cutoff = now - timedelta(seconds=BURST_WINDOW_SECONDS)
    return sum(1 for ts in timestamps if ts > cutoff) > BURST_VOTE_THRESHOLD


class VoteService:
    """Casts votes and settles them against consensus."""

    def __init__(
        self,
        event_repository: Optional[EventRepository],
        user_repository: Optional[UserStatsRepository],
        rate_limiter: RateLimiter,
        trust_updater: TrustScoreUpdater,
        ranker: Optional[Any] = None,
        flag_service: Optional[Any] = None,
    ) -> None:
        """
        Args:
            event_repository: Event and vote storage. Required.
            user_repository: User stats storage. Required.
            rate_limiter: Gate for the vote policy.
            trust_updater: Receives burst, alignment and comment feedback.
            ranker: Optional EventRankScorer; re-ranks the event after a vote.
            flag_service: Optional FlagService; burst voters are flagged for review.
        """
        if event_repository is None:
            raise ValueError("VoteService: event repository not configured")
        if user_repository is None:
            raise ValueError("VoteService: user stats repository not configured")
        self._events = event_repository
        self._users = user_repository
        self._limiter = rate_limiter
        self._trust = trust_updater
        self._ranker = ranker
        self._flags = flag_service
        self._logger = structlog.get_logger().bind(component="VoteService")

    async def cast_vote(
        self,
        user_id: str,
        event_id: str,
        direction: VoteDirection,
        now: Optional[datetime] = None,
    ) -> VoteResult:
        """Cast, switch or withdraw a vote on an event."""
        if not user_id or not event_id:
            raise ValueError("user_id and event_id are required")
        if direction == VoteDirection.NONE:
            raise ValueError("direction must be up or down")
        now = now or datetime.now(timezone.utc)

        event = await self._events.load_event(event_id)
        if event is None:
            return VoteResult(success=False, error="event_not_found")

        decision = await self._limiter.acquire(user_id, ActionKind.VOTE, now=now)
        if not decision.allowed:
            return VoteResult(
                success=False, error=decision.reason, reset_at=decision.reset_at
            )

        old, vote = await self._events.swap_vote(
            user_id, event_id, VoteTarget.EVENT, direction, now
        )
        new = vote.direction

        up_delta, down_delta = counter_deltas(old, new)
        upvotes = event.upvotes
        downvotes = event.downvotes
        if up_delta:
            upvotes = await self._events.atomic_increment(event_id, "upvotes", up_delta)
        if down_delta:
            downvotes = await self._events.atomic_increment(
                event_id, "downvotes", down_delta
            )

        if (
            new == VoteDirection.UP
            and event.credibility_score is not None
            and event.credibility_score < LOW_CREDIBILITY_EVENT_THRESHOLD
        ):
            await self._users.increment_counter(
                user_id, "low_credibility_upvotes", 1, now=now
            )
            self._logger.info(
                "low_credibility_upvote",
                user_id=user_id,
                event_id=event_id,
                credibility=event.credibility_score,
            )

        burst = await self._track_recent_vote(user_id, now)
        if not burst:
            await self._trust.refresh(user_id, now=now)

        self._logger.debug(
            "vote_cast",
            user_id=user_id,
            event_id=event_id,
            old=old.value,
            new=new.value,
        )

        await self.settle_consensus(event_id, now=now)
        if self._ranker is not None:
            await self._ranker.update_event_rank(event_id, now=now)

        return VoteResult(
            success=True,
            direction=new,
            upvotes=upvotes or 0,
            downvotes=downvotes or 0,
            burst_detected=burst,
        )

    async def vote_on_comment(
        self,
        user_id: str,
        comment_id: str,
        direction: VoteDirection,
        now: Optional[datetime] = None,
    ) -> VoteResult:
        """Vote on a comment; the author receives comment feedback trust actions."""
        if not user_id or not comment_id:
            raise ValueError("user_id and comment_id are required")
        if direction == VoteDirection.NONE:
            raise ValueError("direction must be up or down")
        now = now or datetime.now(timezone.utc)

        comment = await self._events.find_comment(comment_id)
        if comment is None:
            return VoteResult(success=False, error="comment_not_found")
        if comment.user_id == user_id:
            return VoteResult(success=False, error="self_vote")

        decision = await self._limiter.acquire(user_id, ActionKind.VOTE, now=now)
        if not decision.allowed:
            return VoteResult(
                success=False, error=decision.reason, reset_at=decision.reset_at
            )

        old, vote = await self._events.swap_vote(
            user_id, comment_id, VoteTarget.COMMENT, direction, now
        )
        new = vote.direction
        up_delta, down_delta = counter_deltas(old, new)
        await self._events.increment_comment_votes(comment_id, up_delta, down_delta)

        if new == VoteDirection.UP:
            await self._trust.apply_action(
                comment.user_id, "comment_upvoted", reason=f"comment {comment_id}", now=now
            )
        elif new == VoteDirection.DOWN:
            await self._trust.apply_action(
                comment.user_id, "comment_downvoted", reason=f"comment {comment_id}", now=now
            )

        return VoteResult(
            success=True,
            direction=new,
            upvotes=max(0, comment.upvotes + up_delta),
            downvotes=max(0, comment.downvotes + down_delta),
        )

    async def settle_consensus(self, event_id: str, now: Optional[datetime] = None) -> int:
        """Judge unsettled votes on an event against the influential majority.

        Returns:
            Number of votes settled by this call.
        """
        now = now or datetime.now(timezone.utc)
        votes = [
            v
            for v in await self._events.list_votes(event_id)
            if v.target_kind == VoteTarget.EVENT and v.direction != VoteDirection.NONE
        ]

        influential = []
        for vote in votes:
            score = await self._trust.get_trust_score(vote.user_id, now=now)
            if score >= VOTING_INFLUENCE_THRESHOLD:
                influential.append(vote)

        if len(influential) < CONSENSUS_MIN_VOTES:
            return 0

        ups = sum(1 for v in influential if v.direction == VoteDirection.UP)
        downs = len(influential) - ups
        if ups == downs:
            return 0
        majority = VoteDirection.UP if ups > downs else VoteDirection.DOWN

        settled = 0
        for vote in influential:
            if vote.alignment_settled:
                continue
            await self._users.increment_counter(vote.user_id, "total_votes", 1, now=now)
            if vote.direction == majority:
                await self._trust.apply_action(
                    vote.user_id, "aligned_vote", reason=f"consensus on {event_id}", now=now
                )
            else:
                await self._trust.refresh(vote.user_id, now=now)
            await self._events.mark_vote_settled(vote.user_id, vote.target_id)
            settled += 1

        if settled:
            self._logger.info(
                "consensus_settled",
                event_id=event_id,
                majority=majority.value,
                settled=settled,
            )
        return settled

    async def _track_recent_vote(self, user_id: str, now: datetime) -> bool:
        ring = await self._users.push_vote_timestamp(user_id, now, RECENT_VOTE_RING_SIZE)
        if not is_burst(ring, now):
            return False

        stats = await self._users.load_user_stats(user_id)
        if stats is not None and not stats.burst_voting_flag:
            self._logger.warning("burst_voting_detected", user_id=user_id)
            await self._trust.apply_action(
                user_id, "burst_voting", reason="more than 10 votes in 5 minutes", now=now
            )
            if self._flags is not None:
                await self._flags.flag_user(user_id, "burst_voting", now=now)
            return True
        return False
