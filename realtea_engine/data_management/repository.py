"""Storage contracts the engine requires from the persistence layer.

The engine never talks to a concrete database client. Every component takes
one of these protocols, so scoring logic runs against the in-memory stores
in tests and against any document store in production.

Counter mutations go through increment primitives (atomic_increment,
increment_counter, consume) and votes through swap_vote, rather than
read-modify-write in application code. Derived fields (rank_score,
cached_trust_score) are written last-writer-wins; they can always be
recomputed.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from realtea_engine.data_management.schemas import (
    ActionKind,
    Comment,
    Event,
    RateLimitDecision,
    RateLimitWindow,
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
    SourceTrustRecord,
    UserStats,
    Vote,
    VoteDirection,
    VoteTarget,
)


@runtime_checkable
class EventRepository(Protocol):
    async def load_event(self, event_id: str) -> Optional[Event]: ...

    async def list_events(self) -> list[Event]: ...

    async def save_event(self, event: Event) -> None: ...

    async def save_derived_fields(self, event_id: str, fields: dict[str, Any]) -> bool:
        """Overwrite derived fields. Returns False if the event is unknown."""
        ...

    async def atomic_increment(
        self, event_id: str, field: str, delta: int
    ) -> Optional[int]:
        """Add delta to a counter (floored at 0) and return the new value."""
        ...

    async def add_to_liked_by(self, event_id: str, user_id: str) -> bool:
        """Add user to likedBy. False if already present or event unknown."""
        ...

    async def remove_from_liked_by(self, event_id: str, user_id: str) -> bool: ...

    async def append_comment(self, event_id: str, comment: Comment) -> bool: ...

    async def find_comment(self, comment_id: str) -> Optional[Comment]: ...

    async def increment_comment_votes(
        self, comment_id: str, upvotes: int, downvotes: int
    ) -> bool: ...

    async def get_vote(self, user_id: str, target_id: str) -> Optional[Vote]: ...

    async def swap_vote(
        self,
        user_id: str,
        target_id: str,
        target_kind: VoteTarget,
        direction: VoteDirection,
        now: datetime,
    ) -> tuple[VoteDirection, Vote]:
        """Atomic set-or-toggle of one vote. Returns (previous direction, stored vote)."""
        ...

    async def mark_vote_settled(self, user_id: str, target_id: str) -> bool: ...

    async def save_vote(self, vote: Vote) -> None: ...

    async def list_votes(self, target_id: str) -> list[Vote]: ...


@runtime_checkable
class UserStatsRepository(Protocol):
    async def load_user_stats(self, user_id: str) -> Optional[UserStats]: ...

    async def save_user_stats(self, stats: UserStats) -> None: ...

    async def list_user_stats(self) -> list[UserStats]: ...

    async def increment_counter(
        self, user_id: str, field: str, delta: int = 1, now: Optional[datetime] = None
    ) -> int:
        """Atomic increment-or-create of a UserStats counter, floored at 0.

        A created record takes now as its account_created_at.
        """
        ...

    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> bool: ...

    async def push_vote_timestamp(
        self, user_id: str, timestamp: datetime, ring_size: int
    ) -> list[datetime]:
        """Append to the recent-vote ring and return the bounded ring.

        A created record takes timestamp as its account_created_at.
        """
        ...


@runtime_checkable
class SourceTrustRepository(Protocol):
    async def get_record(self, domain: str) -> Optional[SourceTrustRecord]: ...

    async def apply_delta(
        self, domain: str, delta: float, success: Optional[bool] = None
    ) -> SourceTrustRecord:
        """Create-or-update a record additively; trust_score floors at 0."""
        ...

    async def list_records(self) -> list[SourceTrustRecord]: ...


@runtime_checkable
class ReviewQueueRepository(Protocol):
    async def enqueue(self, entry: ReviewQueueEntry) -> None: ...

    async def list_pending(
        self, kind: Optional[ReviewKind] = None
    ) -> list[ReviewQueueEntry]: ...

    async def get(self, entry_id: str) -> Optional[ReviewQueueEntry]: ...

    async def resolve(
        self, entry_id: str, status: ReviewStatus
    ) -> Optional[ReviewQueueEntry]:
        """Resolve a pending entry. None if unknown or already resolved."""
        ...


@runtime_checkable
class RateLimitStore(Protocol):
    async def get_window(
        self, user_id: str, action: ActionKind
    ) -> Optional[RateLimitWindow]: ...

    async def consume(
        self,
        user_id: str,
        action: ActionKind,
        limit: int,
        window_seconds: int,
        now: datetime,
        cooldown_seconds: float = 0.0,
    ) -> RateLimitDecision:
        """Atomically reset-if-expired, check and increment one window."""
        ...
