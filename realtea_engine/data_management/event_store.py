"""In-memory event storage with atomic counter primitives.

Implements EventRepository:
- O(1) lookup by event_id, comment_id and (user_id, target_id) vote key
- Every mutation guarded by one asyncio lock, so counter increments and
  likedBy membership checks are atomic within a process
- Optional JSON persistence for single-node deployments

Usage:
    from realtea_engine.data_management.event_store import EventStore

    store = EventStore()
    await store.save_event(event)
    await store.atomic_increment("evt-1", "views", 1)
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import structlog

from realtea_engine.data_management.schemas import (
    Comment,
    Event,
    Vote,
    VoteDirection,
    VoteTarget,
)

COUNTER_FIELDS = frozenset({"views", "upvotes", "downvotes", "comment_count", "shares"})

# Fields the engine owns and may overwrite without touching counters
DERIVED_FIELDS = frozenset(
    {
        "rank_score",
        "diversity_penalty",
        "ranked_at",
        "credibility_score",
        "fact_check_status",
        "verification_summary",
        "fact_check_accepted",
        "rejection_reasons",
        "disputed_claims",
    }
)


class EventStore:
    """Storage for events, their comments and the votes cast on them.

    Data structure:
    {
        "events": {event_id: Event},
        "votes": {(user_id, target_id): Vote},
        comment index: {comment_id: event_id}
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize EventStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._events: dict[str, Event] = {}
        self._votes: dict[tuple[str, str], Vote] = {}
        self._comment_index: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="EventStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def save_event(self, event: Event) -> None:
        """Insert or replace a whole event record."""
        async with self._lock:
            self._events[event.id] = event
            for comment in event.comments:
                self._comment_index[comment.id] = event.id
            self._logger.debug("event_saved", event_id=event.id)
            self._persist()

    async def load_event(self, event_id: str) -> Optional[Event]:
        """Return a snapshot copy of an event, or None if unknown."""
        async with self._lock:
            event = self._events.get(event_id)
            return event.model_copy(deep=True) if event else None

    async def list_events(self) -> list[Event]:
        async with self._lock:
            return [e.model_copy(deep=True) for e in self._events.values()]

    async def save_derived_fields(self, event_id: str, fields: dict[str, Any]) -> bool:
        """Overwrite engine-owned fields of an event.

        Args:
            event_id: Event identifier.
            fields: Mapping of derived field name to new value.

        Returns:
            True if written, False if the event is unknown.

        Raises:
            ValueError: If a field is not engine-owned.
        """
        unknown = set(fields) - DERIVED_FIELDS
        if unknown:
            raise ValueError(f"Not a derived field: {sorted(unknown)}")

        async with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return False
            self._events[event_id] = event.model_copy(update=fields)
            self._persist()
            return True

    async def atomic_increment(
        self, event_id: str, field: str, delta: int
    ) -> Optional[int]:
        """Add delta to an engagement counter, flooring at 0.

        Returns:
            The new counter value, or None if the event is unknown.
        """
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Not an engagement counter: {field}")

        async with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return None
            value = max(0, getattr(event, field) + delta)
            setattr(event, field, value)
            self._persist()
            return value

    async def add_to_liked_by(self, event_id: str, user_id: str) -> bool:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None or user_id in event.liked_by:
                return False
            event.liked_by.add(user_id)
            self._persist()
            return True

    async def remove_from_liked_by(self, event_id: str, user_id: str) -> bool:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None or user_id not in event.liked_by:
                return False
            event.liked_by.discard(user_id)
            self._persist()
            return True

    async def append_comment(self, event_id: str, comment: Comment) -> bool:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return False
            event.comments.append(comment)
            self._comment_index[comment.id] = event_id
            self._persist()
            return True

    async def find_comment(self, comment_id: str) -> Optional[Comment]:
        async with self._lock:
            comment = self._get_comment(comment_id)
            return comment.model_copy() if comment else None

    async def increment_comment_votes(
        self, comment_id: str, upvotes: int, downvotes: int
    ) -> bool:
        async with self._lock:
            comment = self._get_comment(comment_id)
            if comment is None:
                return False
            comment.upvotes = max(0, comment.upvotes + upvotes)
            comment.downvotes = max(0, comment.downvotes + downvotes)
            self._persist()
            return True

    async def get_vote(self, user_id: str, target_id: str) -> Optional[Vote]:
        async with self._lock:
            vote = self._votes.get((user_id, target_id))
            return vote.model_copy() if vote else None

    async def swap_vote(
        self,
        user_id: str,
        target_id: str,
        target_kind: VoteTarget,
        direction: VoteDirection,
        now: datetime,
    ) -> tuple[VoteDirection, Vote]:
        """Set or toggle a user's vote in one step.

        Casting the stored direction again withdraws the vote. Concurrent
        casts by the same user serialize here, so each caller sees the
        direction the previous one left behind.

        Returns:
            (previous direction, stored vote)
        """
        async with self._lock:
            existing = self._votes.get((user_id, target_id))
            old = existing.direction if existing else VoteDirection.NONE
            vote = Vote(
                user_id=user_id,
                target_id=target_id,
                target_kind=target_kind,
                direction=VoteDirection.NONE if old == direction else direction,
                voted_at=now,
                alignment_settled=existing.alignment_settled if existing else False,
            )
            self._votes[vote.key] = vote
            self._persist()
            return old, vote.model_copy()

    async def mark_vote_settled(self, user_id: str, target_id: str) -> bool:
        """Flag a vote as judged by consensus without touching its direction."""
        async with self._lock:
            vote = self._votes.get((user_id, target_id))
            if vote is None:
                return False
            vote.alignment_settled = True
            self._persist()
            return True

    async def save_vote(self, vote: Vote) -> None:
        async with self._lock:
            self._votes[vote.key] = vote
            self._persist()

    async def list_votes(self, target_id: str) -> list[Vote]:
        async with self._lock:
            return [v.model_copy() for v in self._votes.values() if v.target_id == target_id]

    async def get_stats(self) -> dict[str, Any]:
        """Get storage statistics."""
        async with self._lock:
            return {
                "events": len(self._events),
                "votes": len(self._votes),
                "comments": len(self._comment_index),
                "persistence_enabled": self._persistence_path is not None,
            }

    def _get_comment(self, comment_id: str) -> Optional[Comment]:
        event_id = self._comment_index.get(comment_id)
        if event_id is None or event_id not in self._events:
            return None
        for comment in self._events[event_id].comments:
            if comment.id == comment_id:
                return comment
        return None

    def _persist(self) -> None:
        if self._persistence_path:
            self._save_to_file()

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "events": {
                    eid: event.model_dump(mode="json")
                    for eid, event in self._events.items()
                },
                "votes": [vote.model_dump(mode="json") for vote in self._votes.values()],
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load from JSON file and rebuild indexes (synchronous)."""
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._events = {
                eid: Event.model_validate(raw)
                for eid, raw in data.get("events", {}).items()
            }
            votes = [Vote.model_validate(raw) for raw in data.get("votes", [])]
            self._votes = {vote.key: vote for vote in votes}
            self._comment_index = {
                comment.id: event.id
                for event in self._events.values()
                for comment in event.comments
            }
            self._logger.info(
                "store_loaded",
                path=str(self._persistence_path),
                events=len(self._events),
            )
        except Exception as e:
            self._logger.error("load_failed", error=str(e))
            self._events = {}
            self._votes = {}
            self._comment_index = {}
