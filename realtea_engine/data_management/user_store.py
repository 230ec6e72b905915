"""In-memory user statistics storage.

Implements UserStatsRepository. Records are created on first touch, so
counter increments for a user who never voted before still land.
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import structlog

from realtea_engine.data_management.schemas import UserStats

COUNTER_FIELDS = frozenset(
    {
        "total_votes",
        "aligned_votes",
        "low_credibility_upvotes",
        "approved_corrections",
        "flagged_content_count",
        "ip_violations",
    }
)


class UserStatsStore:
    """Storage for per-user trust accumulators keyed by user_id."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        self._stats: dict[str, UserStats] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="UserStatsStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def load_user_stats(self, user_id: str) -> Optional[UserStats]:
        async with self._lock:
            stats = self._stats.get(user_id)
            return stats.model_copy(deep=True) if stats else None

    async def save_user_stats(self, stats: UserStats) -> None:
        async with self._lock:
            self._stats[stats.user_id] = stats
            self._persist()

    async def list_user_stats(self) -> list[UserStats]:
        async with self._lock:
            return [s.model_copy(deep=True) for s in self._stats.values()]

    async def increment_counter(
        self, user_id: str, field: str, delta: int = 1, now: Optional[datetime] = None
    ) -> int:
        """Atomically add delta to a counter, creating the user if needed.

        A user created here is stamped with now, not the wall clock.

        Returns:
            The new counter value (floored at 0).

        Raises:
            ValueError: If field is not a UserStats counter.
        """
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Not a user counter: {field}")

        async with self._lock:
            stats = self._get_or_create(user_id, now)
            value = max(0, getattr(stats, field) + delta)
            setattr(stats, field, value)
            self._persist()
            return value

    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> bool:
        """Overwrite non-counter fields (flags, cache). False if user unknown."""
        counters = set(fields) & COUNTER_FIELDS
        if counters:
            raise ValueError(f"Counters must be incremented: {sorted(counters)}")

        async with self._lock:
            stats = self._stats.get(user_id)
            if stats is None:
                return False
            self._stats[user_id] = stats.model_copy(update=fields)
            self._persist()
            return True

    async def push_vote_timestamp(
        self, user_id: str, timestamp: datetime, ring_size: int
    ) -> list[datetime]:
        async with self._lock:
            stats = self._get_or_create(user_id, timestamp)
            ring = stats.recent_vote_timestamps + [timestamp]
            stats.recent_vote_timestamps = ring[-ring_size:]
            stats.last_vote_at = timestamp
            self._persist()
            return list(stats.recent_vote_timestamps)

    def _get_or_create(self, user_id: str, now: Optional[datetime] = None) -> UserStats:
        stats = self._stats.get(user_id)
        if stats is None:
            stats = (
                UserStats(user_id=user_id, account_created_at=now)
                if now is not None
                else UserStats(user_id=user_id)
            )
            self._stats[user_id] = stats
            self._logger.debug("user_stats_created", user_id=user_id)
        return stats

    def _persist(self) -> None:
        if self._persistence_path:
            self._save_to_file()

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {uid: s.model_dump(mode="json") for uid, s in self._stats.items()}
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._stats = {uid: UserStats.model_validate(raw) for uid, raw in data.items()}
            self._logger.info("store_loaded", users=len(self._stats))
        except Exception as e:
            self._logger.error("load_failed", error=str(e))
            self._stats = {}
