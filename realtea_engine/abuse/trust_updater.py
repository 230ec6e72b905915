"""Event-driven trust score updates.

Each trust action maps to a fixed nominal point delta and to the UserStats
counter or flag it moves. The score itself is never adjusted directly: after
the counters change, the cached score is recomputed from the full snapshot
so it stays re-derivable. A periodic sweep (recalculate_all) rewrites every
cache and corrects drift from missed updates.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import structlog

from realtea_engine.abuse.trust_calculator import compute_trust_score
from realtea_engine.config.settings import settings
from realtea_engine.data_management.repository import UserStatsRepository
from realtea_engine.data_management.schemas import TrustUpdate, UserStats


@dataclass(frozen=True)
class TrustAction:
    adjustment: int
    counter: Optional[str] = None
    sets_burst_flag: bool = False


TRUST_ACTIONS: dict[str, TrustAction] = {
    "aligned_vote": TrustAction(2, counter="aligned_votes"),
    "post_verified": TrustAction(1),
    "flagged_content": TrustAction(-2, counter="flagged_content_count"),
    "abuse_detected": TrustAction(-5, counter="ip_violations"),
    "approved_correction": TrustAction(3, counter="approved_corrections"),
    "rejected_correction": TrustAction(-1),
    "burst_voting": TrustAction(-3, sets_burst_flag=True),
}

# Comment feedback reuses the vote and flag actions
ACTION_ALIASES = {
    "verified_upvote": "aligned_vote",
    "comment_upvoted": "aligned_vote",
    "comment_downvoted": "flagged_content",
}


class TrustScoreUpdater:
    """Applies trust actions and serves cached trust scores."""

    def __init__(
        self,
        user_repository: Optional[UserStatsRepository],
        cache_ttl_seconds: Optional[int] = None,
    ) -> None:
        if user_repository is None:
            raise ValueError("TrustScoreUpdater: user stats repository not configured")
        self._users = user_repository
        self._ttl = timedelta(
            seconds=cache_ttl_seconds
            if cache_ttl_seconds is not None
            else settings.trust_cache_ttl_seconds
        )
        self._logger = structlog.get_logger().bind(component="TrustScoreUpdater")

    async def apply_action(
        self,
        user_id: str,
        action: str,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> TrustUpdate:
        """Apply one trust action to a user.

        Args:
            user_id: Affected user.
            action: Key of TRUST_ACTIONS or ACTION_ALIASES.
            reason: Free-text audit note.
            now: Clock override.

        Returns:
            TrustUpdate with old and recomputed score.

        Raises:
            ValueError: On empty user_id or unknown action.
        """
        if not user_id:
            raise ValueError("user_id is required")
        canonical = ACTION_ALIASES.get(action, action)
        rule = TRUST_ACTIONS.get(canonical)
        if rule is None:
            raise ValueError(f"Unknown trust action: {action}")
        now = now or datetime.now(timezone.utc)

        before = await self._load_or_create(user_id, now)
        old_score = compute_trust_score(before, now)

        if rule.counter:
            await self._users.increment_counter(user_id, rule.counter, 1, now=now)
        if rule.sets_burst_flag:
            await self._users.update_fields(user_id, {"burst_voting_flag": True})

        new_score = await self.refresh(user_id, now=now)

        update = TrustUpdate(
            user_id=user_id,
            action=action,
            old_score=old_score,
            new_score=new_score,
            adjustment=rule.adjustment,
            reason=reason,
            applied_at=now,
        )
        self._logger.info(
            "trust_action_applied",
            user_id=user_id,
            action=action,
            old_score=old_score,
            new_score=new_score,
        )
        return update

    async def record_abuse(self, user_id: str, reason: str) -> TrustUpdate:
        """Entry point for external abuse filters (IP checks and the like)."""
        return await self.apply_action(user_id, "abuse_detected", reason=reason)

    async def refresh(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Recompute and write back the cached score of one user.

        A failed cache write is logged and the computed score still returned;
        counters are never touched here.
        """
        now = now or datetime.now(timezone.utc)
        stats = await self._load_or_create(user_id, now)
        score = compute_trust_score(stats, now)
        await self._write_cache(user_id, score, now)
        return score

    async def get_trust_score(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Serve the cached score while fresh, else recompute.

        Unknown users get the score of an empty record without being created.
        """
        now = now or datetime.now(timezone.utc)
        stats = await self._users.load_user_stats(user_id)
        if stats is None:
            return compute_trust_score(UserStats(user_id=user_id, account_created_at=now), now)

        if (
            stats.cached_trust_score is not None
            and stats.trust_score_cached_at is not None
            and now - stats.trust_score_cached_at < self._ttl
        ):
            return stats.cached_trust_score

        score = compute_trust_score(stats, now)
        await self._write_cache(user_id, score, now)
        return score

    async def recalculate_all(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Idempotent sweep rewriting every user's cached score."""
        now = now or datetime.now(timezone.utc)
        users = await self._users.list_user_stats()
        updated = 0
        failed = 0
        changed = 0
        for stats in users:
            score = compute_trust_score(stats, now)
            if stats.cached_trust_score != score:
                changed += 1
            if await self._write_cache(stats.user_id, score, now):
                updated += 1
            else:
                failed += 1

        self._logger.info(
            "trust_sweep_complete", users=len(users), updated=updated, changed=changed, failed=failed
        )
        return {"total": len(users), "updated": updated, "changed": changed, "failed": failed}

    async def _load_or_create(self, user_id: str, now: datetime) -> UserStats:
        stats = await self._users.load_user_stats(user_id)
        if stats is None:
            stats = UserStats(user_id=user_id, account_created_at=now)
            await self._users.save_user_stats(stats)
        return stats

    async def _write_cache(self, user_id: str, score: int, now: datetime) -> bool:
        try:
            return await self._users.update_fields(
                user_id,
                {"cached_trust_score": score, "trust_score_cached_at": now},
            )
        except Exception as e:
            self._logger.error("trust_cache_write_failed", user_id=user_id, error=str(e))
            return False
