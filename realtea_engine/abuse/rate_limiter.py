"""Per-user action rate limiting on top of a RateLimitStore.

Two policies coexist by default:
- votes: 20 per window, the window resetting once more than an hour has
  passed since it opened
- comments: 3 per window of one minute

acquire() is the only way to spend an allowance. It checks and increments
in one store call, so two concurrent attempts can never both pass on the
last free slot. check() is a read-only preview for UIs and never grants.

Storage failures fail open: the action is allowed and logged, so a limiter
outage cannot block all user interaction.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from realtea_engine.config.settings import settings
from realtea_engine.data_management.rate_limit_store import window_expired
from realtea_engine.data_management.repository import RateLimitStore
from realtea_engine.data_management.schemas import ActionKind, RateLimitDecision


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    Fixed-window policy for one action kind.

    Attributes:
        limit: Allowed actions per window
        window_seconds: Window length
        cooldown_seconds: Minimum gap between two allowed actions (0 disables)
    """

    limit: int
    window_seconds: int
    cooldown_seconds: float = 0.0


def default_policies() -> dict[ActionKind, RateLimitPolicy]:
    """Build the vote and comment policies from settings."""
    return {
        ActionKind.VOTE: RateLimitPolicy(
            limit=settings.vote_limit,
            window_seconds=settings.vote_window_seconds,
            cooldown_seconds=settings.vote_cooldown_seconds,
        ),
        ActionKind.COMMENT: RateLimitPolicy(
            limit=settings.comment_limit,
            window_seconds=settings.comment_window_seconds,
        ),
    }


class RateLimiter:
    """
    Gate for state-mutating user actions.

    Usage:
        limiter = RateLimiter(InMemoryRateLimitStore())
        decision = await limiter.acquire("user-1", ActionKind.VOTE)
        if not decision.allowed:
            ...
    """

    def __init__(
        self,
        store: Optional[RateLimitStore],
        policies: Optional[dict[ActionKind, RateLimitPolicy]] = None,
    ):
        """
        Args:
            store: Window storage. Required.
            policies: Per-action policies (defaults to settings-driven policies)

        Raises:
            ValueError: If no store is configured.
        """
        if store is None:
            raise ValueError("RateLimiter: rate-limit store not configured")
        self.store = store
        self.policies = policies or default_policies()
        self._logger = logger.bind(component="RateLimiter")

    def _policy(self, action: ActionKind) -> RateLimitPolicy:
        policy = self.policies.get(action)
        if policy is None:
            raise ValueError(f"No rate-limit policy for action: {action}")
        return policy

    async def acquire(
        self,
        user_id: str,
        action: ActionKind,
        now: Optional[datetime] = None,
    ) -> RateLimitDecision:
        """
        Check and consume one allowance as a single step.

        Args:
            user_id: Acting user
            action: Action kind being attempted
            now: Clock override for deterministic callers

        Returns:
            RateLimitDecision; allowed=False carries reason and reset_at.
        """
        if not user_id:
            raise ValueError("user_id is required")
        policy = self._policy(action)
        now = now or datetime.now(timezone.utc)

        try:
            decision = await self.store.consume(
                user_id,
                action,
                limit=policy.limit,
                window_seconds=policy.window_seconds,
                now=now,
                cooldown_seconds=policy.cooldown_seconds,
            )
        except Exception as e:
            self._logger.warning(
                f"Rate-limit store failed for {user_id}/{action.value}, failing open: {e}"
            )
            return RateLimitDecision(allowed=True, remaining=policy.limit, fail_open=True)

        if not decision.allowed:
            self._logger.info(
                f"Rate limit hit: user={user_id} action={action.value} "
                f"reason={decision.reason} reset_at={decision.reset_at}"
            )
        return decision

    async def increment(
        self,
        user_id: str,
        action: ActionKind,
        now: Optional[datetime] = None,
    ) -> RateLimitDecision:
        """Record one action. Same as acquire(); there is no blind increment."""
        return await self.acquire(user_id, action, now=now)

    async def check(
        self,
        user_id: str,
        action: ActionKind,
        now: Optional[datetime] = None,
    ) -> RateLimitDecision:
        """
        Preview whether an action would be allowed, without consuming.

        The answer can be stale by the time the caller acts; only acquire()
        grants an allowance.
        """
        policy = self._policy(action)
        now = now or datetime.now(timezone.utc)

        try:
            window = await self.store.get_window(user_id, action)
        except Exception as e:
            self._logger.warning(f"Rate-limit store failed on check, failing open: {e}")
            return RateLimitDecision(allowed=True, remaining=policy.limit, fail_open=True)

        if window is None or window_expired(window, policy.window_seconds, now):
            return RateLimitDecision(
                allowed=True,
                remaining=policy.limit,
                reset_at=now + timedelta(seconds=policy.window_seconds),
            )

        remaining = max(0, policy.limit - window.count)
        reset_at = window.window_start + timedelta(seconds=policy.window_seconds)
        if remaining == 0:
            return RateLimitDecision(
                allowed=False, remaining=0, reset_at=reset_at, reason="rate_limited"
            )
        return RateLimitDecision(allowed=True, remaining=remaining, reset_at=reset_at)
