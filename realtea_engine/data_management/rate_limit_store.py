"""Per-process rate-limit window storage.

Windows live in this process only. Under a multi-process deployment each
process enforces its own windows, so the limits are advisory: a user can
get up to N x limit actions through N processes. Deployments that need a
hard global limit must supply a RateLimitStore backed by a shared atomic
counter.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

import structlog

from realtea_engine.data_management.schemas import (
    ActionKind,
    RateLimitDecision,
    RateLimitWindow,
)


def window_expired(window: RateLimitWindow, window_seconds: int, now: datetime) -> bool:
    """A window resets once strictly more than window_seconds have passed."""
    return now - window.window_start > timedelta(seconds=window_seconds)


class InMemoryRateLimitStore:
    """Fixed-window counters keyed by (user_id, action)."""

    def __init__(self) -> None:
        self._windows: dict[tuple[str, ActionKind], RateLimitWindow] = {}
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger().bind(component="InMemoryRateLimitStore")

    async def get_window(
        self, user_id: str, action: ActionKind
    ) -> Optional[RateLimitWindow]:
        async with self._lock:
            window = self._windows.get((user_id, action))
            return window.model_copy() if window else None

    async def consume(
        self,
        user_id: str,
        action: ActionKind,
        limit: int,
        window_seconds: int,
        now: datetime,
        cooldown_seconds: float = 0.0,
    ) -> RateLimitDecision:
        """Check and increment one window as a single step.

        The window is created on first action and reset when expired. A reset
        keeps last_action_at so the cooldown still spans the boundary. A
        rejected attempt does not consume an allowance.
        """
        async with self._lock:
            key = (user_id, action)
            window = self._windows.get(key)
            if window is None or window_expired(window, window_seconds, now):
                window = RateLimitWindow(
                    user_id=user_id,
                    action=action,
                    window_start=now,
                    last_action_at=window.last_action_at if window else None,
                )
                self._windows[key] = window

            reset_at = window.window_start + timedelta(seconds=window_seconds)

            if (
                cooldown_seconds > 0
                and window.last_action_at is not None
                and (now - window.last_action_at).total_seconds() < cooldown_seconds
            ):
                return RateLimitDecision(
                    allowed=False,
                    remaining=max(0, limit - window.count),
                    reset_at=window.last_action_at + timedelta(seconds=cooldown_seconds),
                    reason="cooldown",
                )

            if window.count >= limit:
                return RateLimitDecision(
                    allowed=False, remaining=0, reset_at=reset_at, reason="rate_limited"
                )

            window.count += 1
            window.last_action_at = now
            return RateLimitDecision(
                allowed=True, remaining=limit - window.count, reset_at=reset_at
            )
