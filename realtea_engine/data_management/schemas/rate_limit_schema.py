"""Rate-limit window state and decisions."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ActionKind(str, Enum):
    VOTE = "vote"
    COMMENT = "comment"


class RateLimitWindow(BaseModel):
    """Fixed window counter for one (user, action) pair."""

    user_id: str
    action: ActionKind
    count: int = Field(0, ge=0)
    window_start: datetime
    last_action_at: Optional[datetime] = None


class RateLimitDecision(BaseModel):
    """Answer to a rate-limit check or acquire.

    reason is None when allowed, "rate_limited" when the window is full and
    "cooldown" when the per-user cooldown has not elapsed.
    """

    allowed: bool
    remaining: int = Field(0, ge=0)
    reset_at: Optional[datetime] = None
    reason: Optional[str] = None
    fail_open: bool = Field(False, description="Allowed only because storage failed")
