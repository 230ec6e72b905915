"""User trust accumulators and vote records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class VoteDirection(str, Enum):
    """Current direction of a vote. NONE means the vote was withdrawn."""

    UP = "up"
    DOWN = "down"
    NONE = "none"


class VoteTarget(str, Enum):
    EVENT = "event"
    COMMENT = "comment"


class UserStats(BaseModel):
    """Per-user accumulator feeding the trust score.

    All counters are authoritative. cached_trust_score and
    trust_score_cached_at are derived and may be overwritten at any time by
    a recomputation.
    """

    user_id: str = Field(..., description="User identifier")
    account_created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    email_verified: bool = False

    total_votes: int = Field(0, ge=0, description="Votes judged against consensus")
    aligned_votes: int = Field(0, ge=0, description="Votes matching consensus")
    low_credibility_upvotes: int = Field(0, ge=0)
    approved_corrections: int = Field(0, ge=0)
    flagged_content_count: int = Field(0, ge=0)
    ip_violations: int = Field(0, ge=0)

    recent_vote_timestamps: list[datetime] = Field(
        default_factory=list, description="Ring of the most recent vote times"
    )
    burst_voting_flag: bool = False
    last_vote_at: Optional[datetime] = None

    cached_trust_score: Optional[int] = Field(None, ge=0, le=100)
    trust_score_cached_at: Optional[datetime] = None

    @field_validator("account_created_at", "last_vote_at", "trust_score_cached_at")
    @classmethod
    def assume_utc(cls, v):
        """Naive timestamps are read as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("recent_vote_timestamps")
    @classmethod
    def assume_utc_list(cls, v):
        return [t.replace(tzinfo=timezone.utc) if t.tzinfo is None else t for t in v]

    @property
    def voting_accuracy(self) -> Optional[float]:
        """Share of judged votes that matched consensus, None before any."""
        if self.total_votes == 0:
            return None
        return self.aligned_votes / self.total_votes


class Vote(BaseModel):
    """The single active vote of a user on an event or comment."""

    user_id: str
    target_id: str
    target_kind: VoteTarget = VoteTarget.EVENT
    direction: VoteDirection = VoteDirection.NONE
    voted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    alignment_settled: bool = Field(
        False, description="True once judged against consensus"
    )

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.target_id)


class TrustUpdate(BaseModel):
    """Audit record of one trust action applied to a user."""

    user_id: str
    action: str
    old_score: int = Field(..., ge=0, le=100)
    new_score: int = Field(..., ge=0, le=100)
    adjustment: int = Field(..., description="Nominal point delta of the action")
    reason: str = ""
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
