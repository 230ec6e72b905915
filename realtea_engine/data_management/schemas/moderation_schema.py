"""Moderation verdicts, review queue entries and user corrections."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ModerationReason(str, Enum):
    """Machine-readable reason a text was flagged."""

    HATE_SPEECH = "hate_speech"
    EXCESSIVE_PROFANITY = "excessive_profanity"
    LINK_SPAM = "link_spam"
    REPEATED_CONTENT = "repeated_content"
    EXTREME_BIAS = "extreme_bias"


class ModerationResult(BaseModel):
    """Outcome of the moderation gate.

    A clean result carries no reason and no severity.
    """

    clean: bool
    reason: Optional[ModerationReason] = None
    severity: Optional[Severity] = None
    detail: Optional[str] = Field(None, description="Human-readable explanation")

    @classmethod
    def passed(cls) -> "ModerationResult":
        return cls(clean=True)

    @classmethod
    def flagged(
        cls, reason: ModerationReason, severity: Severity, detail: str
    ) -> "ModerationResult":
        return cls(clean=False, reason=reason, severity=severity, detail=detail)


class ReviewKind(str, Enum):
    COMMENT = "comment"
    CORRECTION = "correction"
    EVENT = "event"
    USER = "user"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewQueueEntry(BaseModel):
    """Flagged content held for a human moderator."""

    id: str
    kind: ReviewKind
    target_id: str = Field(
        ..., description="Event, correction or flagged user the entry concerns"
    )
    user_id: str
    content: str
    reason: str = Field(..., description="Machine-readable reason code")
    severity: Severity = Severity.LOW
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    resolved_at: Optional[datetime] = None


class CorrectionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Correction(BaseModel):
    """A user-proposed correction to an event."""

    id: str
    event_id: str
    user_id: str
    text: str
    status: CorrectionStatus = CorrectionStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reviewed_at: Optional[datetime] = None
