"""Event schema for ranked news and historical claims.

Events are owned by the persistence layer. The engine only writes the
derived fields (rank_score, credibility_score, fact-check status and
summary) and the engagement counters through atomic increments.

Design principle: score fields carry their bounds in the schema so a bad
write fails validation instead of corrupting ranking input.
"""

from datetime import date as date_type
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    """Fixed topic tags used for category diversity."""

    POLITICS = "Politics"
    SCIENCE = "Science"
    CULTURE = "Culture"
    CONFLICT = "Conflict"
    TECHNOLOGY = "Technology"
    ECONOMY = "Economy"
    ENVIRONMENT = "Environment"
    SPORTS = "Sports"
    OTHER = "Other"


class BiasLabel(str, Enum):
    """Editorial bias label of an event's framing."""

    NEUTRAL = "neutral"
    LEFT_LEANING = "left-leaning"
    RIGHT_LEANING = "right-leaning"
    LEFT = "left"
    RIGHT = "right"
    STATE_CONTROLLED = "state-controlled"
    CONSPIRACY = "conspiracy"
    SENSATIONAL = "sensational"
    UNKNOWN = "unknown"


class FactCheckStatus(str, Enum):
    """Outcome of the most recent fact-check.

    FALSE is reserved for human reviewers; the automated check never
    assigns it.
    """

    PENDING = "pending"
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    DISPUTED = "disputed"
    FALSE = "false"


class Comment(BaseModel):
    """User comment attached to an event."""

    id: str = Field(..., description="Unique comment identifier")
    event_id: str = Field(..., description="Event the comment belongs to")
    user_id: str = Field(..., description="Author user id")
    username: str = Field("Anonymous", description="Display name at comment time")
    text: str = Field(..., min_length=1, description="Comment body")
    parent_id: Optional[str] = Field(None, description="Parent comment for replies")
    trust_score_snapshot: int = Field(
        50, ge=0, le=100, description="Author trust score when posted"
    )
    upvotes: int = Field(0, ge=0)
    downvotes: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Event(BaseModel):
    """A news or historical claim surfaced in rank order.

    Usage:
        event = Event(
            id="evt-1",
            title="Central bank raises rates",
            category=Category.ECONOMY,
            sources=["https://www.reuters.com/markets/rates"],
        )
    """

    # Identity and content
    id: str = Field(..., description="Opaque event identifier")
    title: str = Field(..., description="Headline")
    description: str = Field("", description="Short description")
    long_description: str = Field("", description="Full description")
    category: Category = Field(Category.OTHER, description="Topic tag")
    location: str = Field("", description="Where the event took place")
    date: Optional[date_type] = Field(None, description="Calendar date of the event")
    created_at: Optional[datetime] = Field(
        None, description="Submission timestamp; drives freshness"
    )

    # Scores
    credibility_score: Optional[float] = Field(
        None, ge=0.0, le=100.0, description="0-100, None until fact-checked"
    )
    importance_score: float = Field(50.0, ge=0.0, le=100.0)
    rank_score: float = Field(0.0, ge=0.0, le=100.0, description="Derived rank")
    diversity_penalty: float = Field(
        0.0, ge=0.0, description="Penalty applied in the last full ranking"
    )
    ranked_at: Optional[datetime] = None

    # Labels
    is_breaking: bool = False
    bias_label: BiasLabel = BiasLabel.UNKNOWN
    fact_check_status: FactCheckStatus = FactCheckStatus.PENDING

    # Evidence
    sources: list[str] = Field(default_factory=list, description="Ordered source URLs")
    disputed_claims: list[str] = Field(default_factory=list)
    verification_summary: Optional[str] = None
    fact_check_accepted: Optional[bool] = Field(
        None, description="None until fact-checked"
    )
    rejection_reasons: list[str] = Field(default_factory=list)

    # Engagement counters
    views: int = Field(0, ge=0)
    upvotes: int = Field(0, ge=0)
    downvotes: int = Field(0, ge=0)
    comment_count: int = Field(0, ge=0)
    shares: int = Field(0, ge=0)
    liked_by: set[str] = Field(default_factory=set)
    comments: list[Comment] = Field(default_factory=list)

    @field_validator("created_at", "ranked_at")
    @classmethod
    def assume_utc(cls, v):
        """Naive timestamps are read as UTC so they compare with aware ones."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def total_votes(self) -> int:
        return self.upvotes + self.downvotes

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "evt-1",
                    "title": "Central bank raises rates",
                    "category": "Economy",
                    "created_at": "2024-03-15T12:00:00Z",
                    "credibility_score": 82.5,
                    "is_breaking": True,
                    "bias_label": "neutral",
                    "fact_check_status": "verified",
                    "sources": ["https://www.reuters.com/markets/rates"],
                    "views": 1200,
                    "upvotes": 40,
                }
            ]
        }
    }
