"""Citations, AI verdicts and fact-check results.

The aggregator works on the 0-1 fraction scale internally; FactCheckResult
exposes the canonical 0-100 credibility_score next to the fractions so the
conversion is visible in one place.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """One evidence item returned by an evidence provider."""

    source_name: str = Field("Unknown", description="Publisher name")
    title: str = ""
    url: str
    published_at: Optional[datetime] = None
    description: str = ""
    provider: str = Field("", description="Evidence provider that returned it")


class ClaimVerdict(BaseModel):
    """Structured verdict from the claim reasoner."""

    title: str = ""
    summary: str = ""
    agreement_ratio: float = Field(0.0, ge=0.0, le=1.0)
    verification_summary: str = ""
    is_verified: bool = False
    contradictions: list[str] = Field(default_factory=list)
    key_findings: list[str] = Field(default_factory=list)
    fallback_used: bool = False

    @classmethod
    def fallback(cls, claim_title: str, citation_count: int) -> "ClaimVerdict":
        """Deterministic verdict used when the reasoner fails or times out."""
        return cls(
            title=claim_title,
            summary=(
                f"Found {citation_count} related sources. "
                "AI analysis failed, manual review recommended."
            ),
            agreement_ratio=0.5 if citation_count > 0 else 0.0,
            verification_summary="Automated analysis unavailable",
            is_verified=False,
            fallback_used=True,
        )


class RejectionReason(str, Enum):
    LOW_CREDIBILITY = "low_credibility"
    INSUFFICIENT_SOURCES = "insufficient_sources"


class FactCheckResult(BaseModel):
    """Aggregated outcome of one fact-check."""

    event_id: str
    credibility_score: float = Field(..., ge=0.0, le=100.0)
    base_fraction: float = Field(..., ge=0.0, le=1.0)
    weighted_fraction: float = Field(..., ge=0.0, le=1.0)
    verified: bool = False
    accepted: bool = False
    rejection_reasons: list[RejectionReason] = Field(default_factory=list)
    summary: str = ""
    verdict: ClaimVerdict
    sources: list[Citation] = Field(default_factory=list)
    distinct_domains: list[str] = Field(default_factory=list)
    high_trust_domains: list[str] = Field(default_factory=list)
    recency_days: int = 0
    providers_responded: list[str] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
