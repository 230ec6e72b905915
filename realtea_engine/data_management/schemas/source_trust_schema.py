"""Per-domain reputation record of the source trust ledger."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class SourceTrustRecord(BaseModel):
    """Running reputation of one citation domain.

    trust_score is additive with a floor of 0 and no upper bound. Records
    are created on first reference and never deleted.
    """

    domain: str
    trust_score: float = Field(0.0, ge=0.0)
    verification_count: int = Field(0, ge=0)
    success_count: int = Field(0, ge=0)
    failure_count: int = Field(0, ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def reliability(self) -> float:
        """Laplace-smoothed success ratio; 0.5 for an unseen domain."""
        return (self.success_count + 1) / (self.success_count + self.failure_count + 2)
