"""Fact-check aggregation: providers, reasoner, source trust and persistence."""

from realtea_engine.factcheck.aggregator import FactCheckAggregator
from realtea_engine.factcheck.reasoner import ClaimReasoner, GeminiClaimReasoner
from realtea_engine.factcheck.service import FactCheckService, status_for
from realtea_engine.factcheck.source_trust import (
    SourceTrustLedger,
    normalize_domain,
    source_prior,
)

__all__ = [
    "FactCheckAggregator",
    "ClaimReasoner",
    "GeminiClaimReasoner",
    "FactCheckService",
    "status_for",
    "SourceTrustLedger",
    "normalize_domain",
    "source_prior",
]
