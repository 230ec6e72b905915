"""Source trust ledger: per-domain reputation feeding fact-check weighting.

Weight of a cited domain (0-1):

    weight = clip(prior(domain) x (0.5 + reliability), 0, 1)

prior comes from SOURCE_BASELINES (exact domain, then parent domain), then
TLD patterns, then DEFAULT_SOURCE_WEIGHT. reliability is the Laplace-smoothed
success ratio from the ledger, 0.5 for a domain with no history, so an unseen
domain weighs exactly its prior.

After each fact-check every cited domain is updated: +1 when the event was
verified, -2 when its credibility fell below 40, otherwise a neutral
verification that only bumps the count.
"""

from typing import Iterable, Optional
from urllib.parse import urlparse

import structlog

from realtea_engine.config.source_credibility import (
    CONTRADICTION_CREDIBILITY,
    CONTRADICTION_DELTA,
    CORROBORATION_DELTA,
    DEFAULT_SOURCE_WEIGHT,
    DOMAIN_PATTERN_DEFAULTS,
    HIGH_TRUST_THRESHOLD,
    SOURCE_BASELINES,
)
from realtea_engine.data_management.repository import SourceTrustRepository
from realtea_engine.data_management.schemas import SourceTrustRecord


def normalize_domain(value: str) -> str:
    """Reduce a URL or bare domain to a lowercase hostname without www.

    Examples:
        https://www.Reuters.com/world/x -> reuters.com
        bbc.co.uk/news -> bbc.co.uk
    """
    if not value:
        return ""
    value = value.strip()
    if "://" in value:
        host = urlparse(value).netloc
    else:
        host = value.split("/", 1)[0]
    host = host.split("@")[-1].split(":")[0].lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def source_prior(domain: str) -> float:
    """Baseline credibility of a domain before any ledger history."""
    if not domain:
        return DEFAULT_SOURCE_WEIGHT
    if domain in SOURCE_BASELINES:
        return SOURCE_BASELINES[domain]

    # Subdomains inherit the parent outlet's baseline
    for known, score in SOURCE_BASELINES.items():
        if domain.endswith("." + known):
            return score

    for pattern, score in DOMAIN_PATTERN_DEFAULTS.items():
        if domain.endswith(pattern):
            return score
    return DEFAULT_SOURCE_WEIGHT


def trust_delta(credibility_score: float, verified: bool) -> float:
    """Ledger delta for one cited domain after a fact-check."""
    if verified:
        return CORROBORATION_DELTA
    if credibility_score < CONTRADICTION_CREDIBILITY:
        return CONTRADICTION_DELTA
    return 0.0


class SourceTrustLedger:
    """Reads and updates per-domain reputation through a SourceTrustRepository."""

    def __init__(self, repository: Optional[SourceTrustRepository]) -> None:
        if repository is None:
            raise ValueError("SourceTrustLedger: source trust repository not configured")
        self._repository = repository
        self._logger = structlog.get_logger().bind(component="SourceTrustLedger")

    async def weight(self, domain: str) -> float:
        record = await self._repository.get_record(domain)
        reliability = record.reliability if record else 0.5
        return max(0.0, min(1.0, source_prior(domain) * (0.5 + reliability)))

    async def weights(self, domains: Iterable[str]) -> dict[str, float]:
        return {domain: await self.weight(domain) for domain in domains}

    @staticmethod
    def is_high_trust(weight: float) -> bool:
        return weight >= HIGH_TRUST_THRESHOLD

    async def record_outcome(
        self,
        domains: Iterable[str],
        credibility_score: float,
        verified: bool,
    ) -> list[SourceTrustRecord]:
        """Apply the post-check delta to every distinct cited domain."""
        delta = trust_delta(credibility_score, verified)
        success: Optional[bool] = None
        if delta > 0:
            success = True
        elif delta < 0:
            success = False

        records = []
        for domain in sorted({d for d in domains if d}):
            records.append(await self._repository.apply_delta(domain, delta, success=success))

        self._logger.info(
            "source_trust_recorded",
            domains=len(records),
            delta=delta,
            verified=verified,
        )
        return records

    async def leaderboard(self, limit: int = 10) -> list[SourceTrustRecord]:
        records = await self._repository.list_records()
        records.sort(key=lambda r: (-r.trust_score, r.domain))
        return records[:limit]
