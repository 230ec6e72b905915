"""Fact-check aggregation across evidence providers and an AI reasoner.

Pipeline for one event:
1. Query every provider concurrently, each under its own timeout; a failed
   or slow provider contributes no citations
2. Merge the event's own sources and all provider citations, deduplicated
   by URL
3. Ask the reasoner for a verdict on at most 10 citations; any failure or
   timeout yields the deterministic fallback verdict
4. recency_days = whole days since the oldest dated citation (999 if none)
5. base = mean(min(n/5, 1), min(agreement, 1), 0.9 if recency > 7 else 1)
6. weighted = base x mean domain weight (+0.05 with more than two
   high-trust domains), clipped to 0-1
7. Accept only if weighted x 100 clears the credibility floor AND enough
   distinct domains are cited; every unmet threshold is recorded

All arithmetic stays on the 0-1 fraction scale; credibility_score is the
single conversion to 0-100.
"""

import asyncio
import math
from datetime import datetime, timezone
from typing import Optional

from realtea_engine.config.settings import settings
from realtea_engine.config.source_credibility import (
    DEFAULT_SOURCE_WEIGHT,
    HIGH_TRUST_BONUS,
    HIGH_TRUST_BONUS_MIN_DOMAINS,
    MAX_CITATIONS_FOR_REASONER,
    RECENCY_STALE_DAYS,
    RECENCY_STALE_WEIGHT,
    SOURCE_COUNT_SATURATION,
    UNDATED_RECENCY_DAYS,
)
from realtea_engine.data_management.schemas import (
    Citation,
    ClaimVerdict,
    Event,
    FactCheckResult,
    RejectionReason,
)
from realtea_engine.factcheck.providers.base import EvidenceProvider
from realtea_engine.factcheck.reasoner import ClaimReasoner
from realtea_engine.factcheck.source_trust import SourceTrustLedger, normalize_domain
from realtea_engine.utils.logging import get_structured_logger


def merge_citations(*groups: list[Citation]) -> list[Citation]:
    """Concatenate citation lists, keeping the first occurrence of each URL."""
    merged: list[Citation] = []
    seen: set[str] = set()
    for group in groups:
        for citation in group:
            key = citation.url.strip().rstrip("/").lower()
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(citation)
    return merged


def recency_days(citations: list[Citation], now: datetime) -> int:
    dated = [c.published_at for c in citations if c.published_at is not None]
    if not dated:
        return UNDATED_RECENCY_DAYS
    days = (now - min(dated)).total_seconds() / 86400
    return max(0, math.floor(days))


def base_fraction(source_count: int, agreement_ratio: float, recency: int) -> float:
    """Unweighted 0-1 credibility from evidence volume, agreement and age."""
    coverage = min(source_count / SOURCE_COUNT_SATURATION, 1.0)
    agreement = min(agreement_ratio, 1.0)
    freshness = RECENCY_STALE_WEIGHT if recency > RECENCY_STALE_DAYS else 1.0
    return (coverage + agreement + freshness) / 3


class FactCheckAggregator:
    """Merges provider evidence and an AI verdict into one credibility score.

    Usage:
        aggregator = FactCheckAggregator(
            providers=default_providers(),
            reasoner=GeminiClaimReasoner(),
            ledger=SourceTrustLedger(SourceTrustStore()),
        )
        result = await aggregator.fact_check(event)
    """

    def __init__(
        self,
        providers: list[EvidenceProvider],
        reasoner: Optional[ClaimReasoner],
        ledger: SourceTrustLedger,
        min_credibility: Optional[float] = None,
        min_sources: Optional[int] = None,
        provider_timeout: Optional[float] = None,
        reasoner_timeout: Optional[float] = None,
    ) -> None:
        self.providers = providers
        self.reasoner = reasoner
        self.ledger = ledger
        self.min_credibility = (
            min_credibility if min_credibility is not None else settings.min_credibility_score
        )
        self.min_sources = (
            min_sources if min_sources is not None else settings.min_independent_sources
        )
        self.provider_timeout = (
            provider_timeout
            if provider_timeout is not None
            else settings.provider_timeout_seconds
        )
        self.reasoner_timeout = (
            reasoner_timeout
            if reasoner_timeout is not None
            else settings.reasoner_timeout_seconds
        )
        self._logger = get_structured_logger(__name__, component="FactCheckAggregator")

    async def gather_evidence(self, query: str) -> tuple[list[Citation], list[str]]:
        """Query all providers concurrently.

        Returns:
            (merged citations, names of providers that answered)
        """
        results = await asyncio.gather(
            *(self._query_provider(p, query) for p in self.providers)
        )
        responded = [p.name for p, r in zip(self.providers, results) if r is not None]
        return merge_citations(*(r or [] for r in results)), responded

    async def _query_provider(
        self, provider: EvidenceProvider, query: str
    ) -> Optional[list[Citation]]:
        name = getattr(provider, "name", type(provider).__name__)
        try:
            return await asyncio.wait_for(provider.search(query), timeout=self.provider_timeout)
        except asyncio.TimeoutError:
            self._logger.warning("provider_timeout", provider=name, timeout=self.provider_timeout)
        except Exception as e:
            self._logger.warning("provider_failed", provider=name, error=str(e))
        return None

    async def reason(self, claim: str, title: str, citations: list[Citation]) -> ClaimVerdict:
        """Run the reasoner under its timeout, falling back on any failure."""
        if self.reasoner is None:
            return ClaimVerdict.fallback(title, len(citations))
        try:
            return await asyncio.wait_for(
                self.reasoner.analyze(claim, citations[:MAX_CITATIONS_FOR_REASONER]),
                timeout=self.reasoner_timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning("reasoner_timeout", timeout=self.reasoner_timeout)
        except Exception as e:
            self._logger.warning("reasoner_failed", error=str(e))
        return ClaimVerdict.fallback(title, len(citations))

    async def fact_check(
        self, event: Event, now: Optional[datetime] = None
    ) -> FactCheckResult:
        """Fact-check one event. Never raises for provider or reasoner failures."""
        now = now or datetime.now(timezone.utc)
        claim = f"{event.title}. {event.description}".strip(". ") or event.title

        provider_citations, responded = await self.gather_evidence(event.title)
        own_citations = [
            Citation(source_name=normalize_domain(url) or "Unknown", url=url, provider="event")
            for url in event.sources
        ]
        citations = merge_citations(own_citations, provider_citations)

        verdict = await self.reason(claim, event.title, citations)
        recency = recency_days(citations, now)
        base = base_fraction(len(citations), verdict.agreement_ratio, recency)

        domains = sorted({d for d in (normalize_domain(c.url) for c in citations) if d})
        weights = await self.ledger.weights(domains)
        mean_weight = (
            sum(weights.values()) / len(weights) if weights else DEFAULT_SOURCE_WEIGHT
        )
        high_trust = [d for d in domains if self.ledger.is_high_trust(weights[d])]
        bonus = HIGH_TRUST_BONUS if len(high_trust) > HIGH_TRUST_BONUS_MIN_DOMAINS else 0.0
        weighted = max(0.0, min(1.0, base * mean_weight + bonus))
        credibility = round(weighted * 100, 1)

        reasons: list[RejectionReason] = []
        if credibility < self.min_credibility:
            reasons.append(RejectionReason.LOW_CREDIBILITY)
        if len(domains) < self.min_sources:
            reasons.append(RejectionReason.INSUFFICIENT_SOURCES)
        accepted = not reasons

        result = FactCheckResult(
            event_id=event.id,
            credibility_score=credibility,
            base_fraction=round(base, 4),
            weighted_fraction=round(weighted, 4),
            verified=accepted and verdict.is_verified,
            accepted=accepted,
            rejection_reasons=reasons,
            summary=verdict.summary,
            verdict=verdict,
            sources=citations,
            distinct_domains=domains,
            high_trust_domains=high_trust,
            recency_days=recency,
            providers_responded=responded,
            checked_at=now,
        )

        log = self._logger.info if accepted else self._logger.warning
        log(
            "fact_check_complete",
            event_id=event.id,
            credibility=credibility,
            accepted=accepted,
            rejection_reasons=[r.value for r in reasons],
            sources=len(citations),
            domains=len(domains),
            fallback=verdict.fallback_used,
        )
        return result
