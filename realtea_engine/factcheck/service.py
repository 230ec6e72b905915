"""Runs fact-checks for stored events and writes the outcome back.

Rejected events are persisted with their rejection reasons rather than
dropped. A failed derived-field write is logged and left for the next
maintenance sweep; it never alters engagement or vote counters.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from realtea_engine.data_management.repository import EventRepository
from realtea_engine.data_management.schemas import (
    FactCheckResult,
    FactCheckStatus,
)
from realtea_engine.factcheck.aggregator import FactCheckAggregator
from realtea_engine.factcheck.source_trust import SourceTrustLedger
from realtea_engine.utils.logging import get_correlation_id, get_structured_logger


def status_for(result: FactCheckResult) -> FactCheckStatus:
    """Map an aggregate result to a fact-check status.

    FALSE is left to human reviewers.
    """
    verdict = result.verdict
    if result.accepted and verdict.is_verified:
        return FactCheckStatus.VERIFIED
    if not verdict.fallback_used and not verdict.is_verified and verdict.contradictions:
        return FactCheckStatus.DISPUTED
    return FactCheckStatus.UNVERIFIED


class FactCheckService:
    """Fact-check a stored event, persist the result, update the ledger, re-rank."""

    def __init__(
        self,
        aggregator: FactCheckAggregator,
        event_repository: Optional[EventRepository],
        ledger: Optional[SourceTrustLedger] = None,
        ranker: Optional[Any] = None,
    ) -> None:
        if event_repository is None:
            raise ValueError("FactCheckService: event repository not configured")
        self._aggregator = aggregator
        self._events = event_repository
        self._ledger = ledger or aggregator.ledger
        self._ranker = ranker
        self._logger = get_structured_logger(__name__, component="FactCheckService")

    async def check_event(
        self, event_id: str, now: Optional[datetime] = None
    ) -> Optional[FactCheckResult]:
        """Fact-check one stored event.

        Returns:
            The FactCheckResult, or None if the event does not exist.
        """
        now = now or datetime.now(timezone.utc)
        log = self._logger.bind(correlation_id=get_correlation_id(), event_id=event_id)
        event = await self._events.load_event(event_id)
        if event is None:
            log.warning("fact_check_unknown_event")
            return None

        result = await self._aggregator.fact_check(event, now=now)
        status = status_for(result)

        fields = {
            "credibility_score": result.credibility_score,
            "fact_check_status": status,
            "verification_summary": result.verdict.verification_summary or result.summary,
            "fact_check_accepted": result.accepted,
            "rejection_reasons": [r.value for r in result.rejection_reasons],
            "disputed_claims": list(result.verdict.contradictions),
        }
        try:
            written = await self._events.save_derived_fields(event_id, fields)
        except Exception as e:
            log.error("fact_check_write_failed", error=str(e))
            written = False

        await self._ledger.record_outcome(
            result.distinct_domains, result.credibility_score, result.verified
        )

        if written and self._ranker is not None:
            await self._ranker.update_event_rank(event_id, now=now)

        log.info(
            "event_fact_checked",
            status=status.value,
            credibility=result.credibility_score,
            written=written,
        )
        return result

    async def check_pending(
        self, limit: int = 10, now: Optional[datetime] = None
    ) -> list[FactCheckResult]:
        """Fact-check up to limit events still in pending status, oldest first."""
        events = await self._events.list_events()
        pending = [e for e in events if e.fact_check_status == FactCheckStatus.PENDING]
        pending.sort(
            key=lambda e: (
                e.created_at is None,
                e.created_at.timestamp() if e.created_at else 0.0,
                e.id,
            )
        )

        results = []
        for event in pending[:limit]:
            result = await self.check_event(event.id, now=now)
            if result is not None:
                results.append(result)
        return results
