"""Periodic maintenance sweeps.

Meant to run on a schedule (hourly is typical) alongside live traffic.
Every sweep reads current state, recomputes derived fields and writes them
back last-writer-wins; counters are never written here. A failed write is
counted and retried by the next run.

Usage:
    from realtea_engine.pipeline import MaintenanceJobs

    jobs = MaintenanceJobs(event_store, scorer, trust_updater, vote_service)
    stats = await jobs.run_all()
"""

from datetime import datetime, timezone
from typing import Any, Optional

from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.abuse.vote_service import VoteService
from realtea_engine.data_management.repository import EventRepository
from realtea_engine.factcheck.service import FactCheckService
from realtea_engine.ranking.rank_scorer import EventRankScorer
from realtea_engine.utils.logging import (
    bind_correlation_id,
    clear_correlation_id,
    get_structured_logger,
)


class MaintenanceJobs:
    """Full re-rank, trust sweep, consensus settlement and pending fact-checks."""

    def __init__(
        self,
        event_repository: Optional[EventRepository],
        scorer: EventRankScorer,
        trust_updater: TrustScoreUpdater,
        vote_service: Optional[VoteService] = None,
        fact_check_service: Optional[FactCheckService] = None,
    ) -> None:
        """Initialize MaintenanceJobs.

        Args:
            event_repository: Event storage. Required.
            scorer: Rank scorer used for the two-pass full ranking.
            trust_updater: Runs the trust sweep.
            vote_service: Optional; enables consensus settlement.
            fact_check_service: Optional; enables the pending fact-check sweep.
        """
        if event_repository is None:
            raise ValueError("MaintenanceJobs: event repository not configured")
        self._events = event_repository
        self._scorer = scorer
        self._trust = trust_updater
        self._votes = vote_service
        self._fact_checks = fact_check_service
        self._logger = get_structured_logger(__name__, component="MaintenanceJobs")

    async def recalculate_all_ranks(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Two-pass rank of every stored event, written back per event."""
        now = now or datetime.now(timezone.utc)
        events = await self._events.list_events()
        ranked = self._scorer.rank_events(events, now)

        updated = 0
        failed = 0
        for breakdown in ranked:
            try:
                written = await self._events.save_derived_fields(
                    breakdown.event_id,
                    {
                        "rank_score": breakdown.rank_score,
                        "diversity_penalty": breakdown.diversity_penalty,
                        "ranked_at": now,
                    },
                )
            except Exception as e:
                self._logger.error(
                    "rank_write_failed", event_id=breakdown.event_id, error=str(e)
                )
                written = False
            if written:
                updated += 1
            else:
                failed += 1

        stats = {
            "total": len(ranked),
            "updated": updated,
            "failed": failed,
            "top": [b.event_id for b in ranked[:5]],
        }
        self._logger.info("ranks_recalculated", **stats)
        return stats

    async def recalculate_trust_scores(self, now: Optional[datetime] = None) -> dict[str, Any]:
        return await self._trust.recalculate_all(now=now)

    async def settle_all_consensus(self, now: Optional[datetime] = None) -> dict[str, Any]:
        if self._votes is None:
            return {"events": 0, "settled": 0}
        events = await self._events.list_events()
        settled = 0
        for event in events:
            settled += await self._votes.settle_consensus(event.id, now=now)
        self._logger.info("consensus_sweep_complete", events=len(events), settled=settled)
        return {"events": len(events), "settled": settled}

    async def fact_check_pending(
        self, limit: int = 10, now: Optional[datetime] = None
    ) -> dict[str, Any]:
        if self._fact_checks is None:
            return {"checked": 0, "accepted": 0}
        results = await self._fact_checks.check_pending(limit=limit, now=now)
        return {
            "checked": len(results),
            "accepted": sum(1 for r in results if r.accepted),
        }

    async def run_all(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Run every sweep in dependency order.

        Fact-checks first (they change credibility), then consensus (it
        changes counters), then trust, then the full re-rank.
        """
        now = now or datetime.now(timezone.utc)
        bind_correlation_id()
        self._logger.info("maintenance_started")
        try:
            return {
                "fact_checks": await self.fact_check_pending(now=now),
                "consensus": await self.settle_all_consensus(now=now),
                "trust": await self.recalculate_trust_scores(now=now),
                "ranks": await self.recalculate_all_ranks(now=now),
            }
        finally:
            clear_correlation_id()
