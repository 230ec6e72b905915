"""User-submitted corrections to events.

Every correction waits in the review queue: clean text under the
"user_correction" reason, flagged text under its moderation reason and
severity. The review decision feeds the author's trust score.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog

from realtea_engine.abuse.trust_updater import TrustScoreUpdater
from realtea_engine.data_management.repository import (
    EventRepository,
    ReviewQueueRepository,
)
from realtea_engine.data_management.schemas import (
    Correction,
    CorrectionStatus,
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
    Severity,
)
from realtea_engine.moderation.content_moderator import ContentModerator

CLEAN_CORRECTION_REASON = "user_correction"


def _correction_from_entry(entry: ReviewQueueEntry) -> Correction:
    status = {
        ReviewStatus.PENDING: CorrectionStatus.PENDING,
        ReviewStatus.APPROVED: CorrectionStatus.APPROVED,
        ReviewStatus.REJECTED: CorrectionStatus.REJECTED,
    }[entry.status]
    return Correction(
        id=entry.id,
        event_id=entry.target_id,
        user_id=entry.user_id,
        text=entry.content,
        status=status,
        created_at=entry.created_at,
        reviewed_at=entry.resolved_at,
    )


class CorrectionService:
    """Submits corrections for review and applies review outcomes."""

    def __init__(
        self,
        event_repository: Optional[EventRepository],
        review_queue: Optional[ReviewQueueRepository],
        trust_updater: TrustScoreUpdater,
        moderator: Optional[ContentModerator] = None,
    ) -> None:
        if event_repository is None:
            raise ValueError("CorrectionService: event repository not configured")
        if review_queue is None:
            raise ValueError("CorrectionService: review queue not configured")
        self._events = event_repository
        self._queue = review_queue
        self._trust = trust_updater
        self._moderator = moderator or ContentModerator()
        self._logger = structlog.get_logger().bind(component="CorrectionService")

    async def submit_correction(
        self,
        user_id: str,
        event_id: str,
        text: str,
        now: Optional[datetime] = None,
    ) -> Optional[Correction]:
        """Queue a correction for review.

        Returns:
            The pending Correction, or None if the event does not exist.

        Raises:
            ValueError: On empty ids or empty text.
        """
        if not user_id or not event_id:
            raise ValueError("user_id and event_id are required")
        if not text or not text.strip():
            raise ValueError("Correction text is empty")

        if await self._events.load_event(event_id) is None:
            self._logger.warning("correction_for_unknown_event", event_id=event_id)
            return None

        moderation = self._moderator.moderate(text)
        entry = ReviewQueueEntry(
            id=f"corr-{uuid.uuid4().hex[:12]}",
            kind=ReviewKind.CORRECTION,
            target_id=event_id,
            user_id=user_id,
            content=text.strip(),
            reason=(
                CLEAN_CORRECTION_REASON if moderation.clean else moderation.reason.value
            ),
            severity=moderation.severity or Severity.LOW,
            created_at=now or datetime.now(timezone.utc),
        )
        await self._queue.enqueue(entry)

        self._logger.info(
            "correction_submitted",
            correction_id=entry.id,
            event_id=event_id,
            flagged=not moderation.clean,
        )
        return _correction_from_entry(entry)

    async def review_correction(
        self,
        correction_id: str,
        approved: bool,
        now: Optional[datetime] = None,
    ) -> Optional[Correction]:
        """Resolve a pending correction and update the author's trust.

        Returns:
            The resolved correction, or None if unknown, not a correction,
            or already reviewed. Trust actions fire only on the first review.
        """
        queued = await self._queue.get(correction_id)
        if queued is None or queued.kind != ReviewKind.CORRECTION:
            return None

        status = ReviewStatus.APPROVED if approved else ReviewStatus.REJECTED
        entry = await self._queue.resolve(correction_id, status)
        if entry is None:
            return None

        action = "approved_correction" if approved else "rejected_correction"
        await self._trust.apply_action(
            entry.user_id, action, reason=f"correction {correction_id}", now=now
        )
        return _correction_from_entry(entry)

    async def pending_corrections(self) -> list[Correction]:
        entries = await self._queue.list_pending(ReviewKind.CORRECTION)
        return [_correction_from_entry(e) for e in entries]
