"""Flags raised against whole events and user accounts.

A flag parks the target in the review queue. Each target has at most one
pending flag: flagging it again while a moderator has not decided returns
the open entry. Resolved flags stay in the queue for audit, so a target
can be flagged again after review.
"""

import asyncio
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
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
    Severity,
)

FLAG_KINDS = (ReviewKind.EVENT, ReviewKind.USER)

# flagged_by value for flags raised by the engine itself
SYSTEM_REPORTER = "system"


class FlagService:
    """Queues event and user flags and applies review outcomes."""

    def __init__(
        self,
        event_repository: Optional[EventRepository],
        review_queue: Optional[ReviewQueueRepository],
        trust_updater: Optional[TrustScoreUpdater] = None,
    ) -> None:
        """
        Args:
            event_repository: Looks up flagged events. Required.
            review_queue: Where flags wait for a moderator. Required.
            trust_updater: Penalizes a user whose flag is upheld.
        """
        if event_repository is None:
            raise ValueError("FlagService: event repository not configured")
        if review_queue is None:
            raise ValueError("FlagService: review queue not configured")
        self._events = event_repository
        self._queue = review_queue
        self._trust = trust_updater
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger().bind(component="FlagService")

    async def flag_event(
        self,
        event_id: str,
        reason: str,
        flagged_by: str = SYSTEM_REPORTER,
        severity: Severity = Severity.MEDIUM,
        now: Optional[datetime] = None,
    ) -> Optional[ReviewQueueEntry]:
        """Queue an event for review.

        Returns:
            The pending flag, or None if the event does not exist.

        Raises:
            ValueError: On empty event_id or reason.
        """
        if not event_id or not reason:
            raise ValueError("event_id and reason are required")

        event = await self._events.load_event(event_id)
        if event is None:
            self._logger.warning("flag_for_unknown_event", event_id=event_id)
            return None

        return await self._raise_flag(
            ReviewKind.EVENT, event_id, event.title, reason, flagged_by, severity, now
        )

    async def flag_user(
        self,
        user_id: str,
        reason: str,
        flagged_by: str = SYSTEM_REPORTER,
        severity: Severity = Severity.MEDIUM,
        now: Optional[datetime] = None,
    ) -> ReviewQueueEntry:
        """Queue a user account for review.

        Raises:
            ValueError: On empty user_id or reason.
        """
        if not user_id or not reason:
            raise ValueError("user_id and reason are required")
        return await self._raise_flag(
            ReviewKind.USER, user_id, "", reason, flagged_by, severity, now
        )

    async def resolve_flag(
        self,
        entry_id: str,
        upheld: bool,
        now: Optional[datetime] = None,
    ) -> Optional[ReviewQueueEntry]:
        """Record a moderator's decision on a flag.

        An upheld user flag counts as flagged content against that user.

        Returns:
            The resolved entry, or None if unknown, not a flag, or
            already resolved.
        """
        queued = await self._queue.get(entry_id)
        if queued is None or queued.kind not in FLAG_KINDS:
            return None

        status = ReviewStatus.APPROVED if upheld else ReviewStatus.REJECTED
        entry = await self._queue.resolve(entry_id, status)
        if entry is None:
            return None

        self._logger.info(
            "flag_resolved", entry_id=entry_id, kind=entry.kind.value, upheld=upheld
        )
        if upheld and entry.kind == ReviewKind.USER and self._trust is not None:
            await self._trust.apply_action(
                entry.target_id, "flagged_content", reason=entry.reason, now=now
            )
        return entry

    async def pending_flags(self, kind: Optional[ReviewKind] = None) -> list[ReviewQueueEntry]:
        if kind is not None and kind not in FLAG_KINDS:
            raise ValueError(f"Not a flag kind: {kind.value}")
        entries = await self._queue.list_pending(kind)
        return [e for e in entries if e.kind in FLAG_KINDS]

    async def _raise_flag(
        self,
        kind: ReviewKind,
        target_id: str,
        content: str,
        reason: str,
        flagged_by: str,
        severity: Severity,
        now: Optional[datetime],
    ) -> ReviewQueueEntry:
        async with self._lock:
            for open_flag in await self._queue.list_pending(kind):
                if open_flag.target_id == target_id:
                    self._logger.debug(
                        "flag_already_pending", entry_id=open_flag.id, target_id=target_id
                    )
                    return open_flag

            entry = ReviewQueueEntry(
                id=f"flag-{uuid.uuid4().hex[:12]}",
                kind=kind,
                target_id=target_id,
                user_id=flagged_by,
                content=content,
                reason=reason,
                severity=severity,
                created_at=now or datetime.now(timezone.utc),
            )
            await self._queue.enqueue(entry)

        self._logger.warning(
            f"{kind.value}_flagged", target_id=target_id, reason=reason, flagged_by=flagged_by
        )
        return entry
