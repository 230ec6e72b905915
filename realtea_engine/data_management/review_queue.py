"""Review queue for moderation-flagged content.

Flagged comments and corrections are parked here with their reason code
instead of being dropped. A moderator resolves each entry as approved or
rejected; resolved entries stay in the queue for audit.
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from realtea_engine.data_management.schemas import (
    ReviewKind,
    ReviewQueueEntry,
    ReviewStatus,
)


class ReviewQueue:
    """In-memory ReviewQueueRepository ordered by insertion."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        self._entries: dict[str, ReviewQueueEntry] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="ReviewQueue")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def enqueue(self, entry: ReviewQueueEntry) -> None:
        async with self._lock:
            self._entries[entry.id] = entry
            self._logger.info(
                "content_queued_for_review",
                entry_id=entry.id,
                kind=entry.kind.value,
                reason=entry.reason,
                severity=entry.severity.value,
            )
            self._persist()

    async def list_pending(
        self, kind: Optional[ReviewKind] = None
    ) -> list[ReviewQueueEntry]:
        async with self._lock:
            return [
                e.model_copy()
                for e in self._entries.values()
                if e.status == ReviewStatus.PENDING and (kind is None or e.kind == kind)
            ]

    async def get(self, entry_id: str) -> Optional[ReviewQueueEntry]:
        async with self._lock:
            entry = self._entries.get(entry_id)
            return entry.model_copy() if entry else None

    async def resolve(
        self, entry_id: str, status: ReviewStatus
    ) -> Optional[ReviewQueueEntry]:
        """Mark a pending entry approved or rejected.

        Returns:
            The resolved entry, or None if unknown or already resolved.
        """
        if status == ReviewStatus.PENDING:
            raise ValueError("Resolution status must be approved or rejected")

        async with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                return None
            if entry.status != ReviewStatus.PENDING:
                self._logger.warning(
                    "review_already_resolved", entry_id=entry_id, status=entry.status.value
                )
                return None
            entry.status = status
            entry.resolved_at = datetime.now(timezone.utc)
            self._logger.info("review_resolved", entry_id=entry_id, status=status.value)
            self._persist()
            return entry.model_copy()

    def _persist(self) -> None:
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = [e.model_dump(mode="json") for e in self._entries.values()]
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            entries = [ReviewQueueEntry.model_validate(raw) for raw in data]
            self._entries = {e.id: e for e in entries}
        except Exception as e:
            self._logger.error("load_failed", error=str(e))
            self._entries = {}
