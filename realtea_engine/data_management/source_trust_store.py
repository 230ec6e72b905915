"""In-memory source trust ledger storage (SourceTrustRepository)."""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from realtea_engine.data_management.schemas import SourceTrustRecord


class SourceTrustStore:
    """Per-domain reputation records. Records are never deleted."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        self._records: dict[str, SourceTrustRecord] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="SourceTrustStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def get_record(self, domain: str) -> Optional[SourceTrustRecord]:
        async with self._lock:
            record = self._records.get(domain)
            return record.model_copy() if record else None

    async def apply_delta(
        self, domain: str, delta: float, success: Optional[bool] = None
    ) -> SourceTrustRecord:
        """Create-or-update a domain record additively.

        Args:
            domain: Normalized domain.
            delta: Points added to trust_score; the result floors at 0.
            success: True counts a corroboration, False a contradiction,
                None a neutral verification.

        Returns:
            Copy of the updated record.
        """
        async with self._lock:
            record = self._records.get(domain)
            if record is None:
                record = SourceTrustRecord(domain=domain)
                self._records[domain] = record

            record.trust_score = max(0.0, record.trust_score + delta)
            record.verification_count += 1
            if success is True:
                record.success_count += 1
            elif success is False:
                record.failure_count += 1
            record.updated_at = datetime.now(timezone.utc)

            self._logger.debug(
                "source_trust_updated",
                domain=domain,
                delta=delta,
                trust_score=record.trust_score,
            )
            if self._persistence_path:
                self._save_to_file()
            return record.model_copy()

    async def list_records(self) -> list[SourceTrustRecord]:
        async with self._lock:
            return [r.model_copy() for r in self._records.values()]

    def _save_to_file(self) -> None:
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {d: r.model_dump(mode="json") for d, r in self._records.items()}
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._records = {
                d: SourceTrustRecord.model_validate(raw) for d, raw in data.items()
            }
        except Exception as e:
            self._logger.error("load_failed", error=str(e))
            self._records = {}
