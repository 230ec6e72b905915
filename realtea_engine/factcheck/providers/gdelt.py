"""GDELT 2.0 document API article search (no key required)."""

from typing import Any

from realtea_engine.config.settings import settings
from realtea_engine.data_management.schemas import Citation
from realtea_engine.factcheck.providers.base import HttpEvidenceProvider, parse_published_at


class GDELTProvider(HttpEvidenceProvider):
    name = "GDELT"
    base_url = "https://api.gdeltproject.org/api/v2/doc/doc"

    def __init__(self, enabled: bool | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._enabled = settings.gdelt_enabled if enabled is None else enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _build_request(self, query: str) -> tuple[str, dict[str, Any]]:
        return self.base_url, {
            "query": query,
            "mode": "artlist",
            "maxrecords": 10,
            "format": "json",
            "sort": "datedesc",
        }

    def _parse(self, payload: dict[str, Any]) -> list[Citation]:
        # GDELT has no description field; seendate looks like 20240315T120000Z
        return [
            Citation(
                source_name=article.get("domain") or "Unknown",
                title=article.get("title") or "",
                url=article.get("url") or "",
                published_at=parse_published_at(article.get("seendate")),
                description=article.get("title") or "",
                provider=self.name,
            )
            for article in payload.get("articles") or []
        ]
