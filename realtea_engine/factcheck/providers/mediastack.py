"""Mediastack live news search."""

from typing import Any

from realtea_engine.config.settings import settings
from realtea_engine.data_management.schemas import Citation
from realtea_engine.factcheck.providers.base import HttpEvidenceProvider, parse_published_at


class MediastackProvider(HttpEvidenceProvider):
    name = "Mediastack"
    base_url = "http://api.mediastack.com/v1/news"

    def __init__(self, api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(api_key=api_key or settings.mediastack_api_key, **kwargs)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _build_request(self, query: str) -> tuple[str, dict[str, Any]]:
        return self.base_url, {
            "access_key": self.api_key,
            "keywords": query,
            "limit": 10,
            "sort": "published_desc",
        }

    def _parse(self, payload: dict[str, Any]) -> list[Citation]:
        return [
            Citation(
                source_name=article.get("source") or "Unknown",
                title=article.get("title") or "",
                url=article.get("url") or "",
                published_at=parse_published_at(article.get("published_at")),
                description=article.get("description") or "",
                provider=self.name,
            )
            for article in payload.get("data") or []
        ]
