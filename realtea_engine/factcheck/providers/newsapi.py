"""NewsAPI.org 'everything' search."""

from typing import Any

from realtea_engine.config.settings import settings
from realtea_engine.data_management.schemas import Citation
from realtea_engine.factcheck.providers.base import HttpEvidenceProvider, parse_published_at


class NewsAPIProvider(HttpEvidenceProvider):
    name = "NewsAPI"
    base_url = "https://newsapi.org/v2/everything"

    def __init__(self, api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(api_key=api_key or settings.news_api_key, **kwargs)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _build_request(self, query: str) -> tuple[str, dict[str, Any]]:
        return self.base_url, {
            "q": query,
            "pageSize": 10,
            "sortBy": "relevancy",
            "apiKey": self.api_key,
        }

    def _parse(self, payload: dict[str, Any]) -> list[Citation]:
        return [
            Citation(
                source_name=(article.get("source") or {}).get("name") or "Unknown",
                title=article.get("title") or "",
                url=article.get("url") or "",
                published_at=parse_published_at(article.get("publishedAt")),
                description=article.get("description") or "",
                provider=self.name,
            )
            for article in payload.get("articles") or []
        ]
