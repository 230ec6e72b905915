"""Evidence providers for the fact-check aggregator."""

from realtea_engine.factcheck.providers.base import (
    EvidenceProvider,
    HttpEvidenceProvider,
    parse_published_at,
)
from realtea_engine.factcheck.providers.gdelt import GDELTProvider
from realtea_engine.factcheck.providers.mediastack import MediastackProvider
from realtea_engine.factcheck.providers.newsapi import NewsAPIProvider


def default_providers() -> list[EvidenceProvider]:
    """NewsAPI, GDELT and Mediastack configured from settings."""
    return [NewsAPIProvider(), GDELTProvider(), MediastackProvider()]


__all__ = [
    "EvidenceProvider",
    "HttpEvidenceProvider",
    "parse_published_at",
    "NewsAPIProvider",
    "GDELTProvider",
    "MediastackProvider",
    "default_providers",
]
