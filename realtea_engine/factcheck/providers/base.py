"""Evidence provider port and shared httpx plumbing.

An evidence provider answers a text query with citations. Failure modes are
collapsed to one outcome: an empty list. Missing API keys, non-200
responses, malformed payloads and transport errors all mean "this provider
contributed no evidence".
"""

from datetime import datetime, timezone
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
import structlog
from dateutil import parser as dateutil_parser
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from realtea_engine.config.settings import settings
from realtea_engine.data_management.schemas import Citation

USER_AGENT = "RealTea-FactCheck/1.0"
MAX_ARTICLES_PER_PROVIDER = 5


@runtime_checkable
class EvidenceProvider(Protocol):
    name: str

    async def search(self, query: str) -> list[Citation]: ...


def parse_published_at(value: Any) -> Optional[datetime]:
    """Parse a provider timestamp into an aware UTC datetime, None if unusable."""
    if not value:
        return None
    try:
        dt = dateutil_parser.parse(str(value))
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class HttpEvidenceProvider:
    """Base for JSON-over-HTTP evidence providers.

    Subclasses set name, implement _build_request() and _parse(). Transport
    errors are retried once with backoff; everything else returns [].
    """

    name = "base"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_articles: int = MAX_ARTICLES_PER_PROVIDER,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.max_articles = max_articles
        self._client = client
        self._logger = structlog.get_logger().bind(component=type(self).__name__)

    @property
    def enabled(self) -> bool:
        return True

    def _build_request(self, query: str) -> tuple[str, dict[str, Any]]:
        raise NotImplementedError

    def _parse(self, payload: dict[str, Any]) -> list[Citation]:
        raise NotImplementedError

    async def search(self, query: str) -> list[Citation]:
        if not self.enabled:
            self._logger.debug("provider_disabled", provider=self.name)
            return []

        url, params = self._build_request(query)
        try:
            response = await self._get(url, params)
        except httpx.HTTPError as e:
            self._logger.warning("provider_request_failed", provider=self.name, error=str(e))
            return []

        if response.status_code != 200:
            self._logger.warning(
                "provider_bad_status", provider=self.name, status=response.status_code
            )
            return []

        try:
            citations = self._parse(response.json())
        except (ValueError, KeyError, TypeError) as e:
            self._logger.warning("provider_bad_payload", provider=self.name, error=str(e))
            return []

        citations = [c for c in citations if c.url][: self.max_articles]
        self._logger.info("provider_results", provider=self.name, results=len(citations))
        return citations

    async def _get(self, url: str, params: dict[str, Any]) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(2),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                if self._client is not None:
                    return await self._client.get(url, params=params, timeout=self.timeout)
                async with httpx.AsyncClient(
                    timeout=self.timeout, headers={"User-Agent": USER_AGENT}
                ) as client:
                    return await client.get(url, params=params)
        raise RuntimeError(f"Unexpected retry loop exit in {self.name}")
