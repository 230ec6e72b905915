"""Claim reasoner port and the Gemini-backed implementation.

A reasoner reads a claim and its citations and returns a ClaimVerdict.
It may raise on any failure; the aggregator turns every failure (including
a timeout) into the deterministic fallback verdict.
"""

import json
import re
from typing import Any, Optional, Protocol, runtime_checkable

import structlog

from realtea_engine.config.prompts import FACT_CHECK_SYSTEM_PROMPT, FACT_CHECK_USER_PROMPT
from realtea_engine.config.settings import settings
from realtea_engine.data_management.schemas import Citation, ClaimVerdict

CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@runtime_checkable
class ClaimReasoner(Protocol):
    async def analyze(self, claim: str, citations: list[Citation]) -> ClaimVerdict: ...


def format_citations(citations: list[Citation]) -> str:
    """One line per citation: [i] source: "title" (published)."""
    lines = []
    for i, citation in enumerate(citations, start=1):
        published = (
            citation.published_at.isoformat() if citation.published_at else "undated"
        )
        lines.append(f'[{i}] {citation.source_name}: "{citation.title}" ({published})')
    return "\n".join(lines) if lines else "(no sources found)"


def parse_verdict(text: str) -> ClaimVerdict:
    """Parse the reasoner's JSON answer, tolerating a markdown code fence.

    Raises:
        ValueError: If the text is not a JSON object.
    """
    cleaned = CODE_FENCE.sub("", (text or "").strip())
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("Verdict is not a JSON object")

    ratio = float(data.get("agreementRatio", 0.0))
    return ClaimVerdict(
        title=str(data.get("title", "")),
        summary=str(data.get("summary", "")),
        agreement_ratio=max(0.0, min(1.0, ratio)),
        verification_summary=str(data.get("verificationSummary", "")),
        is_verified=bool(data.get("isVerified", False)),
        contradictions=[str(c) for c in data.get("contradictions") or []],
        key_findings=[str(k) for k in data.get("keyFindings") or []],
    )


class GeminiClaimReasoner:
    """ClaimReasoner backed by Gemini.

    The client is created on first use so that importing or constructing
    the reasoner never requires an API key.
    """

    def __init__(self, client: Optional[Any] = None, temperature: float = 0.3) -> None:
        self._client = client
        self._temperature = temperature
        self._logger = structlog.get_logger().bind(component="GeminiClaimReasoner")

    def _get_client(self) -> Any:
        if self._client is None:
            from realtea_engine.llm.gemini_client import GeminiClient

            self._client = GeminiClient(api_key=settings.gemini_api_key)
        return self._client

    async def analyze(self, claim: str, citations: list[Citation]) -> ClaimVerdict:
        prompt = FACT_CHECK_USER_PROMPT.format(
            claim=claim, sources=format_citations(citations)
        )
        text = await self._get_client().agenerate_content(
            prompt,
            temperature=self._temperature,
            system_instruction=FACT_CHECK_SYSTEM_PROMPT,
        )
        verdict = parse_verdict(text)
        self._logger.info(
            "claim_analyzed",
            agreement_ratio=verdict.agreement_ratio,
            is_verified=verdict.is_verified,
        )
        return verdict
