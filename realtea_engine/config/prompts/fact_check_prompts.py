"""Prompt templates for claim verification against collected citations.

The reasoner must answer with a single JSON object; the parser tolerates a
surrounding markdown code fence but nothing else.
"""

FACT_CHECK_SYSTEM_PROMPT = (
    "You are an expert fact-checker who analyzes claims against verified "
    "sources. Always be neutral and evidence-based."
)

FACT_CHECK_USER_PROMPT = '''You are a professional fact-checker analyzing a claim against news sources.

CLAIM TO VERIFY:
{claim}

SOURCES FOUND:
{sources}

Analyze whether the claim is supported by the sources and provide:
1. A neutral, factual summary of what actually happened
2. Assessment of source agreement (share of sources supporting the claim)
3. Any contradictions or inconsistencies
4. Overall verification status

Return ONLY valid JSON (no markdown, no code fences) with these exact fields:
{{
    "title": "Brief neutral headline (max 100 chars)",
    "summary": "Factual 2-3 sentence summary of the event",
    "agreementRatio": 0.0-1.0,
    "verificationSummary": "Detailed analysis of verification results (150-300 words)",
    "isVerified": true/false,
    "contradictions": ["any contradictions found"],
    "keyFindings": ["key finding 1", "key finding 2", "key finding 3"]
}}'''
