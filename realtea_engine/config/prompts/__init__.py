"""Prompt templates for the AI claim reasoner."""

from realtea_engine.config.prompts.fact_check_prompts import (
    FACT_CHECK_SYSTEM_PROMPT,
    FACT_CHECK_USER_PROMPT,
)

__all__ = [
    "FACT_CHECK_SYSTEM_PROMPT",
    "FACT_CHECK_USER_PROMPT",
]
