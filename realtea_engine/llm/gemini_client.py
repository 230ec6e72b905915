"""Async Gemini client used by the claim reasoner.

Every call asks for a JSON reply (``response_mime_type=application/json``)
since the only consumer parses a verdict object. Transient API errors are
retried with jittered exponential backoff; safety blocks are not.
"""

from typing import Optional

import google.generativeai as genai
from google.generativeai.types.generation_types import BlockedPromptException
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from realtea_engine.config.settings import settings


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.bind(component="llm.gemini").warning(
        "Gemini call failed (attempt {}), retrying: {}", state.attempt_number, error
    )


class GeminiClient:
    """
    Thin async wrapper over ``genai.GenerativeModel``.

    Construction fails fast without an API key; the reasoner only builds a
    client on first use, so an unconfigured deployment still imports cleanly.

    Attributes:
        model_name: Model identifier
        max_attempts: Calls made before the last error is re-raised
        backoff: Multiplier for the jittered exponential wait, in seconds
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        max_attempts: int = 3,
        backoff: float = 1.0,
    ):
        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not configured in environment")

        self.model_name = model_name or settings.gemini_model
        self.max_attempts = max_attempts
        self.backoff = backoff
        genai.configure(api_key=api_key)
        self._models: dict[Optional[str], genai.GenerativeModel] = {}
        logger.bind(component="llm.gemini").info(f"Gemini client ready ({self.model_name})")

    def _model(self, system_instruction: Optional[str]) -> genai.GenerativeModel:
        # one model per system prompt; the reasoner only ever uses one
        if system_instruction not in self._models:
            self._models[system_instruction] = genai.GenerativeModel(
                self.model_name, system_instruction=system_instruction
            )
        return self._models[system_instruction]

    async def agenerate_content(
        self,
        prompt: str,
        temperature: float = 0.3,
        system_instruction: Optional[str] = None,
    ) -> str:
        """
        Generate a JSON reply for ``prompt``.

        Raises:
            BlockedPromptException: Prompt rejected by safety filters (not retried)
            Exception: Last API error once attempts are exhausted
        """
        model = self._model(system_instruction)
        config = genai.types.GenerationConfig(
            temperature=temperature,
            response_mime_type="application/json",
        )
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random_exponential(multiplier=self.backoff, max=8),
            retry=retry_if_not_exception_type(BlockedPromptException),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await model.generate_content_async(
                        prompt, generation_config=config
                    )
                    return response.text
        except BlockedPromptException as e:
            logger.bind(component="llm.gemini").error(f"Prompt blocked by safety filters: {e}")
            raise
        raise RuntimeError("Gemini retry loop exited without a response")
