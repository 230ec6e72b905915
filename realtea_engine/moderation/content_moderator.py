"""Content moderation gate for comments and corrections.

Checks run in a fixed order and stop at the first match:

| Check             | Trigger                                     | Severity |
|-------------------|---------------------------------------------|----------|
| HATE_SPEECH       | any hate-speech pattern                     | high     |
| PROFANITY         | more than 3 distinct profane tokens         | medium   |
| LINK_SPAM         | more than 5 URLs                            | low      |
| REPEATED_CONTENT  | a word longer than 3 chars seen > 10 times  | low      |
| EXTREME_BIAS      | any extreme political-bias phrase           | medium   |

The moderator is a pure function of its input text: no I/O, no state.
Routing flagged content to the review queue is the caller's job.
"""

import re
from collections import Counter

from loguru import logger

from realtea_engine.config.moderation_patterns import (
    EXTREME_BIAS_PATTERNS,
    HATE_SPEECH_PATTERNS,
    LINK_SPAM_MAX_URLS,
    PROFANITY_MAX_DISTINCT,
    PROFANITY_PATTERN,
    REPEAT_MAX_OCCURRENCES,
    REPEAT_MIN_WORD_LENGTH,
    URL_PATTERN,
)
from realtea_engine.data_management.schemas import (
    ModerationReason,
    ModerationResult,
    Severity,
)

WORD_PATTERN = re.compile(r"\b\w+\b")


class ContentModerator:
    """
    Deterministic text classifier for user-submitted content.

    Usage:
        moderator = ContentModerator()
        result = moderator.moderate("The council approved the budget today.")

    Example:
        >>> ContentModerator().moderate("Parliament passed the bill on Tuesday.").clean
        True
    """

    def __init__(
        self,
        max_profanity: int = PROFANITY_MAX_DISTINCT,
        max_urls: int = LINK_SPAM_MAX_URLS,
        max_repeats: int = REPEAT_MAX_OCCURRENCES,
    ):
        self.max_profanity = max_profanity
        self.max_urls = max_urls
        self.max_repeats = max_repeats
        self.hate_patterns = [re.compile(p, re.IGNORECASE) for p in HATE_SPEECH_PATTERNS]
        self.profanity_pattern = re.compile(PROFANITY_PATTERN, re.IGNORECASE)
        self.url_pattern = re.compile(URL_PATTERN, re.IGNORECASE)
        self.bias_patterns = [re.compile(p, re.IGNORECASE) for p in EXTREME_BIAS_PATTERNS]
        self._logger = logger.bind(component="ContentModerator")

    def moderate(self, text: str) -> ModerationResult:
        """
        Classify a text as clean or flagged.

        Args:
            text: Raw user-submitted text.

        Returns:
            ModerationResult; flagged results carry reason and severity.
        """
        result = self._classify(text or "")
        if not result.clean:
            self._logger.info(
                f"Content flagged: {result.reason.value} ({result.severity.value})"
            )
        return result

    def _classify(self, text: str) -> ModerationResult:
        for pattern in self.hate_patterns:
            if pattern.search(text):
                return ModerationResult.flagged(
                    ModerationReason.HATE_SPEECH,
                    Severity.HIGH,
                    "Hate speech detected",
                )

        profane = {m.group(0).lower() for m in self.profanity_pattern.finditer(text)}
        if len(profane) > self.max_profanity:
            return ModerationResult.flagged(
                ModerationReason.EXCESSIVE_PROFANITY,
                Severity.MEDIUM,
                "Excessive profanity",
            )

        urls = self.url_pattern.findall(text)
        if len(urls) > self.max_urls:
            return ModerationResult.flagged(
                ModerationReason.LINK_SPAM,
                Severity.LOW,
                f"Too many links ({len(urls)})",
            )

        words = [
            w
            for w in WORD_PATTERN.findall(text.lower())
            if len(w) > REPEAT_MIN_WORD_LENGTH
        ]
        if words:
            word, count = Counter(words).most_common(1)[0]
            if count > self.max_repeats:
                return ModerationResult.flagged(
                    ModerationReason.REPEATED_CONTENT,
                    Severity.LOW,
                    f"Repeated content spam ('{word}' x{count})",
                )

        for pattern in self.bias_patterns:
            if pattern.search(text):
                return ModerationResult.flagged(
                    ModerationReason.EXTREME_BIAS,
                    Severity.MEDIUM,
                    "Extreme political bias detected",
                )

        return ModerationResult.passed()
