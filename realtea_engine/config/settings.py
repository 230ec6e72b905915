"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global engine settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key for claim reasoning (optional)
        gemini_model: Gemini model used for claim reasoning
        news_api_key: NewsAPI.org API key (optional evidence provider)
        mediastack_api_key: Mediastack API key (optional evidence provider)
        gdelt_enabled: Query the keyless GDELT document API
        provider_timeout_seconds: Per-call timeout for evidence providers
        reasoner_timeout_seconds: Timeout for the AI reasoning step
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        vote_limit: Votes allowed per vote window
        vote_window_seconds: Length of the vote window
        vote_cooldown_seconds: Minimum gap between two votes of one user
        comment_limit: Comments allowed per comment window
        comment_window_seconds: Length of the comment window
        min_credibility_score: Acceptance floor on the 0-100 credibility scale
        min_independent_sources: Distinct source domains required for acceptance
        trust_cache_ttl_seconds: Age after which a cached trust score is stale
        persistence_dir: Optional directory for JSON snapshots of in-memory stores
    """

    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key"
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model identifier used for claim reasoning"
    )
    news_api_key: str | None = Field(
        default=None,
        description="NewsAPI.org API key for evidence search"
    )
    mediastack_api_key: str | None = Field(
        default=None,
        description="Mediastack API key for evidence search"
    )
    gdelt_enabled: bool = Field(
        default=True,
        description="Query the GDELT document API (no key required)"
    )
    provider_timeout_seconds: float = Field(
        default=10.0,
        description="Per-call timeout for each evidence provider"
    )
    reasoner_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for the AI reasoning step"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    vote_limit: int = Field(
        default=20,
        description="Votes allowed per user per vote window"
    )
    vote_window_seconds: int = Field(
        default=3600,
        description="Vote window length (rolling hour)"
    )
    vote_cooldown_seconds: float = Field(
        default=0.0,
        description="Minimum seconds between two votes from the same user"
    )
    comment_limit: int = Field(
        default=3,
        description="Comments allowed per user per comment window"
    )
    comment_window_seconds: int = Field(
        default=60,
        description="Comment window length (rolling minute)"
    )
    min_credibility_score: float = Field(
        default=60.0,
        description="Minimum weighted credibility (0-100) for fact-check acceptance"
    )
    min_independent_sources: int = Field(
        default=2,
        description="Minimum distinct source domains for fact-check acceptance"
    )
    trust_cache_ttl_seconds: int = Field(
        default=3600,
        description="Cached trust scores older than this are recomputed"
    )
    persistence_dir: str | None = Field(
        default=None,
        description="Directory for JSON snapshots of the in-memory stores"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
