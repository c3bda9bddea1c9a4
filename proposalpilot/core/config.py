"""
Configuration management for ProposalPilot.

Loads settings from environment variables (and an optional .env file) with
sensible defaults. Uses pydantic-settings for validation.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class GeminiSettings(BaseSettings):
    """Text-generation service settings - Google Gemini generateContent."""

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (GEMINI_API_KEY). Required for live generation."
    )
    model: str = Field(
        default="gemini-2.5-flash-preview-09-2025",
        description="Model name used in the generateContent endpoint"
    )
    api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models",
        description="Base URL for model endpoints"
    )
    request_timeout: float = Field(
        default=60.0,
        description="Seconds before a single attempt is abandoned"
    )

    @property
    def endpoint(self) -> str:
        """Full generateContent URL (without credential)."""
        return f"{self.api_base.rstrip('/')}/{self.model}:generateContent"

    class Config:
        env_prefix = "GEMINI_"
        env_file = ".env"
        extra = "ignore"


class RetrySettings(BaseSettings):
    """Backoff settings for the generation call."""

    max_attempts: int = Field(
        default=3,
        description="Total attempts including the first one"
    )
    base_delay_ms: float = Field(
        default=1000.0,
        description="Delay before retry i is 2^i times this value"
    )
    max_jitter_ms: float = Field(
        default=1000.0,
        description="Upper bound (exclusive) of the random jitter added to each delay"
    )

    class Config:
        env_prefix = "RETRY_"
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    # Application
    app_name: str = "ProposalPilot"
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Generation
    use_mock: bool = Field(
        default=False,
        description="Serve canned proposals instead of calling the live service"
    )
    min_description_chars: int = Field(
        default=50,
        description="Form page keeps the submit button disabled below this length"
    )

    # Sub-settings
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)

    class Config:
        env_prefix = "PROPOSALPILOT_"
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings. Useful for dependency injection."""
    return Settings()
