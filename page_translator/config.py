"""
Application configuration management.

Following Sandi Metz principles:
- Single Responsibility: Configuration loading and validation
- Small class: < 100 lines
- Clear naming: Descriptive property names
"""

from datetime import timedelta
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration with validation.

    Loads from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="PageTranslator", description="Application name")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # Translation cache settings
    cache_database_url: str = Field(
        default="sqlite+aiosqlite:///translation_cache.db",
        description="SQLAlchemy URL of the cache database",
    )
    cache_max_size_chars: int = Field(
        default=500 * 1024 * 1024, ge=1, description="Max cached text size"
    )
    cache_max_entries: int = Field(default=10_000, ge=1, description="Max entries")
    cache_max_age_days: int = Field(default=30, ge=1, description="Max entry age")
    cache_cleanup_batch_size: int = Field(
        default=100, ge=1, description="Size eviction batch"
    )

    # Translation backend settings
    translation_provider: Literal["openai", "anthropic"] = Field(
        default="openai", description="Translation provider"
    )
    translation_profile: Literal["fast", "accurate"] = Field(
        default="fast", description="Model profile"
    )
    enable_profile_fallback: bool = Field(
        default=True, description="Retry with accurate profile on failure"
    )
    openai_api_key: str = Field(default="", description="OpenAI API key")
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    openai_fast_model: str = Field(default="gpt-4o-mini", description="Fast model")
    openai_accurate_model: str = Field(default="gpt-4o", description="Accurate model")
    anthropic_fast_model: str = Field(
        default="claude-3-5-haiku-20241022", description="Fast model"
    )
    anthropic_accurate_model: str = Field(
        default="claude-3-5-sonnet-20241022", description="Accurate model"
    )
    translation_max_tokens: int = Field(default=1000, ge=1, description="Max tokens")
    translation_temperature: float = Field(
        default=0.3, ge=0.0, le=2.0, description="Temperature"
    )
    requests_per_minute: int = Field(default=15, ge=1, description="Minute quota")
    requests_per_day: Optional[int] = Field(
        default=None, ge=1, description="Daily quota (None = unlimited)"
    )
    backend_max_attempts: int = Field(
        default=3, ge=1, description="Attempts per backend call"
    )
    backend_retry_initial_delay: float = Field(
        default=1.0, ge=0.0, description="First retry backoff in seconds"
    )
    backend_retry_max_delay: float = Field(
        default=60.0, ge=0.0, description="Longest wait between attempts"
    )

    # Pipeline and session defaults
    default_target_language: str = Field(default="en", description="Target language")
    default_source_language: str = Field(default="auto", description="Source language")
    default_ocr_language: str = Field(default="zh", description="OCR language hint")
    complete_display_seconds: float = Field(
        default=1.0, ge=0.0, description="Complete state display time"
    )
    error_display_seconds: float = Field(
        default=3.0, ge=0.0, description="Error state display time"
    )
    batch_delay_seconds: float = Field(
        default=0.5, ge=0.0, description="Delay between batch images"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        return v.upper()

    @property
    def cache_max_age(self) -> timedelta:
        """Get maximum cache entry age."""
        return timedelta(days=self.cache_max_age_days)

    @property
    def translation_api_key(self) -> str:
        """Get API key of the selected provider."""
        if self.translation_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    @property
    def has_translation_credentials(self) -> bool:
        """Check if the selected provider has an API key."""
        return bool(self.translation_api_key)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


# Global configuration instance
config = AppConfig()
