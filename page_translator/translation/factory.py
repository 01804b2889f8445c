"""
Translation backend factory.

Sandi Metz Principles:
- Single Responsibility: Create backend instances
- Open/Closed: Easy to add new providers
- Dependency Inversion: Returns interface, not concrete class
"""

from typing import Callable, Dict, Optional

from page_translator.config import AppConfig, config as default_config
from page_translator.exceptions import ConfigurationError, NotConfiguredError
from page_translator.translation.anthropic_backend import AnthropicTranslationBackend
from page_translator.translation.backend import BaseTranslationBackend, ModelProfile
from page_translator.translation.fallback import ProfileFallbackBackend
from page_translator.translation.openai_backend import OpenAITranslationBackend
from page_translator.translation.rate_limiter import RateLimitConfig, RateLimiter
from page_translator.translation.retry import RetryConfig, RetryHandler
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)

BackendCreator = Callable[[str, RateLimiter], BaseTranslationBackend]


class TranslationBackendFactory:
    """
    Factory for creating translation backend instances.

    Creates the configured provider at the configured model profile.
    """

    def __init__(self, settings: Optional[AppConfig] = None):
        """
        Initialize factory.

        Args:
            settings: Application config (defaults to global config)
        """
        self._settings = settings or default_config

    def create(
        self,
        provider_name: Optional[str] = None,
        profile: Optional[ModelProfile] = None,
    ) -> BaseTranslationBackend:
        """
        Create translation backend instance.

        Args:
            provider_name: "openai" or "anthropic" (defaults to config)
            profile: Model profile (defaults to config)

        Returns:
            Translation backend

        Raises:
            ConfigurationError: If provider name is invalid
            NotConfiguredError: If the provider has no API key
        """
        name = (provider_name or self._settings.translation_provider).lower()
        chosen = profile or ModelProfile(self._settings.translation_profile)
        creator = self._get_creator(name)

        rate_limiter = RateLimiter(
            RateLimitConfig(
                requests_per_minute=self._settings.requests_per_minute,
                requests_per_day=self._settings.requests_per_day,
            )
        )
        backend = creator(self._model_for(name, chosen), rate_limiter)

        if chosen == ModelProfile.FAST and self._settings.enable_profile_fallback:
            accurate = creator(self._model_for(name, ModelProfile.ACCURATE), rate_limiter)
            backend = ProfileFallbackBackend(backend, accurate)

        logger.info(f"Created {name} backend", profile=chosen.value)
        return backend

    def _get_creator(self, provider_name: str) -> BackendCreator:
        """
        Get backend creator function.

        Args:
            provider_name: Provider name

        Returns:
            Creator function

        Raises:
            ConfigurationError: If provider name is invalid
        """
        creators: Dict[str, BackendCreator] = {
            "openai": self._create_openai,
            "anthropic": self._create_anthropic,
        }

        creator = creators.get(provider_name)
        if not creator:
            valid_providers = ", ".join(creators.keys())
            raise ConfigurationError(
                f"Invalid provider: {provider_name}. "
                f"Valid providers: {valid_providers}"
            )

        return creator

    def _model_for(self, provider_name: str, profile: ModelProfile) -> str:
        """Get model name for provider and profile."""
        return getattr(self._settings, f"{provider_name}_{profile.value}_model")

    def _retry_handler(self) -> RetryHandler:
        """Create retry handler from configured backoff."""
        return RetryHandler(RetryConfig.from_config(self._settings))

    def _create_openai(
        self, model: str, rate_limiter: RateLimiter
    ) -> OpenAITranslationBackend:
        """
        Create OpenAI backend.

        Raises:
            NotConfiguredError: If API key is missing
        """
        api_key = self._settings.openai_api_key
        if not api_key:
            raise NotConfiguredError("OpenAI API key not configured")

        return OpenAITranslationBackend(
            api_key=api_key,
            model=model,
            rate_limiter=rate_limiter,
            retry_handler=self._retry_handler(),
            max_tokens=self._settings.translation_max_tokens,
            temperature=self._settings.translation_temperature,
        )

    def _create_anthropic(
        self, model: str, rate_limiter: RateLimiter
    ) -> AnthropicTranslationBackend:
        """
        Create Anthropic backend.

        Raises:
            NotConfiguredError: If API key is missing
        """
        api_key = self._settings.anthropic_api_key
        if not api_key:
            raise NotConfiguredError("Anthropic API key not configured")

        return AnthropicTranslationBackend(
            api_key=api_key,
            model=model,
            rate_limiter=rate_limiter,
            retry_handler=self._retry_handler(),
            max_tokens=self._settings.translation_max_tokens,
            temperature=self._settings.translation_temperature,
        )
