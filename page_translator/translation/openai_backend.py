"""
OpenAI translation backend implementation.

Sandi Metz Principles:
- Single Responsibility: OpenAI API interaction
- Small methods: Each method < 10 lines
- Dependency Injection: API key, model and client injected
"""

from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from page_translator.config import config
from page_translator.exceptions import BackendFailure
from page_translator.models.translation import BackendTranslation, TranslationContext
from page_translator.translation.backend import BaseTranslationBackend
from page_translator.translation.prompt import build_translation_prompt, clean_translation
from page_translator.translation.rate_limiter import RateLimitConfig, RateLimiter
from page_translator.translation.retry import RetryHandler
from page_translator.utils.logger import get_logger, log_backend_call

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.9


class OpenAITranslationBackend(BaseTranslationBackend):
    """
    OpenAI implementation of translation backend.

    Handles communication with OpenAI API with rate limiting and retry.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        retry_handler: Optional[RetryHandler] = None,
        client: Optional[AsyncOpenAI] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        """
        Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key
            model: Model name (defaults to configured fast model)
            rate_limiter: Optional rate limiter (creates default if None)
            retry_handler: Optional retry handler (creates default if None)
            client: Optional preconfigured client
            max_tokens: Completion token cap
            temperature: Sampling temperature
        """
        self._api_key = api_key
        self._model = model or config.openai_fast_model
        self._client = client
        self._rate_limiter = rate_limiter or RateLimiter(
            RateLimitConfig(requests_per_minute=config.requests_per_minute)
        )
        self._retry_handler = retry_handler or RetryHandler()
        self._max_tokens = max_tokens or config.translation_max_tokens
        self._temperature = (
            temperature if temperature is not None else config.translation_temperature
        )

    @property
    def model(self) -> str:
        """Get model name."""
        return self._model

    @property
    def is_configured(self) -> bool:
        """Check if an API key is set."""
        return bool(self._api_key)

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        context: Optional[TranslationContext] = None,
    ) -> BackendTranslation:
        """
        Translate text using OpenAI.

        Args:
            text: Text to translate
            target_language: Target language tag
            source_language: Source language tag or "auto"
            context: Optional manga context

        Returns:
            Backend translation

        Raises:
            BackendFailure: If API call fails or returns nothing
        """
        await self._rate_limiter.acquire()
        prompt = build_translation_prompt(text, target_language, source_language, context)

        try:
            return await self._retry_handler.execute(
                lambda: self._make_api_call(prompt, source_language)
            )
        except BackendFailure:
            raise
        except OpenAIError as e:
            error_msg = self._build_error_message(e, "OpenAI API call failed")
            logger.error("OpenAI error", error=str(e))
            raise BackendFailure(error_msg) from e
        except Exception as e:
            error_msg = self._build_error_message(
                e, "Unexpected error in OpenAI backend"
            )
            logger.error("Unexpected error", error=str(e))
            raise BackendFailure(error_msg) from e

    async def _make_api_call(
        self, prompt: str, source_language: str
    ) -> BackendTranslation:
        """
        Make OpenAI API call.

        Args:
            prompt: Translation prompt
            source_language: Source language tag

        Returns:
            Backend translation
        """
        client = self._get_client()

        response = await client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        content = clean_translation(response.choices[0].message.content or "")
        if not content:
            raise BackendFailure("Empty translation response")

        tokens = response.usage.total_tokens if response.usage else 0
        log_backend_call(provider="openai", model=response.model, tokens=tokens)

        return BackendTranslation(
            translated_text=content,
            confidence=DEFAULT_CONFIDENCE,
            model_identifier=response.model or self._model,
            detected_source_language=source_language,
            tokens_used=tokens,
        )

    def get_name(self) -> str:
        """
        Get backend name.

        Returns:
            Backend name
        """
        return "openai"

    def _get_client(self) -> AsyncOpenAI:
        """
        Get or create OpenAI client.

        Returns:
            OpenAI async client
        """
        if not self._client:
            self._client = AsyncOpenAI(api_key=self._api_key, max_retries=0)
        return self._client
