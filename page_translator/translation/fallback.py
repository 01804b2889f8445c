"""
Translation profile fallback.

Sandi Metz Principles:
- Single Responsibility: Fail over from fast to accurate model
- Small methods: Each method < 10 lines
- Clear naming: Self-documenting code
"""

from typing import Optional

from page_translator.exceptions import BackendFailure
from page_translator.models.translation import BackendTranslation, TranslationContext
from page_translator.translation.backend import BaseTranslationBackend
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)


class ProfileFallbackBackend(BaseTranslationBackend):
    """
    Backend that retries a failed translation on a second backend.

    Typically the fast profile first and the accurate profile second.
    """

    def __init__(
        self, primary: BaseTranslationBackend, fallback: BaseTranslationBackend
    ):
        """
        Initialize fallback backend.

        Args:
            primary: Backend tried first
            fallback: Backend used if primary fails
        """
        self._primary = primary
        self._fallback = fallback

    @property
    def is_configured(self) -> bool:
        """Check if the primary backend is usable."""
        return self._primary.is_configured

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        context: Optional[TranslationContext] = None,
    ) -> BackendTranslation:
        """
        Translate with primary, falling back on failure.

        Raises:
            BackendFailure: If both backends fail
        """
        try:
            return await self._primary.translate(
                text, target_language, source_language, context
            )
        except BackendFailure as e:
            logger.warning(
                "Primary backend failed, using fallback",
                primary=self._primary.get_name(),
                fallback=self._fallback.get_name(),
                error=str(e),
            )

            try:
                return await self._fallback.translate(
                    text, target_language, source_language, context
                )
            except BackendFailure as fallback_error:
                error_msg = (
                    f"Both backends failed. "
                    f"Primary ({self._primary.get_name()}): {str(e)}. "
                    f"Fallback ({self._fallback.get_name()}): {str(fallback_error)}"
                )
                logger.error("Both backends failed", error=error_msg)
                raise BackendFailure(error_msg) from fallback_error

    def get_name(self) -> str:
        """
        Get backend name.

        Returns:
            Primary backend name
        """
        return self._primary.get_name()
