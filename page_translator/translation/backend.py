"""
Translation backend base class and interface.

Sandi Metz Principles:
- Single Responsibility: Backend abstraction
- Interface Segregation: Minimal backend interface
- Dependency Inversion: Pipeline depends on abstraction, not SDKs
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from page_translator.models.translation import BackendTranslation, TranslationContext


class ModelProfile(str, Enum):
    """Model variant selected per request cost/quality trade-off."""

    FAST = "fast"
    ACCURATE = "accurate"


class BaseTranslationBackend(ABC):
    """
    Abstract base class for translation backends.

    Defines interface that all backends must implement.
    """

    @abstractmethod
    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        context: Optional[TranslationContext] = None,
    ) -> BackendTranslation:
        """
        Translate text.

        Args:
            text: Text to translate (one line per text region)
            target_language: Target language tag
            source_language: Source language tag or "auto"
            context: Optional manga context

        Returns:
            Backend translation

        Raises:
            BackendFailure: If translation fails
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """
        Get backend name.

        Returns:
            Backend name (e.g., "openai", "anthropic")
        """
        pass

    @property
    def is_configured(self) -> bool:
        """Check if backend holds usable credentials."""
        return True

    def _build_error_message(self, error: Exception, context: str) -> str:
        """
        Build error message with context.

        Args:
            error: The exception that occurred
            context: Context description

        Returns:
            Formatted error message
        """
        return f"{context}: {type(error).__name__} - {str(error)}"
