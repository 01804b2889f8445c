"""
Translation backends.
"""

from page_translator.translation.backend import BaseTranslationBackend, ModelProfile
from page_translator.translation.factory import TranslationBackendFactory
from page_translator.translation.fallback import ProfileFallbackBackend

__all__ = [
    "BaseTranslationBackend",
    "ModelProfile",
    "ProfileFallbackBackend",
    "TranslationBackendFactory",
]
