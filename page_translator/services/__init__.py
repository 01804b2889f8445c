"""
Services module.

Contains the page translation pipeline and the reading session state machine.
"""

from page_translator.services.pipeline_service import TranslationPipelineService
from page_translator.services.session_service import TranslationSession

__all__ = ["TranslationPipelineService", "TranslationSession"]
