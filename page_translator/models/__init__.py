"""
Models package for the page translator.

Exports all model classes for easy imports throughout the application.
"""

# Cache models
from page_translator.models.cache_record import CacheRecord

# OCR models
from page_translator.models.ocr import BoundingBox, TextRegion

# Progress models
from page_translator.models.progress import PipelineProgress, PipelineStage

# Session models
from page_translator.models.session import (
    BubbleState,
    ErrorCategory,
    SessionState,
    TranslationOverlay,
)

# Statistics models
from page_translator.models.statistics import CacheStatistics

# Translation models
from page_translator.models.translation import (
    BackendTranslation,
    BubbleType,
    PipelineRequest,
    TranslationContext,
    TranslationResult,
    TranslationStamp,
)

__all__ = [
    # Cache
    "CacheRecord",
    # OCR
    "BoundingBox",
    "TextRegion",
    # Progress
    "PipelineProgress",
    "PipelineStage",
    # Session
    "BubbleState",
    "ErrorCategory",
    "SessionState",
    "TranslationOverlay",
    # Statistics
    "CacheStatistics",
    # Translation
    "BackendTranslation",
    "BubbleType",
    "PipelineRequest",
    "TranslationContext",
    "TranslationResult",
    "TranslationStamp",
]
