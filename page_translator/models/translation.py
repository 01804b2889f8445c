"""
Translation request and result models.

Sandi Metz Principles:
- Small classes focused on one pipeline concern each
- Clear separation of backend output and pipeline result
- Immutable data structures
"""

import json
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from page_translator.models.ocr import BoundingBox, TextRegion


class BubbleType(str, Enum):
    """Kinds of speech bubbles, used to steer translation tone."""

    DIALOGUE = "dialogue"
    THOUGHT = "thought"
    NARRATION = "narration"
    SOUND_EFFECT = "sound_effect"
    TITLE = "title"


class TranslationContext(BaseModel):
    """Manga-specific context passed to the backend."""

    model_config = ConfigDict(frozen=True)

    series_title: Optional[str] = Field(None, description="Series title")
    genre: Optional[str] = Field(None, description="Genre")
    character_names: Dict[str, str] = Field(
        default_factory=dict, description="Original name -> translated name"
    )
    previous_dialogue: Optional[str] = Field(None, description="Preceding line")
    bubble_type: BubbleType = Field(
        default=BubbleType.DIALOGUE, description="Bubble type"
    )

    def serialize(self) -> str:
        """Serialize to a stable string (usable as cache context)."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True)


class BackendTranslation(BaseModel):
    """Output of one translation backend call."""

    translated_text: str = Field(..., description="Translated text")
    confidence: float = Field(default=0.9, ge=0.0, le=1.0, description="Confidence")
    model_identifier: str = Field(..., description="Model that translated")
    detected_source_language: str = Field(
        default="auto", description="Source language reported by the backend"
    )
    tokens_used: int = Field(default=0, ge=0, description="Tokens consumed")


class TranslationStamp(BaseModel):
    """Text to burn into an image at a given rectangle."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Text to draw")
    region: BoundingBox = Field(..., description="Target rectangle")
    font_size: float = Field(default=16.0, gt=0.0, description="Font size")
    font_family: str = Field(default="Roboto", description="Font family")
    text_color: str = Field(default="#000000", description="Text color")
    background_color: str = Field(default="#FFFFFF", description="Fill color")
    opacity: float = Field(default=0.95, ge=0.0, le=1.0, description="Opacity")
    max_lines: Optional[int] = Field(default=3, ge=1, description="Line cap")


class PipelineRequest(BaseModel):
    """Parameters for translating one page."""

    image_path: str = Field(..., min_length=1, description="Unmodified page image")
    target_language: str = Field(..., min_length=1, description="Target language")
    source_language: str = Field(default="auto", description="Source language")
    ocr_language_hint: Optional[str] = Field(None, description="OCR language hint")
    context: Optional[TranslationContext] = Field(None, description="Manga context")
    use_cache: bool = Field(default=True, description="Consult and fill the cache")
    selection: Optional[BoundingBox] = Field(
        None, description="Only translate regions intersecting this rectangle"
    )


class TranslationResult(BaseModel):
    """Result of translating one page."""

    original_text: str = Field(..., description="Combined OCR text")
    translated_text: str = Field(..., description="Combined translated text")
    regions: List[TextRegion] = Field(
        default_factory=list, description="Detected text regions"
    )
    region_translations: List[str] = Field(
        default_factory=list, description="Translated line per region"
    )
    model_used: str = Field(..., description="Model identifier")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence")
    source_language: str = Field(default="auto", description="Source language")
    from_cache: bool = Field(default=False, description="Served from cache")
    edited_image_path: Optional[str] = Field(None, description="Burn-in output")
    text_region: Optional[BoundingBox] = Field(
        None, description="Single region for callers that handle only one"
    )

    @property
    def has_regions(self) -> bool:
        """Check if region data is available."""
        return bool(self.regions)

    @property
    def is_burned_in(self) -> bool:
        """Check if translations were rendered into an image."""
        return self.edited_image_path is not None
