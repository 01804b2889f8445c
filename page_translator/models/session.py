"""
Reading session state models.

Sandi Metz Principles:
- Single Responsibility: Session state structure
- Immutable data: Every transition produces a new state
- Clear naming: Fields mirror what the reader view renders
"""

from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from page_translator.models.ocr import BoundingBox


class BubbleState(str, Enum):
    """Translation bubble status."""

    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


class ErrorCategory(str, Enum):
    """User-facing error categories."""

    NO_TEXT = "no_text"
    SETUP = "setup"
    GENERIC = "generic"


class TranslationOverlay(BaseModel):
    """On-screen translation, used when burn-in is unavailable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Overlay identifier")
    position: BoundingBox = Field(..., description="Screen rectangle")
    translated_text: str = Field(..., description="Translated text")
    original_text: str = Field(default="", description="Original text")
    font_size: float = Field(default=14.0, gt=0.0, description="Font size")


class SessionState(BaseModel):
    """Snapshot of one reading session's translation state."""

    model_config = ConfigDict(frozen=True)

    current_image_path: Optional[str] = None
    original_image_path: Optional[str] = None
    auto_translate_enabled: bool = False
    translated_pages: FrozenSet[str] = frozenset()
    bubble_state: BubbleState = BubbleState.IDLE
    error_message: Optional[str] = None
    error_category: Optional[ErrorCategory] = None
    overlays: Tuple[TranslationOverlay, ...] = ()
    edited_image_path: Optional[str] = None
    overlay_opacity: float = Field(default=0.95, ge=0.3, le=1.0)
    show_overlays: bool = True
    show_original_text: bool = False

    @property
    def is_processing(self) -> bool:
        """Check if a translation is in flight."""
        return self.bubble_state == BubbleState.PROCESSING
