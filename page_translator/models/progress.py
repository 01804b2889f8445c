"""
Pipeline progress models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from page_translator.models.translation import TranslationResult


class PipelineStage(str, Enum):
    """Stages of a page translation, in order."""

    OCR = "ocr"
    TRANSLATING = "translating"
    RENDERING = "rendering"
    DONE = "done"


STAGE_PROGRESS = {
    PipelineStage.OCR: 0.0,
    PipelineStage.TRANSLATING: 0.25,
    PipelineStage.RENDERING: 0.75,
    PipelineStage.DONE: 1.0,
}


class PipelineProgress(BaseModel):
    """One stage notification."""

    stage: PipelineStage = Field(..., description="Stage entered")
    progress: float = Field(..., ge=0.0, le=1.0, description="Overall progress")
    message: Optional[str] = Field(None, description="Human readable status")
    result: Optional[TranslationResult] = Field(
        None, description="Final result, set only on DONE"
    )

    @classmethod
    def for_stage(
        cls,
        stage: PipelineStage,
        message: Optional[str] = None,
        result: Optional[TranslationResult] = None,
    ) -> "PipelineProgress":
        """Create notification with the stage's fixed progress value."""
        return cls(
            stage=stage, progress=STAGE_PROGRESS[stage], message=message, result=result
        )

    @property
    def is_done(self) -> bool:
        """Check if this is the final notification."""
        return self.stage == PipelineStage.DONE
