"""
Translation cache record models.

Sandi Metz Principles:
- Single Responsibility: Cache data structure
- Clear naming: Descriptive fields
- Immutable data: Records are snapshots of stored rows
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheRecord(BaseModel):
    """One cached translation."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Record identifier assigned on insert")
    fingerprint: str = Field(..., description="Hash of (original text, context)")
    original_text: str = Field(..., description="Text as recognised by OCR")
    translated_text: str = Field(..., description="Translated text")
    source_language: str = Field(..., description="Source language tag")
    target_language: str = Field(..., description="Target language tag")
    model_used: str = Field(..., description="Backend model that produced it")
    confidence_score: float = Field(..., ge=0.0, le=1.0, description="Confidence")
    created_at: datetime = Field(..., description="Insertion time (UTC)")
    usage_count: int = Field(default=1, ge=0, description="Number of uses")
    user_rating: Optional[int] = Field(None, ge=1, le=5, description="1-5 rating")
    is_favorited: bool = Field(default=False, description="Exempt from eviction")
    bubble_context: Optional[str] = Field(None, description="Serialized context")

    @property
    def size_chars(self) -> int:
        """Estimated storage size in characters."""
        return len(self.original_text) + len(self.translated_text)

    @property
    def is_rated(self) -> bool:
        """Check if the user rated this translation."""
        return self.user_rating is not None

    def age(self, now: Optional[datetime] = None) -> timedelta:
        """
        Get record age.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            Time elapsed since insertion
        """
        reference = now or datetime.now(timezone.utc)
        return reference - self.created_at
