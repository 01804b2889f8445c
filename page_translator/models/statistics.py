"""
Cache statistics models.

Sandi Metz Principles:
- Small classes with clear purpose
- Computed properties for derived metrics
- Clear naming conventions
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


class CacheStatistics(BaseModel):
    """Derived, read-only aggregate over the translation cache."""

    total_entries: int = Field(..., ge=0, description="Number of cached records")
    total_size_chars: int = Field(
        ..., ge=0, description="Sum of original and translated text lengths"
    )
    total_usage_count: int = Field(..., ge=0, description="Sum of usage counts")
    average_rating: Optional[float] = Field(
        None, ge=1.0, le=5.0, description="Average over rated records"
    )
    favorited_count: int = Field(..., ge=0, description="Favorited records")
    language_distribution: Dict[str, int] = Field(
        default_factory=dict, description="Records per target language"
    )

    @model_validator(mode="after")
    def validate_statistics_consistency(self) -> "CacheStatistics":
        """Validate statistics consistency across all fields."""
        if self.favorited_count > self.total_entries:
            raise ValueError(
                f"favorited_count ({self.favorited_count}) cannot exceed "
                f"total_entries ({self.total_entries})"
            )

        distributed = sum(self.language_distribution.values())
        if self.language_distribution and distributed != self.total_entries:
            raise ValueError(
                f"language_distribution sums to {distributed}, "
                f"expected {self.total_entries}"
            )

        return self

    @classmethod
    def empty(cls) -> "CacheStatistics":
        """Create empty statistics (nothing cached yet)."""
        return cls(
            total_entries=0,
            total_size_chars=0,
            total_usage_count=0,
            average_rating=None,
            favorited_count=0,
            language_distribution={},
        )

    @property
    def total_size_mb(self) -> float:
        """Get estimated size in megabytes (one byte per character)."""
        return round(self.total_size_chars / (1024 * 1024), 2)

    @property
    def average_usage(self) -> float:
        """Get average usage count per record."""
        if self.total_entries == 0:
            return 0.0
        return round(self.total_usage_count / self.total_entries, 2)
