"""
OCR result models.

Sandi Metz Principles:
- Small classes focused on detected text geometry
- Computed properties for derived edges
- Immutable data structures
"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class BoundingBox(BaseModel):
    """Axis-aligned rectangle in image pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    left: float = Field(..., description="Left edge")
    top: float = Field(..., description="Top edge")
    width: float = Field(..., ge=0.0, description="Width")
    height: float = Field(..., ge=0.0, description="Height")

    @property
    def right(self) -> float:
        """Get right edge."""
        return self.left + self.width

    @property
    def bottom(self) -> float:
        """Get bottom edge."""
        return self.top + self.height

    def intersects(self, other: "BoundingBox") -> bool:
        """Check if two boxes overlap."""
        return (
            self.left < other.right
            and self.right > other.left
            and self.top < other.bottom
            and self.bottom > other.top
        )

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Get smallest box containing both boxes."""
        left = min(self.left, other.left)
        top = min(self.top, other.top)
        return BoundingBox(
            left=left,
            top=top,
            width=max(self.right, other.right) - left,
            height=max(self.bottom, other.bottom) - top,
        )

    def as_list(self) -> List[float]:
        """Get [left, top, width, height]."""
        return [self.left, self.top, self.width, self.height]


class TextRegion(BaseModel):
    """Text detected by OCR with its location."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Recognised text")
    bounding_box: BoundingBox = Field(..., description="Region bounds")
    corner_points: List[Tuple[float, float]] = Field(
        default_factory=list, description="Corner points of the text quad"
    )
    confidence: float = Field(default=0.8, ge=0.0, le=1.0, description="Confidence")
    language: str = Field(default="", description="OCR language used")

    @property
    def has_text(self) -> bool:
        """Check if region carries non-blank text."""
        return bool(self.text.strip())
