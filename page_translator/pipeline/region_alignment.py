"""
Best-effort alignment of one translation back onto OCR regions.

Sandi Metz Principles:
- Single Responsibility: Region text in, per-region text out
- Small functions: Each step isolated
- Pure functions: No side effects
"""

import json
from typing import List, Optional, Sequence

from page_translator.models.ocr import TextRegion
from page_translator.models.translation import TranslationContext, TranslationStamp

MIN_STAMP_FONT_SIZE = 16.0
MAX_STAMP_FONT_SIZE = 48.0
STAMP_FONT_RATIO = 0.6


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def combine_region_text(regions: Sequence[TextRegion]) -> str:
    """
    Join region texts, one region per line.

    Args:
        regions: OCR regions in reading order

    Returns:
        Combined text
    """
    return "\n".join(region.text.strip() for region in regions)


def build_region_context(
    regions: Sequence[TextRegion], context: Optional[TranslationContext] = None
) -> str:
    """
    Serialize region layout and manga context for fingerprinting.

    Args:
        regions: OCR regions
        context: Optional manga context

    Returns:
        Stable JSON string
    """
    payload = {
        "regions": [
            [round(value) for value in region.bounding_box.as_list()]
            for region in regions
        ],
        "context": context.model_dump(mode="json") if context else None,
    }
    return json.dumps(payload, sort_keys=True)


def align_translation_to_regions(translated_text: str, region_count: int) -> List[str]:
    """
    Map translated lines onto regions by position.

    Line i goes to region i. Missing lines reuse the last available line;
    surplus lines are appended to the last region so no text is lost.

    Args:
        translated_text: Backend output for the combined text
        region_count: Number of OCR regions

    Returns:
        One text per region
    """
    if region_count <= 0:
        return []

    lines = [line.strip() for line in translated_text.splitlines() if line.strip()]
    if not lines:
        return [translated_text.strip()] * region_count

    if len(lines) > region_count:
        head = lines[: region_count - 1]
        return head + ["\n".join(lines[region_count - 1 :])]

    return lines + [lines[-1]] * (region_count - len(lines))


def stamp_font_size(region_height: float) -> float:
    """
    Derive burn-in font size from the original text height.

    Args:
        region_height: Height of the OCR region

    Returns:
        Font size clamped to the readable range
    """
    return clamp(
        region_height * STAMP_FONT_RATIO, MIN_STAMP_FONT_SIZE, MAX_STAMP_FONT_SIZE
    )


def build_stamps(
    regions: Sequence[TextRegion], translations: Sequence[str]
) -> List[TranslationStamp]:
    """
    Create one burn-in stamp per region.

    Args:
        regions: OCR regions
        translations: Aligned text per region

    Returns:
        Stamps in region order
    """
    return [
        TranslationStamp(
            text=text,
            region=region.bounding_box,
            font_size=stamp_font_size(region.bounding_box.height),
        )
        for region, text in zip(regions, translations)
    ]
