"""
Page translation pipeline helpers.
"""

from page_translator.pipeline.region_alignment import (
    align_translation_to_regions,
    build_region_context,
    build_stamps,
    combine_region_text,
    stamp_font_size,
)

__all__ = [
    "align_translation_to_regions",
    "build_region_context",
    "build_stamps",
    "combine_region_text",
    "stamp_font_size",
]
