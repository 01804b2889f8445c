"""
Translation prompt building and response cleanup.

Sandi Metz Principles:
- Single Responsibility: Prompt text in, prompt text out
- Small functions: Each section built separately
- Pure functions: No side effects
"""

import re
from typing import List, Optional

from page_translator.models.translation import BubbleType, TranslationContext

BUBBLE_INSTRUCTIONS = {
    BubbleType.DIALOGUE: "Character dialogue - preserve character voice and personality",
    BubbleType.THOUGHT: "Internal monologue - use introspective, first-person style",
    BubbleType.NARRATION: "Narration - use formal, descriptive tone",
    BubbleType.SOUND_EFFECT: (
        "Sound effect - translate onomatopoeia naturally for target language"
    ),
    BubbleType.TITLE: "Title/header - use bold, impactful language",
}

_PREFIX_PATTERNS = (
    re.compile(r"^Translation:\s*", re.IGNORECASE),
    re.compile(r"^Translated text:\s*", re.IGNORECASE),
)


def _context_section(context: TranslationContext) -> List[str]:
    lines = ["**Manga Translation Context**"]

    if context.series_title:
        lines.append(f"Series: {context.series_title}")
    if context.genre:
        lines.append(f"Genre: {context.genre}")
    if context.character_names:
        names = ", ".join(
            f"{original} ({translated})"
            for original, translated in context.character_names.items()
        )
        lines.append(f"Characters: {names}")
    if context.previous_dialogue:
        lines.append(f'Previous dialogue: "{context.previous_dialogue}"')

    lines.extend(["", "**Text Type**", BUBBLE_INSTRUCTIONS[context.bubble_type], ""])
    return lines


def build_translation_prompt(
    text: str,
    target_language: str,
    source_language: str = "auto",
    context: Optional[TranslationContext] = None,
) -> str:
    """
    Build manga-aware translation prompt.

    Args:
        text: Text to translate
        target_language: Target language tag
        source_language: Source language tag or "auto"
        context: Optional manga context

    Returns:
        Prompt text
    """
    lines: List[str] = []
    if context is not None:
        lines.extend(_context_section(context))

    lines.append("**Translation Task**")
    lines.append(f"Translate the following text to {target_language}")
    if source_language != "auto":
        lines.append(f"Source language: {source_language}")

    lines.extend(
        [
            "",
            "**Guidelines:**",
            f"- Natural, conversational {target_language} suitable for manga",
            "- Preserve the original tone and emotion",
            "- Keep the translation concise (speech bubbles are small)",
            "- Keep one output line per input line",
            "- DO NOT include explanations or notes",
            "- Respond with ONLY the translated text",
            "",
            "**Text to translate:**",
            f'"{text}"',
            "",
            "**Translation:**",
        ]
    )
    return "\n".join(lines)


def clean_translation(text: str) -> str:
    """
    Strip wrapping quotes and label prefixes from a model response.

    Args:
        text: Raw model output

    Returns:
        Cleaned translation
    """
    cleaned = text.strip()

    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1]

    for pattern in _PREFIX_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1)

    return cleaned.strip()
