"""
External collaborator interfaces.

OCR and burn-in rendering live outside this package; anything with these
method shapes can be plugged into the pipeline.
"""

from typing import List, Optional, Protocol, Sequence

from page_translator.models.ocr import TextRegion
from page_translator.models.translation import TranslationStamp


class OcrEngine(Protocol):
    """Detects text regions in an image."""

    async def detect_text(
        self, image_path: str, language_hint: Optional[str] = None
    ) -> List[TextRegion]:
        """
        Detect text in image.

        Args:
            image_path: Image file path
            language_hint: OCR language hint (e.g. "zh", "ja")

        Returns:
            Detected regions, possibly empty

        Raises:
            OcrFailure: On I/O or model error
        """
        ...


class ImageRenderer(Protocol):
    """Burns translated text into an image."""

    async def render(self, image_path: str, stamps: Sequence[TranslationStamp]) -> str:
        """
        Render stamps onto a copy of the image.

        Args:
            image_path: Source image path
            stamps: Text stamps to draw

        Returns:
            Path of the edited image

        Raises:
            RenderFailure: On I/O or drawing error
        """
        ...
