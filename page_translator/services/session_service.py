"""
Reading session translation state machine.

States: idle -> processing -> complete | error -> idle (after a display delay).

Sandi Metz Principles:
- Single Responsibility: One reader view's translation state
- Small methods: One method per transition
- Dependency Injection: Pipeline, delays and sleep injected
"""

import asyncio
import math
from typing import Any, Awaitable, Callable, List, Optional, Set

from page_translator.config import config
from page_translator.exceptions import NoTextDetectedError, NotConfiguredError
from page_translator.models.ocr import BoundingBox
from page_translator.models.session import (
    BubbleState,
    ErrorCategory,
    SessionState,
    TranslationOverlay,
)
from page_translator.models.translation import TranslationContext, TranslationResult
from page_translator.pipeline.region_alignment import clamp
from page_translator.services.pipeline_service import TranslationPipelineService
from page_translator.utils.logger import get_logger, log_error

logger = get_logger(__name__)

ERROR_MESSAGES = {
    ErrorCategory.NO_TEXT: (
        "No text detected on this page. "
        "This might be an action scene or page without dialogue."
    ),
    ErrorCategory.SETUP: "Please configure your translation API key in settings.",
    ErrorCategory.GENERIC: "Translation failed. Please check your connection and try again.",
}

MIN_OVERLAY_OPACITY = 0.3
MAX_OVERLAY_OPACITY = 1.0

# Overlay sizing when burn-in is unavailable
OVERLAY_FONT_RATIO = 0.4
MIN_OVERLAY_FONT = 10.0
MAX_OVERLAY_FONT = 24.0
FALLBACK_FONT_SIZE = 14.0
FALLBACK_ORIGIN = 20.0
CHAR_WIDTH = 9.0
LINE_HEIGHT = 16.0

StateListener = Callable[[SessionState], None]


def classify_error(error: Exception) -> ErrorCategory:
    """
    Map a pipeline failure to a user-facing category.

    Args:
        error: Raised exception

    Returns:
        Error category
    """
    if isinstance(error, NoTextDetectedError):
        return ErrorCategory.NO_TEXT
    if isinstance(error, NotConfiguredError):
        return ErrorCategory.SETUP
    return ErrorCategory.GENERIC


def estimate_overlay(
    translated_text: str, original_text: str, overlay_id: str
) -> TranslationOverlay:
    """
    Build a compact overlay when no region data exists.

    Args:
        translated_text: Text to show
        original_text: Text it replaces
        overlay_id: Overlay identifier

    Returns:
        Overlay near the top-left corner sized from the text length
    """
    width = clamp(len(translated_text) * CHAR_WIDTH, 80.0, 250.0)
    lines = max(1, math.ceil(len(translated_text) * CHAR_WIDTH / width))
    height = clamp(lines * LINE_HEIGHT + 4.0, 30.0, 100.0)

    return TranslationOverlay(
        id=overlay_id,
        position=BoundingBox(
            left=FALLBACK_ORIGIN, top=FALLBACK_ORIGIN, width=width, height=height
        ),
        translated_text=translated_text,
        original_text=original_text,
        font_size=FALLBACK_FONT_SIZE,
    )


def build_overlays(image_path: str, result: TranslationResult) -> List[TranslationOverlay]:
    """
    Build on-screen overlays for a result that was not burned in.

    Args:
        image_path: Translated page
        result: Pipeline result

    Returns:
        One overlay per region, or one estimated overlay without regions
    """
    if not result.has_regions:
        return [
            estimate_overlay(
                result.translated_text, result.original_text, f"{image_path}:0"
            )
        ]

    return [
        TranslationOverlay(
            id=f"{image_path}:{index}",
            position=region.bounding_box,
            translated_text=text,
            original_text=region.text,
            font_size=clamp(
                region.bounding_box.height * OVERLAY_FONT_RATIO,
                MIN_OVERLAY_FONT,
                MAX_OVERLAY_FONT,
            ),
        )
        for index, (region, text) in enumerate(
            zip(result.regions, result.region_translations)
        )
    ]


class TranslationSession:
    """
    Translation state of one reading session.

    At most one pipeline run is in flight: triggers while processing are
    ignored, not queued. Must be driven from within a running event loop.
    """

    def __init__(
        self,
        pipeline: TranslationPipelineService,
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        ocr_language_hint: Optional[str] = None,
        context: Optional[TranslationContext] = None,
        complete_display_seconds: Optional[float] = None,
        error_display_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize session.

        Args:
            pipeline: Page translation pipeline
            target_language: Target language (defaults to config)
            source_language: Source language (defaults to config)
            ocr_language_hint: OCR language hint (defaults to config)
            context: Optional manga context
            complete_display_seconds: Time complete state stays visible
            error_display_seconds: Time error state stays visible
            sleep: Async sleep function
        """
        self._pipeline = pipeline
        self._target_language = target_language or config.default_target_language
        self._source_language = source_language or config.default_source_language
        self._ocr_language_hint = ocr_language_hint or config.default_ocr_language
        self._context = context
        self._complete_delay = (
            complete_display_seconds
            if complete_display_seconds is not None
            else config.complete_display_seconds
        )
        self._error_delay = (
            error_display_seconds
            if error_display_seconds is not None
            else config.error_display_seconds
        )
        self._sleep = sleep

        self._state = SessionState()
        self._listeners: List[StateListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._timer: Optional[asyncio.Future] = None
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> SessionState:
        """Get current state snapshot."""
        return self._state

    @property
    def bubble_state(self) -> BubbleState:
        """Get bubble state."""
        return self._state.bubble_state

    @property
    def error_message(self) -> Optional[str]:
        """Get active error message."""
        return self._state.error_message

    @property
    def overlays(self) -> List[TranslationOverlay]:
        """Get on-screen overlays."""
        return list(self._state.overlays)

    @property
    def is_closed(self) -> bool:
        """Check if the session was abandoned."""
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register state change listener.

        Args:
            listener: Called with the new state after every change

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_current_image_path(self, image_path: str) -> None:
        """
        Make a page current, auto-translating it when enabled.

        Args:
            image_path: Unmodified page image
        """
        self._update(current_image_path=image_path, original_image_path=image_path)

        if (
            self._state.auto_translate_enabled
            and image_path not in self._state.translated_pages
        ):
            self._schedule_translation()

    def toggle_auto_translate(self) -> bool:
        """
        Flip auto-translate; enabling it translates the current page.

        Returns:
            New auto-translate flag
        """
        enabled = not self._state.auto_translate_enabled
        self._update(auto_translate_enabled=enabled)
        logger.info("Auto-translate toggled", enabled=enabled)

        if enabled and self._state.current_image_path is not None:
            self._schedule_translation()

        return enabled

    async def start_translation(self) -> None:
        """Handle a bubble tap: disable auto-translate if on, else translate."""
        if self._state.auto_translate_enabled:
            self.toggle_auto_translate()
            return

        await self.translate_current_page()

    async def translate_current_page(self) -> None:
        """
        Translate the current page unless it was already translated.

        Every failure ends in the error state with a categorized message.
        """
        image_path = self._state.original_image_path
        if self._closed or image_path is None:
            logger.debug("No image to translate")
            return

        if image_path in self._state.translated_pages:
            logger.info("Page already translated, skipping", image_path=image_path)
            return

        if self._state.is_processing:
            logger.info("Already processing, skipping", image_path=image_path)
            return

        self._cancel_timer()
        self._generation += 1
        generation = self._generation
        self._update(
            bubble_state=BubbleState.PROCESSING, error_message=None, error_category=None
        )

        try:
            result = await self._pipeline.translate(
                image_path,
                target_language=self._target_language,
                source_language=self._source_language,
                ocr_language_hint=self._ocr_language_hint,
                context=self._context,
            )
        except Exception as e:
            log_error(e, "translate_current_page", image_path=image_path)
            if self._closed:
                return
            self._fail(classify_error(e))
            await self._revert_after(self._error_delay, generation)
            return

        if self._closed:
            logger.debug("Session closed, dropping late result", image_path=image_path)
            return

        self._complete(image_path, result)
        await self._revert_after(self._complete_delay, generation)

    def reset_translated_pages(self) -> None:
        """Forget translated pages and the last burn-in output."""
        self._update(translated_pages=frozenset(), edited_image_path=None)
        logger.info("Translated pages cache cleared")

    def add_overlay(self, overlay: TranslationOverlay) -> None:
        """Append overlay."""
        self._update(overlays=self._state.overlays + (overlay,))

    def remove_overlay(self, overlay_id: str) -> None:
        """Remove overlay by id."""
        self._update(
            overlays=tuple(o for o in self._state.overlays if o.id != overlay_id)
        )

    def update_overlay(self, overlay: TranslationOverlay) -> None:
        """Replace overlay with the same id."""
        self._update(
            overlays=tuple(
                overlay if o.id == overlay.id else o for o in self._state.overlays
            )
        )

    def clear_overlays(self) -> None:
        """Remove all overlays."""
        self._update(overlays=())

    def set_overlay_opacity(self, opacity: float) -> None:
        """Set overlay opacity, clamped to the visible range."""
        self._update(
            overlay_opacity=clamp(opacity, MIN_OVERLAY_OPACITY, MAX_OVERLAY_OPACITY)
        )

    def toggle_overlay_visibility(self) -> None:
        self._update(show_overlays=not self._state.show_overlays)

    def toggle_original_text(self) -> None:
        self._update(show_original_text=not self._state.show_original_text)

    def clear_error(self) -> None:
        """Dismiss error message without leaving the current state."""
        self._update(error_message=None, error_category=None)

    async def drain(self) -> None:
        """Wait for scheduled translations to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        """
        Abandon session.

        In-flight pipeline calls keep running (their results still reach the
        cache) but no further state changes are applied or published.
        """
        self._closed = True
        self._cancel_timer()
        self._listeners.clear()
        logger.info("Translation session closed")

    def _schedule_translation(self) -> None:
        """Run translate_current_page in the background."""
        if self._closed:
            return

        task = asyncio.get_running_loop().create_task(self.translate_current_page())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _complete(self, image_path: str, result: TranslationResult) -> None:
        """Enter complete state and record the page."""
        overlays = () if result.is_burned_in else tuple(build_overlays(image_path, result))
        self._update(
            bubble_state=BubbleState.COMPLETE,
            translated_pages=self._state.translated_pages | {image_path},
            edited_image_path=result.edited_image_path,
            overlays=overlays,
        )
        logger.info(
            "Page translated",
            image_path=image_path,
            from_cache=result.from_cache,
            translated_pages=len(self._state.translated_pages),
        )

    def _fail(self, category: ErrorCategory) -> None:
        """Enter error state with the category's message."""
        self._update(
            bubble_state=BubbleState.ERROR,
            error_message=ERROR_MESSAGES[category],
            error_category=category,
        )

    async def _revert_after(self, delay: float, generation: int) -> None:
        """
        Return to idle after delay unless a newer run took over.

        Args:
            delay: Display time in seconds
            generation: Run that scheduled the revert
        """
        timer = asyncio.ensure_future(self._sleep(delay))
        self._timer = timer
        try:
            await timer
        except asyncio.CancelledError:
            if self._closed or generation != self._generation:
                return
            raise
        finally:
            if self._timer is timer:
                self._timer = None

        if self._closed or generation != self._generation:
            return

        self._update(bubble_state=BubbleState.IDLE, error_message=None, error_category=None)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()

    def _update(self, **changes: Any) -> None:
        """Apply state change and notify listeners."""
        if self._closed:
            return

        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                log_error(e, "session_listener")
