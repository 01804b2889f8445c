"""
Page translation pipeline service.

Orchestrates OCR, cache lookup, backend translation, cache write and burn-in.

Sandi Metz Principles:
- Single Responsibility: Pipeline orchestration
- Small methods: Each stage in its own method
- Dependency Injection: OCR, backend, cache and renderer injected
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from page_translator.cache.translation_cache import TranslationCache
from page_translator.collaborators import ImageRenderer, OcrEngine
from page_translator.config import config
from page_translator.exceptions import (
    AppError,
    NoTextDetectedError,
    NotConfiguredError,
    OcrFailure,
    PipelineFailure,
    ValidationError,
)
from page_translator.models.ocr import BoundingBox, TextRegion
from page_translator.models.progress import PipelineProgress, PipelineStage
from page_translator.models.translation import (
    BackendTranslation,
    PipelineRequest,
    TranslationContext,
    TranslationResult,
)
from page_translator.pipeline.region_alignment import (
    align_translation_to_regions,
    build_region_context,
    build_stamps,
    combine_region_text,
)
from page_translator.translation.backend import BaseTranslationBackend
from page_translator.utils.logger import get_logger, log_error, log_stage

logger = get_logger(__name__)

STAGE_MESSAGES = {
    PipelineStage.OCR: "Detecting text",
    PipelineStage.TRANSLATING: "Translating",
    PipelineStage.RENDERING: "Rendering translation",
    PipelineStage.DONE: "Translation complete",
}


class TranslationPipelineService:
    """
    Main page translation service.

    Stages run sequentially; each depends on the previous stage's output.
    """

    def __init__(
        self,
        ocr: OcrEngine,
        backend: Optional[BaseTranslationBackend],
        cache: Optional[TranslationCache] = None,
        renderer: Optional[ImageRenderer] = None,
        batch_delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize service.

        Args:
            ocr: OCR engine
            backend: Translation backend (None when no credentials are set up)
            cache: Optional translation cache
            renderer: Optional burn-in renderer (overlays are used without it)
            batch_delay_seconds: Pause between batch images
            sleep: Async sleep function
        """
        self._ocr = ocr
        self._backend = backend
        self._cache = cache
        self._renderer = renderer
        self._batch_delay = (
            batch_delay_seconds
            if batch_delay_seconds is not None
            else config.batch_delay_seconds
        )
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        """Check if a usable translation backend is present."""
        return self._backend is not None and self._backend.is_configured

    async def stream(self, request: PipelineRequest) -> AsyncIterator[PipelineProgress]:
        """
        Translate one page, yielding a notification per stage.

        Args:
            request: Pipeline request

        Yields:
            Progress for ocr, translating, rendering and done (with result)

        Raises:
            NotConfiguredError: If no backend is configured
            OcrFailure: If OCR fails
            NoTextDetectedError: If the page has no text
            PipelineFailure: If translation or burn-in fails
        """
        backend = self._require_backend()

        yield self._progress(PipelineStage.OCR, request)
        regions = await self._detect_regions(request)

        yield self._progress(PipelineStage.TRANSLATING, request)
        result = await self._translate_regions(backend, request, regions)

        yield self._progress(PipelineStage.RENDERING, request)
        result = await self._render(request.image_path, result)

        yield self._progress(PipelineStage.DONE, request, result)

    async def translate(
        self,
        image_path: str,
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        ocr_language_hint: Optional[str] = None,
        context: Optional[TranslationContext] = None,
        use_cache: bool = True,
        on_progress: Optional[Callable[[PipelineProgress], None]] = None,
    ) -> TranslationResult:
        """
        Translate one page.

        Args:
            image_path: Unmodified page image
            target_language: Target language (defaults to config)
            source_language: Source language (defaults to config)
            ocr_language_hint: OCR language hint (defaults to config)
            context: Optional manga context
            use_cache: Consult and fill the cache
            on_progress: Optional callback per stage

        Returns:
            Translation result
        """
        request = self._build_request(
            image_path, target_language, source_language, ocr_language_hint, context
        )
        request = request.model_copy(update={"use_cache": use_cache})
        return await self._run(request, on_progress)

    async def translate_region(
        self,
        image_path: str,
        selection: BoundingBox,
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        ocr_language_hint: Optional[str] = None,
        context: Optional[TranslationContext] = None,
    ) -> TranslationResult:
        """
        Translate only the text inside a user-selected rectangle.

        Args:
            image_path: Unmodified page image
            selection: Selected rectangle
            target_language: Target language (defaults to config)
            source_language: Source language (defaults to config)
            ocr_language_hint: OCR language hint (defaults to config)
            context: Optional manga context

        Returns:
            Translation result with text_region set to the selected text bounds
        """
        request = self._build_request(
            image_path, target_language, source_language, ocr_language_hint, context
        )
        return await self._run(request.model_copy(update={"selection": selection}))

    async def translate_text(
        self,
        text: str,
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        context: Optional[TranslationContext] = None,
    ) -> TranslationResult:
        """
        Translate manually entered text (no OCR, no burn-in).

        Args:
            text: Text to translate
            target_language: Target language (defaults to config)
            source_language: Source language (defaults to config)
            context: Optional manga context

        Returns:
            Translation result without regions

        Raises:
            NotConfiguredError: If no backend is configured
            ValidationError: If text is blank
            PipelineFailure: If the backend fails
        """
        backend = self._require_backend()
        if not text.strip():
            raise ValidationError("Text to translate cannot be empty")

        target = target_language or config.default_target_language
        source = source_language or config.default_source_language
        cache_context = context.serialize() if context else None

        cached = await self._cached_result(text, target, source, cache_context, [])
        if cached is not None:
            return cached

        translation = await self._call_backend(backend, text, target, source, context)
        await self._store(text, target, translation, cache_context)
        return self._result_from_backend(text, translation, [], [translation.translated_text])

    async def translate_batch(
        self,
        image_paths: Sequence[str],
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        ocr_language_hint: Optional[str] = None,
        context: Optional[TranslationContext] = None,
    ) -> List[TranslationResult]:
        """
        Translate pages one after another, skipping failures.

        Args:
            image_paths: Page images
            target_language: Target language (defaults to config)
            source_language: Source language (defaults to config)
            ocr_language_hint: OCR language hint (defaults to config)
            context: Optional manga context

        Returns:
            Results of the pages that translated successfully

        Raises:
            NotConfiguredError: If no backend is configured
        """
        self._require_backend()
        results: List[TranslationResult] = []

        for index, image_path in enumerate(image_paths):
            if index > 0 and self._batch_delay > 0:
                await self._sleep(self._batch_delay)

            try:
                result = await self.translate(
                    image_path,
                    target_language=target_language,
                    source_language=source_language,
                    ocr_language_hint=ocr_language_hint,
                    context=context,
                )
                results.append(result)
            except AppError as e:
                log_error(e, "batch_translate", image_path=image_path)

        logger.info("Batch translated", requested=len(image_paths), succeeded=len(results))
        return results

    async def _run(
        self,
        request: PipelineRequest,
        on_progress: Optional[Callable[[PipelineProgress], None]] = None,
    ) -> TranslationResult:
        """Consume stage stream and return the final result."""
        result: Optional[TranslationResult] = None

        async for progress in self.stream(request):
            if on_progress:
                on_progress(progress)
            if progress.is_done:
                result = progress.result

        if result is None:
            raise PipelineFailure("Pipeline finished without a result")
        return result

    def _build_request(
        self,
        image_path: str,
        target_language: Optional[str],
        source_language: Optional[str],
        ocr_language_hint: Optional[str],
        context: Optional[TranslationContext],
    ) -> PipelineRequest:
        """Build request with config defaults."""
        return PipelineRequest(
            image_path=image_path,
            target_language=target_language or config.default_target_language,
            source_language=source_language or config.default_source_language,
            ocr_language_hint=ocr_language_hint or config.default_ocr_language,
            context=context,
        )

    def _require_backend(self) -> BaseTranslationBackend:
        """
        Get backend or fail fast.

        Raises:
            NotConfiguredError: If backend is missing or lacks credentials
        """
        if self._backend is None or not self._backend.is_configured:
            raise NotConfiguredError("Translation backend is not configured")
        return self._backend

    def _progress(
        self,
        stage: PipelineStage,
        request: PipelineRequest,
        result: Optional[TranslationResult] = None,
    ) -> PipelineProgress:
        """Create and log stage notification."""
        progress = PipelineProgress.for_stage(stage, STAGE_MESSAGES[stage], result)
        log_stage(stage.value, progress.progress, request.image_path)
        return progress

    async def _detect_regions(self, request: PipelineRequest) -> List[TextRegion]:
        """
        Run OCR and keep regions with text (inside the selection, if any).

        Raises:
            OcrFailure: If the OCR engine fails
            NoTextDetectedError: If nothing usable was found
        """
        try:
            regions = await self._ocr.detect_text(
                request.image_path, request.ocr_language_hint
            )
        except OcrFailure:
            raise
        except Exception as e:
            raise OcrFailure(f"OCR failed: {e}") from e

        regions = [region for region in regions if region.has_text]
        if request.selection is not None:
            regions = [
                region
                for region in regions
                if region.bounding_box.intersects(request.selection)
            ]

        if not regions:
            raise NoTextDetectedError(f"No text detected in {request.image_path}")

        logger.info("Text detected", image_path=request.image_path, regions=len(regions))
        return regions

    async def _translate_regions(
        self,
        backend: BaseTranslationBackend,
        request: PipelineRequest,
        regions: List[TextRegion],
    ) -> TranslationResult:
        """Translate combined region text, from cache when possible."""
        text = combine_region_text(regions)
        cache_context = build_region_context(regions, request.context)
        text_region = self._selection_bounds(request, regions)

        if request.use_cache:
            cached = await self._cached_result(
                text,
                request.target_language,
                request.source_language,
                cache_context,
                regions,
            )
            if cached is not None:
                return cached.model_copy(update={"text_region": text_region})

        translation = await self._call_backend(
            backend,
            text,
            request.target_language,
            request.source_language,
            request.context,
        )
        if request.use_cache:
            await self._store(text, request.target_language, translation, cache_context)

        aligned = align_translation_to_regions(translation.translated_text, len(regions))
        result = self._result_from_backend(text, translation, regions, aligned)
        return result.model_copy(update={"text_region": text_region})

    async def _cached_result(
        self,
        text: str,
        target_language: str,
        source_language: str,
        cache_context: Optional[str],
        regions: List[TextRegion],
    ) -> Optional[TranslationResult]:
        """Build result from a cache hit, None on miss or without cache."""
        if self._cache is None:
            return None

        record = await self._cache.get(text, target_language, source_language, cache_context)
        if record is None:
            return None

        region_translations = (
            align_translation_to_regions(record.translated_text, len(regions))
            if regions
            else [record.translated_text]
        )
        return TranslationResult(
            original_text=text,
            translated_text=record.translated_text,
            regions=regions,
            region_translations=region_translations,
            model_used=record.model_used,
            confidence=record.confidence_score,
            source_language=record.source_language,
            from_cache=True,
        )

    async def _call_backend(
        self,
        backend: BaseTranslationBackend,
        text: str,
        target_language: str,
        source_language: str,
        context: Optional[TranslationContext],
    ) -> BackendTranslation:
        """
        Call backend once for the combined text.

        Raises:
            PipelineFailure: If the backend fails
        """
        try:
            return await backend.translate(text, target_language, source_language, context)
        except Exception as e:
            log_error(e, "backend_translate", backend=backend.get_name())
            raise PipelineFailure(f"Translation failed: {e}", cause=e) from e

    async def _store(
        self,
        text: str,
        target_language: str,
        translation: BackendTranslation,
        cache_context: Optional[str],
    ) -> None:
        """Write successful translation to cache."""
        if self._cache is None:
            return

        await self._cache.put(
            original_text=text,
            translated_text=translation.translated_text,
            target_language=target_language,
            model_used=translation.model_identifier,
            confidence=translation.confidence,
            source_language=translation.detected_source_language,
            context=cache_context,
        )

    async def _render(self, image_path: str, result: TranslationResult) -> TranslationResult:
        """
        Burn translations into the source image if a renderer is present.

        Raises:
            PipelineFailure: If rendering fails
        """
        if self._renderer is None or not result.regions:
            return result

        stamps = build_stamps(result.regions, result.region_translations)
        try:
            edited_path = await self._renderer.render(image_path, stamps)
        except Exception as e:
            log_error(e, "burn_in", image_path=image_path)
            raise PipelineFailure(f"Rendering failed: {e}", cause=e) from e

        return result.model_copy(update={"edited_image_path": edited_path})

    def _result_from_backend(
        self,
        text: str,
        translation: BackendTranslation,
        regions: List[TextRegion],
        region_translations: List[str],
    ) -> TranslationResult:
        """Build result from a fresh backend translation."""
        return TranslationResult(
            original_text=text,
            translated_text=translation.translated_text,
            regions=regions,
            region_translations=region_translations,
            model_used=translation.model_identifier,
            confidence=translation.confidence,
            source_language=translation.detected_source_language,
        )

    @staticmethod
    def _selection_bounds(
        request: PipelineRequest, regions: List[TextRegion]
    ) -> Optional[BoundingBox]:
        """Get bounds of the selected regions (region translation only)."""
        if request.selection is None:
            return None

        bounds = regions[0].bounding_box
        for region in regions[1:]:
            bounds = bounds.union(region.bounding_box)
        return bounds
