"""
Application runtime wiring.

Sandi Metz Principles:
- Single Responsibility: Lifecycle management of shared resources
- Small methods: Each lifecycle stage isolated
- Dependency Injection: Collaborators and settings injected
"""

from typing import List, Optional

from page_translator.cache.eviction import CacheEvictor, EvictionPolicy
from page_translator.cache.translation_cache import TranslationCache
from page_translator.collaborators import ImageRenderer, OcrEngine
from page_translator.config import AppConfig, config as default_config
from page_translator.exceptions import AppError, NotConfiguredError
from page_translator.models.translation import TranslationContext
from page_translator.repositories.database import Database
from page_translator.repositories.translation_cache_repository import (
    TranslationCacheRepository,
)
from page_translator.services.pipeline_service import TranslationPipelineService
from page_translator.services.session_service import TranslationSession
from page_translator.translation.backend import BaseTranslationBackend
from page_translator.translation.factory import TranslationBackendFactory
from page_translator.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class TranslatorRuntime:
    """
    Owns the process-wide cache and pipeline.

    Sessions are handed out per reader view and closed on shutdown.
    """

    def __init__(
        self,
        ocr: OcrEngine,
        renderer: Optional[ImageRenderer] = None,
        backend: Optional[BaseTranslationBackend] = None,
        settings: Optional[AppConfig] = None,
    ):
        """
        Initialize runtime.

        Args:
            ocr: OCR engine
            renderer: Optional burn-in renderer
            backend: Translation backend (built from settings if None)
            settings: Application config (defaults to global config)
        """
        self._ocr = ocr
        self._renderer = renderer
        self._backend = backend
        self._settings = settings or default_config
        self._cache: Optional[TranslationCache] = None
        self._pipeline: Optional[TranslationPipelineService] = None
        self._sessions: List[TranslationSession] = []

    @property
    def is_started(self) -> bool:
        """Check if startup completed."""
        return self._pipeline is not None

    @property
    def cache(self) -> TranslationCache:
        """Get translation cache."""
        if self._cache is None:
            raise AppError("Runtime not started")
        return self._cache

    @property
    def pipeline(self) -> TranslationPipelineService:
        """Get translation pipeline."""
        if self._pipeline is None:
            raise AppError("Runtime not started")
        return self._pipeline

    async def startup(self) -> None:
        """Initialize logging, cache and pipeline."""
        setup_logging(self._settings.log_level)
        logger.info("Starting translator", env=self._settings.app_env)

        database = Database(self._settings.cache_database_url, echo=self._settings.debug)
        repository = TranslationCacheRepository(database)
        evictor = CacheEvictor(repository, EvictionPolicy.from_config(self._settings))
        self._cache = TranslationCache(repository, evictor)

        self._pipeline = TranslationPipelineService(
            ocr=self._ocr,
            backend=self._backend or self._create_backend(),
            cache=self._cache,
            renderer=self._renderer,
            batch_delay_seconds=self._settings.batch_delay_seconds,
        )
        logger.info("Translator started", configured=self._pipeline.is_configured)

    async def shutdown(self) -> None:
        """Close sessions, wait for their in-flight work, then close the cache."""
        logger.info("Shutting down translator")

        for session in self._sessions:
            session.close()
        for session in self._sessions:
            await session.drain()
        self._sessions.clear()

        if self._cache is not None:
            await self._cache.close()
        self._cache = None
        self._pipeline = None
        logger.info("Translator shut down")

    def new_session(
        self,
        target_language: Optional[str] = None,
        context: Optional[TranslationContext] = None,
    ) -> TranslationSession:
        """
        Create session for one reader view.

        Args:
            target_language: Target language (defaults to config)
            context: Optional manga context

        Returns:
            New translation session
        """
        session = TranslationSession(
            self.pipeline,
            target_language=target_language or self._settings.default_target_language,
            source_language=self._settings.default_source_language,
            ocr_language_hint=self._settings.default_ocr_language,
            context=context,
            complete_display_seconds=self._settings.complete_display_seconds,
            error_display_seconds=self._settings.error_display_seconds,
        )
        self._sessions.append(session)
        return session

    def _create_backend(self) -> Optional[BaseTranslationBackend]:
        """
        Build backend from settings.

        Returns:
            Backend, or None when credentials are missing
        """
        try:
            return TranslationBackendFactory(self._settings).create()
        except NotConfiguredError as e:
            logger.warning("Translation backend not configured", error=str(e))
            return None
