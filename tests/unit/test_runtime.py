"""
Tests for application runtime wiring.
"""

import asyncio

import pytest

from page_translator.config import AppConfig
from page_translator.exceptions import AppError, NotConfiguredError
from page_translator.models.session import BubbleState
from page_translator.repositories.database import Database
from page_translator.repositories.translation_cache_repository import (
    TranslationCacheRepository,
)
from page_translator.runtime import TranslatorRuntime
from tests.mocks.translation_mocks import (
    MockOcrEngine,
    MockTranslationBackend,
    wait_until,
)


class GatedBackend(MockTranslationBackend):
    """Backend that holds every translation until the gate opens."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.waiting = 0

    async def translate(self, text, target_language, source_language="auto", context=None):
        self.waiting += 1
        await self.gate.wait()
        return await super().translate(text, target_language, source_language, context)


@pytest.fixture
def settings(database_url) -> AppConfig:
    return AppConfig(
        _env_file=None,
        cache_database_url=database_url,
        openai_api_key="",
        anthropic_api_key="",
        complete_display_seconds=0.0,
        error_display_seconds=0.0,
        batch_delay_seconds=0.0,
    )


class TestTranslatorRuntime:
    """Test runtime lifecycle."""

    def test_should_refuse_access_before_startup(self, settings):
        runtime = TranslatorRuntime(MockOcrEngine(), settings=settings)

        assert runtime.is_started is False
        with pytest.raises(AppError, match="Runtime not started"):
            runtime.pipeline
        with pytest.raises(AppError, match="Runtime not started"):
            runtime.cache

    @pytest.mark.asyncio
    async def test_should_translate_through_session(self, settings):
        runtime = TranslatorRuntime(
            MockOcrEngine(), backend=MockTranslationBackend(), settings=settings
        )
        await runtime.startup()

        session = runtime.new_session(target_language="en")
        session.set_current_image_path("page.png")
        await session.translate_current_page()

        assert "page.png" in session.state.translated_pages
        assert session.bubble_state == BubbleState.IDLE
        assert (await runtime.cache.statistics()).total_entries == 1

        await runtime.shutdown()
        assert session.is_closed
        assert runtime.is_started is False

    @pytest.mark.asyncio
    async def test_should_fail_fast_without_credentials(self, settings):
        runtime = TranslatorRuntime(MockOcrEngine(), settings=settings)
        await runtime.startup()

        assert runtime.pipeline.is_configured is False
        with pytest.raises(NotConfiguredError):
            await runtime.pipeline.translate("page.png")

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_should_build_backend_from_settings(self, database_url):
        settings = AppConfig(
            _env_file=None, cache_database_url=database_url, openai_api_key="sk-test"
        )
        runtime = TranslatorRuntime(MockOcrEngine(), settings=settings)
        await runtime.startup()

        assert runtime.pipeline.is_configured is True

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_should_wait_for_background_translation_on_shutdown(self, settings):
        """Test an auto-translate still in flight lands in the cache before close."""
        backend = GatedBackend()
        runtime = TranslatorRuntime(MockOcrEngine(), backend=backend, settings=settings)
        await runtime.startup()
        session = runtime.new_session(target_language="en")
        session.toggle_auto_translate()
        session.set_current_image_path("page.png")
        await wait_until(lambda: backend.waiting == 1)

        shutdown = asyncio.create_task(runtime.shutdown())
        await asyncio.sleep(0.01)
        assert shutdown.done() is False

        backend.gate.set()
        await shutdown

        assert backend.call_count == 1
        database = Database(settings.cache_database_url)
        try:
            assert await TranslationCacheRepository(database).count() == 1
        finally:
            await database.close()
