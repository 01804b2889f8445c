"""
Pytest configuration and fixtures.

Provides common fixtures for testing.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from page_translator.cache.eviction import CacheEvictor, EvictionPolicy
from page_translator.cache.translation_cache import TranslationCache
from page_translator.config import AppConfig
from page_translator.repositories.database import Database
from page_translator.repositories.translation_cache_repository import (
    TranslationCacheRepository,
)
from tests.mocks.translation_mocks import (
    ControlledSleep,
    MockImageRenderer,
    MockOcrEngine,
    MockTranslationBackend,
)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def test_config() -> AppConfig:
    """
    Create test configuration.

    Returns:
        Test configuration instance
    """
    return AppConfig(
        app_env="development",
        cache_database_url="sqlite+aiosqlite:///:memory:",
        openai_api_key="test-key",
        anthropic_api_key="test-key",
    )


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at a known instant."""
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def database_url(tmp_path) -> str:
    """Temp-file SQLite URL."""
    return f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}"


@pytest_asyncio.fixture
async def database(database_url):
    """
    Isolated cache database.

    Yields:
        Database handle, closed after the test
    """
    db = Database(database_url)
    yield db
    await db.close()


@pytest.fixture
def repository(database) -> TranslationCacheRepository:
    """Cache repository over the temp database."""
    return TranslationCacheRepository(database)


@pytest.fixture
def eviction_policy() -> EvictionPolicy:
    """Default eviction policy."""
    return EvictionPolicy()


@pytest.fixture
def cache(repository, eviction_policy, clock) -> TranslationCache:
    """Translation cache with a controllable clock."""
    return TranslationCache(
        repository, CacheEvictor(repository, eviction_policy), clock=clock
    )


@pytest.fixture
def ocr() -> MockOcrEngine:
    """OCR engine returning one region."""
    return MockOcrEngine()


@pytest.fixture
def renderer() -> MockImageRenderer:
    """Burn-in renderer."""
    return MockImageRenderer()


@pytest.fixture
def backend() -> MockTranslationBackend:
    """Translation backend."""
    return MockTranslationBackend()


@pytest.fixture
def controlled_sleep() -> ControlledSleep:
    """Sleep that waits until released."""
    return ControlledSleep()
