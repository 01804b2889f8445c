"""
Cache database handle and schema.

Sandi Metz Principles:
- Single Responsibility: Engine lifecycle and table definition
- Explicit lifecycle: Opened lazily, closed by its owner
- Dependency Injection: URL injected, no module-level engine
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import BigInteger, Boolean, Float, Integer, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from page_translator.config import config
from page_translator.exceptions import CacheIoFailure
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for cache tables."""

    pass


class TranslationCacheRow(Base):
    """Stored translation cache record."""

    __tablename__ = "translation_cache"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fingerprint: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    translated_text: Mapped[str] = mapped_column(Text, nullable=False)
    source_lang: Mapped[str] = mapped_column(String(16), nullable=False)
    target_lang: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    model_used: Mapped[str] = mapped_column(String(128), nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    usage_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, index=True
    )
    user_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_favorited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bubble_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


def to_millis(moment: datetime) -> int:
    """
    Convert datetime to epoch milliseconds.

    Args:
        moment: Aware or naive (treated as UTC) datetime

    Returns:
        Milliseconds since epoch
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """
    Convert epoch milliseconds to UTC datetime.

    Args:
        millis: Milliseconds since epoch

    Returns:
        Aware UTC datetime
    """
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


class Database:
    """
    Async database handle.

    The engine and schema are created on first use; close() disposes them
    and retires the handle for good.
    """

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        """
        Initialize database handle.

        Args:
            url: SQLAlchemy async URL (defaults to config)
            echo: Log SQL statements
        """
        self._url = url or config.cache_database_url
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._open_lock = asyncio.Lock()
        self._closed = False

    @property
    def url(self) -> str:
        """Get database URL."""
        return self._url

    @property
    def is_open(self) -> bool:
        """Check if the engine has been created."""
        return self._engine is not None

    @property
    def is_closed(self) -> bool:
        """Check if close() was called."""
        return self._closed

    async def open(self) -> async_sessionmaker[AsyncSession]:
        """
        Create engine and schema if not done yet.

        Returns:
            Session factory

        Raises:
            CacheIoFailure: If the database was closed
        """
        if self._closed:
            raise CacheIoFailure("Cache database is closed")
        if self._session_factory is not None:
            return self._session_factory

        async with self._open_lock:
            if self._closed:
                raise CacheIoFailure("Cache database is closed")
            if self._session_factory is None:
                engine = create_async_engine(self._url, echo=self._echo)
                try:
                    async with engine.begin() as conn:
                        await conn.run_sync(Base.metadata.create_all)
                except Exception:
                    await engine.dispose()
                    raise
                self._engine = engine
                self._session_factory = async_sessionmaker(
                    engine, expire_on_commit=False
                )
                logger.info("Translation cache database opened", url=self._url)

        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session, creating the engine on first use.

        Yields:
            Async session
        """
        factory = await self.open()
        async with factory() as session:
            yield session

    async def close(self) -> None:
        """Dispose engine and refuse any later open."""
        self._closed = True
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Translation cache database closed", url=self._url)
