"""
Translation cache service.

Sandi Metz Principles:
- Single Responsibility: Cache operations orchestration
- Small methods: Each operation < 15 lines
- Dependency Injection: Repository, evictor and clock injected
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional

from page_translator.cache.eviction import CacheEvictor, EvictionReport
from page_translator.exceptions import CacheIoFailure, ValidationError
from page_translator.models.cache_record import CacheRecord
from page_translator.models.statistics import CacheStatistics
from page_translator.repositories.database import to_millis
from page_translator.repositories.translation_cache_repository import (
    TranslationCacheRepository,
)
from page_translator.utils.hasher import fingerprint
from page_translator.utils.logger import get_logger, log_cache_hit, log_cache_miss

logger = get_logger(__name__)


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


class TranslationCache:
    """
    Translation cache service.

    Best-effort: storage faults are logged and degrade to a miss or a no-op.
    Writes and usage bookkeeping go through one lock so eviction scans never
    interleave with concurrent puts.
    """

    def __init__(
        self,
        repository: TranslationCacheRepository,
        evictor: Optional[CacheEvictor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize cache service.

        Args:
            repository: Cache repository
            evictor: Eviction runner (defaults to config policy)
            clock: Returns current UTC time
        """
        self._repository = repository
        self._evictor = evictor or CacheEvictor(repository)
        self._clock = clock or utc_now
        self._lock = asyncio.Lock()

    async def get(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        context: Optional[str] = None,
    ) -> Optional[CacheRecord]:
        """
        Get cached translation and count the hit.

        Args:
            text: Original text
            target_language: Target language tag
            source_language: Source language (lookups key on text and target only)
            context: Disambiguating context

        Returns:
            Record as it was before the hit was counted, None on miss
        """
        key = fingerprint(text, context or "")

        async with self._lock:
            try:
                record = await self._repository.fetch(key, target_language)
            except CacheIoFailure as e:
                logger.warning("Cache lookup degraded to miss", error=str(e))
                return None

            if record is None:
                log_cache_miss(key, target_language, source_language=source_language)
                return None

            try:
                await self._repository.increment_usage(record.id)
            except CacheIoFailure as e:
                logger.warning("Cache usage bookkeeping failed", error=str(e))

        log_cache_hit(key, target_language, usage_count=record.usage_count)
        return record

    async def put(
        self,
        original_text: str,
        translated_text: str,
        target_language: str,
        model_used: str,
        confidence: float,
        source_language: str = "auto",
        context: Optional[str] = None,
    ) -> Optional[CacheRecord]:
        """
        Store translation, replacing any record with the same fingerprint.

        Replacing resets usage count, rating and favorite flag. Cleanup runs
        afterwards; a cleanup failure does not fail the put.

        Args:
            original_text: Original text
            translated_text: Translated text
            target_language: Target language tag
            model_used: Backend model identifier
            confidence: Confidence in [0, 1]
            source_language: Source language tag
            context: Disambiguating context, stored verbatim

        Returns:
            Stored record, None if storage failed

        Raises:
            ValidationError: If confidence is outside [0, 1]
        """
        if not 0.0 <= confidence <= 1.0:
            raise ValidationError(f"Confidence must be in [0, 1], got {confidence}")

        key = fingerprint(original_text, context or "")
        now = self._clock()
        values = {
            "fingerprint": key,
            "original_text": original_text,
            "translated_text": translated_text,
            "source_lang": source_language,
            "target_lang": target_language,
            "model_used": model_used,
            "confidence_score": confidence,
            "created_at": to_millis(now),
            "usage_count": 1,
            "user_rating": None,
            "is_favorited": False,
            "bubble_context": context,
        }

        async with self._lock:
            try:
                record = await self._repository.upsert(values)
            except CacheIoFailure as e:
                logger.warning("Cache store failed", fingerprint=key, error=str(e))
                return None

            logger.info("Translation cached", fingerprint=key, record_id=record.id)
            await self._cleanup(now)

        return record

    async def rate(self, record_id: int, rating: int) -> None:
        """
        Rate a cached translation.

        Args:
            record_id: Record id (unknown ids are ignored)
            rating: Rating from 1 to 5

        Raises:
            ValidationError: If rating is outside 1-5
        """
        if not 1 <= rating <= 5:
            raise ValidationError(f"Rating must be between 1 and 5, got {rating}")

        async with self._lock:
            try:
                updated = await self._repository.update_fields(
                    record_id, user_rating=rating
                )
            except CacheIoFailure as e:
                logger.warning("Rating failed", record_id=record_id, error=str(e))
                return

        logger.info("Rated translation", record_id=record_id, rating=rating, found=updated)

    async def toggle_favorite(self, record_id: int) -> Optional[bool]:
        """
        Flip favorite flag of a cached translation.

        Args:
            record_id: Record id (unknown ids are ignored)

        Returns:
            New flag value, None if not found or storage failed
        """
        async with self._lock:
            try:
                favorited = await self._repository.toggle_favorite(record_id)
            except CacheIoFailure as e:
                logger.warning("Favorite toggle failed", record_id=record_id, error=str(e))
                return None

        logger.info("Toggled favorite", record_id=record_id, favorited=favorited)
        return favorited

    async def statistics(self) -> CacheStatistics:
        """
        Compute cache statistics.

        Returns:
            Statistics (empty if storage failed)
        """
        try:
            return await self._repository.aggregate_statistics()
        except CacheIoFailure as e:
            logger.warning("Statistics unavailable", error=str(e))
            return CacheStatistics.empty()

    async def clear(self) -> int:
        """
        Delete every record, favorites included.

        Returns:
            Number of records deleted
        """
        async with self._lock:
            try:
                count = await self._repository.delete_all()
            except CacheIoFailure as e:
                logger.warning("Cache clear failed", error=str(e))
                return 0

        logger.info("Translation cache cleared", count=count)
        return count

    async def export(self) -> List[CacheRecord]:
        """
        Dump every record for backup or inspection.

        Returns:
            All records ordered by id
        """
        try:
            return await self._repository.fetch_all()
        except CacheIoFailure as e:
            logger.warning("Cache export failed", error=str(e))
            return []

    async def run_cleanup(self) -> EvictionReport:
        """
        Enforce eviction policy now.

        Returns:
            Eviction report
        """
        async with self._lock:
            return await self._cleanup(self._clock())

    async def close(self) -> None:
        """Close storage handle."""
        await self._repository.close()

    async def _cleanup(self, now: datetime) -> EvictionReport:
        """
        Run eviction, absorbing storage faults.

        Args:
            now: Current time

        Returns:
            Eviction report (empty on failure)
        """
        try:
            return await self._evictor.run(now)
        except CacheIoFailure as e:
            logger.warning("Cache cleanup failed", error=str(e))
            return EvictionReport()
