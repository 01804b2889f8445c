"""
Translation cache repository for data access.

Sandi Metz Principles:
- Single Responsibility: Cache table access
- Small methods: Each operation isolated
- Dependency Injection: Database handle injected
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import ValidationError as RecordValidationError
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from page_translator.exceptions import CacheIoFailure
from page_translator.models.cache_record import CacheRecord
from page_translator.models.statistics import CacheStatistics
from page_translator.repositories.database import (
    Database,
    TranslationCacheRow,
    from_millis,
)
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)

_SIZE_EXPR = func.length(TranslationCacheRow.original_text) + func.length(
    TranslationCacheRow.translated_text
)


def row_to_record(row: TranslationCacheRow) -> CacheRecord:
    """
    Convert stored row to cache record.

    Args:
        row: ORM row

    Returns:
        Cache record snapshot
    """
    return CacheRecord(
        id=row.id,
        fingerprint=row.fingerprint,
        original_text=row.original_text,
        translated_text=row.translated_text,
        source_language=row.source_lang,
        target_language=row.target_lang,
        model_used=row.model_used,
        confidence_score=row.confidence_score,
        created_at=from_millis(row.created_at),
        usage_count=row.usage_count,
        user_rating=row.user_rating,
        is_favorited=bool(row.is_favorited),
        bubble_context=row.bubble_context,
    )


class TranslationCacheRepository:
    """
    Repository for translation cache table operations.

    Storage faults and rows that fail validation surface as CacheIoFailure.
    """

    def __init__(self, database: Database):
        """
        Initialize repository.

        Args:
            database: Database handle
        """
        self._database = database

    async def close(self) -> None:
        """Close the underlying database handle."""
        await self._database.close()

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Run a unit of work in a transaction.

        Args:
            operation: Operation name for diagnostics

        Yields:
            Session inside an open transaction

        Raises:
            CacheIoFailure: If the storage engine fails or a stored row is corrupt
        """
        try:
            async with self._database.session() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("Cache storage failed", operation=operation, error=str(e))
            raise CacheIoFailure(f"Cache {operation} failed: {e}") from e
        except RecordValidationError as e:
            logger.error("Corrupt cache row", operation=operation, error=str(e))
            raise CacheIoFailure(f"Cache {operation} read a corrupt row: {e}") from e

    async def upsert(self, values: Dict[str, Any]) -> CacheRecord:
        """
        Insert row or replace the row with the same fingerprint.

        Replacing keeps the row id; every other column is overwritten.

        Args:
            values: Column values including fingerprint

        Returns:
            Stored record
        """
        async with self._transaction("upsert") as session:
            result = await session.execute(
                select(TranslationCacheRow).where(
                    TranslationCacheRow.fingerprint == values["fingerprint"]
                )
            )
            row = result.scalar_one_or_none()

            if row is None:
                row = TranslationCacheRow(**values)
                session.add(row)
            else:
                for column, value in values.items():
                    setattr(row, column, value)

            await session.flush()
            return row_to_record(row)

    async def fetch(
        self, fingerprint: str, target_language: str
    ) -> Optional[CacheRecord]:
        """
        Fetch record by fingerprint and target language.

        Args:
            fingerprint: Cache fingerprint
            target_language: Target language tag

        Returns:
            Record if found, None otherwise
        """
        async with self._transaction("fetch") as session:
            result = await session.execute(
                select(TranslationCacheRow)
                .where(
                    TranslationCacheRow.fingerprint == fingerprint,
                    TranslationCacheRow.target_lang == target_language,
                )
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return row_to_record(row) if row else None

    async def fetch_by_id(self, record_id: int) -> Optional[CacheRecord]:
        """
        Fetch record by id.

        Args:
            record_id: Record id

        Returns:
            Record if found, None otherwise
        """
        async with self._transaction("fetch_by_id") as session:
            row = await session.get(TranslationCacheRow, record_id)
            return row_to_record(row) if row else None

    async def fetch_all(self) -> List[CacheRecord]:
        """
        Fetch every record ordered by id.

        Returns:
            All records
        """
        async with self._transaction("fetch_all") as session:
            result = await session.execute(
                select(TranslationCacheRow).order_by(TranslationCacheRow.id)
            )
            return [row_to_record(row) for row in result.scalars()]

    async def increment_usage(self, record_id: int) -> bool:
        """
        Increment usage count in a single statement.

        Args:
            record_id: Record id

        Returns:
            True if a row was updated
        """
        async with self._transaction("increment_usage") as session:
            result = await session.execute(
                update(TranslationCacheRow)
                .where(TranslationCacheRow.id == record_id)
                .values(usage_count=TranslationCacheRow.usage_count + 1)
            )
            return result.rowcount > 0

    async def update_fields(self, record_id: int, **values: Any) -> bool:
        """
        Update columns of one record.

        Args:
            record_id: Record id
            **values: Column values

        Returns:
            True if a row was updated
        """
        async with self._transaction("update") as session:
            result = await session.execute(
                update(TranslationCacheRow)
                .where(TranslationCacheRow.id == record_id)
                .values(**values)
            )
            return result.rowcount > 0

    async def toggle_favorite(self, record_id: int) -> Optional[bool]:
        """
        Flip favorite flag.

        Args:
            record_id: Record id

        Returns:
            New flag value, None if the record does not exist
        """
        async with self._transaction("toggle_favorite") as session:
            row = await session.get(TranslationCacheRow, record_id)
            if row is None:
                return None
            row.is_favorited = not row.is_favorited
            return row.is_favorited

    async def count(self) -> int:
        """
        Count records.

        Returns:
            Number of records
        """
        async with self._transaction("count") as session:
            result = await session.execute(
                select(func.count(TranslationCacheRow.id))
            )
            return int(result.scalar_one())

    async def total_size(self) -> int:
        """
        Sum original and translated text lengths.

        Returns:
            Total size in characters
        """
        async with self._transaction("total_size") as session:
            result = await session.execute(select(func.coalesce(func.sum(_SIZE_EXPR), 0)))
            return int(result.scalar_one())

    async def eviction_candidates(self, limit: int, newest_first: bool) -> List[int]:
        """
        Select non-favorited record ids, least used first.

        Args:
            limit: Maximum ids to return
            newest_first: Tie-break equal usage by newest (True) or oldest

        Returns:
            Record ids in eviction order
        """
        if newest_first:
            tie_break = (
                TranslationCacheRow.created_at.desc(),
                TranslationCacheRow.id.desc(),
            )
        else:
            tie_break = (
                TranslationCacheRow.created_at.asc(),
                TranslationCacheRow.id.asc(),
            )

        async with self._transaction("eviction_candidates") as session:
            result = await session.execute(
                select(TranslationCacheRow.id)
                .where(TranslationCacheRow.is_favorited.is_(False))
                .order_by(TranslationCacheRow.usage_count.asc(), *tie_break)
                .limit(limit)
            )
            return list(result.scalars())

    async def delete_ids(self, record_ids: List[int]) -> int:
        """
        Delete non-favorited records by id.

        Args:
            record_ids: Record ids

        Returns:
            Number of records deleted
        """
        if not record_ids:
            return 0

        async with self._transaction("delete_ids") as session:
            result = await session.execute(
                delete(TranslationCacheRow).where(
                    TranslationCacheRow.id.in_(record_ids),
                    TranslationCacheRow.is_favorited.is_(False),
                )
            )
            return result.rowcount

    async def delete_created_before(self, cutoff_millis: int) -> int:
        """
        Delete non-favorited records created before cutoff.

        Args:
            cutoff_millis: Epoch milliseconds

        Returns:
            Number of records deleted
        """
        async with self._transaction("delete_created_before") as session:
            result = await session.execute(
                delete(TranslationCacheRow).where(
                    TranslationCacheRow.created_at < cutoff_millis,
                    TranslationCacheRow.is_favorited.is_(False),
                )
            )
            return result.rowcount

    async def delete_all(self) -> int:
        """
        Delete every record, favorites included.

        Returns:
            Number of records deleted
        """
        async with self._transaction("delete_all") as session:
            result = await session.execute(delete(TranslationCacheRow))
            return result.rowcount

    async def aggregate_statistics(self) -> CacheStatistics:
        """
        Compute cache statistics with SQL aggregates.

        Returns:
            Cache statistics
        """
        async with self._transaction("statistics") as session:
            totals = (
                await session.execute(
                    select(
                        func.count(TranslationCacheRow.id),
                        func.coalesce(func.sum(_SIZE_EXPR), 0),
                        func.coalesce(func.sum(TranslationCacheRow.usage_count), 0),
                    )
                )
            ).one()

            average_rating = (
                await session.execute(
                    select(func.avg(TranslationCacheRow.user_rating)).where(
                        TranslationCacheRow.user_rating.is_not(None)
                    )
                )
            ).scalar_one()

            favorited = (
                await session.execute(
                    select(func.count(TranslationCacheRow.id)).where(
                        TranslationCacheRow.is_favorited.is_(True)
                    )
                )
            ).scalar_one()

            languages = await session.execute(
                select(
                    TranslationCacheRow.target_lang,
                    func.count(TranslationCacheRow.id),
                ).group_by(TranslationCacheRow.target_lang)
            )

            return CacheStatistics(
                total_entries=int(totals[0]),
                total_size_chars=int(totals[1]),
                total_usage_count=int(totals[2]),
                average_rating=(
                    float(average_rating) if average_rating is not None else None
                ),
                favorited_count=int(favorited),
                language_distribution={lang: int(n) for lang, n in languages.all()},
            )
