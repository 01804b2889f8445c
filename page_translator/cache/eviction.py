"""
Translation cache eviction.

Sandi Metz Principles:
- Single Responsibility: Enforce size, count and age bounds
- Small methods: One method per bound
- Dependency Injection: Repository and policy injected
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from page_translator.config import AppConfig, config
from page_translator.repositories.database import to_millis
from page_translator.repositories.translation_cache_repository import (
    TranslationCacheRepository,
)
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EvictionPolicy:
    """Cache bounds."""

    max_size_chars: int = 500 * 1024 * 1024
    max_entries: int = 10_000
    max_age: timedelta = timedelta(days=30)
    batch_size: int = 100

    @classmethod
    def from_config(cls, settings: Optional[AppConfig] = None) -> "EvictionPolicy":
        """Create policy from application config."""
        settings = settings or config
        return cls(
            max_size_chars=settings.cache_max_size_chars,
            max_entries=settings.cache_max_entries,
            max_age=settings.cache_max_age,
            batch_size=settings.cache_cleanup_batch_size,
        )


@dataclass
class EvictionReport:
    """Records removed by one cleanup run."""

    by_size: int = 0
    by_count: int = 0
    by_age: int = 0

    @property
    def total(self) -> int:
        """Total records removed."""
        return self.by_size + self.by_count + self.by_age


class CacheEvictor:
    """
    Applies eviction policy to the cache table.

    Favorited records are never removed. Running it twice in a row is safe.
    """

    def __init__(
        self,
        repository: TranslationCacheRepository,
        policy: Optional[EvictionPolicy] = None,
    ):
        """
        Initialize evictor.

        Args:
            repository: Cache repository
            policy: Eviction policy (defaults from config)
        """
        self._repository = repository
        self._policy = policy or EvictionPolicy.from_config()

    @property
    def policy(self) -> EvictionPolicy:
        """Get eviction policy."""
        return self._policy

    async def run(self, now: datetime) -> EvictionReport:
        """
        Enforce size, count and age bounds in that order.

        Args:
            now: Current time used for the age bound

        Returns:
            Eviction report
        """
        report = EvictionReport(
            by_size=await self.evict_by_size(),
            by_count=await self.evict_by_count(),
            by_age=await self.evict_by_age(now),
        )

        if report.total:
            logger.info(
                "Cache cleanup removed entries",
                by_size=report.by_size,
                by_count=report.by_count,
                by_age=report.by_age,
            )

        return report

    async def evict_by_size(self) -> int:
        """
        Delete least used, oldest records in batches until under size budget.

        Returns:
            Number of records deleted
        """
        removed = 0

        while await self._repository.total_size() > self._policy.max_size_chars:
            ids = await self._repository.eviction_candidates(
                limit=self._policy.batch_size, newest_first=False
            )
            if not ids:
                logger.warning("Cache over size budget with only favorites left")
                break

            removed += await self._repository.delete_ids(ids)

        return removed

    async def evict_by_count(self) -> int:
        """
        Delete excess records, least used first, newest first among equals.

        Returns:
            Number of records deleted
        """
        excess = await self._repository.count() - self._policy.max_entries
        if excess <= 0:
            return 0

        ids = await self._repository.eviction_candidates(
            limit=excess, newest_first=True
        )
        return await self._repository.delete_ids(ids)

    async def evict_by_age(self, now: datetime) -> int:
        """
        Delete non-favorited records older than the max age.

        Args:
            now: Current time

        Returns:
            Number of records deleted
        """
        cutoff = to_millis(now - self._policy.max_age)
        return await self._repository.delete_created_before(cutoff)
