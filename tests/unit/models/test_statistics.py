"""Test cache statistics models."""

import pytest
from pydantic import ValidationError

from page_translator.models.statistics import CacheStatistics


class TestCacheStatistics:
    """Test cache statistics model."""

    def test_should_create_empty_statistics(self):
        """Test empty statistics creation."""
        stats = CacheStatistics.empty()

        assert stats.total_entries == 0
        assert stats.average_rating is None
        assert stats.language_distribution == {}
        assert stats.average_usage == 0.0

    def test_should_compute_derived_values(self):
        """Test size in MB and average usage."""
        stats = CacheStatistics(
            total_entries=4,
            total_size_chars=2 * 1024 * 1024,
            total_usage_count=10,
            average_rating=4.0,
            favorited_count=1,
            language_distribution={"en": 3, "fr": 1},
        )

        assert stats.total_size_mb == 2.0
        assert stats.average_usage == 2.5

    def test_should_reject_more_favorites_than_entries(self):
        """Test favorited count validation."""
        with pytest.raises(ValidationError):
            CacheStatistics(
                total_entries=1,
                total_size_chars=0,
                total_usage_count=0,
                favorited_count=2,
            )

    def test_should_reject_inconsistent_language_distribution(self):
        """Test distribution must sum to total."""
        with pytest.raises(ValidationError):
            CacheStatistics(
                total_entries=3,
                total_size_chars=0,
                total_usage_count=0,
                favorited_count=0,
                language_distribution={"en": 1},
            )

    def test_should_reject_rating_out_of_range(self):
        """Test average rating bounds."""
        with pytest.raises(ValidationError):
            CacheStatistics(
                total_entries=1,
                total_size_chars=0,
                total_usage_count=1,
                average_rating=6.0,
                favorited_count=0,
            )
