"""Decides whether cached events can be reused or must be scraped again."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from processor.models import CachedData, Freshness
from storage.cache_manager import CacheDecodeError, CacheManager, CacheNotFoundError

logger = logging.getLogger(__name__)


STALE_AFTER = timedelta(hours=12)


class FreshnessPolicy:
    """Compares the cache timestamp against a staleness threshold."""

    def __init__(self, cache_manager: CacheManager, threshold: timedelta = STALE_AFTER):
        self.cache_manager = cache_manager
        self.threshold = threshold

    def evaluate(self, now: Optional[datetime] = None) -> Tuple[Freshness, Optional[CachedData]]:
        """
        Load the cache once and classify it.

        Args:
            now: Reference time (default: current time)

        Returns:
            Tuple of (Freshness, CachedData). The CachedData is None when the
            cache is ABSENT or CORRUPT.
        """
        try:
            cached_data = self.cache_manager.load()
        except CacheNotFoundError:
            logger.info("No recent data found, scraping is required")
            return Freshness.ABSENT, None
        except CacheDecodeError as e:
            logger.warning(f"Error reading cache, scraping is required: {e}")
            return Freshness.CORRUPT, None

        now = now or datetime.now(timezone.utc)
        age = now - cached_data.last_scraped
        if age < self.threshold:
            logger.info(f"Cache is fresh, last scraped {age} ago")
            return Freshness.FRESH, cached_data

        logger.info(f"Cache is stale, last scraped {age} ago")
        return Freshness.STALE, cached_data

    def check(self, now: Optional[datetime] = None) -> Freshness:
        """
        Classify the current cache.

        Returns:
            ABSENT or CORRUPT if the cache cannot be loaded, FRESH if it is
            younger than the threshold, otherwise STALE
        """
        freshness, _ = self.evaluate(now)
        return freshness

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        """Return True when a new scrape is required."""
        return self.check(now) is not Freshness.FRESH
