"""Entry points used by the command line to get events."""
import logging
from typing import List, Optional, Tuple

from processor.models import CachedData, Event, Freshness
from scraper.rhul_calendar import RHULCalendarScraper
from storage.cache_manager import CacheManager
from storage.freshness import FreshnessPolicy

logger = logging.getLogger(__name__)


MIN_EVENTS = 2
MAX_EVENTS = 25

CacheState = Tuple[Freshness, Optional[CachedData]]


def clamp_event_count(num_events: int) -> int:
    """Keep the requested number of events within [MIN_EVENTS, MAX_EVENTS]."""
    if num_events < MIN_EVENTS:
        return MIN_EVENTS
    if num_events > MAX_EVENTS:
        return MAX_EVENTS
    return num_events


class EventsService:
    """Combines the scraper, the cache and the freshness policy."""

    def __init__(
        self,
        scraper: RHULCalendarScraper,
        cache_manager: CacheManager,
        policy: Optional[FreshnessPolicy] = None
    ):
        self.scraper = scraper
        self.cache_manager = cache_manager
        self.policy = policy or FreshnessPolicy(cache_manager)

    def scrape_events(self, max_events: int) -> List[Event]:
        """
        Scrape events and replace the cache with them.

        Args:
            max_events: Maximum number of events, already clamped

        Returns:
            Scraped events in page order

        Raises:
            FetchError: If the page could not be retrieved
            CacheWriteError: If the events could not be saved
        """
        events = self.scraper.fetch_events(max_events)
        self.cache_manager.save(events)
        return events

    def load_cached_events(self) -> List[Event]:
        """
        Load events from the cache.

        Raises:
            CacheNotFoundError: If there is no cache file
            CacheDecodeError: If the cache file is unreadable
        """
        return self.cache_manager.load().events

    def is_stale(self) -> bool:
        return self.policy.is_stale()

    def peek_freshness(self) -> Freshness:
        return self.policy.check()

    def check_cache(self) -> CacheState:
        """
        Read the cache once and classify it.

        Returns:
            Tuple of (Freshness, CachedData); CachedData is None when the
            cache is absent or corrupt
        """
        return self.policy.evaluate()

    def get_events(
        self,
        force_refresh: bool = False,
        max_events: int = 10,
        cache_state: Optional[CacheState] = None
    ) -> List[Event]:
        """
        Return events from the cache, scraping first when required.

        Args:
            force_refresh: Scrape even if the cache is fresh
            max_events: Requested number of events, clamped to [2, 25]
            cache_state: Result of an earlier check_cache() call to decide
                on instead of reading the cache again

        Returns:
            Events in page order
        """
        max_events = clamp_event_count(max_events)
        if not force_refresh:
            freshness, cached_data = cache_state or self.check_cache()
            if freshness is Freshness.FRESH and cached_data is not None:
                logger.info("Using cached data")
                return cached_data.events

        logger.info(f"Scraping up to {max_events} events")
        return self.scrape_events(max_events)
