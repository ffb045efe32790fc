"""Command line entry point for the RHUL Students' Union events scraper."""
import argparse
import json
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from events_service import EventsService, clamp_event_count
from processor.models import CachedData, Event, Freshness
from scraper.rhul_calendar import FetchError, RHULCalendarScraper
from storage.cache_manager import CacheError, CacheManager
from storage.freshness import FreshnessPolicy


MIN_CACHE_EXPIRY_HOURS = 1


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO', json_logs: bool = False) -> None:
    """
    Configure root logging on stderr.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Use the JSON formatter instead of plain text
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='rhs-scraper',
        description="Show upcoming RHUL Students' Union events"
    )
    parser.add_argument(
        '-f', '--force',
        action='store_true',
        help="Force scraping even if recent data is available."
    )
    parser.add_argument(
        '-n', '--num-events',
        type=int,
        default=int(os.environ.get('MAX_EVENTS', '10')),
        help="Number of events to scrape (min 2, max 25)."
    )
    parser.add_argument(
        '--cache-expiry',
        type=int,
        metavar='HOURS',
        default=int(os.environ.get('CACHE_EXPIRY_HOURS', '12')),
        help="Hours before cached events are scraped again (min 1)."
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        '--cached',
        action='store_true',
        help="Print the cached events without checking their age."
    )
    mode.add_argument(
        '--status',
        action='store_true',
        help="Print the state of the event cache and exit."
    )
    return parser


def format_age(last_scraped: datetime, now: Optional[datetime] = None) -> str:
    """Describe how long ago last_scraped was, e.g. '3 hours ago'."""
    now = now or datetime.now(timezone.utc)
    minutes = int((now - last_scraped).total_seconds() // 60)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    hours = minutes // 60
    if hours < 48:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    return f"{hours // 24} days ago"


def print_events(events: List[Event]) -> None:
    for event in events:
        print(f"Title: {event.title}")
        print(f"Date: {event.date}")
        print(f"Location: {event.location}")
        print(f"Category: {event.category}")
        print(f"Description: {event.description}")
        print()


def print_status(freshness: Freshness, cached_data: Optional[CachedData]) -> None:
    if cached_data is None:
        if freshness is Freshness.CORRUPT:
            print("Cached events are unreadable, the next run will scrape again.")
        else:
            print("No cached events.")
        return

    print(
        f"Cached events are {freshness.value}. "
        f"Last scraped: {format_age(cached_data.last_scraped)}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the scraper from the command line.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    # Read configuration from environment variables
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    json_logs = os.environ.get('LOG_FORMAT', 'text').lower() == 'json'
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))

    setup_logging(log_level, json_logs)
    logger = logging.getLogger(__name__)

    cache_manager = CacheManager()
    expiry_hours = max(args.cache_expiry, MIN_CACHE_EXPIRY_HOURS)
    service = EventsService(
        scraper=RHULCalendarScraper(timeout=timeout_seconds),
        cache_manager=cache_manager,
        policy=FreshnessPolicy(cache_manager, timedelta(hours=expiry_hours))
    )

    if args.cached:
        try:
            events = service.load_cached_events()
        except CacheError as e:
            logger.error(f"Failed to load cached events: {e}")
            return 1
        print_events(events)
        return 0

    if args.status:
        print_status(*service.check_cache())
        return 0

    num_events = clamp_event_count(args.num_events)

    try:
        cache_state = None
        if args.force:
            print("Scraping...")
        else:
            cache_state = service.check_cache()
            freshness, cached_data = cache_state
            if freshness is Freshness.FRESH and cached_data is not None:
                print(f"Recent data found. Last scraped: {format_age(cached_data.last_scraped)}")
            else:
                print("No recent data found, scraping...")

        events = service.get_events(
            force_refresh=args.force,
            max_events=num_events,
            cache_state=cache_state
        )
    except FetchError as e:
        logger.error(f"Failed to scrape events: {e}", exc_info=True)
        return 1
    except CacheError as e:
        logger.error(f"Failed to use the event cache: {e}", exc_info=True)
        return 1

    print_events(events)
    return 0


if __name__ == '__main__':
    sys.exit(main())
