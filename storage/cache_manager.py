"""JSON file cache for scraped events."""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from processor.event_processor import EventProcessor
from processor.models import CachedData, Event

logger = logging.getLogger(__name__)


APP_NAME = 'rhs-scraper'
CACHE_FILE_NAME = 'events.json'
CACHE_DIR_MODE = 0o755  # rwxr-xr-x


class CacheError(Exception):
    """Base class for event cache errors."""


class CacheNotFoundError(CacheError):
    """Raised when there is no cache file."""


class CacheDecodeError(CacheError):
    """Raised when the cache file does not hold a valid event collection."""


class CacheWriteError(CacheError):
    """Raised when the cache directory or file cannot be written."""


def user_cache_dir() -> Path:
    """
    Return the platform's per-user cache root.

    Returns:
        %LOCALAPPDATA% on Windows, ~/Library/Caches on macOS and
        $XDG_CACHE_HOME or ~/.cache elsewhere
    """
    if sys.platform == 'win32':
        local_app_data = os.environ.get('LOCALAPPDATA')
        if local_app_data:
            return Path(local_app_data)
        return Path.home() / 'AppData' / 'Local'

    if sys.platform == 'darwin':
        return Path.home() / 'Library' / 'Caches'

    xdg_cache_home = os.environ.get('XDG_CACHE_HOME')
    if xdg_cache_home and os.path.isabs(xdg_cache_home):
        return Path(xdg_cache_home)
    return Path.home() / '.cache'


def default_cache_dir() -> Path:
    """Application cache directory, overridable through RHS_CACHE_DIR."""
    override = os.environ.get('RHS_CACHE_DIR')
    if override:
        return Path(override)
    return user_cache_dir() / APP_NAME


class CacheManager:
    """Manager for the events cache file."""

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the cache manager.

        Args:
            cache_dir: Directory holding the cache file (default: the
                platform cache directory for this application)
        """
        self.cache_dir = Path(cache_dir) if cache_dir else default_cache_dir()
        self.path = self.cache_dir / CACHE_FILE_NAME

    def save(self, events: List[Event]) -> CachedData:
        """
        Replace the cache with the given events, stamped with the current time.

        Args:
            events: Events to persist, in page order

        Returns:
            The CachedData that was written

        Raises:
            CacheWriteError: If the directory or file cannot be written
        """
        cached_data = CachedData(
            last_scraped=datetime.now(timezone.utc),
            events=list(events)
        )
        payload = {
            'last_scraped': cached_data.last_scraped.isoformat(),
            'events': [event.to_dict() for event in cached_data.events]
        }

        try:
            self.cache_dir.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as cache_file:
                json.dump(payload, cache_file, indent=2, ensure_ascii=False)
                cache_file.write('\n')
        except OSError as e:
            logger.error(f"Failed to write cache file {self.path}: {e}")
            raise CacheWriteError(f"failed to save events to cache: {e}") from e

        logger.info(f"Saved {len(cached_data.events)} events to {self.path}")
        return cached_data

    def load(self) -> CachedData:
        """
        Load the cached events.

        Returns:
            CachedData read from the cache file

        Raises:
            CacheNotFoundError: If the cache file does not exist
            CacheDecodeError: If the file is not a valid event collection
        """
        try:
            with open(self.path, encoding='utf-8') as cache_file:
                payload = json.load(cache_file)
        except FileNotFoundError as e:
            raise CacheNotFoundError(f"no cache file at {self.path}") from e
        except (OSError, ValueError) as e:
            raise CacheDecodeError(f"error decoding cache file {self.path}: {e}") from e

        cached_data = self._payload_to_cached_data(payload)
        logger.info(f"Loaded {len(cached_data.events)} events from cache")
        return cached_data

    def _payload_to_cached_data(self, payload) -> CachedData:
        """
        Convert a decoded JSON document to CachedData.

        Args:
            payload: Object decoded from the cache file

        Returns:
            CachedData object

        Raises:
            CacheDecodeError: If the document does not have the expected shape
        """
        if not isinstance(payload, dict):
            raise CacheDecodeError("cache file does not hold a JSON object")

        events_data = payload.get('events')
        if events_data is None:
            events_data = []
        if not isinstance(events_data, list):
            raise CacheDecodeError("cache field 'events' is not a list")

        try:
            last_scraped = parse_timestamp(payload['last_scraped'])
            events = [self._item_to_event(item) for item in events_data]
        except (KeyError, TypeError, ValueError) as e:
            raise CacheDecodeError(f"invalid cache contents: {e}") from e

        return CachedData(last_scraped=last_scraped, events=events)

    def _item_to_event(self, item: dict) -> Event:
        """
        Convert a cached item to an Event.

        Args:
            item: Event dictionary from the cache file

        Returns:
            Event object
        """
        if not isinstance(item, dict):
            raise TypeError(f"event entry is {type(item).__name__}, not an object")

        fields = {}
        for name in ('title', 'date', 'location', 'category', 'description'):
            value = item.get(name, '')
            if not isinstance(value, str):
                raise TypeError(f"event field '{name}' is not a string")
            fields[name] = value

        # Cached categories get the same cleanup as scraped ones
        fields['category'] = EventProcessor().normalize_category(
            fields['category'].split(',')
        )
        return Event(**fields)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware datetime.

    Fractional seconds beyond microseconds are dropped. Naive values are
    taken as local time.

    Args:
        value: Timestamp string such as "2024-10-01T18:30:00.123456789+01:00"

    Returns:
        Timezone-aware datetime
    """
    if not isinstance(value, str):
        raise TypeError("last_scraped is not a string")

    text = _truncate_fraction(value.strip())
    timestamp = datetime.fromisoformat(text)
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    return timestamp


def _truncate_fraction(text: str) -> str:
    """Cut fractional seconds to six digits."""
    dot = text.find('.')
    if dot == -1:
        return text

    end = dot + 1
    while end < len(text) and text[end].isdigit():
        end += 1
    digits = text[dot + 1:end]
    if len(digits) <= 6:
        return text
    return text[:dot + 1] + digits[:6] + text[end:]
