"""Event processor for validating and normalizing event data."""
import logging
from typing import List, Optional

from processor.models import DEFAULT_CATEGORY, Event, RawEvent

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for validating and normalizing scraped event fields."""

    SPAM_CATEGORIES = frozenset({'free'})
    CATEGORY_SEPARATOR = ', '

    def process_event(self, raw_event: RawEvent) -> Optional[Event]:
        """
        Normalize a single raw event.

        Args:
            raw_event: Field texts read from one event container

        Returns:
            Event object, or None if the event has no title
        """
        title = (raw_event.title or '').strip()
        if not title:
            logger.warning("Skipping event with an empty title")
            return None

        return Event(
            title=title,
            date=(raw_event.date or '').strip(),
            location=(raw_event.location or '').strip(),
            category=self.normalize_category(raw_event.categories),
            description=(raw_event.description or '').strip()
        )

    def normalize_category(self, categories: List[str]) -> str:
        """
        Join the informative category labels of an event.

        Empty labels and spam labels such as "Free" are dropped. Document
        order is kept.

        Args:
            categories: Category link texts in document order

        Returns:
            Comma-joined labels, or the default category if none remain
        """
        kept = []
        for category in categories:
            label = category.strip()
            if not label or label.lower() in self.SPAM_CATEGORIES:
                continue
            kept.append(label)

        if not kept:
            return DEFAULT_CATEGORY
        return self.CATEGORY_SEPARATOR.join(kept)
