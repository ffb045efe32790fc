"""Calendar scraper for the RHUL Students' Union events page."""
import logging
from itertools import islice
from typing import Iterator, List, Optional

import requests
from bs4 import BeautifulSoup

from processor.event_processor import EventProcessor
from processor.models import Event, RawEvent

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the events page cannot be retrieved."""


class RHULCalendarScraper:
    """Scraper for the Students' Union online calendar."""

    BASE_URL = "https://su.rhul.ac.uk/events/calendar/"

    # Page structure: every event is an .event_item inside the .msl_eventlist
    CONTAINER_SELECTOR = '.msl_eventlist .event_item'
    TITLE_SELECTOR = 'a.msl_event_name'
    DATE_SELECTOR = 'dd.msl_event_time'
    LOCATION_SELECTOR = 'dd.msl_event_location'
    DESCRIPTION_SELECTOR = 'dd.msl_event_description'
    CATEGORY_SELECTOR = 'dd.msl_event_types a'

    def __init__(self, timeout: int = 30, processor: Optional[EventProcessor] = None):
        """
        Initialize the calendar scraper.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
            processor: Normalizer for extracted fields
        """
        self.timeout = timeout
        self.processor = processor or EventProcessor()

    def fetch_events(self, max_events: int) -> List[Event]:
        """
        Fetch up to max_events events from the calendar.

        The caller is responsible for keeping max_events within its limits.

        Args:
            max_events: Maximum number of events to return

        Returns:
            List of Event objects in page order

        Raises:
            FetchError: If the page could not be retrieved
        """
        html_content = self._fetch_calendar_html()
        events = self.parse_events(html_content, max_events)

        logger.info(f"Successfully fetched {len(events)} events")
        return events

    def _fetch_calendar_html(self) -> str:
        """
        Fetch calendar HTML with a single GET request.

        Returns:
            HTML content as string

        Raises:
            FetchError: On connection errors, timeouts and non-success statuses
        """
        logger.info(f"Visiting {self.BASE_URL}")
        try:
            response = requests.get(self.BASE_URL, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error visiting {self.BASE_URL}: {e}")
            raise FetchError(f"failed to visit events page: {e}") from e

        return response.text

    def parse_events(self, html_content: str, max_events: int) -> List[Event]:
        """
        Parse events from calendar HTML.

        Traversal stops as soon as max_events valid events are collected.

        Args:
            html_content: HTML content from calendar page
            max_events: Maximum number of events to return

        Returns:
            List of Event objects
        """
        if max_events <= 0:
            return []

        valid_events = (event for event in self.iter_events(html_content) if event)
        return list(islice(valid_events, max_events))

    def iter_events(self, html_content: str) -> Iterator[Optional[Event]]:
        """
        Yield one extraction outcome per event container, in page order.

        Args:
            html_content: HTML content from calendar page

        Yields:
            Event objects, or None for skipped containers
        """
        soup = BeautifulSoup(html_content, 'html.parser')

        for element in soup.select(self.CONTAINER_SELECTOR):
            yield self.extract_event(element)

    def extract_event(self, element) -> Optional[Event]:
        """
        Extract a single event from its container.

        Args:
            element: BeautifulSoup element of one event container

        Returns:
            Event object or None if the container has no title
        """
        return self.processor.process_event(self._parse_event_element(element))

    def _parse_event_element(self, element) -> RawEvent:
        """
        Read the raw field texts of an event container.

        Args:
            element: BeautifulSoup element of one event container

        Returns:
            RawEvent with missing fields as empty strings
        """
        categories = [
            link.get_text().strip()
            for link in element.select(self.CATEGORY_SELECTOR)
        ]

        return RawEvent(
            title=self._child_text(element, self.TITLE_SELECTOR),
            date=self._child_text(element, self.DATE_SELECTOR),
            location=self._child_text(element, self.LOCATION_SELECTOR),
            description=self._child_text(element, self.DESCRIPTION_SELECTOR),
            categories=categories
        )

    def _child_text(self, element, selector: str) -> str:
        """
        Get the trimmed text of all children matching selector.

        Args:
            element: BeautifulSoup element to search in
            selector: CSS selector relative to element

        Returns:
            Text content, or an empty string if nothing matches
        """
        return ''.join(child.get_text() for child in element.select(selector)).strip()
