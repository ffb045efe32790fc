"""Data models for event processing."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List


DEFAULT_CATEGORY = "uncategorized"


@dataclass
class RawEvent:
    """Field texts read from one event container, before normalization."""
    title: str
    date: str = ''
    location: str = ''
    description: str = ''
    categories: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Event:
    """Normalized event record."""
    title: str
    date: str = ''
    location: str = ''
    category: str = DEFAULT_CATEGORY
    description: str = ''

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("Event title must not be empty")
        if not self.category:
            raise ValueError(f"Event '{self.title}' has an empty category")

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'date': self.date,
            'location': self.location,
            'category': self.category,
            'description': self.description
        }


@dataclass
class CachedData:
    """Events persisted together with the time they were scraped."""
    last_scraped: datetime
    events: List[Event]


class Freshness(Enum):
    """State of the event cache as seen by the freshness policy."""
    FRESH = 'fresh'
    STALE = 'stale'
    ABSENT = 'absent'
    CORRUPT = 'corrupt'
