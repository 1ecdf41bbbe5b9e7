"""Data models for community events."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union


class Category(str, Enum):
    """Closed set of event category codes as stored in the sheet."""
    VILLAGE_FESTIVAL = 'festa-paese'
    STREET_FOOD = 'street-food'
    BEER_FESTIVAL = 'festa-birra'
    CONCERT = 'concerto'
    KIDS = 'bambini'
    CULTURE = 'cultura'
    SPORT = 'sport'
    OTHER = 'altro'

    @classmethod
    def from_code(cls, code) -> Optional['Category']:
        """Return the category for a code, or None if it is not in the set."""
        if code is None or isinstance(code, cls):
            return code
        try:
            return cls(str(code).strip().lower())
        except ValueError:
            return None


class DateWindow(str, Enum):
    """Named relative calendar ranges."""
    TODAY = 'today'
    WEEKEND = 'weekend'
    WEEK = 'week'
    MONTH = 'month'


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class EventRecord:
    """Validated and normalized event."""
    id: str
    title: str
    category: Category
    date: date
    location: str
    creator: str
    time: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    description: Optional[str] = None
    price: Optional[str] = None
    contact: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EventSubmission:
    """Fields of a new event as entered by a member."""
    title: str
    category: str
    date: str
    location: str
    time: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    contact: Optional[str] = None


@dataclass(frozen=True)
class UserRecord:
    """Row of the companion user sheet."""
    email: str
    name: str
    photo_url: str
    first_login: str
    last_login: str
    active: bool


@dataclass(frozen=True)
class FilterState:
    """Current filter criteria; None means the criterion is off."""
    category: Optional[Category] = None
    date_window: Optional[DateWindow] = None
    radius_km: Optional[float] = None
    user_position: Optional[Coordinates] = None


@dataclass(frozen=True)
class Resolved:
    """Geocoding found a location."""
    coordinates: Coordinates


@dataclass(frozen=True)
class Unresolved:
    """Geocoding found nothing or failed; the reason is for logs only."""
    reason: str


GeocodeResult = Union[Resolved, Unresolved]


@dataclass
class FilterStats:
    """Summary of a filtered result."""
    total: int
    filtered: int
    categories: dict = field(default_factory=dict)
    upcoming_days: dict = field(default_factory=dict)
