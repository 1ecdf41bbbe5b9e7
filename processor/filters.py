"""Filter pipeline for event records."""
import calendar
import logging
from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from processor.geo import haversine_km
from processor.models import (
    Category, Coordinates, DateWindow, EventRecord, FilterState
)

logger = logging.getLogger(__name__)

DistanceFunc = Callable[[Coordinates, Coordinates], float]

SATURDAY = 5
SUNDAY = 6


def add_months(day: date, months: int) -> date:
    """Shift a date by calendar months, clamping to the last valid day."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def date_window_bounds(window: DateWindow, today: date) -> Tuple[date, date]:
    """
    Inclusive date range covered by a named window.

    Args:
        window: Named window
        today: Current local date

    Returns:
        Tuple of (first_day, last_day)
    """
    if window == DateWindow.TODAY:
        return today, today

    if window == DateWindow.WEEKEND:
        if today.weekday() == SUNDAY:
            saturday = today - timedelta(days=1)
        else:
            saturday = today + timedelta(days=SATURDAY - today.weekday())
        return saturday, saturday + timedelta(days=1)

    if window == DateWindow.WEEK:
        return today, today + timedelta(days=7)

    if window == DateWindow.MONTH:
        return today, add_months(today, 1)

    raise ValueError(f"Unknown date window: {window!r}")


def filter_by_category(
    events: Sequence[EventRecord],
    category: Optional[Category]
) -> List[EventRecord]:
    if not category:
        return list(events)
    return [event for event in events if event.category == category]


def filter_by_date_window(
    events: Sequence[EventRecord],
    window: Optional[DateWindow],
    today: date
) -> List[EventRecord]:
    if not window:
        return list(events)
    first_day, last_day = date_window_bounds(window, today)
    return [event for event in events if first_day <= event.date <= last_day]


def filter_by_distance(
    events: Sequence[EventRecord],
    radius_km: Optional[float],
    position: Optional[Coordinates],
    distance: DistanceFunc = haversine_km
) -> List[EventRecord]:
    """
    Keep events within radius_km of position.

    Events without coordinates never pass an active distance filter.
    """
    if radius_km is None or position is None:
        return list(events)
    return [
        event for event in events
        if event.coordinates is not None
        and distance(position, event.coordinates) <= radius_km
    ]


class FilterPipeline:
    """Category, date window and distance filters followed by a date sort."""

    def __init__(
        self,
        distance: DistanceFunc = haversine_km,
        today: Callable[[], date] = date.today
    ):
        """
        Initialize the pipeline.

        Args:
            distance: Distance calculator in kilometers
            today: Returns the current local date
        """
        self.distance = distance
        self.today = today

    def apply(
        self,
        events: Sequence[EventRecord],
        state: FilterState
    ) -> List[EventRecord]:
        """
        Apply the filters in state to events.

        The input sequence is never modified; the result is a new list
        sorted by date, keeping input order for events on the same day.
        """
        filtered = filter_by_category(events, state.category)
        filtered = filter_by_date_window(filtered, state.date_window, self.today())
        filtered = filter_by_distance(
            filtered, state.radius_km, state.user_position, self.distance
        )
        filtered.sort(key=lambda event: event.date)

        logger.debug(f"Filtered {len(events)} events down to {len(filtered)}")
        return filtered
