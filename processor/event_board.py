"""Filter state and search entry points used by the presentation layer."""
import logging
from dataclasses import asdict, replace
from datetime import date
from typing import Callable, List, Optional, Sequence, Union

from processor.errors import PositionUnavailable, ValidationFailed
from processor.filters import FilterPipeline
from processor.models import (
    Category, Coordinates, DateWindow, EventRecord, FilterState, FilterStats
)
from processor.providers import PositionProvider

logger = logging.getLogger(__name__)

MAX_DISTANCE_KM = 100
UPCOMING_DAYS = 30


class EventBoard:
    """
    Owner of the member's FilterState.

    The state only changes through the setters below; every setter re-runs
    the pipeline over the last loaded events, as does ``search``.
    """

    def __init__(
        self,
        repository,
        pipeline: FilterPipeline = None,
        position_provider: Optional[PositionProvider] = None,
        today: Callable[[], date] = date.today
    ):
        """
        Initialize the board.

        Args:
            repository: EventRepository supplying the cached events
            pipeline: Filter pipeline (default: haversine distance)
            position_provider: Source of the device position
            today: Returns the current local date
        """
        self.repository = repository
        self.pipeline = pipeline or FilterPipeline(today=today)
        self.position_provider = position_provider
        self.today = today
        self.state = FilterState()
        self.all_events: Sequence[EventRecord] = ()
        self.filtered_events: List[EventRecord] = []

    async def search(self) -> List[EventRecord]:
        """Load events (cache-aware) and apply the current filters."""
        self.all_events = await self.repository.load_events()
        filtered = self.apply_filters()
        logger.info(f"Search completed: {len(filtered)} events found")
        return filtered

    def apply_filters(self) -> List[EventRecord]:
        """
        Run the pipeline over the last loaded events.

        Returns:
            Events matching the current FilterState, sorted by date
        """
        self.filtered_events = self.pipeline.apply(self.all_events, self.state)
        return self.filtered_events

    def set_category(self, category: Union[Category, str, None]) -> List[EventRecord]:
        """
        Filter on one category.

        Args:
            category: Category or its code; empty or None clears the filter

        Returns:
            The re-filtered events

        Raises:
            ValidationFailed: If the code is not a known category
        """
        if category:
            parsed = Category.from_code(category)
            if parsed is None:
                raise ValidationFailed([f"Unknown category: {category}"])
            category = parsed
        self.state = replace(self.state, category=category or None)
        return self.apply_filters()

    def set_date_window(self, window: Union[DateWindow, str, None]) -> List[EventRecord]:
        """
        Filter on a relative date range.

        Args:
            window: today, weekend, week or month; empty or None clears it

        Returns:
            The re-filtered events

        Raises:
            ValidationFailed: If the window name is unknown
        """
        if window:
            try:
                window = DateWindow(window)
            except ValueError:
                raise ValidationFailed([f"Unknown date window: {window}"]) from None
        self.state = replace(self.state, date_window=window or None)
        return self.apply_filters()

    def set_radius(self, radius_km: Optional[float]) -> List[EventRecord]:
        """
        Filter on distance from the member's position.

        The radius only takes effect once a position is known.

        Args:
            radius_km: Radius in km; empty or None clears it

        Returns:
            The re-filtered events

        Raises:
            ValidationFailed: If the radius is not a number in (0, 100]
        """
        if radius_km in (None, ''):
            radius_km = None
        else:
            try:
                radius_km = float(radius_km)
            except (TypeError, ValueError):
                raise ValidationFailed([f"Invalid radius: {radius_km}"]) from None
            if not 0 < radius_km <= MAX_DISTANCE_KM:
                raise ValidationFailed([
                    f"Radius must be between 0 and {MAX_DISTANCE_KM} km"
                ])
        self.state = replace(self.state, radius_km=radius_km)
        return self.apply_filters()

    def set_user_position(self, position: Optional[Coordinates]) -> List[EventRecord]:
        """Set or clear the origin used by the radius filter."""
        self.state = replace(self.state, user_position=position)
        return self.apply_filters()

    def set_filter(self, name: str, value) -> List[EventRecord]:
        """Set one filter by name: category, date_window, radius_km or user_position."""
        setters = {
            'category': self.set_category,
            'date_window': self.set_date_window,
            'radius_km': self.set_radius,
            'user_position': self.set_user_position,
        }
        if name not in setters:
            raise KeyError(f"Unknown filter: {name}")
        return setters[name](value)

    def clear_filters(self) -> List[EventRecord]:
        """Reset every criterion but keep the member's position."""
        self.state = FilterState(user_position=self.state.user_position)
        logger.info("Filters cleared")
        return self.apply_filters()

    def locate_user(self) -> Coordinates:
        """
        Store the device position as the distance origin.

        Raises:
            PositionUnavailable: If the position cannot be obtained
        """
        if self.position_provider is None:
            raise PositionUnavailable()
        position = self.position_provider.current_position()
        self.set_user_position(position)
        return position

    def current_filters(self) -> dict:
        """Return a copy of the FilterState as a plain dict."""
        return asdict(self.state)

    def has_active_filters(self) -> bool:
        """
        Check whether any criterion narrows the result.

        A radius without a known position does not count.
        """
        return bool(
            self.state.category
            or self.state.date_window
            or (self.state.radius_km is not None and self.state.user_position)
        )

    def events_by_category(self, category: Union[Category, str]) -> List[EventRecord]:
        """
        Return loaded events of one category, ignoring the filters.

        Args:
            category: Category or its code

        Returns:
            Matching events in load order; empty for an unknown code
        """
        code = Category.from_code(category)
        return [event for event in self.all_events if event.category == code]

    def events_on(self, day: date) -> List[EventRecord]:
        """Return loaded events held on one day, ignoring the filters."""
        return [event for event in self.all_events if event.date == day]

    def filter_stats(self) -> FilterStats:
        """
        Summarize the filtered result.

        Returns:
            FilterStats with per-category counts and day buckets for the
            next 30 days (``today``, ``tomorrow``, ``N days``)
        """
        stats = FilterStats(
            total=len(self.all_events), filtered=len(self.filtered_events)
        )
        today = self.today()

        for event in self.filtered_events:
            code = event.category.value
            stats.categories[code] = stats.categories.get(code, 0) + 1

            days = (event.date - today).days
            if 0 <= days <= UPCOMING_DAYS:
                if days == 0:
                    key = 'today'
                elif days == 1:
                    key = 'tomorrow'
                else:
                    key = f'{days} days'
                stats.upcoming_days[key] = stats.upcoming_days.get(key, 0) + 1

        return stats
