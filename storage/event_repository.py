"""Cache-aware access to the events and users sheets."""
import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import requests

from processor.errors import AuthenticationRequired, DataSourceUnavailable, DuplicateEventId
from processor.identifiers import EventIdGenerator
from processor.models import (
    Category, EventRecord, EventSubmission, Resolved, UserRecord
)
from processor.providers import PrincipalProvider
from processor.row_parser import (
    EventRowParser, event_to_row, parse_date, parse_user_row, user_to_row
)
from processor.validation import validate_submission
from sheets.client import MalformedSheetResponse, SheetsClient
from sheets.geocoder import NominatimGeocoder
from storage.event_cache import EVENTS, USERS, CacheStore

logger = logging.getLogger(__name__)

# Failures of the sheets client that mean the data source is unavailable
SOURCE_ERRORS = (requests.RequestException, MalformedSheetResponse)


class EventRepository:
    """
    Fetch orchestrator for the events sheet.

    Only this class writes the cache. Concurrent ``load_events`` calls that
    miss the cache share one in-flight fetch per scope; a caller that stops
    waiting does not cancel it, so the fetch still lands in the cache unless
    the scope was invalidated while it ran.
    """

    def __init__(
        self,
        client: SheetsClient,
        cache: CacheStore,
        geocoder: NominatimGeocoder = None,
        principal: Optional[PrincipalProvider] = None,
        id_generator: EventIdGenerator = None,
        parser: EventRowParser = None,
        events_range: str = 'Eventi!A:M',
        users_range: str = 'Utenti!A:F',
        events_sheet: str = 'Eventi',
        users_sheet: str = 'Utenti',
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = None
    ):
        self.client = client
        self.cache = cache
        self.geocoder = geocoder or NominatimGeocoder()
        self.principal = principal
        self.id_generator = id_generator or EventIdGenerator()
        self.parser = parser or EventRowParser()
        self.events_range = events_range
        self.users_range = users_range
        self.events_sheet = events_sheet
        self.users_sheet = users_sheet
        self.today = today
        self.now = now or (lambda: datetime.now(timezone.utc))
        self._in_flight: Dict[str, Tuple[asyncio.Future, int]] = {}

    async def load_events(self) -> Tuple[EventRecord, ...]:
        """
        Return current and upcoming events, from cache while it is fresh.

        Returns:
            Tuple of EventRecord objects in sheet order

        Raises:
            DataSourceUnavailable: If the sheet cannot be read; the cache
                keeps its previous state
        """
        if self.cache.is_valid(EVENTS):
            return self.cache.get(EVENTS)
        return await self._shared_fetch(EVENTS, self._fetch_events)

    async def force_reload(self) -> Tuple[EventRecord, ...]:
        """Drop every cached dataset and read the events sheet again."""
        self.cache.invalidate()
        return await self.load_events()

    def invalidate(self, scope: str = None) -> None:
        """
        Clear cached data.

        Args:
            scope: ``events``, ``users`` or None for everything
        """
        self.cache.invalidate(scope)

    async def load_users(self) -> Tuple[UserRecord, ...]:
        """Return known users; failures are logged and yield no users."""
        if self.cache.is_valid(USERS):
            return self.cache.get(USERS)
        try:
            return await self._shared_fetch(USERS, self._fetch_users)
        except DataSourceUnavailable:
            return ()

    async def save_user(self, user: UserRecord) -> bool:
        """
        Record a user on first sign-in.

        Returns:
            True if a row was appended, False if the user was already known
            or the sheet could not be written
        """
        users = await self.load_users()
        if any(existing.email == user.email for existing in users):
            logger.info(f"User {user.email} already registered")
            return False

        try:
            await asyncio.to_thread(
                self.client.append_rows, self.users_sheet, [user_to_row(user)]
            )
        except SOURCE_ERRORS as e:
            logger.error(f"Failed to save user {user.email}: {e}")
            return False

        self.cache.invalidate(USERS)
        return True

    async def add_event(self, submission: EventSubmission) -> EventRecord:
        """
        Validate, geocode and append a new event, then invalidate the cache.

        An address that cannot be geocoded does not stop the event from
        being saved; it is stored without coordinates.

        Args:
            submission: Event fields as entered by the member

        Returns:
            The stored EventRecord

        Raises:
            AuthenticationRequired: If no member is signed in
            ValidationFailed: If any field rule is broken
            DuplicateEventId: If the generated id is already cached
            DataSourceUnavailable: If the row cannot be appended
        """
        creator = self._current_email()
        validate_submission(submission, self.today())

        location = submission.location.strip()
        result = await asyncio.to_thread(self.geocoder.geocode, location)
        coordinates = result.coordinates if isinstance(result, Resolved) else None
        if coordinates is None:
            logger.warning(
                f"Saving event without coordinates, location unresolved: {location}"
            )

        event_id = self.id_generator.generate()
        if any(event.id == event_id for event in self.cache.get(EVENTS)):
            logger.error(f"Generated event id {event_id} already exists")
            raise DuplicateEventId()

        record = EventRecord(
            id=event_id,
            title=submission.title.strip(),
            category=Category.from_code(submission.category),
            date=parse_date(submission.date),
            time=_optional(submission.time),
            location=location,
            coordinates=coordinates,
            description=_optional(submission.description),
            price=_optional(submission.price),
            contact=_optional(submission.contact),
            creator=creator,
            created_at=self.now(),
        )

        try:
            await asyncio.to_thread(
                self.client.append_rows, self.events_sheet, [event_to_row(record)]
            )
        except SOURCE_ERRORS as e:
            logger.error(f"Failed to append event {event_id}: {e}")
            raise DataSourceUnavailable('Could not save the event. Please try again later.') from e

        self.cache.invalidate(EVENTS)
        logger.info(f"Added event {event_id}")
        return record

    async def _fetch_events(self, generation: int) -> Tuple[EventRecord, ...]:
        rows = await self._read(self.events_range)
        records = self.parser.parse_rows(rows[1:])

        today = self.today()
        upcoming = [record for record in records if record.date >= today]
        logger.info(
            f"Loaded {len(upcoming)} upcoming events "
            f"({len(records) - len(upcoming)} past events skipped)"
        )
        return self.cache.replace(EVENTS, upcoming, generation=generation)

    async def _fetch_users(self, generation: int) -> Tuple[UserRecord, ...]:
        rows = await self._read(self.users_range)
        users = [user for user in map(parse_user_row, rows[1:]) if user]
        logger.info(f"Loaded {len(users)} users")
        return self.cache.replace(USERS, users, generation=generation)

    async def _read(self, cell_range: str) -> List[list]:
        try:
            return await asyncio.to_thread(self.client.read_range, cell_range)
        except SOURCE_ERRORS as e:
            logger.error(f"Error reading {cell_range}: {e}")
            raise DataSourceUnavailable() from e

    async def _shared_fetch(
        self,
        scope: str,
        fetch: Callable[[int], Awaitable[tuple]]
    ) -> tuple:
        # A fetch started before the last invalidation is never joined
        generation = self.cache.generation(scope)
        in_flight = self._in_flight.get(scope)
        if in_flight is not None and in_flight[1] == generation:
            task = in_flight[0]
            logger.debug(f"Joining in-flight fetch for {scope}")
        else:
            task = asyncio.ensure_future(fetch(generation))
            self._in_flight[scope] = (task, generation)
            task.add_done_callback(lambda done: self._fetch_done(scope, done))
        return await asyncio.shield(task)

    def _fetch_done(self, scope: str, task: asyncio.Future) -> None:
        in_flight = self._in_flight.get(scope)
        if in_flight is not None and in_flight[0] is task:
            del self._in_flight[scope]
        # Mark the error as retrieved when every waiter has gone away
        if not task.cancelled():
            task.exception()

    def _current_email(self) -> str:
        if self.principal is None:
            raise AuthenticationRequired()
        email = self.principal.current_email()
        if not email:
            raise AuthenticationRequired()
        return email


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None
