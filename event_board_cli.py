"""Command line entry point for the community event board."""
import argparse
import asyncio
import json
import logging
import os
import sys
import time
from dataclasses import asdict, dataclass
from typing import List, Optional

from processor.errors import EventBoardError, LocationUnresolved, ValidationFailed
from processor.event_board import EventBoard
from processor.models import Coordinates, EventRecord, EventSubmission
from processor.providers import StaticPosition, StaticPrincipal
from sheets.client import SheetsClient
from sheets.geocoder import NominatimGeocoder
from storage.event_cache import CacheStore
from storage.event_repository import EventRepository


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


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Log to stderr so stdout stays machine readable
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


@dataclass
class Settings:
    """Runtime configuration read from environment variables."""
    sheets_id: str
    sheets_api_key: str
    sheets_api_base: str = SheetsClient.BASE_URL
    events_range: str = 'Eventi!A:M'
    users_range: str = 'Utenti!A:F'
    events_sheet: str = 'Eventi'
    users_sheet: str = 'Utenti'
    cache_ttl_seconds: float = 300
    timeout_seconds: int = 30
    geocoder_url: str = NominatimGeocoder.BASE_URL
    geocoder_country: str = 'it'
    geocoder_qualifier: str = 'Italia'
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        env = os.environ if environ is None else environ
        return cls(
            sheets_id=env.get('SHEETS_ID', ''),
            sheets_api_key=env.get('SHEETS_API_KEY', ''),
            sheets_api_base=env.get('SHEETS_API_BASE', SheetsClient.BASE_URL),
            events_range=env.get('EVENTS_RANGE', 'Eventi!A:M'),
            users_range=env.get('USERS_RANGE', 'Utenti!A:F'),
            events_sheet=env.get('EVENTS_SHEET', 'Eventi'),
            users_sheet=env.get('USERS_SHEET', 'Utenti'),
            cache_ttl_seconds=float(env.get('CACHE_TTL_SECONDS', '300')),
            timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
            geocoder_url=env.get('GEOCODER_URL', NominatimGeocoder.BASE_URL),
            geocoder_country=env.get('GEOCODER_COUNTRY', 'it'),
            geocoder_qualifier=env.get('GEOCODER_QUALIFIER', 'Italia'),
            log_level=env.get('LOG_LEVEL', 'INFO'),
        )


def build_repository(settings: Settings, creator: Optional[str] = None) -> EventRepository:
    """Wire the sheets client, geocoder and cache into a repository."""
    client = SheetsClient(
        spreadsheet_id=settings.sheets_id,
        api_key=settings.sheets_api_key,
        base_url=settings.sheets_api_base,
        timeout=settings.timeout_seconds
    )
    geocoder = NominatimGeocoder(
        base_url=settings.geocoder_url,
        country_code=settings.geocoder_country,
        country_qualifier=settings.geocoder_qualifier,
        timeout=settings.timeout_seconds
    )
    return EventRepository(
        client=client,
        cache=CacheStore(ttl_seconds=settings.cache_ttl_seconds),
        geocoder=geocoder,
        principal=StaticPrincipal(creator),
        events_range=settings.events_range,
        users_range=settings.users_range,
        events_sheet=settings.events_sheet,
        users_sheet=settings.users_sheet
    )


def event_to_dict(event: EventRecord) -> dict:
    data = asdict(event)
    data['category'] = event.category.value
    data['date'] = event.date.isoformat()
    data['created_at'] = event.created_at.isoformat() if event.created_at else None
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='event-board',
        description='Browse and contribute community events.'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    search = subparsers.add_parser('search', help='List upcoming events')
    search.add_argument('--category', help='Category code, e.g. concerto')
    search.add_argument(
        '--when', choices=['today', 'weekend', 'week', 'month'],
        help='Date window'
    )
    search.add_argument('--radius-km', type=float, help='Maximum distance')
    search.add_argument('--lat', type=float, help='Your latitude')
    search.add_argument('--lng', type=float, help='Your longitude')

    add = subparsers.add_parser('add', help='Submit a new event')
    add.add_argument('--creator', required=True, help='Your email address')
    add.add_argument('--title', required=True)
    add.add_argument('--category', required=True)
    add.add_argument('--date', required=True, help='YYYY-MM-DD')
    add.add_argument('--location', required=True)
    add.add_argument('--time')
    add.add_argument('--description')
    add.add_argument('--price')
    add.add_argument('--contact')

    return parser


async def run_search(args, settings: Settings) -> dict:
    position = None
    if args.lat is not None and args.lng is not None:
        position = Coordinates(latitude=args.lat, longitude=args.lng)

    board = EventBoard(
        build_repository(settings),
        position_provider=StaticPosition(position)
    )
    await board.search()
    board.set_category(args.category)
    board.set_date_window(args.when)
    if position is not None:
        board.locate_user()
    events = board.set_radius(args.radius_km)

    return {
        'filters': {
            'category': args.category,
            'when': args.when,
            'radius_km': args.radius_km,
        },
        'count': len(events),
        'events': [event_to_dict(event) for event in events],
    }


async def run_add(args, settings: Settings) -> dict:
    repository = build_repository(settings, creator=args.creator)
    record = await repository.add_event(EventSubmission(
        title=args.title,
        category=args.category,
        date=args.date,
        location=args.location,
        time=args.time,
        description=args.description,
        price=args.price,
        contact=args.contact
    ))
    result = {
        'message': 'Event added successfully',
        'event': event_to_dict(record),
        'location_found': record.coordinates is not None,
    }
    if record.coordinates is None:
        result['warning'] = LocationUnresolved().message
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one command and print its JSON result.

    Returns:
        Process exit code: 0 on success, 1 on a domain error
    """
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    args = build_parser().parse_args(argv)
    command = run_search if args.command == 'search' else run_add

    start_time = time.time()
    try:
        result = asyncio.run(command(args, settings))
    except EventBoardError as e:
        logger.error(
            f"Command '{args.command}' failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        body = {'message': e.message, 'error_type': type(e).__name__}
        if isinstance(e, ValidationFailed):
            body['errors'] = e.errors
        print(json.dumps(body, indent=2))
        return 1

    logger.info(
        f"Command '{args.command}' completed in "
        f"{round(time.time() - start_time, 2)} seconds"
    )
    print(json.dumps(result, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
