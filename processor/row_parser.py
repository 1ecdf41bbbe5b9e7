"""Row parser for turning sheet rows into event and user records."""
import logging
import math
from datetime import date, datetime
from typing import List, Optional, Sequence

from processor.models import Category, Coordinates, EventRecord, UserRecord

logger = logging.getLogger(__name__)

# Column positions in the events sheet (A:M)
ID, TITLE, CATEGORY, DATE, TIME, LOCATION, LATITUDE, LONGITUDE, \
    DESCRIPTION, PRICE, CONTACT, CREATOR, CREATED_AT = range(13)
EVENT_COLUMN_COUNT = 13

# Column positions in the users sheet (A:F)
EMAIL, NAME, PHOTO, FIRST_LOGIN, LAST_LOGIN, ACTIVE = range(6)
USER_COLUMN_COUNT = 6

DATE_FORMATS = [
    '%Y-%m-%d',      # ISO 8601
    '%d/%m/%Y',      # Sheets with an Italian locale
    '%d-%m-%Y',
    '%d.%m.%Y',
    '%Y/%m/%d',
]


def parse_date(value) -> Optional[date]:
    """
    Parse a sheet cell into a calendar date.

    Args:
        value: Cell content in one of DATE_FORMATS or an ISO datetime

    Returns:
        date object or None if parsing fails
    """
    text = _cell_text(value)
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO datetimes, e.g. what new rows carry in CreatedAt
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        return None


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp cell; None when absent or malformed."""
    text = _cell_text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None


def parse_coordinates(latitude, longitude) -> Optional[Coordinates]:
    """
    Build a coordinate pair from two cells.

    Both cells must hold finite numbers within the valid degree ranges,
    otherwise the pair is treated as absent.
    """
    try:
        lat = float(_cell_text(latitude))
        lng = float(_cell_text(longitude))
    except (TypeError, ValueError):
        return None

    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinates(latitude=lat, longitude=lng)


class EventRowParser:
    """Parser for rows of the events sheet."""

    def parse_rows(self, rows: Sequence[Sequence]) -> List[EventRecord]:
        """
        Parse data rows (header already removed) into event records.

        Malformed rows are dropped without affecting their siblings.

        Args:
            rows: Row-major cell values

        Returns:
            List of EventRecord objects in sheet order
        """
        records = []

        for index, row in enumerate(rows):
            try:
                record = self.parse_row(row)
            except Exception as e:
                logger.warning(f"Failed to parse event row {index + 2}: {e}")
                continue
            if record:
                records.append(record)

        logger.info(
            f"Parsed {len(records)} valid events out of {len(rows)} rows"
        )
        return records

    def parse_row(self, row: Sequence) -> Optional[EventRecord]:
        """
        Parse a single events sheet row.

        Args:
            row: Cell values in the 13-column layout

        Returns:
            EventRecord or None if the row has no title or no usable date
        """
        cells = _pad(row, EVENT_COLUMN_COUNT)

        title = _cell_text(cells[TITLE])
        if not title:
            logger.warning("Event row missing required field: title")
            return None

        event_date = parse_date(cells[DATE])
        if event_date is None:
            logger.warning(
                f"Invalid date for event '{title}': {cells[DATE]!r}"
            )
            return None

        category = Category.from_code(cells[CATEGORY])
        if category is None:
            category = Category.OTHER

        return EventRecord(
            id=_cell_text(cells[ID]),
            title=title,
            category=category,
            date=event_date,
            time=_cell_text(cells[TIME]) or None,
            location=_cell_text(cells[LOCATION]),
            coordinates=parse_coordinates(cells[LATITUDE], cells[LONGITUDE]),
            description=_cell_text(cells[DESCRIPTION]) or None,
            price=_cell_text(cells[PRICE]) or None,
            contact=_cell_text(cells[CONTACT]) or None,
            creator=_cell_text(cells[CREATOR]),
            created_at=parse_timestamp(cells[CREATED_AT]),
        )


def parse_user_row(row: Sequence) -> Optional[UserRecord]:
    """Parse a users sheet row; rows without an email are skipped."""
    cells = _pad(row, USER_COLUMN_COUNT)
    email = _cell_text(cells[EMAIL])
    if not email:
        return None

    return UserRecord(
        email=email,
        name=_cell_text(cells[NAME]),
        photo_url=_cell_text(cells[PHOTO]),
        first_login=_cell_text(cells[FIRST_LOGIN]),
        last_login=_cell_text(cells[LAST_LOGIN]),
        active=_cell_text(cells[ACTIVE]).lower() == 'true',
    )


def event_to_row(record: EventRecord) -> list:
    """Serialize an event record in the 13-column sheet order."""
    coordinates = record.coordinates
    return [
        record.id,
        record.title,
        record.category.value,
        record.date.isoformat(),
        record.time or '',
        record.location,
        coordinates.latitude if coordinates else '',
        coordinates.longitude if coordinates else '',
        record.description or '',
        record.price or '',
        record.contact or '',
        record.creator,
        record.created_at.isoformat() if record.created_at else '',
    ]


def user_to_row(user: UserRecord) -> list:
    """Serialize a user record in the 6-column sheet order."""
    return [
        user.email,
        user.name,
        user.photo_url,
        user.first_login,
        user.last_login,
        'true' if user.active else 'false',
    ]


def _pad(row: Sequence, width: int) -> list:
    # Sheets omits trailing empty cells
    cells = list(row or [])
    return cells + [''] * (width - len(cells))


def _cell_text(value) -> str:
    if value is None:
        return ''
    return str(value).strip()
