"""Field rules for events submitted by members."""
import logging
from datetime import date
from typing import List

from processor.errors import ValidationFailed
from processor.models import Category, EventSubmission
from processor.row_parser import parse_date

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 3
MAX_TITLE_LENGTH = 100
MIN_LOCATION_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 500


def collect_errors(submission: EventSubmission, today: date) -> List[str]:
    """
    Check every field rule of a submission.

    Args:
        submission: Event fields as entered
        today: Current local date; events before it are rejected

    Returns:
        Messages for all violated rules, empty when the submission is valid
    """
    errors = []
    title = (submission.title or '').strip()
    location = (submission.location or '').strip()

    if not title:
        errors.append('Title is required')
    elif len(title) < MIN_TITLE_LENGTH:
        errors.append(
            f'Title must be at least {MIN_TITLE_LENGTH} characters'
        )
    elif len(title) > MAX_TITLE_LENGTH:
        errors.append(
            f'Title cannot exceed {MAX_TITLE_LENGTH} characters'
        )

    if not submission.category:
        errors.append('Category is required')
    elif Category.from_code(submission.category) is None:
        errors.append('Category is not valid')

    if not submission.date:
        errors.append('Date is required')
    else:
        event_date = parse_date(submission.date)
        if event_date is None:
            errors.append('Date is not valid')
        elif event_date < today:
            errors.append('Date must be today or in the future')

    if not location:
        errors.append('Location is required')
    elif len(location) < MIN_LOCATION_LENGTH:
        errors.append(
            f'Location must be at least {MIN_LOCATION_LENGTH} characters'
        )

    if submission.description and \
            len(submission.description) > MAX_DESCRIPTION_LENGTH:
        errors.append(
            f'Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters'
        )

    return errors


def validate_submission(submission: EventSubmission, today: date) -> None:
    """Raise ValidationFailed listing every violated rule."""
    errors = collect_errors(submission, today)
    if errors:
        logger.warning(f"Rejected event submission: {'; '.join(errors)}")
        raise ValidationFailed(errors)
