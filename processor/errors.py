"""Domain errors surfaced to callers of the event board."""
from typing import Iterable, List


class EventBoardError(Exception):
    """Base error; ``message`` is safe to show to a member."""

    message = 'Something went wrong. Please try again later.'

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DataSourceUnavailable(EventBoardError):
    """The events sheet could not be read or written."""

    message = 'Could not load data. Please try again later.'


class ValidationFailed(EventBoardError):
    """A submitted event broke one or more field rules."""

    message = 'The submitted data is not valid.'

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__('\n'.join(self.errors) or None)


class LocationUnresolved(EventBoardError):
    """
    The address of an event could not be located.

    Not raised by ``add_event``, which saves the event without coordinates;
    its message is reported to the member as a warning.
    """

    message = 'Could not find the specified location.'


class AuthenticationRequired(EventBoardError):
    """An action needs a signed-in member."""

    message = 'You must sign in to add events.'


class PositionUnavailable(EventBoardError):
    """The device position could not be obtained."""

    message = 'Geolocation is not available.'


class DuplicateEventId(EventBoardError):
    """A freshly generated id is already taken."""

    message = 'Could not save the event. Please try again.'
