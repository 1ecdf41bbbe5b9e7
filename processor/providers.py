"""Interfaces to the signed-in member and the device position."""
from typing import Optional, Protocol

from processor.errors import AuthenticationRequired, PositionUnavailable
from processor.models import Coordinates


class PrincipalProvider(Protocol):
    def current_email(self) -> str:
        """Email of the signed-in member; raises AuthenticationRequired."""


class PositionProvider(Protocol):
    def current_position(self) -> Coordinates:
        """Device position; raises PositionUnavailable."""


class StaticPrincipal:
    """Principal fixed at construction, e.g. from a command line flag."""

    def __init__(self, email: Optional[str]):
        self.email = email

    def current_email(self) -> str:
        if not self.email:
            raise AuthenticationRequired()
        return self.email


class StaticPosition:
    """Position fixed at construction."""

    def __init__(self, position: Optional[Coordinates]):
        self.position = position

    def current_position(self) -> Coordinates:
        if self.position is None:
            raise PositionUnavailable()
        return self.position
