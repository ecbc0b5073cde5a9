"""Error types for the race service.

Invalid progress events (unknown racer, wrong phase) are not errors: they are
ignored without a signal. These exceptions cover requests that are rejected
back to the caller who sent them.
"""

from __future__ import annotations

from icekart.race.models import RaceStatus


class RaceError(Exception):
    """Base exception for race service errors."""

    pass


class RegistrationError(RaceError):
    """Raised when a racer cannot be registered."""

    pass


class InvalidRacerName(RegistrationError):
    """Raised when a registration has no usable name."""

    def __init__(self) -> None:
        super().__init__("Name is required")


class DuplicateRacer(RegistrationError):
    """Raised when a racer with the same name already exists.

    Attributes:
        name: The conflicting racer name
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Racer with this name already exists")


class InvalidPhaseTransition(RaceError):
    """Raised when the race phase table has no edge between two phases."""

    def __init__(self, current: RaceStatus, target: RaceStatus) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move race from '{current}' to '{target}'")


class MalformedMessage(RaceError):
    """Raised when an inbound envelope cannot be parsed or validated."""

    pass
