"""
Errors raised by the availability engine and the write paths around it.

Services raise these; main.py turns them into JSON responses.
"""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apartment_booking.services.occupancy import Occupancy


class AvailabilityError(Exception):
    """Base class for availability errors."""


class InvalidRangeError(AvailabilityError, ValueError):
    """A date bound failed to parse, or start >= end."""


class ConflictError(AvailabilityError):
    """The candidate interval overlaps an existing occupying record."""

    def __init__(self, conflict: "Occupancy") -> None:
        self.conflict = conflict
        super().__init__(
            f"Dates overlap with {conflict.kind.value} #{conflict.record_id} "
            f"({conflict.interval.start.isoformat()} - {conflict.interval.end.isoformat()})"
        )


class NotFoundError(LookupError):
    """Requested record does not exist."""


class PermissionDeniedError(PermissionError):
    """Authenticated user may not act on this record."""
