"""
Domain-specific exception hierarchy for the booking availability engine.
"""

from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from .models import Booking


class BookingSlotsError(Exception):
    """Base class for all application-level errors."""


class TimeValidationError(BookingSlotsError, ValueError):
    """Raised when a wall-clock time or minute offset is malformed."""


class InvalidInputError(TimeValidationError):
    """Raised when a value has the wrong type or is missing."""


class InvalidFormatError(TimeValidationError):
    """Raised when a time string is not exactly HH:mm (or misuses hour 24)."""


class OutOfRangeError(TimeValidationError):
    """Raised when hours, minutes or a minute offset fall outside their bounds."""


class NonFiniteError(TimeValidationError):
    """Raised when NaN or infinity is passed where a finite number is required."""


class HoursValidationError(BookingSlotsError, ValueError):
    """Raised when a working-hours configuration cannot be persisted."""


class HoursConflictError(BookingSlotsError):
    """Raised when new working hours would leave existing bookings outside them."""

    def __init__(self, message: str, bookings: Optional[Iterable["Booking"]] = None):
        super().__init__(message)
        self.bookings: List["Booking"] = list(bookings or [])


class SlotUnavailableError(BookingSlotsError):
    """Raised when no qualified resource is free for a slot at confirmation time."""


class NotFoundError(BookingSlotsError, LookupError):
    """Raised when a tenant, employee, service or booking does not exist."""
