"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    Booking,
    BookingStatus,
    DayHours,
    Employee,
    Interval,
    MinuteRange,
    OccupiedReservation,
    Service,
    Tenant,
    Weekday,
)
from .slot_calculator import SlotCalculator, compute_available_slots, free_gaps

__all__ = [
    "Booking",
    "BookingStatus",
    "DayHours",
    "Employee",
    "Interval",
    "MinuteRange",
    "OccupiedReservation",
    "Service",
    "Tenant",
    "Weekday",
    "SlotCalculator",
    "compute_available_slots",
    "free_gaps",
]
