"""
Domain models for working hours, reservations and tenants.
"""

from dataclasses import dataclass, field, replace
from datetime import date as Date
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Weekday(str, Enum):
    """Day of the week as stored in working-hours configuration."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, day: Date) -> "Weekday":
        """Get the weekday of a date (works for pendulum dates too)."""
        return _WEEKDAYS_BY_INDEX[day.weekday()]


_WEEKDAYS_BY_INDEX: Tuple[Weekday, ...] = tuple(Weekday)


class BookingStatus(str, Enum):
    """Lifecycle state of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Whether a booking in this state occupies its time range."""
        return self is not BookingStatus.CANCELLED


@dataclass(frozen=True)
class Interval:
    """One contiguous working period, e.g. 09:00-13:00 or 22:00-02:00."""
    open: str
    close: str

    def __str__(self) -> str:
        return f"{self.open}-{self.close}"


@dataclass(frozen=True)
class DayHours:
    """
    Working hours of a single day.

    Invariant: intervals of an enabled day do not overlap. This is enforced
    when hours are saved, not when they are read.
    """
    enabled: bool = False
    intervals: Tuple[Interval, ...] = ()

    def __post_init__(self):
        # Accept lists from callers while keeping the value immutable
        object.__setattr__(self, "intervals", tuple(self.intervals))

    @property
    def is_open(self) -> bool:
        """True when the day is enabled and has at least one interval."""
        return self.enabled and bool(self.intervals)

    @classmethod
    def closed(cls) -> "DayHours":
        return cls(enabled=False, intervals=())


@dataclass(frozen=True)
class MinuteRange:
    """
    Half-open range of minute offsets within a day.

    Values may exceed 1440 when describing the part of a midnight-crossing
    interval that belongs to the next day.
    """
    start: int
    end: int

    def duration_minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "MinuteRange") -> bool:
        """Check if this range overlaps with another (touching ends do not)."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "MinuteRange") -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class OccupiedReservation:
    """An existing reservation as seen by the slot calculator."""
    date: str  # YYYY-MM-DD
    start: str
    end: str


@dataclass(frozen=True)
class Service:
    """A bookable service and the employees allowed to perform it."""
    id: str
    name: str
    duration: int
    buffer: int = 0
    employee_ids: Tuple[str, ...] = ()
    archived: bool = False

    def __post_init__(self):
        object.__setattr__(self, "employee_ids", tuple(self.employee_ids))

    @property
    def total_minutes(self) -> int:
        """Duration plus the buffer reserved after it."""
        return self.duration + self.buffer

    def allows(self, employee_id: str) -> bool:
        return employee_id in self.employee_ids


@dataclass(frozen=True)
class Employee:
    """
    A bookable resource (person or space).

    ``hours`` holds personal overrides; days missing from it follow the
    tenant's hours.
    """
    id: str
    name: str
    hours: Dict[Weekday, DayHours] = field(default_factory=dict)
    archived: bool = False

    def hours_for(self, day: Weekday) -> Optional[DayHours]:
        return self.hours.get(day)


@dataclass(frozen=True)
class Booking:
    """A reservation stored by the persistence layer."""
    id: str
    tenant_id: str
    employee_id: str
    date: str  # YYYY-MM-DD
    start: str
    end: str
    status: BookingStatus = BookingStatus.PENDING
    client_name: str = ""
    client_phone: str = ""
    service_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "status", BookingStatus(self.status))
        object.__setattr__(self, "service_ids", tuple(self.service_ids))

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def to_occupied(self) -> OccupiedReservation:
        return OccupiedReservation(date=self.date, start=self.start, end=self.end)


@dataclass(frozen=True)
class Tenant:
    """A business with its default hours, staff, services and bookings."""
    id: str
    name: str
    hours: Dict[Weekday, DayHours] = field(default_factory=dict)
    employees: Tuple[Employee, ...] = ()
    services: Tuple[Service, ...] = ()
    bookings: Tuple[Booking, ...] = ()
    midnight_mode_enabled: bool = False
    timezone: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "employees", tuple(self.employees))
        object.__setattr__(self, "services", tuple(self.services))
        object.__setattr__(self, "bookings", tuple(self.bookings))

    def day_hours(self, day: Weekday) -> DayHours:
        """Tenant default hours for a day; unknown days are closed."""
        return self.hours.get(day, DayHours.closed())

    def active_employees(self) -> List[Employee]:
        return [employee for employee in self.employees if not employee.archived]

    def find_employee(self, employee_id: str) -> Optional[Employee]:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        return None

    def find_service(self, service_id: str) -> Optional[Service]:
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def bookings_for(self, employee_id: str, date: str) -> List[Booking]:
        """Bookings of one employee on one day, whatever their status."""
        return [
            booking for booking in self.bookings
            if booking.employee_id == employee_id and booking.date == date
        ]

    def without_cancelled_bookings(self) -> "Tenant":
        """Copy of this tenant keeping only bookings that occupy time."""
        return replace(
            self,
            bookings=tuple(booking for booking in self.bookings if booking.is_active)
        )
