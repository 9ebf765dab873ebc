"""
Effective-hours resolution and resource lookup for a concrete slot.
"""

import logging
from datetime import date as Date
from typing import Iterable, List, Optional, Sequence

import pendulum

from .intervals import split_at_midnight
from .models import Booking, DayHours, Employee, MinuteRange, Service, Tenant, Weekday
from .time_units import TimeContext, parse_wall_clock

logger = logging.getLogger(__name__)


def total_duration(services: Iterable[Service]) -> int:
    """Minutes a booking of these services occupies, buffers included."""
    return sum(service.total_minutes for service in services)


def resolve_effective_hours(
    resource: Employee,
    tenant_day_hours: DayHours,
    day_of_week: Weekday
) -> Optional[DayHours]:
    """
    Pick the hours that govern a resource on a given weekday.

    An enabled personal override wins; otherwise the tenant hours apply.

    Returns:
        The effective DayHours, or None when the resource does not work that day
    """
    override = resource.hours_for(day_of_week)
    chosen = override if override is not None and override.enabled else tenant_day_hours

    if not chosen.is_open:
        return None
    return chosen


def qualified_resources(tenant: Tenant, services: Sequence[Service]) -> List[Employee]:
    """Active employees allowed to perform every one of the services."""
    return [
        employee for employee in tenant.active_employees()
        if all(service.allows(employee.id) for service in services)
    ]


def is_resource_free(
    resource: Employee,
    tenant: Tenant,
    date: Date,
    slot: str,
    duration: int
) -> bool:
    """
    Check one resource for a concrete slot.

    The slot must fit inside one working interval (plain numeric containment)
    and must not overlap any of the resource's bookings that day. Booking
    status is not looked at.
    """
    day = Weekday.from_date(date)
    hours = resolve_effective_hours(resource, tenant.day_hours(day), day)
    if hours is None:
        return False

    start = parse_wall_clock(slot, TimeContext.OPEN)
    requested = MinuteRange(start=start, end=start + duration)

    within_hours = any(
        MinuteRange(
            start=parse_wall_clock(interval.open, TimeContext.OPEN),
            end=parse_wall_clock(interval.close, TimeContext.CLOSE),
        ).contains(requested)
        for interval in hours.intervals
    )
    if not within_hours:
        return False

    date_str = date.strftime("%Y-%m-%d")
    for booking in tenant.bookings_for(resource.id, date_str):
        booked = MinuteRange(
            start=parse_wall_clock(booking.start, TimeContext.OPEN),
            end=parse_wall_clock(booking.end, TimeContext.CLOSE),
        )
        if requested.overlaps(booked):
            return False

    return True


def find_available_resource(
    date: Date,
    slot: str,
    total_duration: int,
    services: Sequence[Service],
    tenant: Tenant
) -> Optional[Employee]:
    """
    Find the first qualified resource free for ``slot`` on ``date``.

    Callers must pass a tenant whose cancelled bookings were already removed
    (see ``Tenant.without_cancelled_bookings``); every booking given here
    blocks its time range.

    Returns:
        The first free resource in listed order, or None
    """
    for resource in qualified_resources(tenant, services):
        if is_resource_free(resource, tenant, date, slot, total_duration):
            logger.debug("Resource %s is free at %s %s", resource.id, date, slot)
            return resource
    return None


def find_orphaned_bookings(
    bookings: Iterable[Booking],
    weekday: Weekday,
    day_hours: DayHours,
    after: Date
) -> List[Booking]:
    """
    Active bookings from ``after`` onwards that proposed hours would no longer cover.

    Only bookings falling on ``weekday`` are checked. A closed day orphans
    every such booking. Midnight-crossing intervals cover both of their
    same-day ranges. A booking whose end lies before its start (stored
    across midnight) is always reported.
    """
    windows: List[MinuteRange] = []
    if day_hours.enabled:
        for interval in day_hours.intervals:
            windows.extend(split_at_midnight(interval))

    orphaned: List[Booking] = []
    for booking in bookings:
        if not booking.is_active:
            continue
        booking_date = pendulum.from_format(booking.date, "YYYY-MM-DD").date()
        if booking_date < after or Weekday.from_date(booking_date) is not weekday:
            continue

        booked = MinuteRange(
            start=parse_wall_clock(booking.start, TimeContext.OPEN),
            end=parse_wall_clock(booking.end, TimeContext.CLOSE),
        )
        # A stored booking running past midnight fits no same-day window
        if booked.end < booked.start or not any(window.contains(booked) for window in windows):
            orphaned.append(booking)

    return orphaned
