"""
Slot generation for one resource on one day.

Pure and synchronous: callers hand in working hours and the day's active
reservations, nothing is fetched from here.
"""

import logging
from datetime import date as Date
from typing import Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .intervals import MIDNIGHT, needs_special_midnight_handling
from .models import DayHours, Interval, MinuteRange, OccupiedReservation
from .time_units import MINUTES_PER_DAY, TimeContext, format_minutes, parse_wall_clock

logger = logging.getLogger(__name__)


def free_gaps(window: MinuteRange, occupied: Iterable[MinuteRange]) -> List[MinuteRange]:
    """
    Subtract occupied ranges from a window, yielding the free ranges.

    Example:
    Window: 09:00 - 17:00
    Occupied: [14:00-15:00, 10:00-11:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    gaps: List[MinuteRange] = []
    next_available = window.start

    # Sort occupied ranges by start time
    sorted_occupied = sorted(occupied, key=lambda r: r.start)
    relevant = [
        occ for occ in sorted_occupied
        if occ.end > window.start and occ.start < window.end
    ]

    for occ in relevant:
        # Free time before this occupied period
        if occ.start > next_available:
            gaps.append(
                MinuteRange(start=next_available, end=min(occ.start, window.end))
            )
        next_available = max(next_available, occ.end)

    if next_available < window.end:
        gaps.append(MinuteRange(start=next_available, end=window.end))

    return gaps


class SlotCalculator:
    """
    Calculates appointment start times for one resource on one day.

    Algorithm:
    1. Skip closed days and non-positive durations
    2. For each working interval, either step across midnight (tenants with
       midnight mode) or subtract reservations and step through the free gaps
    3. Concatenate the slots of all intervals
    4. On the current day, drop slots that already started
    """

    def __init__(self, timezone: Optional[str] = None):
        """
        Args:
            timezone: IANA timezone used to decide what "today" and "now" are.
                Defaults to the local timezone.
        """
        self.timezone = timezone

    def compute_available_slots(
        self,
        *,
        date: Date,
        total_duration: int,
        day_hours: DayHours,
        occupied_reservations: Iterable[OccupiedReservation],
        midnight_mode_enabled: bool = False,
        now: Optional[DateTime] = None
    ) -> List[str]:
        """
        Find every valid start time for a reservation of ``total_duration``.

        Args:
            date: Day being booked
            total_duration: Minutes the reservation occupies (services + buffers)
            day_hours: Effective working hours of the resource on ``date``
            occupied_reservations: Active reservations of the resource on ``date``;
                cancelled bookings must already be removed
            midnight_mode_enabled: Tenant opt-in for midnight-crossing intervals
            now: Current time; defaults to ``pendulum.now`` in the calculator timezone

        Returns:
            Slot start times as "HH:mm", in interval order
        """
        if not day_hours.enabled or total_duration <= 0:
            return []

        occupied = [self._reservation_to_range(r) for r in occupied_reservations]

        slots: List[int] = []
        for interval in day_hours.intervals:
            if needs_special_midnight_handling(interval, midnight_mode_enabled):
                slots.extend(self._midnight_slots(interval, total_duration))
            else:
                slots.extend(self._gap_slots(interval, total_duration, occupied))

        current = now if now is not None else pendulum.now(self.timezone)
        if self._is_same_day(date, current):
            minute_of_day = current.hour * 60 + current.minute
            slots = [slot for slot in slots if slot >= minute_of_day]

        logger.debug(
            "Computed %d slot(s) for %s (duration=%d, intervals=%d)",
            len(slots), date, total_duration, len(day_hours.intervals)
        )
        return [format_minutes(slot) for slot in slots]

    def _midnight_slots(self, interval: Interval, total_duration: int) -> List[int]:
        """
        Step through a midnight-crossing interval without subtracting reservations.

        Offsets past 1440 belong to the next day and are wrapped back into
        [0, 1440) when emitted.
        """
        open_minute = parse_wall_clock(interval.open)
        close_minute = parse_wall_clock(interval.close)
        slots: List[int] = []

        cursor = open_minute
        while self._fits_across_midnight(cursor, cursor + total_duration, close_minute):
            slots.append(cursor - MINUTES_PER_DAY if cursor >= MINUTES_PER_DAY else cursor)
            cursor += total_duration

        logger.debug("Midnight interval %s produced %d slot(s)", interval, len(slots))
        return slots

    @staticmethod
    def _fits_across_midnight(start: int, end: int, close_minute: int) -> bool:
        if start < MINUTES_PER_DAY:
            if end <= MINUTES_PER_DAY:
                return True
            return end - MINUTES_PER_DAY <= close_minute
        return end <= close_minute + MINUTES_PER_DAY

    def _gap_slots(
        self,
        interval: Interval,
        total_duration: int,
        occupied: List[MinuteRange]
    ) -> List[int]:
        """Subtract reservations from the interval and step through each free gap."""
        open_minute = parse_wall_clock(interval.open)
        if interval.close == MIDNIGHT:
            close_minute = MINUTES_PER_DAY
        else:
            close_minute = parse_wall_clock(interval.close)

        window = MinuteRange(start=open_minute, end=close_minute)
        slots: List[int] = []

        for gap in free_gaps(window, occupied):
            start = gap.start
            while start + total_duration <= gap.end:
                slots.append(start)
                start += total_duration

        return slots

    @staticmethod
    def _reservation_to_range(reservation: OccupiedReservation) -> MinuteRange:
        return MinuteRange(
            start=parse_wall_clock(reservation.start, TimeContext.OPEN),
            end=parse_wall_clock(reservation.end, TimeContext.CLOSE),
        )

    @staticmethod
    def _is_same_day(date: Date, current: DateTime) -> bool:
        return (date.year, date.month, date.day) == (current.year, current.month, current.day)


def compute_available_slots(
    *,
    date: Date,
    total_duration: int,
    day_hours: DayHours,
    occupied_reservations: Iterable[OccupiedReservation],
    midnight_mode_enabled: bool = False,
    now: Optional[DateTime] = None,
    timezone: Optional[str] = None
) -> List[str]:
    """Module-level shortcut for ``SlotCalculator(timezone).compute_available_slots``."""
    return SlotCalculator(timezone=timezone).compute_available_slots(
        date=date,
        total_duration=total_duration,
        day_hours=day_hours,
        occupied_reservations=occupied_reservations,
        midnight_mode_enabled=midnight_mode_enabled,
        now=now,
    )
