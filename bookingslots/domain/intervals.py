"""
Midnight-crossing detection and overlap checks for working-hour intervals.
"""

from itertools import combinations
from typing import Dict, List, Sequence

from .exceptions import HoursValidationError, TimeValidationError
from .models import DayHours, Interval, MinuteRange, Weekday
from .time_units import MINUTES_PER_DAY, TimeContext, parse_wall_clock

MIDNIGHT = "00:00"


def crosses_midnight(interval: Interval) -> bool:
    """
    True when the interval wraps into the next day (e.g. 22:00-02:00).

    An interval closing exactly at "00:00" runs to the end of the day and
    does not cross.
    """
    if interval.close == MIDNIGHT:
        return False
    return parse_wall_clock(interval.open) > parse_wall_clock(interval.close)


def needs_special_midnight_handling(interval: Interval, midnight_mode_enabled: bool) -> bool:
    """
    Decide whether slot generation must step across midnight for this interval.

    Tenants that have not enabled midnight mode always get the regular path.
    """
    if not midnight_mode_enabled or interval.close == MIDNIGHT:
        return False
    return crosses_midnight(interval)


def split_at_midnight(interval: Interval) -> List[MinuteRange]:
    """
    Split an interval into same-day minute ranges.

    22:00-02:00 becomes [1320, 1440) and [0, 120); 09:00-17:00 stays a single
    range. A "00:00" close is read as the end of the day.
    """
    open_minute = parse_wall_clock(interval.open, TimeContext.OPEN)
    if crosses_midnight(interval):
        close_minute = parse_wall_clock(interval.close)
        return [
            MinuteRange(start=open_minute, end=MINUTES_PER_DAY),
            MinuteRange(start=0, end=close_minute),
        ]
    close_minute = parse_wall_clock(interval.close, TimeContext.CLOSE)
    return [MinuteRange(start=open_minute, end=close_minute)]


def intervals_are_valid(intervals: Sequence[Interval]) -> bool:
    """
    Check that no two intervals of a day overlap.

    Adjacent intervals (09:00-12:00 and 12:00-14:00) are valid. Two
    midnight-crossing intervals on the same day always conflict.
    """
    if len(intervals) < 2:
        return True

    for first, second in combinations(intervals, 2):
        if _pair_overlaps(first, second):
            return False
    return True


def _pair_overlaps(first: Interval, second: Interval) -> bool:
    first_crosses = crosses_midnight(first)
    second_crosses = crosses_midnight(second)

    if first_crosses and second_crosses:
        return True

    if first_crosses or second_crosses:
        crossing, other = (first, second) if first_crosses else (second, first)
        # The crossing interval covers [open, 1440) and [0, close)
        other_open = parse_wall_clock(other.open)
        return (
            other_open < parse_wall_clock(crossing.close)
            or other_open >= parse_wall_clock(crossing.open)
        )

    a_start = parse_wall_clock(first.open, TimeContext.OPEN)
    a_end = parse_wall_clock(first.close, TimeContext.CLOSE)
    b_start = parse_wall_clock(second.open, TimeContext.OPEN)
    b_end = parse_wall_clock(second.close, TimeContext.CLOSE)
    return not (a_end <= b_start or b_end <= a_start)


def validate_week_hours(hours: Dict[Weekday, DayHours]) -> None:
    """
    Validate a weekly hours configuration before it is saved.

    Disabled days are not checked.

    Raises:
        HoursValidationError: naming the first offending weekday
    """
    for day in Weekday:
        day_hours = hours.get(day)
        if day_hours is None or not day_hours.enabled:
            continue

        for interval in day_hours.intervals:
            if not interval.open or not interval.close:
                raise HoursValidationError(
                    f"All time fields must be filled in for {day.value}."
                )
            try:
                parse_wall_clock(interval.open)
                parse_wall_clock(interval.close)
            except TimeValidationError as exc:
                raise HoursValidationError(f"Invalid interval on {day.value}: {exc}") from exc
            if interval.open == interval.close:
                raise HoursValidationError(
                    f"Opening and closing times cannot be equal on {day.value} ({interval})."
                )

        if not intervals_are_valid(day_hours.intervals):
            raise HoursValidationError(f"Overlapping time intervals found on {day.value}.")
