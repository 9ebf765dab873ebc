"""
Conversion between "HH:mm" wall-clock strings and minutes since midnight.

Midnight has two meanings here: ``0`` is the start of the day and ``1440`` the
(exclusive) end of the day. Both are written ``"00:00"``, so parsing takes a
context telling which boundary the caller means.
"""

import math
import re
from enum import Enum
from typing import Optional, Union

from .exceptions import (
    InvalidFormatError,
    InvalidInputError,
    NonFiniteError,
    OutOfRangeError,
)

MINUTES_PER_DAY = 1440

_WALL_CLOCK_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}")
_SECONDS_SUFFIX_PATTERN = re.compile(r"^([0-9]{2}:[0-9]{2}):[0-9]{2}$")


class TimeContext(str, Enum):
    """Which boundary of an interval a wall-clock value describes."""
    OPEN = "open"
    CLOSE = "close"


def parse_wall_clock(
    time: str,
    context: Optional[Union[TimeContext, str]] = None
) -> int:
    """
    Convert an "HH:mm" string to minutes since midnight.

    Args:
        time: Wall-clock value, exactly two digits, a colon and two digits
        context: ``TimeContext.CLOSE`` turns "00:00" into 1440 (end of day).
            Without a context the value is read as an opening boundary.

    Returns:
        Minute offset in [0, 1440]

    Raises:
        InvalidInputError: If ``time`` is not a non-empty string
        InvalidFormatError: If ``time`` is not HH:mm, or uses hour 24 with minutes
        OutOfRangeError: If hours exceed 24 or minutes exceed 59
    """
    if not isinstance(time, str) or not time:
        raise InvalidInputError(
            f"Time must be a non-empty string in HH:mm format, got {time!r}"
        )

    if not _WALL_CLOCK_PATTERN.fullmatch(time):
        raise InvalidFormatError(
            f"Invalid time format {time!r}: expected HH:mm with leading zeros (e.g. '09:30')"
        )

    hours = int(time[:2])
    minutes = int(time[3:])

    if hours > 24 or minutes > 59:
        raise OutOfRangeError(
            f"Time {time!r} out of range: hours must be 00-24 and minutes 00-59"
        )

    if hours == 24 and minutes != 0:
        raise InvalidFormatError(
            f"Invalid time {time!r}: hour 24 is only valid as '24:00'"
        )

    total = hours * 60 + minutes
    boundary = _resolve_context(context)

    if total == 0 and boundary is TimeContext.CLOSE:
        return MINUTES_PER_DAY

    return total


def _resolve_context(context: Optional[Union[TimeContext, str]]) -> TimeContext:
    if context is None:
        return TimeContext.OPEN
    try:
        return TimeContext(context)
    except ValueError as exc:
        raise InvalidInputError(
            f"Context must be 'open' or 'close', got {context!r}"
        ) from exc


def format_minutes(minutes: Union[int, float]) -> str:
    """
    Format a minute offset as "HH:mm".

    1440 is written as "00:00"; there is no "24:00" output.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        raise InvalidInputError(
            f"Minutes must be a number in [0, {MINUTES_PER_DAY}], got {minutes!r}"
        )

    if isinstance(minutes, float):
        if not math.isfinite(minutes):
            raise NonFiniteError(f"Minutes must be a finite number, got {minutes!r}")

    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise OutOfRangeError(
            f"Minutes must be between 0 and {MINUTES_PER_DAY}, got {minutes!r}"
        )

    if minutes != int(minutes):
        raise InvalidInputError(f"Minutes must be a whole number, got {minutes!r}")

    value = int(minutes) % MINUTES_PER_DAY
    return f"{value // 60:02d}:{value % 60:02d}"


def normalize_time_string(time: str) -> str:
    """Strip a trailing ":ss" from a stored time ("10:00:00" -> "10:00")."""
    match = _SECONDS_SUFFIX_PATTERN.match(time)
    if match:
        return match.group(1)
    return time
