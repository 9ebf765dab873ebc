"""
Tests for midnight detection and interval overlap checks.
"""

import pytest

from bookingslots.domain.exceptions import HoursValidationError
from bookingslots.domain.intervals import (
    crosses_midnight,
    intervals_are_valid,
    needs_special_midnight_handling,
    split_at_midnight,
    validate_week_hours,
)
from bookingslots.domain.models import DayHours, Interval, MinuteRange, Weekday


def iv(open_time: str, close_time: str) -> Interval:
    return Interval(open=open_time, close=close_time)


class TestCrossesMidnight:
    """Tests for crosses_midnight and needs_special_midnight_handling."""

    def test_detects_wrapping_interval(self):
        """Test an interval that ends on the next day."""
        assert crosses_midnight(iv("22:00", "02:00"))

    def test_close_at_midnight_does_not_cross(self):
        """Test that 00:00 closing runs to end of day instead of wrapping."""
        assert not crosses_midnight(iv("18:00", "00:00"))

    def test_regular_intervals(self):
        """Test same-day intervals."""
        assert not crosses_midnight(iv("09:00", "17:00"))
        assert not crosses_midnight(iv("00:00", "06:00"))

    def test_special_handling_requires_opt_in(self):
        """Test that tenants without midnight mode never get the special path."""
        assert not needs_special_midnight_handling(iv("22:00", "02:00"), False)
        assert needs_special_midnight_handling(iv("22:00", "02:00"), True)

    def test_special_handling_skips_midnight_close(self):
        """Test that an interval closing at 00:00 keeps the regular path."""
        assert not needs_special_midnight_handling(iv("18:00", "00:00"), True)
        assert not needs_special_midnight_handling(iv("09:00", "17:00"), True)


class TestSplitAtMidnight:
    """Tests for split_at_midnight."""

    def test_crossing_interval_becomes_two_ranges(self):
        """Test the split of 22:00-02:00."""
        assert split_at_midnight(iv("22:00", "02:00")) == [
            MinuteRange(start=1320, end=1440),
            MinuteRange(start=0, end=120),
        ]

    def test_midnight_close_is_end_of_day(self):
        """Test that 18:00-00:00 stays one range ending at 1440."""
        assert split_at_midnight(iv("18:00", "00:00")) == [MinuteRange(start=1080, end=1440)]

    def test_regular_interval(self):
        """Test a same-day interval."""
        assert split_at_midnight(iv("09:00", "17:00")) == [MinuteRange(start=540, end=1020)]


class TestIntervalsAreValid:
    """Tests for intervals_are_valid."""

    def test_zero_or_one_interval_is_valid(self):
        """Test the vacuous cases."""
        assert intervals_are_valid([])
        assert intervals_are_valid([iv("09:00", "17:00")])

    def test_adjacent_intervals_are_valid(self):
        """Test that touching intervals do not overlap."""
        assert intervals_are_valid([iv("09:00", "12:00"), iv("12:00", "14:00")])
        assert intervals_are_valid([iv("12:00", "18:00"), iv("18:00", "00:00")])

    def test_overlapping_intervals_are_rejected(self):
        """Test a classic overlap."""
        assert not intervals_are_valid([iv("09:00", "13:00"), iv("12:00", "15:00")])

    def test_midnight_close_overlap(self):
        """Test that a 00:00 close is compared as end of day."""
        assert not intervals_are_valid([iv("18:00", "00:00"), iv("20:00", "22:00")])

    def test_two_crossing_intervals_always_conflict(self):
        """Test that two wrapping intervals on the same day are never valid."""
        assert not intervals_are_valid([iv("22:00", "01:00"), iv("23:30", "00:30")])
        assert not intervals_are_valid([iv("23:00", "01:00"), iv("20:00", "00:30")])

    def test_one_crossing_interval(self):
        """Test the branch where exactly one interval wraps."""
        night = iv("22:00", "02:00")

        assert intervals_are_valid([night, iv("09:00", "17:00")])
        assert intervals_are_valid([night, iv("02:00", "08:00")])
        assert not intervals_are_valid([night, iv("01:00", "05:00")])
        assert not intervals_are_valid([night, iv("23:00", "23:30")])

    @pytest.mark.parametrize(
        "first,second",
        [
            (iv("09:00", "13:00"), iv("12:00", "15:00")),
            (iv("09:00", "12:00"), iv("12:00", "14:00")),
            (iv("22:00", "02:00"), iv("01:00", "05:00")),
            (iv("22:00", "02:00"), iv("09:00", "17:00")),
            (iv("22:00", "01:00"), iv("23:30", "00:30")),
            (iv("18:00", "00:00"), iv("08:00", "10:00")),
        ],
    )
    def test_symmetry(self, first, second):
        """Test that the order of intervals does not change the verdict."""
        assert intervals_are_valid([first, second]) == intervals_are_valid([second, first])

    def test_any_overlapping_pair_fails_the_set(self):
        """Test a split shift with one bad interval."""
        intervals = [iv("08:00", "10:00"), iv("11:00", "13:00"), iv("12:30", "14:00")]
        assert not intervals_are_valid(intervals)


class TestValidateWeekHours:
    """Tests for validate_week_hours."""

    def test_valid_week_passes(self):
        """Test a realistic configuration."""
        hours = {
            Weekday.MONDAY: DayHours(True, [iv("09:00", "13:00"), iv("14:00", "18:00")]),
            Weekday.FRIDAY: DayHours(True, [iv("20:00", "02:00")]),
            Weekday.SUNDAY: DayHours.closed(),
        }

        validate_week_hours(hours)

    def test_equal_open_and_close_rejected(self):
        """Test that a zero-length interval is rejected with its weekday."""
        hours = {Weekday.TUESDAY: DayHours(True, [iv("10:00", "10:00")])}

        with pytest.raises(HoursValidationError, match="tuesday"):
            validate_week_hours(hours)

    def test_overlap_rejected(self):
        """Test that overlapping intervals are rejected."""
        hours = {Weekday.MONDAY: DayHours(True, [iv("09:00", "13:00"), iv("12:00", "15:00")])}

        with pytest.raises(HoursValidationError, match="Overlapping"):
            validate_week_hours(hours)

    def test_incomplete_or_malformed_interval_rejected(self):
        """Test missing and malformed times."""
        with pytest.raises(HoursValidationError, match="filled in"):
            validate_week_hours({Weekday.MONDAY: DayHours(True, [iv("09:00", "")])})

        with pytest.raises(HoursValidationError, match="monday"):
            validate_week_hours({Weekday.MONDAY: DayHours(True, [iv("9:00", "17:00")])})

    def test_disabled_days_are_not_checked(self):
        """Test that a closed day may keep stale intervals."""
        hours = {Weekday.MONDAY: DayHours(False, [iv("09:00", "13:00"), iv("12:00", "15:00")])}

        validate_week_hours(hours)
