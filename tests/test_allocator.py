"""Tests for budget allocation and the hh:mm:ss duration helpers."""

import pytest
from datetime import timedelta

from treetimers.timer.allocator import clamp_duration, is_startable, unallocated_time
from treetimers.timer.durations import (
    format_duration, from_hms, normalize_hms, parse_duration,
)


class TestClamp:

    def test_within_bounds_unchanged(self):
        assert clamp_duration(timedelta(minutes=5), timedelta(minutes=10)) == timedelta(minutes=5)

    def test_capped_to_maximum(self):
        assert clamp_duration(timedelta(hours=2), timedelta(minutes=10)) == timedelta(minutes=10)

    def test_negative_floored(self):
        assert clamp_duration(timedelta(seconds=-1)) == timedelta(0)

    def test_no_maximum(self):
        assert clamp_duration(timedelta(days=3)) == timedelta(days=3)

    def test_negative_maximum_means_nothing_left(self):
        assert clamp_duration(timedelta(minutes=1), timedelta(seconds=-5)) == timedelta(0)


class TestStartable:

    def test_unallocated(self):
        assert unallocated_time(timedelta(hours=1), timedelta(minutes=20)) == timedelta(minutes=40)

    def test_startable_with_spare_time(self):
        assert is_startable(timedelta(hours=1), timedelta(minutes=59))

    def test_not_startable_when_fully_split(self):
        assert not is_startable(timedelta(hours=1), timedelta(hours=1))

    def test_zero_budget_not_startable(self):
        assert not is_startable(timedelta(0), timedelta(0))


class TestNormalize:

    @pytest.mark.parametrize("given, expected", [
        ((0, 0, 75), (0, 1, 15)),
        ((0, 61, 0), (1, 1, 0)),
        ((1, 0, -1), (0, 59, 59)),
        ((0, 0, -5), (0, 0, 0)),
        ((-1, 30, 0), (0, 0, 0)),
        ((2, 3, 4), (2, 3, 4)),
    ])
    def test_carry_and_borrow(self, given, expected):
        assert normalize_hms(*given) == expected

    def test_from_hms(self):
        assert from_hms(minutes=90) == timedelta(hours=1, minutes=30)


class TestParse:

    @pytest.mark.parametrize("text, expected", [
        ("1:00:00", timedelta(hours=1)),
        ("20:00", timedelta(minutes=20)),
        ("90", timedelta(seconds=90)),
        ("0:90", timedelta(minutes=1, seconds=30)),
        (" 00:00:05 ", timedelta(seconds=5)),
    ])
    def test_accepted_forms(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "1:2:3:4", "-5", "1h"])
    def test_rejected_forms(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestFormat:

    def test_hms(self):
        assert format_duration(timedelta(hours=1, minutes=2, seconds=3)) == "01:02:03"

    def test_truncates_fractions(self):
        assert format_duration(timedelta(seconds=59, milliseconds=999)) == "00:00:59"

    def test_long_durations(self):
        assert format_duration(timedelta(hours=100)) == "100:00:00"

    def test_negative(self):
        assert format_duration(timedelta(seconds=-65)) == "-00:01:05"
