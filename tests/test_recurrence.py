"""Tests for choreboard.core.recurrence — expanding recurring assignments."""

from datetime import date

import pytest

from choreboard.core.recurrence import (
    clamp_occurrences,
    expand,
    occurrence_label,
    pattern_for_frequency,
)
from choreboard.data.models import RecurrencePattern


class TestExpand:
    def test_single_occurrence_is_start(self):
        assert expand(date(2024, 6, 3), RecurrencePattern("daily", 1)) == [date(2024, 6, 3)]

    def test_daily(self):
        dates = expand(date(2024, 2, 27), RecurrencePattern("daily", 4))
        assert dates == [
            date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1),
        ]

    def test_weekly(self):
        dates = expand(date(2024, 6, 3), RecurrencePattern("weekly", 4))
        assert dates == [
            date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24),
        ]

    def test_weekly_crosses_year(self):
        dates = expand(date(2024, 12, 25), RecurrencePattern("weekly", 2))
        assert dates[-1] == date(2025, 1, 1)

    def test_monthly_clamps_to_short_months(self):
        dates = expand(date(2024, 1, 31), RecurrencePattern("monthly", 3))
        assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_monthly_keeps_anchor_day(self):
        dates = expand(date(2023, 1, 31), RecurrencePattern("monthly", 4))
        assert dates == [
            date(2023, 1, 31), date(2023, 2, 28), date(2023, 3, 31), date(2023, 4, 30),
        ]

    def test_strictly_increasing(self):
        for kind in ("daily", "weekly", "monthly"):
            dates = expand(date(2024, 1, 31), RecurrencePattern(kind, 12))
            assert len(dates) == 12
            assert all(a < b for a, b in zip(dates, dates[1:]))


class TestOccurrenceLabel:
    def test_first(self):
        assert occurrence_label("Take out trash", 0, 4) == "Take out trash (1/4)"

    def test_last(self):
        assert occurrence_label("Take out trash", 3, 4) == "Take out trash (4/4)"


class TestPatternForFrequency:
    def test_one_time_has_no_pattern(self):
        assert pattern_for_frequency("one-time", 3) is None
        assert pattern_for_frequency("", 3) is None

    def test_weekly(self):
        assert pattern_for_frequency("weekly", 4) == RecurrencePattern("weekly", 4)

    def test_unknown_raises(self):
        with pytest.raises(ValueError):
            pattern_for_frequency("yearly", 2)


class TestClampOccurrences:
    def test_below_one(self):
        assert clamp_occurrences(0, 52) == 1
        assert clamp_occurrences(-3, 52) == 1

    def test_above_max(self):
        assert clamp_occurrences(100, 52) == 52

    def test_in_range(self):
        assert clamp_occurrences(4, 52) == 4
