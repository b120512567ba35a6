"""Unit tests for time expression resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from linctl.exceptions import InvalidTimeExpressionError
from linctl.models import USE_DEFAULT, UNBOUNDED, At
from linctl.utils.time_expression import (
    resolve_time_expression,
    subtract_months,
    parse_absolute,
)

NOW = datetime(2024, 6, 15, 12, 30, 45, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


class TestResolveTimeExpression:
    """Test cases for resolve_time_expression."""

    def test_empty_string_defers_to_caller_default(self):
        assert resolve_time_expression("") is USE_DEFAULT

    def test_whitespace_and_none_defer_to_caller_default(self):
        assert resolve_time_expression("   ") is USE_DEFAULT
        assert resolve_time_expression(None) is USE_DEFAULT

    def test_all_time_is_unbounded(self):
        assert resolve_time_expression("all_time") is UNBOUNDED

    def test_all_time_is_case_insensitive(self):
        assert resolve_time_expression("ALL_TIME") is UNBOUNDED
        assert resolve_time_expression("All_Time") is UNBOUNDED

    @pytest.mark.parametrize("expression,expected_delta", [
        ("30_minutes_ago", timedelta(minutes=30)),
        ("1_minute_ago", timedelta(minutes=1)),
        ("2_hours_ago", timedelta(hours=2)),
        ("1_day_ago", timedelta(days=1)),
        ("7_days_ago", timedelta(days=7)),
        ("1_week_ago", timedelta(weeks=1)),
        ("2_weeks_ago", timedelta(weeks=2)),
    ])
    def test_fixed_length_units(self, expression, expected_delta):
        """Test minute/hour/day/week subtraction from the injected clock."""
        result = resolve_time_expression(expression, clock=fixed_clock)

        assert result == At(NOW - expected_delta)

    def test_months_use_calendar_arithmetic(self):
        result = resolve_time_expression("3_months_ago", clock=fixed_clock)

        assert result == At(datetime(2024, 3, 15, 12, 30, 45, tzinfo=timezone.utc))

    def test_one_month_ago_on_march_31_is_end_of_february(self):
        """Test that March 31 minus a month clamps to the last day of February."""
        leap = lambda: datetime(2024, 3, 31, 9, 0, tzinfo=timezone.utc)
        common = lambda: datetime(2023, 3, 31, 9, 0, tzinfo=timezone.utc)

        assert resolve_time_expression("1_month_ago", clock=leap) == At(
            datetime(2024, 2, 29, 9, 0, tzinfo=timezone.utc)
        )
        assert resolve_time_expression("1_month_ago", clock=common) == At(
            datetime(2023, 2, 28, 9, 0, tzinfo=timezone.utc)
        )

    def test_months_cross_year_boundary(self):
        clock = lambda: datetime(2024, 1, 10, tzinfo=timezone.utc)

        result = resolve_time_expression("2_months_ago", clock=clock)

        assert result == At(datetime(2023, 11, 10, tzinfo=timezone.utc))

    def test_years_use_calendar_arithmetic(self):
        leap_day = lambda: datetime(2024, 2, 29, tzinfo=timezone.utc)

        assert resolve_time_expression("1_year_ago", clock=fixed_clock) == At(
            datetime(2023, 6, 15, 12, 30, 45, tzinfo=timezone.utc)
        )
        assert resolve_time_expression("1_year_ago", clock=leap_day) == At(
            datetime(2023, 2, 28, tzinfo=timezone.utc)
        )

    def test_zero_resolves_to_now(self):
        """Test that N=0 yields a boundary equal to invocation time."""
        assert resolve_time_expression("0_days_ago", clock=fixed_clock) == At(NOW)
        assert resolve_time_expression("0_months_ago", clock=fixed_clock) == At(NOW)

    def test_singular_and_plural_spellings_are_equivalent(self):
        singular = resolve_time_expression("1_week_ago", clock=fixed_clock)
        plural = resolve_time_expression("1_weeks_ago", clock=fixed_clock)

        assert singular == plural

    def test_unit_names_are_case_insensitive(self):
        result = resolve_time_expression("2_Weeks_AGO", clock=fixed_clock)

        assert result == At(NOW - timedelta(weeks=2))

    def test_system_clock_is_used_by_default(self):
        """Test resolution against the real clock within one second."""
        before = datetime.now(timezone.utc)
        result = resolve_time_expression("1_hour_ago")
        after = datetime.now(timezone.utc)

        assert isinstance(result, At)
        assert before - timedelta(hours=1, seconds=1) <= result.timestamp <= after - timedelta(hours=1) + timedelta(seconds=1)
        assert result.timestamp.tzinfo is not None

    def test_clock_read_once_per_call(self):
        calls = []

        def counting_clock():
            calls.append(1)
            return NOW

        resolve_time_expression("6_months_ago", clock=counting_clock)

        assert len(calls) == 1

    def test_iso_date_is_midnight_utc(self):
        result = resolve_time_expression("2024-01-15", clock=fixed_clock)

        assert result == At(datetime(2024, 1, 15, tzinfo=timezone.utc))

    def test_rfc3339_with_z_suffix(self):
        result = resolve_time_expression("2024-01-15T10:30:00Z")

        assert result == At(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))

    def test_rfc3339_with_offset_is_converted_to_utc(self):
        result = resolve_time_expression("2024-01-15T10:30:00+02:00")

        assert result == At(datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc))
        assert result.timestamp.utcoffset() == timedelta(0)

    def test_datetime_without_offset_is_assumed_utc(self):
        result = resolve_time_expression("2024-01-15T10:30:00")

        assert result == At(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))

    def test_future_absolute_dates_are_accepted(self):
        result = resolve_time_expression("2999-01-01", clock=fixed_clock)

        assert result == At(datetime(2999, 1, 1, tzinfo=timezone.utc))

    @pytest.mark.parametrize("expression", [
        "not_a_time",
        "yesterday",
        "2_fortnights_ago",
        "-1_days_ago",
        "1.5_days_ago",
        "days_ago",
        "2024-02-30",
        "2024/01/15",
        "2_weeks",
    ])
    def test_invalid_expressions_raise(self, expression):
        with pytest.raises(InvalidTimeExpressionError):
            resolve_time_expression(expression, clock=fixed_clock)

    def test_invalid_expression_error_carries_input_and_accepted_forms(self):
        with pytest.raises(InvalidTimeExpressionError) as exc_info:
            resolve_time_expression("not_a_time")

        error = exc_info.value
        assert error.expression == "not_a_time"
        assert "all_time" in error.accepted_forms
        assert "Invalid time expression: 'not_a_time'" in str(error)
        assert "N_weeks_ago" in str(error)

    def test_amount_past_supported_range_raises(self):
        with pytest.raises(InvalidTimeExpressionError):
            resolve_time_expression("99999999999_days_ago", clock=fixed_clock)
        with pytest.raises(InvalidTimeExpressionError):
            resolve_time_expression("5000_years_ago", clock=fixed_clock)


class TestCalendarHelpers:
    """Test cases for the month arithmetic and absolute parsing helpers."""

    def test_subtract_months_clamps_day(self):
        moment = datetime(2024, 5, 31, 23, 59, tzinfo=timezone.utc)

        assert subtract_months(moment, 1) == datetime(2024, 4, 30, 23, 59, tzinfo=timezone.utc)

    def test_subtract_months_preserves_time_and_zone(self):
        moment = datetime(2024, 8, 20, 7, 15, 3, tzinfo=timezone.utc)

        result = subtract_months(moment, 12)

        assert result == datetime(2023, 8, 20, 7, 15, 3, tzinfo=timezone.utc)
        assert result.tzinfo is timezone.utc

    def test_parse_absolute_returns_none_for_other_text(self):
        assert parse_absolute("2_weeks_ago") is None
        assert parse_absolute("2024-13-01") is None
