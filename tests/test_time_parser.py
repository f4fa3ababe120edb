"""Tests for command parsing and calendar validation."""

from datetime import datetime, timezone

import pytest

from utils.errors import CommandSyntaxError, ValidationError
from utils.time_parser import (
    AbsoluteSpec,
    RelativeSpec,
    days_in_month,
    is_leap_year,
    parse_time_expression,
    resolve_absolute,
    resolve_relative,
    strip_prefix,
    to_24_hour,
    validate_absolute,
    validate_clock,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestStripPrefix:
    def test_returns_query_after_prefix(self):
        assert strip_prefix("!remindme in 2 days x") == "in 2 days x"

    def test_prefix_is_case_insensitive(self):
        assert strip_prefix("!RemindMe in 2 days x") == "in 2 days x"

    def test_bare_prefix_gives_empty_query(self):
        assert strip_prefix("  !remindme  ") == ""

    def test_not_a_command(self):
        assert strip_prefix("remind me in 2 days") is None
        assert strip_prefix("!remindmenow in 2 days x") is None

    def test_custom_prefix(self):
        assert strip_prefix(".remind on 1.1 at 9 AM x", ".remind") == "on 1.1 at 9 AM x"


class TestRelativeGrammar:
    def test_basic(self):
        spec = parse_time_expression("in 2 days to buy a gift for Chris")
        assert spec == RelativeSpec(amount=2, unit="day", unit_text="days", payload="to buy a gift for Chris")

    @pytest.mark.parametrize("unit_text,unit", [
        ("minute", "minute"), ("minutes", "minute"), ("hour", "hour"), ("hours", "hour"),
        ("day", "day"), ("weeks", "week"), ("month", "month"), ("months", "month"),
    ])
    def test_units(self, unit_text, unit):
        spec = parse_time_expression(f"in 1 {unit_text} stretch")
        assert isinstance(spec, RelativeSpec)
        assert spec.unit == unit
        assert spec.unit_text == unit_text

    def test_quoted_form(self):
        spec = parse_time_expression('"in 2 days" "to buy a gift for Chris"')
        assert isinstance(spec, RelativeSpec)
        assert spec.amount == 2
        assert spec.payload == "to buy a gift for Chris"

    def test_inner_quotes_are_kept(self):
        spec = parse_time_expression('in 2 days "a" and "b"')
        assert spec.payload == '"a" and "b"'

    def test_fully_quoted_payload_is_unwrapped(self):
        spec = parse_time_expression('in 2 days "water the plants"')
        assert spec.payload == "water the plants"

    def test_zero_amount_parses(self):
        spec = parse_time_expression("in 0 minutes stretch")
        assert isinstance(spec, RelativeSpec)
        assert spec.amount == 0

    @pytest.mark.parametrize("query", [
        "in 100 days too many digits",
        "in two days words",
        "in 2 fortnights never",
        "in 2 days",
        "in 2 days ",
        '"in 2 days" ""',
        "tomorrow at noon",
        "",
    ])
    def test_rejected(self, query):
        with pytest.raises(CommandSyntaxError):
            parse_time_expression(query)


class TestAbsoluteGrammar:
    def test_full_form(self):
        spec = parse_time_expression("on 23.12.2025 at 9:30 PM America/New_York call grandma")
        assert spec == AbsoluteSpec(
            day=23, month=12, year=2025, hour12=9, minute=30, meridiem="PM",
            timezone="America/New_York", payload="call grandma",
        )

    def test_optional_parts_default(self):
        spec = parse_time_expression("on 1.2 at 9 AM water the plants")
        assert isinstance(spec, AbsoluteSpec)
        assert spec.year is None
        assert spec.minute == 0
        assert spec.timezone is None
        assert spec.payload == "water the plants"

    def test_meridiem_any_case_and_attached(self):
        spec = parse_time_expression("on 1.2 at 9pm dinner")
        assert isinstance(spec, AbsoluteSpec)
        assert spec.meridiem == "PM"

    def test_out_of_range_numbers_still_parse(self):
        spec = parse_time_expression("on 29.2 at 13 AM something")
        assert isinstance(spec, AbsoluteSpec)
        assert spec.hour12 == 13

    def test_three_part_timezone(self):
        spec = parse_time_expression("on 1.2 at 9 AM America/Argentina/Buenos_Aires asado")
        assert isinstance(spec, AbsoluteSpec)
        assert spec.timezone == "America/Argentina/Buenos_Aires"
        assert spec.payload == "asado"

    def test_timezone_is_never_read_as_the_reminder_text(self):
        spec = parse_time_expression("on 2.1 at 9 AM America/New_York call mom")
        assert spec.timezone == "America/New_York"
        assert spec.payload == "call mom"

        with pytest.raises(CommandSyntaxError):
            parse_time_expression("on 2.1 at 9 AM America/New_York")

    @pytest.mark.parametrize("query", [
        "on 1.2 at 9 dinner",
        "on 1/2 at 9 AM dinner",
        "on 1.2 at 9:5 AM dinner",
        "on 1.2.25 at 9 AM dinner",
        "on 1.2 at 9 AM",
        "on 2.1 at 9 AM America/New_York",
        "on 2.1 at 9 AM America/New_York America/Chicago",
    ])
    def test_rejected(self, query):
        with pytest.raises(CommandSyntaxError):
            parse_time_expression(query)


class TestCalendar:
    @pytest.mark.parametrize("year,leap", [(2024, True), (2023, False), (1900, False), (2000, True)])
    def test_is_leap_year(self, year, leap):
        assert is_leap_year(year) is leap

    def test_days_in_month(self):
        assert days_in_month(2, 2024) == 29
        assert days_in_month(2, 2023) == 28
        assert days_in_month(4, 2025) == 30
        assert days_in_month(12, 2025) == 31

    def test_leap_day(self):
        assert validate_absolute(29, 2, 2024, 9, 0, current_year=2024) is None
        reason = validate_absolute(29, 2, 2023, 9, 0, current_year=2023)
        assert reason is not None
        assert "only has 28 days" in reason

    def test_year_window(self):
        assert validate_absolute(1, 1, 2025, 9, 0, current_year=2025) is None
        assert validate_absolute(1, 1, 2026, 9, 0, current_year=2025) is None
        assert "Invalid year" in validate_absolute(1, 1, 2027, 9, 0, current_year=2025)
        assert "Invalid year" in validate_absolute(1, 1, 2024, 9, 0, current_year=2025)

    def test_year_window_is_configurable(self):
        assert validate_absolute(1, 1, 2027, 9, 0, current_year=2025, year_window=2) is None

    @pytest.mark.parametrize("day,month,fragment", [
        (0, 1, "Invalid day: 0"),
        (32, 1, "Invalid day: 32"),
        (1, 0, "months start at 1"),
        (1, 13, "Invalid month: 13"),
        (31, 4, "April 2025 only has 30 days"),
    ])
    def test_date_rules(self, day, month, fragment):
        assert fragment in validate_absolute(day, month, 2025, 9, 0, current_year=2025)

    def test_first_failure_wins(self):
        # Day 32 is reported even though the month and hour are also wrong.
        assert "Invalid day: 32" in validate_absolute(32, 13, 2030, 13, 99, current_year=2025)
        assert "Invalid month: 13" in validate_absolute(31, 13, 2030, 13, 99, current_year=2025)

    @pytest.mark.parametrize("hour,minute,fragment", [
        (0, 0, "12-hour clock"),
        (13, 0, "12-hour clock"),
        (12, 60, "Invalid minute: 60"),
    ])
    def test_clock_rules(self, hour, minute, fragment):
        assert fragment in validate_clock(hour, minute)
        assert fragment in validate_absolute(1, 1, 2025, hour, minute, current_year=2025)

    def test_clock_ok(self):
        assert validate_clock(12, 59) is None
        assert validate_clock(1, 0) is None

    @pytest.mark.parametrize("hour12,meridiem,hour24", [
        (12, "AM", 0), (5, "PM", 17), (5, "AM", 5), (12, "PM", 12), (11, "PM", 23),
    ])
    def test_to_24_hour(self, hour12, meridiem, hour24):
        assert to_24_hour(hour12, meridiem) == hour24


class TestResolve:
    def test_relative_units(self):
        now = utc(2025, 1, 1)
        assert resolve_relative(RelativeSpec(90, "minute", "minutes", "x"), now) == utc(2025, 1, 1, 1, 30)
        assert resolve_relative(RelativeSpec(3, "hour", "hours", "x"), now) == utc(2025, 1, 1, 3)
        assert resolve_relative(RelativeSpec(2, "day", "days", "x"), now) == utc(2025, 1, 3)
        assert resolve_relative(RelativeSpec(2, "week", "weeks", "x"), now) == utc(2025, 1, 15)
        assert resolve_relative(RelativeSpec(1, "month", "month", "x"), now) == utc(2025, 2, 1)

    def test_relative_month_clamps_to_month_end(self):
        assert resolve_relative(RelativeSpec(1, "month", "month", "x"), utc(2025, 1, 31)) == utc(2025, 2, 28)

    def test_absolute_in_named_timezone(self):
        spec = parse_time_expression("on 23.12 at 9 AM America/New_York call grandma")
        target = resolve_absolute(spec, utc(2025, 1, 2), home_timezone="UTC")
        assert target == utc(2025, 12, 23, 14)

    def test_current_year_is_taken_in_the_target_timezone(self):
        # Midnight UTC on New Year's Day is still 2024 in New York.
        spec = parse_time_expression("on 31.12 at 11 PM America/New_York countdown")
        target = resolve_absolute(spec, utc(2025, 1, 1), home_timezone="UTC")
        assert target == utc(2025, 1, 1, 4)

    def test_absolute_defaults_to_home_timezone(self):
        spec = parse_time_expression("on 1.7 at 12 PM lunch")
        target = resolve_absolute(spec, utc(2025, 1, 1), home_timezone="Europe/Zagreb")
        # CEST is UTC+2 in July.
        assert target == utc(2025, 7, 1, 10)

    def test_absolute_midnight(self):
        spec = parse_time_expression("on 2.1 at 12 AM new day")
        assert resolve_absolute(spec, utc(2025, 1, 1), home_timezone="UTC") == utc(2025, 1, 2, 0)

    def test_absolute_now_is_not_future(self):
        spec = parse_time_expression("on 1.1.2025 at 12 AM happy new year")
        with pytest.raises(ValidationError, match="in the past"):
            resolve_absolute(spec, utc(2025, 1, 1), home_timezone="UTC")

    def test_clock_checked_before_calendar(self):
        spec = parse_time_expression("on 29.2 at 13 AM something")
        with pytest.raises(ValidationError, match="12-hour clock"):
            resolve_absolute(spec, utc(2025, 1, 1), home_timezone="UTC")

    def test_unknown_timezone(self):
        spec = parse_time_expression("on 2.1 at 9 AM Mars/Olympus_Mons climb")
        with pytest.raises(ValidationError, match="not a timezone"):
            resolve_absolute(spec, utc(2025, 1, 1), home_timezone="UTC")
