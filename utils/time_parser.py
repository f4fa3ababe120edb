"""
time_parser.py

Turns the text of a `!remindme` command into a concrete point in time.

Two grammars are understood, both anchored at the start of the query that
follows the command prefix:

- Relative: `in <N> <unit> <what>`, e.g. `in 2 days to buy a gift for Chris`.
- Absolute: `on <D>.<M>[.<Y>] at <H>[:<MM>] <AM|PM> [<Region/City>] <what>`,
  e.g. `on 23.12 at 9 AM America/New_York call grandma`.

The old quoted style (`"in 2 days" "to buy a gift"`) is still accepted.

The calendar checks are plain functions so they can be used (and tested)
without going through the parser. Every numeric slot in the grammars only
matches digits, so the `int()` calls below cannot fail.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Union

import pytz
from dateutil.relativedelta import relativedelta

from utils.errors import CommandSyntaxError, ValidationError

DEFAULT_PREFIX = "!remindme"

RELATIVE_PATTERN = re.compile(
    r'^(?P<quote>"?)in (?P<amount>\d{1,2}) (?P<unit>minutes?|hours?|days?|weeks?|months?)(?P=quote)'
    r'\s+(?P<payload>.+)$',
    re.IGNORECASE | re.DOTALL,
)

TIMEZONE_TOKEN = r'[A-Za-z][\w+\-]*(?:/[\w+\-]+)+'

# A Region/City token right after the time is always the timezone, so the
# payload may not start with one (the group above must not give it up).
ABSOLUTE_PATTERN = re.compile(
    r'^(?P<quote>"?)on (?P<day>\d{1,2})\.(?P<month>\d{1,2})(?:\.(?P<year>\d{4}))?'
    r' at (?P<hour>\d{1,2})(?::(?P<minute>\d{2}))? ?(?P<meridiem>AM|PM)'
    r'(?: (?P<timezone>' + TIMEZONE_TOKEN + r'))?(?P=quote)'
    r'\s+(?!\s*' + TIMEZONE_TOKEN + r'(?:\s|$))(?P<payload>.+)$',
    re.IGNORECASE | re.DOTALL,
)

SYNTAX_HELP = (
    "Invalid {prefix} syntax. Use one of:\n"
    "`{prefix} in <1-99> <minutes|hours|days|weeks|months> <what>`\n"
    "`{prefix} on <day>.<month>[.<year>] at <hour>[:<minutes>] <AM|PM> [<Region/City>] <what>`\n"
    "e.g. `{prefix} in 2 days to buy a gift for Chris` or "
    "`{prefix} on 23.12 at 9 AM America/New_York to call grandma`."
)


@dataclass(frozen=True)
class RelativeSpec:
    """`in <amount> <unit> <payload>`."""
    amount: int
    unit: str  # singular: minute, hour, day, week or month
    unit_text: str  # as the user typed it, for echoing back
    payload: str


@dataclass(frozen=True)
class AbsoluteSpec:
    """`on <day>.<month>[.<year>] at <hour12>[:<minute>] <meridiem> [<timezone>] <payload>`."""
    day: int
    month: int
    year: Optional[int]
    hour12: int
    minute: int
    meridiem: str  # "AM" or "PM"
    timezone: Optional[str]
    payload: str


ParsedTimeSpec = Union[RelativeSpec, AbsoluteSpec]


def strip_prefix(content: str, prefix: str = DEFAULT_PREFIX) -> Optional[str]:
    """
    Returns the text after the command prefix, or None if `content` is not a
    command at all. The prefix is case-insensitive and has to be followed by
    whitespace or the end of the message (`!remindmenow` is not a command).
    """
    text = content.strip()
    if not text.lower().startswith(prefix.lower()):
        return None
    rest = text[len(prefix):]
    if rest and not rest[0].isspace():
        return None
    return rest.strip()


def _unquote(payload: str) -> str:
    payload = payload.strip()
    if len(payload) >= 2 and payload[0] == payload[-1] == '"' and payload.count('"') == 2:
        payload = payload[1:-1].strip()
    return payload


def parse_time_expression(query: str) -> ParsedTimeSpec:
    """
    Parses the query that follows the command prefix.

    The absolute grammar is tried first. Raises `CommandSyntaxError` when
    neither grammar matches or the reminder text is empty.
    """
    match = ABSOLUTE_PATTERN.match(query)
    if match:
        payload = _unquote(match.group('payload'))
        if payload:
            return AbsoluteSpec(
                day=int(match.group('day')),
                month=int(match.group('month')),
                year=int(match.group('year')) if match.group('year') else None,
                hour12=int(match.group('hour')),
                minute=int(match.group('minute')) if match.group('minute') else 0,
                meridiem=match.group('meridiem').upper(),
                timezone=match.group('timezone'),
                payload=payload,
            )

    match = RELATIVE_PATTERN.match(query)
    if match:
        payload = _unquote(match.group('payload'))
        if payload:
            unit_text = match.group('unit').lower()
            return RelativeSpec(
                amount=int(match.group('amount')),
                unit=unit_text.rstrip('s'),
                unit_text=unit_text,
                payload=payload,
            )

    raise CommandSyntaxError(query)


# --- Calendar validation ---

def is_leap_year(year: int) -> bool:
    return year % 400 == 0 or (year % 4 == 0 and year % 100 != 0)


def days_in_month(month: int, year: int) -> int:
    """Number of days in `month` (1-12) of `year`."""
    days = [31, 29 if is_leap_year(year) else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
    return days[month - 1]


def validate_clock(hour12: int, minute: int) -> Optional[str]:
    """Checks a 12-hour clock reading. Returns the reason it is invalid, or None."""
    if hour12 == 0 or hour12 > 12:
        return f"Invalid hour: {hour12}. Use the 12-hour clock (1-12) followed by AM or PM."
    if minute > 59:
        return f"Invalid minute: {minute}. Minutes go from 00 to 59."
    return None


def validate_absolute(
    day: int, month: int, year: int, hour12: int, minute: int,
    current_year: int, year_window: int = 1
) -> Optional[str]:
    """
    Validates the parts of an absolute date against the calendar.

    Rules are checked in a fixed order and the first failure wins: day range,
    zero month, month range, days in that month, year window, hour, minute.

    Args:
        current_year (int): The year "now" falls in, in the reminder's timezone.
        year_window (int): How many years past `current_year` are accepted.

    Returns:
        Optional[str]: A human-readable reason, or None when the date is valid.
    """
    if day == 0 or day > 31:
        return f"Invalid day: {day}. Days go from 1 to 31."
    if month == 0:
        return "Invalid month: months start at 1, not 0."
    if month > 12:
        return f"Invalid month: {month}. There are only 12 months in a year."
    month_days = days_in_month(month, year)
    if day > month_days:
        return f"Invalid day: {calendar.month_name[month]} {year} only has {month_days} days."
    if not current_year <= year <= current_year + year_window:
        allowed = f"{current_year}" if year_window == 0 else f"{current_year}-{current_year + year_window}"
        return f"Invalid year: {year}. Reminders can only be set for {allowed}."
    return validate_clock(hour12, minute)


def to_24_hour(hour12: int, meridiem: str) -> int:
    if meridiem == "AM" and hour12 == 12:
        return 0
    if meridiem == "PM" and hour12 < 12:
        return hour12 + 12
    return hour12


# --- Target time resolution ---

def resolve_relative(spec: RelativeSpec, now: datetime) -> datetime:
    """Adds the relative offset to `now`. Months are calendar months, clamped to the month's end."""
    if spec.unit == "minute":
        return now + timedelta(minutes=spec.amount)
    if spec.unit == "hour":
        return now + timedelta(hours=spec.amount)
    if spec.unit == "day":
        return now + timedelta(days=spec.amount)
    if spec.unit == "week":
        return now + timedelta(days=7 * spec.amount)
    if spec.unit == "month":
        return now + relativedelta(months=spec.amount)
    raise ValueError(f"Unknown relative unit: {spec.unit}")


def resolve_timezone(name: str) -> tzinfo:
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ValidationError(
            f"`{name}` is not a timezone I know. Use an IANA name such as `America/New_York`."
        ) from None


def resolve_absolute(
    spec: AbsoluteSpec, now: datetime, home_timezone: str, year_window: int = 1
) -> datetime:
    """
    Validates an absolute spec and converts it to an aware UTC datetime.

    The clock is checked before the calendar, so an impossible hour is
    reported no matter what the date looks like. Raises `ValidationError`
    with a user-facing reason on any failure, including a time that is not
    strictly after `now`.
    """
    reason = validate_clock(spec.hour12, spec.minute)
    if reason:
        raise ValidationError(reason)

    tz = resolve_timezone(spec.timezone or home_timezone)
    current_year = now.astimezone(tz).year
    year = spec.year if spec.year is not None else current_year

    reason = validate_absolute(
        spec.day, spec.month, year, spec.hour12, spec.minute, current_year, year_window
    )
    if reason:
        raise ValidationError(reason)

    local_time = tz.localize(datetime(year, spec.month, spec.day, to_24_hour(spec.hour12, spec.meridiem), spec.minute))
    target = local_time.astimezone(pytz.utc)
    if target <= now:
        raise ValidationError(
            f"{format_local_time(target, tz)} is in the past. "
            "Pick a time in the future (add the year if you mean next year)."
        )
    return target


def format_local_time(moment: datetime, tz: tzinfo) -> str:
    """Formats `moment` as `23.12.2025 at 9:00 AM (America/New_York)`."""
    local = moment.astimezone(tz)
    clock = local.strftime("%I:%M %p").lstrip("0")
    return f"{local.day}.{local.month}.{local.year} at {clock} ({tz.zone})"
