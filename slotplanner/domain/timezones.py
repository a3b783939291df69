"""
Timezone-aware date helpers.

Every computation in the domain layer reasons in the civil time of a resource's
timezone, never in the process's local time. Instants leave the domain rendered
as ``YYYY-MM-DDTHH:MM:SS±HH:MM`` strings carrying the zone's offset for that
exact moment.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Optional, Union

import pendulum
from pendulum import DateTime

from .exceptions import InvalidDateFormat, UnknownTimezone

ISO_OFFSET_FORMAT = "YYYY-MM-DD[T]HH:mm:ssZ"

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ISO_INSTANT = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]\d{2}:\d{2}")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

SLASH_ORDERS = ("DMY", "MDY")

InstantLike = Union[str, datetime]


class Weekday(str, Enum):
    """Day of the week, valued by the lower-case names used as schedule keys."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Weekday":
        """Map a datetime's own weekday (Monday=0) onto the enum."""
        return _BY_ISO_INDEX[dt.weekday()]

    @property
    def is_weekend(self) -> bool:
        return self in (Weekday.SATURDAY, Weekday.SUNDAY)


_BY_ISO_INDEX = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
    Weekday.SUNDAY,
]


def resolve_timezone(name: str):
    """
    Resolve an IANA timezone name.

    Raises:
        UnknownTimezone: If the name is empty or not in the tz database
    """
    if not name or not isinstance(name, str):
        raise UnknownTimezone(name)
    try:
        return pendulum.timezone(name)
    except (ValueError, LookupError) as exc:
        raise UnknownTimezone(name) from exc


def normalize_date(value: str, slash_order: Optional[str] = None) -> str:
    """
    Normalize a date string to ``YYYY-MM-DD``.

    Accepted inputs:
    - ``YYYY-MM-DD`` (returned unchanged once validated)
    - ISO instants such as ``2025-03-04T10:00:00-03:00`` (truncated to the date)
    - ``DD/MM/YYYY`` or ``MM/DD/YYYY``, only when ``slash_order`` says which one.
      Without it a slash date is rejected as ambiguous instead of guessed.

    Raises:
        InvalidDateFormat: For anything else, or for impossible calendar dates
    """
    if not isinstance(value, str):
        raise InvalidDateFormat(value, "not a string")

    text = value.strip()

    match = _ISO_DATE.match(text)
    if match:
        return _checked(value, *(int(part) for part in match.groups()))

    match = _ISO_INSTANT.match(text)
    if match:
        return normalize_date(match.group(1))

    match = _SLASH_DATE.match(text)
    if match:
        if slash_order is None:
            raise InvalidDateFormat(value, "ambiguous day/month order")
        if slash_order not in SLASH_ORDERS:
            raise ValueError(f"slash_order must be one of {SLASH_ORDERS}, got {slash_order!r}")
        first, second, year = (int(part) for part in match.groups())
        if slash_order == "DMY":
            return _checked(value, year, second, first)
        return _checked(value, year, first, second)

    raise InvalidDateFormat(value)


def _checked(original: str, year: int, month: int, day: int) -> str:
    try:
        return pendulum.date(year, month, day).to_date_string()
    except ValueError as exc:
        raise InvalidDateFormat(original, "not a calendar date") from exc


def parse_instant(value: InstantLike, timezone: Optional[str] = None) -> DateTime:
    """
    Turn an ISO string or datetime into a pendulum ``DateTime``.

    Naive values are read as UTC. When ``timezone`` is given the result is
    converted into that zone (the instant itself is unchanged).
    """
    if isinstance(value, DateTime):
        instant = value
    elif isinstance(value, datetime):
        instant = pendulum.instance(value)
    elif isinstance(value, str):
        try:
            instant = pendulum.parse(value)
        except ValueError as exc:
            raise InvalidDateFormat(value, "not an ISO-8601 instant") from exc
        if not isinstance(instant, DateTime):
            raise InvalidDateFormat(value, "not an ISO-8601 instant")
    else:
        raise TypeError(f"Cannot interpret {type(value).__name__} as an instant")

    if timezone is not None:
        instant = instant.in_timezone(resolve_timezone(timezone))
    return instant


def civil_date_in(instant: InstantLike, timezone: str) -> str:
    """Calendar date of ``instant`` as observed in ``timezone``."""
    return parse_instant(instant, timezone).to_date_string()


def day_of_week_in(instant: InstantLike, timezone: str) -> Weekday:
    """Day of the week of ``instant`` as observed in ``timezone``."""
    return Weekday.from_datetime(parse_instant(instant, timezone))


def civil_datetime(date_string: str, hour: int, minute: int, timezone: str) -> DateTime:
    """Build the instant for a civil date and time-of-day in ``timezone``."""
    day = pendulum.parse(normalize_date(date_string)).date()
    return pendulum.datetime(
        day.year, day.month, day.day, hour, minute, 0, tz=resolve_timezone(timezone)
    )


def to_offset_iso_string(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    timezone: str,
) -> str:
    """
    Render a civil moment as ``YYYY-MM-DDTHH:MM:SS±HH:MM``.

    The offset is the zone's UTC offset for that specific moment, so it follows
    daylight-saving transitions where the zone has them.
    """
    moment = pendulum.datetime(
        year, month, day, hour, minute, second, tz=resolve_timezone(timezone)
    )
    return render_offset_iso(moment)


def format_instant(instant: InstantLike, timezone: str) -> str:
    """Render an existing instant in the civil time and offset of ``timezone``."""
    return render_offset_iso(parse_instant(instant, timezone))


def render_offset_iso(moment: DateTime) -> str:
    """
    Render an aware instant in its own zone as ``YYYY-MM-DDTHH:MM:SS±HH:MM``.

    Every instant this package emits goes through here.
    """
    return moment.format(ISO_OFFSET_FORMAT)
