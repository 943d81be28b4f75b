"""
Time value types shared by converters and the codec.

``NullTime`` mirrors a nullable SQL timestamp column: a datetime plus a
validity flag. ``ZERO_TIME`` is the zero value used for non-nullable
timestamps that were never set.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime
from typing import NamedTuple, Optional

LAYOUT_DATE_TIME = "%Y-%m-%d %H:%M:%S"
LAYOUT_DATE_ONLY = "%Y-%m-%d"
LAYOUT_YEAR_MONTH = "%Y-%m"

NULL_TIME_PARSE_LAYOUTS = (
    LAYOUT_DATE_TIME,
    LAYOUT_DATE_ONLY,
    LAYOUT_YEAR_MONTH,  # month-only strings such as "2025-10"
)

ZERO_TIME = datetime(1, 1, 1)

# strptime accepts unpadded fields, the layouts do not
_LAYOUT_PATTERNS = {
    LAYOUT_DATE_TIME: re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}"),
    LAYOUT_DATE_ONLY: re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}"),
    LAYOUT_YEAR_MONTH: re.compile(r"[0-9]{4}-[0-9]{2}"),
}


class NullTime(NamedTuple):
    """Timestamp that may be unset."""

    time: datetime = ZERO_TIME
    valid: bool = False

    @classmethod
    def of(cls, value: Optional[datetime]) -> "NullTime":
        if value is None:
            return cls()
        return cls(time=value, valid=True)


def is_zero_time(value: datetime) -> bool:
    return value.replace(tzinfo=None) == ZERO_TIME


def format_date_time(value: datetime) -> str:
    # strftime does not zero-pad years below 1000 on every platform
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d} {value.hour:02d}:{value.minute:02d}:{value.second:02d}"


def format_date_only(value: datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def is_midnight(value: datetime) -> bool:
    return value.hour == 0 and value.minute == 0 and value.second == 0


def last_day_of_month(value: datetime) -> datetime:
    """Return 00:00:00 on the last day of ``value``'s month."""
    _, days = calendar.monthrange(value.year, value.month)
    return datetime(value.year, value.month, days, tzinfo=value.tzinfo)


def parse_layout(value: str, layout: str) -> datetime:
    """Parse ``value`` with exactly ``layout``, every field zero-padded to its full width."""
    if not _LAYOUT_PATTERNS[layout].fullmatch(value):
        raise ValueError(f"time data {value!r} does not match format {layout!r}")
    return datetime.strptime(value, layout)


def parse_null_time(value: str) -> NullTime:
    """
    Parse ``value`` into a ``NullTime``, trying each accepted layout in order.

    Month-only strings normalise to the last day of that month. Unparseable
    input yields an unset ``NullTime`` rather than an error.
    """
    stripped = value.strip()
    if not stripped:
        return NullTime()
    for layout in NULL_TIME_PARSE_LAYOUTS:
        try:
            parsed = parse_layout(stripped, layout)
        except ValueError:
            continue
        if layout == LAYOUT_YEAR_MONTH:
            return NullTime(time=last_day_of_month(parsed), valid=True)
        return NullTime(time=parsed, valid=True)
    return NullTime()


__all__ = [
    "LAYOUT_DATE_ONLY",
    "LAYOUT_DATE_TIME",
    "LAYOUT_YEAR_MONTH",
    "NULL_TIME_PARSE_LAYOUTS",
    "NullTime",
    "ZERO_TIME",
    "format_date_only",
    "format_date_time",
    "is_midnight",
    "is_zero_time",
    "last_day_of_month",
    "parse_layout",
    "parse_null_time",
]
