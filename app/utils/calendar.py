"""Date and time-of-day parsing for the booking calendar.

All instants are naive datetimes on a single UTC-anchored clock: a calendar
date and an HH:MM time-of-day are combined without any local-timezone
conversion, so slot generation is identical on every host.
"""

import re
from datetime import date, datetime, time, timedelta

from app.core.exceptions import InvalidDateOrTime

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
# Only valid as the end of a working window: midnight of the next day
END_OF_DAY = "24:00"


def parse_date(value: str) -> date:
    """Parse an ISO YYYY-MM-DD calendar date."""
    if not isinstance(value, str) or not DATE_RE.match(value):
        raise InvalidDateOrTime(f"Invalid date: {value!r}, expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDateOrTime(f"Invalid date: {value!r}")


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM time of day (00:00 to 23:59)."""
    if not isinstance(value, str) or not HHMM_RE.match(value):
        raise InvalidDateOrTime(f"Invalid time: {value!r}, expected HH:MM")
    hours, minutes = map(int, value.split(":"))
    return time(hours, minutes)


def offset_of_day(value: str) -> timedelta:
    """Offset of an HH:MM (or END_OF_DAY) value from midnight."""
    hours, minutes = map(int, value.split(":"))
    return timedelta(hours=hours, minutes=minutes)


def format_hhmm(moment: datetime | time) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def combine(day: date, time_of_day: time) -> datetime:
    return datetime.combine(day, time_of_day)
