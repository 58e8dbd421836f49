"""
Date helpers
============
Everything in the engine works on calendar dates (datetime.date), never on
instants, so a dose is due on the same day whatever the server timezone is.
"""

from datetime import datetime, timedelta, date
from typing import Iterator, Optional
import re
import pytz

from carelog.services.errors import ValidationError

# Sunday-first numbering (0 = sunday), as shown on the calendar UI
WEEKDAY_NAMES = ('sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday')

_WEEKDAY_ALIASES = {name[:3]: name for name in WEEKDAY_NAMES}
_WEEKDAY_ALIASES.update({name: name for name in WEEKDAY_NAMES})

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def weekday_name(day: date) -> str:
    """Weekday name of a date, e.g. date(2024, 1, 1) -> 'monday'."""
    # date.weekday() is Monday=0; shift to Sunday=0
    return WEEKDAY_NAMES[(day.weekday() + 1) % 7]


def normalize_weekday(value: str) -> str:
    """
    Map a weekday spelling to its canonical name.

    Args:
        value: "Monday", "mon", "MON"...

    Raises:
        ValidationError: Unknown weekday
    """
    key = (value or '').strip().lower()
    if key not in _WEEKDAY_ALIASES:
        raise ValidationError(f'Unknown weekday: {value!r}')
    return _WEEKDAY_ALIASES[key]


def normalize_time(value: str) -> str:
    """Validate an HH:MM string ("8:00" is accepted and padded)."""
    text = (value or '').strip()
    if len(text) == 4 and text[1] == ':':
        text = '0' + text
    if not _TIME_RE.match(text):
        raise ValidationError(f'Invalid time of day: {value!r} (expected HH:MM)')
    return text


def parse_date(value, field: str = 'date') -> Optional[date]:
    """
    Parse a YYYY-MM-DD string. date objects pass through, empty values give None.

    Raises:
        ValidationError: Malformed date
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be in YYYY-MM-DD format, got {value!r}')


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every date from start_date to end_date inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def local_today(timezone_name: str) -> date:
    """Today's calendar date in the given timezone."""
    return datetime.now(pytz.timezone(timezone_name)).date()


def utc_now() -> datetime:
    """Naive UTC timestamp, the format the log tables store."""
    return datetime.now(pytz.utc).replace(tzinfo=None)
