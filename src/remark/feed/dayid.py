"""Day identifiers.

A day is identified by its UTC calendar date serialized as ``YYYY-MM-DD``.
Lexicographic order of these strings is chronological order, which is what
lets range subscriptions use plain string bounds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from remark.core.exceptions import InvalidDayIdError

DayId = str

_DAY_ID_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_ABBR = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


@dataclass(frozen=True)
class DayParts:
    """Display fragments for a day card: ``OCT`` / ``07`` / ``2026``."""

    mo: str
    day: str
    yr: str


def today_utc() -> date:
    """Return today's date in UTC."""
    return datetime.now(UTC).date()


def to_day_id(d: date) -> DayId:
    """Serialize a date as a day identifier."""
    return d.isoformat()


def parse_day_id(day_id: DayId) -> date:
    """Parse a day identifier.

    Raises:
        InvalidDayIdError: If *day_id* is not a real ``YYYY-MM-DD`` date.
    """
    if not isinstance(day_id, str) or not _DAY_ID_RE.match(day_id):
        raise InvalidDayIdError(f"Not a day id: {day_id!r}")
    try:
        return date.fromisoformat(day_id)
    except ValueError as e:
        raise InvalidDayIdError(f"Not a day id: {day_id!r}") from e


def validate_day_id(day_id: DayId) -> DayId:
    """Return *day_id* unchanged, or raise :class:`InvalidDayIdError`."""
    parse_day_id(day_id)
    return day_id


def as_date(day: date | DayId) -> date:
    """Accept either a date or a day identifier."""
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    return parse_day_id(day)


def days_ago(anchor: date, n: int) -> date:
    return anchor - timedelta(days=n)


def shift_day(day_id: DayId, delta_days: int) -> DayId:
    """Move a day identifier forward (positive) or backward (negative)."""
    return to_day_id(parse_day_id(day_id) + timedelta(days=delta_days))


def is_future(day_id: DayId, today_id: DayId) -> bool:
    """True when *day_id* is strictly after *today_id*."""
    return day_id > today_id


def format_mdy(day_id: DayId) -> str:
    """``2026-10-07`` -> ``10-07-2026``."""
    if not day_id:
        return ""
    y, m, d = validate_day_id(day_id).split("-")
    return f"{m}-{d}-{y}"


def to_parts(day_id: DayId) -> DayParts:
    d = parse_day_id(day_id)
    return DayParts(mo=_MONTH_ABBR[d.month - 1], day=f"{d.day:02d}", yr=str(d.year))
