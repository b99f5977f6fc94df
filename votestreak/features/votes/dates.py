"""ISO-8601 parsing and UTC day normalization for vote dates."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Optional, Tuple, Union

from votestreak.core.errors import InvalidDateError

DateInput = Union[str, datetime, date, None]


def normalize_moment(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def normalize_day(moment: datetime) -> date:
    return normalize_moment(moment).date()


def _to_utc(moment: datetime, field: str) -> datetime:
    # Offsets near year 1 or 9999 can push the UTC instant out of range
    try:
        return normalize_moment(moment)
    except (ValueError, OverflowError):
        raise InvalidDateError(f"Invalid {field} format") from None


def parse_moment(value: DateInput, field: str = "date") -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into a tz-aware UTC datetime.

    Date-only values map to midnight UTC. Naive datetimes are taken as UTC.
    Returns None for None/blank input; raises InvalidDateError for anything unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_utc(value, field)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise InvalidDateError(f"Invalid {field} format")

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidDateError(f"Invalid {field} format") from None
    return _to_utc(parsed, field)


def parse_day(value: DateInput, field: str) -> Optional[date]:
    moment = parse_moment(value, field)
    return moment.date() if moment else None


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)
