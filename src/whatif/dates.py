"""Calendar-date helpers shared by the series provider and metrics engine.

Requested dates are plain calendar days. Whenever one has to be expressed as
an instant it is pinned to midday in :data:`REFERENCE_TZ`, so converting back
to a calendar string can never move it across a day boundary.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from whatif.exceptions import InvalidDateError

REFERENCE_TZ = timezone.utc
MIDDAY = time(12, 0)

# Upstream fetch buffer, in calendar days, around the requested window
BUFFER_DAYS_BEFORE = 10
BUFFER_DAYS_AFTER = 2

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_iso_date(value: str) -> date:
    """Strictly parse a ``YYYY-MM-DD`` string.

    :param value: Date string.
    :returns: The calendar date.
    :raises InvalidDateError: If the string has any other shape, the month is
        outside 1-12, the day is outside 1-31, or the date does not exist.
    """
    if not isinstance(value, str):
        raise InvalidDateError(f"Invalid ISO date: {value!r}")

    match = _ISO_DATE_RE.match(value)
    if match is None:
        raise InvalidDateError(f"Invalid ISO date: {value}")

    year, month, day = (int(part) for part in match.groups())
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        raise InvalidDateError(f"Invalid ISO date: {value}")

    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(f"Invalid ISO date: {value}", detail=str(e)) from e


def format_iso_date(value: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return value.strftime("%Y-%m-%d")


def at_midday(value: date) -> datetime:
    """Pin a calendar date to midday in the reference time zone."""
    return datetime.combine(value, MIDDAY, tzinfo=REFERENCE_TZ)


def coerce_row_date(value: Any) -> date | None:
    """Convert an upstream date value to a calendar date.

    Accepts ``date``, ``datetime`` (including pandas ``Timestamp``) and ISO
    strings. Timezone-aware values keep the calendar day of their own zone,
    which for exchange data is the trading day.

    :param value: Raw value from an upstream row.
    :returns: The calendar date, or None if the value is missing or unusable.
    """
    if value is None or value != value:  # NaN / NaT
        return None

    if isinstance(value, datetime):
        try:
            return value.date()
        except (TypeError, ValueError):
            return None

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return parse_iso_date(text)
        except InvalidDateError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None

    return None


def buffered_window(start: date, end: date) -> tuple[date, date]:
    """Widen a requested window so there is trading data to snap to.

    :returns: ``(start - BUFFER_DAYS_BEFORE, end + BUFFER_DAYS_AFTER)``.
    """
    return (
        start - timedelta(days=BUFFER_DAYS_BEFORE),
        end + timedelta(days=BUFFER_DAYS_AFTER),
    )


def elapsed_days(start: date, end: date) -> int:
    """Calendar days between two dates, floored at one day."""
    delta = at_midday(end) - at_midday(start)
    return max(1, round(delta.total_seconds() / 86_400))


__all__ = [
    "REFERENCE_TZ",
    "BUFFER_DAYS_BEFORE",
    "BUFFER_DAYS_AFTER",
    "parse_iso_date",
    "format_iso_date",
    "at_midday",
    "coerce_row_date",
    "buffered_window",
    "elapsed_days",
]
