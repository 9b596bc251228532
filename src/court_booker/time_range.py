"""Parsing of the short date and time-range shorthand used in the group chat."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

import structlog

from .models import TimeRange

LOGGER = structlog.get_logger(__name__)

TIME_RANGE_PATTERN = re.compile(
    r"(\d{1,2})(?::([0-5]\d))?\s*(?:[ap]m?)?\s*-\s*(\d{1,2})(?::([0-5]\d))?\s*([ap])m?",
    re.IGNORECASE,
)
SHORT_DATE_PATTERN = re.compile(r"^\s*(\d{1,2})/(\d{1,2})\s*$")

TIME_FORMAT_HINT = "Use format like: 9-11p"


def to_24_hour(hour12: int, period: str) -> int:
    """Convert a 12-hour value and an ``a``/``p`` marker to 24-hour form.

    12a is midnight (0) and 12p is noon (12); every other hour only moves
    for ``p``.
    """
    if period == "a":
        return 0 if hour12 == 12 else hour12
    return 12 if hour12 == 12 else hour12 + 12


def parse_time_range(text: str) -> Optional[TimeRange]:
    """Parse "9-11p", "12-2p", "9:30-11p" or "11a-1p" into a :class:`TimeRange`.

    Only the trailing period marker is honoured. Both hours are first given
    that period; if the start does not come before the end it must belong to
    the opposite period ("11-1p" is 11 AM to 1 PM). A marker on the start
    half is accepted but ignored. The whole text must be the range; anything
    else returns ``None``.
    """
    match = TIME_RANGE_PATTERN.fullmatch((text or "").strip())
    if not match:
        return None

    start_hour = int(match.group(1))
    start_minute = match.group(2) or "00"
    end_hour = int(match.group(3))
    end_minute = match.group(4) or "00"
    period = match.group(5).lower()

    if not (1 <= start_hour <= 12 and 1 <= end_hour <= 12):
        LOGGER.debug("time_range.hour_out_of_range", text=text)
        return None

    end_hour24 = to_24_hour(end_hour, period)
    start_hour24 = to_24_hour(start_hour, period)
    if start_hour24 >= end_hour24:
        opposite = "a" if period == "p" else "p"
        start_hour24 = to_24_hour(start_hour, opposite)

    # Morning ranges such as "11-10a" or "10-12a" would wrap past midnight.
    if start_hour24 >= end_hour24:
        LOGGER.debug("time_range.not_forward", text=text)
        return None

    return TimeRange(
        start_hour=start_hour24,
        start_minute=start_minute,
        end_hour=end_hour24,
        end_minute=end_minute,
    )


def resolve_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """Resolve "M/D" to the next occurrence of that date on or after ``today``."""
    match = SHORT_DATE_PATTERN.match(text or "")
    if not match:
        return None
    month, day = int(match.group(1)), int(match.group(2))
    today = today or date.today()

    for year in (today.year, today.year + 1):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate >= today:
            return candidate
    return None
