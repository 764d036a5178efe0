"""Conversions between 24-hour and 12-hour clock strings."""

from __future__ import annotations

import logging
import re

MINUTES_PER_DAY = 24 * 60
FALLBACK_TIME_24 = "09:00"

_TIME_24 = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_TIME_12 = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp])\.?\s*[Mm]\.?\s*$")


def _parse_24_hour(time24: str) -> tuple[int, int]:
    match = _TIME_24.match(time24 or "")
    if not match:
        raise ValueError(f"Expected HH:MM (24-hour), got '{time24}'")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time out of range: '{time24}'")
    return hours, minutes


def is_valid_24_hour(value: str) -> bool:
    try:
        _parse_24_hour(value)
    except ValueError:
        return False
    return True


def minutes_from_24_hour(time24: str) -> int:
    hours, minutes = _parse_24_hour(time24)
    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """Render minutes since midnight as zero-padded HH:MM, wrapping at 24h."""
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def to_12_hour(time24: str) -> str:
    """Convert ``HH:MM`` (24-hour) to ``HH:MM AM/PM``.

    ``00:xx`` becomes ``12:xx AM`` and ``12:xx`` becomes ``12:xx PM``.
    """
    hours, minutes = _parse_24_hour(time24)
    period = "AM" if hours < 12 else "PM"
    display_hour = hours % 12 or 12
    return f"{display_hour:02d}:{minutes:02d} {period}"


def to_24_hour(time12: str) -> str:
    """Convert ``HH:MM AM/PM`` to ``HH:MM`` (24-hour).

    Unparsable input degrades to ``FALLBACK_TIME_24`` instead of raising. A bare
    24-hour value is passed through normalised.
    """
    match = _TIME_12.match(time12 or "")
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if 1 <= hours <= 12 and minutes <= 59:
            hours %= 12
            if match.group(3).upper() == "P":
                hours += 12
            return f"{hours:02d}:{minutes:02d}"
    elif is_valid_24_hour(time12 or ""):
        return format_minutes(minutes_from_24_hour(time12))
    logging.debug(f"Unparsable time '{time12}', falling back to {FALLBACK_TIME_24}")
    return FALLBACK_TIME_24


def minutes_from_12_hour(time12: str) -> int:
    return minutes_from_24_hour(to_24_hour(time12))


def add_minutes(time24: str, delta: int) -> str:
    """Add ``delta`` minutes to a 24-hour time, wrapping into ``[00:00, 24:00)``."""
    return format_minutes(minutes_from_24_hour(time24) + delta)
