"""
Canonical 24-hour time handling.

Every time that is compared, persisted or used in a slot key passes through
``normalize_time`` once, at the boundary where it enters the system.
"""

import re
from typing import Iterator

from ...core.exceptions import InvalidTimeFormatError

_CLOCK = re.compile(r"^(\d{1,2})[:.\-](\d{2})$")
_COMPACT = re.compile(r"^(\d{3,4})$")
_MERIDIEM = re.compile(r"^(.*?)\s*([AaPp])\.?\s*[Mm]\.?$")
_FALLBACK = re.compile(r"(\d{1,2}):?(\d{2})")


def _split(value: str):
    match = _CLOCK.match(value)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = _COMPACT.match(value)
    if match:
        digits = match.group(1)
        return int(digits[:-2]), int(digits[-2:])
    match = _FALLBACK.search(value)
    if match:
        return int(match.group(1)), int(match.group(2))
    return None


def normalize_time(raw: str) -> str:
    """
    Normalize a time to ``HH:MM``.

    Accepts ``H:MM``, ``HH:MM``, ``HHMM``, ``H-MM`` and an optional
    ``AM``/``PM`` suffix; anything else is tried against ``(\\d{1,2}):?(\\d{2})``.

    Raises:
        InvalidTimeFormatError: when no time can be extracted or it is out of range
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidTimeFormatError(raw)

    value = raw.strip()
    meridiem = None
    match = _MERIDIEM.match(value)
    if match and match.group(1):
        value = match.group(1).strip()
        meridiem = match.group(2).lower()

    if meridiem and re.fullmatch(r"\d{1,2}", value):
        parts = (int(value), 0)
    else:
        parts = _split(value)
    if parts is None:
        raise InvalidTimeFormatError(raw)

    hour, minute = parts
    if minute > 59:
        raise InvalidTimeFormatError(raw)

    if meridiem:
        if not 1 <= hour <= 12:
            raise InvalidTimeFormatError(raw)
        if meridiem == "a":
            hour = 0 if hour == 12 else hour
        else:
            hour = hour if hour == 12 else hour + 12

    if hour > 23:
        raise InvalidTimeFormatError(raw)

    return f"{hour:02d}:{minute:02d}"


def to_minutes(hhmm: str) -> int:
    """Minutes since midnight of a canonical ``HH:MM`` time."""
    hour, minute = hhmm.split(":")
    return int(hour) * 60 + int(minute)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def iter_slot_times(start: str, end: str, granularity: int = 15) -> Iterator[str]:
    """Times from ``start`` in ``granularity`` steps, strictly before ``end``."""
    current = to_minutes(normalize_time(start))
    stop = to_minutes(normalize_time(end))
    while current < stop:
        yield from_minutes(current)
        current += granularity


def format_time_display(hhmm: str) -> str:
    """12-hour display form, e.g. ``"14:30"`` -> ``"2:30 PM"``."""
    hour, minute = (int(part) for part in normalize_time(hhmm).split(":"))
    suffix = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {suffix}"
