"""Shared validation utilities"""

import re
from typing import Optional

WEEKDAY_CODES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def validate_time_hhmm(value: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a time-of-day string.

    Args:
        value: Time string such as "9:05" or "14:00"

    Returns:
        Zero-padded HH:MM string

    Raises:
        ValueError: If the time is malformed or out of range
    """
    if value is None:
        return value

    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time format: {value!r} (expected HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time value: {value!r}")

    return f"{hours:02d}:{minutes:02d}"


def validate_weekdays(days: Optional[list]) -> list[str]:
    """
    Validate a lecture cadence.

    Returns:
        Lowercased weekday codes, duplicates removed, order preserved

    Raises:
        ValueError: If any code is not one of mon..sun
    """
    if not days:
        return []

    out: list[str] = []
    for day in days:
        code = str(day).strip().lower()
        if code not in WEEKDAY_CODES:
            raise ValueError(f"Invalid weekday: {day!r}")
        if code not in out:
            out.append(code)
    return out
