"""Resolve human expiry durations (``10y``, ``6m``, ``90d``) to day counts."""

import calendar
from datetime import UTC, date, datetime, timedelta

from .errors import InvalidExpiry
from .models import MAX_EXPIRY_DAYS, MIN_EXPIRY_DAYS

UNITS = ("y", "m", "d")


def _add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def resolve_expiry(duration: str, today: date | None = None) -> int:
    """Resolve a duration string to the number of days from today.

    Month and year lengths follow the calendar, so the same duration can map
    to different day counts depending on the reference date.

    Args:
        duration: Positive integer magnitude followed by y, m or d
        today: Reference date (defaults to the current UTC date)

    Returns:
        Day count in [1, 10957]

    Raises:
        InvalidExpiry: If magnitude, unit or resulting day count is invalid
    """
    token = duration.strip()
    magnitude_text, unit = token[:-1], token[-1:]

    if not magnitude_text.isdecimal() or int(magnitude_text) < MIN_EXPIRY_DAYS:
        raise InvalidExpiry(duration, "magnitude must be a positive integer")

    magnitude = int(magnitude_text)
    if magnitude > MAX_EXPIRY_DAYS:
        raise InvalidExpiry(duration, f"magnitude must be at most {MAX_EXPIRY_DAYS}")

    if unit not in UNITS:
        raise InvalidExpiry(duration, "unit must be one of y, m, d")

    start = today or datetime.now(UTC).date()
    try:
        if unit == "y":
            end = _add_months(start, magnitude * 12)
        elif unit == "m":
            end = _add_months(start, magnitude)
        else:
            end = start + timedelta(days=magnitude)
    except (ValueError, OverflowError) as e:
        raise InvalidExpiry(duration, "duration exceeds the supported calendar range") from e

    days = (end - start).days
    if not MIN_EXPIRY_DAYS <= days <= MAX_EXPIRY_DAYS:
        raise InvalidExpiry(
            duration, f"resolves to {days} days, must be {MIN_EXPIRY_DAYS}-{MAX_EXPIRY_DAYS}"
        )

    return days
