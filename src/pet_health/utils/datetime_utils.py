"""
DateTime utilities for pet health tracking.

This module provides flexible date parsing shared by the notification and
analytics derivations, day-granularity helpers, and pet age calculation.

Naive datetimes returned by this module are in local time.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

# Bare calendar dates, either dash or slash separated
_BARE_DATE_PATTERN = re.compile(r"^\s*(\d{4})[-/](\d{1,2})[-/](\d{1,2})\s*$")

# Bare dates are anchored here so timezone conversion never moves them to
# a neighbouring calendar day
ANCHOR_TIME = time(12, 0, 0)


def local_now() -> datetime:
    """Get the current local time as a naive datetime."""
    return datetime.now()


def to_local_naive(dt: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def start_of_day(value: Any) -> datetime:
    """
    Truncate a date or datetime to local midnight.

    Args:
        value: A ``date`` or ``datetime``

    Returns:
        Naive datetime at 00:00 on the same local calendar day
    """
    if isinstance(value, datetime):
        value = to_local_naive(value).date()
    return datetime.combine(value, time.min)


def parse_flexible_date(value: Any) -> Optional[datetime]:
    """
    Parse the date shapes found in event and course records.

    Accepted inputs:
        - ``datetime``: returned as local naive time
        - ``date``: anchored at local noon
        - ISO-8601 date-time strings (containing ``T``), ``Z`` suffix allowed
        - bare ``YYYY-MM-DD`` or ``YYYY/MM/DD`` strings, anchored at local noon

    Anything else, or a value that does not describe a real instant, yields
    ``None`` so callers can leave the record out of temporal logic.

    Args:
        value: The raw date value

    Returns:
        Naive local datetime, or None when there is no usable date

    Example:
        >>> parse_flexible_date("2024-03-01")
        datetime.datetime(2024, 3, 1, 12, 0)
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return to_local_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, ANCHOR_TIME)

    if not isinstance(value, str):
        return None

    if "T" in value:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return to_local_naive(parsed)

    match = _BARE_DATE_PATTERN.match(value)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    if not year or not month or not day:
        return None

    try:
        return datetime(year, month, day, ANCHOR_TIME.hour, 0, 0)
    except ValueError:
        return None


def calculate_pet_age(
    birth_date: date, reference_date: Optional[date] = None
) -> Dict[str, int]:
    """
    Calculate a pet's age in years, months, and days.

    Args:
        birth_date: The pet's birth date
        reference_date: The date to calculate age from (defaults to today)

    Returns:
        Dictionary with 'years', 'months', and 'days' keys
    """
    if reference_date is None:
        reference_date = date.today()

    if birth_date > reference_date:
        raise ValueError("Birth date cannot be in the future")

    years = reference_date.year - birth_date.year
    months = reference_date.month - birth_date.month
    days = reference_date.day - birth_date.day

    # Adjust for negative days
    if days < 0:
        months -= 1
        if reference_date.month == 1:
            prev_month_last_day = calendar.monthrange(reference_date.year - 1, 12)[1]
        else:
            prev_month_last_day = calendar.monthrange(
                reference_date.year, reference_date.month - 1
            )[1]
        days += prev_month_last_day

    # Adjust for negative months
    if months < 0:
        years -= 1
        months += 12

    return {"years": years, "months": months, "days": days}


def format_pet_age(age_dict: Dict[str, int]) -> str:
    """
    Format a pet's age dictionary into a human-readable string.

    Args:
        age_dict: Dictionary with 'years', 'months', and 'days' keys

    Returns:
        Formatted age string
    """
    years = age_dict["years"]
    months = age_dict["months"]
    days = age_dict["days"]

    parts = []

    if years > 0:
        parts.append(f"{years} year{'s' if years != 1 else ''}")

    if months > 0:
        parts.append(f"{months} month{'s' if months != 1 else ''}")

    if days > 0 and years == 0:  # Only show days if less than a year old
        parts.append(f"{days} day{'s' if days != 1 else ''}")

    if not parts:
        return "0 days"

    return ", ".join(parts)


def days_between(start: Any, end: Any) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative when end is earlier)."""
    delta: timedelta = start_of_day(end) - start_of_day(start)
    return delta.days
