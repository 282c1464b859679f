"""Shared validation utilities"""

import re
from datetime import datetime, time
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

# Monday first, matching datetime.weekday()
DAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

BLACKOUT_CATEGORIES = {"vacation", "holiday", "maintenance", "personal", "other"}

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_time_of_day(value: Union[str, time]) -> time:
    """
    Parse an "HH:MM" (24h) string into a time.

    Args:
        value: Time string or an existing time

    Returns:
        Parsed time

    Raises:
        ValueError: If the string is not a valid 24h HH:MM value
    """
    if isinstance(value, time):
        return value

    match = _TIME_PATTERN.match((value or "").strip())
    if not match:
        raise ValueError(f"Invalid time '{value}'. Expected HH:MM (24h)")

    return time(int(match.group(1)), int(match.group(2)))


def format_time_of_day(value: time) -> str:
    return value.strftime("%H:%M")


def day_name(moment: datetime) -> str:
    """Lowercase English day name for a datetime"""
    return DAY_NAMES[moment.weekday()]


def validate_day_name(value: str) -> str:
    """
    Validate a day-of-week key.

    Raises:
        ValueError: If the value is not a known day name
    """
    normalized = (value or "").strip().lower()
    if normalized not in DAY_NAMES:
        raise ValueError(f"Unknown day '{value}'. Expected one of: {', '.join(DAY_NAMES)}")
    return normalized


def validate_blackout_category(value: str) -> str:
    normalized = (value or "").strip().lower()
    if normalized not in BLACKOUT_CATEGORIES:
        raise ValueError(
            f"Unknown block type '{value}'. Expected one of: {', '.join(sorted(BLACKOUT_CATEGORIES))}"
        )
    return normalized


def validate_percentage(value: Optional[Union[str, int, float, Decimal]]) -> Optional[Decimal]:
    """
    Validate a percentage rate between 0 and 100 with at most two decimals.

    Raises:
        ValueError: If the rate is not a number in range
    """
    if value is None:
        return None

    try:
        rate = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid rate '{value}'") from e

    if rate < 0 or rate > 100:
        raise ValueError("Rate must be between 0 and 100")

    if rate != rate.quantize(Decimal("0.01")):
        raise ValueError("Rate supports at most two decimal places")

    return rate
