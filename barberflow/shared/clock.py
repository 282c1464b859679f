"""Time source used by the status sweep and booking checks"""

from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..config import SHOP_TIMEZONE

TimeSource = Callable[[], datetime]


def shop_now() -> datetime:
    """Current wall-clock time in the shop timezone, as a naive datetime"""
    return datetime.now(ZoneInfo(SHOP_TIMEZONE)).replace(tzinfo=None)


def to_shop_local(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a request datetime to naive shop-local wall-clock time.

    Naive values are already shop-local and pass through unchanged; values
    carrying an offset are converted to SHOP_TIMEZONE first.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(SHOP_TIMEZONE)).replace(tzinfo=None)


def get_clock() -> TimeSource:
    """Dependency injection for the time source"""
    return shop_now
