"""
Slot validation.

Pure decision over already-fetched data: the shop's window for the day,
blackout intervals and the staff member's existing appointments. Checks run
in a fixed order and stop at the first failure:

    shop-closed → outside-hours → staff-blocked → double-booked

All intervals are half-open: [start, end).
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Mapping, NamedTuple, Optional

from ... import config
from ...models import RELEASED_STATUSES
from ...shared.errors import RejectReason
from ...shared.validators import day_name, parse_time_of_day
from ..calendar.schemas import DayHours, WorkShift


class Interval(NamedTuple):
    start: datetime
    end: datetime


class BookedSlot(NamedTuple):
    start: datetime
    duration_minutes: int
    status: str

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class SlotPolicy:
    default_open: time
    default_close: time
    unconfigured_day_closed: bool = False
    require_end_within_hours: bool = False

    @classmethod
    def from_config(cls) -> "SlotPolicy":
        return cls(
            default_open=parse_time_of_day(config.DEFAULT_OPEN_TIME),
            default_close=parse_time_of_day(config.DEFAULT_CLOSE_TIME),
            unconfigured_day_closed=config.UNCONFIGURED_DAY_POLICY == "closed",
            require_end_within_hours=config.REQUIRE_END_WITHIN_HOURS,
        )


@dataclass(frozen=True)
class SlotDecision:
    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def accept(cls) -> "SlotDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectReason) -> "SlotDecision":
        return cls(accepted=False, reason=reason)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def resolve_window(day: date, hours: Optional[DayHours], policy: SlotPolicy) -> Optional[Interval]:
    """Opening window for a date, or None when the shop is closed that day"""
    if hours is None:
        if policy.unconfigured_day_closed:
            return None
        return Interval(
            datetime.combine(day, policy.default_open), datetime.combine(day, policy.default_close)
        )

    if not hours.isOpen:
        return None

    return Interval(datetime.combine(day, hours.open_time), datetime.combine(day, hours.close_time))


def check_slot(
    start: datetime,
    duration_minutes: int,
    hours: Optional[DayHours],
    blackouts: Iterable[Interval],
    booked: Iterable[BookedSlot],
    policy: SlotPolicy,
) -> SlotDecision:
    """Accept or reject a proposed appointment [start, start + duration)"""
    if duration_minutes is None or duration_minutes <= 0:
        return SlotDecision.reject(RejectReason.INVALID_DURATION)

    end = start + timedelta(minutes=duration_minutes)

    window = resolve_window(start.date(), hours, policy)
    if window is None:
        return SlotDecision.reject(RejectReason.SHOP_CLOSED)

    if not (window.start <= start < window.end):
        return SlotDecision.reject(RejectReason.OUTSIDE_HOURS)
    if policy.require_end_within_hours and end > window.end:
        return SlotDecision.reject(RejectReason.OUTSIDE_HOURS)

    for block in blackouts:
        if overlaps(start, end, block.start, block.end):
            return SlotDecision.reject(RejectReason.STAFF_BLOCKED)

    for existing in booked:
        if existing.status in RELEASED_STATUSES:
            continue
        if overlaps(start, end, existing.start, existing.end):
            return SlotDecision.reject(RejectReason.DOUBLE_BOOKED)

    return SlotDecision.accept()


def outside_work_schedule(start: datetime, schedule: Mapping[str, WorkShift]) -> bool:
    """
    True when a staff member does not work at `start`.

    An empty schedule places no restriction. Otherwise a day missing from the
    schedule is a day off, and the start must fall in [startTime, endTime).
    """
    if not schedule:
        return False

    shift = schedule.get(day_name(start))
    if shift is None:
        return True

    return not (shift.start_time <= start.time() < shift.end_time)
