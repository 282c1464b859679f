from datetime import time

import pytest

from barberflow.domain.appointments.slot_validator import (
    BookedSlot,
    Interval,
    SlotPolicy,
    check_slot,
    outside_work_schedule,
    overlaps,
    resolve_window,
)
from barberflow.domain.calendar.schemas import DayHours, WorkShift
from barberflow.models import CANCELLED, CONFIRMED, NO_SHOW
from barberflow.shared.errors import RejectReason
from tests.factories import MONDAY, TUESDAY, at

OPEN_9_TO_18 = DayHours(isOpen=True, openTime="09:00", closeTime="18:00")
CLOSED = DayHours(isOpen=False)


@pytest.fixture
def policy():
    return SlotPolicy(default_open=time(8, 0), default_close=time(18, 0))


class TestOverlaps:

    def test_touching_intervals_do_not_overlap(self):
        assert overlaps(at(MONDAY, 10), at(MONDAY, 10, 30), at(MONDAY, 10, 30), at(MONDAY, 11)) is False
        assert overlaps(at(MONDAY, 10, 30), at(MONDAY, 11), at(MONDAY, 10), at(MONDAY, 10, 30)) is False

    def test_partial_overlap(self):
        assert overlaps(at(MONDAY, 10, 15), at(MONDAY, 10, 45), at(MONDAY, 10), at(MONDAY, 10, 30)) is True

    def test_containment(self):
        assert overlaps(at(MONDAY, 10), at(MONDAY, 10, 30), at(MONDAY, 9), at(MONDAY, 12)) is True


class TestResolveWindow:

    def test_configured_day(self, policy):
        window = resolve_window(MONDAY.date(), OPEN_9_TO_18, policy)
        assert window == Interval(at(MONDAY, 9), at(MONDAY, 18))

    def test_closed_day(self, policy):
        assert resolve_window(MONDAY.date(), CLOSED, policy) is None

    def test_unconfigured_day_uses_default_hours(self, policy):
        window = resolve_window(MONDAY.date(), None, policy)
        assert window == Interval(at(MONDAY, 8), at(MONDAY, 18))

    def test_unconfigured_day_closed_policy(self):
        strict = SlotPolicy(default_open=time(8, 0), default_close=time(18, 0), unconfigured_day_closed=True)
        assert resolve_window(MONDAY.date(), None, strict) is None


class TestCheckSlot:

    def test_accepts_free_slot(self, policy):
        """Open Monday, nothing booked or blocked"""
        decision = check_slot(at(MONDAY, 10), 30, OPEN_9_TO_18, [], [], policy)

        assert decision.accepted is True
        assert decision.reason is None

    def test_rejects_overlapping_booking(self, policy):
        booked = [BookedSlot(at(MONDAY, 10), 30, CONFIRMED)]

        decision = check_slot(at(MONDAY, 10, 15), 30, OPEN_9_TO_18, [], booked, policy)

        assert decision.accepted is False
        assert decision.reason == RejectReason.DOUBLE_BOOKED

    def test_back_to_back_bookings_accepted(self, policy):
        booked = [BookedSlot(at(MONDAY, 10), 30, CONFIRMED)]

        decision = check_slot(at(MONDAY, 10, 30), 30, OPEN_9_TO_18, [], booked, policy)

        assert decision.accepted is True

    def test_rejects_blocked_staff(self, policy):
        blackouts = [Interval(at(MONDAY, 9), at(MONDAY, 12))]

        decision = check_slot(at(MONDAY, 10), 30, OPEN_9_TO_18, blackouts, [], policy)

        assert decision.reason == RejectReason.STAFF_BLOCKED

    def test_slot_ending_at_blackout_start_accepted(self, policy):
        blackouts = [Interval(at(MONDAY, 12), at(MONDAY, 13))]

        decision = check_slot(at(MONDAY, 11, 30), 30, OPEN_9_TO_18, blackouts, [], policy)

        assert decision.accepted is True

    @pytest.mark.parametrize("status", [CANCELLED, NO_SHOW])
    def test_released_appointments_free_the_slot(self, policy, status):
        booked = [BookedSlot(at(MONDAY, 10), 30, status)]

        decision = check_slot(at(MONDAY, 10), 30, OPEN_9_TO_18, [], booked, policy)

        assert decision.accepted is True

    def test_rejects_closed_day(self, policy):
        decision = check_slot(at(MONDAY, 10), 30, CLOSED, [], [], policy)
        assert decision.reason == RejectReason.SHOP_CLOSED

    def test_rejects_start_before_opening(self, policy):
        decision = check_slot(at(MONDAY, 8, 45), 30, OPEN_9_TO_18, [], [], policy)
        assert decision.reason == RejectReason.OUTSIDE_HOURS

    def test_rejects_start_at_closing(self, policy):
        decision = check_slot(at(MONDAY, 18), 30, OPEN_9_TO_18, [], [], policy)
        assert decision.reason == RejectReason.OUTSIDE_HOURS

    def test_start_inside_hours_may_run_past_closing(self, policy):
        decision = check_slot(at(MONDAY, 17, 45), 30, OPEN_9_TO_18, [], [], policy)
        assert decision.accepted is True

    def test_end_within_hours_policy(self):
        strict = SlotPolicy(default_open=time(8, 0), default_close=time(18, 0), require_end_within_hours=True)

        assert check_slot(at(MONDAY, 17, 45), 30, OPEN_9_TO_18, [], [], strict).reason == RejectReason.OUTSIDE_HOURS
        assert check_slot(at(MONDAY, 17, 30), 30, OPEN_9_TO_18, [], [], strict).accepted is True

    @pytest.mark.parametrize("duration", [0, -15])
    def test_rejects_non_positive_duration(self, policy, duration):
        decision = check_slot(at(MONDAY, 10), duration, OPEN_9_TO_18, [], [], policy)
        assert decision.reason == RejectReason.INVALID_DURATION

    def test_checks_run_in_order(self, policy):
        """A slot failing every check reports the first failure only"""
        blackouts = [Interval(at(MONDAY, 0), at(MONDAY, 23))]
        booked = [BookedSlot(at(MONDAY, 7), 60, CONFIRMED)]

        assert check_slot(at(MONDAY, 7), 30, CLOSED, blackouts, booked, policy).reason == RejectReason.SHOP_CLOSED
        assert (
            check_slot(at(MONDAY, 7), 30, OPEN_9_TO_18, blackouts, booked, policy).reason
            == RejectReason.OUTSIDE_HOURS
        )
        booked = [BookedSlot(at(MONDAY, 10), 60, CONFIRMED)]
        assert (
            check_slot(at(MONDAY, 10), 30, OPEN_9_TO_18, blackouts, booked, policy).reason
            == RejectReason.STAFF_BLOCKED
        )


class TestOutsideWorkSchedule:

    def test_empty_schedule_never_restricts(self):
        assert outside_work_schedule(at(MONDAY, 6), {}) is False

    def test_start_inside_shift(self):
        schedule = {"monday": WorkShift(startTime="12:00", endTime="15:00")}

        assert outside_work_schedule(at(MONDAY, 12), schedule) is False
        assert outside_work_schedule(at(MONDAY, 14, 45), schedule) is False

    def test_shift_end_is_exclusive(self):
        schedule = {"monday": WorkShift(startTime="12:00", endTime="15:00")}

        assert outside_work_schedule(at(MONDAY, 15), schedule) is True
        assert outside_work_schedule(at(MONDAY, 11, 45), schedule) is True

    def test_unscheduled_day_is_a_day_off(self):
        schedule = {"monday": WorkShift(startTime="12:00", endTime="15:00")}

        assert outside_work_schedule(at(TUESDAY, 12), schedule) is True
