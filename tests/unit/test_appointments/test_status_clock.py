from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from barberflow.domain.appointments.status_clock import (
    advance_statuses,
    apply_transition,
    clock_target_status,
    validate_status_transition,
)
from barberflow.models import (
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    IN_PROGRESS,
    NO_SHOW,
    PENDING,
    Appointment,
    Commission,
    Sale,
)
from tests.factories import MONDAY, at

START = at(MONDAY, 10)
END = at(MONDAY, 10, 30)


class TestClockTargetStatus:

    def test_confirmed_before_start_unchanged(self):
        assert clock_target_status(CONFIRMED, START, END, at(MONDAY, 9, 59)) is None

    def test_confirmed_inside_window_starts(self):
        assert clock_target_status(CONFIRMED, START, END, START) == IN_PROGRESS
        assert clock_target_status(CONFIRMED, START, END, at(MONDAY, 10, 29)) == IN_PROGRESS

    def test_confirmed_after_end_completes_directly(self):
        assert clock_target_status(CONFIRMED, START, END, at(MONDAY, 10, 35)) == COMPLETED

    def test_end_instant_completes(self):
        assert clock_target_status(IN_PROGRESS, START, END, END) == COMPLETED

    def test_in_progress_inside_window_unchanged(self):
        assert clock_target_status(IN_PROGRESS, START, END, at(MONDAY, 10, 15)) is None

    @pytest.mark.parametrize("status", [PENDING, COMPLETED, CANCELLED, NO_SHOW])
    def test_other_statuses_never_move(self, status):
        assert clock_target_status(status, START, END, at(MONDAY, 23)) is None


class TestValidateStatusTransition:

    @pytest.mark.parametrize(
        "current,new",
        [
            (PENDING, CONFIRMED),
            (CONFIRMED, IN_PROGRESS),
            (CONFIRMED, COMPLETED),
            (IN_PROGRESS, COMPLETED),
            (CONFIRMED, CANCELLED),
            (IN_PROGRESS, NO_SHOW),
            (COMPLETED, COMPLETED),
        ],
    )
    def test_allowed(self, current, new):
        assert validate_status_transition(current, new) is True

    @pytest.mark.parametrize(
        "current,new",
        [
            (PENDING, COMPLETED),
            (COMPLETED, CANCELLED),
            (CANCELLED, CONFIRMED),
            (NO_SHOW, COMPLETED),
            (IN_PROGRESS, CONFIRMED),
        ],
    )
    def test_rejected(self, current, new):
        assert validate_status_transition(current, new) is False


class TestApplyTransition:

    def test_settles_on_first_completion(self):
        appointment = Mock(status=IN_PROGRESS)
        settlement = Mock()

        result = apply_transition(appointment, COMPLETED, settlement, "card")

        assert appointment.status == COMPLETED
        assert result is settlement.settle.return_value
        settlement.settle.assert_called_once_with(appointment, "card")

    def test_no_settlement_for_other_targets(self):
        appointment = Mock(status=CONFIRMED)
        settlement = Mock()

        assert apply_transition(appointment, IN_PROGRESS, settlement) is None
        settlement.settle.assert_not_called()

    def test_no_settlement_when_already_completed(self):
        appointment = Mock(status=COMPLETED)
        settlement = Mock()

        apply_transition(appointment, COMPLETED, settlement)

        settlement.settle.assert_not_called()


class TestAdvanceStatuses:

    def test_completes_missed_window_and_settles(self, db, make_appointment):
        """Confirmed 10:00 for 30 min, evaluated at 10:35"""
        appointment = make_appointment(START, duration=30, price=Decimal("100.00"))

        changed = advance_statuses(db, at(MONDAY, 10, 35))

        db.refresh(appointment)
        assert changed == [appointment.id]
        assert appointment.status == COMPLETED

        sales = db.query(Sale).filter(Sale.appointment_id == appointment.id).all()
        assert len(sales) == 1
        assert sales[0].total_amount == Decimal("100.00")

        commission = db.query(Commission).filter(Commission.sale_id == sales[0].id).one()
        assert commission.rate == Decimal("50.00")
        assert commission.amount == Decimal("50.00")
        assert commission.is_paid is False

    def test_moves_started_appointment_in_progress(self, db, make_appointment):
        appointment = make_appointment(START)

        changed = advance_statuses(db, at(MONDAY, 10, 10))

        db.refresh(appointment)
        assert changed == [appointment.id]
        assert appointment.status == IN_PROGRESS
        assert db.query(Sale).count() == 0

    def test_second_run_at_same_instant_changes_nothing(self, db, make_appointment):
        make_appointment(START)
        make_appointment(at(MONDAY, 11))
        now = at(MONDAY, 11, 5)

        first = advance_statuses(db, now)
        second = advance_statuses(db, now)

        assert len(first) == 2
        assert second == []
        assert db.query(Sale).count() == 1

    def test_future_and_pending_appointments_untouched(self, db, make_appointment):
        future = make_appointment(at(MONDAY, 15))
        pending = make_appointment(START, status=PENDING)

        changed = advance_statuses(db, at(MONDAY, 12))

        db.refresh(future)
        db.refresh(pending)
        assert changed == []
        assert future.status == CONFIRMED
        assert pending.status == PENDING

    @pytest.mark.parametrize("status", [CANCELLED, NO_SHOW])
    def test_released_appointments_untouched(self, db, make_appointment, status):
        appointment = make_appointment(START, status=status)

        advance_statuses(db, at(MONDAY, 12))

        db.refresh(appointment)
        assert appointment.status == status
        assert db.query(Sale).count() == 0

    def test_settlement_failure_rolls_back_status_change(self, db, make_appointment):
        appointment = make_appointment(START)

        with patch(
            "barberflow.domain.settlement.service.SettlementRepository.insert_commission",
            side_effect=SQLAlchemyError("disk full"),
        ):
            with pytest.raises(SQLAlchemyError):
                advance_statuses(db, at(MONDAY, 10, 35))

        db.expire_all()
        assert db.get(Appointment, appointment.id).status == CONFIRMED
        assert db.query(Sale).count() == 0
        assert db.query(Commission).count() == 0
