"""Appointment service - booking, status changes and availability"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ... import config
from ...models import CANCELLED, CONFIRMED, TERMINAL_STATUSES, Appointment
from ...shared.clock import TimeSource, shop_now, to_shop_local
from ...shared.errors import BookingRejected, RejectReason
from ...shared.validators import day_name, format_time_of_day
from ..blackouts.repository import BlackoutRepository
from ..calendar.repository import CalendarRepository
from ..settlement.service import Settlement, SettlementService
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentResponse, StatusUpdate
from .slot_validator import (
    BookedSlot,
    Interval,
    SlotDecision,
    SlotPolicy,
    check_slot,
    outside_work_schedule,
    resolve_window,
)
from .status_clock import advance_statuses, apply_transition, validate_status_transition

logger = logging.getLogger(__name__)


def to_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        shopId=appointment.shop_id,
        staffId=appointment.staff_id,
        serviceId=appointment.service_id,
        clientId=appointment.client_id,
        serviceName=appointment.service.name if appointment.service else None,
        scheduledAt=appointment.scheduled_at,
        endsAt=appointment.ends_at,
        durationMinutes=appointment.duration_minutes,
        status=appointment.status,
        price=appointment.price,
        notes=appointment.notes,
        created_at=appointment.created_at,
    )


@dataclass
class StatusChange:
    appointment: Appointment
    settlement: Optional[Settlement] = None


class AppointmentService:
    """Service layer for the booking ledger"""

    def __init__(
        self,
        db: Session,
        clock: TimeSource = shop_now,
        policy: Optional[SlotPolicy] = None,
        settlement: Optional[SettlementService] = None,
    ):
        self.db = db
        self.clock = clock
        self.policy = policy or SlotPolicy.from_config()
        self.settlement = settlement or SettlementService(db)
        self.repo = AppointmentRepository()
        self.calendar = CalendarRepository()
        self.blackouts = BlackoutRepository()

    # ------------------------------------------------------------------
    # Slot validation
    # ------------------------------------------------------------------

    def _blackout_intervals(self, shop_id: int, staff_id: int) -> list[Interval]:
        return [
            Interval(block.start_at, block.end_at)
            for block in self.blackouts.list_active_blackouts(self.db, shop_id, staff_id)
        ]

    def _booked_slots(
        self, staff_id: int, window_start: datetime, window_end: datetime
    ) -> list[BookedSlot]:
        # Nothing longer than MAX_APPOINTMENT_MINUTES can start before the window and still overlap
        lookback = window_start - timedelta(minutes=config.MAX_APPOINTMENT_MINUTES)
        return [
            BookedSlot(a.scheduled_at, a.duration_minutes, a.status)
            for a in self.repo.list_overlap_candidates(self.db, staff_id, lookback, window_end)
        ]

    def validate_slot(
        self, shop_id: int, staff_id: int, start: datetime, duration_minutes: int
    ) -> SlotDecision:
        """Accept or reject a proposed appointment for a staff member"""
        if (
            duration_minutes is None
            or duration_minutes <= 0
            or duration_minutes > config.MAX_APPOINTMENT_MINUTES
        ):
            return SlotDecision.reject(RejectReason.INVALID_DURATION)

        start = to_shop_local(start)
        end = start + timedelta(minutes=duration_minutes)
        return check_slot(
            start,
            duration_minutes,
            self.calendar.get_hours(self.db, shop_id, day_name(start)),
            self._blackout_intervals(shop_id, staff_id),
            self._booked_slots(staff_id, start, end),
            self.policy,
        )

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book(self, shop_id: int, data: AppointmentCreate) -> Appointment:
        """Validate and insert a confirmed appointment"""
        service = self.repo.get_service(self.db, data.serviceId, shop_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        if data.clientId is not None and not self.repo.get_client(self.db, data.clientId, shop_id):
            raise HTTPException(status_code=404, detail="Client not found")

        duration = data.durationMinutes if data.durationMinutes is not None else service.duration_minutes
        start = data.scheduledAt

        # Row lock on the staff member serializes concurrent bookings for the same calendar
        staff = self.repo.lock_staff(self.db, shop_id, data.staffId)
        if not staff:
            self.db.rollback()
            raise HTTPException(status_code=404, detail="Staff member not found")

        decision = self.validate_slot(shop_id, staff.id, start, duration)
        if not decision.accepted:
            self.db.rollback()
            logger.warning(
                f"⚠️ Booking rejected for staff {staff.id} at {start} ({duration} min): {decision.reason.value}"
            )
            raise BookingRejected(decision.reason)

        end = start + timedelta(minutes=duration)
        try:
            appointment = self.repo.insert_appointment(
                self.db,
                shop_id=shop_id,
                staff_id=staff.id,
                service_id=service.id,
                client_id=data.clientId,
                scheduled_at=start,
                duration_minutes=duration,
                ends_at=end,
                status=CONFIRMED,
                price=service.price,
                notes=data.notes,
            )
            if self.repo.has_overlap(self.db, staff.id, start, end, exclude_id=appointment.id):
                self.db.rollback()
                logger.warning(f"⚠️ Lost booking race for staff {staff.id} at {start}")
                raise BookingRejected(RejectReason.DOUBLE_BOOKED)
            self.db.commit()
        except IntegrityError:
            # Exclusion constraint fired: another booking committed first
            self.db.rollback()
            retry = self.validate_slot(shop_id, staff.id, start, duration)
            reason = retry.reason if not retry.accepted else RejectReason.DOUBLE_BOOKED
            logger.warning(f"⚠️ Booking conflict for staff {staff.id} at {start}: {reason.value}")
            raise BookingRejected(reason) from None
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to book appointment for staff {staff.id}: {e}")
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            f"📅 Appointment {appointment.id} booked: staff {staff.id}, {start} → {end}, price {appointment.price}"
        )
        return appointment

    # ------------------------------------------------------------------
    # Reads (the status clock runs first so listings reflect wall-clock time)
    # ------------------------------------------------------------------

    def advance_statuses(self) -> list[int]:
        return advance_statuses(self.db, self.clock(), self.settlement)

    def _sweep(self) -> None:
        if config.STATUS_SWEEP_ENABLED:
            self.advance_statuses()

    def list_appointments(
        self,
        shop_id: int,
        staff_id: Optional[int] = None,
        client_id: Optional[int] = None,
        status: Optional[str] = None,
        day: Optional[date] = None,
    ) -> list[Appointment]:
        self._sweep()

        start_date = end_date = None
        if day:
            start_date = datetime.combine(day, datetime.min.time())
            end_date = start_date + timedelta(days=1)

        return self.repo.list_appointments(
            self.db, shop_id, staff_id, client_id, status, start_date, end_date
        )

    def get_appointment(self, shop_id: int, appointment_id: int) -> Appointment:
        self._sweep()
        appointment = self.repo.get_appointment(self.db, appointment_id, shop_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def _lock(self, shop_id: int, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id, shop_id, lock=True)
        if not appointment:
            self.db.rollback()
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def update_status(self, shop_id: int, appointment_id: int, data: StatusUpdate) -> StatusChange:
        """Explicit staff/manager transition; completing settles the appointment"""
        appointment = self._lock(shop_id, appointment_id)
        previous_status = appointment.status

        if not validate_status_transition(previous_status, data.status):
            self.db.rollback()
            raise BookingRejected(
                RejectReason.INVALID_TRANSITION,
                f"Cannot change status from {previous_status} to {data.status}",
            )

        try:
            settlement = apply_transition(appointment, data.status, self.settlement, data.paymentMethod)
            if data.notes is not None:
                appointment.notes = data.notes
            self.db.commit()
        except Exception as e:
            logger.error(f"❌ Failed to update appointment {appointment_id}: {e}")
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        if previous_status != appointment.status:
            logger.info(
                f"✅ Appointment {appointment_id} transitioned: {previous_status} → {appointment.status}"
            )
        return StatusChange(appointment=appointment, settlement=settlement)

    def cancel(self, shop_id: int, appointment_id: int) -> Optional[Appointment]:
        """
        Cancel an appointment.

        Cancelling an already-cancelled appointment deletes it from the ledger
        and returns None.
        """
        appointment = self._lock(shop_id, appointment_id)

        if appointment.status == CANCELLED:
            self.repo.delete_appointment(self.db, appointment)
            logger.info(f"🗑️ Cancelled appointment {appointment_id} removed from the ledger")
            return None

        if appointment.status in TERMINAL_STATUSES:
            self.db.rollback()
            raise BookingRejected(
                RejectReason.INVALID_TRANSITION,
                f"Cannot cancel an appointment that is {appointment.status}",
            )

        previous_status = appointment.status
        apply_transition(appointment, CANCELLED, self.settlement)
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"✅ Appointment {appointment_id} transitioned: {previous_status} → {CANCELLED}")
        return appointment

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def availability(
        self,
        shop_id: int,
        staff_id: int,
        day: date,
        service_id: Optional[int] = None,
        duration_minutes: Optional[int] = None,
        step_minutes: int = config.SLOT_STEP_MINUTES,
    ) -> tuple[int, list[str]]:
        """Bookable start times ("HH:MM") for one staff member on one day"""
        if duration_minutes is None and service_id is not None:
            service = self.repo.get_service(self.db, service_id, shop_id)
            if not service:
                raise HTTPException(status_code=404, detail="Service not found")
            duration_minutes = service.duration_minutes
        if not duration_minutes or duration_minutes <= 0 or duration_minutes > config.MAX_APPOINTMENT_MINUTES:
            raise BookingRejected(RejectReason.INVALID_DURATION)
        if step_minutes <= 0:
            raise HTTPException(status_code=422, detail="step must be a positive number of minutes")

        if not self.repo.get_staff(self.db, shop_id, staff_id):
            raise HTTPException(status_code=404, detail="Staff member not found")

        hours = self.calendar.get_hours(self.db, shop_id, day_name(datetime.combine(day, datetime.min.time())))
        window = resolve_window(day, hours, self.policy)
        if window is None:
            return duration_minutes, []

        work_schedule = self.calendar.get_work_schedule(self.db, shop_id, staff_id)
        blackouts = self._blackout_intervals(shop_id, staff_id)
        booked = self._booked_slots(
            staff_id, window.start, window.end + timedelta(minutes=duration_minutes)
        )
        now = self.clock()
        step = timedelta(minutes=step_minutes)

        available = []
        current = window.start
        while current < window.end:
            if current >= now and not outside_work_schedule(current, work_schedule):
                decision = check_slot(current, duration_minutes, hours, blackouts, booked, self.policy)
                if decision.accepted:
                    available.append(format_time_of_day(current.time()))
            current += step

        return duration_minutes, available
