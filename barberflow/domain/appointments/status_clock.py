"""
Automated and manual status transitions for appointments.

Clock-driven (run before appointment listings and by the worker cron):
    confirmed → in_progress    when now ∈ [start, end)
    confirmed / in_progress → completed    when now ≥ end

Manual (staff/manager action):
    pending → confirmed
    confirmed → in_progress → completed
    any non-terminal → cancelled / no_show

Every transition that lands on "completed" settles the appointment in the
same transaction.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...models import (
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    IN_PROGRESS,
    NO_SHOW,
    PENDING,
    Appointment,
)
from ..settlement.service import Settlement, SettlementService
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)

CLOCK_STATUSES = [CONFIRMED, IN_PROGRESS]

MANUAL_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED, NO_SHOW},
    CONFIRMED: {IN_PROGRESS, COMPLETED, CANCELLED, NO_SHOW},
    IN_PROGRESS: {COMPLETED, CANCELLED, NO_SHOW},
    COMPLETED: set(),  # Terminal state
    CANCELLED: set(),  # Terminal state
    NO_SHOW: set(),  # Terminal state
}


def clock_target_status(status: str, start: datetime, end: datetime, now: datetime) -> Optional[str]:
    """Status the clock moves an appointment to, or None when nothing changes"""
    if status not in CLOCK_STATUSES:
        return None

    if now >= end:
        return COMPLETED
    if status == CONFIRMED and start <= now:
        return IN_PROGRESS
    return None


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate if a manual appointment status transition is allowed

    Same status is always allowed (no-op).
    """
    if current_status == new_status:
        return True
    return new_status in MANUAL_TRANSITIONS.get(current_status, set())


def apply_transition(
    appointment: Appointment,
    new_status: str,
    settlement: SettlementService,
    payment_method: Optional[str] = None,
) -> Optional[Settlement]:
    """
    Set the status and settle on first entry into "completed".

    Does not commit; the caller's transaction covers the status change and the
    financial records together.
    """
    previous_status = appointment.status
    appointment.status = new_status

    if new_status == COMPLETED and previous_status != COMPLETED:
        return settlement.settle(appointment, payment_method)
    return None


def advance_statuses(
    db: Session, now: datetime, settlement: Optional[SettlementService] = None
) -> list[int]:
    """
    Advance every started confirmed / in_progress appointment according to `now`.

    Returns:
        list[int]: ids of appointments whose status changed
    """
    settlement = settlement or SettlementService(db)
    repo = AppointmentRepository()
    changed = []

    try:
        for appointment in repo.list_clock_candidates(db, CLOCK_STATUSES, now):
            end = appointment.scheduled_at + timedelta(minutes=appointment.duration_minutes)
            target = clock_target_status(appointment.status, appointment.scheduled_at, end, now)
            if target is None:
                continue

            previous_status = appointment.status
            apply_transition(appointment, target, settlement)
            changed.append(appointment.id)
            logger.info(f"✅ Appointment {appointment.id} transitioned: {previous_status} → {target}")

        if changed:
            db.commit()
            logger.info(f"📊 Status clock advanced {len(changed)} appointment(s)")
        else:
            # Release row locks
            db.rollback()
            logger.debug("ℹ️ No appointment status updates needed")

        return changed

    except Exception as e:
        logger.error(f"❌ Error advancing appointment statuses: {str(e)}")
        db.rollback()
        raise
