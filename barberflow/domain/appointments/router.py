"""Appointment router - booking ledger endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...shared.clock import TimeSource, get_clock
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusValue,
    AvailabilityResponse,
    CancelResponse,
    SlotCheckRequest,
    SlotCheckResponse,
    StatusSweepResult,
    StatusUpdate,
)
from .service import AppointmentService, to_response

router = APIRouter(prefix="/shops/{shop_id}/appointments", tags=["Appointments"])
status_router = APIRouter(prefix="/status", tags=["status"])


def get_appointment_service(
    db: Session = Depends(get_db), clock: TimeSource = Depends(get_clock)
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, clock=clock)


@router.post("/validate", response_model=SlotCheckResponse)
async def validate_slot(
    shop_id: int,
    data: SlotCheckRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Check a proposed slot without booking it"""
    decision = service.validate_slot(shop_id, data.staffId, data.scheduledAt, data.durationMinutes)
    return SlotCheckResponse(
        accepted=decision.accepted,
        reason=decision.reason.value if decision.reason else None,
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    shop_id: int,
    staff_id: int = Query(...),
    day: date = Query(..., alias="date"),
    service_id: Optional[int] = Query(None),
    duration: Optional[int] = Query(None, description="Minutes; defaults to the service duration"),
    step: int = Query(config.SLOT_STEP_MINUTES),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Bookable start times for a staff member on one day"""
    duration_minutes, starts = service.availability(
        shop_id, staff_id, day, service_id=service_id, duration_minutes=duration, step_minutes=step
    )
    return AvailabilityResponse(
        staffId=staff_id, date=day, durationMinutes=duration_minutes, availableStarts=starts
    )


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    shop_id: int,
    staff_id: Optional[int] = Query(None),
    client_id: Optional[int] = Query(None),
    status: Optional[AppointmentStatusValue] = Query(None),
    day: Optional[date] = Query(None, alias="date"),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments = service.list_appointments(shop_id, staff_id, client_id, status, day)
    return [to_response(a) for a in appointments]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    shop_id: int,
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment (409 double-booked, 422 for other rejections)"""
    return to_response(service.book(shop_id, data))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    shop_id: int,
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return to_response(service.get_appointment(shop_id, appointment_id))


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    shop_id: int,
    appointment_id: int,
    data: StatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Manual status change; moving to completed records the sale and commission"""
    change = service.update_status(shop_id, appointment_id, data)
    return to_response(change.appointment)


@router.delete("/{appointment_id}", response_model=CancelResponse)
async def cancel_appointment(
    shop_id: int,
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    Cancel an appointment.

    A second DELETE on an already-cancelled appointment removes it permanently.
    """
    appointment = service.cancel(shop_id, appointment_id)
    if appointment is None:
        return CancelResponse(deleted=True, message="Appointment deleted permanently")
    return CancelResponse(
        deleted=False,
        message="Appointment cancelled",
        appointment=to_response(appointment),
    )


@status_router.post("/automation/run", response_model=StatusSweepResult)
async def run_status_automation(
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    Manually trigger the status clock
    (the worker runs the same sweep every minute)
    """
    changed = service.advance_statuses()
    return StatusSweepResult(changed=changed, total_updated=len(changed))
