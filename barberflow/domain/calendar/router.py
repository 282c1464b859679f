"""Calendar router - business hours endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import BusinessHoursResponse, BusinessHoursUpdate, WorkScheduleResponse, WorkShift
from .service import CalendarService

router = APIRouter(prefix="/shops/{shop_id}/business-hours", tags=["Calendar"])
schedule_router = APIRouter(prefix="/shops/{shop_id}/staff/{staff_id}/work-schedule", tags=["Calendar"])


def get_calendar_service(db: Session = Depends(get_db)) -> CalendarService:
    """Dependency injection for CalendarService"""
    return CalendarService(db)


@router.get("", response_model=BusinessHoursResponse)
async def get_business_hours(
    shop_id: int,
    service: CalendarService = Depends(get_calendar_service),
):
    """Get the weekly opening hours of a shop"""
    return service.get_business_hours(shop_id)


@router.put("", response_model=BusinessHoursResponse)
async def update_business_hours(
    shop_id: int,
    data: BusinessHoursUpdate,
    service: CalendarService = Depends(get_calendar_service),
):
    """Replace the weekly opening hours of a shop"""
    return service.update_business_hours(shop_id, data)


@schedule_router.get("", response_model=WorkScheduleResponse)
async def get_work_schedule(
    shop_id: int,
    staff_id: int,
    service: CalendarService = Depends(get_calendar_service),
):
    """Weekly working hours of a staff member"""
    return service.get_work_schedule(shop_id, staff_id)


@schedule_router.put("/{day}", response_model=WorkScheduleResponse)
async def set_work_day(
    shop_id: int,
    staff_id: int,
    day: str,
    data: WorkShift,
    service: CalendarService = Depends(get_calendar_service),
):
    """Set the working hours for one day of the week"""
    return service.set_work_day(shop_id, staff_id, day, data)


@schedule_router.delete("/{day}", response_model=WorkScheduleResponse)
async def clear_work_day(
    shop_id: int,
    staff_id: int,
    day: str,
    service: CalendarService = Depends(get_calendar_service),
):
    """Make a day a day off"""
    return service.clear_work_day(shop_id, staff_id, day)
