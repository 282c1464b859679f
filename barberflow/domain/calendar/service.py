"""Calendar service - business hours and staff work schedules"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Shop, Staff
from ...shared.validators import validate_day_name
from .repository import CalendarRepository
from .schemas import BusinessHoursResponse, BusinessHoursUpdate, WorkScheduleResponse, WorkShift

logger = logging.getLogger(__name__)


class CalendarService:
    """Service layer for the calendar policy store"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CalendarRepository()

    def get_shop(self, shop_id: int) -> Shop:
        shop = self.repo.get_shop(self.db, shop_id)
        if not shop:
            raise HTTPException(status_code=404, detail="Shop not found")
        return shop

    def get_business_hours(self, shop_id: int) -> BusinessHoursResponse:
        self.get_shop(shop_id)
        return BusinessHoursResponse(
            shopId=shop_id, businessHours=self.repo.get_business_hours(self.db, shop_id)
        )

    def update_business_hours(self, shop_id: int, data: BusinessHoursUpdate) -> BusinessHoursResponse:
        shop = self.get_shop(shop_id)
        self.repo.set_business_hours(self.db, shop, data.businessHours)
        logger.info(f"🕘 Business hours updated for shop {shop_id}: {sorted(data.businessHours)}")
        return BusinessHoursResponse(shopId=shop_id, businessHours=data.businessHours)

    # Staff work schedules

    def get_staff(self, shop_id: int, staff_id: int) -> Staff:
        staff = self.repo.get_staff(self.db, shop_id, staff_id)
        if not staff:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return staff

    def _day(self, day: str) -> str:
        try:
            return validate_day_name(day)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    def get_work_schedule(self, shop_id: int, staff_id: int) -> WorkScheduleResponse:
        self.get_staff(shop_id, staff_id)
        return WorkScheduleResponse(
            shopId=shop_id,
            staffId=staff_id,
            schedule=self.repo.get_work_schedule(self.db, shop_id, staff_id),
        )

    def set_work_day(self, shop_id: int, staff_id: int, day: str, shift: WorkShift) -> WorkScheduleResponse:
        self.get_staff(shop_id, staff_id)
        day = self._day(day)
        self.repo.set_work_day(self.db, shop_id, staff_id, day, shift)
        logger.info(f"🕘 Work schedule for staff {staff_id} on {day}: {shift.startTime} → {shift.endTime}")
        return self.get_work_schedule(shop_id, staff_id)

    def clear_work_day(self, shop_id: int, staff_id: int, day: str) -> WorkScheduleResponse:
        self.get_staff(shop_id, staff_id)
        day = self._day(day)
        if not self.repo.clear_work_day(self.db, shop_id, staff_id, day):
            raise HTTPException(status_code=404, detail=f"No work schedule for {day}")
        logger.info(f"Work schedule for staff {staff_id} on {day} removed")
        return self.get_work_schedule(shop_id, staff_id)
