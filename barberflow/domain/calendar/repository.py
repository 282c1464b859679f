"""Calendar repository - shop business hours and staff work schedules"""

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...models import Shop, Staff, StaffWorkSchedule
from .schemas import DayHours, WorkShift

logger = logging.getLogger(__name__)


class CalendarRepository:
    """Repository for calendar policy database operations"""

    @staticmethod
    def get_shop(db: Session, shop_id: int) -> Optional[Shop]:
        return db.query(Shop).filter(Shop.id == shop_id).first()

    @staticmethod
    def get_business_hours(db: Session, shop_id: int) -> dict[str, DayHours]:
        """All configured days for a shop; malformed entries are skipped"""
        shop = CalendarRepository.get_shop(db, shop_id)
        if not shop or not shop.business_hours:
            return {}

        hours = {}
        for day, raw in shop.business_hours.items():
            try:
                hours[day] = DayHours.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"⚠️ Ignoring malformed business hours for shop {shop_id} ({day}): {e}")
        return hours

    @staticmethod
    def get_hours(db: Session, shop_id: int, day: str) -> Optional[DayHours]:
        """Window for one day, or None when the day is not configured"""
        return CalendarRepository.get_business_hours(db, shop_id).get(day)

    @staticmethod
    def set_business_hours(db: Session, shop: Shop, hours: dict[str, DayHours]) -> Shop:
        shop.business_hours = {day: value.model_dump() for day, value in hours.items()}
        db.commit()
        db.refresh(shop)
        return shop

    @staticmethod
    def get_staff(db: Session, shop_id: int, staff_id: int) -> Optional[Staff]:
        return db.query(Staff).filter(Staff.id == staff_id, Staff.shop_id == shop_id).first()

    @staticmethod
    def _active_work_days(db: Session, shop_id: int, staff_id: int):
        return db.query(StaffWorkSchedule).filter(
            StaffWorkSchedule.shop_id == shop_id,
            StaffWorkSchedule.staff_id == staff_id,
            StaffWorkSchedule.is_active.is_(True),
        )

    @staticmethod
    def get_work_schedule(db: Session, shop_id: int, staff_id: int) -> dict[str, WorkShift]:
        """Active working days of a staff member, keyed by day name"""
        schedule = {}
        for row in CalendarRepository._active_work_days(db, shop_id, staff_id).all():
            try:
                schedule[row.day_of_week] = WorkShift(startTime=row.start_time, endTime=row.end_time)
            except ValidationError as e:
                logger.warning(
                    f"⚠️ Ignoring malformed work schedule for staff {staff_id} ({row.day_of_week}): {e}"
                )
        return schedule

    @staticmethod
    def set_work_day(db: Session, shop_id: int, staff_id: int, day: str, shift: WorkShift) -> StaffWorkSchedule:
        """Update the active entry for the day, or insert one"""
        row = (
            CalendarRepository._active_work_days(db, shop_id, staff_id)
            .filter(StaffWorkSchedule.day_of_week == day)
            .first()
        )
        if row:
            row.start_time = shift.startTime
            row.end_time = shift.endTime
        else:
            row = StaffWorkSchedule(
                shop_id=shop_id,
                staff_id=staff_id,
                day_of_week=day,
                start_time=shift.startTime,
                end_time=shift.endTime,
            )
            db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def clear_work_day(db: Session, shop_id: int, staff_id: int, day: str) -> int:
        """Soft delete; returns the number of entries deactivated"""
        rows = (
            CalendarRepository._active_work_days(db, shop_id, staff_id)
            .filter(StaffWorkSchedule.day_of_week == day)
            .all()
        )
        for row in rows:
            row.is_active = False
        db.commit()
        return len(rows)
