"""Appointment repository - Database operations for the booking ledger"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import RELEASED_STATUSES, Appointment, Client, Service, Staff


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(
        db: Session, appointment_id: int, shop_id: int, lock: bool = False
    ) -> Optional[Appointment]:
        """Get an appointment; lock=True takes a row lock until the transaction ends"""
        query = db.query(Appointment).filter(
            Appointment.id == appointment_id, Appointment.shop_id == shop_id
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def list_appointments(
        db: Session,
        shop_id: int,
        staff_id: Optional[int] = None,
        client_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Appointment]:
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.service), joinedload(Appointment.staff))
            .filter(Appointment.shop_id == shop_id)
        )

        if staff_id is not None:
            query = query.filter(Appointment.staff_id == staff_id)
        if client_id is not None:
            query = query.filter(Appointment.client_id == client_id)
        if status:
            query = query.filter(Appointment.status == status)
        if start_date:
            query = query.filter(Appointment.scheduled_at >= start_date)
        if end_date:
            query = query.filter(Appointment.scheduled_at < end_date)

        return query.order_by(Appointment.scheduled_at.desc()).all()

    @staticmethod
    def list_overlap_candidates(
        db: Session, staff_id: int, window_start: datetime, window_end: datetime
    ) -> list[Appointment]:
        """Appointments of a staff member starting inside [window_start, window_end)"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.staff_id == staff_id,
                Appointment.scheduled_at >= window_start,
                Appointment.scheduled_at < window_end,
                Appointment.status.notin_(RELEASED_STATUSES),
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )

    @staticmethod
    def has_overlap(
        db: Session,
        staff_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """True when another live appointment of the staff member intersects [start, end)"""
        query = db.query(Appointment.id).filter(
            Appointment.staff_id == staff_id,
            Appointment.scheduled_at < end,
            Appointment.ends_at > start,
            Appointment.status.notin_(RELEASED_STATUSES),
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def list_clock_candidates(db: Session, statuses: list[str], now: datetime) -> list[Appointment]:
        """Locked rows whose window has started; rows locked elsewhere wait for the next pass"""
        return (
            db.query(Appointment)
            .filter(Appointment.status.in_(statuses), Appointment.scheduled_at <= now)
            .order_by(Appointment.scheduled_at.asc(), Appointment.id.asc())
            .with_for_update(skip_locked=True)
            .all()
        )

    @staticmethod
    def insert_appointment(db: Session, **appointment_data) -> Appointment:
        """Add and flush; the caller commits"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def lock_staff(db: Session, shop_id: int, staff_id: int) -> Optional[Staff]:
        """Serializes bookings for one staff member"""
        return (
            db.query(Staff)
            .filter(Staff.id == staff_id, Staff.shop_id == shop_id, Staff.is_active.is_(True))
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_staff(db: Session, shop_id: int, staff_id: int) -> Optional[Staff]:
        return (
            db.query(Staff)
            .filter(Staff.id == staff_id, Staff.shop_id == shop_id, Staff.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_service(db: Session, service_id: int, shop_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.shop_id == shop_id, Service.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_client(db: Session, client_id: int, shop_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id, Client.shop_id == shop_id).first()
