from sqlalchemy import (
    DDL,
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment status workflow: pending → confirmed → in_progress → completed
# cancelled / no_show are set by explicit action only
PENDING = "pending"
CONFIRMED = "confirmed"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no_show"

TERMINAL_STATUSES = (COMPLETED, CANCELLED, NO_SHOW)
# Statuses that do not occupy the staff member's calendar
RELEASED_STATUSES = (CANCELLED, NO_SHOW)


class Shop(Base):
    """Tenant boundary. Profile fields are owned by the tenant layer."""

    __tablename__ = "shops"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    # {"monday": {"isOpen": true, "openTime": "09:00", "closeTime": "18:00"}, ...}
    business_hours = Column(JSON, nullable=True)
    default_commission_rate = Column(Numeric(5, 2), nullable=True)  # Overrides the global default
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    staff = relationship("Staff", back_populates="shop")
    services = relationship("Service", back_populates="shop")


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    display_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    shop = relationship("Shop", back_populates="staff")


class StaffWorkSchedule(Base):
    """One working day of a staff member's weekly schedule"""

    __tablename__ = "staff_work_schedules"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)  # "monday" ... "sunday"
    start_time = Column(String(5), nullable=False)  # "08:00"
    end_time = Column(String(5), nullable=False)  # "18:00"
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(8, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    shop = relationship("Shop", back_populates="services")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Appointment(Base):
    """A booked service for one client with one staff member"""

    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_appointments_positive_duration"),
        Index("ix_appointments_staff_window", "staff_id", "scheduled_at", "ends_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)

    # Scheduling (shop-local wall clock)
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    ends_at = Column(DateTime, nullable=False)  # scheduled_at + duration, kept for range queries

    status = Column(String(20), default=CONFIRMED, nullable=False, index=True)

    # Snapshot of the service price at booking time, never updated
    price = Column(Numeric(8, 2), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service")
    staff = relationship("Staff")
    sale = relationship("Sale", back_populates="appointment", uselist=False)


# Database-level double-booking guard for PostgreSQL deployments
event.listen(
    Appointment.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        "ALTER TABLE appointments ADD CONSTRAINT appointments_no_overlap "
        "EXCLUDE USING gist (staff_id WITH =, tsrange(scheduled_at, ends_at, '[)') WITH &&) "
        "WHERE (status NOT IN ('cancelled', 'no_show'))"
    ).execute_if(dialect="postgresql"),
)


class TimeBlock(Base):
    """Blackout interval: vacation, holiday, maintenance, personal, other"""

    __tablename__ = "time_blocks"
    __table_args__ = (CheckConstraint("start_at < end_at", name="ck_time_blocks_range"),)

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True, index=True)  # NULL = whole shop

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    all_day = Column(Boolean, default=False, nullable=False)
    block_type = Column(String(20), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class CommissionRule(Base):
    __tablename__ = "commission_rules"
    __table_args__ = (
        UniqueConstraint("staff_id", "service_id", name="uq_commission_rules_staff_service"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    rate = Column(Numeric(5, 2), nullable=False)  # Percentage, e.g. 40.00

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True, index=True)
    # At most one sale per appointment; NULL for sales made outside an appointment
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True, unique=True)

    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(8, 2), nullable=False, default=0)
    payment_method = Column(String(50), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    appointment = relationship("Appointment", back_populates="sale")
    commission = relationship("Commission", back_populates="sale", uselist=False)


class Commission(Base):
    __tablename__ = "commissions"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, unique=True)

    amount = Column(Numeric(8, 2), nullable=False)
    rate = Column(Numeric(5, 2), nullable=False)  # Rate actually applied
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    sale = relationship("Sale", back_populates="commission")
