"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.clock import to_shop_local

AppointmentStatusValue = Literal[
    "pending", "confirmed", "in_progress", "completed", "cancelled", "no_show"
]


class AppointmentCreate(BaseModel):
    """Client booking request"""

    staffId: int
    serviceId: int
    clientId: Optional[int] = None
    scheduledAt: datetime
    durationMinutes: Optional[int] = None  # Defaults to the service duration
    notes: Optional[str] = None

    @field_validator("scheduledAt")
    @classmethod
    def validate_scheduled_at(cls, v):
        return to_shop_local(v)


class SlotCheckRequest(BaseModel):
    staffId: int
    scheduledAt: datetime
    durationMinutes: int

    @field_validator("scheduledAt")
    @classmethod
    def validate_scheduled_at(cls, v):
        return to_shop_local(v)


class SlotCheckResponse(BaseModel):
    accepted: bool
    reason: Optional[str] = None


class StatusUpdate(BaseModel):
    status: AppointmentStatusValue
    notes: Optional[str] = None
    paymentMethod: Optional[str] = None  # Used when completing


class AppointmentResponse(BaseModel):
    id: int
    shopId: int
    staffId: int
    serviceId: Optional[int]
    clientId: Optional[int]
    serviceName: Optional[str] = None
    scheduledAt: datetime
    endsAt: datetime
    durationMinutes: int
    status: str
    price: Optional[Decimal]
    notes: Optional[str]
    created_at: Optional[datetime] = None


class CancelResponse(BaseModel):
    success: bool = True
    deleted: bool
    message: str
    appointment: Optional[AppointmentResponse] = None


class AvailabilityResponse(BaseModel):
    staffId: int
    date: date
    durationMinutes: int
    availableStarts: list[str] = Field(default_factory=list)


class StatusSweepResult(BaseModel):
    changed: list[int]
    total_updated: int
