"""Calendar policy schemas - weekly business hours"""

from datetime import time

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import parse_time_of_day, validate_day_name


class DayHours(BaseModel):
    """Opening window for one day of the week"""

    isOpen: bool = True
    openTime: str = "09:00"
    closeTime: str = "18:00"

    @field_validator("openTime", "closeTime")
    @classmethod
    def validate_time(cls, v):
        parse_time_of_day(v)
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if self.isOpen and self.open_time >= self.close_time:
            raise ValueError("openTime must be before closeTime")
        return self

    @property
    def open_time(self) -> time:
        return parse_time_of_day(self.openTime)

    @property
    def close_time(self) -> time:
        return parse_time_of_day(self.closeTime)


class BusinessHoursUpdate(BaseModel):
    """Replace the weekly schedule; omitted days become unconfigured"""

    businessHours: dict[str, DayHours]

    @field_validator("businessHours")
    @classmethod
    def validate_days(cls, v):
        return {validate_day_name(day): hours for day, hours in v.items()}


class BusinessHoursResponse(BaseModel):
    shopId: int
    businessHours: dict[str, DayHours]


class WorkShift(BaseModel):
    """Working hours of a staff member on one day"""

    startTime: str
    endTime: str

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        parse_time_of_day(v)
        return v

    @model_validator(mode="after")
    def validate_shift(self):
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self

    @property
    def start_time(self) -> time:
        return parse_time_of_day(self.startTime)

    @property
    def end_time(self) -> time:
        return parse_time_of_day(self.endTime)


class WorkScheduleResponse(BaseModel):
    """Days missing from the schedule are days off, unless the schedule is empty"""

    shopId: int
    staffId: int
    schedule: dict[str, WorkShift]
