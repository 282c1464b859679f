"""Blackout schemas - time blocks (vacation, holiday, maintenance...)"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.clock import to_shop_local
from ...shared.validators import validate_blackout_category


class BlackoutCreate(BaseModel):
    staffId: Optional[int] = None  # None blocks the whole shop
    title: str
    description: Optional[str] = None
    startDate: datetime
    endDate: datetime
    allDay: bool = False
    blockType: str = "other"

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title is required")
        return v.strip()

    @field_validator("blockType")
    @classmethod
    def validate_block_type(cls, v):
        return validate_blackout_category(v)

    @field_validator("startDate", "endDate")
    @classmethod
    def validate_dates(cls, v):
        return to_shop_local(v)


class BlackoutUpdate(BaseModel):
    staffId: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    allDay: Optional[bool] = None
    blockType: Optional[str] = None

    @field_validator("blockType")
    @classmethod
    def validate_block_type(cls, v):
        if v is not None:
            return validate_blackout_category(v)
        return v

    @field_validator("startDate", "endDate")
    @classmethod
    def validate_dates(cls, v):
        return to_shop_local(v)


class BlackoutResponse(BaseModel):
    id: int
    shopId: int
    staffId: Optional[int]
    title: str
    description: Optional[str]
    startDate: datetime
    endDate: datetime
    allDay: bool
    blockType: str
    isActive: bool
