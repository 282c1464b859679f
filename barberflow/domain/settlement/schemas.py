"""Settlement schemas - sales, commissions and commission rules"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import validate_percentage


class SaleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shop_id: int
    client_id: Optional[int]
    staff_id: Optional[int]
    appointment_id: Optional[int]
    items: list[dict]
    total_amount: Decimal
    discount: Decimal
    payment_method: Optional[str]
    created_at: Optional[datetime] = None


class CommissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shop_id: int
    staff_id: int
    sale_id: int
    amount: Decimal
    rate: Decimal
    is_paid: bool
    paid_at: Optional[datetime]
    created_at: Optional[datetime] = None


class SettlementResponse(BaseModel):
    settled: bool
    sale: Optional[SaleResponse] = None
    commission: Optional[CommissionResponse] = None


class SettleRequest(BaseModel):
    paymentMethod: Optional[str] = None


class CommissionRuleUpsert(BaseModel):
    staffId: int
    serviceId: int
    commissionRate: Decimal

    @field_validator("commissionRate", mode="before")
    @classmethod
    def validate_rate(cls, v):
        return validate_percentage(v)


class ShopDefaultRateUpdate(BaseModel):
    """None clears the shop default so the global default applies"""

    commissionRate: Optional[Decimal] = None

    @field_validator("commissionRate", mode="before")
    @classmethod
    def validate_rate(cls, v):
        return validate_percentage(v)


class CommissionRuleResponse(BaseModel):
    staffId: int
    serviceId: int
    commissionRate: Decimal


class ServiceRate(BaseModel):
    serviceId: int
    serviceName: str
    servicePrice: Decimal
    commissionRate: Decimal
    source: str  # rule | shop | default


class StaffRates(BaseModel):
    staffId: int
    staffName: str
    services: list[ServiceRate]


class CommissionMatrixResponse(BaseModel):
    shopId: int
    shopDefaultRate: Optional[Decimal]
    commissions: list[StaffRates]
