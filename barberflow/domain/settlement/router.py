"""Settlement router - sales, commissions and commission rules"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.clock import TimeSource, get_clock
from .commission_service import CommissionService
from .schemas import (
    CommissionMatrixResponse,
    CommissionResponse,
    CommissionRuleResponse,
    CommissionRuleUpsert,
    SaleResponse,
    SettlementResponse,
    SettleRequest,
    ShopDefaultRateUpdate,
)
from .service import SettlementService

router = APIRouter(prefix="/shops/{shop_id}", tags=["Settlement"])


def get_settlement_service(db: Session = Depends(get_db)) -> SettlementService:
    """Dependency injection for SettlementService"""
    return SettlementService(db)


def get_commission_service(
    db: Session = Depends(get_db), clock: TimeSource = Depends(get_clock)
) -> CommissionService:
    """Dependency injection for CommissionService"""
    return CommissionService(db, clock=clock)


@router.post("/appointments/{appointment_id}/settle", response_model=SettlementResponse)
async def settle_appointment(
    shop_id: int,
    appointment_id: int,
    data: Optional[SettleRequest] = None,
    service: SettlementService = Depends(get_settlement_service),
):
    """Create the sale and commission for a completed appointment (no-op if already settled)"""
    payment_method = data.paymentMethod if data else None
    settlement = service.settle_if_completed(appointment_id, payment_method, shop_id=shop_id)
    if not settlement:
        return SettlementResponse(settled=False)
    return SettlementResponse(
        settled=True,
        sale=SaleResponse.model_validate(settlement.sale),
        commission=(
            CommissionResponse.model_validate(settlement.commission) if settlement.commission else None
        ),
    )


# ============================================================================
# COMMISSION RULES
# ============================================================================


@router.get("/commission-rules", response_model=CommissionMatrixResponse)
async def get_commission_rules(
    shop_id: int,
    service: CommissionService = Depends(get_commission_service),
):
    """Effective commission rate for every staff member and service"""
    return service.get_commission_matrix(shop_id)


@router.put("/commission-rules", response_model=CommissionRuleResponse)
async def upsert_commission_rule(
    shop_id: int,
    data: CommissionRuleUpsert,
    service: CommissionService = Depends(get_commission_service),
):
    """Create or update the rate for one staff member and service"""
    return service.upsert_rule(shop_id, data)


@router.put("/commission-rules/default")
async def set_shop_default_rate(
    shop_id: int,
    data: ShopDefaultRateUpdate,
    service: CommissionService = Depends(get_commission_service),
):
    shop = service.set_shop_default_rate(shop_id, data)
    return {"shopId": shop.id, "shopDefaultRate": shop.default_commission_rate}


# ============================================================================
# COMMISSIONS AND SALES
# ============================================================================


@router.get("/commissions", response_model=list[CommissionResponse])
async def list_commissions(
    shop_id: int,
    staff_id: Optional[int] = Query(None),
    is_paid: Optional[bool] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    service: CommissionService = Depends(get_commission_service),
):
    return service.list_commissions(shop_id, staff_id, is_paid, start_date, end_date)


@router.post("/commissions/{commission_id}/pay", response_model=CommissionResponse)
async def pay_commission(
    shop_id: int,
    commission_id: int,
    service: CommissionService = Depends(get_commission_service),
):
    """Mark a commission as paid"""
    return service.pay_commission(shop_id, commission_id)


@router.get("/sales", response_model=list[SaleResponse])
async def list_sales(
    shop_id: int,
    staff_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    service: CommissionService = Depends(get_commission_service),
):
    return service.list_sales(shop_id, staff_id, start_date, end_date)
