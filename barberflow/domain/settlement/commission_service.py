"""Commission service - rules, payouts and sale listings"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Commission, Sale, Service, Shop, Staff
from ...shared.clock import TimeSource, shop_now
from .rates import RateChain, default_rate_chain
from .repository import CommissionRuleRepository, SettlementRepository
from .schemas import (
    CommissionMatrixResponse,
    CommissionRuleResponse,
    CommissionRuleUpsert,
    ServiceRate,
    ShopDefaultRateUpdate,
    StaffRates,
)

logger = logging.getLogger(__name__)


class CommissionService:
    """Service layer for commission configuration and payout tracking"""

    def __init__(self, db: Session, clock: TimeSource = shop_now, rate_chain: Optional[RateChain] = None):
        self.db = db
        self.clock = clock
        self.repo = SettlementRepository()
        self.rules = CommissionRuleRepository()
        self.rate_chain = rate_chain or default_rate_chain()

    def _get_shop(self, shop_id: int) -> Shop:
        shop = self.db.query(Shop).filter(Shop.id == shop_id).first()
        if not shop:
            raise HTTPException(status_code=404, detail="Shop not found")
        return shop

    def get_commission_matrix(self, shop_id: int) -> CommissionMatrixResponse:
        """Effective rate for every active staff member × active service"""
        shop = self._get_shop(shop_id)

        staff_members = (
            self.db.query(Staff)
            .filter(Staff.shop_id == shop_id, Staff.is_active.is_(True))
            .order_by(Staff.id)
            .all()
        )
        services = (
            self.db.query(Service)
            .filter(Service.shop_id == shop_id, Service.is_active.is_(True))
            .order_by(Service.id)
            .all()
        )

        matrix = []
        for staff in staff_members:
            rates = []
            for service in services:
                resolved = self.rate_chain.resolve(self.db, shop_id, staff.id, service.id)
                rates.append(
                    ServiceRate(
                        serviceId=service.id,
                        serviceName=service.name,
                        servicePrice=service.price,
                        commissionRate=resolved.rate,
                        source=resolved.source,
                    )
                )
            matrix.append(StaffRates(staffId=staff.id, staffName=staff.display_name, services=rates))

        return CommissionMatrixResponse(
            shopId=shop_id, shopDefaultRate=shop.default_commission_rate, commissions=matrix
        )

    def upsert_rule(self, shop_id: int, data: CommissionRuleUpsert) -> CommissionRuleResponse:
        self._get_shop(shop_id)

        staff = self.db.query(Staff).filter(Staff.id == data.staffId, Staff.shop_id == shop_id).first()
        if not staff:
            raise HTTPException(status_code=404, detail="Staff member not found")
        service = (
            self.db.query(Service)
            .filter(Service.id == data.serviceId, Service.shop_id == shop_id)
            .first()
        )
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        rule = self.rules.upsert_rule(self.db, shop_id, data.staffId, data.serviceId, data.commissionRate)
        logger.info(
            f"Commission rule set for shop {shop_id}: staff {rule.staff_id} × service {rule.service_id} = {rule.rate}%"
        )
        return CommissionRuleResponse(
            staffId=rule.staff_id, serviceId=rule.service_id, commissionRate=rule.rate
        )

    def set_shop_default_rate(self, shop_id: int, data: ShopDefaultRateUpdate) -> Shop:
        shop = self._get_shop(shop_id)
        shop.default_commission_rate = data.commissionRate
        self.db.commit()
        self.db.refresh(shop)
        logger.info(f"Shop {shop_id} default commission rate set to {shop.default_commission_rate}")
        return shop

    def list_commissions(
        self,
        shop_id: int,
        staff_id: Optional[int] = None,
        is_paid: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Commission]:
        return self.repo.list_commissions(self.db, shop_id, staff_id, is_paid, start_date, end_date)

    def pay_commission(self, shop_id: int, commission_id: int) -> Commission:
        """Mark a commission as paid; paying twice keeps the first paid_at"""
        commission = self.repo.get_commission(self.db, commission_id, shop_id)
        if not commission:
            raise HTTPException(status_code=404, detail="Commission not found")

        if commission.is_paid:
            self.db.rollback()
            return commission

        commission = self.repo.mark_commission_paid(self.db, commission, self.clock())
        logger.info(f"💸 Commission {commission_id} paid ({commission.amount}) to staff {commission.staff_id}")
        return commission

    def list_sales(
        self,
        shop_id: int,
        staff_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Sale]:
        return self.repo.list_sales(self.db, shop_id, staff_id, start_date, end_date)
