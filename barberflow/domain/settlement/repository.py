"""Settlement repository - sales, commissions and commission rules"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Commission, CommissionRule, Sale


class SettlementRepository:
    """
    Repository for sale and commission records.

    Insert methods only flush; the caller owns the transaction so a sale and
    its commission commit or roll back together.
    """

    @staticmethod
    def find_sale_by_appointment(db: Session, appointment_id: int) -> Optional[Sale]:
        return db.query(Sale).filter(Sale.appointment_id == appointment_id).first()

    @staticmethod
    def insert_sale(db: Session, **sale_data) -> Sale:
        sale = Sale(**sale_data)
        db.add(sale)
        db.flush()
        return sale

    @staticmethod
    def insert_commission(db: Session, **commission_data) -> Commission:
        commission = Commission(**commission_data)
        db.add(commission)
        db.flush()
        return commission

    @staticmethod
    def list_sales(
        db: Session,
        shop_id: int,
        staff_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Sale]:
        query = db.query(Sale).filter(Sale.shop_id == shop_id)

        if staff_id is not None:
            query = query.filter(Sale.staff_id == staff_id)
        if start_date:
            query = query.filter(Sale.created_at >= start_date)
        if end_date:
            query = query.filter(Sale.created_at <= end_date)

        return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    @staticmethod
    def list_commissions(
        db: Session,
        shop_id: int,
        staff_id: Optional[int] = None,
        is_paid: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Commission]:
        query = db.query(Commission).filter(Commission.shop_id == shop_id)

        if staff_id is not None:
            query = query.filter(Commission.staff_id == staff_id)
        if is_paid is not None:
            query = query.filter(Commission.is_paid.is_(is_paid))
        if start_date:
            query = query.filter(Commission.created_at >= start_date)
        if end_date:
            query = query.filter(Commission.created_at <= end_date)

        return query.order_by(Commission.created_at.desc(), Commission.id.desc()).all()

    @staticmethod
    def get_commission(db: Session, commission_id: int, shop_id: int) -> Optional[Commission]:
        return (
            db.query(Commission)
            .filter(Commission.id == commission_id, Commission.shop_id == shop_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def mark_commission_paid(db: Session, commission: Commission, paid_at: datetime) -> Commission:
        commission.is_paid = True
        commission.paid_at = paid_at
        db.commit()
        db.refresh(commission)
        return commission


class CommissionRuleRepository:
    """Repository for per staff/service commission rates"""

    @staticmethod
    def get_rate(db: Session, staff_id: int, service_id: int) -> Optional[Decimal]:
        return (
            db.query(CommissionRule.rate)
            .filter(CommissionRule.staff_id == staff_id, CommissionRule.service_id == service_id)
            .scalar()
        )

    @staticmethod
    def upsert_rule(
        db: Session, shop_id: int, staff_id: int, service_id: int, rate: Decimal
    ) -> CommissionRule:
        rule = (
            db.query(CommissionRule)
            .filter(CommissionRule.staff_id == staff_id, CommissionRule.service_id == service_id)
            .with_for_update()
            .first()
        )
        if rule:
            rule.rate = rate
        else:
            rule = CommissionRule(shop_id=shop_id, staff_id=staff_id, service_id=service_id, rate=rate)
            db.add(rule)

        db.commit()
        db.refresh(rule)
        return rule
