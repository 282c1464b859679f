"""
Settlement Pipeline

Turns a completed appointment into exactly one Sale and, when the appointment
has both a staff member and a service, one Commission record.

`settle()` runs inside the caller's transaction (status transitions call it
before committing). `settle_if_completed()` is the standalone entry point and
owns its own commit/rollback.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_PAYMENT_METHOD
from ...models import COMPLETED, Appointment, Commission, Sale
from .rates import RateChain, commission_amount, default_rate_chain
from .repository import SettlementRepository

logger = logging.getLogger(__name__)


@dataclass
class Settlement:
    sale: Sale
    commission: Optional[Commission]


def build_line_items(appointment: Appointment, total: Decimal) -> list[dict]:
    service = appointment.service
    return [
        {
            "type": "service",
            "serviceId": appointment.service_id,
            "name": service.name if service else "Service",
            "quantity": 1,
            "unitPrice": str(total),
            "total": str(total),
        }
    ]


class SettlementService:
    """Service layer for converting completed appointments into financial records"""

    def __init__(self, db: Session, rate_chain: Optional[RateChain] = None):
        self.db = db
        self.repo = SettlementRepository()
        self.rate_chain = rate_chain or default_rate_chain()

    def settle(self, appointment: Appointment, payment_method: Optional[str] = None) -> Optional[Settlement]:
        """
        Create the sale and commission for a completed appointment.

        Returns None when a sale already references the appointment. Nothing is
        committed here; any failure leaves both records to the caller's rollback.
        """
        existing = self.repo.find_sale_by_appointment(self.db, appointment.id)
        if existing:
            logger.info(
                f"ℹ️ Appointment {appointment.id} already settled (sale {existing.id}) - skipping"
            )
            return None

        total = Decimal(appointment.price) if appointment.price is not None else Decimal("0")

        sale = self.repo.insert_sale(
            self.db,
            shop_id=appointment.shop_id,
            client_id=appointment.client_id,
            staff_id=appointment.staff_id,
            appointment_id=appointment.id,
            items=build_line_items(appointment, total),
            total_amount=total,
            discount=Decimal("0"),
            payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
        )

        commission = None
        if appointment.staff_id and appointment.service_id:
            resolved = self.rate_chain.resolve(
                self.db, appointment.shop_id, appointment.staff_id, appointment.service_id
            )
            commission = self.repo.insert_commission(
                self.db,
                shop_id=appointment.shop_id,
                staff_id=appointment.staff_id,
                sale_id=sale.id,
                amount=commission_amount(total, resolved.rate),
                rate=resolved.rate,
                is_paid=False,
            )
            logger.info(
                f"💰 Commission {commission.amount} ({resolved.rate}% from {resolved.source}) "
                f"for staff {appointment.staff_id} on sale {sale.id}"
            )

        logger.info(f"✅ Appointment {appointment.id} settled: sale {sale.id}, total {total}")
        return Settlement(sale=sale, commission=commission)

    def settle_if_completed(
        self,
        appointment_id: int,
        payment_method: Optional[str] = None,
        shop_id: Optional[int] = None,
    ) -> Optional[Settlement]:
        """Settle a completed appointment; no-op for other statuses or when already settled"""
        query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
        if shop_id is not None:
            query = query.filter(Appointment.shop_id == shop_id)
        appointment = query.with_for_update().first()
        if not appointment:
            self.db.rollback()
            raise HTTPException(status_code=404, detail="Appointment not found")

        if appointment.status != COMPLETED:
            self.db.rollback()
            return None

        try:
            settlement = self.settle(appointment, payment_method)
            self.db.commit()
            return settlement
        except IntegrityError:
            # A concurrent settlement committed first (unique appointment_id on sales)
            self.db.rollback()
            if self.repo.find_sale_by_appointment(self.db, appointment_id):
                logger.warning(f"⚠️ Duplicate settlement for appointment {appointment_id} ignored")
                return None
            logger.error(f"❌ Settlement failed for appointment {appointment_id}: integrity error")
            raise
        except SQLAlchemyError as e:
            logger.error(f"❌ Settlement failed for appointment {appointment_id}: {e}")
            self.db.rollback()
            raise
